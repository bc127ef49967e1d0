"""
Motore di fatturazione
Progetto: Stalla Manager (Gestionale Pensione Bestiame)

Funzioni pure, senza accesso al database:
- Calcolo dei giorni fatturabili di un animale nel mese
- Costruzione e consolidamento delle righe
- Calcolo dei totali e applicazione dello sconto
- Numerazione delle fatture e sigla del cliente

Gli importi sono Decimal arrotondati al centesimo (ROUND_HALF_UP).
"""

import calendar
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable, Optional, Sequence

from app.core.exceptions import BusinessValidationError
from app.schemas.client import ContractRules
from app.schemas.invoice import FrozenSnapshot, InvoiceDraft, InvoiceTotals, LineItem

# Oltre questa soglia le righe vengono consolidate in una sola
CONSOLIDATION_THRESHOLD = 10
CONSOLIDATED_LABEL = "{count} ANIMALS"

HISTORIC_STATUS = "HISTORIC"

CENT = Decimal("0.01")
HUNDRED = Decimal("100")


def round_cents(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


# -------------------------------------------------------------------
# Proration
# -------------------------------------------------------------------

def month_bounds(month: int, year: int) -> tuple[date, date]:
    """Primo e ultimo giorno del mese di fatturazione."""
    if not 1 <= month <= 12:
        raise BusinessValidationError(
            f"Mese non valido: {month}",
            error_code="INVALID_PERIOD",
        )
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def billable_days(
    entry_date: date,
    exit_date: Optional[date],
    month: int,
    year: int,
    rules: ContractRules,
) -> Optional[int]:
    """
    Giorni fatturabili di un animale nel mese.

    Returns:
        None se l'animale non era presente nel mese (entrato dopo la
        fine o uscito prima dell'inizio), altrimenti i giorni (>= 0).
        Il giorno di ingresso e quello di uscita vengono scalati solo
        se cadono nel mese e la regola contrattuale non li addebita.
    """
    month_start, month_end = month_bounds(month, year)

    if entry_date > month_end:
        return None
    if exit_date is not None and exit_date < month_start:
        return None

    effective_start = max(entry_date, month_start)
    effective_end = min(exit_date or month_end, month_end)
    days = (effective_end - effective_start).days + 1

    if month_start <= entry_date <= month_end and not rules.charge_entry_day:
        days -= 1
    if exit_date is not None and month_start <= exit_date <= month_end and not rules.charge_exit_day:
        days -= 1

    return max(days, 0)


# -------------------------------------------------------------------
# Righe
# -------------------------------------------------------------------

def build_line_items(
    animals: Iterable[Any],
    month: int,
    year: int,
    rules: ContractRules,
) -> list[LineItem]:
    """Una riga per ogni animale con almeno un giorno fatturabile."""
    items: list[LineItem] = []
    for animal in animals:
        if animal.status == HISTORIC_STATUS:
            continue
        days = billable_days(animal.entry_date, animal.exit_date, month, year, rules)
        if not days:
            continue
        items.append(
            LineItem(
                label=animal.crotal,
                days=days,
                daily_rate=rules.daily_rate,
                row_total=round_cents(days * rules.daily_rate),
            )
        )
    return items


def consolidate_line_items(
    items: Sequence[LineItem],
    threshold: int = CONSOLIDATION_THRESHOLD,
    label: str = CONSOLIDATED_LABEL,
) -> list[LineItem]:
    """
    Sostituisce più di `threshold` righe con una riga unica.

    La riga consolidata ha days=1 e daily_rate pari al totale, così il
    totale complessivo resta invariato.
    """
    if len(items) <= threshold:
        return list(items)

    amount = sum((item.row_total for item in items), Decimal("0"))
    return [
        LineItem(
            label=label.format(count=len(items)),
            days=1,
            daily_rate=amount,
            row_total=amount,
        )
    ]


# -------------------------------------------------------------------
# Totali
# -------------------------------------------------------------------

def _totals_for(
    base: Decimal,
    taxable: Decimal,
    iva_rate: Decimal,
    retention_rate: Decimal,
    discount_amount: Decimal,
    base_after_discount: Optional[Decimal],
) -> InvoiceTotals:
    iva_amount = round_cents(taxable * iva_rate / HUNDRED)
    retention_amount = round_cents(taxable * retention_rate / HUNDRED)
    return InvoiceTotals(
        base=base,
        discount_amount=discount_amount,
        base_after_discount=base_after_discount,
        iva_rate=iva_rate,
        iva_amount=iva_amount,
        retention_rate=retention_rate,
        retention_amount=retention_amount,
        total=round_cents(taxable + iva_amount - retention_amount),
    )


def compute_totals(items: Sequence[LineItem], rules: ContractRules) -> InvoiceTotals:
    """Totali senza sconto: base + IVA - ritenuta."""
    base = round_cents(sum((item.row_total for item in items), Decimal("0")))
    return _totals_for(
        base=base,
        taxable=base,
        iva_rate=rules.iva_rate,
        retention_rate=rules.retention_rate,
        discount_amount=Decimal("0"),
        base_after_discount=None,
    )


def apply_discount(totals: InvoiceTotals, amount: Decimal) -> InvoiceTotals:
    """
    Ricalcola i totali applicando lo sconto alla base originale.

    Usa le aliquote già congelate nei totali. Il calcolo riparte
    sempre da `base`, quindi applicare due volte lo stesso sconto dà
    lo stesso risultato.

    Raises:
        BusinessValidationError: sconto negativo o maggiore della base
    """
    amount = round_cents(Decimal(amount))
    if amount < 0:
        raise BusinessValidationError(
            "Lo sconto non può essere negativo",
            error_code="INVALID_DISCOUNT",
        )
    if amount > totals.base:
        raise BusinessValidationError(
            f"Lo sconto ({amount}) supera l'imponibile della fattura ({totals.base})",
            error_code="INVALID_DISCOUNT",
        )

    base_after_discount = totals.base - amount
    return _totals_for(
        base=totals.base,
        taxable=base_after_discount,
        iva_rate=totals.iva_rate,
        retention_rate=totals.retention_rate,
        discount_amount=amount,
        base_after_discount=base_after_discount,
    )


# -------------------------------------------------------------------
# Bozza
# -------------------------------------------------------------------

def build_invoice_draft(
    client: Any,
    animals: Iterable[Any],
    month: int,
    year: int,
    threshold: int = CONSOLIDATION_THRESHOLD,
    consolidated_label: str = CONSOLIDATED_LABEL,
) -> Optional[InvoiceDraft]:
    """
    Calcola la bozza mensile di un cliente.

    `client` espone id, fiscal_name, nif, address e contract_rules;
    gli animali di altri clienti vengono ignorati.

    Returns:
        La bozza, oppure None se nessun animale ha giorni fatturabili.

    Raises:
        pydantic.ValidationError: regole contrattuali non valide
    """
    rules = ContractRules.from_raw(client.contract_rules)
    owned = [animal for animal in animals if animal.client_id == client.id]

    items = build_line_items(owned, month, year, rules)
    if not items:
        return None

    items = consolidate_line_items(items, threshold, consolidated_label)

    return InvoiceDraft(
        client_id=client.id,
        period_month=month,
        period_year=year,
        frozen_snapshot=FrozenSnapshot(
            client_name=client.fiscal_name,
            client_nif=client.nif,
            client_address=client.address,
            line_items=items,
        ),
        totals=compute_totals(items, rules),
    )


# -------------------------------------------------------------------
# Numerazione e sigla
# -------------------------------------------------------------------

def base_invoice_number(initials: Optional[str], month: int, year: int) -> str:
    """Numero base SIGLA-MM-YYYY."""
    if not initials:
        raise BusinessValidationError(
            "Il cliente non ha una sigla: impossibile numerare la fattura",
            error_code="MISSING_CLIENT_INITIALS",
        )
    return f"{initials}-{month:02d}-{year}"


def next_invoice_number(base_number: str, existing: Iterable[str]) -> str:
    """
    Primo numero libero per il numero base.

    Se nessun numero esistente inizia con la base si usa la base
    stessa, altrimenti il primo suffisso -1, -2, ... non ancora usato.
    """
    taken = {number for number in existing if number and number.startswith(base_number)}
    if not taken:
        return base_number

    counter = 1
    while f"{base_number}-{counter}" in taken:
        counter += 1
    return f"{base_number}-{counter}"


def generate_initials(fiscal_name: Optional[str]) -> str:
    """
    Sigla suggerita per un nome fiscale.

    Una parola: prime tre lettere. Più parole: iniziali delle prime due.
    """
    if not fiscal_name:
        return ""
    words = fiscal_name.strip().upper().split()
    if not words:
        return ""
    if len(words) == 1:
        return words[0][:3]
    return "".join(word[0] for word in words[:2])
