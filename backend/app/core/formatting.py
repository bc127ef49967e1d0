"""
Formattazione valori per la visualizzazione
Progetto: Stalla Manager (Gestionale Pensione Bestiame)

Formati es-ES usati nelle intestazioni fattura e nei log.
Solo visualizzazione: nessun impatto sui calcoli.
"""

from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Union

PLACEHOLDER = "-"

_MONTHS_ES = (
    "ene", "feb", "mar", "abr", "may", "jun",
    "jul", "ago", "sept", "oct", "nov", "dic",
)


def format_currency(amount: Optional[Union[Decimal, int, float]]) -> str:
    """
    Formatta un importo in euro.

    Example:
        format_currency(Decimal("12345.5"))  # "12.345,50 €"
        format_currency(Decimal("1234.5"))   # "1234,50 €"
    """
    if amount is None:
        return PLACEHOLDER
    value = Decimal(str(amount)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    sign = "-" if value < 0 else ""
    integer_part, _, decimals = f"{abs(value):.2f}".partition(".")
    # Separatore migliaia "." solo da 5 cifre in su (convenzione es-ES)
    if len(integer_part) > 4:
        groups = []
        while integer_part:
            groups.insert(0, integer_part[-3:])
            integer_part = integer_part[:-3]
        integer_part = ".".join(groups)
    return f"{sign}{integer_part},{decimals} €"


def format_date(value: Optional[Union[date, datetime, str]]) -> str:
    """
    Formatta una data come "14 ene 2026".

    Accetta anche stringhe ISO (YYYY-MM-DD); valori non interpretabili
    restituiscono il segnaposto invece di sollevare eccezioni.
    """
    if not value:
        return PLACEHOLDER
    if isinstance(value, str):
        try:
            value = date.fromisoformat(value[:10])
        except ValueError:
            return PLACEHOLDER
    return f"{value.day:02d} {_MONTHS_ES[value.month - 1]} {value.year}"


def format_period(month: int, year: int) -> str:
    """Periodo di fatturazione nel formato MM/YYYY."""
    return f"{month:02d}/{year}"
