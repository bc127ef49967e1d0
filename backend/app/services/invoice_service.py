"""
Service Layer per la Fatturazione
Progetto: Stalla Manager (Gestionale Pensione Bestiame)

Definisce la logica di business per le fatture mensili di pensione:
generazione delle bozze, modifica dello sconto, emissione con
numerazione e consultazione.
"""

import logging
import uuid
from typing import NamedTuple, Optional, Protocol

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.formatting import format_currency, format_period
from app.core.exceptions import (
    AppException,
    BusinessValidationError,
    ConflictError,
    NotFoundError,
)
from app.models import Animal, Client, Invoice
from app.models.invoice import INVOICE_STATUS_DRAFT, INVOICE_STATUS_ISSUED
from app.schemas.invoice import (
    DiscountUpdate,
    DraftFailure,
    DraftGenerationResult,
    FrozenSnapshot,
    InvoiceFilters,
    InvoiceList,
    InvoiceRead,
    InvoiceTotals,
)
from app.services.billing import (
    HISTORIC_STATUS,
    apply_discount,
    base_invoice_number,
    build_invoice_draft,
    month_bounds,
    next_invoice_number,
)

# Logger per questo modulo
logger = logging.getLogger(__name__)


class DocumentRenderer(Protocol):
    """Genera il documento (es. PDF) di una fattura appena emessa."""

    def render(self, invoice: Invoice) -> None:
        ...


class BillingClient(NamedTuple):
    """Dati del cliente letti una sola volta per la generazione."""

    id: uuid.UUID
    fiscal_name: str
    nif: str
    address: Optional[str]
    contract_rules: Optional[dict]


class InvoiceService:
    """
    Service per la gestione delle operazioni sulle fatture.

    Fornisce metodi asincroni per interagire con il database
    in modo centralizzato, senza dipendenze da FastAPI.

    Implementa:
    - Generazione mensile delle bozze, un commit per cliente
    - Modifica dello sconto sulle bozze
    - Emissione con numerazione SIGLA-MM-YYYY[-N] e ritentativi
      in caso di numero già assegnato da un'emissione concorrente
    - Lista con filtri e dettaglio
    """

    def __init__(self, renderer: Optional[DocumentRenderer] = None) -> None:
        self.renderer = renderer

    # ----------------------------------------------------------------
    # Generazione bozze
    # ----------------------------------------------------------------

    async def generate_drafts(
        self,
        db: AsyncSession,
        month: int,
        year: int,
    ) -> DraftGenerationResult:
        """
        Genera le bozze del mese per tutti i clienti attivi.

        Ogni cliente viene elaborato e salvato in modo indipendente:
        un errore su un cliente (regole contrattuali non valide, errore
        del database) viene annullato, registrato in `failed` e non
        interrompe gli altri. I clienti senza giorni fatturabili finiscono
        in `skipped`. Rieseguire la generazione per lo stesso periodo
        crea nuove bozze.

        Args:
            db: Sessione database
            month: Mese (1-12)
            year: Anno

        Returns:
            DraftGenerationResult: bozze create, clienti saltati e falliti

        Raises:
            BusinessValidationError: Se il mese non è valido
        """
        month_bounds(month, year)

        # Dati letti prima dei commit: un rollback scade gli oggetti ORM
        clients = [
            BillingClient(c.id, c.fiscal_name, c.nif, c.address, c.contract_rules)
            for c in await self._list_clients(db)
        ]
        result = DraftGenerationResult()

        for client in clients:
            try:
                animals = await self._list_billable_animals(db, client.id, month, year)
                draft = build_invoice_draft(
                    client,
                    animals,
                    month,
                    year,
                    threshold=settings.invoice_consolidation_threshold,
                    consolidated_label=settings.invoice_consolidated_label,
                )
                if draft is None:
                    logger.debug("Cliente %s senza giorni fatturabili nel %s", client.id, format_period(month, year))
                    result.skipped.append(client.id)
                    continue

                invoice = Invoice(
                    client_id=draft.client_id,
                    period_month=draft.period_month,
                    period_year=draft.period_year,
                    status=INVOICE_STATUS_DRAFT,
                    invoice_number=None,
                    frozen_snapshot=draft.frozen_snapshot.to_document(),
                    totals=draft.totals.to_document(),
                )
                db.add(invoice)
                await db.commit()
                await db.refresh(invoice)
                result.created.append(InvoiceRead.model_validate(invoice))

            except (PydanticValidationError, SQLAlchemyError, AppException) as e:
                await db.rollback()
                detail = getattr(e, "detail", None) or str(e)
                logger.error(
                    "Generazione bozza fallita per cliente %s (%s): %s",
                    client.id, format_period(month, year), detail
                )
                result.failed.append(DraftFailure(client_id=client.id, detail=detail))

        logger.info(
            "Generazione bozze %s: %s create, %s saltate, %s fallite",
            format_period(month, year), len(result.created), len(result.skipped), len(result.failed)
        )
        return result

    # ----------------------------------------------------------------
    # Sconto
    # ----------------------------------------------------------------

    async def edit_draft_discount(
        self,
        db: AsyncSession,
        invoice_id: uuid.UUID,
        data: DiscountUpdate,
    ) -> Invoice:
        """
        Applica lo sconto a una bozza e ricalcola i totali.

        IVA e ritenuta usano le aliquote congelate nei totali.

        Raises:
            NotFoundError: Fattura non trovata
            BusinessValidationError: Fattura non in bozza o sconto non valido
        """
        invoice = await self.get_by_id(db, invoice_id)

        if invoice.status != INVOICE_STATUS_DRAFT:
            raise BusinessValidationError(
                f"Solo le fatture in bozza possono essere modificate "
                f"(fattura {invoice.invoice_number} già emessa)",
                error_code="INVOICE_ALREADY_ISSUED",
            )

        totals = apply_discount(InvoiceTotals.model_validate(invoice.totals), data.discount_amount)
        snapshot = FrozenSnapshot.model_validate(invoice.frozen_snapshot).model_copy(
            update={
                "discount_amount": totals.discount_amount,
                "discount_reason": data.discount_reason,
            }
        )

        invoice.frozen_snapshot = snapshot.to_document()
        invoice.totals = totals.to_document()

        await db.flush()
        await db.refresh(invoice)

        logger.info(
            "Sconto %s applicato alla bozza %s (nuovo totale %s)",
            totals.discount_amount, invoice.id, totals.total
        )
        return invoice

    # ----------------------------------------------------------------
    # Emissione
    # ----------------------------------------------------------------

    async def issue_invoice(
        self,
        db: AsyncSession,
        invoice_id: uuid.UUID,
    ) -> Invoice:
        """
        Emette una bozza assegnandole il numero definitivo.

        Numero e stato vengono salvati insieme. Se il numero viene
        assegnato nel frattempo da un'altra emissione (violazione del
        vincolo unique) la numerazione riparte, fino a
        `invoice_number_max_attempts` tentativi.

        Raises:
            NotFoundError: Fattura non trovata
            BusinessValidationError: Fattura già emessa o cliente senza sigla
            ConflictError: Numero non assegnabile dopo tutti i tentativi
        """
        max_attempts = settings.invoice_number_max_attempts

        for attempt in range(1, max_attempts + 1):
            invoice = await self.get_by_id(db, invoice_id)

            if invoice.status != INVOICE_STATUS_DRAFT:
                raise BusinessValidationError(
                    f"La fattura {invoice.invoice_number} è già stata emessa",
                    error_code="INVOICE_ALREADY_ISSUED",
                )

            initials = await self._get_client_initials(db, invoice.client_id)
            base_number = base_invoice_number(initials, invoice.period_month, invoice.period_year)
            existing = await self._list_invoice_numbers_starting_with(db, base_number)
            invoice_number = next_invoice_number(base_number, existing)

            invoice.status = INVOICE_STATUS_ISSUED
            invoice.invoice_number = invoice_number

            try:
                await db.commit()
            except IntegrityError as e:
                await db.rollback()
                logger.warning(
                    "Numero fattura %s già assegnato (tentativo %s/%s): %s",
                    invoice_number, attempt, max_attempts, e.orig
                )
                continue

            await db.refresh(invoice)
            logger.info(
                "Emessa fattura %s (id %s, totale %s)",
                invoice.invoice_number, invoice.id, format_currency(invoice.totals.get("total"))
            )
            self._render(invoice)
            return invoice

        logger.error("Impossibile assegnare un numero alla fattura %s", invoice_id)
        raise ConflictError(
            f"Impossibile assegnare un numero alla fattura dopo {max_attempts} tentativi",
            error_code="INVOICE_NUMBER_CONFLICT",
        )

    def _render(self, invoice: Invoice) -> None:
        # La fattura è già emessa: un errore del documento non la annulla
        if self.renderer is None:
            return
        try:
            self.renderer.render(invoice)
        except Exception:
            logger.exception("Generazione documento fallita per la fattura %s", invoice.invoice_number)

    # ----------------------------------------------------------------
    # Consultazione
    # ----------------------------------------------------------------

    async def get_all(
        self,
        db: AsyncSession,
        filters: Optional[InvoiceFilters] = None,
        page: int = 1,
        per_page: int = 10,
    ) -> InvoiceList:
        """
        Recupera la lista paginata delle fatture, dalla più recente.

        Il filtro per date confronta il mese di fatturazione: una fattura
        è esclusa se il suo mese finisce prima di date_from o inizia
        dopo date_to.

        Args:
            db: Sessione database
            filters: Cliente, stato, parte del numero, intervallo di date
            page: Numero pagina
            per_page: Elementi per pagina

        Returns:
            InvoiceList: Lista paginata delle fatture

        Raises:
            BusinessValidationError: Se date_from è successiva a date_to
        """
        filters = filters or InvoiceFilters()
        if filters.date_from and filters.date_to and filters.date_from > filters.date_to:
            raise BusinessValidationError(
                "La data iniziale non può essere successiva alla data finale",
                error_code="INVALID_DATE_RANGE",
            )

        conditions = []

        if filters.client_id:
            conditions.append(Invoice.client_id == filters.client_id)
        if filters.status:
            conditions.append(Invoice.status == filters.status.value)
        if filters.search:
            conditions.append(Invoice.invoice_number.ilike(f"%{filters.search.strip()}%"))

        period_key = Invoice.period_year * 100 + Invoice.period_month
        if filters.date_from:
            conditions.append(period_key >= filters.date_from.year * 100 + filters.date_from.month)
        if filters.date_to:
            conditions.append(period_key <= filters.date_to.year * 100 + filters.date_to.month)

        count_stmt = select(func.count(Invoice.id))
        if conditions:
            count_stmt = count_stmt.where(*conditions)
        count_result = await db.execute(count_stmt)
        total = count_result.scalar() or 0

        stmt = select(Invoice)
        if conditions:
            stmt = stmt.where(*conditions)
        stmt = stmt.order_by(Invoice.created_at.desc()).offset((page - 1) * per_page).limit(per_page)

        result = await db.execute(stmt)
        invoices = result.scalars().all()

        total_pages = (total + per_page - 1) // per_page if total > 0 else 1

        return InvoiceList(
            items=[InvoiceRead.model_validate(inv) for inv in invoices],
            total=total,
            page=page,
            per_page=per_page,
            total_pages=total_pages,
        )

    async def get_by_id(
        self,
        db: AsyncSession,
        invoice_id: uuid.UUID,
    ) -> Invoice:
        """
        Recupera una fattura per ID.

        Raises:
            NotFoundError: Fattura non trovata
        """
        result = await db.execute(select(Invoice).where(Invoice.id == invoice_id))
        invoice = result.scalar_one_or_none()

        if not invoice:
            raise NotFoundError(f"Fattura {invoice_id} non trovata")

        return invoice

    # ----------------------------------------------------------------
    # Query di supporto
    # ----------------------------------------------------------------

    async def _list_clients(self, db: AsyncSession) -> list[Client]:
        result = await db.execute(
            select(Client).where(Client.is_active == True).order_by(Client.fiscal_name.asc())
        )
        return list(result.scalars().all())

    async def _list_billable_animals(
        self,
        db: AsyncSession,
        client_id: uuid.UUID,
        month: int,
        year: int,
    ) -> list[Animal]:
        """Animali non storici del cliente presenti almeno in parte nel mese."""
        month_start, month_end = month_bounds(month, year)
        result = await db.execute(
            select(Animal)
            .where(
                Animal.client_id == client_id,
                Animal.status != HISTORIC_STATUS,
                Animal.entry_date <= month_end,
                or_(Animal.exit_date.is_(None), Animal.exit_date >= month_start),
            )
            .order_by(Animal.crotal.asc())
        )
        return list(result.scalars().all())

    async def _get_client_initials(self, db: AsyncSession, client_id: uuid.UUID) -> Optional[str]:
        """
        Sigla corrente del cliente, anche se disattivato.

        Raises:
            NotFoundError: Se il cliente non esiste
        """
        result = await db.execute(select(Client.initials).where(Client.id == client_id))
        row = result.one_or_none()
        if row is None:
            logger.warning("Cliente %s della fattura non trovato", client_id)
            raise NotFoundError(f"Cliente con ID {client_id} non trovato")
        return row.initials

    async def _list_invoice_numbers_starting_with(
        self,
        db: AsyncSession,
        prefix: str,
    ) -> list[str]:
        result = await db.execute(
            select(Invoice.invoice_number).where(
                Invoice.invoice_number.startswith(prefix, autoescape=True)
            )
        )
        return [number for number in result.scalars().all() if number]
