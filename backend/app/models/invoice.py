"""
Modello SQLAlchemy per la Fatturazione
Progetto: Stalla Manager (Gestionale Pensione Bestiame)

Contiene:
- Invoice: fattura mensile di pensione per cliente
- Listener che rende immutabili le fatture emesse
"""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING, Any, Optional

from sqlalchemy import (
    CheckConstraint,
    ForeignKey,
    Index,
    Integer,
    String,
    Uuid,
    event,
    inspect,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.exceptions import BusinessValidationError
from app.models import Base
from app.models.mixins import JSONDocument, TimestampMixin, UUIDMixin

if TYPE_CHECKING:
    from app.models.client import Client


INVOICE_STATUS_DRAFT = "DRAFT"
INVOICE_STATUS_ISSUED = "ISSUED"

# Campi congelati all'emissione
FROZEN_FIELDS = ("status", "invoice_number", "frozen_snapshot", "totals")


class Invoice(Base, UUIDMixin, TimestampMixin):
    """
    Modello per le fatture.

    Una fattura nasce in bozza dalla generazione mensile, può ricevere
    uno sconto finché è DRAFT e diventa immutabile con l'emissione,
    che le assegna il numero definitivo.

    Attributes:
        id: UUID primary key
        client_id: UUID del cliente (riferimento debole, nessuna cascata)
        period_month: Mese di fatturazione (1-12)
        period_year: Anno di fatturazione
        status: DRAFT o ISSUED
        invoice_number: Numero fattura (None finché DRAFT), formato SIGLA-MM-YYYY[-N]
        frozen_snapshot: Dati cliente, righe e sconto congelati alla generazione
        totals: base, sconto, IVA, ritenuta e totale
    """

    __tablename__ = "invoices"

    # ------------------------------------------------------------
    # Colonne Relazioni
    # ------------------------------------------------------------
    client_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("clients.id", ondelete="RESTRICT"),
        nullable=False,
        doc="UUID del cliente fatturato",
    )

    # ------------------------------------------------------------
    # Colonne Periodo e Stato
    # ------------------------------------------------------------
    period_month: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        doc="Mese di fatturazione (1-12)",
    )

    period_year: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        doc="Anno di fatturazione",
    )

    status: Mapped[str] = mapped_column(
        String(10),
        nullable=False,
        default=INVOICE_STATUS_DRAFT,
        doc="Stato: DRAFT (modificabile) o ISSUED (definitiva)",
    )

    invoice_number: Mapped[Optional[str]] = mapped_column(
        String(30),
        nullable=True,
        unique=True,
        doc="Numero fattura assegnato all'emissione (formato: SIGLA-MM-YYYY[-N])",
    )

    # ------------------------------------------------------------
    # Colonne Snapshot e Totali
    # ------------------------------------------------------------
    frozen_snapshot: Mapped[dict[str, Any]] = mapped_column(
        JSONDocument,
        nullable=False,
        doc="client_name, client_nif, client_address, line_items, discount_amount, discount_reason",
    )

    totals: Mapped[dict[str, Any]] = mapped_column(
        JSONDocument,
        nullable=False,
        doc="base, discount_amount, iva_rate, iva_amount, retention_rate, retention_amount, total",
    )

    # ------------------------------------------------------------
    # Relationships
    # ------------------------------------------------------------
    client: Mapped["Client"] = relationship(
        "Client",
        back_populates="invoices",
        lazy="noload",
        doc="Cliente fatturato",
    )

    @property
    def is_draft(self) -> bool:
        return self.status == INVOICE_STATUS_DRAFT

    # ------------------------------------------------------------
    # Indici e Vincoli
    # ------------------------------------------------------------
    __table_args__ = (
        Index("ix_invoices_client_id", "client_id"),
        Index("ix_invoices_period", "period_year", "period_month"),
        CheckConstraint(
            "period_month >= 1 AND period_month <= 12",
            name="ck_invoices_period_month",
        ),
        CheckConstraint(
            "status IN ('DRAFT', 'ISSUED')",
            name="ck_invoices_status",
        ),
        CheckConstraint(
            "status = 'DRAFT' OR invoice_number IS NOT NULL",
            name="ck_invoices_issued_has_number",
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<Invoice(id={self.id}, number={self.invoice_number}, "
            f"period={self.period_month:02d}/{self.period_year}, status={self.status})>"
        )


@event.listens_for(Invoice, "before_update")
def prevent_issued_invoice_changes(mapper, connection, target: Invoice) -> None:
    """
    Blocca qualsiasi modifica ai campi congelati di una fattura già emessa.

    Lo stato "precedente" è quello letto dal database: la transizione
    DRAFT -> ISSUED è consentita, ogni modifica successiva no.
    """
    state = inspect(target)
    history = state.attrs.status.load_history()
    if history.deleted:
        previous_status = history.deleted[0]
    elif history.unchanged:
        previous_status = history.unchanged[0]
    else:
        return

    if previous_status != INVOICE_STATUS_ISSUED:
        return

    changed = [name for name in FROZEN_FIELDS if state.attrs[name].history.has_changes()]
    if changed:
        raise BusinessValidationError(
            f"La fattura {target.invoice_number} è già emessa e non può essere modificata "
            f"(campi: {', '.join(changed)})",
            error_code="INVOICE_ALREADY_ISSUED",
        )
