"""
Schemas Pydantic per la Fatturazione
Progetto: Stalla Manager (Gestionale Pensione Bestiame)

Contiene:
- Enum: InvoiceStatus
- Documenti JSON della fattura: LineItem, FrozenSnapshot, InvoiceTotals
- InvoiceDraft: risultato del motore di fatturazione, non ancora salvato
- Schemas per Invoice e per la generazione mensile delle bozze
"""

import uuid
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from app.schemas.types import Money


# -------------------------------------------------------------------
# Enum
# -------------------------------------------------------------------

class InvoiceStatus(str, Enum):
    """Stato della fattura: DRAFT è modificabile, ISSUED è definitiva."""
    DRAFT = "DRAFT"
    ISSUED = "ISSUED"


# -------------------------------------------------------------------
# Documenti JSON salvati sulla fattura
# -------------------------------------------------------------------

class LineItem(BaseModel):
    """
    Riga della fattura.

    L'etichetta è il crotal dell'animale, oppure "<N> ANIMALS" per la
    riga consolidata. Nel documento salvato la chiave resta "crotal"
    per compatibilità con le fatture storiche.
    """

    label: str = Field(
        ...,
        validation_alias=AliasChoices("crotal", "label"),
        serialization_alias="crotal",
        description="Crotal dell'animale o etichetta della riga consolidata",
    )
    days: int = Field(..., ge=0, description="Giorni fatturati")
    daily_rate: Money = Field(..., description="Tariffa giornaliera")
    quantity: int = Field(default=1, description="Quantità (sempre 1)")
    row_total: Money = Field(..., description="Totale riga")

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class FrozenSnapshot(BaseModel):
    """Dati del cliente e righe congelati alla generazione della bozza."""

    client_name: str
    client_nif: str
    client_address: Optional[str] = None
    line_items: list[LineItem] = Field(default_factory=list)
    discount_amount: Money = Decimal("0")
    discount_reason: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class InvoiceTotals(BaseModel):
    """
    Totali della fattura.

    base_after_discount compare solo dopo la modifica dello sconto;
    le aliquote sono quelle applicate alla generazione.
    """

    base: Money
    discount_amount: Money = Decimal("0")
    base_after_discount: Optional[Money] = None
    iva_rate: Money
    iva_amount: Money
    retention_rate: Money
    retention_amount: Money
    total: Money

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


class InvoiceDraft(BaseModel):
    """Bozza calcolata dal motore di fatturazione, pronta per essere salvata."""

    client_id: uuid.UUID
    period_month: int = Field(..., ge=1, le=12)
    period_year: int
    frozen_snapshot: FrozenSnapshot
    totals: InvoiceTotals


# -------------------------------------------------------------------
# Schemas per Invoice
# -------------------------------------------------------------------

class InvoiceRead(BaseModel):
    """Schema per la lettura di una fattura."""

    id: uuid.UUID = Field(..., description="UUID della fattura")
    client_id: uuid.UUID = Field(..., description="UUID del cliente")
    period_month: int
    period_year: int
    status: InvoiceStatus
    invoice_number: Optional[str] = Field(
        None,
        description="Numero fattura (SIGLA-MM-YYYY[-N]), assente finché DRAFT",
    )
    frozen_snapshot: FrozenSnapshot
    totals: InvoiceTotals
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class InvoiceList(BaseModel):
    """Schema per la lista paginata delle fatture."""

    items: list[InvoiceRead] = Field(default_factory=list)
    total: int
    page: int
    per_page: int
    total_pages: int


class DiscountUpdate(BaseModel):
    """Modifica dello sconto di una bozza."""

    discount_amount: Money = Field(..., ge=0, description="Importo dello sconto")
    discount_reason: Optional[str] = Field(None, max_length=500)


class InvoiceFilters(BaseModel):
    """Filtri della lista fatture."""

    client_id: Optional[uuid.UUID] = None
    status: Optional[InvoiceStatus] = None
    search: Optional[str] = Field(None, description="Parte del numero fattura")
    date_from: Optional[date] = None
    date_to: Optional[date] = None


# -------------------------------------------------------------------
# Generazione mensile
# -------------------------------------------------------------------

class DraftGenerationRequest(BaseModel):
    """Periodo per cui generare le bozze."""

    month: int = Field(..., ge=1, le=12)
    year: int = Field(..., ge=2000, le=2100)


class DraftFailure(BaseModel):
    """Cliente per cui la generazione è fallita."""

    client_id: uuid.UUID
    detail: str


class DraftGenerationResult(BaseModel):
    """Esito della generazione: bozze create, clienti saltati e falliti."""

    created: list[InvoiceRead] = Field(default_factory=list)
    skipped: list[uuid.UUID] = Field(default_factory=list)
    failed: list[DraftFailure] = Field(default_factory=list)
