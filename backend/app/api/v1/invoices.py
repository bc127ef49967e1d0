"""
Router FastAPI per la Fatturazione
Progetto: Stalla Manager (Gestionale Pensione Bestiame)

Definisce gli endpoint API per le fatture mensili: generazione delle
bozze, sconto, emissione e consultazione.
"""

import logging
import uuid
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.schemas.invoice import (
    DiscountUpdate,
    DraftGenerationRequest,
    DraftGenerationResult,
    InvoiceFilters,
    InvoiceList,
    InvoiceRead,
    InvoiceStatus,
)
from app.services.invoice_service import InvoiceService

# Logger per questo modulo
logger = logging.getLogger(__name__)

# Router con prefix e tag
router = APIRouter(
    prefix="/invoices",
    tags=["Fatturazione"],
)


def get_invoice_service() -> InvoiceService:
    """Dependency per ottenere un'istanza dell'InvoiceService."""
    return InvoiceService()


# -------------------------------------------------------------------
# Endpoints per Fatture
# -------------------------------------------------------------------

@router.get(
    "/",
    name="fatture_lista",
    summary="Lista fatture",
    description="Recupera la lista paginata delle fatture con eventuali filtri.",
    response_model=InvoiceList,
    status_code=status.HTTP_200_OK,
)
async def get_invoices(
    client_id: Optional[uuid.UUID] = Query(None, description="Filtro per UUID cliente"),
    status_filter: Optional[InvoiceStatus] = Query(None, alias="status", description="DRAFT o ISSUED"),
    search: Optional[str] = Query(None, description="Parte del numero fattura"),
    date_from: Optional[date] = Query(None, description="Periodo dal (YYYY-MM-DD)"),
    date_to: Optional[date] = Query(None, description="Periodo fino al (YYYY-MM-DD)"),
    page: int = Query(1, ge=1, description="Numero pagina"),
    per_page: int = Query(10, ge=1, le=100, description="Elementi per pagina"),
    db: AsyncSession = Depends(get_db),
    service: InvoiceService = Depends(get_invoice_service),
) -> InvoiceList:
    """
    Recupera la lista paginata delle fatture.

    Filtri disponibili:
    - client_id: filtra per cliente
    - status: DRAFT o ISSUED
    - search: parte del numero fattura (case-insensitive)
    - date_from/date_to: fatture il cui mese si sovrappone all'intervallo
    """
    filters = InvoiceFilters(
        client_id=client_id,
        status=status_filter,
        search=search,
        date_from=date_from,
        date_to=date_to,
    )
    return await service.get_all(db=db, filters=filters, page=page, per_page=per_page)


@router.post(
    "/generate",
    name="fatture_genera_bozze",
    summary="Genera bozze del mese",
    description="Genera una bozza per ogni cliente attivo con giorni fatturabili nel mese.",
    response_model=DraftGenerationResult,
    status_code=status.HTTP_200_OK,
)
async def generate_drafts(
    data: DraftGenerationRequest,
    db: AsyncSession = Depends(get_db),
    service: InvoiceService = Depends(get_invoice_service),
) -> DraftGenerationResult:
    """
    Genera le bozze del periodo.

    I clienti falliti non bloccano gli altri e vengono riportati
    nella risposta insieme a quelli saltati.
    """
    return await service.generate_drafts(db=db, month=data.month, year=data.year)


@router.get(
    "/{invoice_id}",
    name="fattura_dettaglio",
    summary="Dettaglio fattura",
    response_model=InvoiceRead,
    status_code=status.HTTP_200_OK,
)
async def get_invoice(
    invoice_id: uuid.UUID = Path(..., description="UUID della fattura"),
    db: AsyncSession = Depends(get_db),
    service: InvoiceService = Depends(get_invoice_service),
) -> InvoiceRead:
    invoice = await service.get_by_id(db=db, invoice_id=invoice_id)
    return InvoiceRead.model_validate(invoice)


@router.patch(
    "/{invoice_id}/discount",
    name="fattura_sconto",
    summary="Modifica sconto bozza",
    description="Applica uno sconto alla bozza e ricalcola IVA, ritenuta e totale.",
    response_model=InvoiceRead,
    status_code=status.HTTP_200_OK,
)
async def update_discount(
    data: DiscountUpdate,
    invoice_id: uuid.UUID = Path(..., description="UUID della fattura"),
    db: AsyncSession = Depends(get_db),
    service: InvoiceService = Depends(get_invoice_service),
) -> InvoiceRead:
    """
    Modifica lo sconto di una bozza.

    Raises:
        NotFoundError: Fattura non trovata
        BusinessValidationError: Fattura già emessa o sconto oltre l'imponibile
    """
    invoice = await service.edit_draft_discount(db=db, invoice_id=invoice_id, data=data)
    await db.commit()
    return InvoiceRead.model_validate(invoice)


@router.post(
    "/{invoice_id}/issue",
    name="fattura_emetti",
    summary="Emetti fattura",
    description="Emette la bozza assegnando il numero definitivo. L'operazione è irreversibile.",
    response_model=InvoiceRead,
    status_code=status.HTTP_200_OK,
)
async def issue_invoice(
    invoice_id: uuid.UUID = Path(..., description="UUID della fattura"),
    db: AsyncSession = Depends(get_db),
    service: InvoiceService = Depends(get_invoice_service),
) -> InvoiceRead:
    """
    Emette una bozza.

    Raises:
        NotFoundError: Fattura non trovata
        BusinessValidationError: Fattura già emessa o cliente senza sigla
        ConflictError: Numero fattura non assegnabile
    """
    invoice = await service.issue_invoice(db=db, invoice_id=invoice_id)
    return InvoiceRead.model_validate(invoice)
