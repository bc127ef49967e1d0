"""
Router FastAPI per l'entità Client
Progetto: Stalla Manager (Gestionale Pensione Bestiame)

Anagrafica clienti: la cancellazione è logica, perché animali e
fatture continuano a riferirsi al cliente.
"""

import logging
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.schemas.client import (
    ClientCreate,
    ClientList,
    ClientRead,
    ClientUpdate,
    InitialsSuggestion,
)
from app.services.client_service import ClientService

# Logger per questo modulo
logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/clients",
    tags=["Clienti"],
)


def get_client_service() -> ClientService:
    """Dependency sostituibile con app.dependency_overrides."""
    return ClientService()


@router.get(
    "/",
    name="clienti_lista",
    summary="Lista clienti",
    description="Clienti ordinati per nome fiscale, con ricerca libera.",
    response_model=ClientList,
)
async def list_clients(
    search: Optional[str] = Query(None, description="Nome fiscale, NIF, sigla, email o telefono"),
    include_inactive: bool = Query(False, description="Mostra anche i clienti eliminati"),
    page: int = Query(1, ge=1),
    per_page: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    service: ClientService = Depends(get_client_service),
) -> ClientList:
    clients, total = await service.get_all(
        db, page=page, per_page=per_page, search=search, include_inactive=include_inactive
    )
    return ClientList(
        items=[ClientRead.model_validate(c) for c in clients],
        total=total,
        page=page,
        per_page=per_page,
    )


# Prima di /{client_id}, altrimenti "initials-suggestion" verrebbe letto come UUID
@router.get(
    "/initials-suggestion",
    name="cliente_sigla_suggerita",
    summary="Sigla suggerita",
    description="Sigla proposta per un nome fiscale; non viene salvata.",
    response_model=InitialsSuggestion,
)
async def suggest_initials(
    fiscal_name: str = Query(..., min_length=1),
    service: ClientService = Depends(get_client_service),
) -> InitialsSuggestion:
    return InitialsSuggestion(
        fiscal_name=fiscal_name,
        initials=service.suggest_initials(fiscal_name),
    )


@router.get(
    "/{client_id}",
    name="cliente_dettaglio",
    summary="Dettaglio cliente",
    response_model=ClientRead,
)
async def read_client(
    client_id: uuid.UUID,
    include_inactive: bool = Query(False, description="Risolve anche un cliente eliminato"),
    db: AsyncSession = Depends(get_db),
    service: ClientService = Depends(get_client_service),
) -> ClientRead:
    client = await service.get_by_id(db, client_id, include_inactive=include_inactive)
    return ClientRead.model_validate(client)


@router.post(
    "/",
    name="cliente_crea",
    summary="Nuovo cliente",
    description="Senza sigla esplicita viene usata quella suggerita dal nome fiscale. "
                "Le regole contrattuali mancanti prendono i valori standard.",
    response_model=ClientRead,
    status_code=status.HTTP_201_CREATED,
)
async def create_client(
    client_data: ClientCreate,
    db: AsyncSession = Depends(get_db),
    service: ClientService = Depends(get_client_service),
) -> ClientRead:
    client = await service.create(db, client_data)
    await db.commit()
    return ClientRead.model_validate(client)


@router.put(
    "/{client_id}",
    name="cliente_aggiorna",
    summary="Modifica cliente",
    description="Le fatture già generate mantengono i dati congelati nel loro snapshot.",
    response_model=ClientRead,
)
async def update_client(
    client_id: uuid.UUID,
    client_data: ClientUpdate,
    db: AsyncSession = Depends(get_db),
    service: ClientService = Depends(get_client_service),
) -> ClientRead:
    client = await service.update(db, client_id, client_data)
    await db.commit()
    return ClientRead.model_validate(client)


@router.delete(
    "/{client_id}",
    name="cliente_elimina",
    summary="Elimina cliente",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_client(
    client_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    service: ClientService = Depends(get_client_service),
) -> None:
    await service.delete(db, client_id)
    await db.commit()
    logger.info("Cliente %s disattivato", client_id)
