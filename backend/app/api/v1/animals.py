"""
Router FastAPI per l'entità Animal
Progetto: Stalla Manager (Gestionale Pensione Bestiame)

Definisce gli endpoint API per la gestione degli animali.
"""

import logging
import uuid
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.schemas.animal import (
    AnimalCreate,
    AnimalList,
    AnimalRead,
    AnimalStatus,
    AnimalUpdate,
    ReproStatus,
)
from app.services.animal_service import AnimalService

# Logger per questo modulo
logger = logging.getLogger(__name__)

# Router con prefix e tag
router = APIRouter(
    prefix="/animals",
    tags=["Animali"],
)


def get_animal_service() -> AnimalService:
    """Dependency per ottenere un'istanza dell'AnimalService."""
    return AnimalService()


@router.get(
    "/",
    name="animali_lista",
    summary="Lista animali",
    description="Recupera la lista paginata degli animali con filtri.",
    response_model=AnimalList,
    status_code=status.HTTP_200_OK,
)
async def get_animals(
    client_id: Optional[uuid.UUID] = Query(None, description="Filtro per cliente"),
    status_filter: Optional[AnimalStatus] = Query(None, alias="status", description="Filtro per stato"),
    repro_status: Optional[ReproStatus] = Query(None, description="Filtro per stato riproduttivo"),
    search: Optional[str] = Query(None, description="Parte del crotal"),
    entry_from: Optional[date] = Query(None, description="Ingresso dal (YYYY-MM-DD)"),
    entry_to: Optional[date] = Query(None, description="Ingresso fino al (YYYY-MM-DD)"),
    page: int = Query(1, ge=1, description="Numero pagina"),
    per_page: int = Query(10, ge=1, le=100, description="Elementi per pagina"),
    db: AsyncSession = Depends(get_db),
    service: AnimalService = Depends(get_animal_service),
) -> AnimalList:
    animals, total = await service.get_all(
        db=db,
        client_id=client_id,
        status=status_filter.value if status_filter else None,
        repro_status=repro_status.value if repro_status else None,
        search=search,
        entry_from=entry_from,
        entry_to=entry_to,
        page=page,
        per_page=per_page,
    )

    return AnimalList(
        items=[AnimalRead.model_validate(a) for a in animals],
        total=total,
        page=page,
        per_page=per_page,
    )


@router.get(
    "/{animal_id}",
    name="animale_dettaglio",
    summary="Dettaglio animale",
    response_model=AnimalRead,
    status_code=status.HTTP_200_OK,
)
async def get_animal(
    animal_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    service: AnimalService = Depends(get_animal_service),
) -> AnimalRead:
    animal = await service.get_by_id(db=db, animal_id=animal_id)
    return AnimalRead.model_validate(animal)


@router.post(
    "/",
    name="animale_crea",
    summary="Registra animale",
    description="Registra un nuovo animale per un cliente esistente.",
    response_model=AnimalRead,
    status_code=status.HTTP_201_CREATED,
)
async def create_animal(
    animal_data: AnimalCreate,
    db: AsyncSession = Depends(get_db),
    service: AnimalService = Depends(get_animal_service),
) -> AnimalRead:
    """
    Registra un nuovo animale.

    Raises:
        NotFoundError: Se il cliente non esiste
    """
    animal = await service.create(db=db, animal_data=animal_data)
    await db.commit()
    return AnimalRead.model_validate(animal)


@router.put(
    "/{animal_id}",
    name="animale_aggiorna",
    summary="Aggiorna animale",
    response_model=AnimalRead,
    status_code=status.HTTP_200_OK,
)
async def update_animal(
    animal_id: uuid.UUID,
    animal_data: AnimalUpdate,
    db: AsyncSession = Depends(get_db),
    service: AnimalService = Depends(get_animal_service),
) -> AnimalRead:
    """
    Aggiorna un animale esistente.

    Raises:
        NotFoundError: Se l'animale o il cliente non esistono
        BusinessValidationError: Se l'uscita è precedente all'ingresso
    """
    animal = await service.update(db=db, animal_id=animal_id, animal_data=animal_data)
    await db.commit()
    return AnimalRead.model_validate(animal)


@router.delete(
    "/{animal_id}",
    name="animale_elimina",
    summary="Elimina animale",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_animal(
    animal_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    service: AnimalService = Depends(get_animal_service),
) -> None:
    await service.delete(db=db, animal_id=animal_id)
    await db.commit()
