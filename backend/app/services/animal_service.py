"""
Service Layer per l'entità Animal
Progetto: Stalla Manager (Gestionale Pensione Bestiame)

Definisce la logica di business per la gestione degli animali.
"""

import logging
import uuid
from datetime import date
from typing import Any, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import BusinessValidationError, NotFoundError
from app.models import Animal, Client
from app.schemas.animal import AnimalCreate, AnimalUpdate, ReproStatus

# Logger per questo modulo
logger = logging.getLogger(__name__)


def resolve_repro_status(repro_status: str, repro_data: Optional[dict[str, Any]]) -> str:
    """
    Stato riproduttivo da salvare.

    Un animale ancora EMPTY con la data della prima inseminazione
    passa automaticamente a INSEMINATED.
    """
    if repro_status == ReproStatus.EMPTY.value and repro_data and repro_data.get("insem_1_date"):
        return ReproStatus.INSEMINATED.value
    return repro_status


class AnimalService:
    """
    Service per la gestione delle operazioni CRUD sugli animali.

    Fornisce metodi asincroni per interagire con il database
    in modo centralizzato, senza dipendenze da FastAPI.
    """

    async def get_all(
        self,
        db: AsyncSession,
        client_id: Optional[uuid.UUID] = None,
        status: Optional[str] = None,
        repro_status: Optional[str] = None,
        search: Optional[str] = None,
        entry_from: Optional[date] = None,
        entry_to: Optional[date] = None,
        page: int = 1,
        per_page: int = 10,
    ) -> tuple[list[Animal], int]:
        """
        Recupera la lista paginata degli animali, ordinata per crotal.

        Args:
            db: Sessione database
            client_id: Filtro per cliente proprietario
            status: Filtro per stato anagrafico
            repro_status: Filtro per stato riproduttivo
            search: Parte del crotal (case-insensitive)
            entry_from: Data di ingresso minima
            entry_to: Data di ingresso massima
            page: Numero pagina
            per_page: Elementi per pagina

        Returns:
            Tuple di (lista animali, totale count)
        """
        filter_conditions = []

        if client_id is not None:
            filter_conditions.append(Animal.client_id == client_id)
        if status:
            filter_conditions.append(Animal.status == status)
        if repro_status:
            filter_conditions.append(Animal.repro_status == repro_status)
        if search:
            filter_conditions.append(Animal.crotal.ilike(f"%{search.strip()}%"))
        if entry_from:
            filter_conditions.append(Animal.entry_date >= entry_from)
        if entry_to:
            filter_conditions.append(Animal.entry_date <= entry_to)

        query = select(Animal)
        if filter_conditions:
            query = query.where(*filter_conditions)
        query = query.order_by(Animal.crotal.asc())

        offset = (page - 1) * per_page
        result = await db.execute(query.offset(offset).limit(per_page))
        animals = list(result.scalars().all())

        count_query = select(func.count()).select_from(Animal)
        if filter_conditions:
            count_query = count_query.where(*filter_conditions)
        count_result = await db.execute(count_query)
        total = count_result.scalar() or 0

        logger.debug("Recuperati %s animali su %s totali", len(animals), total)
        return animals, total

    async def get_by_id(
        self,
        db: AsyncSession,
        animal_id: uuid.UUID,
    ) -> Animal:
        """
        Recupera un animale tramite ID.

        Raises:
            NotFoundError: Se l'animale non esiste
        """
        result = await db.execute(select(Animal).where(Animal.id == animal_id))
        animal = result.scalar_one_or_none()

        if animal is None:
            logger.warning("Animale non trovato: %s", animal_id)
            raise NotFoundError(f"Animale con ID {animal_id} non trovato")

        return animal

    async def create(
        self,
        db: AsyncSession,
        animal_data: AnimalCreate,
    ) -> Animal:
        """
        Registra un nuovo animale.

        Raises:
            NotFoundError: Se il cliente proprietario non esiste
        """
        await self._ensure_client_exists(db, animal_data.client_id)

        values = animal_data.model_dump(exclude={"repro_data"})
        values["status"] = animal_data.status.value
        values["repro_data"] = (
            animal_data.repro_data.model_dump(mode="json", exclude_none=True)
            if animal_data.repro_data is not None
            else None
        )
        values["repro_status"] = resolve_repro_status(
            animal_data.repro_status.value, values["repro_data"]
        )

        animal = Animal(**values)
        db.add(animal)
        await db.flush()
        await db.refresh(animal)

        logger.info("Registrato animale: %s - %s (cliente %s)", animal.id, animal.crotal, animal.client_id)
        return animal

    async def update(
        self,
        db: AsyncSession,
        animal_id: uuid.UUID,
        animal_data: AnimalUpdate,
    ) -> Animal:
        """
        Aggiorna un animale esistente.

        Raises:
            NotFoundError: Se l'animale o il nuovo cliente non esistono
            BusinessValidationError: Se l'uscita risulta precedente all'ingresso
        """
        animal = await self.get_by_id(db, animal_id)

        update_data = animal_data.model_dump(exclude_unset=True, exclude={"repro_data"})
        if "repro_data" in animal_data.model_fields_set:
            update_data["repro_data"] = (
                animal_data.repro_data.model_dump(mode="json", exclude_none=True)
                if animal_data.repro_data is not None
                else None
            )

        for key in ("status", "repro_status"):
            if update_data.get(key) is not None:
                update_data[key] = update_data[key].value

        new_client_id = update_data.get("client_id")
        if new_client_id is not None and new_client_id != animal.client_id:
            await self._ensure_client_exists(db, new_client_id)

        entry_date = update_data.get("entry_date") or animal.entry_date
        exit_date = update_data["exit_date"] if "exit_date" in update_data else animal.exit_date
        if exit_date is not None and exit_date < entry_date:
            raise BusinessValidationError(
                "La data di uscita non può essere precedente alla data di ingresso",
                error_code="INVALID_EXIT_DATE",
            )

        for field, value in update_data.items():
            if field in ("crotal", "client_id", "entry_date", "status", "repro_status") and value is None:
                continue
            setattr(animal, field, value)

        animal.repro_status = resolve_repro_status(animal.repro_status, animal.repro_data)

        await db.flush()
        await db.refresh(animal)

        logger.info("Aggiornato animale: %s - %s", animal.id, animal.crotal)
        return animal

    async def delete(
        self,
        db: AsyncSession,
        animal_id: uuid.UUID,
    ) -> None:
        """
        Elimina fisicamente un animale.

        Le fatture già generate conservano il crotal nelle righe congelate.

        Raises:
            NotFoundError: Se l'animale non esiste
        """
        animal = await self.get_by_id(db, animal_id)
        await db.delete(animal)
        await db.flush()
        logger.info("Eliminato animale: %s - %s", animal_id, animal.crotal)

    async def _ensure_client_exists(self, db: AsyncSession, client_id: uuid.UUID) -> Client:
        result = await db.execute(select(Client).where(Client.id == client_id))
        client = result.scalar_one_or_none()
        if client is None:
            logger.warning("Cliente non trovato per animale: %s", client_id)
            raise NotFoundError("Cliente non trovato")
        return client
