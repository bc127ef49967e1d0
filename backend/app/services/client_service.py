"""
Service Layer per l'entità Client
Progetto: Stalla Manager (Gestionale Pensione Bestiame)

Definisce la logica di business per la gestione dei clienti:
- Soft delete (cancellazione logica)
- Controllo duplicati del NIF tra i clienti attivi
- Sigla suggerita dal nome fiscale quando non indicata
"""

import logging
import uuid
from typing import Optional

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ConflictError, DuplicateError, NotFoundError
from app.models import Client
from app.schemas.client import ClientCreate, ClientUpdate
from app.services.billing import generate_initials

# Logger per questo modulo
logger = logging.getLogger(__name__)

# Campi che un null esplicito in aggiornamento non può svuotare
REQUIRED_FIELDS = ("fiscal_name", "nif", "initials")


class ClientService:
    """
    Service per la gestione delle operazioni CRUD sui clienti.

    Fornisce metodi asincroni per interagire con il database
    in modo centralizzato, senza dipendenze da FastAPI.
    Le modifiche vengono solo inviate con flush: il commit spetta
    al chiamante.

    Implementa:
    - Soft Delete: cancellazione logica tramite flag is_active; animali
      e fatture mantengono il riferimento al cliente
    - Validazione Proattiva: controllo NIF duplicato prima di scrivere
    - Filtro Automatico: di default esclude i clienti eliminati
    """

    async def get_all(
        self,
        db: AsyncSession,
        page: int = 1,
        per_page: int = 10,
        search: Optional[str] = None,
        include_inactive: bool = False,
    ) -> tuple[list[Client], int]:
        """
        Recupera la lista paginata dei clienti, ordinata per nome fiscale.

        Args:
            db: Sessione database
            page: Numero pagina (default 1)
            per_page: Elementi per pagina (default 10)
            search: Ricerca su nome fiscale, NIF, sigla, email e telefono
            include_inactive: Se True, include anche i clienti soft-deleted

        Returns:
            Tuple di (lista clienti, totale count)
        """
        conditions = []

        if not include_inactive:
            conditions.append(Client.is_active == True)

        if search:
            search_term = f"%{search.strip()}%"
            conditions.append(
                or_(
                    Client.fiscal_name.ilike(search_term),
                    Client.nif.ilike(search_term),
                    Client.initials.ilike(search_term),
                    Client.email.ilike(search_term),
                    Client.phone.ilike(search_term),
                )
            )

        query = select(Client).order_by(Client.fiscal_name.asc())
        if conditions:
            query = query.where(*conditions)

        offset = (page - 1) * per_page
        result = await db.execute(query.offset(offset).limit(per_page))
        clients = list(result.scalars().all())

        count_query = select(func.count()).select_from(Client)
        if conditions:
            count_query = count_query.where(*conditions)
        count_result = await db.execute(count_query)
        total = count_result.scalar() or 0

        logger.info(
            "Recuperati %s clienti su %s totali (pagina %s, include_inactive=%s)",
            len(clients), total, page, include_inactive
        )
        return clients, total

    async def get_by_id(
        self,
        db: AsyncSession,
        client_id: uuid.UUID,
        include_inactive: bool = False,
    ) -> Client:
        """
        Recupera un cliente tramite ID.

        Raises:
            NotFoundError: Se il cliente non esiste o è stato eliminato
        """
        query = select(Client).where(Client.id == client_id)
        if not include_inactive:
            query = query.where(Client.is_active == True)

        result = await db.execute(query)
        client = result.scalar_one_or_none()

        if client is None:
            logger.warning("Cliente non trovato o eliminato: %s", client_id)
            raise NotFoundError(f"Cliente con ID {client_id} non trovato")

        return client

    async def create(
        self,
        db: AsyncSession,
        client_data: ClientCreate,
    ) -> Client:
        """
        Crea un nuovo cliente.

        Sigla assente: viene usata quella suggerita dal nome fiscale.
        Le regole contrattuali vengono salvate complete, con i default
        esplicitati, così un cambio futuro dei default non tocca i
        clienti esistenti.

        Raises:
            DuplicateError: Se il NIF è già registrato per un cliente attivo
            ConflictError: Se il database rifiuta l'inserimento
        """
        await self._ensure_nif_available(db, client_data.nif)

        values = client_data.model_dump(exclude={"contract_rules"})
        values["contract_rules"] = client_data.contract_rules.to_document()
        values["initials"] = values.get("initials") or generate_initials(client_data.fiscal_name)

        client = Client(**values)
        db.add(client)
        await self._flush(db, client, "la creazione")

        logger.info(
            "Creato cliente %s - %s (nif: %s, sigla: %s)",
            client.id, client.fiscal_name, client.nif, client.initials
        )
        return client

    async def update(
        self,
        db: AsyncSession,
        client_id: uuid.UUID,
        client_data: ClientUpdate,
    ) -> Client:
        """
        Aggiorna un cliente esistente.

        Le fatture già generate non cambiano: i dati del cliente sono
        congelati nel loro snapshot. Un null esplicito su nome fiscale,
        NIF o sigla viene ignorato.

        Raises:
            NotFoundError: Se il cliente non esiste
            DuplicateError: Se il nuovo NIF è già in uso
            ConflictError: Se il database rifiuta l'aggiornamento
        """
        client = await self.get_by_id(db, client_id)

        changes = client_data.model_dump(exclude_unset=True, exclude={"contract_rules"})
        if client_data.contract_rules is not None:
            changes["contract_rules"] = client_data.contract_rules.to_document()

        new_nif = changes.get("nif")
        if new_nif and new_nif != client.nif:
            await self._ensure_nif_available(db, new_nif, exclude_id=client_id)

        for field, value in changes.items():
            if value is None and field in REQUIRED_FIELDS:
                continue
            setattr(client, field, value)

        await self._flush(db, client, "l'aggiornamento")
        logger.info("Aggiornato cliente %s - %s", client.id, client.fiscal_name)
        return client

    async def delete(
        self,
        db: AsyncSession,
        client_id: uuid.UUID,
    ) -> None:
        """
        Soft delete: imposta is_active=False.

        Il cliente resta risolvibile con include_inactive=True e le sue
        bozze possono ancora essere emesse.

        Raises:
            NotFoundError: Se il cliente non esiste
        """
        client = await self.get_by_id(db, client_id)
        client.is_active = False
        await self._flush(db, None, "l'eliminazione")
        logger.info("Soft delete cliente %s - %s", client.id, client.fiscal_name)

    def suggest_initials(self, fiscal_name: str) -> str:
        """Sigla suggerita per il nome fiscale (non salvata)."""
        return generate_initials(fiscal_name)

    # ----------------------------------------------------------------
    # Metodi privati di supporto
    # ----------------------------------------------------------------

    async def _check_nif_exists(
        self,
        db: AsyncSession,
        nif: str,
        exclude_id: Optional[uuid.UUID] = None,
    ) -> Optional[Client]:
        """
        Verifica se un NIF è già in uso tra i clienti attivi.

        Returns:
            Oggetto Client se trovato, None altrimenti
        """
        query = select(Client).where(
            Client.nif == nif,
            Client.is_active == True,
        )
        if exclude_id:
            query = query.where(Client.id != exclude_id)
        result = await db.execute(query)
        return result.scalars().first()

    async def _ensure_nif_available(
        self,
        db: AsyncSession,
        nif: str,
        exclude_id: Optional[uuid.UUID] = None,
    ) -> None:
        existing = await self._check_nif_exists(db, nif, exclude_id=exclude_id)
        if existing:
            logger.warning("NIF %s già registrato per il cliente %s", nif, existing.id)
            raise DuplicateError(f"NIF '{nif}' già registrato per un altro cliente")

    async def _flush(self, db: AsyncSession, client: Optional[Client], action: str) -> None:
        """Flush (e refresh del cliente); un errore del database diventa ConflictError."""
        try:
            await db.flush()
            if client is not None:
                await db.refresh(client)
        except IntegrityError as e:
            logger.error("Vincolo violato durante %s del cliente: %s", action, e.orig)
            await db.rollback()
            raise ConflictError(f"Errore durante {action} del cliente")
        except SQLAlchemyError as e:
            logger.error("Errore SQLAlchemy durante %s del cliente: %s - %s", action, e.__class__.__name__, e)
            await db.rollback()
            raise ConflictError(f"Errore del database durante {action} del cliente")
