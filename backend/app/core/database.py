"""
Configurazione Database - SQLAlchemy 2.0 Async
Progetto: Stalla Manager (Gestionale Pensione Bestiame)

Engine e session factory condivisi. Le richieste HTTP ricevono una
sessione tramite get_db; la generazione delle bozze usa la stessa
sessione ma committa cliente per cliente.
"""

import logging
from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from app.core.config import settings

logger = logging.getLogger(__name__)

engine: AsyncEngine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    pool_pre_ping=True,
    pool_size=settings.db_pool_size,
    max_overflow=settings.db_max_overflow,
)

# expire_on_commit=False: le fatture committate vengono serializzate dopo il commit
AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Sessione per richiesta. Un'eccezione non gestita annulla le
    modifiche non ancora committate.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


async def init_db(create_tables: bool = False) -> None:
    """
    Verifica la connessione all'avvio.

    Args:
        create_tables: crea le tabelle mancanti (clients, animals, invoices)
    """
    try:
        async with engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
            if create_tables:
                from app.models import Base

                await conn.run_sync(Base.metadata.create_all)
                logger.info("Schema verificato: %s", ", ".join(sorted(Base.metadata.tables)))
        logger.info("Connessione al database stabilita")
    except SQLAlchemyError as e:
        logger.error("Errore connessione database: %s", e)
        raise


async def ping_db() -> bool:
    """True se il database risponde."""
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError as e:
        logger.warning("Database non raggiungibile: %s", e)
        return False


async def close_db() -> None:
    await engine.dispose()
    logger.info("Connessioni database chiuse")
