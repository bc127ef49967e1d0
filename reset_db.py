"""
Ricrea lo schema del database di Stalla Manager.

Uso: python reset_db.py [--keep]
    --keep  crea solo le tabelle mancanti senza eliminare quelle esistenti
"""

import asyncio
import os
import sys

# Aggiungi backend/ alla PYTHONPATH per importare app.*
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "backend"))

from app.core.database import close_db, engine
from app.models import Base


async def reset(drop: bool = True) -> None:
    print("Connessione al database...")
    async with engine.begin() as conn:
        if drop:
            print("Eliminazione tabelle (clients, animals, invoices)...")
            await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    await close_db()
    print("Schema pronto: " + ", ".join(sorted(Base.metadata.tables)))


if __name__ == "__main__":
    asyncio.run(reset(drop="--keep" not in sys.argv[1:]))
