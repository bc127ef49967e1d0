"""
Modelli Database SQLAlchemy
Progetto: Stalla Manager (Gestionale Pensione Bestiame)

Import centralizzato di tutti i modelli per create_all e usage generico.

Modelli:
- Client: Anagrafica clienti (con regole contrattuali di fatturazione)
- Animal: Anagrafica animali in pensione
- Invoice: Fatture mensili (bozza / emessa)
"""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class per tutti i modelli SQLAlchemy."""
    pass


from app.models.client import Client
from app.models.animal import Animal
from app.models.invoice import Invoice

__all__ = [
    "Base",
    "Client",
    "Animal",
    "Invoice",
]
