"""
Schemas Pydantic per il progetto Stalla Manager

Questo modulo contiene tutti gli schemi Pydantic utilizzati per la validazione
e serializzazione delle risposte API.
"""

# Import degli schemi per renderli disponibili tramite import diretto
# es: from app.schemas import ClientRead, InvoiceRead, etc.

from app.schemas.types import Money
from app.schemas.client import (
    ClientCreate,
    ClientList,
    ClientRead,
    ClientUpdate,
    ContractRules,
    InitialsSuggestion,
)
from app.schemas.animal import (
    AnimalCreate,
    AnimalList,
    AnimalRead,
    AnimalStatus,
    AnimalUpdate,
    ReproData,
    ReproStatus,
)
from app.schemas.invoice import (
    DiscountUpdate,
    DraftFailure,
    DraftGenerationRequest,
    DraftGenerationResult,
    FrozenSnapshot,
    InvoiceDraft,
    InvoiceFilters,
    InvoiceList,
    InvoiceRead,
    InvoiceStatus,
    InvoiceTotals,
    LineItem,
)
from app.schemas.dashboard import DashboardStats

__all__ = [
    "Money",
    # Client
    "ClientCreate",
    "ClientList",
    "ClientRead",
    "ClientUpdate",
    "ContractRules",
    "InitialsSuggestion",
    # Animal
    "AnimalCreate",
    "AnimalList",
    "AnimalRead",
    "AnimalStatus",
    "AnimalUpdate",
    "ReproData",
    "ReproStatus",
    # Invoice
    "DiscountUpdate",
    "DraftFailure",
    "DraftGenerationRequest",
    "DraftGenerationResult",
    "FrozenSnapshot",
    "InvoiceDraft",
    "InvoiceFilters",
    "InvoiceList",
    "InvoiceRead",
    "InvoiceStatus",
    "InvoiceTotals",
    "LineItem",
    # Dashboard
    "DashboardStats",
]
