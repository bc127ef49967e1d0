"""
API v1 Routes
Progetto: Stalla Manager (Gestionale Pensione Bestiame)

Router versione 1 dell'API.
"""

from fastapi import APIRouter

from app.api.v1 import animals, clients, dashboard, invoices

# Router aggregato per v1
api_v1_router = APIRouter(prefix="/api/v1")

# Includi i router dei moduli
api_v1_router.include_router(clients.router)
api_v1_router.include_router(animals.router)
api_v1_router.include_router(invoices.router)
api_v1_router.include_router(dashboard.router)

# Esportazione
__all__ = ["api_v1_router"]
