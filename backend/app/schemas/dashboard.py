"""
Schemas Pydantic per la dashboard
Progetto: Stalla Manager (Gestionale Pensione Bestiame)
"""

from decimal import Decimal

from pydantic import BaseModel, Field

from app.schemas.types import Money


class DashboardStats(BaseModel):
    """Indicatori del periodo selezionato."""

    period_month: int = Field(..., ge=1, le=12)
    period_year: int
    active_animals: int = Field(..., ge=0)
    active_clients: int = Field(..., ge=0)
    draft_invoices: int = Field(..., ge=0, description="Bozze del periodo")
    projected_revenue: Money = Field(
        default=Decimal("0"),
        description="Animali attivi x tariffa standard x giorni del mese",
    )
