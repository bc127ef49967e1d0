"""
Router FastAPI per la dashboard
Progetto: Stalla Manager (Gestionale Pensione Bestiame)
"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.schemas.dashboard import DashboardStats
from app.services.dashboard_service import DashboardService

router = APIRouter(
    prefix="/dashboard",
    tags=["Dashboard"],
)


def get_dashboard_service() -> DashboardService:
    return DashboardService()


@router.get(
    "/stats",
    name="dashboard_statistiche",
    summary="Statistiche del periodo",
    description="Animali attivi, clienti attivi, bozze del periodo e ricavo previsto.",
    response_model=DashboardStats,
    status_code=status.HTTP_200_OK,
)
async def get_stats(
    month: int = Query(..., ge=1, le=12, description="Mese"),
    year: int = Query(..., ge=2000, le=2100, description="Anno"),
    db: AsyncSession = Depends(get_db),
    service: DashboardService = Depends(get_dashboard_service),
) -> DashboardStats:
    return await service.get_stats(db=db, month=month, year=year)
