"""
Service Layer per la dashboard
Progetto: Stalla Manager (Gestionale Pensione Bestiame)
"""

import calendar
import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import Animal, Client, Invoice
from app.models.invoice import INVOICE_STATUS_DRAFT
from app.schemas.client import ContractRules
from app.schemas.dashboard import DashboardStats
from app.services.billing import month_bounds, round_cents

# Logger per questo modulo
logger = logging.getLogger(__name__)

# Tariffa standard usata per la stima dei ricavi
STANDARD_DAILY_RATE = ContractRules().daily_rate


class DashboardService:
    """Indicatori riepilogativi per il periodo richiesto."""

    async def get_stats(self, db: AsyncSession, month: int, year: int) -> DashboardStats:
        """
        Calcola gli indicatori del mese.

        Il ricavo previsto è una stima: animali attivi x tariffa
        standard x giorni del mese, senza regole contrattuali.
        """
        month_bounds(month, year)

        animals_result = await db.execute(
            select(func.count(Animal.id)).where(Animal.status == "ACTIVE")
        )
        active_animals = animals_result.scalar() or 0

        clients_result = await db.execute(
            select(func.count(Client.id)).where(Client.is_active == True)
        )
        active_clients = clients_result.scalar() or 0

        drafts_result = await db.execute(
            select(func.count(Invoice.id)).where(
                Invoice.status == INVOICE_STATUS_DRAFT,
                Invoice.period_month == month,
                Invoice.period_year == year,
            )
        )
        draft_invoices = drafts_result.scalar() or 0

        days_in_month = calendar.monthrange(year, month)[1]
        projected_revenue = round_cents(active_animals * STANDARD_DAILY_RATE * days_in_month)

        logger.debug(
            "Dashboard %02d/%s: %s animali, %s clienti, %s bozze",
            month, year, active_animals, active_clients, draft_invoices
        )

        return DashboardStats(
            period_month=month,
            period_year=year,
            active_animals=active_animals,
            active_clients=active_clients,
            draft_invoices=draft_invoices,
            projected_revenue=projected_revenue,
        )
