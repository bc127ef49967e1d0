"""
Pytest configuration and fixtures.

I service vengono testati con un AsyncSession simulato e con oggetti
Mock* al posto dei modelli ORM; il motore di fatturazione è puro e
viene testato direttamente.
"""

import uuid
from datetime import date, datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from app.schemas.client import ContractRules


# ============================================================
# Fixtures per AsyncSession Mock
# ============================================================


async def _fake_refresh(instance, attribute_names=None):
    """Simula i default valorizzati dal database dopo il commit."""
    now = datetime.now(timezone.utc)
    if getattr(instance, "id", None) is None:
        instance.id = uuid.uuid4()
    if getattr(instance, "created_at", None) is None:
        instance.created_at = now
    if getattr(instance, "updated_at", None) is None:
        instance.updated_at = now


@pytest.fixture
def mock_db():
    """Crea un mock di AsyncSession."""
    db = AsyncMock(spec=AsyncSession)
    db.execute = AsyncMock()
    db.add = MagicMock()
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    db.flush = AsyncMock()
    db.refresh = AsyncMock(side_effect=_fake_refresh)
    db.delete = AsyncMock()
    return db


def scalar_result(value):
    """Risultato di db.execute() per scalar_one_or_none()/scalar()."""
    result = MagicMock()
    result.scalar_one_or_none.return_value = value
    result.scalar.return_value = value
    return result


# ============================================================
# Mock dei modelli (senza sessione)
# ============================================================


class MockClient:
    """Mock del modello Client."""
    def __init__(self, **kwargs):
        self.id = kwargs.get('id', uuid.uuid4())
        self.fiscal_name = kwargs.get('fiscal_name', 'Ganadería Costa')
        self.nif = kwargs.get('nif', 'B12345678')
        self.address = kwargs.get('address', 'Camino Real 1, Lugo')
        self.email = kwargs.get('email', None)
        self.phone = kwargs.get('phone', None)
        self.initials = kwargs.get('initials', 'GC')
        self.contract_rules = kwargs.get('contract_rules', None)
        self.is_active = kwargs.get('is_active', True)


class MockAnimal:
    """Mock del modello Animal."""
    def __init__(self, **kwargs):
        self.id = kwargs.get('id', uuid.uuid4())
        self.client_id = kwargs.get('client_id', uuid.uuid4())
        self.crotal = kwargs.get('crotal', 'ES001')
        self.entry_date = kwargs.get('entry_date', date(2025, 1, 1))
        self.exit_date = kwargs.get('exit_date', None)
        self.status = kwargs.get('status', 'ACTIVE')
        self.repro_status = kwargs.get('repro_status', 'EMPTY')
        self.repro_data = kwargs.get('repro_data', None)


class MockInvoice:
    """Mock del modello Invoice."""
    def __init__(self, **kwargs):
        now = datetime.now(timezone.utc)
        self.id = kwargs.get('id', uuid.uuid4())
        self.client_id = kwargs.get('client_id', uuid.uuid4())
        self.period_month = kwargs.get('period_month', 1)
        self.period_year = kwargs.get('period_year', 2026)
        self.status = kwargs.get('status', 'DRAFT')
        self.invoice_number = kwargs.get('invoice_number', None)
        self.frozen_snapshot = kwargs.get('frozen_snapshot', {
            "client_name": "Ganadería Costa",
            "client_nif": "B12345678",
            "client_address": "Camino Real 1, Lugo",
            "line_items": [
                {"crotal": "ES001", "days": 31, "daily_rate": 2.5, "quantity": 1, "row_total": 77.5},
            ],
            "discount_amount": 0,
            "discount_reason": None,
        })
        self.totals = kwargs.get('totals', {
            "base": 77.5,
            "discount_amount": 0,
            "iva_rate": 10,
            "iva_amount": 7.75,
            "retention_rate": 2,
            "retention_amount": 1.55,
            "total": 83.7,
        })
        self.created_at = kwargs.get('created_at', now)
        self.updated_at = kwargs.get('updated_at', now)


@pytest.fixture
def mock_client():
    """Cliente con regole contrattuali di default."""
    return MockClient()


@pytest.fixture
def mock_invoice(mock_client):
    """Bozza di gennaio 2026 per mock_client."""
    return MockInvoice(client_id=mock_client.id)


@pytest.fixture
def full_day_rules():
    """Regole che addebitano sia il giorno di ingresso sia quello di uscita."""
    return ContractRules(charge_entry_day=True, charge_exit_day=True)


@pytest.fixture
def default_rules():
    return ContractRules()
