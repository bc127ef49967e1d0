"""
Test del modello Invoice su SQLite in memoria.

Verifica il listener che rende immutabili le fatture emesse e i
vincoli di tabella (numero unico, numero obbligatorio se emessa).
"""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.exceptions import BusinessValidationError
from app.models import Base, Client, Invoice


def _snapshot():
    return {
        "client_name": "Ganadería Costa",
        "client_nif": "B12345678",
        "client_address": None,
        "line_items": [{"crotal": "ES001", "days": 22, "daily_rate": 3, "quantity": 1, "row_total": 66}],
        "discount_amount": 0,
        "discount_reason": None,
    }


def _totals():
    return {
        "base": 66,
        "discount_amount": 0,
        "iva_rate": 10,
        "iva_amount": 6.6,
        "retention_rate": 2,
        "retention_amount": 1.32,
        "total": 71.28,
    }


@pytest.fixture
def engine():
    engine = create_engine("sqlite://")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def draft_id(engine):
    with Session(engine) as session:
        client = Client(fiscal_name="Ganadería Costa", nif="B12345678", initials="GC")
        session.add(client)
        session.flush()
        invoice = Invoice(
            client_id=client.id,
            period_month=1,
            period_year=2026,
            frozen_snapshot=_snapshot(),
            totals=_totals(),
        )
        session.add(invoice)
        session.commit()
        return invoice.id


def _issue(engine, invoice_id, number="GC-01-2026"):
    with Session(engine) as session:
        invoice = session.get(Invoice, invoice_id)
        invoice.status = "ISSUED"
        invoice.invoice_number = number
        session.commit()


class TestIssuedInvoiceImmutability:

    def test_draft_can_be_modified(self, engine, draft_id):
        with Session(engine) as session:
            invoice = session.get(Invoice, draft_id)
            assert invoice.is_draft
            invoice.totals = {**_totals(), "discount_amount": 6}
            session.commit()

    def test_draft_can_be_issued(self, engine, draft_id):
        _issue(engine, draft_id)

        with Session(engine) as session:
            invoice = session.get(Invoice, draft_id)
            assert invoice.status == "ISSUED"
            assert invoice.invoice_number == "GC-01-2026"

    @pytest.mark.parametrize(
        "field, value",
        [
            ("totals", {**_totals(), "total": 0}),
            ("frozen_snapshot", {**_snapshot(), "client_name": "Otro"}),
            ("invoice_number", "GC-01-2026-9"),
            ("status", "DRAFT"),
        ],
    )
    def test_issued_invoice_rejects_changes(self, engine, draft_id, field, value):
        _issue(engine, draft_id)

        with Session(engine) as session:
            invoice = session.get(Invoice, draft_id)
            setattr(invoice, field, value)
            with pytest.raises(BusinessValidationError) as exc_info:
                session.flush()
            assert exc_info.value.error_code == "INVOICE_ALREADY_ISSUED"
            session.rollback()

        with Session(engine) as session:
            invoice = session.get(Invoice, draft_id)
            assert invoice.status == "ISSUED"
            assert invoice.totals["total"] == 71.28


class TestInvoiceConstraints:

    def test_invoice_number_is_unique(self, engine, draft_id):
        _issue(engine, draft_id)

        with Session(engine) as session:
            other = session.get(Invoice, draft_id)
            duplicate = Invoice(
                client_id=other.client_id,
                period_month=1,
                period_year=2026,
                status="ISSUED",
                invoice_number="GC-01-2026",
                frozen_snapshot=_snapshot(),
                totals=_totals(),
            )
            session.add(duplicate)
            with pytest.raises(IntegrityError):
                session.flush()

    def test_issued_invoice_requires_number(self, engine, draft_id):
        with Session(engine) as session:
            invoice = session.get(Invoice, draft_id)
            invoice.status = "ISSUED"
            with pytest.raises(IntegrityError):
                session.flush()
