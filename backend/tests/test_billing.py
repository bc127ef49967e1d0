"""
Unit tests per il motore di fatturazione (funzioni pure).
"""

import uuid
from datetime import date
from decimal import Decimal

import pytest
from pydantic import ValidationError as PydanticValidationError

from app.core.exceptions import BusinessValidationError
from app.schemas.client import ContractRules
from app.schemas.invoice import InvoiceTotals, LineItem
from app.services.billing import (
    apply_discount,
    base_invoice_number,
    billable_days,
    build_invoice_draft,
    build_line_items,
    compute_totals,
    consolidate_line_items,
    generate_initials,
    month_bounds,
    next_invoice_number,
)
from conftest import MockAnimal, MockClient


# ============================================================
# Tests per month_bounds
# ============================================================


class TestMonthBounds:

    def test_leap_february(self):
        assert month_bounds(2, 2024) == (date(2024, 2, 1), date(2024, 2, 29))

    def test_december(self):
        assert month_bounds(12, 2025) == (date(2025, 12, 1), date(2025, 12, 31))

    @pytest.mark.parametrize("month", [0, 13])
    def test_invalid_month(self, month):
        with pytest.raises(BusinessValidationError):
            month_bounds(month, 2026)


# ============================================================
# Tests per billable_days
# ============================================================


class TestBillableDays:
    """Giorni fatturabili nel mese di gennaio 2026 (31 giorni)."""

    def test_present_all_month(self, default_rules):
        assert billable_days(date(2025, 11, 3), None, 1, 2026, default_rules) == 31

    def test_entry_in_month_charged(self, default_rules):
        # dal 10 al 31 inclusi
        assert billable_days(date(2026, 1, 10), None, 1, 2026, default_rules) == 22

    def test_entry_in_month_not_charged(self):
        rules = ContractRules(charge_entry_day=False)
        assert billable_days(date(2026, 1, 10), None, 1, 2026, rules) == 21

    def test_exit_in_month_not_charged_by_default(self, default_rules):
        assert billable_days(date(2025, 6, 1), date(2026, 1, 20), 1, 2026, default_rules) == 19

    def test_exit_in_month_charged(self, full_day_rules):
        assert billable_days(date(2025, 6, 1), date(2026, 1, 20), 1, 2026, full_day_rules) == 20

    def test_entry_and_exit_in_month_with_full_days(self, full_day_rules):
        entry, exit_ = date(2026, 1, 5), date(2026, 1, 14)
        days = billable_days(entry, exit_, 1, 2026, full_day_rules)
        assert days == (exit_ - entry).days + 1

    def test_exit_after_month_is_clamped(self, default_rules):
        # l'uscita di febbraio non scala nulla a gennaio
        assert billable_days(date(2026, 1, 30), date(2026, 2, 5), 1, 2026, default_rules) == 2

    def test_same_day_without_entry_and_exit_charges(self):
        rules = ContractRules(charge_entry_day=False, charge_exit_day=False)
        assert billable_days(date(2026, 1, 15), date(2026, 1, 15), 1, 2026, rules) == 0

    def test_exit_on_first_day_gives_zero_not_none(self, default_rules):
        assert billable_days(date(2025, 12, 1), date(2026, 1, 1), 1, 2026, default_rules) == 0

    def test_entry_after_month_is_not_applicable(self, default_rules):
        assert billable_days(date(2026, 2, 1), None, 1, 2026, default_rules) is None

    def test_exit_before_month_is_not_applicable(self, default_rules):
        assert billable_days(date(2025, 10, 1), date(2025, 12, 31), 1, 2026, default_rules) is None

    def test_leap_february(self, default_rules):
        assert billable_days(date(2023, 5, 1), None, 2, 2024, default_rules) == 29


# ============================================================
# Tests per righe e consolidamento
# ============================================================


class TestLineItems:

    def test_historic_and_zero_day_animals_excluded(self):
        rules = ContractRules(charge_entry_day=False, charge_exit_day=False)
        animals = [
            MockAnimal(crotal="ES001", entry_date=date(2025, 12, 1)),
            MockAnimal(crotal="ES002", entry_date=date(2025, 12, 1), status="HISTORIC"),
            MockAnimal(crotal="ES003", entry_date=date(2026, 1, 15), exit_date=date(2026, 1, 15)),
            MockAnimal(crotal="ES004", entry_date=date(2026, 3, 1)),
        ]

        items = build_line_items(animals, 1, 2026, rules)

        assert [item.label for item in items] == ["ES001"]
        assert items[0].days == 31
        assert items[0].quantity == 1
        assert items[0].row_total == Decimal("77.50")

    def test_row_total_rounded_to_cents(self):
        rules = ContractRules(daily_rate=Decimal("0.333"))
        items = build_line_items([MockAnimal(entry_date=date(2025, 1, 1))], 1, 2026, rules)
        # 31 x 0.333 = 10.323
        assert items[0].row_total == Decimal("10.32")

    def test_row_total_half_cent_rounds_up(self, full_day_rules):
        rules = full_day_rules.model_copy(update={"daily_rate": Decimal("2.555")})
        animal = MockAnimal(entry_date=date(2026, 1, 1), exit_date=date(2026, 1, 3))
        items = build_line_items([animal], 1, 2026, rules)
        # 3 x 2.555 = 7.665
        assert items[0].days == 3
        assert items[0].row_total == Decimal("7.67")

    def test_ten_items_are_not_consolidated(self):
        items = [
            LineItem(label=f"ES{i:03d}", days=31, daily_rate=Decimal("2.5"), row_total=Decimal("77.50"))
            for i in range(10)
        ]
        assert consolidate_line_items(items) == items

    def test_eleven_items_are_consolidated(self):
        items = [
            LineItem(label=f"ES{i:03d}", days=31, daily_rate=Decimal("2.5"), row_total=Decimal("77.50"))
            for i in range(11)
        ]

        consolidated = consolidate_line_items(items)

        assert len(consolidated) == 1
        line = consolidated[0]
        assert line.label == "11 ANIMALS"
        assert line.days == 1
        assert line.quantity == 1
        assert line.daily_rate == Decimal("852.50")
        assert line.row_total == sum(item.row_total for item in items)

    def test_custom_threshold_and_label(self):
        items = [
            LineItem(label=f"ES{i}", days=1, daily_rate=Decimal("1"), row_total=Decimal("1"))
            for i in range(3)
        ]
        consolidated = consolidate_line_items(items, threshold=2, label="{count} CABEZAS")
        assert consolidated[0].label == "3 CABEZAS"

    def test_line_item_document_keeps_crotal_key(self):
        item = LineItem(label="ES001", days=2, daily_rate=Decimal("2.5"), row_total=Decimal("5"))
        document = item.to_document()
        assert document == {"crotal": "ES001", "days": 2, "daily_rate": 2.5, "quantity": 1, "row_total": 5}
        assert LineItem.model_validate(document).label == "ES001"


# ============================================================
# Tests per totali e sconto
# ============================================================


class TestTotals:

    def test_base_iva_retention_total(self):
        items = [LineItem(label="ES001", days=22, daily_rate=Decimal("3"), row_total=Decimal("66"))]

        totals = compute_totals(items, ContractRules())

        assert totals.base == Decimal("66")
        assert totals.discount_amount == Decimal("0")
        assert totals.iva_rate == Decimal("10")
        assert totals.iva_amount == Decimal("6.60")
        assert totals.retention_rate == Decimal("2")
        assert totals.retention_amount == Decimal("1.32")
        assert totals.total == Decimal("71.28")
        assert totals.base_after_discount is None

    def test_half_cent_rounds_up(self):
        items = [LineItem(label="ES001", days=3, daily_rate=Decimal("2.35"), row_total=Decimal("7.05"))]

        totals = compute_totals(items, ContractRules())

        # 0.705 -> 0.71, 0.141 -> 0.14
        assert totals.iva_amount == Decimal("0.71")
        assert totals.retention_amount == Decimal("0.14")
        assert totals.total == Decimal("7.62")

    def test_zero_rates_are_respected(self):
        items = [LineItem(label="ES001", days=10, daily_rate=Decimal("2.5"), row_total=Decimal("25"))]
        rules = ContractRules(iva_rate=0, retention_rate=0)

        totals = compute_totals(items, rules)

        assert totals.iva_amount == Decimal("0")
        assert totals.retention_amount == Decimal("0")
        assert totals.total == Decimal("25")

    def test_totals_document_omits_missing_base_after_discount(self):
        totals = compute_totals(
            [LineItem(label="ES001", days=1, daily_rate=Decimal("2.5"), row_total=Decimal("2.5"))],
            ContractRules(),
        )
        assert "base_after_discount" not in totals.to_document()


class TestDiscount:

    @pytest.fixture
    def totals(self):
        return InvoiceTotals(
            base=Decimal("66"),
            iva_rate=Decimal("10"),
            iva_amount=Decimal("6.60"),
            retention_rate=Decimal("2"),
            retention_amount=Decimal("1.32"),
            total=Decimal("71.28"),
        )

    def test_discount_recomputes_on_discounted_base(self, totals):
        result = apply_discount(totals, Decimal("6"))

        assert result.base == Decimal("66")
        assert result.discount_amount == Decimal("6")
        assert result.base_after_discount == Decimal("60")
        assert result.iva_amount == Decimal("6.00")
        assert result.retention_amount == Decimal("1.20")
        assert result.total == Decimal("64.80")

    def test_discount_is_idempotent(self, totals):
        once = apply_discount(totals, Decimal("6"))
        twice = apply_discount(once, Decimal("6"))
        assert twice == once

    def test_discount_uses_frozen_rates(self, totals):
        frozen = totals.model_copy(update={"iva_rate": Decimal("21")})
        result = apply_discount(frozen, Decimal("0"))
        assert result.iva_amount == Decimal("13.86")

    def test_full_discount(self, totals):
        result = apply_discount(totals, Decimal("66"))
        assert result.total == Decimal("0")

    def test_discount_over_base_rejected(self, totals):
        with pytest.raises(BusinessValidationError) as exc_info:
            apply_discount(totals, Decimal("66.01"))
        assert exc_info.value.error_code == "INVALID_DISCOUNT"

    def test_negative_discount_rejected(self, totals):
        with pytest.raises(BusinessValidationError):
            apply_discount(totals, Decimal("-1"))


# ============================================================
# Tests per la bozza completa
# ============================================================


class TestInvoiceDraft:

    def test_draft_for_client(self):
        client = MockClient(contract_rules={"daily_rate": 3})
        animals = [
            MockAnimal(client_id=client.id, crotal="ES100", entry_date=date(2026, 1, 10)),
            MockAnimal(client_id=client.id, crotal="ES101", entry_date=date(2025, 1, 1), status="HISTORIC"),
            MockAnimal(client_id=uuid.uuid4(), crotal="XX999", entry_date=date(2025, 1, 1)),
        ]

        draft = build_invoice_draft(client, animals, 1, 2026)

        assert draft is not None
        assert draft.client_id == client.id
        assert (draft.period_month, draft.period_year) == (1, 2026)
        snapshot = draft.frozen_snapshot
        assert snapshot.client_name == client.fiscal_name
        assert snapshot.client_nif == client.nif
        assert snapshot.client_address == client.address
        assert [item.label for item in snapshot.line_items] == ["ES100"]
        assert snapshot.discount_amount == Decimal("0")
        assert draft.totals.total == Decimal("71.28")

    def test_no_billable_animals_gives_no_draft(self):
        client = MockClient()
        animals = [MockAnimal(client_id=client.id, entry_date=date(2026, 2, 1))]
        assert build_invoice_draft(client, animals, 1, 2026) is None

    def test_snapshot_is_independent_from_client(self):
        client = MockClient()
        draft = build_invoice_draft(client, [MockAnimal(client_id=client.id)], 1, 2026)
        client.fiscal_name = "Nuevo Nombre SL"
        assert draft.frozen_snapshot.client_name == "Ganadería Costa"

    def test_malformed_rules_raise(self):
        client = MockClient(contract_rules={"daily_rate": "abc"})
        with pytest.raises(PydanticValidationError):
            build_invoice_draft(client, [MockAnimal(client_id=client.id)], 1, 2026)


# ============================================================
# Tests per numerazione e sigla
# ============================================================


class TestNumbering:

    def test_base_number(self):
        assert base_invoice_number("CC", 1, 2026) == "CC-01-2026"
        assert base_invoice_number("ABC", 11, 2025) == "ABC-11-2025"

    def test_missing_initials(self):
        with pytest.raises(BusinessValidationError):
            base_invoice_number("", 1, 2026)

    def test_first_number_is_base(self):
        assert next_invoice_number("CC-01-2026", []) == "CC-01-2026"

    def test_suffixes(self):
        assert next_invoice_number("CC-01-2026", ["CC-01-2026"]) == "CC-01-2026-1"
        assert next_invoice_number("CC-01-2026", ["CC-01-2026", "CC-01-2026-1"]) == "CC-01-2026-2"

    def test_first_free_suffix(self):
        existing = ["CC-01-2026", "CC-01-2026-1", "CC-01-2026-3"]
        assert next_invoice_number("CC-01-2026", existing) == "CC-01-2026-2"

    def test_other_periods_ignored(self):
        assert next_invoice_number("CC-01-2026", ["CC-02-2026", None]) == "CC-01-2026"


class TestInitials:

    @pytest.mark.parametrize(
        "fiscal_name, expected",
        [
            ("Ganadería Costa", "GC"),
            ("  juan  perez garcia ", "JP"),
            ("Pepe", "PEP"),
            ("ab", "AB"),
            ("", ""),
            (None, ""),
        ],
    )
    def test_generate_initials(self, fiscal_name, expected):
        assert generate_initials(fiscal_name) == expected


# ============================================================
# Tests per ContractRules
# ============================================================


class TestContractRules:

    def test_defaults(self):
        rules = ContractRules.from_raw(None)
        assert rules.daily_rate == Decimal("2.5")
        assert rules.iva_rate == Decimal("10")
        assert rules.retention_rate == Decimal("2")
        assert rules.charge_entry_day is True
        assert rules.charge_exit_day is False

    def test_null_keys_take_defaults(self):
        rules = ContractRules.from_raw({"daily_rate": None, "iva_rate": 21})
        assert rules.daily_rate == Decimal("2.5")
        assert rules.iva_rate == Decimal("21")

    def test_float_rates_keep_decimal_value(self):
        assert ContractRules.from_raw({"daily_rate": 6.6}).daily_rate == Decimal("6.6")

    def test_negative_rate_rejected(self):
        with pytest.raises(PydanticValidationError):
            ContractRules(retention_rate=Decimal("-1"))

    def test_rules_are_immutable(self):
        rules = ContractRules()
        with pytest.raises(PydanticValidationError):
            rules.daily_rate = Decimal("3")
