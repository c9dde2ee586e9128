"""Unit tests for tax formulas, due dates and late-filing penalties."""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from taxdecl.domain.enums import TaxType
from taxdecl.rules.tax_engine import (
    DUE_DAY_OF_MONTH,
    EXCISE_RATE,
    INCOME_TAX_BRACKETS,
    TAX_FORMULAS,
    VALUE_ADDED_RATE,
    compute_due_date,
    compute_penalty,
    compute_tax,
    days_late,
    months_late,
)


class TestConstants:
    def test_flat_rates(self):
        assert VALUE_ADDED_RATE == Decimal("0.18")
        assert EXCISE_RATE == Decimal("0.10")

    def test_income_brackets(self):
        lowers = [row[0] for row in INCOME_TAX_BRACKETS]
        assert lowers == [Decimal(0), Decimal(416220), Decimal(624329), Decimal(867123)]

    def test_every_tax_type_has_a_formula(self):
        assert set(TAX_FORMULAS) == set(TaxType)


class TestIncomeTax:
    @pytest.mark.parametrize("base,expected", [
        ("416220", "0.00"),
        ("500000", "12567.00"),
        ("624329", "31216.35"),
        ("800000", "66350.20"),
        ("867123", "79774.80"),
        ("1000000", "112994.25"),
    ])
    def test_brackets(self, base, expected):
        assert compute_tax(Decimal(base), TaxType.INCOME) == Decimal(expected)

    def test_exempt_band(self):
        assert compute_tax(Decimal("100000"), TaxType.INCOME) == Decimal("0.00")


class TestFlatTaxes:
    def test_value_added(self):
        assert compute_tax(Decimal("70000"), TaxType.VALUE_ADDED) == Decimal("12600.00")

    def test_excise(self):
        assert compute_tax(Decimal("210000"), TaxType.EXCISE) == Decimal("21000.00")

    def test_rounded_to_cents(self):
        # 55555.55 * 0.18 = 9999.999
        assert compute_tax(Decimal("55555.55"), TaxType.VALUE_ADDED) == Decimal("10000.00")


class TestNonPositiveBase:
    @pytest.mark.parametrize("tax_type", list(TaxType))
    @pytest.mark.parametrize("base", ["0", "-1", "-250000"])
    def test_no_tax(self, tax_type, base):
        assert compute_tax(Decimal(base), tax_type) == Decimal(0)


class TestDueDate:
    def test_twentieth_of_next_month_end_of_day(self):
        due = compute_due_date(date(2024, 1, 1), TaxType.INCOME)
        assert due.date() == date(2024, 2, DUE_DAY_OF_MONTH)
        assert (due.hour, due.minute, due.second) == (23, 59, 59)
        assert due.tzinfo == timezone.utc

    def test_december_rolls_into_next_year(self):
        due = compute_due_date(date(2024, 12, 1), TaxType.VALUE_ADDED)
        assert due.date() == date(2025, 1, 20)

    def test_same_for_all_tax_types(self):
        dues = {compute_due_date(date(2024, 5, 1), t) for t in TaxType}
        assert len(dues) == 1


class TestLateness:
    def test_days_late_truncates(self):
        due = datetime(2024, 2, 20, 23, 59, 59, tzinfo=timezone.utc)
        assert days_late(due + timedelta(days=1, hours=23), due) == 1

    def test_not_late(self):
        due = datetime(2024, 2, 20, 23, 59, 59, tzinfo=timezone.utc)
        assert days_late(due - timedelta(days=3), due) == 0

    @pytest.mark.parametrize("days,months", [(0, 0), (1, 1), (30, 1), (31, 2), (45, 2), (60, 2), (61, 3)])
    def test_months_late(self, days, months):
        assert months_late(days) == months


class TestPenalty:
    DUE = compute_due_date(date(2024, 1, 1), TaxType.EXCISE)

    def test_on_time_no_penalty(self):
        assert compute_penalty(Decimal("10000"), self.DUE, self.DUE) == Decimal(0)
        assert compute_penalty(Decimal("10000"), self.DUE - timedelta(days=5), self.DUE) == Decimal(0)

    def test_45_days_late(self):
        assert compute_penalty(Decimal("10000"), self.DUE + timedelta(days=45), self.DUE) == Decimal("1800.00")

    def test_less_than_a_day_late_only_surcharge(self):
        assert compute_penalty(Decimal("10000"), self.DUE + timedelta(hours=5), self.DUE) == Decimal("1000.00")

    def test_thirty_days_late_one_month(self):
        assert compute_penalty(Decimal("10000"), self.DUE + timedelta(days=30), self.DUE) == Decimal("1400.00")

    def test_zero_tax_zero_penalty(self):
        assert compute_penalty(Decimal("0"), self.DUE + timedelta(days=90), self.DUE) == Decimal(0)
