"""Tax liability, due-date and late-filing penalty rules (Dominican Republic, simplified)."""

import math
from datetime import date, datetime, time, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Callable

from taxdecl.domain.enums import TaxType

CENT = Decimal("0.01")
ZERO = Decimal(0)

# ISR annual scale: (lower bound, fixed amount, marginal rate over lower bound)
INCOME_TAX_BRACKETS: tuple[tuple[Decimal, Decimal, Decimal], ...] = (
    (Decimal("0"), Decimal("0"), Decimal("0")),
    (Decimal("416220"), Decimal("0"), Decimal("0.15")),
    (Decimal("624329"), Decimal("31216"), Decimal("0.20")),
    (Decimal("867123"), Decimal("79775"), Decimal("0.25")),
)
VALUE_ADDED_RATE = Decimal("0.18")  # ITBIS
EXCISE_RATE = Decimal("0.10")  # Selectivo, flat

LATE_FILING_SURCHARGE_RATE = Decimal("0.10")
MONTHLY_LATE_INTEREST_RATE = Decimal("0.04")
DAYS_PER_LATE_MONTH = 30
DUE_DAY_OF_MONTH = 20


def to_cents(amount: Decimal) -> Decimal:
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def income_tax(taxable_base: Decimal) -> Decimal:
    """Progressive scale. Each bracket applies to the excess over its lower bound."""
    for lower, fixed, rate in reversed(INCOME_TAX_BRACKETS):
        if taxable_base > lower:
            return fixed + (taxable_base - lower) * rate
    return ZERO


def value_added_tax(taxable_base: Decimal) -> Decimal:
    return taxable_base * VALUE_ADDED_RATE


def excise_tax(taxable_base: Decimal) -> Decimal:
    return taxable_base * EXCISE_RATE


TAX_FORMULAS: dict[TaxType, Callable[[Decimal], Decimal]] = {
    TaxType.INCOME: income_tax,
    TaxType.VALUE_ADDED: value_added_tax,
    TaxType.EXCISE: excise_tax,
}


def compute_tax(taxable_base: Decimal, tax_type: TaxType) -> Decimal:
    """Tax owed on ``taxable_base``. A non-positive base is never taxed."""
    if taxable_base <= 0:
        return ZERO.quantize(CENT)
    try:
        formula = TAX_FORMULAS[tax_type]
    except KeyError:
        raise NotImplementedError(f"No tax formula for {tax_type}") from None
    return to_cents(formula(taxable_base))


def compute_due_date(period: date, tax_type: TaxType) -> datetime:
    """End of the 20th day of the month after ``period``.

    All tax types currently share this deadline.
    """
    year, month = (period.year + 1, 1) if period.month == 12 else (period.year, period.month + 1)
    return datetime.combine(date(year, month, DUE_DAY_OF_MONTH), time.max, tzinfo=timezone.utc)


def days_late(filed_at: datetime, due_date: datetime) -> int:
    if filed_at <= due_date:
        return 0
    return (filed_at - due_date).days


def months_late(days: int) -> int:
    return math.ceil(days / DAYS_PER_LATE_MONTH)


def compute_penalty(computed_tax: Decimal, filed_at: datetime, due_date: datetime) -> Decimal:
    """Flat 10% surcharge plus 4% per started 30-day month, both on the computed tax.

    Zero when filed on or before the due date.
    """
    if filed_at <= due_date:
        return ZERO.quantize(CENT)
    months = months_late(days_late(filed_at, due_date))
    surcharge = computed_tax * LATE_FILING_SURCHARGE_RATE
    interest = computed_tax * MONTHLY_LATE_INTEREST_RATE * months
    return to_cents(surcharge + interest)
