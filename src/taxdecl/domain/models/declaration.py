"""Declaration entity: invariants, tax computation and lifecycle state machine.

A ``Declaration`` is immutable. Every operation validates its preconditions
and returns a new value; a failed operation raises and leaves the original
untouched. Taxable base and total payable are derived on read. Computed tax
is only ever produced by the tax engine from the stored amounts, and the
penalty is fixed once, when the declaration is filed.
"""

import re
import uuid
from datetime import date, datetime, timezone
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Optional

from pydantic import BaseModel, field_validator, model_validator

from taxdecl.domain.clock import DEFAULT_CLOCK, Clock
from taxdecl.domain.enums import DeclarationStatus, TaxType
from taxdecl.domain.filing_number import generate_filing_number
from taxdecl.exceptions import InvalidInputError, InvalidStateError
from taxdecl.rules.tax_engine import CENT, compute_due_date, compute_penalty, compute_tax

TAXPAYER_ID_LENGTH = 9  # RNC
_TAXPAYER_ID_RE = re.compile(rf"^[0-9]{{{TAXPAYER_ID_LENGTH}}}$")
_PERIOD_RE = re.compile(r"^(\d{4})-(\d{1,2})(?:-\d{1,2})?$")
# Numeric(18, 2) leaves 16 integer digits
MAX_AMOUNT = Decimal("1e16")


def normalize_taxpayer_id(value: Optional[str]) -> str:
    """Strip whitespace and dash separators. Raises if blank."""
    if value is None or not str(value).strip():
        raise InvalidInputError("Taxpayer id is required")
    return re.sub(r"[\s-]", "", str(value))


def is_valid_taxpayer_id(value: str) -> bool:
    return bool(_TAXPAYER_ID_RE.match(value))


def normalize_period(value: date | str) -> date:
    """First day of the month ``value`` falls in. Accepts dates and ``YYYY-MM[-DD]``."""
    if isinstance(value, datetime):
        value = value.date()
    if isinstance(value, date):
        return value.replace(day=1)
    match = _PERIOD_RE.match(str(value).strip())
    if match is None:
        raise InvalidInputError(f"Invalid period: {value!r}")
    try:
        return date(int(match.group(1)), int(match.group(2)), 1)
    except ValueError:
        raise InvalidInputError(f"Invalid period: {value!r}") from None


def to_amount(value: object, field: str) -> Decimal:
    """Coerce to a finite Decimal rounded to cents."""
    if isinstance(value, bool) or value is None:
        raise InvalidInputError(f"{field} must be a number")
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise InvalidInputError(f"{field} must be a number") from None
    if not amount.is_finite():
        raise InvalidInputError(f"{field} must be a finite number")
    if abs(amount) < MAX_AMOUNT:
        amount = amount.quantize(CENT, rounding=ROUND_HALF_UP)
    if abs(amount) >= MAX_AMOUNT:
        raise InvalidInputError(f"{field} is out of range")
    return amount


def _validate_amounts(income_amount: object, expense_amount: object) -> tuple[Decimal, Decimal]:
    income = to_amount(income_amount, "Income amount")
    expenses = to_amount(expense_amount, "Expense amount")
    if income < 0:
        raise InvalidInputError("Income amount cannot be negative")
    if expenses < 0:
        raise InvalidInputError("Expense amount cannot be negative")
    return income, expenses


class Declaration(BaseModel):
    """A tax filing for one taxpayer, one period and one tax type."""

    id: uuid.UUID
    filing_number: str
    taxpayer_id: str
    legal_name: str
    period: date
    tax_type: TaxType
    income_amount: Decimal
    expense_amount: Decimal
    computed_tax: Decimal
    penalty: Decimal = Decimal("0.00")
    status: DeclarationStatus = DeclarationStatus.DRAFT
    created_at: datetime
    filed_at: Optional[datetime] = None
    rejection_remarks: Optional[str] = None
    version: int = 1

    model_config = {"frozen": True}

    # -- derived ---------------------------------------------------------

    @property
    def taxable_base(self) -> Decimal:
        return self.income_amount - self.expense_amount

    @property
    def total_payable(self) -> Decimal:
        return self.computed_tax + self.penalty

    @property
    def due_date(self) -> datetime:
        return compute_due_date(self.period, self.tax_type)

    # -- operations ------------------------------------------------------

    @classmethod
    def create(
        cls,
        taxpayer_id: Optional[str],
        legal_name: Optional[str],
        period: date | str,
        tax_type: TaxType,
        income_amount: object,
        expense_amount: object,
        *,
        clock: Optional[Clock] = None,
        filing_number: Optional[str] = None,
    ) -> "Declaration":
        """Validate input and open a new draft with its tax already computed.

        Does not check for an existing declaration for the same period; that
        is the caller's job.
        """
        taxpayer_id = normalize_taxpayer_id(taxpayer_id)
        if legal_name is None or not legal_name.strip():
            raise InvalidInputError("Legal name is required")
        income, expenses = _validate_amounts(income_amount, expense_amount)
        if not is_valid_taxpayer_id(taxpayer_id):
            raise InvalidInputError(
                f"Invalid taxpayer id format: expected {TAXPAYER_ID_LENGTH} digits"
            )
        try:
            tax_type = TaxType(tax_type)
        except ValueError:
            raise InvalidInputError(f"Unknown tax type: {tax_type}") from None

        now = (clock or DEFAULT_CLOCK).now()
        return cls(
            id=uuid.uuid4(),
            filing_number=filing_number or generate_filing_number(now),
            taxpayer_id=taxpayer_id,
            legal_name=legal_name.strip(),
            period=normalize_period(period),
            tax_type=tax_type,
            income_amount=income,
            expense_amount=expenses,
            computed_tax=compute_tax(income - expenses, tax_type),
            created_at=now,
        )

    def update_amounts(self, income_amount: object, expense_amount: object) -> "Declaration":
        self._require_status(
            DeclarationStatus.DRAFT, "Only draft declarations can be modified"
        )
        income, expenses = _validate_amounts(income_amount, expense_amount)
        return self._next(
            income_amount=income,
            expense_amount=expenses,
            computed_tax=compute_tax(income - expenses, self.tax_type),
        )

    def file(self, *, clock: Optional[Clock] = None) -> "Declaration":
        """Present the declaration. Late filings get their penalty fixed here."""
        self._require_status(DeclarationStatus.DRAFT, "Only draft declarations can be filed")
        self._validate_for_filing()
        filed_at = (clock or DEFAULT_CLOCK).now()
        return self._next(
            status=DeclarationStatus.FILED,
            filed_at=filed_at,
            penalty=compute_penalty(self.computed_tax, filed_at, self.due_date),
        )

    def approve(self) -> "Declaration":
        self._require_status(DeclarationStatus.FILED, "Only filed declarations can be approved")
        return self._next(status=DeclarationStatus.APPROVED)

    def reject(self, remarks: str) -> "Declaration":
        self._require_status(DeclarationStatus.FILED, "Only filed declarations can be rejected")
        return self._next(status=DeclarationStatus.REJECTED, rejection_remarks=remarks)

    # -- internals -------------------------------------------------------

    def _require_status(self, expected: DeclarationStatus, message: str) -> None:
        if self.status.is_terminal:
            raise InvalidStateError(
                f"Declaration {self.filing_number} is {self.status.value.lower()} and can no longer change"
            )
        if self.status != expected:
            raise InvalidStateError(f"{message} (current status: {self.status.value})")

    def _validate_for_filing(self) -> None:
        if not self.taxpayer_id or not self.taxpayer_id.strip():
            raise InvalidStateError("Taxpayer id is required")
        if self.income_amount <= 0:
            raise InvalidStateError("Declared income must be greater than zero")
        if self.taxable_base < 0:
            raise InvalidStateError("Taxable base cannot be negative")

    def _next(self, **changes: object) -> "Declaration":
        return self.model_copy(update={**changes, "version": self.version + 1})

    # -- rehydration checks ----------------------------------------------

    @field_validator("created_at", "filed_at")
    @classmethod
    def _ensure_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        if v is None:
            return None
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v.astimezone(timezone.utc)

    @field_validator("period")
    @classmethod
    def _first_of_month(cls, v: date) -> date:
        return v.replace(day=1)

    @model_validator(mode="after")
    def _check_invariants(self) -> "Declaration":
        expected_tax = compute_tax(self.taxable_base, self.tax_type)
        if self.computed_tax != expected_tax:
            raise ValueError(
                f"computed_tax {self.computed_tax} does not match amounts (expected {expected_tax})"
            )
        if self.status == DeclarationStatus.DRAFT and self.filed_at is not None:
            raise ValueError("draft declarations cannot have a filing timestamp")
        if self.status != DeclarationStatus.DRAFT and self.filed_at is None:
            raise ValueError(f"{self.status.value} declarations need a filing timestamp")
        if self.penalty != 0 and (self.filed_at is None or self.filed_at <= self.due_date):
            raise ValueError("penalty is only allowed on late filings")
        if self.rejection_remarks is not None and self.status != DeclarationStatus.REJECTED:
            raise ValueError("rejection remarks are only allowed on rejected declarations")
        return self
