from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import Date, DateTime, Index, Integer, Numeric, String, text
from sqlalchemy.orm import Mapped, mapped_column

from taxdecl.db.session import Base, TimestampMixin, UUIDPrimaryKey
from taxdecl.domain.enums import DeclarationStatus

_NOT_REJECTED = text(f"status != '{DeclarationStatus.REJECTED.value}'")


class DeclarationRecord(UUIDPrimaryKey, TimestampMixin, Base):
    """Stored state of a declaration. Derived amounts are not persisted."""

    __tablename__ = "declarations"

    filing_number: Mapped[str] = mapped_column(String(50), unique=True)
    taxpayer_id: Mapped[str] = mapped_column(String(20), index=True)
    legal_name: Mapped[str] = mapped_column(String(200))
    period: Mapped[date] = mapped_column(Date)
    tax_type: Mapped[str] = mapped_column(String(20))
    income_amount: Mapped[Decimal] = mapped_column(Numeric(18, 2))
    expense_amount: Mapped[Decimal] = mapped_column(Numeric(18, 2))
    computed_tax: Mapped[Decimal] = mapped_column(Numeric(18, 2))
    penalty: Mapped[Decimal] = mapped_column(Numeric(18, 2), default=Decimal("0"))
    status: Mapped[str] = mapped_column(String(20), index=True, default=DeclarationStatus.DRAFT.value)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    filed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), default=None)
    rejection_remarks: Mapped[Optional[str]] = mapped_column(String(500), default=None)
    version: Mapped[int] = mapped_column(Integer, default=1)

    __table_args__ = (
        # One live declaration per taxpayer/period/tax type; rejected ones can be re-filed
        Index(
            "uq_declarations_taxpayer_period_tax_type",
            "taxpayer_id",
            "period",
            "tax_type",
            unique=True,
            postgresql_where=_NOT_REJECTED,
            sqlite_where=_NOT_REJECTED,
        ),
        Index("ix_declarations_taxpayer_created", "taxpayer_id", "created_at"),
    )
