import uuid
from datetime import date
from typing import Optional

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from taxdecl.db.models.declaration import DeclarationRecord
from taxdecl.domain.enums import DeclarationStatus, TaxType
from taxdecl.domain.models.declaration import Declaration
from taxdecl.exceptions import (
    ConcurrentModificationError,
    DuplicatePeriodError,
    FilingNumberCollisionError,
)

_MUTABLE_COLUMNS = (
    "income_amount",
    "expense_amount",
    "computed_tax",
    "penalty",
    "status",
    "filed_at",
    "rejection_remarks",
    "version",
)


class DeclarationRepo:
    """Stores declarations and answers lookups by id, filing number and taxpayer."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, declaration_id: uuid.UUID) -> Optional[Declaration]:
        result = await self._session.execute(
            select(DeclarationRecord)
            .where(DeclarationRecord.id == declaration_id)
            .execution_options(populate_existing=True)
        )
        record = result.scalar_one_or_none()
        return self._to_domain(record) if record else None

    async def get_by_filing_number(self, filing_number: str) -> Optional[Declaration]:
        result = await self._session.execute(
            select(DeclarationRecord)
            .where(DeclarationRecord.filing_number == filing_number)
            .execution_options(populate_existing=True)
        )
        record = result.scalar_one_or_none()
        return self._to_domain(record) if record else None

    async def list_by_taxpayer(self, taxpayer_id: str, page: int, page_size: int) -> list[Declaration]:
        """Newest first. ``page`` is 1-based."""
        result = await self._session.execute(
            select(DeclarationRecord)
            .where(DeclarationRecord.taxpayer_id == taxpayer_id)
            .order_by(DeclarationRecord.created_at.desc(), DeclarationRecord.filing_number.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        return [self._to_domain(r) for r in result.scalars().all()]

    async def count_by_taxpayer(self, taxpayer_id: str) -> int:
        result = await self._session.execute(
            select(func.count(DeclarationRecord.id)).where(DeclarationRecord.taxpayer_id == taxpayer_id)
        )
        return result.scalar() or 0

    async def exists_for_period(self, taxpayer_id: str, period: date, tax_type: TaxType) -> bool:
        """True if a non-rejected declaration covers this taxpayer/period/tax type."""
        result = await self._session.execute(
            select(DeclarationRecord.id)
            .where(
                DeclarationRecord.taxpayer_id == taxpayer_id,
                DeclarationRecord.period == period,
                DeclarationRecord.tax_type == tax_type.value,
                DeclarationRecord.status != DeclarationStatus.REJECTED.value,
            )
            .limit(1)
        )
        return result.scalar_one_or_none() is not None

    async def create(self, declaration: Declaration) -> Declaration:
        """Insert a new declaration.

        Unique-index violations surface as domain errors; the caller must roll
        the session back before reusing it.
        """
        record = DeclarationRecord(
            id=declaration.id,
            filing_number=declaration.filing_number,
            taxpayer_id=declaration.taxpayer_id,
            legal_name=declaration.legal_name,
            period=declaration.period,
            tax_type=declaration.tax_type.value,
            created_at=declaration.created_at,
            **self._mutable_values(declaration),
        )
        self._session.add(record)
        try:
            await self._session.flush()
        except IntegrityError as exc:
            if "filing_number" in str(exc.orig):
                raise FilingNumberCollisionError(declaration.filing_number) from exc
            raise DuplicatePeriodError(
                declaration.taxpayer_id, declaration.period, declaration.tax_type.value
            ) from exc
        return declaration

    async def update(self, declaration: Declaration) -> Declaration:
        """Persist the result of one domain operation.

        Only succeeds if the stored version is the one the operation started
        from, so two concurrent operations on the same declaration cannot both
        win.
        """
        result = await self._session.execute(
            update(DeclarationRecord)
            .where(
                DeclarationRecord.id == declaration.id,
                DeclarationRecord.version == declaration.version - 1,
            )
            .values(**self._mutable_values(declaration))
        )
        if result.rowcount == 0:
            raise ConcurrentModificationError(
                f"Declaration {declaration.filing_number} was modified concurrently"
            )
        return declaration

    @staticmethod
    def _mutable_values(declaration: Declaration) -> dict:
        values = {name: getattr(declaration, name) for name in _MUTABLE_COLUMNS}
        values["status"] = declaration.status.value
        return values

    @staticmethod
    def _to_domain(record: DeclarationRecord) -> Declaration:
        return Declaration(
            id=record.id,
            filing_number=record.filing_number,
            taxpayer_id=record.taxpayer_id,
            legal_name=record.legal_name,
            period=record.period,
            tax_type=TaxType(record.tax_type),
            income_amount=record.income_amount,
            expense_amount=record.expense_amount,
            computed_tax=record.computed_tax,
            penalty=record.penalty,
            status=DeclarationStatus(record.status),
            created_at=record.created_at,
            filed_at=record.filed_at,
            rejection_remarks=record.rejection_remarks,
            version=record.version,
        )
