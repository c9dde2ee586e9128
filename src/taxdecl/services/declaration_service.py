"""Orchestration around the Declaration entity: pre-checks, retries and fetch-operate-save."""

import logging
import math
import uuid
from datetime import date, datetime
from typing import Callable, Optional

from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession
from tenacity import AsyncRetrying, before_sleep_log, retry_if_exception_type, stop_after_attempt

from taxdecl.db.repos.declaration_repo import DeclarationRepo
from taxdecl.domain.clock import DEFAULT_CLOCK, Clock
from taxdecl.domain.enums import TaxType
from taxdecl.domain.filing_number import generate_filing_number
from taxdecl.domain.models.declaration import Declaration, normalize_period, normalize_taxpayer_id
from taxdecl.exceptions import (
    DeclarationNotFoundError,
    DuplicatePeriodError,
    FilingNumberCollisionError,
)

logger = logging.getLogger(__name__)

DEFAULT_FILING_NUMBER_ATTEMPTS = 5


class DeclarationPage(BaseModel):
    items: list[Declaration]
    total: int
    page: int
    page_size: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.page_size) if self.page_size else 0


def clamp_pagination(page: int, page_size: int, default_size: int = 10, max_size: int = 100) -> tuple[int, int]:
    """Page below 1 becomes 1; a page size outside [1, max_size] falls back to the default."""
    if page < 1:
        page = 1
    if page_size < 1 or page_size > max_size:
        page_size = default_size
    return page, page_size


class DeclarationService:
    """Uniqueness pre-checks and fetch-operate-save around the Declaration entity.

    Flushes through the repository; committing is left to the caller.
    """

    def __init__(
        self,
        session: AsyncSession,
        clock: Optional[Clock] = None,
        max_filing_number_attempts: int = DEFAULT_FILING_NUMBER_ATTEMPTS,
        filing_number_factory: Callable[[datetime, int], str] = generate_filing_number,
    ) -> None:
        self._session = session
        self._repo = DeclarationRepo(session)
        self._clock = clock or DEFAULT_CLOCK
        self._max_attempts = max_filing_number_attempts
        self._filing_number_factory = filing_number_factory

    async def create_declaration(
        self,
        taxpayer_id: str,
        legal_name: str,
        period: date | str,
        tax_type: TaxType,
        income_amount: object,
        expense_amount: object,
    ) -> Declaration:
        normalized_id = normalize_taxpayer_id(taxpayer_id)
        normalized_period = normalize_period(period)
        logger.info(
            "Creating declaration for taxpayer %s, period %s, %s",
            normalized_id, normalized_period.strftime("%Y-%m"), tax_type.value,
        )

        if await self._repo.exists_for_period(normalized_id, normalized_period, tax_type):
            raise DuplicatePeriodError(normalized_id, normalized_period.strftime("%Y-%m"), tax_type.value)

        retrying = AsyncRetrying(
            retry=retry_if_exception_type(FilingNumberCollisionError),
            stop=stop_after_attempt(self._max_attempts),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                declaration = await self._insert_new(
                    normalized_id, legal_name, normalized_period, tax_type, income_amount, expense_amount,
                    probe=attempt.retry_state.attempt_number - 1,
                )

        logger.info("Declaration created: %s", declaration.filing_number)
        return declaration

    async def _insert_new(
        self,
        taxpayer_id: str,
        legal_name: str,
        period: date,
        tax_type: TaxType,
        income_amount: object,
        expense_amount: object,
        probe: int = 0,
    ) -> Declaration:
        filing_number = self._filing_number_factory(self._clock.now(), probe)
        if await self._repo.get_by_filing_number(filing_number) is not None:
            raise FilingNumberCollisionError(filing_number)

        declaration = Declaration.create(
            taxpayer_id,
            legal_name,
            period,
            tax_type,
            income_amount,
            expense_amount,
            clock=self._clock,
            filing_number=filing_number,
        )
        try:
            return await self._repo.create(declaration)
        except (FilingNumberCollisionError, DuplicatePeriodError):
            # Lost a race against a concurrent insert; drop the failed flush.
            await self._session.rollback()
            raise

    async def get_declaration(self, declaration_id: uuid.UUID) -> Declaration:
        declaration = await self._repo.get_by_id(declaration_id)
        if declaration is None:
            raise DeclarationNotFoundError(declaration_id)
        return declaration

    async def get_by_filing_number(self, filing_number: str) -> Declaration:
        declaration = await self._repo.get_by_filing_number(filing_number)
        if declaration is None:
            raise DeclarationNotFoundError(filing_number)
        return declaration

    async def list_by_taxpayer(self, taxpayer_id: str, page: int, page_size: int) -> DeclarationPage:
        taxpayer_id = normalize_taxpayer_id(taxpayer_id)
        items = await self._repo.list_by_taxpayer(taxpayer_id, page, page_size)
        total = await self._repo.count_by_taxpayer(taxpayer_id)
        return DeclarationPage(items=items, total=total, page=page, page_size=page_size)

    async def update_amounts(
        self,
        declaration_id: uuid.UUID,
        income_amount: object,
        expense_amount: object,
    ) -> Declaration:
        declaration = await self.get_declaration(declaration_id)
        logger.info("Updating amounts of declaration %s", declaration.filing_number)

        updated = declaration.update_amounts(income_amount, expense_amount)
        await self._repo.update(updated)

        logger.info("Declaration %s updated, computed tax %s", updated.filing_number, updated.computed_tax)
        return updated

    async def file_declaration(self, declaration_id: uuid.UUID) -> Declaration:
        declaration = await self.get_declaration(declaration_id)
        logger.info("Filing declaration %s", declaration.filing_number)

        filed = declaration.file(clock=self._clock)
        await self._repo.update(filed)

        if filed.penalty > 0:
            logger.warning(
                "Declaration %s filed late (due %s): penalty %s",
                filed.filing_number, filed.due_date.date().isoformat(), filed.penalty,
            )
        logger.info("Declaration %s filed. Total payable: %s", filed.filing_number, filed.total_payable)
        return filed

    async def approve_declaration(self, declaration_id: uuid.UUID) -> Declaration:
        declaration = await self.get_declaration(declaration_id)
        approved = declaration.approve()
        await self._repo.update(approved)
        logger.info("Declaration %s approved", approved.filing_number)
        return approved

    async def reject_declaration(self, declaration_id: uuid.UUID, remarks: str) -> Declaration:
        declaration = await self.get_declaration(declaration_id)
        rejected = declaration.reject(remarks)
        await self._repo.update(rejected)
        logger.info("Declaration %s rejected", rejected.filing_number)
        return rejected
