import uuid
from datetime import date, timedelta
from decimal import Decimal

import pytest

from taxdecl.domain.enums import DeclarationStatus, TaxType
from taxdecl.exceptions import (
    DeclarationNotFoundError,
    DuplicatePeriodError,
    FilingNumberCollisionError,
    InvalidInputError,
    InvalidStateError,
)
from taxdecl.services.declaration_service import DeclarationService, clamp_pagination

RNC = "101123456"


async def create(service: DeclarationService, tax_type=TaxType.INCOME, period="2024-01", **overrides):
    kwargs = dict(
        taxpayer_id=RNC,
        legal_name="Comercial Las Americas SRL",
        period=period,
        tax_type=tax_type,
        income_amount="1000000",
        expense_amount="200000",
    )
    kwargs.update(overrides)
    return await service.create_declaration(**kwargs)


class TestCreateDeclaration:
    async def test_create(self, session, clock):
        service = DeclarationService(session, clock=clock)
        d = await create(service)
        await session.commit()

        assert d.computed_tax == Decimal("66350.20")
        assert d.period == date(2024, 1, 1)
        assert (await service.get_declaration(d.id)).filing_number == d.filing_number

    async def test_duplicate_period(self, session, clock):
        service = DeclarationService(session, clock=clock)
        await create(service)
        with pytest.raises(DuplicatePeriodError):
            await create(service, taxpayer_id="1-01-12345-6")

    async def test_other_tax_type_same_period_allowed(self, session, clock):
        service = DeclarationService(session, clock=clock)
        await create(service)
        d = await create(service, tax_type=TaxType.VALUE_ADDED)
        assert d.tax_type == TaxType.VALUE_ADDED

    async def test_rejected_period_can_be_refiled(self, session, clock):
        service = DeclarationService(session, clock=clock)
        first = await create(service)
        await service.file_declaration(first.id)
        await service.reject_declaration(first.id, "Income understated")

        second = await create(service)
        assert second.id != first.id
        assert second.status == DeclarationStatus.DRAFT

    async def test_invalid_input_propagates(self, session, clock):
        service = DeclarationService(session, clock=clock)
        with pytest.raises(InvalidInputError):
            await create(service, income_amount="-1")

    async def test_same_instant_gets_distinct_numbers(self, session, clock):
        service = DeclarationService(session, clock=clock)
        a = await create(service, tax_type=TaxType.INCOME)
        b = await create(service, tax_type=TaxType.VALUE_ADDED)
        c = await create(service, tax_type=TaxType.EXCISE)
        assert len({a.filing_number, b.filing_number, c.filing_number}) == 3

    async def test_filing_number_collision_retried(self, session, clock):
        numbers = iter(["DECL-2024-000001", "DECL-2024-000001", "DECL-2024-000002"])
        service = DeclarationService(session, clock=clock, filing_number_factory=lambda now, probe: next(numbers))
        await create(service)
        second = await create(service, tax_type=TaxType.EXCISE)
        assert second.filing_number == "DECL-2024-000002"

    async def test_filing_number_attempts_exhausted(self, session, clock):
        service = DeclarationService(
            session,
            clock=clock,
            max_filing_number_attempts=2,
            filing_number_factory=lambda now, probe: "DECL-2024-000001",
        )
        await create(service)
        with pytest.raises(FilingNumberCollisionError):
            await create(service, tax_type=TaxType.EXCISE)


class TestLookups:
    async def test_not_found(self, session, clock):
        service = DeclarationService(session, clock=clock)
        with pytest.raises(DeclarationNotFoundError):
            await service.get_declaration(uuid.uuid4())
        with pytest.raises(DeclarationNotFoundError):
            await service.get_by_filing_number("DECL-2000-000000")

    async def test_get_by_filing_number(self, session, clock):
        service = DeclarationService(session, clock=clock)
        d = await create(service)
        assert (await service.get_by_filing_number(d.filing_number)).id == d.id

    async def test_list_page(self, session, clock):
        service = DeclarationService(session, clock=clock)
        for month in range(1, 6):
            clock.advance(milliseconds=5)
            await create(service, period=f"2023-{month:02d}")

        page = await service.list_by_taxpayer(RNC, page=2, page_size=2)
        assert page.total == 5
        assert page.total_pages == 3
        assert [d.period for d in page.items] == [date(2023, 3, 1), date(2023, 2, 1)]

    async def test_list_accepts_formatted_taxpayer_id(self, session, clock):
        service = DeclarationService(session, clock=clock)
        await create(service, taxpayer_id="101-12345-6")

        page = await service.list_by_taxpayer(" 101-12345-6 ", page=1, page_size=10)
        assert page.total == 1
        assert page.items[0].taxpayer_id == RNC


class TestTransitions:
    async def test_update_amounts(self, session, clock):
        service = DeclarationService(session, clock=clock)
        d = await create(service, tax_type=TaxType.VALUE_ADDED)
        updated = await service.update_amounts(d.id, "100000", "30000")
        assert updated.computed_tax == Decimal("12600.00")
        assert (await service.get_declaration(d.id)).computed_tax == Decimal("12600.00")

    async def test_update_after_filing_fails(self, session, clock):
        service = DeclarationService(session, clock=clock)
        d = await create(service)
        await service.file_declaration(d.id)
        with pytest.raises(InvalidStateError):
            await service.update_amounts(d.id, "1", "0")

    async def test_update_missing(self, session, clock):
        service = DeclarationService(session, clock=clock)
        with pytest.raises(DeclarationNotFoundError):
            await service.update_amounts(uuid.uuid4(), "1", "0")

    async def test_late_filing_penalty_persisted(self, session, clock):
        service = DeclarationService(session, clock=clock)
        d = await create(service, tax_type=TaxType.EXCISE, income_amount="100000", expense_amount="0")
        clock.set_time(d.due_date + timedelta(days=45))

        filed = await service.file_declaration(d.id)
        assert filed.penalty == Decimal("1800.00")

        stored = await service.get_declaration(d.id)
        assert stored.penalty == Decimal("1800.00")
        assert stored.total_payable == Decimal("11800.00")
        assert stored.filed_at == clock.now()

    async def test_approve(self, session, clock):
        service = DeclarationService(session, clock=clock)
        d = await create(service)
        await service.file_declaration(d.id)
        approved = await service.approve_declaration(d.id)
        assert approved.status == DeclarationStatus.APPROVED
        assert (await service.get_declaration(d.id)).status == DeclarationStatus.APPROVED

    async def test_reject_stores_remarks(self, session, clock):
        service = DeclarationService(session, clock=clock)
        d = await create(service)
        await service.file_declaration(d.id)
        await service.reject_declaration(d.id, "Missing annex")
        stored = await service.get_declaration(d.id)
        assert stored.status == DeclarationStatus.REJECTED
        assert stored.rejection_remarks == "Missing annex"


class TestClampPagination:
    @pytest.mark.parametrize("given,expected", [
        ((1, 10), (1, 10)),
        ((0, 10), (1, 10)),
        ((-3, 50), (1, 50)),
        ((2, 0), (2, 10)),
        ((2, 101), (2, 10)),
        ((2, 100), (2, 100)),
    ])
    def test_clamp(self, given, expected):
        assert clamp_pagination(*given) == expected
