from typing import AsyncGenerator

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from taxdecl.config import settings
from taxdecl.container import Container
from taxdecl.domain.clock import Clock
from taxdecl.services.declaration_service import DeclarationService


@inject
async def get_db(
    session_factory: async_sessionmaker[AsyncSession] = Depends(Provide[Container.session_factory]),
) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@inject
def get_clock(clock: Clock = Depends(Provide[Container.clock])) -> Clock:
    return clock


def get_declaration_service(
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
) -> DeclarationService:
    return DeclarationService(
        db,
        clock=clock,
        max_filing_number_attempts=settings.filing_number_max_attempts,
    )
