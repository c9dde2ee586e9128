from datetime import datetime, timezone

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from taxdecl.db.session import Base
from taxdecl.domain.clock import FixedClock
import taxdecl.db.models  # noqa: F401  register all models


@pytest.fixture()
async def engine():
    eng = create_async_engine("sqlite+aiosqlite:///:memory:")
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await eng.dispose()


@pytest.fixture()
async def session(engine) -> AsyncSession:
    factory = async_sessionmaker(engine, expire_on_commit=False)
    async with factory() as sess:
        yield sess


@pytest.fixture()
def clock() -> FixedClock:
    """Mid-February 2024: before the due date of January 2024 declarations."""
    return FixedClock(datetime(2024, 2, 10, 12, 0, 0, tzinfo=timezone.utc))
