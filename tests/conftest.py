from __future__ import annotations

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from src.db import Base
from src.services import FlashcardService
from src.srs import SchedulerConfig


@pytest_asyncio.fixture
async def session_factory() -> async_sessionmaker:
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", future=True)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, expire_on_commit=False)
    try:
        yield factory
    finally:
        await engine.dispose()


@pytest.fixture
def fixed_config() -> SchedulerConfig:
    return SchedulerConfig(jitter_enabled=False)


@pytest.fixture
def service(session_factory, fixed_config) -> FlashcardService:
    return FlashcardService(session_factory, scheduler_config=fixed_config)
