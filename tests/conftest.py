from collections.abc import AsyncGenerator
from datetime import datetime, timezone

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from visibility_engine.core.config import settings

# Override settings for tests
settings.app_env = "test"

from visibility_engine.analysis.types import BrandCandidate, RawResponse  # noqa: E402
from visibility_engine.db.base import Base  # noqa: E402
from visibility_engine import models  # noqa: E402,F401

# In-memory SQLite shared by every connection of one engine
TEST_DB_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    engine = create_async_engine(
        TEST_DB_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def brands() -> tuple[BrandCandidate, ...]:
    """HDFC (own brand), ICICI and Visa."""
    return (
        BrandCandidate(brand_id="b-hdfc", brand_name="HDFC Bank Freedom Credit Card", is_owned_brand=True),
        BrandCandidate(brand_id="b-icici", brand_name="ICICI Bank Coral Credit Card"),
        BrandCandidate(brand_id="b-visa", brand_name="Visa"),
    )


@pytest.fixture
def raw_response() -> RawResponse:
    return RawResponse(
        response_id="r1",
        prompt_id="p1",
        provider_id="openai",
        topic_id="t-cards",
        persona_id="p-student",
        tested_at=datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc),
        text=(
            "HDFC Bank is the best choice for students. "
            "ICICI Bank has expensive fees and slow support. "
            "Both work with Visa cards.\n"
            "Read more at https://www.hdfcbank.com/freedom and "
            "[this review](https://www.nerdwallet.com/icici-coral-review)."
        ),
    )
