from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from visibility_engine.core.config import settings

# Driver connection failures (asyncpg raises ConnectionRefusedError and
# other OSError subclasses) surface unwrapped by SQLAlchemy.
STORE_ERRORS = (SQLAlchemyError, OSError)


def make_engine(url: str | None = None, **kwargs) -> AsyncEngine:
    """Create an async engine; defaults to the configured PostgreSQL URL."""
    options = {"echo": False, "pool_pre_ping": True}
    options.update(kwargs)
    return create_async_engine(url or settings.postgres_url, **options)


def make_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
