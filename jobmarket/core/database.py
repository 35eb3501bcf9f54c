"""Async database engine and request-scoped sessions.

The API shares one module-level engine. The sweep script builds its own
with make_engine() so it can dispose of it when the run ends.
"""

from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from jobmarket.core.config import settings


def make_engine(url: str | None = None) -> AsyncEngine:
    """Create an async engine, echoing SQL only in development."""
    return create_async_engine(
        url or settings.database_url,
        echo=settings.environment == "development",
        pool_pre_ping=True,
    )


def make_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory whose objects stay readable after commit."""
    return async_sessionmaker(bind, class_=AsyncSession, expire_on_commit=False)


engine = make_engine()
async_session_factory = make_session_factory(engine)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Yield one session per request.

    Commits when the endpoint returns and rolls back when it raises, so an
    endpoint that fails part-way leaves no partial writes.
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
