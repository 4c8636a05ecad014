"""
Vitrine Backend — Database Engine & Session Management
=======================================================

What:  Async SQLAlchemy engine/session factories and the declarative Base.
How:   `build_engine()` creates a pooled async engine from a URL;
       `build_session_factory()` wraps it in an `async_sessionmaker`.
Who:   Called once at startup by `vitrine.state.build_app_state()`;
       the repositories in `services/record_store.py` open one short
       session per call from the factory.

Transaction Model:
    The relational store is used at single-row granularity. Each repository
    call runs in its own session and commits before returning, so no
    transaction ever spans a blob-store call. The ordering between the two
    stores is owned by the service layer, not by the database.

Connection Pooling:
    pool_size / max_overflow / pool_pre_ping come from settings.
    pool_recycle=3600 recycles connections every hour.
    SQLite (used by the test suite) gets no pool arguments because its
    async dialect does not accept them for every URL form.
"""

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from vitrine.config import settings


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Shares a single metadata object, which Alembic reads for autogenerate
    and `create_all()` uses for development/test databases.
    """
    pass


def build_engine(database_url: str | None = None) -> AsyncEngine:
    """
    Create the async engine for the record store.

    Args:
        database_url: Override for settings.database_url (used in tests).
    """
    url = make_url(database_url or settings.database_url)
    options = {"echo": settings.log_level == "DEBUG"}

    if url.get_backend_name() != "sqlite":
        options.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=settings.db_pool_pre_ping,
            pool_recycle=3600,
        )

    return create_async_engine(url, **options)


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """
    Create the session factory used by the repositories.

    expire_on_commit=False: rows returned from a repository stay readable
    after the session that loaded them has committed and closed.
    """
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def create_all(engine: AsyncEngine) -> None:
    """
    Create every table known to Base.metadata.

    For development and tests only; production schemas come from Alembic.
    """
    # Register the models with Base.metadata before creating tables
    from vitrine.models import item  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_engine(engine: AsyncEngine) -> None:
    """
    What:  Gracefully closes all connections in the pool.
    When:  Called during application shutdown (AppState.close).
    """
    await engine.dispose()
