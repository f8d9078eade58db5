from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlmodel import SQLModel

from .base import Settings, get_settings

_engine: AsyncEngine | None = None


def get_database_url(settings: Settings, is_async=False) -> str:
    """Construct the database URL based on environment settings.

    Parameters
    ----------
    settings: Settings
        Application settings object.
    is_async: bool, default=False
        Boolean indicating whether to return an asynchronous URL.

    Returns
    -------
    str
        String representing the database connection URL.
    """
    if settings.database_url:
        url = settings.database_url
        if not is_async:
            url = url.replace("+aiosqlite", "")
        return url

    if is_async:
        return f"sqlite+aiosqlite:///{settings.base_dir}/db.sqlite3"
    else:
        return f"sqlite:///{settings.base_dir}/db.sqlite3"


def import_models() -> None:
    """Import every SQLModel table so that `SQLModel.metadata` knows about it."""
    import notifications.infrastructure.models  # noqa: F401
    import reports.infrastructure.models  # noqa: F401
    import sites.infrastructure.models  # noqa: F401
    import users.infrastructure.models  # noqa: F401


async def get_database_engine() -> AsyncEngine:
    """Provide a singleton asynchronous SQLAlchemy database engine.

    Returns
    -------
    AsyncEngine
        Asynchronous SQLAlchemy engine instance.
    """
    global _engine

    if _engine is None:
        settings = get_settings()
        database_url = get_database_url(settings, is_async=True)
        _engine = create_async_engine(database_url, echo=False)

    return _engine


async def close_database_engine():
    """Dispose of existing database engine."""
    global _engine

    if _engine:
        await _engine.dispose()
        _engine = None


async def get_database_session():
    """Provide an asynchronous SQLAlchemy session.

    Yields
    ------
    AsyncSession
        Asynchronous SQLAlchemy session instance.
    """
    engine = await get_database_engine()
    async with AsyncSession(bind=engine, expire_on_commit=False) as session:
        try:
            yield session
        finally:
            await session.close()


async def create_tables():
    """Asynchronously create all database tables defined in SQLModel metadata."""
    import_models()

    engine = await get_database_engine()
    async with engine.begin() as connection:
        await connection.run_sync(SQLModel.metadata.create_all)


@asynccontextmanager
async def database_session():
    """Open a session outside of the request cycle (background tasks, CLI).

    Yields
    ------
    AsyncSession
        Asynchronous SQLAlchemy session instance.
    """
    engine = await get_database_engine()
    async with AsyncSession(bind=engine, expire_on_commit=False) as session:
        yield session
