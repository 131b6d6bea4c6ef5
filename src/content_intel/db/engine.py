from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine as sa_create_async_engine

from content_intel.config.settings import get_settings

_engine: AsyncEngine | None = None


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    # SQLite ignores ON DELETE CASCADE on mentions and name variants otherwise
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def get_engine(echo: bool | None = None) -> AsyncEngine:
    """Return a cached async engine for ``Settings.database_url``.

    SQLite URLs (local runs, tests) get foreign-key enforcement switched
    on for every new connection.
    """
    global _engine
    if _engine is None:
        settings = get_settings()
        _engine = sa_create_async_engine(
            settings.database_url,
            echo=settings.sql_echo if echo is None else echo,
        )
        if _engine.dialect.name == "sqlite":
            event.listen(_engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
    return _engine


async def dispose_engine() -> None:
    """Close pooled connections before the event loop shuts down."""
    if _engine is not None:
        await _engine.dispose()
