"""
Engine lifecycle: a single Database per process, initialized on startup.
"""

import sqlite3
from datetime import datetime
from uuid import UUID

from sqlalchemy.ext.asyncio import create_async_engine

from db.persistence import Database

# Singleton (initialized on startup)
_database: Database | None = None


def _register_sqlite_adapters() -> None:
    """sqlite3 has no UUID adapter and its datetime one is deprecated."""
    sqlite3.register_adapter(UUID, str)
    sqlite3.register_adapter(datetime, lambda v: v.isoformat(" ", timespec="microseconds"))


def create_database(database_url: str, **engine_kwargs) -> Database:
    """Build a Database for the URL. sqlite URLs get adapters and no pool sizing."""
    if database_url.startswith("sqlite"):
        _register_sqlite_adapters()
        engine_kwargs.pop("pool_size", None)
        engine_kwargs.pop("max_overflow", None)
    else:
        engine_kwargs.setdefault("pool_pre_ping", True)
        engine_kwargs.setdefault("pool_recycle", 3600)
    return Database(create_async_engine(database_url, **engine_kwargs))


def init_db(database_url: str, **engine_kwargs) -> Database:
    global _database
    _database = create_database(database_url, **engine_kwargs)
    return _database


def set_database(database: Database | None) -> None:
    """Install an existing Database (tests) or clear it."""
    global _database
    _database = database


def get_database() -> Database:
    if _database is None:
        raise RuntimeError("Database not initialized")
    return _database


async def close_db() -> None:
    global _database
    if _database is not None:
        await _database.dispose()
        _database = None
