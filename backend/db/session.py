"""Async engine and session factory."""

from __future__ import annotations

from typing import Any

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine

from core import settings


def _is_sqlite(database_url: str) -> bool:
    return database_url.startswith("sqlite")


def create_engine_for_url(database_url: str) -> AsyncEngine:
    """Build an async engine; SQLite engines enforce foreign keys per connection."""
    connect_args: dict[str, Any] = {}
    if _is_sqlite(database_url):
        connect_args = {"check_same_thread": False, "timeout": 30}

    engine = create_async_engine(
        database_url,
        connect_args=connect_args,
        pool_pre_ping=not _is_sqlite(database_url),
    )
    if _is_sqlite(database_url):
        event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
    return engine


def _enable_sqlite_foreign_keys(dbapi_connection: Any, _connection_record: Any) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


async_engine = create_engine_for_url(settings.database_url)
AsyncSessionMaker = async_sessionmaker(async_engine, expire_on_commit=False)


__all__ = [
    "AsyncSessionMaker",
    "async_engine",
    "create_engine_for_url",
]
