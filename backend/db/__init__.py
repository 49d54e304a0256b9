"""Database helpers."""

from .errors import is_transient_failure, is_unique_violation
from .session import AsyncSessionMaker, async_engine, create_engine_for_url

__all__ = [
    "AsyncSessionMaker",
    "async_engine",
    "create_engine_for_url",
    "is_transient_failure",
    "is_unique_violation",
]
