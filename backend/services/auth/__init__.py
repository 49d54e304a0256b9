"""Authentication domain services."""

from .cookies import (
    ACCESS_COOKIE,
    clear_access_cookie,
    set_access_cookie,
)

__all__ = [
    "ACCESS_COOKIE",
    "clear_access_cookie",
    "set_access_cookie",
]
