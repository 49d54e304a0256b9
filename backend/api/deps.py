"""FastAPI dependencies shared by the routers."""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Any, cast

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.sql import ColumnElement

from core import decode_token
from models import User
from services import LikeToggleService
from services.auth import ACCESS_COOKIE


def _eq(column: Any, value: Any) -> ColumnElement[bool]:
    return cast(ColumnElement[bool], column == value)


async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
    session_maker = cast(async_sessionmaker[AsyncSession], request.app.state.session_maker)
    async with session_maker() as session:
        yield session


def get_like_service(request: Request) -> LikeToggleService:
    return cast(LikeToggleService, request.app.state.like_service)


def _extract_access_token(request: Request) -> str | None:
    cookie_token = request.cookies.get(ACCESS_COOKIE)
    if cookie_token:
        return cookie_token

    authorization = request.headers.get("Authorization")
    if authorization and authorization.lower().startswith("bearer "):
        return authorization.split(" ", 1)[1].strip() or None
    return None


async def get_optional_user(
    request: Request,
    session: AsyncSession = Depends(get_db),
) -> User | None:
    """Return the authenticated user, or None when the request carries no valid token."""
    token = _extract_access_token(request)
    if token is None:
        return None

    try:
        payload = decode_token(token)
    except ValueError:
        return None

    subject = payload.get("sub")
    if payload.get("type") != "access" or not isinstance(subject, str):
        return None

    result = await session.execute(select(User).where(_eq(User.id, subject)).limit(1))
    return result.scalar_one_or_none()


async def get_current_user(
    user: User | None = Depends(get_optional_user),
) -> User:
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not logged in",
        )
    return user
