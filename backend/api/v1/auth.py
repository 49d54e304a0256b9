"""Authentication endpoints."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Any, NoReturn, cast

from fastapi import APIRouter, Depends, HTTPException, Response, status
from pydantic import BaseModel, ConfigDict, Field, field_validator
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import ColumnElement

from api.deps import get_db
from core import create_access_token, hash_password, needs_rehash, verify_password
from db.errors import is_unique_violation
from models import User
from services import (
    AvatarStorageError,
    InvalidDisplayNameError,
    delete_object,
    generate_and_store_avatar,
)
from services.auth import clear_access_cookie, set_access_cookie

router = APIRouter(prefix="/auth", tags=["auth"])

USERNAME_PATTERN = r"^[A-Za-z0-9_][A-Za-z0-9._]{1,28}[A-Za-z0-9_]$"
MAX_PROFILE_BIO_LENGTH = 500
logger = logging.getLogger(__name__)


def _eq(column: Any, value: Any) -> ColumnElement[bool]:
    return cast(ColumnElement[bool], column == value)


class RegisterRequest(BaseModel):
    username: str = Field(min_length=3, max_length=30, pattern=USERNAME_PATTERN)
    password: str = Field(min_length=8, max_length=128)
    bio: str | None = Field(default=None, max_length=MAX_PROFILE_BIO_LENGTH)

    @field_validator("username", mode="before")
    @classmethod
    def _strip_username(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    username: str
    avatar_key: str | None = None
    bio: str | None = None
    created_at: datetime | None = None


class LoginRequest(BaseModel):
    username: str = Field(min_length=3, max_length=30)
    password: str = Field(min_length=8, max_length=128)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


def _raise_username_taken(exc: Exception | None = None) -> NoReturn:
    raise HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail="Username already exists",
    ) from exc


@router.post("/register", status_code=status.HTTP_201_CREATED, response_model=UserResponse)
async def register(
    payload: RegisterRequest,
    session: AsyncSession = Depends(get_db),
) -> UserResponse:
    existing = await session.execute(
        select(User).where(_eq(User.username, payload.username)).limit(1)
    )
    if existing.scalar_one_or_none() is not None:
        _raise_username_taken()

    try:
        avatar_key = await asyncio.to_thread(generate_and_store_avatar, payload.username)
    except InvalidDisplayNameError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_CONTENT,
            detail=str(exc),
        ) from exc
    except AvatarStorageError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Avatar storage unavailable, try again later",
            headers={"Retry-After": "5"},
        ) from exc

    user = User(
        username=payload.username,
        password_hash=hash_password(payload.password),
        bio=payload.bio,
        avatar_key=avatar_key,
    )
    session.add(user)
    try:
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        if is_unique_violation(exc):
            # The avatar key now belongs to the concurrent winner; keep it.
            _raise_username_taken(exc)
        await _discard_avatar(avatar_key)
        raise
    except Exception:
        await session.rollback()
        await _discard_avatar(avatar_key)
        raise

    await session.refresh(user)
    logger.info("Registered user", extra={"user_id": user.id})
    return UserResponse.model_validate(user)


async def _discard_avatar(avatar_key: str) -> None:
    try:
        await asyncio.to_thread(delete_object, avatar_key)
    except Exception as cleanup_error:
        logger.warning(
            "Failed to cleanup avatar after registration failure",
            extra={"avatar_key": avatar_key},
            exc_info=cleanup_error,
        )


@router.post("/login", response_model=TokenResponse)
async def login(
    payload: LoginRequest,
    response: Response,
    session: AsyncSession = Depends(get_db),
) -> TokenResponse:
    result = await session.execute(
        select(User).where(_eq(User.username, payload.username.strip())).limit(1)
    )
    user = result.scalar_one_or_none()
    if user is None or not verify_password(payload.password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
        )

    if needs_rehash(user.password_hash):
        user.password_hash = hash_password(payload.password)
        session.add(user)
        await session.commit()

    access_token = create_access_token(user.id)
    set_access_cookie(response, access_token)
    return TokenResponse(access_token=access_token)


@router.post("/logout", status_code=status.HTTP_200_OK)
async def logout(response: Response) -> dict[str, Any]:
    clear_access_cookie(response)
    return {"detail": "Logged out"}
