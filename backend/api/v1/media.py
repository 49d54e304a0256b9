"""Protected media URL endpoints."""

from __future__ import annotations

from typing import Annotated, Any, NoReturn, cast

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import ColumnElement

from api.deps import get_current_user, get_db
from models import User
from services import create_presigned_get_url

router = APIRouter(prefix="/media", tags=["media"])

SIGNED_MEDIA_URL_TTL_SECONDS = 120
MAX_OBJECT_KEY_LENGTH = 255
MEDIA_NO_STORE_CACHE_CONTROL = "no-store"


def _eq(column: Any, value: Any) -> ColumnElement[bool]:
    return cast(ColumnElement[bool], column == value)


def _raise_media_not_found() -> NoReturn:
    raise HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail="Media not found",
    )


def _normalize_object_key(raw_key: str) -> str:
    normalized_key = raw_key.strip().lstrip("/")
    if not normalized_key:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_CONTENT,
            detail="Media key must not be empty",
        )
    return normalized_key


class MediaURLResponse(BaseModel):
    url: str


@router.get("", response_model=MediaURLResponse)
async def get_media_url(
    key: Annotated[str, Query(min_length=1, max_length=MAX_OBJECT_KEY_LENGTH)],
    response: Response,
    session: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> MediaURLResponse:
    """Sign a short-lived URL for an avatar that belongs to a registered user."""
    response.headers["Cache-Control"] = MEDIA_NO_STORE_CACHE_CONTROL
    normalized_key = _normalize_object_key(key)

    avatar_key_column = cast(ColumnElement[str | None], User.avatar_key)
    result = await session.execute(
        select(avatar_key_column).where(_eq(User.avatar_key, normalized_key)).limit(1)
    )
    if result.scalar_one_or_none() is None:
        _raise_media_not_found()

    signed_url = create_presigned_get_url(
        normalized_key,
        expires_seconds=SIGNED_MEDIA_URL_TTL_SECONDS,
    )
    return MediaURLResponse(url=signed_url)
