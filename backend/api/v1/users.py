"""User profile endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Any, cast

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import ColumnElement

from api.deps import get_current_user, get_db, get_optional_user
from models import Post, User
from .posts import PostResponse, build_post_responses

router = APIRouter(prefix="/users", tags=["users"])


def _eq(column: Any, value: Any) -> ColumnElement[bool]:
    return cast(ColumnElement[bool], column == value)


def _desc(column: Any) -> Any:
    return cast(Any, column).desc()


class UserProfile(BaseModel):
    id: str
    username: str
    avatar_key: str | None = None
    bio: str | None = None
    created_at: datetime | None = None
    post_count: int
    total_likes: int
    posts: list[PostResponse]


async def _find_user_by_username(
    session: AsyncSession,
    username: str,
) -> User | None:
    result = await session.execute(
        select(User).where(_eq(User.username, username)).limit(1)
    )
    return result.scalar_one_or_none()


async def _build_profile(
    session: AsyncSession,
    user: User,
    viewer: User | None,
) -> UserProfile:
    result = await session.execute(
        select(cast(Any, Post))
        .where(_eq(Post.username, user.username))
        .order_by(_desc(Post.created_at), _desc(Post.id))
    )
    posts = list(result.scalars().all())
    responses = await build_post_responses(
        session,
        [(post, user.avatar_key) for post in posts],
        viewer,
    )
    return UserProfile(
        id=user.id,
        username=user.username,
        avatar_key=user.avatar_key,
        bio=user.bio,
        created_at=user.created_at,
        post_count=len(responses),
        total_likes=sum(post.likes for post in responses),
        posts=responses,
    )


@router.get("/me", response_model=UserProfile)
async def read_current_user(
    session: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> UserProfile:
    return await _build_profile(session, current_user, current_user)


@router.get("/{username}", response_model=UserProfile)
async def read_user_profile(
    username: str,
    session: AsyncSession = Depends(get_db),
    viewer: User | None = Depends(get_optional_user),
) -> UserProfile:
    """Public profile: the author's details and their posts, newest first."""
    user = await _find_user_by_username(session, username.strip())
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return await _build_profile(session, user, viewer)
