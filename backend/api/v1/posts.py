"""Post creation, retrieval and like endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal, cast

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, ConfigDict, Field, field_validator
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import ColumnElement

from api.deps import get_current_user, get_db, get_like_service, get_optional_user
from models import Like, Post, User
from services import (
    LikeConflictError,
    LikeToggleService,
    PostNotFoundError,
    StorageUnavailableError,
    UnauthenticatedError,
    collect_liked_post_ids,
)

router = APIRouter(prefix="/posts", tags=["posts"])
MAX_POST_TITLE_LENGTH = 200
MAX_POST_CONTENT_LENGTH = 10_000
RETRY_AFTER_SECONDS = "1"


def _eq(column: Any, value: Any) -> ColumnElement[bool]:
    return cast(ColumnElement[bool], column == value)


def _desc(column: Any) -> Any:
    return cast(Any, column).desc()


class PostCreateRequest(BaseModel):
    title: str = Field(min_length=1, max_length=MAX_POST_TITLE_LENGTH)
    content: str = Field(min_length=1, max_length=MAX_POST_CONTENT_LENGTH)
    # Serialized album metadata picked by the client; never parsed here.
    album: str | None = None

    @field_validator("title", "content")
    @classmethod
    def _reject_blank(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError("must not be blank")
        return normalized


class PostResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    content: str
    username: str
    likes: int
    album: str | None = None
    created_at: datetime
    author_avatar_key: str | None = None
    viewer_has_liked: bool = False

    @classmethod
    def from_post(
        cls,
        post: Post,
        *,
        author_avatar_key: str | None = None,
        viewer_has_liked: bool = False,
    ) -> "PostResponse":
        if post.id is None:
            raise ValueError("Post record missing identifier")
        return cls(
            id=post.id,
            title=post.title,
            content=post.content,
            username=post.username,
            likes=post.likes,
            album=post.album,
            created_at=post.created_at,
            author_avatar_key=author_avatar_key,
            viewer_has_liked=viewer_has_liked,
        )


class LikeToggleResponse(BaseModel):
    success: bool = True
    likes: int
    liked: bool


async def build_post_responses(
    session: AsyncSession,
    rows: list[tuple[Post, str | None]],
    viewer: User | None,
) -> list[PostResponse]:
    """Attach viewer like state to ``(post, author_avatar_key)`` rows."""
    viewer_id = viewer.id if viewer is not None else None
    post_ids = [post.id for post, _avatar_key in rows if post.id is not None]
    liked_set = await collect_liked_post_ids(session, post_ids, viewer_id)
    return [
        PostResponse.from_post(
            post,
            author_avatar_key=avatar_key,
            viewer_has_liked=post.id in liked_set,
        )
        for post, avatar_key in rows
    ]


def _select_posts_with_avatars() -> Any:
    post_entity = cast(Any, Post)
    avatar_key_column = cast(ColumnElement[str | None], User.avatar_key)
    return select(post_entity, avatar_key_column).outerjoin(
        User, _eq(User.username, Post.username)
    )


@router.get("", response_model=list[PostResponse])
async def list_posts(
    sort: Literal["recent", "likes"] = Query(default="recent"),
    session: AsyncSession = Depends(get_db),
    viewer: User | None = Depends(get_optional_user),
) -> list[PostResponse]:
    """Return every post, newest first or most liked first."""
    if sort == "likes":
        ordering = (_desc(Post.likes), _desc(Post.created_at), _desc(Post.id))
    else:
        ordering = (_desc(Post.created_at), _desc(Post.id))

    result = await session.execute(_select_posts_with_avatars().order_by(*ordering))
    rows = [(post, avatar_key) for post, avatar_key in result.all()]
    return await build_post_responses(session, rows, viewer)


@router.post("", status_code=status.HTTP_201_CREATED, response_model=PostResponse)
async def create_post(
    payload: PostCreateRequest,
    session: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> PostResponse:
    post = Post(
        title=payload.title,
        content=payload.content,
        username=current_user.username,
        album=payload.album,
    )
    session.add(post)
    try:
        await session.commit()
    except Exception as exc:
        await session.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create post",
        ) from exc
    await session.refresh(post)
    return PostResponse.from_post(post, author_avatar_key=current_user.avatar_key)


@router.get("/{post_id}", response_model=PostResponse)
async def get_post(
    post_id: int,
    session: AsyncSession = Depends(get_db),
    viewer: User | None = Depends(get_optional_user),
) -> PostResponse:
    result = await session.execute(
        _select_posts_with_avatars().where(_eq(Post.id, post_id)).limit(1)
    )
    row = result.first()
    if row is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Post not found")

    post, avatar_key = row
    responses = await build_post_responses(session, [(post, avatar_key)], viewer)
    return responses[0]


@router.delete("/{post_id}", status_code=status.HTTP_200_OK)
async def delete_post(
    post_id: int,
    session: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> dict[str, Any]:
    result = await session.execute(
        select(cast(Any, Post)).where(_eq(Post.id, post_id)).limit(1)
    )
    post = result.scalar_one_or_none()
    if post is None or post.username != current_user.username:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Post not found")

    await session.execute(delete(Like).where(_eq(Like.post_id, post_id)))
    await session.delete(post)
    try:
        await session.commit()
    except Exception as exc:
        await session.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete post",
        ) from exc

    return {"detail": "Deleted", "success": True}


@router.post("/{post_id}/like", status_code=status.HTTP_200_OK, response_model=LikeToggleResponse)
async def toggle_like(
    post_id: int,
    like_service: LikeToggleService = Depends(get_like_service),
    viewer: User | None = Depends(get_optional_user),
) -> LikeToggleResponse:
    """Like the post if the viewer has not liked it yet, otherwise unlike it."""
    try:
        result = await like_service.toggle(
            post_id=post_id,
            user_id=viewer.id if viewer is not None else None,
        )
    except UnauthenticatedError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not logged in",
        ) from exc
    except PostNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Post not found",
        ) from exc
    except LikeConflictError as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Like state changed concurrently, try again",
        ) from exc
    except StorageUnavailableError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Storage temporarily unavailable",
            headers={"Retry-After": RETRY_AFTER_SECONDS},
        ) from exc

    return LikeToggleResponse(likes=result.likes, liked=result.liked)
