"""Post like toggling and like-counter maintenance.

``posts.likes`` is a cache of the number of ``likes`` rows for a post. The
toggle is the only code path that moves it, always inside the same transaction
that inserts or deletes the junction row, and ``recount_like_counters`` can
rebuild it from the junction table if it ever drifts.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from dataclasses import dataclass
from functools import partial
from typing import Any, cast

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.sql import ColumnElement

from core import settings
from db.errors import is_transient_failure, is_unique_violation
from models import Like, Post

from .errors import (
    LikeConflictError,
    PostNotFoundError,
    StorageUnavailableError,
    UnauthenticatedError,
)

logger = logging.getLogger(__name__)

LikeKey = tuple[int, str]


def _eq(column: Any, value: Any) -> ColumnElement[bool]:
    return cast(ColumnElement[bool], column == value)


def _rowcount(result: Any) -> int:
    return int(cast(Any, result).rowcount or 0)


@dataclass(frozen=True)
class LikeToggleResult:
    liked: bool
    likes: int


async def get_like_count(session: AsyncSession, post_id: int) -> int | None:
    """Return the cached like counter, or None when the post does not exist."""
    likes_column = cast(ColumnElement[int], Post.likes)
    result = await session.execute(
        select(likes_column).where(_eq(Post.id, post_id)).limit(1)
    )
    return result.scalar_one_or_none()


async def has_liked(session: AsyncSession, *, post_id: int, user_id: str) -> bool:
    post_id_column = cast(ColumnElement[int], Like.post_id)
    result = await session.execute(
        select(post_id_column)
        .where(_eq(Like.post_id, post_id), _eq(Like.user_id, user_id))
        .limit(1)
    )
    return result.scalar_one_or_none() is not None


async def read_like_state(
    session: AsyncSession,
    *,
    post_id: int,
    user_id: str,
) -> LikeToggleResult:
    likes = await get_like_count(session, post_id)
    if likes is None:
        raise PostNotFoundError(post_id)
    liked = await has_liked(session, post_id=post_id, user_id=user_id)
    return LikeToggleResult(liked=liked, likes=likes)


async def collect_liked_post_ids(
    session: AsyncSession,
    post_ids: Iterable[int],
    user_id: str | None,
) -> set[int]:
    """Return the subset of ``post_ids`` the given user currently likes."""
    unique_ids = list(dict.fromkeys(post_ids))
    if user_id is None or not unique_ids:
        return set()

    post_id_column = cast(ColumnElement[int], Like.post_id)
    result = await session.execute(
        select(post_id_column).where(
            _eq(Like.user_id, user_id),
            post_id_column.in_(unique_ids),
        )
    )
    return {row[0] for row in result.all()}


async def _shift_like_counter(session: AsyncSession, post_id: int, delta: int) -> None:
    likes_column = cast(Any, Post.likes)
    result = await session.execute(
        update(Post)
        .where(_eq(Post.id, post_id))
        .values(likes=likes_column + delta)
        .execution_options(synchronize_session=False)
    )
    if _rowcount(result) == 0:
        raise PostNotFoundError(post_id)


async def _apply_toggle(
    session: AsyncSession,
    *,
    post_id: int,
    user_id: str,
) -> LikeToggleResult:
    if await get_like_count(session, post_id) is None:
        raise PostNotFoundError(post_id)

    if await has_liked(session, post_id=post_id, user_id=user_id):
        removed = await session.execute(
            delete(Like)
            .where(_eq(Like.post_id, post_id), _eq(Like.user_id, user_id))
            .execution_options(synchronize_session=False)
        )
        if _rowcount(removed) == 0:
            # Another worker removed the row between our read and our delete.
            await session.rollback()
            return await read_like_state(session, post_id=post_id, user_id=user_id)
        await _shift_like_counter(session, post_id, -1)
        liked = False
    else:
        session.add(Like(post_id=post_id, user_id=user_id))
        await session.flush()
        await _shift_like_counter(session, post_id, 1)
        liked = True

    await session.commit()

    likes = await get_like_count(session, post_id)
    if likes is None:
        raise PostNotFoundError(post_id)
    return LikeToggleResult(liked=liked, likes=likes)


class LikeToggleService:
    """Flip the like relation between a user and a post.

    Concurrent calls for the same ``(post_id, user_id)`` pair inside this
    process share one in-flight toggle and all receive its result. Workers in
    other processes are reconciled by the database: the junction primary key
    rejects a second insert, and a delete that matches nothing means the pair
    was already unliked. Calls for different pairs never wait on each other.
    """

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        *,
        max_attempts: int | None = None,
    ) -> None:
        attempts = max_attempts if max_attempts is not None else settings.like_toggle_max_attempts
        if attempts <= 0:
            raise ValueError("max_attempts must be positive")
        self._session_maker = session_maker
        self._max_attempts = attempts
        self._in_flight: dict[LikeKey, asyncio.Task[LikeToggleResult]] = {}

    async def toggle(self, *, post_id: int, user_id: str | None) -> LikeToggleResult:
        if not user_id:
            raise UnauthenticatedError("Not logged in")

        key = (post_id, user_id)
        task = self._in_flight.get(key)
        if task is None:
            task = asyncio.create_task(self._run(post_id, user_id))
            self._in_flight[key] = task
            task.add_done_callback(partial(self._release, key))
        else:
            logger.debug(
                "Joining in-flight like toggle",
                extra={"post_id": post_id, "user_id": user_id},
            )
        # The transaction finishes even if this caller goes away.
        return await asyncio.shield(task)

    def _release(self, key: LikeKey, task: asyncio.Task[LikeToggleResult]) -> None:
        if self._in_flight.get(key) is task:
            del self._in_flight[key]
        if not task.cancelled():
            # Retrieve the outcome so an error nobody awaited is not reported twice.
            task.exception()

    async def _run(self, post_id: int, user_id: str) -> LikeToggleResult:
        try:
            return await self._toggle_with_retry(post_id, user_id)
        except (SQLAlchemyError, OSError) as exc:
            if not is_transient_failure(exc):
                raise
            logger.warning(
                "Like toggle failed: storage unavailable",
                extra={"post_id": post_id, "user_id": user_id},
                exc_info=exc,
            )
            raise StorageUnavailableError("Storage temporarily unavailable") from exc

    async def _toggle_with_retry(self, post_id: int, user_id: str) -> LikeToggleResult:
        for attempt in range(1, self._max_attempts + 1):
            async with self._session_maker() as session:
                try:
                    return await _apply_toggle(session, post_id=post_id, user_id=user_id)
                except IntegrityError as exc:
                    await session.rollback()
                    if not is_unique_violation(exc):
                        if await get_like_count(session, post_id) is None:
                            raise PostNotFoundError(post_id) from exc
                        raise
                    logger.info(
                        "Like insert lost a race; re-reading state",
                        extra={"post_id": post_id, "user_id": user_id, "attempt": attempt},
                    )
                    state = await read_like_state(session, post_id=post_id, user_id=user_id)
                    if state.liked:
                        return state
                except PostNotFoundError:
                    await session.rollback()
                    raise

        raise LikeConflictError(
            f"Could not toggle like for post {post_id} after {self._max_attempts} attempts"
        )


async def recount_like_counters(
    session: AsyncSession,
    post_ids: Iterable[int] | None = None,
) -> int:
    """Rebuild ``posts.likes`` from the junction table; return how many posts changed."""
    likes_column = cast(Any, Post.likes)
    like_rows = (
        select(func.count())
        .select_from(Like)
        .where(_eq(Like.post_id, Post.id))
        .scalar_subquery()
    )
    stmt = (
        update(Post)
        .where(cast(ColumnElement[bool], likes_column != like_rows))
        .values(likes=like_rows)
        .execution_options(synchronize_session=False)
    )
    if post_ids is not None:
        stmt = stmt.where(cast(Any, Post.id).in_(list(post_ids)))

    result = await session.execute(stmt)
    repaired = _rowcount(result)
    await session.commit()
    if repaired > 0:
        logger.warning("Repaired drifted like counters", extra={"repaired_posts": repaired})
    return repaired


__all__ = [
    "LikeToggleResult",
    "LikeToggleService",
    "collect_liked_post_ids",
    "get_like_count",
    "has_liked",
    "read_like_state",
    "recount_like_counters",
]
