"""Database seed script for local development.

Usage:
    uv run python scripts/seed.py

Every seeded user signs in with ``DEFAULT_PASSWORD``. Avatars are rendered and
uploaded on a best-effort basis; users keep a null avatar when MinIO is down.
"""

from __future__ import annotations

import asyncio
import json
import sys
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any, cast

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import ColumnElement

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.append(str(ROOT_DIR))

from core.security import hash_password  # noqa: E402
from db.session import AsyncSessionMaker  # noqa: E402
from models import Post, User  # noqa: E402
from services import AvatarStorageError, generate_and_store_avatar  # noqa: E402

DEFAULT_PASSWORD = "password123"


def _eq(column: Any, value: Any) -> ColumnElement[bool]:
    return cast(ColumnElement[bool], column == value)


@dataclass(frozen=True)
class SeedUser:
    username: str
    bio: str


@dataclass(frozen=True)
class SeedPost:
    username: str
    title: str
    content: str
    album: dict[str, Any]


def _album(album_id: str, name: str, artist: str, release_date: str, cover: str) -> dict[str, Any]:
    return {
        "album_type": "album",
        "id": album_id,
        "name": name,
        "artists": [{"name": artist, "type": "artist"}],
        "external_urls": {"spotify": f"https://open.spotify.com/album/{album_id}"},
        "images": [{"height": 640, "width": 640, "url": cover}],
        "release_date": release_date,
        "release_date_precision": "day",
        "type": "album",
    }


SEED_USERS: Sequence[SeedUser] = [
    SeedUser(username="WanderlustJane", bio="Modern pop music lover"),
    SeedUser(username="GlobetrotterTom", bio="Fan of classic rock and indie music"),
]

SEED_POSTS: Sequence[SeedPost] = [
    SeedPost(
        username="WanderlustJane",
        title="Discovering the nostalgic and contemporary tone of Harry Styles!",
        content=(
            "The debut solo album of Harry Styles is a refreshing departure from his "
            "One Direction days, showcasing his versatility and depth as an artist. "
            "The self-titled album blends classic rock influences with modern pop "
            "sensibilities, resulting in a sound that is both nostalgic and contemporary."
        ),
        album=_album(
            "1FZKIm3JVDCxTchXDo5jOV",
            "Harry Styles",
            "Harry Styles",
            "2017-05-12",
            "https://i.scdn.co/image/ab67616d0000b2736c619c39c853f8b1d67b7859",
        ),
    ),
    SeedPost(
        username="GlobetrotterTom",
        title='A Journey with "Abbey Road" by The Beatles...',
        content=(
            'To me, "Abbey Road" is a timeless album that remains influential and '
            "beloved by fans around the world. It's a fitting swan song for their "
            "incredible career, showcasing their creativity, unity, and sheer talent."
        ),
        album=_album(
            "0ETFjACtuP2ADo6LFhL6HN",
            "Abbey Road (Remastered)",
            "The Beatles",
            "1969-09-26",
            "https://i.scdn.co/image/ab67616d0000b273dc30583ba717007b00cceb25",
        ),
    ),
]


async def _store_avatar(username: str) -> str | None:
    try:
        return await asyncio.to_thread(generate_and_store_avatar, username)
    except AvatarStorageError as exc:
        print(f"⚠️ Could not store avatar for '{username}': {exc}")
        return None


async def get_or_create_user(session: AsyncSession, payload: SeedUser) -> User:
    result = await session.execute(select(User).where(_eq(User.username, payload.username)))
    user = result.scalar_one_or_none()
    if user:
        return user

    user = User(
        username=payload.username,
        bio=payload.bio,
        password_hash=hash_password(DEFAULT_PASSWORD),
        avatar_key=await _store_avatar(payload.username),
    )
    session.add(user)
    await session.flush()
    return user


async def ensure_posts(session: AsyncSession, posts: Sequence[SeedPost]) -> int:
    created = 0
    for post in posts:
        result = await session.execute(
            select(Post).where(
                _eq(Post.username, post.username),
                _eq(Post.title, post.title),
            )
        )
        if result.scalar_one_or_none():
            continue

        session.add(
            Post(
                username=post.username,
                title=post.title,
                content=post.content,
                album=json.dumps(post.album),
            )
        )
        created += 1
    return created


async def seed() -> None:
    async with AsyncSessionMaker() as session:
        for payload in SEED_USERS:
            await get_or_create_user(session, payload)
        created_posts = await ensure_posts(session, SEED_POSTS)
        await session.commit()

    print("✅ Seed data inserted.")
    print("   Users:", ", ".join(user.username for user in SEED_USERS))
    print("   Default password:", DEFAULT_PASSWORD)
    print("   New posts:", created_posts)


if __name__ == "__main__":
    asyncio.run(seed())
