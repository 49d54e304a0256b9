"""Generate and store letter avatars for users that have none.

Usage:
    uv run python scripts/backfill_avatars.py
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from typing import Any, cast

from sqlalchemy import select
from sqlalchemy.sql import ColumnElement

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.append(str(ROOT_DIR))

from db.session import AsyncSessionMaker  # noqa: E402
from models import User  # noqa: E402
from services import (  # noqa: E402
    AvatarStorageError,
    InvalidDisplayNameError,
    generate_and_store_avatar,
)


def _is_null(column: Any) -> ColumnElement[bool]:
    return cast(ColumnElement[bool], column.is_(None))


async def run() -> tuple[int, int]:
    stored = 0
    failed = 0
    async with AsyncSessionMaker() as session:
        result = await session.execute(select(User).where(_is_null(User.avatar_key)))
        users = list(result.scalars().all())
        for user in users:
            try:
                user.avatar_key = await asyncio.to_thread(
                    generate_and_store_avatar, user.username
                )
            except (AvatarStorageError, InvalidDisplayNameError) as exc:
                failed += 1
                print(f"⚠️ Skipped avatar for '{user.username}': {exc}")
                continue
            session.add(user)
            stored += 1
        await session.commit()

    print(f"Avatar backfill complete: stored={stored} failed={failed}")
    return stored, failed


if __name__ == "__main__":
    asyncio.run(run())
