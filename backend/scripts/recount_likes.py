"""Maintenance script that rebuilds cached post like counters.

Usage:
    uv run python scripts/recount_likes.py
    uv run python scripts/recount_likes.py 7 12

With post ids as arguments only those posts are checked.
"""

from __future__ import annotations

import asyncio
import sys
from collections.abc import Sequence
from pathlib import Path
from time import perf_counter

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.append(str(ROOT_DIR))

from db.session import AsyncSessionMaker  # noqa: E402
from services.likes import recount_like_counters  # noqa: E402


def _parse_post_ids(raw_values: Sequence[str]) -> list[int] | None:
    if not raw_values:
        return None
    post_ids: list[int] = []
    for raw_value in raw_values:
        try:
            parsed = int(raw_value)
        except ValueError as exc:
            raise ValueError(f"post id must be an integer: {raw_value!r}") from exc
        if parsed <= 0:
            raise ValueError(f"post id must be positive: {parsed}")
        post_ids.append(parsed)
    return post_ids


async def run(argv: Sequence[str]) -> int:
    post_ids = _parse_post_ids(argv)
    started_at = perf_counter()
    async with AsyncSessionMaker() as session:
        repaired = await recount_like_counters(session, post_ids)

    elapsed_ms = int((perf_counter() - started_at) * 1000)
    scope = "all posts" if post_ids is None else f"{len(post_ids)} posts"
    print(f"Like recount complete: scope={scope}, repaired={repaired}, elapsed_ms={elapsed_ms}")
    return repaired


def main() -> None:
    asyncio.run(run(sys.argv[1:]))


if __name__ == "__main__":
    main()
