"""Tests for maintenance script helpers."""

from typing import cast

import pytest
from sqlalchemy import select
from sqlalchemy.sql import ColumnElement

from core import hash_password
from models import Post, User
from scripts import backfill_avatars, recount_likes


def test_parse_post_ids_defaults_to_all_posts() -> None:
    assert recount_likes._parse_post_ids([]) is None


def test_parse_post_ids_accepts_positive_integers() -> None:
    assert recount_likes._parse_post_ids(["7", "12"]) == [7, 12]


@pytest.mark.parametrize("raw_value", ["0", "-3", "seven"])
def test_parse_post_ids_rejects_invalid_values(raw_value: str) -> None:
    with pytest.raises(ValueError):
        recount_likes._parse_post_ids([raw_value])


@pytest.mark.asyncio
async def test_run_repairs_drifted_counter(session_maker, db_session, monkeypatch) -> None:
    db_session.add(Post(title="Drifted", content="Counter is off.", username="nobody", likes=3))
    await db_session.commit()
    monkeypatch.setattr(recount_likes, "AsyncSessionMaker", session_maker)

    repaired = await recount_likes.run([])

    assert repaired == 1
    result = await db_session.execute(select(cast(ColumnElement[int], Post.likes)))
    assert result.scalar_one() == 0


async def _stored_avatar_key(db_session, username: str) -> str | None:
    result = await db_session.execute(
        select(cast(ColumnElement[str], User.avatar_key)).where(
            cast(ColumnElement[bool], User.username == username)
        )
    )
    return result.scalar_one()


@pytest.mark.asyncio
async def test_backfill_stores_missing_avatars(
    session_maker, db_session, monkeypatch, fake_minio
) -> None:
    db_session.add(User(username="nick_drake", password_hash=hash_password("Sup3rSecret!")))
    db_session.add(
        User(
            username="has_avatar",
            password_hash=hash_password("Sup3rSecret!"),
            avatar_key="avatars/has_avatar.png",
        )
    )
    await db_session.commit()
    monkeypatch.setattr(backfill_avatars, "AsyncSessionMaker", session_maker)

    stored, failed = await backfill_avatars.run()

    assert (stored, failed) == (1, 0)
    assert list(fake_minio.objects) == ["avatars/nick_drake.png"]
    assert fake_minio.objects["avatars/nick_drake.png"][1] == "image/png"
    db_session.expire_all()
    assert await _stored_avatar_key(db_session, "nick_drake") == "avatars/nick_drake.png"


@pytest.mark.asyncio
async def test_backfill_leaves_users_untouched_when_storage_fails(
    session_maker, db_session, monkeypatch, fake_minio
) -> None:
    db_session.add(User(username="nick_drake", password_hash=hash_password("Sup3rSecret!")))
    await db_session.commit()
    monkeypatch.setattr(backfill_avatars, "AsyncSessionMaker", session_maker)
    fake_minio.fail_writes = True

    stored, failed = await backfill_avatars.run()

    assert (stored, failed) == (0, 1)
    assert fake_minio.objects == {}
    db_session.expire_all()
    assert await _stored_avatar_key(db_session, "nick_drake") is None
