"""Blog post model."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import CheckConstraint, Column, DateTime, Index, Integer, String, Text, func, text
from sqlmodel import Field, SQLModel


class Post(SQLModel, table=True):
    """Text post owned by a user.

    ``username`` is a denormalized copy of the author's display name rather than
    a foreign key. ``likes`` caches the number of rows in ``likes`` for this post
    and is only written by the like toggle and the recount procedure.
    """

    __tablename__ = "posts"
    __table_args__ = (
        CheckConstraint("likes >= 0", name="ck_posts_likes_non_negative"),
        Index("ix_posts_likes_created_at", "likes", "created_at"),
    )

    id: int | None = Field(default=None, sa_column=Column(Integer, primary_key=True))
    title: str = Field(sa_column=Column(String(200), nullable=False))
    content: str = Field(sa_column=Column(Text, nullable=False))
    username: str = Field(sa_column=Column(String(30), nullable=False, index=True))
    likes: int = Field(
        default=0,
        sa_column=Column(Integer, nullable=False, server_default=text("0")),
    )
    # Opaque serialized album payload; stored and returned verbatim.
    album: str | None = Field(default=None, sa_column=Column(Text, nullable=True))
    created_at: datetime = Field(
        sa_column=Column(
            DateTime(timezone=True), server_default=func.now(), nullable=False
        )
    )
