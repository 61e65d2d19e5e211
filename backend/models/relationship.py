"""Follow edge between two users."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Index, String, func
from sqlmodel import Field, SQLModel


class Relationship(SQLModel, table=True):
    """Directed edge: ``follower_id`` receives ``followed_id``'s posts."""

    __tablename__ = "relationships"
    __table_args__ = (
        Index(
            "ix_relationships_followed_created_at",
            "followed_id",
            "created_at",
        ),
    )

    # The composite primary key doubles as the unique (follower, followed) index.
    follower_id: str = Field(
        sa_column=Column(
            String(36),
            ForeignKey("users.id", ondelete="CASCADE"),
            primary_key=True,
        )
    )
    followed_id: str = Field(
        sa_column=Column(
            String(36),
            ForeignKey("users.id", ondelete="CASCADE"),
            primary_key=True,
        )
    )
    created_at: datetime = Field(
        sa_column=Column(
            DateTime(timezone=True),
            server_default=func.now(),
            nullable=False,
        )
    )
