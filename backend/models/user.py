"""User domain model."""

from __future__ import annotations

from datetime import datetime
from uuid import uuid4

from sqlalchemy import Boolean, Column, DateTime, String, func, text
from sqlmodel import Field, SQLModel

MAX_NAME_LENGTH = 50
MAX_EMAIL_LENGTH = 255


class User(SQLModel, table=True):
    """Registered application user."""

    __tablename__ = "users"

    id: str = Field(default_factory=lambda: str(uuid4()), sa_column=Column(String(36), primary_key=True))
    name: str = Field(
        sa_column=Column(String(MAX_NAME_LENGTH), nullable=False)
    )
    # Stored normalized (trimmed, lower-cased). A unique index on lower(email)
    # is created by migration 0005 so mixed-case duplicates are rejected too.
    email: str = Field(
        sa_column=Column(String(MAX_EMAIL_LENGTH), unique=True, nullable=False, index=True)
    )
    password_hash: str = Field(
        sa_column=Column(String(255), nullable=False)
    )
    remember_digest: str | None = Field(
        default=None, sa_column=Column(String(64), nullable=True)
    )
    reset_digest: str | None = Field(
        default=None, sa_column=Column(String(64), nullable=True)
    )
    reset_sent_at: datetime | None = Field(
        default=None, sa_column=Column(DateTime(timezone=True), nullable=True)
    )
    is_admin: bool = Field(
        default=False,
        sa_column=Column(
            Boolean,
            nullable=False,
            server_default=text("false"),
        ),
    )
    created_at: datetime = Field(
        sa_column=Column(
            DateTime(timezone=True), server_default=func.now(), nullable=False
        )
    )
    updated_at: datetime = Field(
        sa_column=Column(
            DateTime(timezone=True),
            server_default=func.now(),
            onupdate=func.now(),
            nullable=False,
        )
    )
