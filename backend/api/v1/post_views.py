"""Shared post view models and author lookups."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import cast

from pydantic import BaseModel, ConfigDict
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import ColumnElement

from models import Post, User


class PostResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: str
    author_name: str | None = None
    content: str
    image_key: str | None = None
    created_at: datetime

    @classmethod
    def from_post(cls, post: Post, author_name: str | None = None) -> "PostResponse":
        if post.id is None:
            raise ValueError("Post record missing identifier")
        return cls(
            id=post.id,
            user_id=post.user_id,
            author_name=author_name,
            content=post.content,
            image_key=post.image_key,
            created_at=post.created_at,
        )


PostResponse.model_rebuild()


async def collect_author_names(
    session: AsyncSession,
    user_ids: Sequence[str],
) -> dict[str, str]:
    if not user_ids:
        return {}

    id_column = cast(ColumnElement[str], User.id)
    name_column = cast(ColumnElement[str], User.name)
    result = await session.execute(
        select(id_column, name_column).where(id_column.in_(set(user_ids)))
    )
    return {user_id: name for user_id, name in result.all()}


async def build_post_responses(
    session: AsyncSession,
    posts: Sequence[Post],
) -> list[PostResponse]:
    names = await collect_author_names(session, [post.user_id for post in posts])
    return [PostResponse.from_post(post, author_name=names.get(post.user_id)) for post in posts]
