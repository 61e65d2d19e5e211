"""Home feed composition."""

from __future__ import annotations

from typing import cast

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import ColumnElement

from models import Post, User
from .pagination import Page, paginate
from .posts import newest_first
from .relationships import following_ids_subquery


def feed_filter(user_id: str) -> ColumnElement[bool]:
    """``posts.user_id = :user OR posts.user_id IN (followed ids)``.

    The follow set stays inside the database as a subquery, so the query
    cost does not grow with a Python-side id list.
    """
    post_user_column = cast(ColumnElement[str], Post.user_id)
    return cast(
        ColumnElement[bool],
        or_(
            post_user_column == user_id,
            post_user_column.in_(following_ids_subquery(user_id)),
        ),
    )


async def feed(
    session: AsyncSession,
    user: User,
    *,
    page: int,
    page_size: int,
) -> Page[Post]:
    query = newest_first(select(Post).where(feed_filter(user.id)))
    return await paginate(session, query, page=page, page_size=page_size)


__all__ = ["feed", "feed_filter"]
