"""Post store: creation, owner-only deletion and per-owner listings."""

from __future__ import annotations

import logging
from typing import Any, cast

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import ColumnElement

from models import Post, User
from models.post import MAX_CONTENT_LENGTH
from .errors import Forbidden, PostNotFound, ValidationError
from .pagination import Page, paginate

logger = logging.getLogger(__name__)


def _eq(column: Any, value: Any) -> ColumnElement[bool]:
    return cast(ColumnElement[bool], column == value)


def _desc(column: Any) -> Any:
    return cast(Any, column).desc()


def newest_first(query: Any) -> Any:
    """Apply the standing post ordering: newest first, id as tie-breaker."""
    return query.order_by(
        _desc(cast(Any, Post.created_at)),
        _desc(cast(Any, Post.id)),
    )


def normalize_content(content: str | None) -> str:
    normalized = (content or "").strip()
    if not normalized:
        raise ValidationError.single("content", "can't be blank")
    if len(normalized) > MAX_CONTENT_LENGTH:
        raise ValidationError.single(
            "content",
            f"is too long (maximum is {MAX_CONTENT_LENGTH} characters)",
        )
    return normalized


async def create_post(
    session: AsyncSession,
    owner: User,
    content: str | None,
    *,
    image_key: str | None = None,
) -> Post:
    normalized_content = normalize_content(content)
    post = Post(user_id=owner.id, content=normalized_content, image_key=image_key)
    session.add(post)
    try:
        await session.commit()
    except Exception:
        await session.rollback()
        raise
    await session.refresh(post)
    logger.info("Post created", extra={"post_id": post.id, "user_id": owner.id})
    return post


async def get_post(session: AsyncSession, post_id: int) -> Post:
    post = await session.get(Post, post_id)
    if post is None:
        raise PostNotFound()
    return post


async def delete_post(session: AsyncSession, *, post_id: int, actor: User) -> Post:
    """Delete ``post_id`` on behalf of ``actor``.

    Unknown ids raise PostNotFound and foreign posts raise Forbidden; neither
    path touches the store.
    """
    post = await get_post(session, post_id)
    if post.user_id != actor.id:
        logger.warning(
            "Rejected delete of another user's post",
            extra={"post_id": post_id, "actor_id": actor.id},
        )
        raise Forbidden()

    await session.delete(post)
    try:
        await session.commit()
    except Exception:
        await session.rollback()
        raise
    logger.info("Post deleted", extra={"post_id": post_id, "user_id": actor.id})
    return post


async def list_by_owner(
    session: AsyncSession,
    owner: User,
    *,
    page: int,
    page_size: int,
) -> Page[Post]:
    query = newest_first(select(Post).where(_eq(Post.user_id, owner.id)))
    return await paginate(session, query, page=page, page_size=page_size)


async def count_by_owner(session: AsyncSession, owner: User) -> int:
    post_id_column = cast(ColumnElement[int], Post.id)
    result = await session.execute(
        select(func.count(post_id_column)).where(_eq(Post.user_id, owner.id))
    )
    return int(result.scalar_one() or 0)


__all__ = [
    "count_by_owner",
    "create_post",
    "delete_post",
    "get_post",
    "list_by_owner",
    "newest_first",
    "normalize_content",
]
