"""Follow graph queries and mutations."""

from __future__ import annotations

import logging
from typing import Any, cast

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import ColumnElement, Select

from db.errors import is_unique_violation
from models import Relationship, User
from .errors import ValidationError
from .pagination import Page, paginate

logger = logging.getLogger(__name__)


def _eq(column: Any, value: Any) -> ColumnElement[bool]:
    return cast(ColumnElement[bool], column == value)


def _asc(column: Any) -> Any:
    return cast(Any, column).asc()


def following_ids_subquery(user_id: str) -> Select[Any]:
    """SELECT of the ids ``user_id`` follows, for use inside IN (...) filters."""
    followed_column = cast(ColumnElement[str], Relationship.followed_id)
    return select(followed_column).where(_eq(Relationship.follower_id, user_id))


async def is_following(
    session: AsyncSession,
    *,
    follower_id: str,
    followed_id: str,
) -> bool:
    result = await session.execute(
        select(Relationship).where(
            _eq(Relationship.follower_id, follower_id),
            _eq(Relationship.followed_id, followed_id),
        )
    )
    return result.scalar_one_or_none() is not None


async def follow(session: AsyncSession, follower: User, target: User) -> bool:
    """Create the follower -> target edge.

    Returns True when a new edge was written and False when it already
    existed. The composite primary key settles concurrent duplicate follows;
    the loser's unique violation is reported as "already following".
    """
    if follower.id == target.id:
        raise ValidationError.single("followed_id", "cannot follow yourself")

    if await is_following(session, follower_id=follower.id, followed_id=target.id):
        return False

    session.add(Relationship(follower_id=follower.id, followed_id=target.id))
    try:
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        if is_unique_violation(exc):
            return False
        raise
    logger.info(
        "User followed",
        extra={"follower_id": follower.id, "followed_id": target.id},
    )
    return True


async def unfollow(session: AsyncSession, follower: User, target: User) -> bool:
    """Remove the follower -> target edge; returns False when there was none."""
    result = await session.execute(
        delete(Relationship).where(
            _eq(Relationship.follower_id, follower.id),
            _eq(Relationship.followed_id, target.id),
        )
    )
    await session.commit()
    removed = bool(getattr(result, "rowcount", 0))
    if removed:
        logger.info(
            "User unfollowed",
            extra={"follower_id": follower.id, "followed_id": target.id},
        )
    return removed


async def following_of(
    session: AsyncSession,
    user: User,
    *,
    page: int,
    page_size: int,
) -> Page[User]:
    query = (
        select(User)
        .join(Relationship, _eq(Relationship.followed_id, User.id))
        .where(_eq(Relationship.follower_id, user.id))
        .order_by(_asc(Relationship.created_at), _asc(User.id))
    )
    return await paginate(session, query, page=page, page_size=page_size)


async def followers_of(
    session: AsyncSession,
    user: User,
    *,
    page: int,
    page_size: int,
) -> Page[User]:
    query = (
        select(User)
        .join(Relationship, _eq(Relationship.follower_id, User.id))
        .where(_eq(Relationship.followed_id, user.id))
        .order_by(_asc(Relationship.created_at), _asc(User.id))
    )
    return await paginate(session, query, page=page, page_size=page_size)


async def follow_counts(session: AsyncSession, user: User) -> tuple[int, int]:
    """Return ``(following, followers)`` for ``user``."""
    follower_column = cast(ColumnElement[str], Relationship.follower_id)
    followed_column = cast(ColumnElement[str], Relationship.followed_id)
    following = await session.execute(
        select(func.count(followed_column)).where(_eq(follower_column, user.id))
    )
    followers = await session.execute(
        select(func.count(follower_column)).where(_eq(followed_column, user.id))
    )
    return int(following.scalar_one() or 0), int(followers.scalar_one() or 0)


__all__ = [
    "follow",
    "follow_counts",
    "followers_of",
    "following_ids_subquery",
    "following_of",
    "is_following",
    "unfollow",
]
