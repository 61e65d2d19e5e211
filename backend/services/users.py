"""User directory: accounts, remember-me and password reset."""

from __future__ import annotations

import hashlib
import hmac
import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, cast

from sqlalchemy import delete, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import ColumnElement

from core import hash_password, settings, verify_password
from db.errors import is_unique_violation
from models import Post, Relationship, User
from models.user import MAX_EMAIL_LENGTH, MAX_NAME_LENGTH
from .errors import (
    DuplicateEmail,
    FieldErrors,
    Forbidden,
    InvalidToken,
    UserNotFound,
    ValidationError,
)
from .pagination import Page, paginate

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6
MAX_PASSWORD_LENGTH = 128


def _eq(column: Any, value: Any) -> ColumnElement[bool]:
    return cast(ColumnElement[bool], column == value)


def _asc(column: Any) -> Any:
    return cast(Any, column).asc()


def normalize_email(value: str) -> str:
    return value.strip().lower()


def digest_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def ensure_aware(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _validate_name(name: str, errors: FieldErrors) -> str:
    normalized = name.strip()
    if not normalized:
        errors.setdefault("name", []).append("can't be blank")
    elif len(normalized) > MAX_NAME_LENGTH:
        errors.setdefault("name", []).append(
            f"is too long (maximum is {MAX_NAME_LENGTH} characters)"
        )
    return normalized


def _validate_email(email: str, errors: FieldErrors) -> str:
    normalized = normalize_email(email)
    if not normalized:
        errors.setdefault("email", []).append("can't be blank")
    elif len(normalized) > MAX_EMAIL_LENGTH:
        errors.setdefault("email", []).append(
            f"is too long (maximum is {MAX_EMAIL_LENGTH} characters)"
        )
    elif "@" not in normalized.strip("@"):
        errors.setdefault("email", []).append("is invalid")
    return normalized


def _validate_password(password: str, errors: FieldErrors) -> None:
    if not password.strip():
        errors.setdefault("password", []).append("can't be blank")
    elif len(password) < MIN_PASSWORD_LENGTH:
        errors.setdefault("password", []).append(
            f"is too short (minimum is {MIN_PASSWORD_LENGTH} characters)"
        )
    elif len(password) > MAX_PASSWORD_LENGTH:
        errors.setdefault("password", []).append(
            f"is too long (maximum is {MAX_PASSWORD_LENGTH} characters)"
        )


async def _commit_user(session: AsyncSession, user: User) -> User:
    try:
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        if is_unique_violation(exc):
            raise DuplicateEmail() from exc
        raise
    await session.refresh(user)
    return user


async def find_by_email(session: AsyncSession, email: str) -> User | None:
    lowered_email_column = cast(Any, func.lower(cast(Any, User.email)))
    result = await session.execute(
        select(User).where(_eq(lowered_email_column, normalize_email(email))).limit(1)
    )
    return result.scalar_one_or_none()


async def get_user(session: AsyncSession, user_id: str) -> User:
    user = await session.get(User, user_id)
    if user is None:
        raise UserNotFound()
    return user


async def create_user(
    session: AsyncSession,
    *,
    name: str,
    email: str,
    password: str,
    is_admin: bool = False,
) -> User:
    """Create an account.

    The email lookup only produces a friendlier early error; the unique
    indexes on ``users.email`` decide races between concurrent signups.
    """
    errors: FieldErrors = {}
    normalized_name = _validate_name(name, errors)
    normalized_email = _validate_email(email, errors)
    _validate_password(password, errors)
    if errors:
        raise ValidationError(errors)

    if await find_by_email(session, normalized_email) is not None:
        raise DuplicateEmail()

    user = User(
        name=normalized_name,
        email=normalized_email,
        password_hash=hash_password(password),
        is_admin=is_admin,
    )
    session.add(user)
    await _commit_user(session, user)
    logger.info("User created", extra={"user_id": user.id})
    return user


async def update_user(
    session: AsyncSession,
    user: User,
    *,
    name: str | None = None,
    email: str | None = None,
    password: str | None = None,
) -> User:
    errors: FieldErrors = {}
    normalized_name = _validate_name(name, errors) if name is not None else None
    normalized_email = _validate_email(email, errors) if email is not None else None
    # A blank password on update means "leave unchanged".
    if password:
        _validate_password(password, errors)
    if errors:
        raise ValidationError(errors)

    if normalized_name is not None:
        user.name = normalized_name
    if normalized_email is not None and normalized_email != user.email:
        existing = await find_by_email(session, normalized_email)
        if existing is not None and existing.id != user.id:
            raise DuplicateEmail()
        user.email = normalized_email
    if password:
        user.password_hash = hash_password(password)
    session.add(user)
    return await _commit_user(session, user)


async def authenticate(session: AsyncSession, email: str, password: str) -> User | None:
    user = await find_by_email(session, email)
    if user is None or not verify_password(password, user.password_hash):
        return None
    return user


async def list_users(session: AsyncSession, *, page: int, page_size: int) -> Page[User]:
    query = select(User).order_by(_asc(User.created_at), _asc(User.id))
    return await paginate(session, query, page=page, page_size=page_size)


@dataclass(frozen=True)
class UserDeletion:
    user_id: str
    posts_deleted: int
    relationships_deleted: int


async def delete_user(
    session: AsyncSession,
    *,
    actor: User,
    target_id: str,
) -> UserDeletion:
    """Remove a user with their posts and every follow edge touching them.

    All deletes run in one transaction so no reader sees orphaned rows.
    """
    if not actor.is_admin:
        raise Forbidden()
    if actor.id == target_id:
        raise Forbidden("Admins cannot delete their own account")

    target = await get_user(session, target_id)
    try:
        posts_result = await session.execute(
            delete(Post).where(_eq(Post.user_id, target_id))
        )
        edges_result = await session.execute(
            delete(Relationship).where(
                or_(
                    _eq(Relationship.follower_id, target_id),
                    _eq(Relationship.followed_id, target_id),
                )
            )
        )
        await session.delete(target)
        await session.commit()
    except Exception:
        await session.rollback()
        raise

    deletion = UserDeletion(
        user_id=target_id,
        posts_deleted=int(getattr(posts_result, "rowcount", 0) or 0),
        relationships_deleted=int(getattr(edges_result, "rowcount", 0) or 0),
    )
    logger.info(
        "User deleted",
        extra={
            "user_id": target_id,
            "actor_id": actor.id,
            "posts_deleted": deletion.posts_deleted,
            "relationships_deleted": deletion.relationships_deleted,
        },
    )
    return deletion


async def remember(session: AsyncSession, user: User, token: str) -> None:
    """Persist the digest of ``token`` as the user's remember-me credential."""
    user.remember_digest = digest_token(token)
    session.add(user)
    await session.commit()


async def forget(session: AsyncSession, user: User) -> None:
    if user.remember_digest is None:
        return
    user.remember_digest = None
    session.add(user)
    await session.commit()


def is_remember_token_valid(user: User, token: str) -> bool:
    if user.remember_digest is None:
        return False
    return hmac.compare_digest(user.remember_digest, digest_token(token))


async def create_reset_token(session: AsyncSession, user: User) -> str:
    token = secrets.token_urlsafe(32)
    user.reset_digest = digest_token(token)
    user.reset_sent_at = datetime.now(timezone.utc)
    session.add(user)
    await session.commit()
    logger.info("Password reset issued", extra={"user_id": user.id})
    return token


def is_reset_token_valid(user: User, token: str, *, now: datetime | None = None) -> bool:
    if user.reset_digest is None or user.reset_sent_at is None:
        return False
    if not hmac.compare_digest(user.reset_digest, digest_token(token)):
        return False
    expires_at = ensure_aware(user.reset_sent_at) + timedelta(
        minutes=settings.password_reset_expire_minutes
    )
    return (now or datetime.now(timezone.utc)) < expires_at


async def reset_password(
    session: AsyncSession,
    *,
    email: str,
    token: str,
    password: str,
) -> User:
    user = await find_by_email(session, email)
    if user is None or not is_reset_token_valid(user, token):
        raise InvalidToken()

    errors: FieldErrors = {}
    _validate_password(password, errors)
    if errors:
        raise ValidationError(errors)

    user.password_hash = hash_password(password)
    user.reset_digest = None
    user.reset_sent_at = None
    # Existing remember-me sessions do not survive a password reset.
    user.remember_digest = None
    session.add(user)
    await session.commit()
    await session.refresh(user)
    logger.info("Password reset completed", extra={"user_id": user.id})
    return user


__all__ = [
    "MIN_PASSWORD_LENGTH",
    "UserDeletion",
    "authenticate",
    "create_reset_token",
    "create_user",
    "delete_user",
    "digest_token",
    "ensure_aware",
    "find_by_email",
    "forget",
    "get_user",
    "is_remember_token_valid",
    "is_reset_token_valid",
    "list_users",
    "normalize_email",
    "remember",
    "reset_password",
    "update_user",
]
