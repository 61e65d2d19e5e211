"""Remember-me tokens: long-lived signed cookies backed by a stored digest."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from core import REMEMBER_TOKEN_TYPE, create_remember_token, decode_token
from models import User
from services import users as user_directory


async def issue_remember_token(session: AsyncSession, user: User) -> str:
    """Mint a remember token and make it the only valid one for ``user``."""
    token = create_remember_token(user.id)
    await user_directory.remember(session, user, token)
    return token


async def resolve_remembered_user(session: AsyncSession, token: str) -> User | None:
    """Return the user a remember cookie belongs to, or None when it is stale."""
    try:
        payload = decode_token(token)
    except ValueError:
        return None
    if payload.get("type") != REMEMBER_TOKEN_TYPE:
        return None

    subject = payload.get("sub")
    if not isinstance(subject, str) or not subject:
        return None

    user = await session.get(User, subject)
    if user is None or not user_directory.is_remember_token_valid(user, token):
        return None
    return user
