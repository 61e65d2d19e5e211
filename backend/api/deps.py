"""Shared FastAPI dependencies."""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Annotated

from fastapi import Depends, Query, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from core import ACCESS_TOKEN_TYPE, create_access_token, decode_token, settings
from db.session import get_session
from models import User
from services.auth import (
    ACCESS_COOKIE,
    REMEMBER_COOKIE,
    resolve_remembered_user,
    set_access_cookie,
)
from services.errors import NotAuthenticated


async def get_db() -> AsyncIterator[AsyncSession]:
    async for session in get_session():
        yield session


def _extract_access_token(request: Request) -> str | None:
    cookie_token = request.cookies.get(ACCESS_COOKIE)
    if cookie_token:
        return cookie_token

    authorization = request.headers.get("authorization", "")
    scheme, _, value = authorization.partition(" ")
    if scheme.lower() == "bearer" and value.strip():
        return value.strip()
    return None


async def _user_from_access_token(session: AsyncSession, token: str) -> User | None:
    try:
        payload = decode_token(token)
    except ValueError:
        return None
    if payload.get("type") != ACCESS_TOKEN_TYPE:
        return None
    subject = payload.get("sub")
    if not isinstance(subject, str) or not subject:
        return None
    return await session.get(User, subject)


async def get_optional_user(
    request: Request,
    response: Response,
    session: AsyncSession = Depends(get_db),
) -> User | None:
    """Resolve the acting user from the access token, then the remember cookie."""
    access_token = _extract_access_token(request)
    if access_token:
        user = await _user_from_access_token(session, access_token)
        if user is not None:
            return user

    remember_token = request.cookies.get(REMEMBER_COOKIE)
    if remember_token:
        user = await resolve_remembered_user(session, remember_token)
        if user is not None:
            set_access_cookie(response, create_access_token(user.id))
            return user
    return None


async def get_current_user(
    request: Request,
    user: User | None = Depends(get_optional_user),
) -> User:
    if user is None:
        # Only safe (GET) destinations are remembered for friendly forwarding.
        next_path = request.url.path if request.method == "GET" else None
        if next_path and request.url.query:
            next_path = f"{next_path}?{request.url.query}"
        raise NotAuthenticated(login_path=settings.login_path, next_path=next_path)
    return user


def get_page(page: Annotated[int, Query(ge=1)] = 1) -> int:
    return page
