"""HTTP cookie helpers for session token transport."""

from __future__ import annotations

from datetime import timedelta
from typing import Literal

from fastapi import Response

from core import settings

ACCESS_COOKIE = "access_token"
REMEMBER_COOKIE = "remember_token"
COOKIE_PATH = "/"
COOKIE_SAMESITE: Literal["lax", "strict", "none"] = "lax"
COOKIE_SECURE = (
    settings.app_env.strip().lower() not in {"local", "test"}
    and not settings.allow_insecure_http_cookies
)


def _max_age(minutes: int) -> int:
    return int(timedelta(minutes=minutes).total_seconds())


def _set_cookie(response: Response, key: str, value: str, max_age: int) -> None:
    response.set_cookie(
        key=key,
        value=value,
        httponly=True,
        secure=COOKIE_SECURE,
        samesite=COOKIE_SAMESITE,
        max_age=max_age,
        path=COOKIE_PATH,
    )


def set_access_cookie(response: Response, access_token: str) -> None:
    _set_cookie(
        response,
        ACCESS_COOKIE,
        access_token,
        _max_age(settings.access_token_expire_minutes),
    )


def set_remember_cookie(response: Response, remember_token: str) -> None:
    _set_cookie(
        response,
        REMEMBER_COOKIE,
        remember_token,
        _max_age(settings.remember_token_expire_minutes),
    )


def _clear_cookie(response: Response, key: str) -> None:
    response.delete_cookie(
        key=key,
        path=COOKIE_PATH,
        secure=COOKIE_SECURE,
        samesite=COOKIE_SAMESITE,
    )


def clear_remember_cookie(response: Response) -> None:
    _clear_cookie(response, REMEMBER_COOKIE)


def clear_session_cookies(response: Response) -> None:
    for key in (ACCESS_COOKIE, REMEMBER_COOKIE):
        _clear_cookie(response, key)
