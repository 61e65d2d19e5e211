"""Session and remember-me helpers."""

from .cookies import (
    ACCESS_COOKIE,
    REMEMBER_COOKIE,
    clear_remember_cookie,
    clear_session_cookies,
    set_access_cookie,
    set_remember_cookie,
)
from .remember import issue_remember_token, resolve_remembered_user

__all__ = [
    "ACCESS_COOKIE",
    "REMEMBER_COOKIE",
    "clear_remember_cookie",
    "clear_session_cookies",
    "set_access_cookie",
    "set_remember_cookie",
    "issue_remember_token",
    "resolve_remembered_user",
]
