"""Database helpers."""

from .errors import is_unique_violation
from .session import AsyncSessionMaker, async_engine, create_engine_for_url, get_session

__all__ = [
    "AsyncSessionMaker",
    "async_engine",
    "create_engine_for_url",
    "get_session",
    "is_unique_violation",
]
