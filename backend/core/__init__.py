"""Core configuration and security helpers."""

from .config import Settings, get_settings, settings
from .logging import configure_logging
from .security import (
    ACCESS_TOKEN_TYPE,
    REMEMBER_TOKEN_TYPE,
    create_access_token,
    create_remember_token,
    decode_token,
    hash_password,
    needs_rehash,
    verify_password,
)

__all__ = [
    "Settings",
    "get_settings",
    "settings",
    "configure_logging",
    "ACCESS_TOKEN_TYPE",
    "REMEMBER_TOKEN_TYPE",
    "create_access_token",
    "create_remember_token",
    "decode_token",
    "hash_password",
    "needs_rehash",
    "verify_password",
]
