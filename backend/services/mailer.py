"""Outgoing mail seam.

Delivery is handled outside this service; the default mailer only logs the
message so local development can follow password-reset links.
"""

from __future__ import annotations

import logging
from typing import Protocol
from urllib.parse import quote

logger = logging.getLogger(__name__)

PASSWORD_RESET_PATH = "/password-resets"


class Mailer(Protocol):
    def send_password_reset(self, *, email: str, name: str, token: str) -> None: ...


def password_reset_link(email: str, token: str) -> str:
    return f"{PASSWORD_RESET_PATH}/{token}?email={quote(email, safe='')}"


class LoggingMailer:
    def send_password_reset(self, *, email: str, name: str, token: str) -> None:
        logger.info(
            "Password reset link for %s: %s",
            name,
            password_reset_link(email, token),
            extra={"email": email},
        )


_mailer: Mailer | None = None


def get_mailer() -> Mailer:
    global _mailer
    if _mailer is None:
        _mailer = LoggingMailer()
    return _mailer


def set_mailer(mailer: Mailer | None) -> None:
    """Override the mailer (primarily for tests)."""
    global _mailer
    _mailer = mailer
