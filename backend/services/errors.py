"""Domain errors raised by the service layer.

Each error carries the HTTP status and client-facing payload it maps to, so
the API registers a single exception handler instead of translating errors
route by route.
"""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

from fastapi import status

SAFE_DEFAULT_PATH = "/"
FieldErrors = dict[str, list[str]]


class ServiceError(Exception):
    status_code: int = status.HTTP_400_BAD_REQUEST
    detail: str = "Request could not be processed"

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(detail or self.detail)
        if detail is not None:
            self.detail = detail

    @property
    def redirect_to(self) -> str | None:
        return None

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"detail": self.detail}
        if self.redirect_to is not None:
            payload["redirect_to"] = self.redirect_to
        return payload


class ValidationError(ServiceError):
    """Field-level validation failure; nothing was written."""

    status_code = status.HTTP_422_UNPROCESSABLE_CONTENT
    detail = "Validation failed"

    def __init__(self, errors: FieldErrors, detail: str | None = None) -> None:
        super().__init__(detail)
        self.errors = errors

    @classmethod
    def single(cls, field: str, message: str) -> "ValidationError":
        return cls({field: [message]})

    def to_payload(self) -> dict[str, Any]:
        payload = super().to_payload()
        payload["errors"] = self.errors
        return payload


class DuplicateEmail(ValidationError):
    status_code = status.HTTP_409_CONFLICT
    detail = "Email has already been taken"

    def __init__(self) -> None:
        super().__init__({"email": ["has already been taken"]})


class PasswordMismatch(ValidationError):
    detail = "Password confirmation doesn't match Password"

    def __init__(self) -> None:
        super().__init__({"password_confirmation": ["doesn't match Password"]})


class InvalidToken(ServiceError):
    detail = "Token is invalid or has expired"


class Forbidden(ServiceError):
    status_code = status.HTTP_403_FORBIDDEN
    detail = "Not permitted"

    @property
    def redirect_to(self) -> str | None:
        return SAFE_DEFAULT_PATH


class NotFound(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND
    detail = "Not found"

    @property
    def redirect_to(self) -> str | None:
        return SAFE_DEFAULT_PATH


class UserNotFound(NotFound):
    detail = "User not found"


class PostNotFound(NotFound):
    detail = "Post not found"


class NotAuthenticated(ServiceError):
    status_code = status.HTTP_401_UNAUTHORIZED
    detail = "Please log in"

    def __init__(self, *, login_path: str, next_path: str | None = None) -> None:
        super().__init__()
        self.login_path = login_path
        self.next_path = next_path

    @property
    def redirect_to(self) -> str | None:
        if not self.next_path:
            return self.login_path
        return f"{self.login_path}?next={quote(self.next_path, safe='')}"


def safe_redirect_path(candidate: str | None) -> str:
    """Return ``candidate`` when it is a local path, otherwise the default page."""
    if not candidate:
        return SAFE_DEFAULT_PATH
    if not candidate.startswith("/") or candidate.startswith("//") or "\\" in candidate:
        return SAFE_DEFAULT_PATH
    return candidate


__all__ = [
    "SAFE_DEFAULT_PATH",
    "FieldErrors",
    "ServiceError",
    "ValidationError",
    "DuplicateEmail",
    "PasswordMismatch",
    "InvalidToken",
    "Forbidden",
    "NotFound",
    "UserNotFound",
    "PostNotFound",
    "NotAuthenticated",
    "safe_redirect_path",
]
