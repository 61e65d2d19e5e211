"""Redis-backed rate limiting for the authentication endpoints."""

from __future__ import annotations

import time
from functools import lru_cache
from typing import Callable, Iterable, Protocol, runtime_checkable

from fastapi import status
from fastapi.responses import JSONResponse
from redis.asyncio import Redis
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.types import ASGIApp

from core import decode_token, settings


@runtime_checkable
class SupportsRateLimitClient(Protocol):
    async def incr(self, key: str) -> int: ...

    async def expire(self, key: str, ttl: int) -> None: ...


ACCESS_COOKIE_NAME = "access_token"
AUTH_PATH_PREFIX = "/api/v1/auth"


def _extract_subject_from_token(token: str) -> str | None:
    try:
        payload = decode_token(token)
    except ValueError:
        return None

    subject = payload.get("sub")
    if isinstance(subject, str):
        normalized = subject.strip()
        return normalized or None
    return None


def default_client_identifier(request: Request) -> str:
    """Resolve a stable client identifier for rate limiting."""
    access_token = request.cookies.get(ACCESS_COOKIE_NAME)
    if access_token:
        subject = _extract_subject_from_token(access_token)
        if subject:
            return f"user:{subject}"

    if request.client and request.client.host:
        return request.client.host
    return "anonymous"


class RateLimiter:
    """Simple fixed-window rate limiter backed by Redis."""

    def __init__(
        self,
        redis_client: SupportsRateLimitClient,
        limit: int,
        window_seconds: int,
        prefix: str = "rate-limit",
    ) -> None:
        self.redis = redis_client
        self.limit = max(limit, 0)
        self.window_seconds = max(window_seconds, 0)
        self.prefix = prefix

    async def allow(self, key: str) -> bool:
        """Return True when the request should be allowed, False if limited."""
        if self.limit == 0 or self.window_seconds == 0:
            return True

        bucket = int(time.time()) // self.window_seconds
        redis_key = f"{self.prefix}:{key}:{bucket}"

        count = await self.redis.incr(redis_key)
        if count == 1:
            await self.redis.expire(redis_key, self.window_seconds)
        return count <= self.limit


@lru_cache
def get_redis_client() -> SupportsRateLimitClient:
    """Return a cached async Redis client."""
    return Redis.from_url(settings.redis_url, decode_responses=False)


_cached_rate_limiter: RateLimiter | None = None


def get_rate_limiter() -> RateLimiter:
    """Singleton accessor for the shared rate limiter."""
    global _cached_rate_limiter
    if _cached_rate_limiter is None:
        _cached_rate_limiter = RateLimiter(
            redis_client=get_redis_client(),
            limit=settings.rate_limit_requests,
            window_seconds=settings.rate_limit_window_seconds,
        )
    return _cached_rate_limiter


def set_rate_limiter(limiter: RateLimiter | None) -> None:
    """Override the cached rate limiter (primarily for tests)."""
    global _cached_rate_limiter
    _cached_rate_limiter = limiter


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Enforce the configured limit on requests under ``limited_prefixes``."""

    def __init__(
        self,
        app: ASGIApp,
        limiter_factory: Callable[[], RateLimiter],
        limited_prefixes: Iterable[str] = (AUTH_PATH_PREFIX,),
        client_identifier: Callable[[Request], str] | None = None,
    ) -> None:
        super().__init__(app)
        self.limiter_factory = limiter_factory
        self.limited_prefixes = tuple(limited_prefixes)
        self.client_identifier = client_identifier or default_client_identifier

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint):
        path = request.url.path
        if not any(path.startswith(prefix) for prefix in self.limited_prefixes):
            return await call_next(request)

        try:
            limiter = self.limiter_factory()
            is_allowed = await limiter.allow(self.client_identifier(request) or "anonymous")
        except Exception:  # pragma: no cover - Redis outage
            # Auth endpoints fail closed.
            return JSONResponse(
                {"detail": "Service unavailable"},
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            )

        if not is_allowed:
            return JSONResponse(
                {"detail": "Too Many Requests"},
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            )

        return await call_next(request)
