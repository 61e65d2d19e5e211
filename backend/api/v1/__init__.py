"""Version 1 of the HTTP API."""

from fastapi import APIRouter

from . import auth, feed, posts, users

api_router = APIRouter(prefix="/api/v1")


@api_router.get("/health", tags=["health"])
async def health() -> dict[str, str]:
    return {"status": "ok"}


api_router.include_router(auth.router)
api_router.include_router(users.router)
api_router.include_router(posts.router)
api_router.include_router(feed.router)

__all__ = ["api_router"]
