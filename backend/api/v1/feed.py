"""Home feed endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_current_user, get_db, get_page
from core import settings
from models import User
from services.feed import feed
from .pagination import set_page_headers
from .post_views import PostResponse, build_post_responses

router = APIRouter(prefix="/feed", tags=["feed"])


@router.get("", response_model=list[PostResponse])
async def home_feed(
    response: Response,
    page: int = Depends(get_page),
    session: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> list[PostResponse]:
    """The viewer's own posts plus posts from everyone they follow."""
    result = await feed(session, current_user, page=page, page_size=settings.page_size)
    set_page_headers(response, result)
    return await build_post_responses(session, result.items)
