"""Post creation, deletion and media endpoints."""

from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_current_user, get_db
from core import settings
from models import User
from services import (
    UploadTooLargeError,
    create_presigned_get_url,
    delete_object,
    post_image_key,
    process_image_bytes,
    read_upload_file,
    upload_object,
)
from services import posts as post_store
from services.errors import Forbidden, PostNotFound, ServiceError
from .post_views import PostResponse

router = APIRouter(prefix="/posts", tags=["posts"])
logger = logging.getLogger(__name__)

SIGNED_MEDIA_URL_TTL_SECONDS = 120


class PostDeletedResponse(BaseModel):
    detail: str
    redirect_to: str = "/"


class MediaURLResponse(BaseModel):
    url: str


async def _store_image(image: UploadFile, user_id: str) -> str:
    try:
        data = await read_upload_file(image, settings.upload_max_bytes)
        processed_bytes, content_type = await asyncio.to_thread(process_image_bytes, data)
    except UploadTooLargeError as exc:
        raise HTTPException(
            status_code=status.HTTP_413_CONTENT_TOO_LARGE,
            detail=str(exc),
        ) from exc
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc

    object_key = post_image_key(user_id)
    await asyncio.to_thread(upload_object, object_key, processed_bytes, content_type)
    return object_key


async def _discard_image(object_key: str) -> None:
    try:
        await asyncio.to_thread(delete_object, object_key)
    except Exception as cleanup_error:
        logger.warning(
            "Failed to cleanup post image",
            extra={"image_key": object_key},
            exc_info=cleanup_error,
        )


@router.post("", status_code=status.HTTP_201_CREATED, response_model=PostResponse)
async def create_post(
    content: str = Form(default=""),
    image: UploadFile | None = File(default=None),
    session: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> PostResponse:
    # Validate text before touching storage so rejected posts upload nothing.
    post_store.normalize_content(content)
    user_id, author_name = current_user.id, current_user.name

    image_key: str | None = None
    if image is not None and image.filename:
        image_key = await _store_image(image, user_id)

    try:
        post = await post_store.create_post(
            session,
            current_user,
            content,
            image_key=image_key,
        )
    except ServiceError:
        if image_key is not None:
            await _discard_image(image_key)
        raise
    except Exception as exc:
        logger.exception("Failed to create post", extra={"user_id": user_id})
        if image_key is not None:
            await _discard_image(image_key)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Could not create post",
        ) from exc
    return PostResponse.from_post(post, author_name=author_name)


@router.delete("/{post_id}", response_model=PostDeletedResponse)
async def delete_post(
    post_id: int,
    session: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> PostDeletedResponse:
    try:
        post = await post_store.delete_post(session, post_id=post_id, actor=current_user)
    except PostNotFound as exc:
        # Unknown and foreign posts get the same answer.
        raise Forbidden() from exc

    if post.image_key:
        await _discard_image(post.image_key)
    return PostDeletedResponse(detail="Post deleted")


@router.get("/{post_id}/image-url", response_model=MediaURLResponse)
async def get_post_image_url(
    post_id: int,
    session: AsyncSession = Depends(get_db),
    _current_user: User = Depends(get_current_user),
) -> MediaURLResponse:
    post = await post_store.get_post(session, post_id)
    if not post.image_key:
        raise PostNotFound("Post has no image")

    url = await asyncio.to_thread(
        create_presigned_get_url,
        post.image_key,
        expires_seconds=SIGNED_MEDIA_URL_TTL_SECONDS,
    )
    return MediaURLResponse(url=url)
