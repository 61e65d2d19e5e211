"""Blob storage for post images (MinIO / S3 compatible)."""

from __future__ import annotations

from datetime import timedelta
from functools import lru_cache
from io import BytesIO
from uuid import uuid4

from minio import Minio
from minio.error import S3Error

from core import settings

MISSING_OBJECT_CODES = frozenset({"NoSuchKey", "NoSuchObject", "ResourceNotFound"})
EXISTING_BUCKET_CODES = frozenset({"BucketAlreadyOwnedByYou", "BucketAlreadyExists"})


@lru_cache
def get_minio_client() -> Minio:
    """Return a cached MinIO client configured from settings."""
    return Minio(
        settings.minio_endpoint,
        access_key=settings.minio_access_key,
        secret_key=settings.minio_secret_key,
        secure=settings.minio_secure,
    )


def post_image_key(user_id: str) -> str:
    """Object key for a new image attached to one of ``user_id``'s posts."""
    return f"posts/{user_id}/{uuid4().hex}.jpg"


def ensure_bucket(client: Minio | None = None) -> None:
    """Create the configured bucket unless it already exists."""
    client = client or get_minio_client()
    bucket_name = settings.minio_bucket

    if client.bucket_exists(bucket_name):  # pragma: no cover - network call
        return

    try:
        client.make_bucket(bucket_name)  # pragma: no cover - network call
    except S3Error as exc:  # pragma: no cover - concurrent creation
        if exc.code not in EXISTING_BUCKET_CODES:
            raise


def upload_object(
    object_key: str,
    data: bytes,
    content_type: str,
    client: Minio | None = None,
) -> None:
    client = client or get_minio_client()
    ensure_bucket(client)
    client.put_object(
        settings.minio_bucket,
        object_key,
        data=BytesIO(data),
        length=len(data),
        content_type=content_type,
    )


def delete_object(object_key: str, client: Minio | None = None) -> None:
    """Delete an object; a missing object is not an error."""
    client = client or get_minio_client()
    try:
        client.remove_object(settings.minio_bucket, object_key)  # pragma: no cover - network call
    except S3Error as exc:  # pragma: no cover - network call
        if exc.code not in MISSING_OBJECT_CODES:
            raise


def create_presigned_get_url(
    object_key: str,
    *,
    expires_seconds: int = 120,
    client: Minio | None = None,
) -> str:
    """Return a short-lived pre-signed URL for an object."""
    normalized_object_key = object_key.strip()
    if not normalized_object_key:
        raise ValueError("object_key must not be empty")
    if expires_seconds <= 0:
        raise ValueError("expires_seconds must be positive")

    client = client or get_minio_client()
    return client.presigned_get_object(
        settings.minio_bucket,
        normalized_object_key,
        expires=timedelta(seconds=expires_seconds),
    )
