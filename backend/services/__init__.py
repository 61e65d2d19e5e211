"""Business logic services."""

from .errors import (
    DuplicateEmail,
    Forbidden,
    InvalidToken,
    NotAuthenticated,
    NotFound,
    PostNotFound,
    ServiceError,
    UserNotFound,
    ValidationError,
)
from .images import (
    JPEG_CONTENT_TYPE,
    MAX_IMAGE_DIMENSION,
    UploadTooLargeError,
    process_image_bytes,
    read_upload_file,
)
from .pagination import Page, paginate
from .rate_limiter import (
    RateLimitMiddleware,
    RateLimiter,
    get_rate_limiter,
    set_rate_limiter,
)
from .storage import (
    create_presigned_get_url,
    delete_object,
    ensure_bucket,
    get_minio_client,
    post_image_key,
    upload_object,
)

__all__ = [
    "ServiceError",
    "ValidationError",
    "DuplicateEmail",
    "InvalidToken",
    "Forbidden",
    "NotFound",
    "UserNotFound",
    "PostNotFound",
    "NotAuthenticated",
    "Page",
    "paginate",
    "get_minio_client",
    "ensure_bucket",
    "upload_object",
    "delete_object",
    "post_image_key",
    "create_presigned_get_url",
    "process_image_bytes",
    "read_upload_file",
    "MAX_IMAGE_DIMENSION",
    "JPEG_CONTENT_TYPE",
    "UploadTooLargeError",
    "RateLimiter",
    "RateLimitMiddleware",
    "get_rate_limiter",
    "set_rate_limiter",
]
