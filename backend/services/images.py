"""Upload reading and image normalization for post attachments."""

from __future__ import annotations

from io import BytesIO

from fastapi import UploadFile
from PIL import Image, ImageOps, UnidentifiedImageError

JPEG_CONTENT_TYPE = "image/jpeg"
MAX_IMAGE_DIMENSION = 500
ALLOWED_FORMATS = frozenset({"JPEG", "PNG", "GIF", "WEBP"})
READ_CHUNK_SIZE = 64 * 1024


class UploadTooLargeError(ValueError):
    """Raised when an upload exceeds the configured byte limit."""


async def read_upload_file(upload: UploadFile, max_bytes: int) -> bytes:
    """Read an upload in chunks, failing as soon as it passes ``max_bytes``."""
    buffer = BytesIO()
    total = 0
    while True:
        chunk = await upload.read(READ_CHUNK_SIZE)
        if not chunk:
            break
        total += len(chunk)
        if total > max_bytes:
            raise UploadTooLargeError(
                f"Image must be at most {max_bytes // (1024 * 1024)} MB"
            )
        buffer.write(chunk)
    return buffer.getvalue()


def process_image_bytes(data: bytes) -> tuple[bytes, str]:
    """Validate, orient and shrink an image to fit MAX_IMAGE_DIMENSION, as JPEG."""
    if not data:
        raise ValueError("Image file is empty")
    try:
        with Image.open(BytesIO(data)) as source:
            if source.format not in ALLOWED_FORMATS:
                raise ValueError("Unsupported image format")
            image = ImageOps.exif_transpose(source)
            image = image.convert("RGB")
            image.thumbnail((MAX_IMAGE_DIMENSION, MAX_IMAGE_DIMENSION))
            output = BytesIO()
            image.save(output, format="JPEG", quality=85, optimize=True)
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as exc:
        raise ValueError("Uploaded file is not a valid image") from exc
    return output.getvalue(), JPEG_CONTENT_TYPE
