"""
Image normalization for post uploads.

Every uploaded image is decoded, rotated according to its EXIF
orientation, shrunk so that its longest edge fits ``image_max_edge`` and
re-encoded as WebP before it reaches object storage.
"""

from __future__ import annotations

import io
import logging
import uuid
from typing import Iterable

from PIL import Image, ImageOps, UnidentifiedImageError

from postboard.errors import InvalidImageError
from postboard.storage import StorageClient

logger = logging.getLogger(__name__)

IMAGE_PREFIX = "posts"
IMAGE_CONTENT_TYPE = "image/webp"


def normalize_image(data: bytes, max_edge: int = 1024, quality: int = 80) -> bytes:
    """
    Returns WebP bytes for ``data`` with the longest edge at most ``max_edge``.

    Raises:
        InvalidImageError: If Pillow cannot decode the input.
    """
    try:
        with Image.open(io.BytesIO(data)) as img:
            img = ImageOps.exif_transpose(img)
            if img.mode not in ("RGB", "RGBA"):
                img = img.convert("RGBA" if "A" in img.getbands() else "RGB")
            # thumbnail() keeps aspect ratio and never upscales.
            img.thumbnail((max_edge, max_edge))
            out = io.BytesIO()
            img.save(out, format="WEBP", quality=quality)
            return out.getvalue()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as exc:
        raise InvalidImageError() from exc


def store_post_images(
    uploads: Iterable[bytes],
    storage: StorageClient,
    *,
    max_edge: int = 1024,
    quality: int = 80,
) -> list[str]:
    """
    Normalizes each upload and writes it to storage.

    Returns the storage paths in upload order. All images are decoded
    before anything is written, so an invalid upload leaves storage untouched.
    """
    normalized = [normalize_image(data, max_edge, quality) for data in uploads]
    paths: list[str] = []
    for payload in normalized:
        path = f"{IMAGE_PREFIX}/{uuid.uuid4().hex}.webp"
        storage.upload_bytes(path, payload, IMAGE_CONTENT_TYPE)
        paths.append(path)
    logger.debug("Stored %d post image(s)", len(paths))
    return paths
