"""Letter-avatar generation and persistence.

An avatar is a square tile filled with a random colour, showing the first
letter of the display name in black at its centre. Colours are not derived
from the name: two renders of the same name differ.
"""

from __future__ import annotations

import logging
import random
from io import BytesIO

from minio import Minio
from minio.error import MinioException
from PIL import Image, ImageDraw, ImageFont
from urllib3.exceptions import HTTPError

from core import settings

from .errors import AvatarStorageError, InvalidDisplayNameError
from .storage import put_bytes

HEX_DIGITS = "0123456789ABCDEF"
AVATAR_CONTENT_TYPE = "image/png"
AVATAR_OBJECT_PREFIX = "avatars"
GLYPH_COLOR = "black"
logger = logging.getLogger(__name__)


def _normalize_display_name(display_name: str) -> str:
    normalized = display_name.strip()
    if not normalized:
        raise InvalidDisplayNameError("Display name must not be empty")
    return normalized


def derive_initial(display_name: str) -> str:
    return _normalize_display_name(display_name)[0].upper()


def random_background_color() -> str:
    return "#" + "".join(random.choice(HEX_DIGITS) for _ in range(6))


def avatar_object_key(display_name: str) -> str:
    """Return the storage key for a display name's avatar."""
    normalized = _normalize_display_name(display_name)
    if "/" in normalized or "\\" in normalized or normalized.startswith("."):
        raise InvalidDisplayNameError("Display name cannot be used as an avatar key")
    return f"{AVATAR_OBJECT_PREFIX}/{normalized}.png"


def generate_avatar(
    display_name: str,
    *,
    size: int | None = None,
    background: str | None = None,
) -> bytes:
    """Render the avatar tile for ``display_name`` and return PNG bytes."""
    tile_size = size if size is not None else settings.avatar_size
    if tile_size <= 0:
        raise ValueError("size must be positive")

    glyph = derive_initial(display_name)
    image = Image.new("RGB", (tile_size, tile_size), background or random_background_color())
    draw = ImageDraw.Draw(image)
    font = ImageFont.load_default(size=max(tile_size // 2, 1))
    draw.text(
        (tile_size / 2, tile_size / 2),
        glyph,
        fill=GLYPH_COLOR,
        font=font,
        anchor="mm",
    )

    buffer = BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


def generate_and_store_avatar(display_name: str, client: Minio | None = None) -> str:
    """Render a fresh avatar, upload it and return its object key.

    A later call for the same name replaces the stored object.
    """
    object_key = avatar_object_key(display_name)
    payload = generate_avatar(display_name)
    try:
        put_bytes(object_key, payload, content_type=AVATAR_CONTENT_TYPE, client=client)
    except (MinioException, HTTPError, OSError) as exc:
        logger.warning(
            "Failed to store generated avatar",
            extra={"avatar_key": object_key},
            exc_info=exc,
        )
        raise AvatarStorageError(f"Could not store avatar {object_key}") from exc

    logger.info("Stored generated avatar", extra={"avatar_key": object_key})
    return object_key


__all__ = [
    "AVATAR_CONTENT_TYPE",
    "avatar_object_key",
    "derive_initial",
    "generate_and_store_avatar",
    "generate_avatar",
    "random_background_color",
]
