"""Tile image decoding with Pillow."""

import io
import logging
from typing import Optional

from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)


def decode_tile(data: Optional[bytes]) -> Optional[Image.Image]:
    """
    Decode an encoded tile (PNG, JPEG, WebP, ...).

    Returns None for missing or undecodable data. The image is fully loaded
    so that truncated blobs fail here rather than when painted.
    """
    if not data:
        return None
    try:
        img = Image.open(io.BytesIO(data))
        img.load()
    except (UnidentifiedImageError, OSError) as ex:
        logger.debug(f"cannot decode tile ({len(data)} bytes): {ex}")
        return None
    return img
