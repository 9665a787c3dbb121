"""Downsample user images to a bounded PNG before they are sent anywhere."""

import base64
import binascii
import io
import logging
import re

from PIL import Image, ImageOps, UnidentifiedImageError

from app.config import settings
from app.services.errors import DECODE, GenerationError

logger = logging.getLogger(__name__)

_DATA_URL_RE = re.compile(r"^data:[^;,]*;base64,", re.IGNORECASE)


def strip_data_url(b64: str) -> str:
    """Drop a leading ``data:<mime>;base64,`` prefix if present."""
    return _DATA_URL_RE.sub("", b64.strip(), count=1)


def b64_to_bytes(b64: str, label: str = "image") -> bytes:
    try:
        return base64.b64decode(strip_data_url(b64), validate=True)
    except (binascii.Error, ValueError) as e:
        raise GenerationError(f"Failed to decode {label}: invalid base64 data", category=DECODE) from e


def bytes_to_b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def decode_image(data: bytes, label: str = "image") -> Image.Image:
    """Open, fully decode and apply EXIF orientation. Raises GenerationError on failure."""
    try:
        img = Image.open(io.BytesIO(data))
        img.load()
        img = ImageOps.exif_transpose(img)
    except (UnidentifiedImageError, OSError, ValueError, Image.DecompressionBombError) as e:
        raise GenerationError(f"Failed to load {label}", category=DECODE) from e
    return img


def target_size(width: int, height: int, max_edge: int) -> tuple[int, int]:
    """Size after fitting into ``max_edge`` without upscaling."""
    scale = min(max_edge / width, max_edge / height, 1.0)
    return max(1, round(width * scale)), max(1, round(height * scale))


def encode_png(img: Image.Image) -> bytes:
    if img.mode not in ("RGB", "RGBA", "L", "LA"):
        img = img.convert("RGBA")
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def resize_image(data: bytes, max_edge: int | None = None, label: str = "image") -> bytes:
    """Re-encode ``data`` as PNG with its longest edge clamped to ``max_edge``."""
    if max_edge is None:
        max_edge = settings.MAX_INPUT_EDGE

    img = decode_image(data, label)
    size = target_size(img.width, img.height, max_edge)
    if size != img.size:
        img = img.resize(size, resample=Image.LANCZOS)

    logger.debug("Resized %s to %dx%d", label, size[0], size[1])
    return encode_png(img)


def resize_base64(b64: str, max_edge: int | None = None, label: str = "image") -> str:
    """Base64 variant of :func:`resize_image`; returns base64 without a prefix."""
    return bytes_to_b64(resize_image(b64_to_bytes(b64, label), max_edge, label))
