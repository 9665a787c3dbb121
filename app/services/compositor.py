"""Local try-on compositor: overlays clothing onto a photo without any remote call.

Garment placement relies on ``BodyRegions``, a fixed-ratio approximation of a
front-facing person. No pose or body detection is performed.
"""

import logging
from dataclasses import dataclass
from typing import Callable

from PIL import Image

from app.services.canvas import SOURCE_ATOP, Canvas, PillowCanvas
from app.services.errors import DECODE, GenerationError
from app.services.preprocess import b64_to_bytes, bytes_to_b64, decode_image

logger = logging.getLogger(__name__)

CANVAS_WIDTH = 800
CANVAS_HEIGHT = 1000
PHOTO_FILL = 0.9
OVERLAY_ALPHA = 0.85
LAYER_OFFSET_PX = 10
TITLE = "Virtual Try-On"
TITLE_BAND_HEIGHT = 50

# (keywords, garment type), first match wins
GARMENT_KEYWORDS = [
    (("jacket", "blazer"), "jacket"),
    (("pants", "jeans"), "pants"),
    (("dress",), "dress"),
]
DEFAULT_GARMENT = "shirt"


def classify_garment(description: str | None) -> str:
    text = (description or "").lower()
    for keywords, garment in GARMENT_KEYWORDS:
        if any(k in text for k in keywords):
            return garment
    return DEFAULT_GARMENT


@dataclass
class BodyRegions:
    """Proportional body measurements estimated from the photo's bounding box."""
    shoulder_width: float
    torso_height: float
    waist_width: float
    leg_width: float
    shoulder_y: float
    chest_y: float
    waist_y: float
    hip_y: float
    center_x: float

    @classmethod
    def estimate(cls, x: float, y: float, width: float, height: float) -> "BodyRegions":
        return cls(
            shoulder_width=width * 0.45,
            torso_height=height * 0.35,
            waist_width=width * 0.35,
            leg_width=width * 0.25,
            shoulder_y=y + height * 0.15,
            chest_y=y + height * 0.25,
            waist_y=y + height * 0.45,
            hip_y=y + height * 0.55,
            center_x=x + width / 2,
        )


@dataclass
class Placement:
    garment: str
    x: float
    y: float
    width: float
    height: float
    label: str


def fit_photo(width: int, height: int) -> tuple[float, float, float, float]:
    """Box (x, y, w, h) of the photo scaled into 90% of the canvas and centered."""
    scale = min(CANVAS_WIDTH * PHOTO_FILL / width, CANVAS_HEIGHT * PHOTO_FILL / height)
    w = width * scale
    h = height * scale
    return (CANVAS_WIDTH - w) / 2, (CANVAS_HEIGHT - h) / 2, w, h


def overlay_rect(garment: str, body: BodyRegions, photo_height: float, index: int) -> tuple[float, float, float, float]:
    if garment == "pants":
        width = body.leg_width * 2
        height = photo_height * 0.4
        top = body.hip_y
    elif garment == "dress":
        width = body.shoulder_width
        height = photo_height * 0.5
        top = body.shoulder_y
    else:
        width = body.shoulder_width * 1.1 if garment == "jacket" else body.shoulder_width
        height = body.torso_height
        top = body.shoulder_y + index * LAYER_OFFSET_PX
    return body.center_x - width / 2, top, width, height


def plan_overlays(photo_size: tuple[int, int], descriptions: list[str]) -> tuple[BodyRegions, list[Placement]]:
    """Compute body regions and one overlay placement per description."""
    x, y, w, h = fit_photo(*photo_size)
    body = BodyRegions.estimate(x, y, w, h)

    placements = []
    for index, description in enumerate(descriptions):
        garment = classify_garment(description)
        ox, oy, ow, oh = overlay_rect(garment, body, h, index)
        placements.append(Placement(garment, ox, oy, ow, oh, description or f"Item {index + 1}"))
    return body, placements


def _load(b64: str, label: str) -> Image.Image:
    try:
        return decode_image(b64_to_bytes(b64, label), label)
    except GenerationError as e:
        raise GenerationError(f"Failed to load {label}", category=DECODE) from e


def compose_outfit(
    profile_photo_b64: str,
    items: list[tuple[str, str]],
    canvas_factory: Callable[[int, int], Canvas] = PillowCanvas,
) -> str:
    """Overlay ``(image_b64, description)`` items onto the profile photo.

    Returns the composite as base64 PNG without a data URL prefix.
    """
    try:
        canvas = canvas_factory(CANVAS_WIDTH, CANVAS_HEIGHT)
        canvas.fill_rect(0, 0, CANVAS_WIDTH, CANVAS_HEIGHT, (255, 255, 255))

        photo = _load(profile_photo_b64, "profile photo")
        clothing = []
        for i, (b64, _) in enumerate(items):
            clothing.append(_load(b64, f"clothing item {i + 1}"))

        x, y, w, h = fit_photo(photo.width, photo.height)
        canvas.draw_image(photo, x, y, w, h)

        body, placements = plan_overlays(photo.size, [desc for _, desc in items])
        logger.debug("Estimated body regions: %s", body)

        for img, p in zip(clothing, placements):
            canvas.draw_image(img, p.x, p.y, p.width, p.height, alpha=OVERLAY_ALPHA, mode=SOURCE_ATOP)

            if len(clothing) > 1:
                canvas.fill_rect(p.x + 5, p.y + 5, 70, 16, (0, 0, 0, 178))
                canvas.fill_text(p.label, p.x + 8, p.y + 15, (255, 255, 255), 11)

        canvas.fill_rect(0, 0, CANVAS_WIDTH, TITLE_BAND_HEIGHT, (0, 0, 0, 204))
        canvas.fill_text(TITLE, CANVAS_WIDTH / 2, 35, (255, 255, 255), 28, align="center")

        result = bytes_to_b64(canvas.to_png())
        if not result:
            raise GenerationError("Failed to generate canvas image data", category=DECODE)
    except GenerationError as e:
        logger.error("Outfit composition failed: %s", e)
        raise GenerationError(f"Outfit composition failed: {e}", category=e.category) from e

    logger.info("Local composition with %d item(s) produced (%d chars)", len(items), len(result))
    return result
