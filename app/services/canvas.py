"""2D raster canvas used by the local compositor."""

import io
from abc import ABC, abstractmethod

from PIL import Image, ImageChops, ImageColor, ImageDraw, ImageFont

Color = str | tuple[int, int, int] | tuple[int, int, int, int]

SOURCE_OVER = "source-over"
SOURCE_ATOP = "source-atop"


class Canvas(ABC):
    """Abstract 2D drawing surface (fill, scaled blit, alpha compositing, text)."""

    def __init__(self, width: int, height: int):
        self.width = width
        self.height = height

    @abstractmethod
    def fill_rect(self, x: float, y: float, width: float, height: float, color: Color) -> None:
        ...

    @abstractmethod
    def draw_image(
        self,
        image: Image.Image,
        x: float,
        y: float,
        width: float,
        height: float,
        alpha: float = 1.0,
        mode: str = SOURCE_OVER,
    ) -> None:
        """Draw ``image`` scaled to width x height at (x, y)."""
        ...

    @abstractmethod
    def fill_text(
        self,
        text: str,
        x: float,
        y: float,
        color: Color,
        size: int,
        align: str = "left",
    ) -> None:
        """Draw text with its baseline at ``y``; ``align`` is left or center."""
        ...

    @abstractmethod
    def to_png(self) -> bytes:
        ...


def _rgba(color: Color) -> tuple[int, int, int, int]:
    if isinstance(color, str):
        return ImageColor.getcolor(color, "RGBA")
    if len(color) == 3:
        return (*color, 255)
    return tuple(color)


class PillowCanvas(Canvas):
    """Software canvas backed by an RGBA Pillow image."""

    def __init__(self, width: int, height: int):
        super().__init__(width, height)
        self.image = Image.new("RGBA", (width, height), (0, 0, 0, 0))
        self._fonts: dict[int, ImageFont.FreeTypeFont] = {}

    def _font(self, size: int):
        if size not in self._fonts:
            self._fonts[size] = ImageFont.load_default(size=size)
        return self._fonts[size]

    def _composite(self, layer: Image.Image) -> None:
        self.image = Image.alpha_composite(self.image, layer)

    def fill_rect(self, x, y, width, height, color) -> None:
        layer = Image.new("RGBA", self.image.size, (0, 0, 0, 0))
        box = [round(x), round(y), round(x + width) - 1, round(y + height) - 1]
        ImageDraw.Draw(layer).rectangle(box, fill=_rgba(color))
        self._composite(layer)

    def draw_image(self, image, x, y, width, height, alpha=1.0, mode=SOURCE_OVER) -> None:
        size = (max(1, round(width)), max(1, round(height)))
        scaled = image.convert("RGBA").resize(size, resample=Image.LANCZOS)

        # Full-canvas layer so paste() clips anything outside the bounds
        layer = Image.new("RGBA", self.image.size, (0, 0, 0, 0))
        layer.paste(scaled, (round(x), round(y)))

        mask = layer.getchannel("A")
        if alpha < 1.0:
            mask = mask.point(lambda v: round(v * alpha))
        if mode == SOURCE_ATOP:
            # only where the destination already has coverage
            mask = ImageChops.multiply(mask, self.image.getchannel("A"))
        layer.putalpha(mask)
        self._composite(layer)

    def fill_text(self, text, x, y, color, size, align="left") -> None:
        layer = Image.new("RGBA", self.image.size, (0, 0, 0, 0))
        anchor = "ms" if align == "center" else "ls"
        ImageDraw.Draw(layer).text((x, y), text, fill=_rgba(color), font=self._font(size), anchor=anchor)
        self._composite(layer)

    def to_png(self) -> bytes:
        buf = io.BytesIO()
        self.image.save(buf, format="PNG")
        return buf.getvalue()
