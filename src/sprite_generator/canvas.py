"""
Cell Drawing Surface

A CellCanvas is one sprite cell's RGBA image plus a handful of path/fill
primitives. Coordinates are cell-local: (0, 0) is the cell's top-left pixel,
so nothing drawn here can land in a neighbouring cell.

Pillow's ImageDraw replaces RGBA pixels instead of blending them, so any
primitive with alpha < 255 is drawn on a transparent layer and composited
source-over onto the cell.
"""

from typing import Callable, Optional, Sequence, Tuple
import numpy as np
from PIL import Image, ImageDraw

from .color import ColorLike, RGBA, to_rgba

Point = Tuple[float, float]
TRANSPARENT: RGBA = (0, 0, 0, 0)


class CellCanvas:
    """
    Drawing surface for a single sprite cell.

    Attributes:
        image: The cell's RGBA image
    """

    def __init__(self, width: int, height: int):
        """
        Create a cleared cell.

        Args:
            width: Cell width in pixels
            height: Cell height in pixels
        """
        self.image = Image.new("RGBA", (int(width), int(height)), TRANSPARENT)

    @property
    def width(self) -> int:
        """Cell width in pixels."""
        return self.image.width

    @property
    def height(self) -> int:
        """Cell height in pixels."""
        return self.image.height

    def clear(self, rect: Optional[Tuple[float, float, float, float]] = None):
        """
        Reset pixels to transparent.

        Args:
            rect: (x, y, width, height) to clear, or None for the whole cell
        """
        if rect is None:
            box = (0, 0, self.width, self.height)
        else:
            x, y, w, h = rect
            box = (
                max(0, int(x)), max(0, int(y)),
                min(self.width, int(x + w)), min(self.height, int(y + h)),
            )
            if box[2] <= box[0] or box[3] <= box[1]:
                return
        self.image.paste(TRANSPARENT, box)

    def _paint(self, color: RGBA, fn: Callable[[ImageDraw.ImageDraw, RGBA], None]):
        """Run a draw call with source-over semantics."""
        if color[3] <= 0:
            return
        if color[3] >= 255:
            fn(ImageDraw.Draw(self.image), color)
            return
        layer = Image.new("RGBA", self.image.size, TRANSPARENT)
        fn(ImageDraw.Draw(layer), color)
        self.image.alpha_composite(layer)

    def fill_rect(
        self,
        x: float, y: float, w: float, h: float,
        color: ColorLike,
        alpha: float = 1.0
    ):
        """Fill an axis-aligned rectangle (x, y, width, height)."""
        if w <= 0 or h <= 0:
            return
        x1 = max(x, x + w - 1)
        y1 = max(y, y + h - 1)
        self._paint(
            to_rgba(color, alpha),
            lambda draw, c: draw.rectangle([x, y, x1, y1], fill=c)
        )

    def fill_polygon(
        self,
        points: Sequence[Point],
        fill: ColorLike,
        outline: Optional[ColorLike] = None,
        width: int = 1,
        alpha: float = 1.0
    ):
        """
        Fill a closed polygon with an optional outline.

        Args:
            points: Polygon vertices (at least 3)
            fill: Fill color
            outline: Stroke color, or None for no stroke
            width: Stroke width in pixels
            alpha: Global alpha applied to fill and stroke
        """
        if len(points) < 3:
            return
        pts = [(float(px), float(py)) for px, py in points]
        self._paint(
            to_rgba(fill, alpha),
            lambda draw, c: draw.polygon(pts, fill=c)
        )
        if outline is not None:
            self.stroke_path(pts + [pts[0]], outline, width=width, alpha=alpha)

    def stroke_path(
        self,
        points: Sequence[Point],
        color: ColorLike,
        width: int = 1,
        alpha: float = 1.0
    ):
        """Stroke an open polyline."""
        if len(points) < 2:
            return
        pts = [(float(px), float(py)) for px, py in points]
        self._paint(
            to_rgba(color, alpha),
            lambda draw, c: draw.line(pts, fill=c, width=max(1, int(width)))
        )

    def line(
        self,
        start: Point, end: Point,
        color: ColorLike,
        width: int = 1,
        alpha: float = 1.0
    ):
        """Stroke a single segment."""
        self.stroke_path([start, end], color, width=width, alpha=alpha)

    def fill_ellipse(
        self,
        cx: float, cy: float, rx: float, ry: float,
        color: ColorLike,
        alpha: float = 1.0
    ):
        """Fill an axis-aligned ellipse given its center and radii."""
        if rx <= 0 or ry <= 0:
            return
        bbox = [cx - rx, cy - ry, cx + rx, cy + ry]
        self._paint(
            to_rgba(color, alpha),
            lambda draw, c: draw.ellipse(bbox, fill=c)
        )

    def stroke_ellipse(
        self,
        cx: float, cy: float, rx: float, ry: float,
        color: ColorLike,
        width: int = 1,
        alpha: float = 1.0
    ):
        """Stroke the outline of an axis-aligned ellipse."""
        if rx <= 0 or ry <= 0:
            return
        bbox = [cx - rx, cy - ry, cx + rx, cy + ry]
        self._paint(
            to_rgba(color, alpha),
            lambda draw, c: draw.ellipse(bbox, outline=c, width=max(1, int(width)))
        )

    def fill_circle(self, cx: float, cy: float, r: float, color: ColorLike, alpha: float = 1.0):
        """Fill a circle."""
        self.fill_ellipse(cx, cy, r, r, color, alpha)

    def stroke_circle(
        self,
        cx: float, cy: float, r: float,
        color: ColorLike,
        width: int = 1,
        alpha: float = 1.0
    ):
        """Stroke a circle."""
        self.stroke_ellipse(cx, cy, r, r, color, width, alpha)

    def to_array(self) -> np.ndarray:
        """Cell pixels as a (H, W, 4) uint8 array."""
        return np.array(self.image, dtype=np.uint8)
