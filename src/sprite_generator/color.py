"""
Color Management Module

Handles:
- Hex color parsing ("#rgb" and "#rrggbb")
- Linear blending toward another color (mix / lighten / darken)
- RGBA packing with a global alpha, the way canvas fills are specified

Colors are kept as float RGB triples while blending and only rounded
(and clamped) when they are packed into an RGBA tuple for drawing.
"""

from typing import Tuple, Union
import numpy as np

RGB = Tuple[float, float, float]
RGBA = Tuple[int, int, int, int]
ColorLike = Union[str, Tuple[float, ...]]

WHITE: RGB = (255.0, 255.0, 255.0)
BLACK: RGB = (0.0, 0.0, 0.0)


def clamp_byte(value: float) -> int:
    """Round and clamp a channel value to 0-255."""
    return int(max(0, min(255, round(value))))


def hex_to_rgb(hex_color: str) -> RGB:
    """
    Parse a hex color string.

    Args:
        hex_color: "#rrggbb", "rrggbb" or the 3-digit shorthand

    Returns:
        (r, g, b) floats in 0-255
    """
    cleaned = hex_color.strip().lstrip("#")
    if len(cleaned) == 3:
        cleaned = "".join(c + c for c in cleaned)
    if len(cleaned) != 6:
        raise ValueError(f"Invalid hex color: {hex_color!r}")
    n = int(cleaned, 16)
    return (float((n >> 16) & 255), float((n >> 8) & 255), float(n & 255))


def mix(a: RGB, b: RGB, t: float) -> RGB:
    """Blend a toward b (t = 0 gives a, t = 1 gives b)."""
    blended = np.asarray(a, dtype=np.float64) * (1.0 - t) + np.asarray(b, dtype=np.float64) * t
    return (float(blended[0]), float(blended[1]), float(blended[2]))


def lighten(rgb: RGB, t: float) -> RGB:
    """Blend toward white."""
    return mix(rgb, WHITE, t)


def darken(rgb: RGB, t: float) -> RGB:
    """Blend toward black."""
    return mix(rgb, BLACK, t)


def shade(rgb: RGB, amount: float) -> RGB:
    """Lighten for positive amounts, darken for negative ones."""
    if amount >= 0:
        return lighten(rgb, amount)
    return darken(rgb, -amount)


def to_rgba(color: ColorLike, alpha: float = 1.0) -> RGBA:
    """
    Pack a color into an RGBA byte tuple.

    Args:
        color: Hex string, RGB triple or RGBA tuple (alpha byte 0-255)
        alpha: Global alpha multiplied into the color's own alpha

    Returns:
        (r, g, b, a) ints in 0-255
    """
    if isinstance(color, str):
        r, g, b = hex_to_rgb(color)
        a = 255.0
    elif len(color) == 4:
        r, g, b, a = color
    elif len(color) == 3:
        r, g, b = color
        a = 255.0
    else:
        raise ValueError(f"Unsupported color value: {color!r}")

    return (clamp_byte(r), clamp_byte(g), clamp_byte(b), clamp_byte(a * alpha))


def rgba(r: float, g: float, b: float, a: float = 1.0) -> RGBA:
    """CSS-style rgba() constructor (alpha in 0-1)."""
    return (clamp_byte(r), clamp_byte(g), clamp_byte(b), clamp_byte(a * 255.0))
