"""
Isometric Primitive Renderer

Draws one sprite cell from its resolved style and per-cell RNG:

- Trees: trunk rectangle, canopy circle and a highlight
- Parks: flat-diamond sub-renderers (courts, fields, pools, tracks, piers)
  or a green patch with a couple of small trees
- Buildings / utilities / specials: an axis-aligned isometric prism with
  shaded faces, window grids, an accent sign and utility extras
- Status overlays: construction scaffolding and abandoned grime

All drawing goes through a CellCanvas; (x, y, w, h) is the cell rectangle in
canvas coordinates (normally (0, 0, tile_width, tile_height)).
"""

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

from .canvas import CellCanvas, Point
from .color import RGB, BLACK, WHITE, darken, hex_to_rgb, lighten, mix, rgba, shade
from .packs import SheetVariant
from .projection import IsometricProjection, PrismFaces, face_bounds, face_center
from .styles import ShapeClass, SpriteStyle, resolve_style, split_sprite_key

Rng = Callable[[], float]

OUTLINE_COLOR = "#0f172a"
OUTLINE_ALPHA = 0.35
SHADOW_ALPHA = 0.25

TRUNK_COLOR = "#92400e"
CANOPY_COLOR = "#16a34a"
CANOPY_HIGHLIGHT = "#86efac"

WINDOW_COLORS: Dict[str, str] = {
    "hospital": "#ef4444",
    "police_station": "#60a5fa",
}
DEFAULT_WINDOW_COLOR = "#f8fafc"
WINDOW_MIN_HEIGHT = 1.2
WINDOW_PITCH = (16, 18)
WINDOW_OFF_CHANCE = 0.18

VARIANT_TINTS: Dict[SheetVariant, Tuple[RGB, float]] = {
    SheetVariant.CONSTRUCTION: (WHITE, 0.18),
    SheetVariant.ABANDONED: (BLACK, 0.22),
}

SHADE_JITTER = 0.06


@dataclass(frozen=True)
class FaceLighting:
    """
    Fixed single-light shading model (light from the upper left).

    Attributes:
        top_lighten: How much the roof color is lightened for the top face
        left_darken: How much the base color is darkened for the left face
        right_darken: How much the base color is darkened for the right face
    """
    top_lighten: float = 0.15
    left_darken: float = 0.0
    right_darken: float = 0.18

    def face_colors(self, base: RGB, roof: RGB) -> Dict[str, RGB]:
        """Top/left/right fill colors for a prism."""
        return {
            "top": lighten(roof, self.top_lighten),
            "left": darken(base, self.left_darken),
            "right": darken(base, self.right_darken),
        }


DEFAULT_LIGHTING = FaceLighting()


# ---------------------------------------------------------------------------
# Shared pieces
# ---------------------------------------------------------------------------

def draw_shadow(canvas: CellCanvas, cx: float, cy: float, rx: float, ry: float):
    """Soft ground shadow."""
    canvas.fill_ellipse(cx, cy, rx, ry, BLACK, alpha=SHADOW_ALPHA)


def draw_flat_diamond(
    canvas: CellCanvas,
    cx: float, cy: float, rx: float, ry: float,
    fill: str,
    stroke=rgba(15, 23, 42, 0.35),
    stroke_width: int = 2,
    alpha: float = 0.92
) -> List[Point]:
    """
    Draw a flat ground-plane diamond.

    Returns:
        The diamond's corners (top, right, bottom, left)
    """
    pts = [(cx, cy - ry), (cx + rx, cy), (cx, cy + ry), (cx - rx, cy)]
    canvas.fill_polygon(pts, fill, outline=stroke, width=stroke_width, alpha=alpha)
    return pts


# ---------------------------------------------------------------------------
# Trees and parks
# ---------------------------------------------------------------------------

def _tree_at(
    canvas: CellCanvas,
    cx: float, base_y: float,
    w: float, h: float,
    rng: Rng,
    scale: float = 1.0
):
    trunk_w = w * 0.07 * scale
    trunk_h = h * 0.16 * scale

    draw_shadow(canvas, cx, base_y, w * 0.12 * scale, h * 0.05 * scale)
    canvas.fill_rect(cx - trunk_w / 2, base_y - trunk_h, trunk_w, trunk_h, TRUNK_COLOR)

    radius = min(w, h) * (0.13 + rng() * 0.04) * scale
    canopy_y = base_y - trunk_h - radius * 0.8
    canvas.fill_circle(cx, canopy_y, radius, CANOPY_COLOR)
    canvas.fill_circle(
        cx - radius * 0.25, canopy_y - radius * 0.15, radius * 0.45,
        CANOPY_HIGHLIGHT, alpha=0.35
    )


def draw_tree(canvas: CellCanvas, x: float, y: float, w: float, h: float, rng: Rng):
    """A single tree standing on the cell's ground point."""
    _tree_at(canvas, x + w * 0.5, y + h * 0.88, w, h, rng)


def draw_park(canvas: CellCanvas, x: float, y: float, w: float, h: float, rng: Rng):
    """Generic park: green patch plus one or two small trees."""
    canvas.fill_ellipse(x + w * 0.5, y + h * 0.82, w * 0.28, h * 0.12, CANOPY_COLOR, alpha=0.35)

    count = int(1 + rng() * 2)
    for _ in range(count):
        tx = x + w * (0.35 + rng() * 0.3)
        ty = y + h * (0.78 + rng() * 0.08)
        _tree_at(canvas, tx, ty, w, h, rng, scale=0.6)


def draw_tennis_court(canvas: CellCanvas, x: float, y: float, w: float, h: float):
    cx = x + w * 0.5
    base_y = y + h * 0.84
    ry = h * 0.12
    pts = [(cx, base_y - ry), (cx + w * 0.22, base_y), (cx, base_y + ry), (cx - w * 0.22, base_y)]
    canvas.fill_polygon(pts, "#0ea5e9", outline="#f8fafc", width=2, alpha=0.85)
    canvas.line((cx, base_y - ry * 0.8), (cx, base_y + ry * 0.8), "#f8fafc", alpha=0.85)


def draw_sports_field(
    canvas: CellCanvas,
    x: float, y: float, w: float, h: float,
    field_type: str
):
    """
    Flat field with simple markings.

    Args:
        field_type: One of basketball, soccer, football, baseball
    """
    cx = x + w * 0.5
    cy = y + h * 0.82
    rx = w * 0.24
    ry = h * 0.15

    fill = "#0ea5e9" if field_type == "basketball" else CANOPY_COLOR
    draw_flat_diamond(canvas, cx, cy, rx, ry, fill, rgba(248, 250, 252, 0.75), 2, 0.9)

    marking = rgba(248, 250, 252, 0.85)
    if field_type == "basketball":
        canvas.line((cx - rx * 0.45, cy), (cx + rx * 0.45, cy), marking)
        canvas.stroke_circle(cx, cy, min(rx, ry) * 0.25, marking)
    elif field_type in ("soccer", "football"):
        canvas.line((cx, cy - ry * 0.85), (cx, cy + ry * 0.85), marking)
        canvas.stroke_circle(cx, cy, min(rx, ry) * 0.22, marking)
    elif field_type == "baseball":
        draw_flat_diamond(
            canvas, cx, cy + ry * 0.2, rx * 0.45, ry * 0.35,
            rgba(245, 158, 11, 0.85), rgba(248, 250, 252, 0.65), 1, 0.85
        )


def draw_pool(canvas: CellCanvas, x: float, y: float, w: float, h: float):
    cx = x + w * 0.5
    cy = y + h * 0.82
    draw_flat_diamond(canvas, cx, cy, w * 0.23, h * 0.14, "#0ea5e9", rgba(248, 250, 252, 0.85), 2, 0.92)
    canvas.fill_ellipse(cx - w * 0.05, cy - h * 0.03, w * 0.06, h * 0.02, "#f8fafc", alpha=0.35)


def draw_track(canvas: CellCanvas, x: float, y: float, w: float, h: float):
    cx = x + w * 0.5
    cy = y + h * 0.82
    draw_flat_diamond(canvas, cx, cy, w * 0.25, h * 0.16, "#64748b", rgba(15, 23, 42, 0.35), 2, 0.9)
    canvas.stroke_ellipse(cx, cy, w * 0.12, h * 0.06, rgba(248, 250, 252, 0.75))


def draw_pier(canvas: CellCanvas, x: float, y: float, w: float, h: float):
    cx = x + w * 0.5
    cy = y + h * 0.82
    draw_flat_diamond(canvas, cx, cy, w * 0.25, h * 0.16, "#3b82f6", rgba(248, 250, 252, 0.35), 2, 0.85)
    # Planks
    canvas.fill_rect(cx - w * 0.02, cy - h * 0.08, w * 0.04, h * 0.18, "#a16207", alpha=0.75)
    canvas.fill_rect(cx - w * 0.12, cy - h * 0.02, w * 0.24, h * 0.05, "#a16207", alpha=0.75)


# Checked in order; the first term contained in the key wins
PARK_RENDERERS: List[Tuple[Tuple[str, ...], Callable]] = [
    (("tennis",), draw_tennis_court),
    (("basketball",), lambda c, x, y, w, h: draw_sports_field(c, x, y, w, h, "basketball")),
    (("soccer",), lambda c, x, y, w, h: draw_sports_field(c, x, y, w, h, "soccer")),
    (("football",), lambda c, x, y, w, h: draw_sports_field(c, x, y, w, h, "football")),
    (("baseball",), lambda c, x, y, w, h: draw_sports_field(c, x, y, w, h, "baseball")),
    (("pool",), draw_pool),
    (("go_kart", "roller_coaster"), draw_track),
    (("marina", "pier"), draw_pier),
]


def draw_park_tile(canvas: CellCanvas, key: str, x: float, y: float, w: float, h: float, rng: Rng):
    """Dispatch a park-class key to its sub-renderer."""
    for terms, renderer in PARK_RENDERERS:
        if any(term in key for term in terms):
            renderer(canvas, x, y, w, h)
            return
    draw_park(canvas, x, y, w, h, rng)


# ---------------------------------------------------------------------------
# Buildings
# ---------------------------------------------------------------------------

def draw_prism(
    canvas: CellCanvas,
    projection: IsometricProjection,
    anchor: Point,
    style: SpriteStyle,
    height_px: float,
    colors: Dict[str, RGB]
) -> PrismFaces:
    """
    Paint a prism's faces back to front: right, left, top.

    Returns:
        The projected faces (for windows, signs and extras)
    """
    faces = projection.prism(anchor, style.footprint_x, style.footprint_y, height_px)
    for name in ("right", "left", "top"):
        polygon = getattr(faces, name)
        canvas.fill_polygon(polygon, colors[name])
        canvas.stroke_path(polygon + [polygon[0]], OUTLINE_COLOR, width=1, alpha=OUTLINE_ALPHA)
    return faces


def draw_windows(canvas: CellCanvas, face: List[Point], rng: Rng, color: str):
    """
    Sprinkle a grid of lit windows over a face's bounding box.

    Faces smaller than 12 px in either direction are left bare; about 18% of
    the windows are skipped ("lights off").
    """
    if len(face) != 4:
        return
    min_x, min_y, max_x, max_y = face_bounds(face)
    w = max_x - min_x
    h = max_y - min_y
    if w < 12 or h < 12:
        return

    cols = max(2, int(w // WINDOW_PITCH[0]))
    rows = max(2, int(h // WINDOW_PITCH[1]))
    pad_x = w * 0.15
    pad_y = h * 0.2
    cell_w = (w - pad_x * 2) / cols
    cell_h = (h - pad_y * 2) / rows

    for r in range(rows):
        for c in range(cols):
            if rng() < WINDOW_OFF_CHANCE:
                continue
            wx = min_x + pad_x + c * cell_w + cell_w * 0.2
            wy = min_y + pad_y + r * cell_h + cell_h * 0.25
            canvas.fill_rect(wx, wy, cell_w * 0.55, cell_h * 0.45, color, alpha=0.6)


def draw_accent_sign(canvas: CellCanvas, face: List[Point], color: str):
    """Small sign on the right face."""
    min_x, min_y, max_x, max_y = face_bounds(face)
    w = max_x - min_x
    h = max_y - min_y
    canvas.fill_rect(min_x + w * 0.52, min_y + h * 0.42, w * 0.35, h * 0.12, color, alpha=0.9)


def draw_utility_extras(
    canvas: CellCanvas,
    key: str,
    faces: PrismFaces,
    rng: Rng,
    accent_color: str,
    scale: float = 1.0
):
    """
    Tower cap for water towers, smokestack and smoke for power plants.

    Args:
        scale: Pixel scale of the fixed-size details (cell width / 256)
    """
    if key == "water_tower":
        cx, cy = face_center(faces.top)
        canvas.fill_circle(cx, cy, (6 + rng() * 4) * scale, accent_color, alpha=0.9)

    if key == "power_plant":
        (ax, ay), (bx_, by_) = faces.base[0], faces.base[1]
        bx = (ax + bx_) / 2
        by = (ay + by_) / 2
        stack_w = 10 * scale
        stack_h = 40 * scale
        canvas.fill_rect(bx - stack_w / 2, by - stack_h, stack_w, stack_h, "#525252")
        for i in range(3):
            sx = bx + (rng() - 0.5) * 10 * scale
            sy = by - stack_h - i * 10 * scale
            canvas.fill_circle(sx, sy, (8 + rng() * 4) * scale, "#e5e7eb", alpha=0.35)


def variant_colors(base: RGB, roof: RGB, variant: SheetVariant) -> Tuple[RGB, RGB]:
    """Apply the status tint (construction lightens, abandoned darkens)."""
    if variant not in VARIANT_TINTS:
        return base, roof
    tint, strength = VARIANT_TINTS[variant]
    return mix(base, tint, strength), mix(roof, tint, strength)


def draw_building(
    canvas: CellCanvas,
    style: SpriteStyle,
    key: str,
    prefix: Optional[str],
    variant: SheetVariant,
    x: float, y: float, w: float, h: float,
    rng: Rng,
    lighting: FaceLighting = DEFAULT_LIGHTING
) -> PrismFaces:
    """
    Draw a building, utility or special-class sprite.

    Args:
        canvas: Target surface
        style: Resolved style
        key: Un-prefixed sprite key
        prefix: Namespace prefix, or None
        variant: Status variant (tint only; overlays are applied separately)
        x, y, w, h: Cell rectangle
        rng: Per-cell generator
        lighting: Face shading model

    Returns:
        The projected prism faces
    """
    base = shade(hex_to_rgb(style.base_color), (rng() - 0.5) * 2 * SHADE_JITTER)
    roof = shade(hex_to_rgb(style.roof_color or style.base_color), (rng() - 0.5) * 2 * SHADE_JITTER)
    base, roof = variant_colors(base, roof, variant)

    projection = IsometricProjection.for_cell(w)
    anchor = (x + w * 0.5, y + h * 0.88)
    height_px = h * 0.18 * style.height

    faces = draw_prism(canvas, projection, anchor, style, height_px, lighting.face_colors(base, roof))

    if style.height >= WINDOW_MIN_HEIGHT:
        color = WINDOW_COLORS.get(key, DEFAULT_WINDOW_COLOR)
        draw_windows(canvas, faces.right, rng, color)
        draw_windows(canvas, faces.left, rng, color)

    if style.accent_color:
        draw_accent_sign(canvas, faces.right, style.accent_color)

    if (style.shape is ShapeClass.UTILITY or key in ("power_plant", "water_tower")
            or prefix == "station"):
        draw_utility_extras(canvas, key, faces, rng, style.accent_color or OUTLINE_COLOR, w / 256.0)

    return faces


# ---------------------------------------------------------------------------
# Status overlays
# ---------------------------------------------------------------------------

def draw_construction_overlay(canvas: CellCanvas, x: float, y: float, w: float, h: float):
    """Diagonal amber stripes plus three scaffold bars."""
    width = max(2, int(w // 64))
    step = max(12, int(w // 14))
    amber = (245, 158, 11)
    for i in range(int(-w), int(w * 2), step):
        canvas.line((x + i, y + h * 0.25), (x + i + w, y + h * 0.9), amber, width=width, alpha=0.25)

    bars = 3
    for i in range(bars):
        bx = x + w * (i + 1) / (bars + 1)
        canvas.line((bx, y + h * 0.25), (bx, y + h * 0.9), (148, 163, 184), width=width, alpha=0.35)


def draw_abandoned_overlay(canvas: CellCanvas, x: float, y: float, w: float, h: float, rng: Rng):
    """Dark wash plus six random crack strokes."""
    canvas.fill_rect(x, y, w, h, BLACK, alpha=0.22)
    for _ in range(6):
        sx = x + rng() * w
        sy = y + rng() * h
        ex = sx + (rng() - 0.5) * w * 0.6
        ey = sy + rng() * h * 0.4
        canvas.line((sx, sy), (ex, ey), OUTLINE_COLOR, width=1, alpha=0.35)


def apply_variant_overlay(
    canvas: CellCanvas,
    variant: SheetVariant,
    x: float, y: float, w: float, h: float,
    rng: Rng
):
    """Status overlay for a variant (no-op for main)."""
    if variant is SheetVariant.CONSTRUCTION:
        draw_construction_overlay(canvas, x, y, w, h)
    elif variant is SheetVariant.ABANDONED:
        draw_abandoned_overlay(canvas, x, y, w, h, rng)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def draw_sprite_tile(
    canvas: CellCanvas,
    sprite_key: str,
    variant: SheetVariant,
    rng: Rng,
    x: float = 0,
    y: float = 0,
    w: Optional[float] = None,
    h: Optional[float] = None,
    lighting: FaceLighting = DEFAULT_LIGHTING
) -> SpriteStyle:
    """
    Built-in renderer for one cell.

    The cell rectangle is cleared first. Trees and parks are drawn without
    status overlays; buildings get the variant tint and overlay.

    Args:
        canvas: Target surface
        sprite_key: Possibly namespaced sprite key
        variant: Status variant
        rng: Per-cell generator
        x, y, w, h: Cell rectangle (defaults to the whole canvas)
        lighting: Face shading model

    Returns:
        The style the cell was drawn with
    """
    w = canvas.width if w is None else w
    h = canvas.height if h is None else h
    canvas.clear((x, y, w, h))

    prefix, key = split_sprite_key(sprite_key)
    style = resolve_style(sprite_key)

    draw_shadow(canvas, x + w * 0.5, y + h * 0.88, w * 0.16, h * 0.06)

    if style.shape is ShapeClass.TREE:
        draw_tree(canvas, x, y, w, h, rng)
        return style
    if style.shape is ShapeClass.PARK:
        draw_park_tile(canvas, key, x, y, w, h, rng)
        return style

    draw_building(canvas, style, key, prefix, variant, x, y, w, h, rng, lighting)
    apply_variant_overlay(canvas, variant, x, y, w, h, rng)
    return style

