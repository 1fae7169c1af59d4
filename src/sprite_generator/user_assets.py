"""
User Procedural Assets

Application-level registrations, kept out of the core generator:

- A "procedural-user" pack derived from sprites4 with its own seed
- Pack-scoped overrides for house_small and tree (only that pack changes)
- Global extension points that change nothing unless keys reference them

Call register_user_assets() once at startup; calling it again is harmless.
"""

import colorsys

from .builtin_packs import BASE_PACK_ID
from .extensions import ExtensionRegistry, RenderArgs
from .packs import PackRegistry, ProceduralPackOptions, SpritePack
from .primitives import draw_shadow

USER_PACK_ID = "procedural-user"
USER_PACK_SEED = 20251227


def _hsl(hue: float, saturation: float, lightness: float):
    r, g, b = colorsys.hls_to_rgb(hue / 360.0, lightness, saturation)
    return (r * 255.0, g * 255.0, b * 255.0)


def draw_user_house(args: RenderArgs) -> bool:
    """Small gabled house with a per-cell roof hue."""
    canvas, x, y, w, h = args.canvas, args.x, args.y, args.w, args.h
    variant = args.variant

    roof_hue = int(200 + args.rng() * 30)
    if variant == "construction":
        roof = "#fbbf24"
    elif variant == "abandoned":
        roof = "#64748b"
    else:
        roof = _hsl(roof_hue, 0.7, 0.55)
    wall_left = "#475569" if variant == "abandoned" else "#60a5fa"
    wall_right = "#334155" if variant == "abandoned" else "#3b82f6"

    cx = x + w * 0.5
    base_y = y + h * 0.88
    fx = w * 0.22
    fy = h * 0.11
    wall_h = h * 0.22

    draw_shadow(canvas, cx, base_y, fx * 0.85, fy * 0.85)

    g_n, g_w, g_e, g_s = (cx, base_y - fy), (cx - fx, base_y), (cx + fx, base_y), (cx, base_y + fy)
    t_n, t_w, t_e, t_s = [(px, py - wall_h) for px, py in (g_n, g_w, g_e, g_s)]

    canvas.fill_polygon([t_w, t_s, g_s, g_w], wall_left)
    canvas.fill_polygon([t_e, t_s, g_s, g_e], wall_right)
    canvas.fill_polygon([t_n, t_e, t_s, t_w], roof)

    door = "#0f172a" if variant == "construction" else "#1e293b"
    canvas.fill_rect(cx - fx * 0.10, base_y - fy * 0.15, fx * 0.20, fy * 0.55, door, alpha=0.9)

    if variant == "construction":
        width = max(2, int(w * 0.01))
        for i in range(-4, 5):
            sx = x + i * (w * 0.12)
            canvas.line((sx, y + h * 0.25), (sx + w * 0.25, y + h * 0.65), "#111827", width=width, alpha=0.55)

    return True


def draw_user_tree(args: RenderArgs) -> bool:
    """Three-lobed tree, greyed out for construction/abandoned sheets."""
    canvas, x, y, w, h = args.canvas, args.x, args.y, args.w, args.h
    variant = args.variant
    cx = x + w * 0.5
    base_y = y + h * 0.9

    draw_shadow(canvas, cx, base_y, w * 0.10, h * 0.04)

    trunk_h = h * 0.18
    trunk = "#4b5563" if variant == "abandoned" else "#8b5a2b"
    canvas.fill_rect(cx - w * 0.02, base_y - trunk_h, w * 0.04, trunk_h, trunk)

    canopy_y = base_y - trunk_h - h * 0.12
    r1 = w * (0.08 + args.rng() * 0.05)
    r2 = w * (0.10 + args.rng() * 0.06)
    if variant == "construction":
        canopy = "#94a3b8"
    elif variant == "abandoned":
        canopy = "#64748b"
    else:
        canopy = "#22c55e"
    alpha = 0.8 if variant == "abandoned" else 0.95

    canvas.fill_circle(cx, canopy_y, r2, canopy, alpha=alpha)
    canvas.fill_circle(cx - r1 * 0.9, canopy_y + r1 * 0.2, r1, canopy, alpha=alpha)
    canvas.fill_circle(cx + r1 * 0.9, canopy_y + r1 * 0.2, r1, canopy, alpha=alpha)
    return True


def _decline(args: RenderArgs) -> bool:
    return False


def register_user_assets(packs: PackRegistry, extensions: ExtensionRegistry) -> SpritePack:
    """
    Register the user pack and its renderers.

    Args:
        packs: Pack registry (must contain sprites4)
        extensions: Extension registry

    Returns:
        The procedural-user pack
    """
    packs.register_procedural_pack(
        BASE_PACK_ID,
        ProceduralPackOptions(id=USER_PACK_ID, name="Procedural (User)", seed=USER_PACK_SEED),
    )

    extensions.register_sprite_renderer("house_small", draw_user_house, pack_id=USER_PACK_ID)
    extensions.register_sprite_renderer("tree", draw_user_tree, pack_id=USER_PACK_ID)

    # Reference keys like "user:my_asset" to route them here
    extensions.register_prefix_renderer("user", _decline)
    extensions.register_sprite_renderer("__user_noop__", _decline)
    return packs.get(USER_PACK_ID)
