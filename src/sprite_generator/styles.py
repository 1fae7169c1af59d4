"""
Style Resolver

Maps a sprite key (optionally namespaced, e.g. "dense:apartment_high") to a
declarative SpriteStyle. Resolution is a pure function of the key string:

1. Split on the first ':' into (prefix, key).
2. Walk STYLE_RULES in order; the first rule whose predicate matches the
   un-prefixed key builds the style. Unmatched keys get DEFAULT_STYLE.
3. The literal key "water" always resolves to a flat blue park-like tile.
4. A known prefix applies a fixed adjustment on top (PREFIX_MODIFIERS).

The rules are an ordered list, not a set: several predicates overlap
(e.g. "park_gate" is caught by the park rule before the civic landmark rule).
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Dict, List, NamedTuple, Optional, Tuple


class ShapeClass(Enum):
    """Which primitive family draws a sprite."""
    BUILDING = "building"
    TREE = "tree"
    PARK = "park"
    UTILITY = "utility"
    SPECIAL = "special"


@dataclass(frozen=True)
class SpriteStyle:
    """
    Resolved visual description of a sprite.

    Attributes:
        shape: Primitive family
        base_color: Wall color (hex)
        roof_color: Top face color (hex)
        accent_color: Sign / detail color (hex)
        footprint_x: Isometric width multiplier
        footprint_y: Isometric depth multiplier
        height: Height multiplier (1.0 = 18% of the tile height)
    """
    shape: ShapeClass
    base_color: str
    roof_color: str
    accent_color: str
    footprint_x: float
    footprint_y: float
    height: float


class StyleRule(NamedTuple):
    """One entry of the ordered style table."""
    category: str
    matches: Callable[[str], bool]
    build: Callable[[str], SpriteStyle]


def split_sprite_key(sprite_key: str) -> Tuple[Optional[str], str]:
    """
    Split a namespaced sprite key.

    A leading ':' (empty prefix) is not treated as a namespace.

    Returns:
        (prefix or None, key)
    """
    idx = sprite_key.find(":")
    if idx <= 0:
        return None, sprite_key
    return sprite_key[:idx], sprite_key[idx + 1:]


def _style(shape, base, roof, accent, fx, fy, height) -> SpriteStyle:
    return SpriteStyle(shape, base, roof, accent, fx, fy, height)


B = ShapeClass.BUILDING

DEFAULT_STYLE = _style(B, "#64748b", "#94a3b8", "#0f172a", 1.1, 1.1, 1.0)

WATER_STYLE = _style(ShapeClass.PARK, "#3b82f6", "#1d4ed8", "#93c5fd", 1.9, 1.8, 0.25)


# --- residential ------------------------------------------------------------

def _house(key: str) -> SpriteStyle:
    if key in ("mansion", "mountain_lodge"):
        fx, fy, h = 1.7, 1.6, 1.35
    elif key == "house_medium":
        fx, fy, h = 1.3, 1.25, 1.1
    else:
        fx, fy, h = 1.15, 1.1, 0.9
    return _style(B, "#60a5fa", "#1d4ed8", "#0b1220", fx, fy, h)


def _apartment(key: str) -> SpriteStyle:
    if "high" in key:
        return _style(B, "#38bdf8", "#0369a1", "#0b1220", 1.95, 1.8, 2.9)
    return _style(B, "#60a5fa", "#1d4ed8", "#0b1220", 1.75, 1.65, 2.3)


def _office(key: str) -> SpriteStyle:
    is_high = "high" in key
    return _style(
        B, "#fbbf24" if is_high else "#f59e0b", "#92400e", "#111827",
        1.9, 1.75, 2.75 if is_high else 2.25
    )


# --- commercial / industrial -------------------------------------------------

def _shop(key: str) -> SpriteStyle:
    is_medium = key == "shop_medium"
    return _style(
        B, "#fbbf24", "#b45309", "#111827",
        1.4 if is_medium else 1.2, 1.2, 1.2 if is_medium else 1.0
    )


def _commercial(key: str) -> SpriteStyle:
    if key == "mall":
        return _style(B, "#f59e0b", "#92400e", "#111827", 2.1, 1.9, 2.8)
    return _style(B, "#f59e0b", "#92400e", "#111827", 1.7, 1.6, 2.4)


def _factory(key: str) -> SpriteStyle:
    if key == "factory_large":
        fx, fy, h = 2.0, 1.8, 1.6
    elif key == "factory_medium":
        fx, fy, h = 1.6, 1.5, 1.3
    else:
        fx, fy, h = 1.35, 1.25, 1.1
    return _style(B, "#9ca3af", "#6b7280", "#111827", fx, fy, h)


# --- parks -------------------------------------------------------------------

PARK_TERMS = (
    "garden", "playground", "camp", "trail", "pond", "court", "field",
    "pool", "skate", "go_kart", "roller_coaster", "marina", "pier",
)


def _is_park(key: str) -> bool:
    return key.startswith("park") or any(term in key for term in PARK_TERMS)


def _park(key: str) -> SpriteStyle:
    is_large = "large" in key or "stadium" in key or "mountain_trailhead" in key
    base = "#3b82f6" if ("pool" in key or "pond" in key) else "#22c55e"
    return _style(
        ShapeClass.PARK, base, "#166534", "#f8fafc",
        1.9 if is_large else 1.45, 1.75 if is_large else 1.35, 0.45
    )


def _fixed(style: SpriteStyle) -> Callable[[str], SpriteStyle]:
    return lambda key: style


U = ShapeClass.UTILITY
S = ShapeClass.SPECIAL

STYLE_RULES: List[StyleRule] = [
    # Residential, apartments and offices
    StyleRule(
        "residential",
        lambda k: "house" in k or k == "mansion" or "cabin" in k or "lodge" in k,
        _house,
    ),
    StyleRule("residential", lambda k: k == "residential",
              _fixed(_style(B, "#3b82f6", "#1e3a8a", "#0b1220", 1.55, 1.45, 2.1))),
    StyleRule("residential", lambda k: "apartment" in k, _apartment),
    StyleRule("commercial", lambda k: "office" in k, _office),

    # Commercial
    StyleRule("commercial", lambda k: "shop" in k, _shop),
    StyleRule("commercial", lambda k: k in ("commercial", "mall"), _commercial),

    # Industrial
    StyleRule("industrial", lambda k: "factory" in k or k == "warehouse", _factory),
    StyleRule("industrial", lambda k: k == "industrial",
              _fixed(_style(B, "#94a3b8", "#475569", "#0f172a", 1.8, 1.7, 1.9))),

    # Civic services
    StyleRule("services", lambda k: "police" in k,
              _fixed(_style(B, "#a5b4fc", "#4338ca", "#111827", 1.45, 1.35, 1.35))),
    StyleRule("services", lambda k: "fire_station" in k,
              _fixed(_style(B, "#fb7185", "#be123c", "#111827", 1.55, 1.4, 1.4))),
    StyleRule("services", lambda k: "hospital" in k,
              _fixed(_style(B, "#f1f5f9", "#94a3b8", "#ef4444", 1.7, 1.55, 1.8))),
    StyleRule("services", lambda k: "school" in k,
              _fixed(_style(B, "#fde68a", "#b45309", "#111827", 1.55, 1.45, 1.35))),
    StyleRule("services", lambda k: "university" in k,
              _fixed(_style(B, "#c4b5fd", "#6d28d9", "#111827", 1.75, 1.65, 1.65))),

    # Parks and nature
    StyleRule("nature", lambda k: k == "tree",
              _fixed(_style(ShapeClass.TREE, "#16a34a", "#14532d", "#78350f", 1.05, 1.05, 1.35))),
    StyleRule("parks", _is_park, _park),

    # Utilities
    StyleRule("utilities", lambda k: k == "power_plant",
              _fixed(_style(U, "#a3a3a3", "#525252", "#f59e0b", 2.0, 1.7, 1.8))),
    StyleRule("utilities", lambda k: k == "water_tower",
              _fixed(_style(U, "#93c5fd", "#1d4ed8", "#0f172a", 1.2, 1.2, 2.0))),
    StyleRule("utilities", lambda k: k in ("subway_station", "rail_station"),
              _fixed(_style(U, "#cbd5e1", "#64748b", "#0f172a", 1.6, 1.5, 0.95))),

    # Special landmarks
    StyleRule("special", lambda k: "stadium" in k,
              _fixed(_style(S, "#e5e7eb", "#9ca3af", "#0f172a", 2.2, 2.0, 1.0))),
    StyleRule("special", lambda k: k == "museum" or "amphitheater" in k,
              _fixed(_style(S, "#fef3c7", "#b45309", "#0f172a", 1.85, 1.65, 1.35))),
    StyleRule("special", lambda k: k == "airport",
              _fixed(_style(S, "#e2e8f0", "#64748b", "#0f172a", 2.4, 2.1, 0.85))),
    StyleRule("special", lambda k: k == "space_program",
              _fixed(_style(S, "#d1d5db", "#4b5563", "#22d3ee", 2.0, 1.8, 2.2))),
    StyleRule("special", lambda k: k == "city_hall" or "park_gate" in k,
              _fixed(_style(S, "#e0e7ff", "#4338ca", "#111827", 1.9, 1.7, 1.7))),
    StyleRule("special",
              lambda k: k == "amusement_park" or "roller_coaster" in k or "go_kart" in k,
              _fixed(_style(S, "#fca5a5", "#be123c", "#fbbf24", 2.1, 1.9, 1.4))),
]


# --- prefix modifiers --------------------------------------------------------

def _dense(style: SpriteStyle) -> SpriteStyle:
    return replace(
        style,
        height=style.height * 1.25,
        footprint_x=style.footprint_x * 1.05,
        footprint_y=style.footprint_y * 1.05,
    )


def _modern(style: SpriteStyle) -> SpriteStyle:
    return replace(
        style,
        base_color="#94a3b8",
        roof_color="#334155",
        accent_color="#0f172a",
        height=style.height * 1.15,
    )


def _farm(style: SpriteStyle) -> SpriteStyle:
    return replace(style, base_color="#a3e635", roof_color="#4d7c0f", accent_color="#78350f")


def _station(style: SpriteStyle) -> SpriteStyle:
    return replace(
        style,
        shape=ShapeClass.UTILITY,
        base_color="#cbd5e1",
        roof_color="#64748b",
        accent_color="#0f172a",
    )


PREFIX_MODIFIERS: Dict[str, Callable[[SpriteStyle], SpriteStyle]] = {
    "dense": _dense,
    "modern": _modern,
    "farm": _farm,
    "station": _station,
}


def match_rule(key: str) -> Optional[StyleRule]:
    """Return the first rule matching an un-prefixed key."""
    for rule in STYLE_RULES:
        if rule.matches(key):
            return rule
    return None


def resolve_base_style(key: str) -> SpriteStyle:
    """Resolve an un-prefixed key, ignoring namespace modifiers."""
    if key == "water":
        return WATER_STYLE
    rule = match_rule(key)
    if rule is None:
        return DEFAULT_STYLE
    return rule.build(key)


def resolve_style(sprite_key: str) -> SpriteStyle:
    """
    Resolve a (possibly namespaced) sprite key to its style.

    Args:
        sprite_key: e.g. "house_small" or "dense:apartment_high"

    Returns:
        SpriteStyle
    """
    prefix, key = split_sprite_key(sprite_key)
    style = resolve_base_style(key)

    modifier = PREFIX_MODIFIERS.get(prefix) if prefix else None
    if modifier is not None:
        style = modifier(style)

    return style
