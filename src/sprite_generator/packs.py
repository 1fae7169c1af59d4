"""
Sprite Pack Data Model

A SpritePack describes one visual theme as the renderer consumes it:
grid geometry, the ordered key list of the main grid, optional per-kind cell
maps, optional per-kind grid sizes, sheet sources and an optional procedural
descriptor.

Sheet kinds:
- main / construction / abandoned: variants of the ordered main grid
- dense / modern / parks / parksConstruction / farms / shops / stations:
  independent sheets laid out from an explicit cell map

A pack is procedural if it carries a procedural descriptor OR any of its
sheet sources is a "procedural:" cache key. Both signals are equivalent.
"""

import copy
from dataclasses import dataclass, field, fields, asdict, replace
from enum import Enum
import logging
import threading
from typing import Any, Dict, Iterator, List, NamedTuple, Optional, Tuple
from urllib.parse import quote

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

PROCEDURAL_KEY_PREFIX = "procedural:"

DEFAULT_TILE_WIDTH = 256
DEFAULT_TILE_HEIGHT = 213
MIN_TILE_SIZE = 16


class PackLayout(Enum):
    """Traversal order of the main grid's sprite_order."""
    ROW = "row"
    COLUMN = "column"


class SheetVariant(Enum):
    """Status variant of a sheet (affects tint and overlays only)."""
    MAIN = "main"
    CONSTRUCTION = "construction"
    ABANDONED = "abandoned"


class SheetKind(Enum):
    """Category of sheet being generated."""
    MAIN = "main"
    CONSTRUCTION = "construction"
    ABANDONED = "abandoned"
    DENSE = "dense"
    MODERN = "modern"
    PARKS = "parks"
    PARKS_CONSTRUCTION = "parksConstruction"
    FARMS = "farms"
    SHOPS = "shops"
    STATIONS = "stations"

    @property
    def is_variant_kind(self) -> bool:
        """True for the three kinds laid out from sprite_order."""
        return self in VARIANT_KINDS

    @classmethod
    def parse(cls, value: "SheetKind | str") -> "SheetKind":
        """Accept an enum member or its string value."""
        if isinstance(value, SheetKind):
            return value
        try:
            return cls(value)
        except ValueError:
            raise ConfigurationError(f"Unknown sheet kind: {value!r}") from None


VARIANT_KINDS = (SheetKind.MAIN, SheetKind.CONSTRUCTION, SheetKind.ABANDONED)


class GridPosition(NamedTuple):
    """A (col, row) cell on a sheet."""
    col: int
    row: int


class KindSpec(NamedTuple):
    """
    How a cell-mapped kind is laid out.

    Attributes:
        cell_map: SpritePack attribute holding the type -> positions mapping
        prefix: Namespace prepended to every building type
        grid: Attribute prefix of the kind's grid override (None = main grid)
        variant: Variant the cells are drawn with
        src: SpritePack attribute holding the sheet source
    """
    cell_map: str
    prefix: str
    grid: Optional[str]
    variant: SheetVariant
    src: str


KIND_SPECS: Dict[SheetKind, KindSpec] = {
    SheetKind.DENSE: KindSpec("dense_variants", "dense", None, SheetVariant.MAIN, "dense_src"),
    SheetKind.MODERN: KindSpec("modern_variants", "modern", None, SheetVariant.MAIN, "modern_src"),
    SheetKind.PARKS: KindSpec("parks_buildings", "park", "parks", SheetVariant.MAIN, "parks_src"),
    SheetKind.PARKS_CONSTRUCTION: KindSpec(
        "parks_buildings", "park", "parks", SheetVariant.CONSTRUCTION, "parks_construction_src"
    ),
    SheetKind.FARMS: KindSpec("farms_variants", "farm", "farms", SheetVariant.MAIN, "farms_src"),
    SheetKind.SHOPS: KindSpec("shops_variants", "shop", "shops", SheetVariant.MAIN, "shops_src"),
    SheetKind.STATIONS: KindSpec(
        "stations_variants", "station", "stations", SheetVariant.MAIN, "stations_src"
    ),
}

VARIANT_SOURCES: Dict[SheetKind, str] = {
    SheetKind.MAIN: "src",
    SheetKind.CONSTRUCTION: "construction_src",
    SheetKind.ABANDONED: "abandoned_src",
}

CellMap = Dict[str, List[GridPosition]]


@dataclass(frozen=True)
class ProceduralConfig:
    """Procedural descriptor of a pack."""
    tile_width: int = DEFAULT_TILE_WIDTH
    tile_height: int = DEFAULT_TILE_HEIGHT
    seed: int = 0

    @property
    def cell_size(self) -> Tuple[int, int]:
        """Effective (width, height) of one cell, floored and clamped to 16 px."""
        return (
            max(MIN_TILE_SIZE, int(self.tile_width)),
            max(MIN_TILE_SIZE, int(self.tile_height)),
        )


def procedural_cache_key(pack_id: str, kind: "SheetKind | str") -> str:
    """Cache key of a generated sheet: procedural:<packId>:<kind>."""
    return f"{PROCEDURAL_KEY_PREFIX}{pack_id}:{SheetKind.parse(kind).value}"


def is_procedural_key(src: Optional[str]) -> bool:
    """True if a sheet source is a procedural cache key rather than a file."""
    return bool(src) and src.startswith(PROCEDURAL_KEY_PREFIX)


@dataclass
class SpritePack:
    """
    Descriptor of one sprite pack.

    Only geometry, key lists and cell maps influence generation; sources are
    what the renderer uses to find finished sheets.
    """

    id: str
    name: str
    cols: int
    rows: int
    sprite_order: List[str] = field(default_factory=list)
    layout: PackLayout = PackLayout.ROW

    src: Optional[str] = None
    construction_src: Optional[str] = None
    abandoned_src: Optional[str] = None
    dense_src: Optional[str] = None
    modern_src: Optional[str] = None
    parks_src: Optional[str] = None
    parks_construction_src: Optional[str] = None
    farms_src: Optional[str] = None
    shops_src: Optional[str] = None
    stations_src: Optional[str] = None

    dense_variants: Optional[CellMap] = None
    modern_variants: Optional[CellMap] = None
    parks_buildings: Optional[CellMap] = None
    farms_variants: Optional[CellMap] = None
    shops_variants: Optional[CellMap] = None
    stations_variants: Optional[CellMap] = None

    parks_cols: Optional[int] = None
    parks_rows: Optional[int] = None
    farms_cols: Optional[int] = None
    farms_rows: Optional[int] = None
    shops_cols: Optional[int] = None
    shops_rows: Optional[int] = None
    stations_cols: Optional[int] = None
    stations_rows: Optional[int] = None

    procedural: Optional[ProceduralConfig] = None
    preview_src: Optional[str] = None

    def sheet_src(self, kind: "SheetKind | str") -> Optional[str]:
        """Source (file path or cache key) of a sheet kind."""
        kind = SheetKind.parse(kind)
        if kind.is_variant_kind:
            return getattr(self, VARIANT_SOURCES[kind])
        return getattr(self, KIND_SPECS[kind].src)

    def sources(self) -> Iterator[Tuple[SheetKind, str]]:
        """All configured (kind, source) pairs."""
        for kind in SheetKind:
            src = self.sheet_src(kind)
            if src:
                yield kind, src

    def cell_map(self, kind: "SheetKind | str") -> Optional[CellMap]:
        """Cell map backing a cell-mapped kind, or None."""
        kind = SheetKind.parse(kind)
        if kind.is_variant_kind:
            return None
        return getattr(self, KIND_SPECS[kind].cell_map)

    def grid_for(self, kind: "SheetKind | str") -> Tuple[int, int]:
        """(cols, rows) of a kind, honoring per-kind overrides."""
        kind = SheetKind.parse(kind)
        if kind.is_variant_kind or KIND_SPECS[kind].grid is None:
            return self.cols, self.rows
        grid = KIND_SPECS[kind].grid
        cols = getattr(self, f"{grid}_cols")
        rows = getattr(self, f"{grid}_rows")
        return (
            self.cols if cols is None else cols,
            self.rows if rows is None else rows,
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SpritePack":
        """
        Build a pack from a JSON-style descriptor.

        Cell maps accept either a list of positions or a single position per
        type; positions may be {"col": c, "row": r} objects or [c, r] pairs.

        Raises:
            ConfigurationError: If required fields are missing or malformed
        """
        missing = [k for k in ("id", "cols", "rows") if k not in data]
        if missing:
            raise ConfigurationError(f"Pack descriptor missing fields: {', '.join(missing)}")

        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigurationError(f"Unknown pack descriptor fields: {', '.join(unknown)}")

        kwargs = dict(data)
        kwargs.setdefault("name", str(data["id"]))
        kwargs["cols"] = _positive_int(data["cols"], "cols")
        kwargs["rows"] = _positive_int(data["rows"], "rows")
        for attr in _grid_override_attrs():
            if data.get(attr) is not None:
                kwargs[attr] = _positive_int(data[attr], attr)
        kwargs["sprite_order"] = [str(k) for k in data.get("sprite_order", [])]

        try:
            kwargs["layout"] = PackLayout(data.get("layout", PackLayout.ROW.value))
        except ValueError:
            raise ConfigurationError(f"Unknown layout: {data.get('layout')!r}") from None

        for attr in _cell_map_attrs():
            if data.get(attr) is not None:
                kwargs[attr] = _parse_cell_map(data[attr], attr)

        procedural = data.get("procedural")
        if procedural is not None and not isinstance(procedural, ProceduralConfig):
            kwargs["procedural"] = _parse_procedural(procedural)

        return cls(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        """JSON-serialisable descriptor (inverse of from_dict)."""
        data = asdict(self)
        data["layout"] = self.layout.value
        for attr in _cell_map_attrs():
            mapping = getattr(self, attr)
            if mapping is not None:
                data[attr] = {
                    name: [{"col": p.col, "row": p.row} for p in positions]
                    for name, positions in mapping.items()
                }
        return {k: v for k, v in data.items() if v is not None}


def _cell_map_attrs() -> List[str]:
    return sorted({spec.cell_map for spec in KIND_SPECS.values()})


def _grid_override_attrs() -> List[str]:
    grids = sorted({spec.grid for spec in KIND_SPECS.values() if spec.grid})
    return [f"{grid}_{axis}" for grid in grids for axis in ("cols", "rows")]


def _parse_procedural(raw: Any) -> ProceduralConfig:
    if not isinstance(raw, dict):
        raise ConfigurationError(f"procedural must be a mapping, got {raw!r}")
    try:
        return ProceduralConfig(
            tile_width=int(raw.get("tile_width", DEFAULT_TILE_WIDTH)),
            tile_height=int(raw.get("tile_height", DEFAULT_TILE_HEIGHT)),
            seed=int(raw.get("seed", 0)),
        )
    except (TypeError, ValueError):
        raise ConfigurationError(f"Bad procedural descriptor: {raw!r}") from None


def _positive_int(value: Any, name: str) -> int:
    try:
        n = int(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"{name} must be an integer, got {value!r}") from None
    if n <= 0:
        raise ConfigurationError(f"{name} must be positive, got {n}")
    return n


def _parse_position(value: Any, where: str) -> GridPosition:
    try:
        if isinstance(value, dict):
            return GridPosition(int(value["col"]), int(value["row"]))
        if isinstance(value, (list, tuple)) and len(value) == 2:
            return GridPosition(int(value[0]), int(value[1]))
    except (KeyError, TypeError, ValueError):
        pass
    raise ConfigurationError(f"Bad grid position in {where}: {value!r}")


def _parse_cell_map(raw: Any, attr: str) -> CellMap:
    if not isinstance(raw, dict):
        raise ConfigurationError(f"{attr} must be a mapping of type -> positions")
    result: CellMap = {}
    for name, positions in raw.items():
        single = isinstance(positions, dict) or (
            isinstance(positions, (list, tuple))
            and len(positions) == 2
            and all(isinstance(v, int) for v in positions)
        )
        if single:
            positions = [positions]
        result[str(name)] = [_parse_position(p, f"{attr}.{name}") for p in positions]
    return result


def is_procedural_pack(pack: SpritePack) -> bool:
    """True if the pack has a procedural descriptor or procedural sources."""
    if pack.procedural is not None:
        return True
    return any(is_procedural_key(src) for _, src in pack.sources())


def procedural_config(pack: SpritePack) -> ProceduralConfig:
    """The pack's procedural descriptor, or the default 256x213 / seed 0."""
    return pack.procedural if pack.procedural is not None else ProceduralConfig()


# ---------------------------------------------------------------------------
# Procedural pack derivation
# ---------------------------------------------------------------------------

@dataclass
class ProceduralPackOptions:
    """
    Options for deriving a procedural pack from a base pack.

    Attributes:
        id: Unique id (used in procedural:<id>:<kind> cache keys)
        name: Display name
        seed: Seed (defaults to the base pack's seed, then 0)
        tile_width, tile_height: Cell size (defaults to the base pack's, then 256x213)
        preview_src: Preview image; a small SVG is generated when omitted
    """
    id: str
    name: str
    seed: Optional[int] = None
    tile_width: Optional[int] = None
    tile_height: Optional[int] = None
    preview_src: Optional[str] = None


_PREVIEW_SVG = """<svg xmlns="http://www.w3.org/2000/svg" width="256" height="128" viewBox="0 0 256 128">
  <defs>
    <linearGradient id="g" x1="0" y1="0" x2="1" y2="1">
      <stop offset="0" stop-color="#0ea5e9"/>
      <stop offset="1" stop-color="#22c55e"/>
    </linearGradient>
  </defs>
  <rect width="256" height="128" fill="#0b1220"/>
  <rect x="12" y="12" width="232" height="104" rx="12" fill="url(#g)" opacity="0.18"/>
  <path d="M64 88 L128 48 L192 88 L128 112 Z" fill="url(#g)" opacity="0.55"/>
  <path d="M64 88 L128 48 L128 112 L64 88 Z" fill="#ffffff" opacity="0.10"/>
  <path d="M192 88 L128 48 L128 112 L192 88 Z" fill="#000000" opacity="0.15"/>
  <text x="20" y="34" fill="#e2e8f0" font-family="sans-serif" font-size="14" font-weight="600">Procedural</text>
  <text x="20" y="54" fill="#cbd5e1" font-family="sans-serif" font-size="12">{label}</text>
</svg>"""


def default_preview_svg(label: str) -> str:
    """Deterministic SVG data URI showing an isometric tile and the pack name."""
    safe = label.replace("<", "").replace(">", "").replace("&", "")
    svg = _PREVIEW_SVG.format(label=safe)
    return "data:image/svg+xml;charset=utf-8," + quote(svg, safe="")


def create_procedural_pack_from_base(base: SpritePack, options: ProceduralPackOptions) -> SpritePack:
    """
    Derive a procedural pack that inherits layout and cell maps from `base`.

    The three variant sheets always become procedural cache keys. Optional
    sheets become cache keys only when the base pack has the matching cell
    map; otherwise the base pack's source is kept.

    Args:
        base: Pack to copy key lists and cell maps from
        options: Identity, seed and tile size of the new pack

    Returns:
        A new SpritePack (the base pack is not modified)
    """
    base_cfg = base.procedural
    tile_width = options.tile_width
    if tile_width is None:
        tile_width = base_cfg.tile_width if base_cfg else DEFAULT_TILE_WIDTH
    tile_height = options.tile_height
    if tile_height is None:
        tile_height = base_cfg.tile_height if base_cfg else DEFAULT_TILE_HEIGHT
    seed = options.seed
    if seed is None:
        seed = base_cfg.seed if base_cfg else 0

    sources: Dict[str, Optional[str]] = {}
    for kind in VARIANT_KINDS:
        sources[VARIANT_SOURCES[kind]] = procedural_cache_key(options.id, kind)
    for kind, spec in KIND_SPECS.items():
        if getattr(base, spec.cell_map) is not None:
            sources[spec.src] = procedural_cache_key(options.id, kind)

    pack = replace(
        copy.deepcopy(base),
        id=options.id,
        name=options.name,
        preview_src=options.preview_src or default_preview_svg(options.name),
        procedural=ProceduralConfig(tile_width=tile_width, tile_height=tile_height, seed=seed),
        **sources,
    )
    logger.debug("Derived procedural pack %r from %r (seed=%s)", pack.id, base.id, seed)
    return pack


# ---------------------------------------------------------------------------
# Pack registry
# ---------------------------------------------------------------------------

class PackRegistry:
    """
    Ordered collection of sprite packs, addressable by id.

    Example:
        >>> packs = PackRegistry([base_pack])
        >>> packs.register_procedural_pack("sprites4", ProceduralPackOptions("mine", "Mine", seed=7))
    """

    def __init__(self, packs: Optional[List[SpritePack]] = None):
        self._lock = threading.RLock()
        self._packs: Dict[str, SpritePack] = {}
        for pack in packs or []:
            self.register(pack)

    def register(self, pack: SpritePack, replace: bool = False) -> bool:
        """
        Add a pack.

        An existing pack with the same id is kept unless `replace` is set.

        Returns:
            True if the registry changed
        """
        with self._lock:
            if pack.id in self._packs and not replace:
                logger.debug("Pack %r already registered; keeping existing", pack.id)
                return False
            self._packs[pack.id] = pack
        logger.debug("Registered pack %r", pack.id)
        return True

    def get(self, pack_id: str) -> SpritePack:
        """
        Look up a pack.

        Raises:
            KeyError: If no pack has that id
        """
        with self._lock:
            try:
                return self._packs[pack_id]
            except KeyError:
                raise KeyError(f"Unknown sprite pack: {pack_id!r}") from None

    def __contains__(self, pack_id: str) -> bool:
        with self._lock:
            return pack_id in self._packs

    def __len__(self) -> int:
        with self._lock:
            return len(self._packs)

    def ids(self) -> List[str]:
        """Pack ids in registration order."""
        with self._lock:
            return list(self._packs)

    def packs(self) -> List[SpritePack]:
        """Packs in registration order."""
        with self._lock:
            return list(self._packs.values())

    def register_procedural_pack(
        self,
        base_id: str,
        options: ProceduralPackOptions,
        replace: bool = False
    ) -> SpritePack:
        """
        Derive a procedural pack from a registered base pack and register it.

        Returns:
            The derived pack (even if an existing pack with its id was kept)
        """
        pack = create_procedural_pack_from_base(self.get(base_id), options)
        self.register(pack, replace=replace)
        return pack
