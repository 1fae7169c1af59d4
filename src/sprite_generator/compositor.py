"""
Sheet Compositor

Lays sprite cells out on one sheet image and drives per-cell generation.

Layout strategies:
1. Ordered grid (main / construction / abandoned): sprite_order is walked
   row-major or column-major; positions outside the grid are skipped.
2. Cell map (dense / modern / parks / farms / shops / stations): every
   (type, position) pair becomes a cell keyed "<prefix>:<type>" with the
   position's index as salt.

Each cell is drawn on its own cleared CellCanvas and pasted into the sheet,
so a cell can never bleed into its neighbours. Every cell is seeded from
(seed, pack id, kind, variant, sprite key, salt) only.

Example Usage:
    compositor = SheetCompositor()
    sheet = compositor.generate_sheet(pack, "dense")
    if sheet is not None:
        sheet.save("dense.png")
"""

from dataclasses import dataclass, field
import logging
from typing import Callable, Dict, List, Optional

from PIL import Image

from .canvas import CellCanvas, TRANSPARENT
from .errors import ConfigurationError, RenderEnvironmentError
from .extensions import ExtensionRegistry, RenderArgs
from .packs import (
    KIND_SPECS,
    CellMap,
    PackLayout,
    SheetKind,
    SheetVariant,
    SpritePack,
    is_procedural_pack,
    procedural_config,
)
from .primitives import DEFAULT_LIGHTING, FaceLighting, draw_sprite_tile
from .rng import make_cell_rng
from .styles import split_sprite_key

logger = logging.getLogger(__name__)

SurfaceFactory = Callable[[int, int], Image.Image]


def default_surface_factory(width: int, height: int) -> Image.Image:
    """Transparent RGBA sheet."""
    return Image.new("RGBA", (width, height), TRANSPARENT)


@dataclass(frozen=True)
class Cell:
    """One sprite cell: grid position, sprite key and optional salt."""
    col: int
    row: int
    sprite_key: str
    salt: str = ""


@dataclass
class SheetLayout:
    """
    Everything needed to draw a sheet of one kind.

    Attributes:
        kind: Sheet kind
        variant: Variant every cell is drawn with
        cols, rows: Grid size
        cells: Cells in drawing order (may include out-of-bounds positions)
    """
    kind: SheetKind
    variant: SheetVariant
    cols: int
    rows: int
    cells: List[Cell] = field(default_factory=list)

    def in_bounds(self, cell: Cell) -> bool:
        return 0 <= cell.col < self.cols and 0 <= cell.row < self.rows

    def frames(self) -> Dict[str, List[Cell]]:
        """In-bounds cells grouped by sprite key."""
        grouped: Dict[str, List[Cell]] = {}
        for cell in self.cells:
            if self.in_bounds(cell):
                grouped.setdefault(cell.sprite_key, []).append(cell)
        return grouped


def ordered_grid_cells(
    sprite_order: List[str],
    cols: int,
    rows: int,
    layout: PackLayout = PackLayout.ROW
) -> List[Cell]:
    """
    Assign grid positions to an ordered key list.

    Row-major: (index % cols, index // cols).
    Column-major: (index // rows, index % rows).
    Positions outside [0, cols) x [0, rows) are dropped.
    """
    cells = []
    for index, sprite_key in enumerate(sprite_order):
        if layout is PackLayout.COLUMN:
            col, row = divmod(index, rows) if rows > 0 else (index, 0)
        else:
            row, col = divmod(index, cols) if cols > 0 else (0, index)
        if 0 <= col < cols and 0 <= row < rows:
            cells.append(Cell(col, row, sprite_key))
    return cells


def cell_map_cells(cell_map: CellMap, prefix: str, salt_single: bool = True) -> List[Cell]:
    """
    Expand a cell map into namespaced cells.

    Args:
        cell_map: Building type -> list of positions
        prefix: Namespace for the sprite keys
        salt_single: Salt single-position types with "0"; when False they
            get an empty salt

    Returns:
        One Cell per (type, position) pair, salted with the position index
    """
    cells = []
    for building_type, positions in cell_map.items():
        sprite_key = f"{prefix}:{building_type}"
        for i, pos in enumerate(positions):
            salt = str(i) if salt_single or len(positions) > 1 else ""
            cells.append(Cell(pos.col, pos.row, sprite_key, salt))
    return cells


class SheetCompositor:
    """
    Builds complete sprite sheets for a pack.

    Attributes:
        extensions: Registry consulted before the built-in renderer
        lighting: Face shading model for built-in prisms
    """

    def __init__(
        self,
        extensions: Optional[ExtensionRegistry] = None,
        lighting: FaceLighting = DEFAULT_LIGHTING,
        surface_factory: Optional[SurfaceFactory] = default_surface_factory
    ):
        """
        Initialize the compositor.

        Args:
            extensions: Extension registry (an empty one if None)
            lighting: Face shading model
            surface_factory: Creates the sheet image for a (width, height)
        """
        self.extensions = extensions if extensions is not None else ExtensionRegistry()
        self.lighting = lighting
        self.surface_factory = surface_factory

    def layout(self, pack: SpritePack, kind: "SheetKind | str") -> Optional[SheetLayout]:
        """
        Compute the layout of one sheet kind.

        Returns:
            SheetLayout, or None if the pack lacks the kind's cell map
        """
        kind = SheetKind.parse(kind)
        if kind.is_variant_kind:
            return SheetLayout(
                kind=kind,
                variant=SheetVariant(kind.value),
                cols=pack.cols,
                rows=pack.rows,
                cells=ordered_grid_cells(pack.sprite_order, pack.cols, pack.rows, pack.layout),
            )

        cell_map = pack.cell_map(kind)
        if cell_map is None:
            return None

        spec = KIND_SPECS[kind]
        cols, rows = pack.grid_for(kind)
        # Park buildings usually own a single cell; those stay unsalted
        salt_single = spec.cell_map != "parks_buildings"
        return SheetLayout(
            kind=kind,
            variant=spec.variant,
            cols=cols,
            rows=rows,
            cells=cell_map_cells(cell_map, spec.prefix, salt_single=salt_single),
        )

    def generate_sheet(
        self,
        pack: SpritePack,
        kind: "SheetKind | str",
        allow_file_backed: bool = False
    ) -> Optional[Image.Image]:
        """
        Generate a full sheet of one kind.

        Args:
            pack: Sprite pack
            kind: Sheet kind
            allow_file_backed: Generate variant kinds for non-procedural packs
                too (used when procedural assets are forced or a fallback)

        Returns:
            RGBA sheet sized (tile_width * cols, tile_height * rows), or None if
            the pack does not support the kind

        Raises:
            ConfigurationError: Variant kind requested for a non-procedural pack
            RenderEnvironmentError: No drawing surface could be created
        """
        kind = SheetKind.parse(kind)
        if kind.is_variant_kind and not allow_file_backed and not is_procedural_pack(pack):
            raise ConfigurationError(
                f"Sprite pack {pack.id} is not configured for procedural generation."
            )

        layout = self.layout(pack, kind)
        if layout is None:
            logger.debug("Pack %r has no cell map for %s; skipping", pack.id, kind.value)
            return None

        return self.render_layout(pack, layout)

    def generate_variant_sheet(self, pack: SpritePack, variant: "SheetVariant | str") -> Image.Image:
        """
        Generate a main / construction / abandoned sheet.

        Raises:
            ConfigurationError: If the pack is not procedural or the variant is unknown
        """
        if isinstance(variant, str):
            try:
                variant = SheetVariant(variant)
            except ValueError:
                raise ConfigurationError(f"Unknown sheet variant: {variant!r}") from None
        return self.generate_sheet(pack, SheetKind(variant.value))

    def render_layout(self, pack: SpritePack, layout: SheetLayout) -> Image.Image:
        """Draw every in-bounds cell of a layout onto a new sheet."""
        config = procedural_config(pack)
        tile_w, tile_h = config.cell_size
        sheet = self._new_surface(tile_w * layout.cols, tile_h * layout.rows)

        drawn = 0
        for cell in layout.cells:
            if not layout.in_bounds(cell):
                logger.debug("Cell %r at (%d, %d) is outside the grid", cell.sprite_key, cell.col, cell.row)
                continue
            canvas = self.render_cell(pack, layout.kind, layout.variant, cell, tile_w, tile_h, config.seed)
            sheet.paste(canvas.image, (cell.col * tile_w, cell.row * tile_h))
            drawn += 1

        logger.debug(
            "Generated %s sheet for %r: %dx%d cells, %d drawn",
            layout.kind.value, pack.id, layout.cols, layout.rows, drawn
        )
        return sheet

    def render_cell(
        self,
        pack: SpritePack,
        kind: SheetKind,
        variant: SheetVariant,
        cell: Cell,
        tile_width: int,
        tile_height: int,
        seed: int = 0
    ) -> CellCanvas:
        """
        Draw one cell on a fresh canvas.

        Extension renderers get the first chance; the built-in renderer runs
        when all of them decline.
        """
        rng = make_cell_rng(seed, pack.id, kind.value, variant.value, cell.sprite_key, cell.salt)
        canvas = CellCanvas(tile_width, tile_height)

        prefix, key = split_sprite_key(cell.sprite_key)
        args = RenderArgs(
            pack=pack,
            sheet_kind=kind.value,
            sprite_key=cell.sprite_key,
            prefix=prefix,
            key=key,
            variant=variant.value,
            canvas=canvas,
            x=0, y=0, w=tile_width, h=tile_height,
            rng=rng,
        )
        if not self.extensions.render(args):
            # Built-in drawing always starts from the cell's unconsumed stream
            rng = make_cell_rng(seed, pack.id, kind.value, variant.value, cell.sprite_key, cell.salt)
            draw_sprite_tile(canvas, cell.sprite_key, variant, rng, lighting=self.lighting)
        return canvas

    def _new_surface(self, width: int, height: int) -> Image.Image:
        if self.surface_factory is None:
            raise RenderEnvironmentError("No drawing surface available")
        if width <= 0 or height <= 0:
            raise RenderEnvironmentError(f"Cannot create a {width}x{height} sheet")
        try:
            surface = self.surface_factory(width, height)
        except Exception as e:
            raise RenderEnvironmentError(f"Failed to create drawing surface: {e}") from e
        if surface is None:
            raise RenderEnvironmentError("Surface factory returned no image")
        return surface
