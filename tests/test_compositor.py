"""
Unit tests for sheet layout, composition and the built-in cell renderer.
"""

import sys
from pathlib import Path
import numpy as np
import unittest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from sprite_generator.builtin_packs import sprites4_pack
from sprite_generator.canvas import CellCanvas
from sprite_generator.compositor import (
    Cell,
    SheetCompositor,
    cell_map_cells,
    ordered_grid_cells,
)
from sprite_generator.errors import ConfigurationError, RenderEnvironmentError
from sprite_generator.extensions import ExtensionRegistry
from sprite_generator.packs import (
    GridPosition,
    PackLayout,
    ProceduralConfig,
    ProceduralPackOptions,
    SheetKind,
    SheetVariant,
    SpritePack,
    create_procedural_pack_from_base,
)
from sprite_generator.primitives import draw_sprite_tile
from sprite_generator.projection import IsometricProjection, ProjectionMatrix, face_bounds
from sprite_generator.rng import make_rng
from sprite_generator.styles import ShapeClass

TILE_W = 64
TILE_H = 53


def small_pack(sprite_order, cols=1, rows=1, seed=1, pack_id="test", **kwargs):
    """A procedural pack with small cells."""
    return SpritePack(
        id=pack_id,
        name=pack_id,
        cols=cols,
        rows=rows,
        sprite_order=list(sprite_order),
        procedural=ProceduralConfig(TILE_W, TILE_H, seed),
        **kwargs
    )


def cell_pixels(sheet, col, row):
    arr = np.array(sheet)
    return arr[row * TILE_H:(row + 1) * TILE_H, col * TILE_W:(col + 1) * TILE_W]


class TestLayout(unittest.TestCase):
    """Tests for cell placement."""

    def test_row_major(self):
        """Test row-major placement."""
        cells = ordered_grid_cells(["a", "b", "c", "d"], cols=3, rows=2)
        assert [(c.col, c.row) for c in cells] == [(0, 0), (1, 0), (2, 0), (0, 1)]

    def test_column_major(self):
        """Test column-major placement."""
        cells = ordered_grid_cells(["a", "b", "c", "d"], cols=3, rows=2, layout=PackLayout.COLUMN)
        assert [(c.col, c.row) for c in cells] == [(0, 0), (0, 1), (1, 0), (1, 1)]

    def test_overflow_dropped(self):
        """Test keys beyond the grid are dropped."""
        cells = ordered_grid_cells(["a", "b", "c", "d", "e"], cols=2, rows=2)
        assert len(cells) == 4
        assert "e" not in [c.sprite_key for c in cells]

    def test_cell_map_salts(self):
        """Test cell map expansion and salting."""
        cells = cell_map_cells(
            {"mall": [GridPosition(4, 1)], "apartment_high": [GridPosition(0, 0), GridPosition(1, 0)]},
            "dense",
        )
        assert Cell(4, 1, "dense:mall", "0") in cells
        assert Cell(0, 0, "dense:apartment_high", "0") in cells
        assert Cell(1, 0, "dense:apartment_high", "1") in cells

    def test_cell_map_unsalted_singles(self):
        """Test single-position types can stay unsalted."""
        cells = cell_map_cells(
            {"pond_park": [GridPosition(0, 0)], "tennis_courts": [GridPosition(1, 0), GridPosition(2, 0)]},
            "park",
            salt_single=False,
        )
        assert Cell(0, 0, "park:pond_park", "") in cells
        assert Cell(2, 0, "park:tennis_courts", "1") in cells

    def test_parks_layout(self):
        """Test parks use their own grid and variant."""
        compositor = SheetCompositor()
        pack = sprites4_pack()

        layout = compositor.layout(pack, "parks")
        assert (layout.cols, layout.rows) == (5, 4)
        assert layout.variant is SheetVariant.MAIN
        assert Cell(4, 1, "park:tennis_courts", "") in layout.cells

        construction = compositor.layout(pack, SheetKind.PARKS_CONSTRUCTION)
        assert construction.variant is SheetVariant.CONSTRUCTION
        assert construction.cells == layout.cells

    def test_unsupported_kind(self):
        """Test kinds without a cell map have no layout."""
        pack = small_pack(["tree"])
        assert SheetCompositor().layout(pack, "farms") is None
        assert SheetCompositor().generate_sheet(pack, "farms") is None

    def test_frames_skip_out_of_bounds(self):
        """Test out-of-grid cells are excluded from frames."""
        pack = small_pack(
            [], cols=2, rows=1,
            dense_variants={"mall": [GridPosition(0, 0), GridPosition(5, 5)]},
        )
        layout = SheetCompositor().layout(pack, "dense")
        assert len(layout.cells) == 2
        assert layout.frames() == {"dense:mall": [Cell(0, 0, "dense:mall", "0")]}


class TestSheetCompositor(unittest.TestCase):
    """Tests for SheetCompositor class."""

    def test_sheet_size(self):
        """Test sheets are tile size times grid size."""
        pack = small_pack(["house_small", "tree", "mall"], cols=3, rows=2)
        sheet = SheetCompositor().generate_sheet(pack, "main")
        assert sheet.mode == "RGBA"
        assert sheet.size == (TILE_W * 3, TILE_H * 2)

    def test_empty_cells_transparent(self):
        """Test unassigned cells stay transparent."""
        pack = small_pack(["house_small"], cols=2, rows=1)
        sheet = SheetCompositor().generate_sheet(pack, "main")
        assert cell_pixels(sheet, 0, 0)[:, :, 3].any()
        assert not cell_pixels(sheet, 1, 0)[:, :, 3].any()

    def test_deterministic(self):
        """Test identical inputs give identical pixels."""
        pack = small_pack(["house_small", "tree", "park", "power_plant"], cols=2, rows=2)
        a = np.array(SheetCompositor().generate_sheet(pack, "main"))
        b = np.array(SheetCompositor().generate_sheet(pack, "main"))
        assert np.array_equal(a, b)

    def test_seed_changes_pixels(self):
        """Test a different seed gives a different house."""
        a = np.array(SheetCompositor().generate_sheet(small_pack(["house_small"], seed=1), "main"))
        b = np.array(SheetCompositor().generate_sheet(small_pack(["house_small"], seed=2), "main"))
        assert not np.array_equal(a, b)

    def test_neighbours_do_not_affect_cell(self):
        """Test a cell's pixels depend only on its own inputs."""
        a = SheetCompositor().generate_sheet(small_pack(["house_small", "tree"], cols=2), "main")
        b = SheetCompositor().generate_sheet(small_pack(["house_small", "mall"], cols=2), "main")
        assert np.array_equal(cell_pixels(a, 0, 0), cell_pixels(b, 0, 0))
        assert not np.array_equal(cell_pixels(a, 1, 0), cell_pixels(b, 1, 0))

    def test_tree_stays_low(self):
        """Test a tree cell only paints the lower 60% of a 32x32 cell."""
        pack = SpritePack(
            id="mixed", name="Mixed", cols=2, rows=2,
            sprite_order=["tree", "house_small", "park_small", "water"],
            procedural=ProceduralConfig(32, 32, 1),
        )
        arr = np.array(SheetCompositor().generate_sheet(pack, "main"))
        assert arr.shape == (64, 64, 4)

        tree = arr[:32, :32, 3]
        assert tree.any()
        assert not tree[:int(32 * 0.4), :].any()
        assert tree[0, 0] == 0

    def test_variants_differ(self):
        """Test construction and abandoned sheets differ from main."""
        pack = small_pack(["office_high"])
        compositor = SheetCompositor()
        main = np.array(compositor.generate_sheet(pack, "main"))
        construction = np.array(compositor.generate_variant_sheet(pack, "construction"))
        abandoned = np.array(compositor.generate_variant_sheet(pack, SheetVariant.ABANDONED))
        assert not np.array_equal(main, construction)
        assert not np.array_equal(main, abandoned)

    def test_file_backed_pack_rejected(self):
        """Test variant kinds need a procedural pack."""
        pack = SpritePack(
            id="files", name="Files", cols=1, rows=1, sprite_order=["tree"], src="main.png",
            dense_variants={"mall": [GridPosition(0, 0)]},
        )
        compositor = SheetCompositor()
        with self.assertRaises(ConfigurationError):
            compositor.generate_sheet(pack, "main")
        with self.assertRaises(ConfigurationError):
            compositor.generate_variant_sheet(pack, "abandoned")

        assert compositor.generate_sheet(pack, "main", allow_file_backed=True).size == (256, 213)
        assert compositor.generate_sheet(pack, "dense") is not None

    def test_unknown_variant(self):
        """Test unknown variant names raise ConfigurationError."""
        with self.assertRaises(ConfigurationError):
            SheetCompositor().generate_variant_sheet(small_pack(["tree"]), "ruined")

    def test_no_surface(self):
        """Test a missing drawing surface raises RenderEnvironmentError."""
        pack = small_pack(["tree"])
        with self.assertRaises(RenderEnvironmentError):
            SheetCompositor(surface_factory=None).generate_sheet(pack, "main")

        def broken(width, height):
            raise MemoryError("no canvas")

        with self.assertRaises(RenderEnvironmentError):
            SheetCompositor(surface_factory=broken).generate_sheet(pack, "main")

    def test_prefix_renderer_fills_cell(self):
        """Test an extension renderer replaces the built-in drawing."""
        extensions = ExtensionRegistry()

        def paint_red(args):
            args.canvas.fill_rect(args.x, args.y, args.w, args.h, "#ff0000")
            return True

        extensions.register_prefix_renderer("farm", paint_red)
        pack = small_pack(
            [], farms_variants={"silo": [GridPosition(0, 0)]}, farms_cols=1, farms_rows=1
        )
        arr = np.array(SheetCompositor(extensions).generate_sheet(pack, "farms"))
        assert arr.shape == (TILE_H, TILE_W, 4)
        assert (arr == [255, 0, 0, 255]).all()

    def test_renderer_cannot_bleed(self):
        """Test drawing outside a cell never reaches its neighbours."""
        extensions = ExtensionRegistry()

        def flood(args):
            args.canvas.fill_rect(-500, -500, 2000, 2000, "#00ff00")
            return True

        def blank(args):
            return True

        extensions.register_sprite_renderer("flood", flood)
        extensions.register_sprite_renderer("blank", blank)
        pack = small_pack(["blank", "flood", "blank"], cols=3)
        sheet = SheetCompositor(extensions).generate_sheet(pack, "main")

        assert not cell_pixels(sheet, 0, 0)[:, :, 3].any()
        assert (cell_pixels(sheet, 1, 0) == [0, 255, 0, 255]).all()
        assert not cell_pixels(sheet, 2, 0)[:, :, 3].any()

    def test_renderer_args(self):
        """Test renderers receive the cell's context."""
        extensions = ExtensionRegistry()
        seen = []

        def record(args):
            seen.append((args.sheet_kind, args.sprite_key, args.prefix, args.key, args.variant, args.w, args.h))
            return False

        extensions.register_prefix_renderer("dense", record)
        pack = small_pack([], dense_variants={"mall": [GridPosition(0, 0)]})
        SheetCompositor(extensions).generate_sheet(pack, "dense")
        assert seen == [("dense", "dense:mall", "dense", "mall", "main", TILE_W, TILE_H)]

    def test_every_kind(self):
        """Test a derived pack renders every kind at its grid size."""
        pack = create_procedural_pack_from_base(
            sprites4_pack(),
            ProceduralPackOptions(id="tiny", name="Tiny", seed=3, tile_width=24, tile_height=20),
        )
        compositor = SheetCompositor()
        for kind in SheetKind:
            sheet = compositor.generate_sheet(pack, kind)
            cols, rows = pack.grid_for(kind)
            assert sheet.size == (24 * cols, 20 * rows), kind
            assert np.array(sheet)[:, :, 3].any(), kind


class TestPrimitives(unittest.TestCase):
    """Tests for the built-in cell renderer."""

    def test_projection_prism(self):
        """Test prism faces are lifted and front-facing."""
        proj = IsometricProjection.for_cell(100)
        assert np.isclose(proj.unit_width, 26)
        assert np.isclose(proj.unit_height, 13)

        faces = proj.prism((50, 80), 1.0, 1.0, 20)
        base_min_y = face_bounds(faces.base)[1]
        top_min_y = face_bounds(faces.top)[1]
        assert np.isclose(base_min_y - top_min_y, 20)

        # Walls hang from the front edges of the roof down to the ground
        assert face_bounds(faces.left)[3] == face_bounds(faces.base)[3]
        assert face_bounds(faces.right)[3] == face_bounds(faces.base)[3]
        assert face_bounds(faces.left)[2] <= 50 + 1e-9
        assert face_bounds(faces.right)[2] > 50

    def test_batch_projection(self):
        """Test ground axes and lift map to the 2:1 screen vectors."""
        uv = ProjectionMatrix(32, 16).world_to_screen_batch(
            np.array([[1, 0, 0], [0, 1, 0], [0, 0, 10]]), 100, 50
        )
        assert np.allclose(uv, [[116, 58], [84, 58], [100, 40]])

    def test_returns_style(self):
        """Test the renderer reports the resolved style."""
        canvas = CellCanvas(TILE_W, TILE_H)
        style = draw_sprite_tile(canvas, "tree", SheetVariant.MAIN, make_rng(1))
        assert style.shape is ShapeClass.TREE

    def test_clears_cell(self):
        """Test previous pixels are cleared before drawing."""
        canvas = CellCanvas(TILE_W, TILE_H)
        canvas.fill_rect(0, 0, TILE_W, 5, "#ff00ff")
        draw_sprite_tile(canvas, "tree", SheetVariant.MAIN, make_rng(1))
        assert not canvas.to_array()[:5, :, 3].any()

    def test_parks_skip_overlays(self):
        """Test park tiles look the same in every variant."""
        a = CellCanvas(TILE_W, TILE_H)
        b = CellCanvas(TILE_W, TILE_H)
        draw_sprite_tile(a, "park:tennis_courts", SheetVariant.MAIN, make_rng(5))
        draw_sprite_tile(b, "park:tennis_courts", SheetVariant.CONSTRUCTION, make_rng(5))
        assert np.array_equal(a.to_array(), b.to_array())

    def test_partial_clear(self):
        """Test clearing a sub-rectangle."""
        canvas = CellCanvas(10, 10)
        canvas.fill_rect(0, 0, 10, 10, "#000000")
        canvas.clear((0, 0, 5, 10))
        arr = canvas.to_array()
        assert not arr[:, :5, 3].any()
        assert (arr[:, 5:, 3] == 255).all()

    def test_translucent_blend(self):
        """Test translucent fills blend instead of replacing pixels."""
        canvas = CellCanvas(4, 4)
        canvas.fill_rect(0, 0, 4, 4, "#ffffff")
        canvas.fill_rect(0, 0, 4, 4, "#000000", alpha=0.5)
        pixel = canvas.to_array()[0, 0]
        assert pixel[3] == 255
        assert 120 <= pixel[0] <= 135


if __name__ == "__main__":
    unittest.main(verbosity=2)
