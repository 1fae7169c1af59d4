"""
Main SpriteGenerator Class

This is the primary interface for procedural sprite sheet generation.
It orchestrates:
1. Pack selection (built-in, registered or loaded from JSON)
2. Seed and tile-size configuration
3. Sheet composition through the extension registry and primitive renderer
4. Export to PNG sheets and JSON atlases

Example Usage:
    generator = SpriteGenerator()
    generator.use_pack("procedural").set_seed(42)
    sheet = generator.generate("main")
    generator.export_pack("out/")
"""

from dataclasses import replace
import json
import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

from PIL import Image

from .builtin_packs import PROCEDURAL_PACK_ID, create_default_pack_registry
from .compositor import SheetCompositor
from .errors import ConfigurationError
from .exporters import AtlasExporter, PNGSheetExporter
from .extensions import ExtensionRegistry
from .packs import (
    PackRegistry,
    ProceduralConfig,
    SheetKind,
    SpritePack,
    procedural_config,
)
from .primitives import DEFAULT_LIGHTING, FaceLighting
from .user_assets import register_user_assets

logger = logging.getLogger(__name__)


class BatchExporter:
    """
    Writes every supported sheet of a pack to disk.

    Files are named <pack>_<kind>.png, with a matching <pack>_<kind>.json
    atlas when requested. Kinds the pack does not support are skipped.
    """

    def __init__(
        self,
        compositor: SheetCompositor,
        png_exporter: Optional[PNGSheetExporter] = None,
        atlas_exporter: Optional[AtlasExporter] = None
    ):
        self.compositor = compositor
        self.png_exporter = png_exporter if png_exporter is not None else PNGSheetExporter()
        self.atlas_exporter = atlas_exporter if atlas_exporter is not None else AtlasExporter()

    def export_pack(
        self,
        pack: SpritePack,
        output_dir: Union[str, Path],
        kinds: Optional[Iterable["SheetKind | str"]] = None,
        atlas: bool = True,
        allow_file_backed: bool = False
    ) -> List[Path]:
        """
        Generate and export sheets.

        Args:
            pack: Pack to export
            output_dir: Target directory (created if missing)
            kinds: Kinds to export (default: all)
            atlas: Also write JSON atlases
            allow_file_backed: Generate variant kinds for non-procedural packs

        Returns:
            Paths of all written files
        """
        output_dir = Path(output_dir)
        selected = [SheetKind.parse(k) for k in kinds] if kinds is not None else list(SheetKind)

        written: List[Path] = []
        for kind in selected:
            if self.compositor.layout(pack, kind) is None:
                logger.info("Skipping %s: pack %r has no cell map for it", kind.value, pack.id)
                continue

            sheet = self.compositor.generate_sheet(pack, kind, allow_file_backed=allow_file_backed)
            written.extend(self.write_sheet(pack, kind, sheet, output_dir, atlas=atlas))

        return written

    def write_sheet(
        self,
        pack: SpritePack,
        kind: "SheetKind | str",
        sheet: Image.Image,
        output_dir: Union[str, Path],
        atlas: bool = True
    ) -> List[Path]:
        """
        Write an already generated sheet, plus its atlas when requested.

        Raises:
            ConfigurationError: If the pack has no layout for the kind
        """
        kind = SheetKind.parse(kind)
        layout = self.compositor.layout(pack, kind)
        if layout is None:
            raise ConfigurationError(f"Pack {pack.id!r} has no cell map for {kind.value}")

        stem = f"{pack.id}_{kind.value}"
        image_path = self.png_exporter.export(sheet, Path(output_dir) / f"{stem}.png")
        logger.info("Wrote %s (%dx%d)", image_path, sheet.width, sheet.height)

        written = [image_path]
        if atlas:
            written.append(
                self.atlas_exporter.export(pack, layout, Path(output_dir) / f"{stem}.json", image_path.name)
            )
        return written


class SpriteGenerator:
    """
    High-level interface for generating sprite sheets.

    Attributes:
        packs: Pack registry
        extensions: Extension registry shared by every sheet
        compositor: Sheet compositor
    """

    def __init__(
        self,
        packs: Optional[PackRegistry] = None,
        extensions: Optional[ExtensionRegistry] = None,
        lighting: FaceLighting = DEFAULT_LIGHTING,
        user_assets: bool = False
    ):
        """
        Initialize the SpriteGenerator.

        Args:
            packs: Pack registry (defaults to the built-in packs)
            extensions: Extension registry (defaults to an empty one)
            lighting: Face shading model
            user_assets: Register the procedural-user pack and its renderers
        """
        self.packs = packs if packs is not None else create_default_pack_registry()
        self.extensions = extensions if extensions is not None else ExtensionRegistry()
        self.compositor = SheetCompositor(self.extensions, lighting=lighting)

        if user_assets:
            register_user_assets(self.packs, self.extensions)

        self._pack: Optional[SpritePack] = None
        self._allow_file_backed = False

    @property
    def pack(self) -> SpritePack:
        """The selected pack (the built-in procedural pack by default)."""
        if self._pack is None:
            self._pack = self.packs.get(PROCEDURAL_PACK_ID)
        return self._pack

    def use_pack(self, pack: Union[str, SpritePack]) -> "SpriteGenerator":
        """
        Select a pack by id or instance.

        Returns:
            self for method chaining
        """
        self._pack = self.packs.get(pack) if isinstance(pack, str) else pack
        return self

    def load_pack_file(self, path: Union[str, Path], register: bool = True) -> "SpriteGenerator":
        """
        Load a JSON pack descriptor and select it.

        Args:
            path: Descriptor file
            register: Also add it to the pack registry (replacing same id)

        Returns:
            self for method chaining
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Pack descriptor not found: {path}")
        with open(path, "r", encoding="utf-8") as f:
            pack = SpritePack.from_dict(json.load(f))
        if register:
            self.packs.register(pack, replace=True)
        self._pack = pack
        return self

    def set_seed(self, seed: int) -> "SpriteGenerator":
        """
        Override the selected pack's seed.

        A file-backed pack becomes procedural for this generator.

        Returns:
            self for method chaining
        """
        config = procedural_config(self.pack)
        self._pack = replace(self.pack, procedural=replace(config, seed=int(seed)))
        return self

    def set_tile_size(self, width: int, height: int) -> "SpriteGenerator":
        """
        Override the selected pack's cell size (clamped to 16 px).

        Returns:
            self for method chaining
        """
        config = procedural_config(self.pack)
        self._pack = replace(
            self.pack,
            procedural=ProceduralConfig(tile_width=int(width), tile_height=int(height), seed=config.seed)
        )
        return self

    def allow_file_backed(self, allow: bool = True) -> "SpriteGenerator":
        """
        Permit generating variant sheets for file-backed packs.

        Returns:
            self for method chaining
        """
        self._allow_file_backed = allow
        return self

    def generate(self, kind: "SheetKind | str" = SheetKind.MAIN) -> Optional[Image.Image]:
        """
        Generate one sheet of the selected pack.

        Returns:
            The sheet, or None if the pack does not support the kind
        """
        return self.compositor.generate_sheet(self.pack, kind, allow_file_backed=self._allow_file_backed)

    def generate_all(self, kinds: Optional[Iterable["SheetKind | str"]] = None) -> Dict[SheetKind, Image.Image]:
        """Generate every supported sheet (or the given kinds)."""
        selected = [SheetKind.parse(k) for k in kinds] if kinds is not None else list(SheetKind)
        sheets = {}
        for kind in selected:
            sheet = self.generate(kind)
            if sheet is not None:
                sheets[kind] = sheet
        return sheets

    def export_sheet(self, kind: "SheetKind | str", output_path: Union[str, Path]) -> Optional[Path]:
        """
        Generate one sheet and write it as PNG.

        Returns:
            The written path, or None if the kind is unsupported
        """
        sheet = self.generate(kind)
        if sheet is None:
            return None
        return PNGSheetExporter().export(sheet, output_path)

    def export_pack(
        self,
        output_dir: Union[str, Path],
        kinds: Optional[Iterable["SheetKind | str"]] = None,
        atlas: bool = True,
        scale: int = 1
    ) -> List[Path]:
        """
        Export every supported sheet of the selected pack.

        Args:
            output_dir: Target directory
            kinds: Kinds to export (default: all)
            atlas: Also write JSON atlases
            scale: Integer PNG upscale factor

        Returns:
            Paths of all written files
        """
        exporter = BatchExporter(self.compositor, PNGSheetExporter(scale=scale))
        return exporter.export_pack(
            self.pack, output_dir, kinds=kinds, atlas=atlas,
            allow_file_backed=self._allow_file_backed
        )

    def save_sheet(
        self,
        kind: "SheetKind | str",
        sheet: Image.Image,
        output_dir: Union[str, Path],
        atlas: bool = True,
        scale: int = 1
    ) -> List[Path]:
        """Write a sheet already generated for the selected pack, without re-rendering it."""
        exporter = BatchExporter(self.compositor, PNGSheetExporter(scale=scale))
        return exporter.write_sheet(self.pack, kind, sheet, output_dir, atlas=atlas)

    def get_stats(self) -> Dict[str, object]:
        """Summary of the selected pack's configuration."""
        pack = self.pack
        config = procedural_config(pack)
        supported = [k.value for k in SheetKind if self.compositor.layout(pack, k) is not None]
        return {
            "pack": pack.id,
            "name": pack.name,
            "grid": f"{pack.cols}x{pack.rows}",
            "layout": pack.layout.value,
            "tile_size": f"{config.cell_size[0]}x{config.cell_size[1]}",
            "seed": config.seed,
            "sprites": len(pack.sprite_order),
            "kinds": supported,
            "prefix_renderers": self.extensions.list_prefix_renderers(),
            "sprite_renderers": self.extensions.list_sprite_renderers(),
        }
