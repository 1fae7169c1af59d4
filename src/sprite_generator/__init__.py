"""
Procedural Sprite Generator
===========================

Runtime generation of isometric building, park and utility sprite sheets.

This package turns a sprite pack descriptor (grid geometry, key lists, cell
maps, seed) into finished sheet images, deterministically: the same pack and
seed always yield the same pixels. Host applications can override individual
sprites through a registry instead of editing the generator.

Key Features:
- Seeded FNV-1a / mulberry32 randomness with Numba JIT kernels
- Ordered style table with namespace modifiers (dense, modern, farm, station)
- Isometric prism rendering with fixed face lighting, windows and overlays
- Two sheet layouts: ordered grid and explicit cell maps
- Global and pack-scoped extension renderers (prefix or exact key)
- Asset modes (off / fallback / force) and an async sheet provider
- Export to PNG sheets and JSON atlases

Example Usage:
    from sprite_generator import SpriteGenerator

    generator = SpriteGenerator()
    generator.use_pack("procedural").set_seed(42)
    sheet = generator.generate("main")
    generator.export_pack("sheets/")
"""

__version__ = "1.0.0"
__author__ = "Sprite Generator Team"

from .generator import SpriteGenerator, BatchExporter
from .compositor import SheetCompositor, ordered_grid_cells, cell_map_cells
from .extensions import ExtensionRegistry, RenderArgs
from .packs import (
    SpritePack,
    SheetKind,
    SheetVariant,
    PackRegistry,
    ProceduralPackOptions,
    is_procedural_pack,
    procedural_cache_key,
)
from .styles import SpriteStyle, ShapeClass, resolve_style
from .rng import hash_string, make_rng
from .assets_mode import AssetsMode, resolve_assets_mode
from .provider import SpriteSheetProvider
from .errors import SpriteGeneratorError, ConfigurationError, RenderEnvironmentError

__all__ = [
    "SpriteGenerator",
    "BatchExporter",
    "SheetCompositor",
    "ordered_grid_cells",
    "cell_map_cells",
    "ExtensionRegistry",
    "RenderArgs",
    "SpritePack",
    "SheetKind",
    "SheetVariant",
    "PackRegistry",
    "ProceduralPackOptions",
    "is_procedural_pack",
    "procedural_cache_key",
    "SpriteStyle",
    "ShapeClass",
    "resolve_style",
    "hash_string",
    "make_rng",
    "AssetsMode",
    "resolve_assets_mode",
    "SpriteSheetProvider",
    "SpriteGeneratorError",
    "ConfigurationError",
    "RenderEnvironmentError",
]
