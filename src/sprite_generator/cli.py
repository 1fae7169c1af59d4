"""
Command-Line Interface for the Sprite Generator

Usage:
    spritegen -o sheets/
    spritegen --pack sprites4 --kind main dense --seed 7 -o sheets/
    spritegen --pack-file mypack.json --tile-size 128 107 -o sheets/
    spritegen --list
    spritegen --set-assets-mode fallback

"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional
import time

from . import __version__
from .assets_mode import (
    PreferenceStore,
    clear_assets_mode_override,
    resolve_assets_mode,
    set_assets_mode_override,
)
from .generator import SpriteGenerator
from .packs import SheetKind, is_procedural_pack
from .provider import SheetImageLoader, SpriteSheetProvider

KIND_CHOICES = [k.value for k in SheetKind]
MODE_CHOICES = ["off", "fallback", "force"]


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="spritegen",
        description="Procedural Sprite Generator - Render isometric sprite sheets from pack descriptors",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  spritegen -o sheets/
      Export every sheet of the built-in procedural pack

  spritegen --pack sprites4 --force -o sheets/ --kind main construction
      Generate the file-backed pack's main sheets procedurally

  spritegen --pack-file city.json --seed 42 --tile-size 128 107 -o sheets/
      Load a pack descriptor, override seed and cell size

  spritegen --pack sprites4 --load main --assets-mode fallback --asset-root assets/
      Load a sheet the way a renderer would (files first, generate on failure)

Sheet Kinds:
  main, construction, abandoned  - main grid (sprite_order layout)
  dense, modern, parks, parksConstruction, farms, shops, stations
                                 - cell-mapped sheets (skipped if the pack has no map)
        """
    )

    # Pack selection
    parser.add_argument(
        "-p", "--pack",
        help="Registered pack id (default: procedural)"
    )

    parser.add_argument(
        "--pack-file",
        help="Path to a JSON pack descriptor"
    )

    parser.add_argument(
        "--user-assets",
        action="store_true",
        help="Register the procedural-user pack and its renderers"
    )

    # Generation settings
    parser.add_argument(
        "-k", "--kind",
        nargs="+",
        choices=KIND_CHOICES,
        help="Sheet kind(s) to generate (default: all supported)"
    )

    parser.add_argument(
        "--seed",
        type=int,
        help="Override the pack's seed"
    )

    parser.add_argument(
        "--tile-size",
        nargs=2,
        type=int,
        metavar=("WIDTH", "HEIGHT"),
        help="Override the cell size in pixels (min 16)"
    )

    parser.add_argument(
        "--force",
        action="store_true",
        help="Generate main/construction/abandoned sheets even for file-backed packs"
    )

    # Output settings
    parser.add_argument(
        "-o", "--output-dir",
        default="sheets",
        help="Output directory (default: sheets)"
    )

    parser.add_argument(
        "--scale",
        type=int,
        default=1,
        help="Integer PNG upscale factor (default: 1)"
    )

    parser.add_argument(
        "--no-atlas",
        action="store_true",
        help="Don't write JSON atlases"
    )

    # Provider
    parser.add_argument(
        "--load",
        nargs="+",
        choices=KIND_CHOICES,
        help="Load sheet(s) through the provider instead of exporting"
    )

    parser.add_argument(
        "--assets-mode",
        choices=MODE_CHOICES,
        help="Per-call procedural assets mode for --load"
    )

    parser.add_argument(
        "--asset-root",
        help="Directory file-backed sheet sources are resolved against"
    )

    # Preferences
    parser.add_argument(
        "--set-assets-mode",
        choices=MODE_CHOICES,
        help="Persist a procedural assets mode preference"
    )

    parser.add_argument(
        "--clear-assets-mode",
        action="store_true",
        help="Remove the persisted procedural assets mode"
    )

    # Misc
    parser.add_argument(
        "--list",
        action="store_true",
        help="List registered packs and exit"
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Verbose output with statistics"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}"
    )

    return parser


def configure_logging(verbose: bool):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )


def build_generator(args) -> SpriteGenerator:
    """Create a generator configured from the parsed arguments."""
    generator = SpriteGenerator(user_assets=args.user_assets)

    if args.pack_file:
        generator.load_pack_file(args.pack_file)
    elif args.pack:
        generator.use_pack(args.pack)

    if args.seed is not None:
        generator.set_seed(args.seed)
    if args.tile_size:
        generator.set_tile_size(*args.tile_size)
    if args.force:
        generator.allow_file_backed()

    return generator


def list_packs(args) -> int:
    """Print registered packs."""
    generator = SpriteGenerator(user_assets=args.user_assets)
    for pack in generator.packs.packs():
        tag = "procedural" if is_procedural_pack(pack) else "file"
        print(f"{pack.id:<20} {tag:<11} {pack.cols}x{pack.rows}  {pack.name}")
    return 0


def update_preferences(args) -> int:
    """Persist or clear the assets mode preference."""
    store = PreferenceStore()
    try:
        if args.clear_assets_mode:
            clear_assets_mode_override(store)
            print(f"Cleared assets mode preference ({store.path})")
        if args.set_assets_mode:
            mode = set_assets_mode_override(store, args.set_assets_mode)
            print(f"Assets mode preference set to {mode.value} ({store.path})")
        print(f"Effective assets mode: {resolve_assets_mode(store=store).value}")
        return 0

    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        if args.verbose:
            import traceback
            traceback.print_exc()
        return 1


def process_load(args) -> int:
    """Load sheets through the provider."""
    try:
        generator = build_generator(args)
        provider = SpriteSheetProvider(
            compositor=generator.compositor,
            loader=SheetImageLoader(args.asset_root),
            store=PreferenceStore(),
        )

        async def load_all():
            results = []
            for kind in args.load:
                sheet = await provider.ensure_sheet_loaded(generator.pack, kind, mode=args.assets_mode)
                results.append((kind, sheet))
            return results

        for kind, sheet in asyncio.run(load_all()):
            if sheet is None:
                print(f"{kind}: not available for pack {generator.pack.id}")
            else:
                print(f"{kind}: {generator.pack.sheet_src(kind)} ({sheet.width}x{sheet.height})")
        return 0

    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        if args.verbose:
            import traceback
            traceback.print_exc()
        return 1


def process_export(args) -> int:
    """Generate and export sheets."""
    output_dir = Path(args.output_dir)
    start_time = time.time()

    try:
        generator = build_generator(args)

        if args.verbose:
            stats = generator.get_stats()
            print("\nPack:")
            print(f"  Id: {stats['pack']} ({stats['name']})")
            print(f"  Grid: {stats['grid']} ({stats['layout']}-major)")
            print(f"  Tile size: {stats['tile_size']}")
            print(f"  Seed: {stats['seed']}")
            print(f"  Sprites: {stats['sprites']}")
            print(f"  Kinds: {', '.join(stats['kinds'])}")

        written = generator.export_pack(
            output_dir,
            kinds=args.kind,
            atlas=not args.no_atlas,
            scale=args.scale
        )

        elapsed = time.time() - start_time
        print(f"Wrote {len(written)} files in {elapsed:.2f}s")
        print(f"Output directory: {output_dir}")

        return 0

    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        if args.verbose:
            import traceback
            traceback.print_exc()
        return 1


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    # Determine mode
    if args.list:
        return list_packs(args)
    elif args.set_assets_mode or args.clear_assets_mode:
        return update_preferences(args)
    elif args.load:
        return process_load(args)
    else:
        return process_export(args)


if __name__ == "__main__":
    sys.exit(main())
