"""
Sprite Sheet Provider

Centralizes how a renderer obtains sprite sheets:

- File-backed packs load .png/.webp sheets from disk (optionally filtering
  the key-colored background to transparency).
- Procedural packs generate sheets at runtime and register them into the
  same ImageCache, so the consumer looks every sheet up by its source string.

The assets mode decides between the two (see assets_mode). The only
suspension point is the file read; generation itself runs in one
uninterrupted pass.

Example Usage:
    provider = SpriteSheetProvider()
    sheet = asyncio.run(provider.ensure_sheet_loaded(pack, "main"))
"""

import asyncio
import logging
from pathlib import Path
from typing import Dict, Mapping, Optional, Tuple, Union

import numpy as np
from PIL import Image

from .assets_mode import AssetsMode, PreferenceStore, resolve_assets_mode
from .compositor import SheetCompositor
from .packs import SheetKind, SpritePack, is_procedural_key, is_procedural_pack

logger = logging.getLogger(__name__)

BACKGROUND_KEY_COLOR = (255, 0, 0)


class ImageCache:
    """
    In-memory sheet cache keyed by (source, filtered).

    Generated sheets are registered under both keys so lookups with and
    without background filtering resolve to the same image.
    """

    def __init__(self):
        self._images: Dict[Tuple[str, bool], Image.Image] = {}

    def get(self, src: str, filtered: bool = False) -> Optional[Image.Image]:
        return self._images.get((src, filtered))

    def contains(self, src: str, filtered: bool = False) -> bool:
        return (src, filtered) in self._images

    def register(self, src: str, image: Image.Image, filtered: bool = False, also_filtered: bool = False):
        """Store an image under its raw key (and optionally the filtered key)."""
        self._images[(src, filtered)] = image
        if also_filtered:
            self._images[(src, True)] = image

    def clear(self):
        self._images.clear()

    def __len__(self) -> int:
        return len(self._images)


def filter_background(
    image: Image.Image,
    key_color: Tuple[int, int, int] = BACKGROUND_KEY_COLOR,
    tolerance: int = 32
) -> Image.Image:
    """
    Make pixels close to the key color fully transparent.

    Args:
        image: Source sheet
        key_color: Background RGB
        tolerance: Max per-channel distance still treated as background

    Returns:
        New RGBA image
    """
    arr = np.array(image.convert("RGBA"), dtype=np.uint8)
    diff = np.abs(arr[:, :, :3].astype(np.int16) - np.array(key_color, dtype=np.int16))
    mask = np.all(diff <= tolerance, axis=2)
    arr[mask, 3] = 0
    return Image.fromarray(arr, "RGBA")


class SheetImageLoader:
    """
    Loads file-backed sheets in a worker thread.

    Key features:
    - RGBA conversion
    - Optional background key filtering
    - Paths resolved against an optional asset root
    """

    def __init__(self, asset_root: Optional[Union[str, Path]] = None, tolerance: int = 32):
        """
        Args:
            asset_root: Directory relative sources are resolved against
            tolerance: Background filter tolerance
        """
        self.asset_root = Path(asset_root) if asset_root is not None else None
        self.tolerance = tolerance

    def resolve(self, src: str) -> Path:
        path = Path(src)
        if self.asset_root is not None and not path.is_absolute():
            path = self.asset_root / path
        return path

    def read(self, src: str, apply_filter: bool = True) -> Image.Image:
        """
        Read a sheet synchronously.

        Raises:
            FileNotFoundError: If the file does not exist
        """
        path = self.resolve(src)
        if not path.exists():
            raise FileNotFoundError(f"Sprite sheet not found: {path}")

        with Image.open(path) as img:
            img.load()
            image = img.convert("RGBA") if img.mode != "RGBA" else img.copy()

        if apply_filter:
            image = filter_background(image, tolerance=self.tolerance)
        return image

    async def load(self, src: str, apply_filter: bool = True) -> Image.Image:
        """Read a sheet without blocking the event loop."""
        return await asyncio.to_thread(self.read, src, apply_filter)


class SpriteSheetProvider:
    """
    Makes sure a (pack, kind) sheet is available in the image cache.

    Attributes:
        compositor: Generates procedural sheets
        cache: Shared image cache
        loader: Reads file-backed sheets
    """

    def __init__(
        self,
        compositor: Optional[SheetCompositor] = None,
        cache: Optional[ImageCache] = None,
        loader: Optional[SheetImageLoader] = None,
        store: Optional[PreferenceStore] = None,
        environ: Optional[Mapping[str, str]] = None
    ):
        self.compositor = compositor if compositor is not None else SheetCompositor()
        self.cache = cache if cache is not None else ImageCache()
        self.loader = loader if loader is not None else SheetImageLoader()
        self.store = store
        self.environ = environ

    def resolve_mode(self, mode=None) -> AssetsMode:
        """Effective assets mode for one call."""
        return resolve_assets_mode(mode, store=self.store, environ=self.environ)

    async def ensure_sheet_loaded(
        self,
        pack: SpritePack,
        kind: "SheetKind | str",
        apply_filter: bool = True,
        mode=None
    ) -> Optional[Image.Image]:
        """
        Load or generate one sheet and register it in the cache.

        Args:
            pack: Sprite pack
            kind: Sheet kind
            apply_filter: Filter the background of file-backed sheets
            mode: Per-call assets mode override

        Returns:
            The cached sheet, or None if the pack has no sheet of that kind

        Raises:
            FileNotFoundError / OSError: File load failed and no procedural
                sheet could replace it (the load error is re-raised)
        """
        kind = SheetKind.parse(kind)
        src = pack.sheet_src(kind)
        if not src:
            return None

        resolved = self.resolve_mode(mode)
        if resolved is AssetsMode.FORCE or is_procedural_pack(pack) or is_procedural_key(src):
            return self._ensure_generated(pack, kind, src, allow_file_backed=resolved is AssetsMode.FORCE)

        cached = self.cache.get(src, apply_filter)
        if cached is not None:
            return cached

        try:
            image = await self.loader.load(src, apply_filter)
        except Exception:
            if resolved is not AssetsMode.FALLBACK:
                raise
            logger.info("Loading %s failed; generating %s sheet for %r", src, kind.value, pack.id)
            sheet = self._ensure_generated(pack, kind, src, allow_file_backed=True)
            if sheet is None:
                raise
            return sheet

        self.cache.register(src, image, filtered=apply_filter)
        return image

    def _ensure_generated(
        self,
        pack: SpritePack,
        kind: SheetKind,
        src: str,
        allow_file_backed: bool
    ) -> Optional[Image.Image]:
        for filtered in (False, True):
            cached = self.cache.get(src, filtered)
            if cached is not None:
                logger.debug("Sheet %s already cached", src)
                return cached

        sheet = self.compositor.generate_sheet(pack, kind, allow_file_backed=allow_file_backed)
        if sheet is None:
            return None
        self.cache.register(src, sheet, also_filtered=True)
        return sheet
