"""
Unit tests for the assets mode and the sprite sheet provider.
"""

import asyncio
import sys
from pathlib import Path
import tempfile
import numpy as np
import unittest

from PIL import Image

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from sprite_generator.assets_mode import (
    ENV_CONFIG_DIR,
    ENV_MODE,
    ENV_MODE_SHORTHAND,
    PREFERENCE_KEY,
    AssetsMode,
    PreferenceStore,
    clear_assets_mode_override,
    default_config_dir,
    normalize_assets_mode,
    resolve_assets_mode,
    set_assets_mode_override,
)
from sprite_generator.errors import ConfigurationError
from sprite_generator.packs import (
    GridPosition,
    ProceduralConfig,
    SpritePack,
    procedural_cache_key,
)
from sprite_generator.provider import (
    ImageCache,
    SheetImageLoader,
    SpriteSheetProvider,
    filter_background,
)


def file_pack(**kwargs):
    """A one-cell file-backed pack."""
    return SpritePack(
        id="files",
        name="Files",
        cols=1,
        rows=1,
        sprite_order=["house_small"],
        src="main.png",
        **kwargs
    )


class TestAssetsMode(unittest.TestCase):
    """Tests for assets mode resolution."""

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.store = PreferenceStore(Path(self.tmp.name) / "prefs" / "preferences.json")

    def tearDown(self):
        self.tmp.cleanup()

    def test_normalize(self):
        """Test canonical values and aliases."""
        assert normalize_assets_mode("FORCE") is AssetsMode.FORCE
        assert normalize_assets_mode(" fallback ") is AssetsMode.FALLBACK
        assert normalize_assets_mode("true") is AssetsMode.FORCE
        assert normalize_assets_mode("0") is AssetsMode.OFF
        assert normalize_assets_mode(AssetsMode.OFF) is AssetsMode.OFF
        assert normalize_assets_mode("sometimes") is None
        assert normalize_assets_mode(None) is None
        assert normalize_assets_mode(1) is None

    def test_default_off(self):
        """Test nothing configured resolves to off."""
        assert resolve_assets_mode(store=self.store, environ={}) is AssetsMode.OFF

    def test_precedence(self):
        """Test override > preference > env > shorthand."""
        environ = {ENV_MODE: "fallback", ENV_MODE_SHORTHAND: "force"}
        assert resolve_assets_mode(environ=environ) is AssetsMode.FALLBACK
        assert resolve_assets_mode(environ={ENV_MODE_SHORTHAND: "force"}) is AssetsMode.FORCE

        set_assets_mode_override(self.store, "off")
        assert resolve_assets_mode(store=self.store, environ=environ) is AssetsMode.OFF
        assert resolve_assets_mode("force", store=self.store, environ=environ) is AssetsMode.FORCE

    def test_invalid_values_skipped(self):
        """Test unrecognised values fall through to the next source."""
        self.store.set(PREFERENCE_KEY, "bogus")
        environ = {ENV_MODE: "nope", ENV_MODE_SHORTHAND: "fallback"}
        assert resolve_assets_mode("maybe", store=self.store, environ=environ) is AssetsMode.FALLBACK

    def test_persist_and_clear(self):
        """Test the preference survives a new store instance and can be cleared."""
        assert set_assets_mode_override(self.store, "Always") is AssetsMode.FORCE
        reopened = PreferenceStore(self.store.path)
        assert reopened.get(PREFERENCE_KEY) == "force"

        clear_assets_mode_override(reopened)
        assert resolve_assets_mode(store=self.store, environ={}) is AssetsMode.OFF

    def test_set_invalid(self):
        """Test persisting an unknown mode raises ValueError."""
        with self.assertRaises(ValueError):
            set_assets_mode_override(self.store, "sometimes")

    def test_corrupt_preferences(self):
        """Test a broken preferences file is ignored."""
        self.store.path.parent.mkdir(parents=True)
        self.store.path.write_text("{not json", encoding="utf-8")
        with self.assertLogs("sprite_generator.assets_mode", level="WARNING"):
            assert resolve_assets_mode(store=self.store, environ={}) is AssetsMode.OFF

    def test_config_dir(self):
        """Test the config directory override."""
        assert default_config_dir({ENV_CONFIG_DIR: self.tmp.name}) == Path(self.tmp.name)
        assert default_config_dir({}).name == "sprite_generator"


class TestImageCache(unittest.TestCase):
    """Tests for ImageCache class."""

    def test_register_both_keys(self):
        """Test also_filtered registers the filtered key too."""
        cache = ImageCache()
        image = Image.new("RGBA", (2, 2))
        cache.register("procedural:p:main", image, also_filtered=True)
        assert cache.get("procedural:p:main") is image
        assert cache.get("procedural:p:main", filtered=True) is image
        assert len(cache) == 2

        cache.clear()
        assert not cache.contains("procedural:p:main")

    def test_filter_background(self):
        """Test key-colored pixels become transparent."""
        image = Image.new("RGB", (2, 1), (250, 10, 5))
        image.putpixel((1, 0), (0, 128, 0))
        arr = np.array(filter_background(image))
        assert arr[0, 0, 3] == 0
        assert arr[0, 1, 3] == 255


class TestSpriteSheetProvider(unittest.TestCase):
    """Tests for SpriteSheetProvider class."""

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.root = Path(self.tmp.name)
        self.provider = SpriteSheetProvider(loader=SheetImageLoader(self.root), environ={})

    def tearDown(self):
        self.tmp.cleanup()

    def load(self, pack, kind, **kwargs):
        return asyncio.run(self.provider.ensure_sheet_loaded(pack, kind, **kwargs))

    def test_procedural_pack_cached(self):
        """Test procedural sheets are generated once and cached under both keys."""
        pack = SpritePack(
            id="gen", name="Gen", cols=2, rows=1, sprite_order=["tree", "house_small"],
            src=procedural_cache_key("gen", "main"),
            procedural=ProceduralConfig(32, 27, 4),
        )
        sheet = self.load(pack, "main")
        assert sheet.size == (64, 27)

        src = pack.sheet_src("main")
        assert self.provider.cache.get(src) is sheet
        assert self.provider.cache.get(src, filtered=True) is sheet
        assert self.load(pack, "main", apply_filter=False) is sheet

    def test_missing_source(self):
        """Test kinds without a source return None."""
        assert self.load(file_pack(), "dense") is None

    def test_file_load(self):
        """Test file-backed sheets are read and filtered."""
        image = Image.new("RGB", (8, 8), (255, 0, 0))
        image.putpixel((4, 4), (0, 0, 255))
        image.save(self.root / "main.png")

        sheet = self.load(file_pack(), "main")
        arr = np.array(sheet)
        assert arr[0, 0, 3] == 0
        assert tuple(arr[4, 4]) == (0, 0, 255, 255)
        assert self.provider.cache.get("main.png", filtered=True) is sheet

        raw = self.load(file_pack(), "main", apply_filter=False)
        assert np.array(raw)[0, 0, 3] == 255

    def test_off_reraises(self):
        """Test a missing file fails in off mode."""
        with self.assertRaises(FileNotFoundError):
            self.load(file_pack(), "main", mode="off")

    def test_fallback_generates(self):
        """Test fallback mode generates when the file is missing."""
        sheet = self.load(file_pack(), "main", mode="fallback")
        assert sheet.size == (256, 213)
        assert self.provider.cache.get("main.png") is sheet

    def test_fallback_unsupported_kind_reraises(self):
        """Test the load error surfaces when nothing can be generated."""
        pack = file_pack(dense_src="dense.png")
        with self.assertRaises(FileNotFoundError):
            self.load(pack, "dense", mode="fallback")

    def test_force_generates(self):
        """Test force mode never touches the file system."""
        image = Image.new("RGB", (8, 8), (0, 0, 255))
        image.save(self.root / "main.png")

        sheet = self.load(file_pack(), "main", mode="force")
        assert sheet.size == (256, 213)

    def test_mode_from_preferences(self):
        """Test the persisted preference is used when no override is given."""
        store = PreferenceStore(self.root / "preferences.json")
        set_assets_mode_override(store, "fallback")
        provider = SpriteSheetProvider(loader=SheetImageLoader(self.root), store=store, environ={})
        sheet = asyncio.run(provider.ensure_sheet_loaded(file_pack(), "main"))
        assert sheet.size == (256, 213)

    def test_unknown_kind(self):
        """Test unknown kinds are configuration errors."""
        with self.assertRaises(ConfigurationError):
            self.load(file_pack(), "roads")

    def test_fallback_cell_mapped_sheet(self):
        """Test fallback generates cell-mapped sheets of file packs."""
        pack = file_pack(dense_src="dense.png", dense_variants={"mall": [GridPosition(0, 0)]})
        sheet = self.load(pack, "dense", mode="fallback")
        assert sheet.size == (256, 213)


if __name__ == "__main__":
    unittest.main(verbosity=2)
