"""
Procedural Assets Mode

Controls whether sheets come from image files or are generated at runtime.

Modes:
- off:      Always load sprite sheet image files (default)
- fallback: Load image files; generate procedurally only if loading fails
- force:    Always generate procedurally, even for file-backed packs

Resolution precedence:
    explicit override > persisted user preference > environment > off

Configuration:
- SPRITEGEN_PROCEDURAL_ASSETS_MODE: build/deploy-time default
- SPRITEGEN_PROCEDURAL_ASSETS: shorthand accepted for compatibility
- preferences.json in the config directory (~/.config/sprite_generator, or
  $SPRITEGEN_CONFIG_DIR), key "procedural-assets-mode"
"""

from enum import Enum
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

logger = logging.getLogger(__name__)

ENV_MODE = "SPRITEGEN_PROCEDURAL_ASSETS_MODE"
ENV_MODE_SHORTHAND = "SPRITEGEN_PROCEDURAL_ASSETS"
ENV_CONFIG_DIR = "SPRITEGEN_CONFIG_DIR"
PREFERENCE_KEY = "procedural-assets-mode"


class AssetsMode(Enum):
    """Where sheets come from."""
    OFF = "off"
    FALLBACK = "fallback"
    FORCE = "force"


_ALIASES: Dict[str, AssetsMode] = {
    "off": AssetsMode.OFF,
    "false": AssetsMode.OFF,
    "0": AssetsMode.OFF,
    "disabled": AssetsMode.OFF,
    "fallback": AssetsMode.FALLBACK,
    "auto": AssetsMode.FALLBACK,
    "force": AssetsMode.FORCE,
    "always": AssetsMode.FORCE,
    "on": AssetsMode.FORCE,
    "true": AssetsMode.FORCE,
    "1": AssetsMode.FORCE,
}


def normalize_assets_mode(value: Any) -> Optional[AssetsMode]:
    """
    Parse a mode value.

    Accepts AssetsMode members and case-insensitive strings (including the
    aliases true/false/on/auto/...). Anything else yields None.
    """
    if isinstance(value, AssetsMode):
        return value
    if not isinstance(value, str):
        return None
    return _ALIASES.get(value.strip().lower())


def default_config_dir(environ: Optional[Mapping[str, str]] = None) -> Path:
    """Directory holding preferences.json."""
    environ = os.environ if environ is None else environ
    override = environ.get(ENV_CONFIG_DIR)
    if override:
        return Path(override)
    return Path.home() / ".config" / "sprite_generator"


class PreferenceStore:
    """
    Small JSON key/value store for runtime user preferences.

    Read and write failures are logged and otherwise ignored, so a broken or
    read-only preferences file never stops sheet generation.
    """

    def __init__(self, path: Optional[Union[str, Path]] = None):
        """
        Args:
            path: JSON file path (defaults to <config dir>/preferences.json)
        """
        self.path = Path(path) if path is not None else default_config_dir() / "preferences.json"

    def _load(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning("Could not read preferences from %s: %s", self.path, e)
            return {}
        if not isinstance(data, dict):
            logger.warning("Ignoring malformed preferences file %s", self.path)
            return {}
        return data

    def _save(self, data: Dict[str, Any]):
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, sort_keys=True)
        except OSError as e:
            logger.warning("Could not write preferences to %s: %s", self.path, e)

    def get(self, key: str, default: Any = None) -> Any:
        return self._load().get(key, default)

    def set(self, key: str, value: Any):
        data = self._load()
        data[key] = value
        self._save(data)

    def remove(self, key: str):
        data = self._load()
        if key in data:
            del data[key]
            self._save(data)


def resolve_assets_mode(
    override: Any = None,
    store: Optional[PreferenceStore] = None,
    environ: Optional[Mapping[str, str]] = None
) -> AssetsMode:
    """
    Resolve the effective assets mode.

    Args:
        override: Explicit per-call mode (highest priority)
        store: Persisted user preferences
        environ: Environment mapping (defaults to os.environ)

    Returns:
        The first valid mode found, or AssetsMode.OFF
    """
    mode = normalize_assets_mode(override)
    if mode is not None:
        return mode

    if store is not None:
        mode = normalize_assets_mode(store.get(PREFERENCE_KEY))
        if mode is not None:
            logger.debug("Assets mode %s from preferences", mode.value)
            return mode

    environ = os.environ if environ is None else environ
    for var in (ENV_MODE, ENV_MODE_SHORTHAND):
        mode = normalize_assets_mode(environ.get(var))
        if mode is not None:
            logger.debug("Assets mode %s from $%s", mode.value, var)
            return mode

    return AssetsMode.OFF


def set_assets_mode_override(store: PreferenceStore, mode: Union[AssetsMode, str]) -> AssetsMode:
    """
    Persist a user preference.

    Raises:
        ValueError: If the mode is not recognised
    """
    parsed = normalize_assets_mode(mode)
    if parsed is None:
        raise ValueError(f"Unknown procedural assets mode: {mode!r}")
    store.set(PREFERENCE_KEY, parsed.value)
    return parsed


def clear_assets_mode_override(store: PreferenceStore):
    """Remove the persisted user preference."""
    store.remove(PREFERENCE_KEY)
