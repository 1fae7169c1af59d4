"""
Extension Registry

Host applications override or extend individual sprites by registering
renderers, without touching the built-in drawing code.

Two axes:
- Match type: prefix of a namespaced key ("dense" for "dense:apartment_high")
  or the exact full sprite key ("house_small", "park:tennis")
- Scope: global, or bound to one pack id

Resolution order for a cell:
    pack exact -> global exact -> pack prefix -> global prefix -> built-in

A renderer returns True when it fully handled the cell; anything else
declines and the next candidate is tried. Re-registering a key replaces the
previous renderer (last write wins). All tables are guarded by one lock so
registration may happen from any thread at any time.
"""

from dataclasses import dataclass
import logging
import threading
from typing import Any, Callable, Dict, List, Optional, Tuple

from .canvas import CellCanvas
from .styles import split_sprite_key

logger = logging.getLogger(__name__)


@dataclass
class RenderArgs:
    """
    Everything a renderer needs to draw one cell.

    Attributes:
        pack: The SpritePack being generated
        sheet_kind: Sheet kind value (e.g. "main", "dense")
        sprite_key: Full, possibly namespaced key
        prefix: Namespace prefix, or None
        key: Un-prefixed key
        variant: Variant value ("main", "construction", "abandoned")
        canvas: Cell surface, already cleared
        x, y, w, h: Cell rectangle on the canvas
        rng: Per-cell generator
    """
    pack: Any
    sheet_kind: str
    sprite_key: str
    prefix: Optional[str]
    key: str
    variant: str
    canvas: CellCanvas
    x: float
    y: float
    w: float
    h: float
    rng: Callable[[], float]


SpriteRenderer = Callable[[RenderArgs], Optional[bool]]

# (match type, scope, match value, renderer)
ChainEntry = Tuple[str, Optional[str], str, SpriteRenderer]


class ExtensionRegistry:
    """
    Global and pack-scoped renderer tables.

    Example:
        >>> registry = ExtensionRegistry()
        >>> registry.register_prefix_renderer("farm", draw_silo)
        >>> registry.register_sprite_renderer("house_small", draw_cottage, pack_id="cozy")
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._prefix: Dict[str, SpriteRenderer] = {}
        self._sprite: Dict[str, SpriteRenderer] = {}
        self._pack_prefix: Dict[str, Dict[str, SpriteRenderer]] = {}
        self._pack_sprite: Dict[str, Dict[str, SpriteRenderer]] = {}

    # Registration -----------------------------------------------------

    def register_prefix_renderer(
        self,
        prefix: str,
        renderer: SpriteRenderer,
        pack_id: Optional[str] = None
    ):
        """
        Register a renderer for every key namespaced with `prefix`.

        Args:
            prefix: Namespace without the trailing ':'
            renderer: Callable taking RenderArgs, returning True if handled
            pack_id: Restrict to one pack; None registers globally
        """
        with self._lock:
            self._table(self._prefix, self._pack_prefix, pack_id, create=True)[prefix] = renderer
        logger.debug("Registered prefix renderer %r (pack=%s)", prefix, pack_id or "*")

    def unregister_prefix_renderer(self, prefix: str, pack_id: Optional[str] = None) -> bool:
        """Remove a prefix renderer. Returns True if one was registered."""
        with self._lock:
            table = self._table(self._prefix, self._pack_prefix, pack_id)
            return table is not None and table.pop(prefix, None) is not None

    def register_sprite_renderer(
        self,
        sprite_key: str,
        renderer: SpriteRenderer,
        pack_id: Optional[str] = None
    ):
        """
        Register a renderer for one exact sprite key.

        Exact-key renderers win over prefix renderers, so this can replace
        the default drawing of un-prefixed keys like "house_small".
        """
        with self._lock:
            self._table(self._sprite, self._pack_sprite, pack_id, create=True)[sprite_key] = renderer
        logger.debug("Registered sprite renderer %r (pack=%s)", sprite_key, pack_id or "*")

    def unregister_sprite_renderer(self, sprite_key: str, pack_id: Optional[str] = None) -> bool:
        """Remove an exact-key renderer. Returns True if one was registered."""
        with self._lock:
            table = self._table(self._sprite, self._pack_sprite, pack_id)
            return table is not None and table.pop(sprite_key, None) is not None

    def clear_sprite_renderers(self):
        """Drop every registration, global and pack-scoped."""
        with self._lock:
            self._prefix.clear()
            self._sprite.clear()
            self._pack_prefix.clear()
            self._pack_sprite.clear()

    def clear_pack(self, pack_id: str):
        """Drop every registration scoped to one pack."""
        with self._lock:
            self._pack_prefix.pop(pack_id, None)
            self._pack_sprite.pop(pack_id, None)

    # Introspection ----------------------------------------------------

    def list_prefix_renderers(self, pack_id: Optional[str] = None) -> List[str]:
        """Registered prefixes (global, or for one pack)."""
        with self._lock:
            table = self._table(self._prefix, self._pack_prefix, pack_id)
            return sorted(table) if table else []

    def list_sprite_renderers(self, pack_id: Optional[str] = None) -> List[str]:
        """Registered exact keys (global, or for one pack)."""
        with self._lock:
            table = self._table(self._sprite, self._pack_sprite, pack_id)
            return sorted(table) if table else []

    def resolve_chain(self, sprite_key: str, pack_id: Optional[str] = None) -> List[ChainEntry]:
        """
        Candidate renderers for a key, highest priority first.

        The built-in renderer is not part of the chain; it runs when every
        candidate declines.
        """
        prefix, _ = split_sprite_key(sprite_key)
        chain: List[ChainEntry] = []
        with self._lock:
            if pack_id is not None and sprite_key in self._pack_sprite.get(pack_id, {}):
                chain.append(("sprite", pack_id, sprite_key, self._pack_sprite[pack_id][sprite_key]))
            if sprite_key in self._sprite:
                chain.append(("sprite", None, sprite_key, self._sprite[sprite_key]))
            if prefix is not None:
                if pack_id is not None and prefix in self._pack_prefix.get(pack_id, {}):
                    chain.append(("prefix", pack_id, prefix, self._pack_prefix[pack_id][prefix]))
                if prefix in self._prefix:
                    chain.append(("prefix", None, prefix, self._prefix[prefix]))
        return chain

    def render(self, args: RenderArgs) -> bool:
        """
        Offer a cell to the chain.

        Renderers run outside the lock. A renderer that raises propagates its
        error to the caller.

        Returns:
            True if some renderer handled the cell
        """
        pack_id = getattr(args.pack, "id", None)
        for match, scope, value, renderer in self.resolve_chain(args.sprite_key, pack_id):
            if renderer(args) is True:
                logger.debug(
                    "Cell %r handled by %s renderer %r (pack=%s)",
                    args.sprite_key, match, value, scope or "*"
                )
                return True
        return False

    def _table(
        self,
        global_table: Dict[str, SpriteRenderer],
        scoped: Dict[str, Dict[str, SpriteRenderer]],
        pack_id: Optional[str],
        create: bool = False
    ) -> Optional[Dict[str, SpriteRenderer]]:
        if pack_id is None:
            return global_table
        if create:
            return scoped.setdefault(pack_id, {})
        return scoped.get(pack_id)
