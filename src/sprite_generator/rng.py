"""
Deterministic Seed/RNG Engine

Turns composite string keys into reproducible pseudo-random streams:
- FNV-1a 32-bit string hash (over UTF-16 code units)
- mulberry32 generator producing floats in [0, 1)

Both kernels are JIT compiled and emulate 32-bit wraparound exactly, so a
given seed yields the same stream on every platform.
"""

from typing import Union
import numpy as np
from numba import njit

FNV_OFFSET_BASIS = 0x811C9DC5
FNV_PRIME = 0x01000193
MULBERRY_INCREMENT = 0x6D2B79F5
UINT32_MASK = 0xFFFFFFFF


@njit(cache=True)
def _imul32(a: int, b: int) -> int:
    """
    32-bit multiply with wraparound.

    The product is split on the low/high 16 bits of b so intermediate
    values stay below 2**48.
    """
    a = a & 0xFFFFFFFF
    b = b & 0xFFFFFFFF
    lo = (a * (b & 0xFFFF)) & 0xFFFFFFFF
    hi = ((a * (b >> 16)) & 0xFFFF) << 16
    return (lo + hi) & 0xFFFFFFFF


@njit(cache=True)
def _fnv1a_32(units: np.ndarray) -> int:
    h = FNV_OFFSET_BASIS
    for i in range(units.shape[0]):
        h = h ^ units[i]
        h = _imul32(h, FNV_PRIME)
    return h


@njit(cache=True)
def _mulberry32_step(t: int):
    """
    Advance a mulberry32 state.

    Returns:
        (new_state, value) where value is in [0, 1)
    """
    t = (t + MULBERRY_INCREMENT) & UINT32_MASK
    r = _imul32(t ^ (t >> 15), 1 | t)
    r = (r ^ ((r + _imul32(r ^ (r >> 7), 61 | r)) & 0xFFFFFFFF)) & 0xFFFFFFFF
    value = (r ^ (r >> 14)) & 0xFFFFFFFF
    return t, value / 4294967296.0


def hash_string(text: str) -> int:
    """
    FNV-1a 32-bit hash of a string.

    Args:
        text: Input string (hashed per UTF-16 code unit)

    Returns:
        Unsigned 32-bit integer
    """
    units = np.frombuffer(text.encode("utf-16-le"), dtype=np.uint16).astype(np.int64)
    return int(_fnv1a_32(units))


class Mulberry32:
    """
    Small stateful PRNG.

    Instances are callable; each call returns the next float in [0, 1).
    """

    def __init__(self, seed: int):
        self._state = int(seed) & UINT32_MASK

    def __call__(self) -> float:
        state, value = _mulberry32_step(self._state)
        self._state = int(state)
        return float(value)

    def uniform(self, low: float, high: float) -> float:
        """Draw a float in [low, high)."""
        return low + (high - low) * self()

    @property
    def state(self) -> int:
        """Current 32-bit counter."""
        return self._state


def make_rng(seed: int) -> Mulberry32:
    """Create a mulberry32 generator for a 32-bit seed."""
    return Mulberry32(seed)


def cell_seed_key(
    seed: Union[int, str],
    pack_id: str,
    kind: str,
    variant: str,
    sprite_key: str,
    salt: str = ""
) -> str:
    """Build the composite key a cell's seed is derived from."""
    return f"{seed}:{pack_id}:{kind}:{variant}:{sprite_key}:{salt}"


def cell_seed(
    seed: Union[int, str],
    pack_id: str,
    kind: str,
    variant: str,
    sprite_key: str,
    salt: str = ""
) -> int:
    """
    Per-cell seed.

    Generation of a cell is a pure function of these inputs; salt separates
    physical cells sharing one logical key.
    """
    return hash_string(cell_seed_key(seed, pack_id, kind, variant, sprite_key, salt))


def make_cell_rng(
    seed: Union[int, str],
    pack_id: str,
    kind: str,
    variant: str,
    sprite_key: str,
    salt: str = ""
) -> Mulberry32:
    """Seeded generator for one cell."""
    return Mulberry32(cell_seed(seed, pack_id, kind, variant, sprite_key, salt))
