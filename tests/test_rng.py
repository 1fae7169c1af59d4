"""
Unit tests for seeding, hashing and color helpers.
"""

import sys
from pathlib import Path
import unittest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from sprite_generator.rng import (
    Mulberry32,
    cell_seed,
    cell_seed_key,
    hash_string,
    make_cell_rng,
    make_rng,
)
from sprite_generator.color import darken, hex_to_rgb, lighten, mix, rgba, shade, to_rgba


class TestHashString(unittest.TestCase):
    """Tests for the FNV-1a string hash."""

    def test_known_vectors(self):
        """Test reference FNV-1a 32-bit values."""
        assert hash_string("") == 0x811C9DC5
        assert hash_string("a") == 0xE40C292C
        assert hash_string("foobar") == 0xBF9CF968

    def test_utf16_code_units(self):
        """Test non-ASCII text hashes its UTF-16 code units, surrogates included."""
        assert hash_string("\u00e9t\u00e9\U0001F3E0") == 909594431

    def test_unsigned_32_bit(self):
        """Test results stay within the unsigned 32-bit range."""
        for text in ("procedural", "1337:procedural:main:main:tree:", "été", "\U0001F3E0"):
            h = hash_string(text)
            assert 0 <= h <= 0xFFFFFFFF

    def test_stable(self):
        """Test hashing is a pure function of the input."""
        assert hash_string("house_small") == hash_string("house_small")
        assert hash_string("house_small") != hash_string("house_medium")


class TestMulberry32(unittest.TestCase):
    """Tests for Mulberry32 class."""

    def test_range(self):
        """Test every value falls in [0, 1)."""
        rng = make_rng(12345)
        for _ in range(1000):
            value = rng()
            assert 0.0 <= value < 1.0

    def test_known_outputs(self):
        """Test the first values for seed 42."""
        rng = make_rng(42)
        assert rng() == 0.6011037519201636
        assert rng() == 0.44829055899754167

    def test_deterministic(self):
        """Test identical seeds give identical streams."""
        a = make_rng(42)
        b = make_rng(42)
        assert [a() for _ in range(20)] == [b() for _ in range(20)]

    def test_different_seeds(self):
        """Test different seeds give different streams."""
        a = make_rng(1)
        b = make_rng(2)
        assert [a() for _ in range(5)] != [b() for _ in range(5)]

    def test_state_wraps(self):
        """Test the counter stays a 32-bit value."""
        rng = Mulberry32(0xFFFFFFFF)
        rng()
        assert 0 <= rng.state <= 0xFFFFFFFF
        assert rng.state == (0xFFFFFFFF + 0x6D2B79F5) & 0xFFFFFFFF

    def test_uniform(self):
        """Test uniform() stays within its bounds."""
        rng = make_rng(7)
        for _ in range(100):
            value = rng.uniform(-2.0, 3.0)
            assert -2.0 <= value < 3.0


class TestCellSeed(unittest.TestCase):
    """Tests for per-cell seed derivation."""

    def test_key_format(self):
        """Test the composite key layout."""
        key = cell_seed_key(1337, "procedural", "dense", "main", "dense:apartment_high", "2")
        assert key == "1337:procedural:dense:main:dense:apartment_high:2"

    def test_empty_salt(self):
        """Test the key keeps a trailing separator without salt."""
        assert cell_seed_key(0, "p", "main", "main", "tree") == "0:p:main:main:tree:"

    def test_seed_matches_hash(self):
        """Test the cell seed is the hash of its key."""
        assert cell_seed(1, "p", "main", "main", "tree") == hash_string("1:p:main:main:tree:")

    def test_salt_separates_cells(self):
        """Test cells sharing a key differ by salt."""
        a = make_cell_rng(1, "p", "dense", "main", "dense:mall", "0")
        b = make_cell_rng(1, "p", "dense", "main", "dense:mall", "1")
        assert a() != b()

    def test_inputs_affect_stream(self):
        """Test every component changes the stream."""
        base = ("1", "p", "main", "main", "tree", "")
        reference = make_cell_rng(*base)()
        for i, replacement in enumerate(("2", "q", "dense", "abandoned", "house_small", "x")):
            parts = list(base)
            parts[i] = replacement
            assert make_cell_rng(*parts)() != reference


class TestColor(unittest.TestCase):
    """Tests for color helpers."""

    def test_hex_parsing(self):
        """Test long and short hex forms."""
        assert hex_to_rgb("#ff8000") == (255.0, 128.0, 0.0)
        assert hex_to_rgb("#fff") == (255.0, 255.0, 255.0)
        assert hex_to_rgb("000000") == (0.0, 0.0, 0.0)

    def test_invalid_hex(self):
        """Test malformed hex strings are rejected."""
        with self.assertRaises(ValueError):
            hex_to_rgb("#12345")

    def test_mix_endpoints(self):
        """Test mix() at t = 0 and t = 1."""
        a = (10.0, 20.0, 30.0)
        b = (200.0, 100.0, 0.0)
        assert mix(a, b, 0.0) == a
        assert mix(a, b, 1.0) == b

    def test_lighten_darken(self):
        """Test lighten/darken move toward white/black."""
        gray = (100.0, 100.0, 100.0)
        assert lighten(gray, 0.5) == (177.5, 177.5, 177.5)
        assert darken(gray, 0.5) == (50.0, 50.0, 50.0)
        assert shade(gray, 0.5) == lighten(gray, 0.5)
        assert shade(gray, -0.5) == darken(gray, 0.5)

    def test_to_rgba(self):
        """Test packing with a global alpha."""
        assert to_rgba("#ff0000") == (255, 0, 0, 255)
        assert to_rgba((0, 0, 0), alpha=0.5) == (0, 0, 0, 128)
        assert to_rgba((300, -5, 10, 255)) == (255, 0, 10, 255)
        assert rgba(0, 0, 0, 0.25) == (0, 0, 0, 64)


if __name__ == "__main__":
    unittest.main(verbosity=2)
