"""Tests for deterministic string hashing used for domain colours."""

from __future__ import annotations

from tabgroup.core.defaults import TAB_COLORS
from tabgroup.core.hashing import pick_by_hash, string_hash32


class TestStringHash32:
    def test_single_char_is_code_point(self) -> None:
        assert string_hash32("a") == 97

    def test_empty_input(self) -> None:
        assert string_hash32("") == 0

    def test_wraps_to_signed_32_bit(self) -> None:
        # Reference values of the classic ``hash * 31 + code`` loop.
        assert string_hash32("google.com") == -1536293812
        assert string_hash32("github.com") == 1985010934
        assert string_hash32("example.com") == -1944013059

    def test_range(self) -> None:
        for payload in ["x" * 100, "amazon.co.uk", "ä-unicode.example"]:
            assert -(2**31) <= string_hash32(payload) < 2**31


class TestPickByHash:
    def test_deterministic(self) -> None:
        assert pick_by_hash("github.com", TAB_COLORS) == pick_by_hash("github.com", TAB_COLORS)

    def test_known_palette_picks(self) -> None:
        assert pick_by_hash("google.com", TAB_COLORS) == "green"
        assert pick_by_hash("amazon.co.uk", TAB_COLORS) == "purple"
        assert pick_by_hash("example.com", TAB_COLORS) == "grey"
        assert pick_by_hash("a", TAB_COLORS) == "cyan"
