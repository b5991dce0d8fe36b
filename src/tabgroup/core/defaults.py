"""Centralised default constants for tabgroup.

Every project-wide magic number / string lives here.
Import these instead of hard-coding values in function signatures or CLI options.
"""

from __future__ import annotations

from typing import Final

# ── Palette ──
# Order matters: the domain colour hash indexes into this tuple.
TAB_COLORS: Final[tuple[str, ...]] = (
    "grey",
    "blue",
    "red",
    "yellow",
    "green",
    "pink",
    "purple",
    "cyan",
    "orange",
)
DEFAULT_GROUP_COLOR: Final[str] = "grey"
DEFAULT_GROUP_TITLE: Final[str] = "New Group"
UNTITLED_GROUP_TITLE: Final[str] = "Untitled"

# ── URL handling ──
EXCLUDED_URL_PREFIXES: Final[tuple[str, ...]] = (
    "chrome://",
    "chrome-extension://",
    "moz-extension://",
)
EXCLUDED_URLS: Final[frozenset[str]] = frozenset({"about:blank"})
INTERNAL_URL_PREFIX: Final[str] = "chrome://"
COMPOUND_PUBLIC_SUFFIXES: Final[frozenset[str]] = frozenset(
    {"co.uk", "com.au", "co.jp", "com.br", "co.in"}
)

# ── Registry ──
TAB_GROUP_ID_NONE: Final[int] = -1

# ── Paths ──
DEFAULT_DATA_DIR: Final[str] = "data"
SETTINGS_FILENAME: Final[str] = "settings.json"

# ── Settings ──
DEFAULT_MAX_TABS_PER_GROUP: Final[int] = 50

# ── History mining ──
DEFAULT_HISTORY_DAYS: Final[int] = 7
DEFAULT_HISTORY_MAX_RESULTS: Final[int] = 1000
MIN_SUGGESTION_VISITS: Final[int] = 3
MIN_CATEGORY_DOMAINS: Final[int] = 2
MAX_UNCATEGORIZED_SUGGESTIONS: Final[int] = 5
MAX_SUGGESTIONS: Final[int] = 8
SUGGESTION_OVERLAP_THRESHOLD: Final[float] = 0.5

# ── Confidence scoring ──
CONFIDENCE_PER_DOMAIN: Final[int] = 20
CONFIDENCE_DOMAIN_CAP: Final[int] = 80
CONFIDENCE_MAX: Final[int] = 100
# (minimum average visits per domain, bonus), checked in order
CONFIDENCE_VISIT_BONUSES: Final[tuple[tuple[float, int], ...]] = (
    (10, 15),
    (5, 10),
    (3, 5),
)
