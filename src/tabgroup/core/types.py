"""Core data contracts: rules, groups, tabs, visit records, and settings.

All models are immutable and accept both the snake_case field names
used in Python code and the camelCase keys browsers and the persisted
settings file use (``windowId``, ``groupByDomain``, ...).  Dump with
``model_dump(by_alias=True, mode="json")`` to produce the persisted shape.
"""

from __future__ import annotations

import random
import string
import time
from datetime import datetime
from enum import StrEnum
from typing import Any, Final

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from tabgroup.core.defaults import (
    DEFAULT_GROUP_COLOR,
    DEFAULT_MAX_TABS_PER_GROUP,
    TAB_GROUP_ID_NONE,
)

_ID_ALPHABET: Final[str] = string.digits + string.ascii_lowercase
_ID_SUFFIX_LEN: Final[int] = 9


class TabColor(StrEnum):
    """The fixed nine-colour tab group palette.

    Member ordering matches :data:`~tabgroup.core.defaults.TAB_COLORS`.
    Do NOT reorder members: domain colours are derived by indexing into it.
    """

    GREY = "grey"
    BLUE = "blue"
    RED = "red"
    YELLOW = "yellow"
    GREEN = "green"
    PINK = "pink"
    PURPLE = "purple"
    CYAN = "cyan"
    ORANGE = "orange"


class GroupSortOrder(StrEnum):
    CREATED = "created"
    ALPHABETICAL = "alphabetical"


def generate_rule_id() -> str:
    """Return a fresh rule id: ``rule_<epoch-ms>_<9 base36 chars>``."""
    suffix = "".join(random.choices(_ID_ALPHABET, k=_ID_SUFFIX_LEN))
    return f"rule_{int(time.time() * 1000)}_{suffix}"


class _BrowserModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class Rule(_BrowserModel):
    """A user-defined named pattern set mapping URLs to a group.

    Patterns are matched in list order (see
    :meth:`~tabgroup.rules.engine.RuleEngine.matches_pattern`).
    Surrounding whitespace is stripped and blank patterns are dropped
    on validation; at least one pattern must remain.
    """

    id: str = Field(default_factory=generate_rule_id, description="Stable unique id, never reused.")
    name: str = Field(min_length=1, description="Group title used for matching tabs.")
    patterns: list[str] = Field(min_length=1, description="Ordered hostname patterns.")
    color: TabColor = Field(description="Group colour from the fixed palette.")
    enabled: bool = Field(default=True, description="Disabled rules are never matched.")

    @field_validator("patterns", mode="before")
    @classmethod
    def _strip_patterns(cls, value: Any) -> Any:
        if isinstance(value, (list, tuple)):
            cleaned = []
            for pattern in value:
                if isinstance(pattern, str):
                    pattern = pattern.strip()
                    if not pattern:
                        continue
                cleaned.append(pattern)
            return cleaned
        return value


class DomainGroup(_BrowserModel):
    """Synthetic group derived from a URL's registrable domain. Never persisted."""

    name: str = Field(description="Display name, e.g. 'Amazon'.")
    domain: str = Field(description="Canonical 2-3 label root, e.g. 'amazon.co.uk'.")
    color: TabColor = Field(description="Deterministic hash colour of ``domain``.")


class TabGroup(_BrowserModel):
    """Snapshot of a group owned by the external tab registry."""

    id: int
    title: str = ""
    color: TabColor = TabColor(DEFAULT_GROUP_COLOR)
    window_id: int
    collapsed: bool = False


class Tab(_BrowserModel):
    """Snapshot of a browser tab.  The engine only reassigns its group."""

    id: int
    url: str | None = None
    window_id: int
    group_id: int | None = Field(default=None, description="Current group, ``None`` when ungrouped.")
    index: int = Field(default=0, ge=0, description="Position within the window.")
    title: str = ""

    @field_validator("group_id", mode="before")
    @classmethod
    def _normalize_group_none(cls, value: Any) -> Any:
        if value == TAB_GROUP_ID_NONE:
            return None
        return value


class VisitRecord(_BrowserModel):
    """One history entry: a URL and how often it was visited."""

    url: str
    visit_count: int | None = Field(default=1, ge=0)
    last_visit_time: datetime | None = None
    title: str | None = None


class DomainCount(_BrowserModel):
    domain: str
    count: int = Field(ge=0)


class Suggestion(_BrowserModel):
    """A candidate rule mined from history.  Ephemeral until promoted."""

    id: str
    name: str = Field(min_length=1)
    patterns: list[str] = Field(min_length=1, description="Suggested domains.")
    color: TabColor
    category: str
    domains: list[DomainCount] = Field(default_factory=list)
    total_visits: int = Field(ge=0)
    confidence: int = Field(ge=0, le=100)

    def to_rule(self) -> Rule:
        """Promote this suggestion to a new enabled :class:`Rule` with a fresh id."""
        return Rule(name=self.name, patterns=list(self.patterns), color=self.color)


def default_rules() -> list[Rule]:
    """Seed rules shipped with a fresh install."""
    return [
        Rule(
            id="social",
            name="Social Media",
            patterns=["facebook.com", "twitter.com", "x.com", "instagram.com", "linkedin.com", "reddit.com", "tiktok.com"],
            color=TabColor.BLUE,
        ),
        Rule(
            id="google",
            name="Google Services",
            patterns=["gmail.com", "docs.google.com", "drive.google.com", "calendar.google.com", "meet.google.com"],
            color=TabColor.GREEN,
        ),
        Rule(
            id="dev",
            name="Development",
            patterns=["github.com", "gitlab.com", "stackoverflow.com", "npm.js", "developer.mozilla.org"],
            color=TabColor.PURPLE,
        ),
        Rule(
            id="news",
            name="News & Media",
            patterns=["news.", "bbc.com", "cnn.com", "reuters.com", "techcrunch.com", "ycombinator.com"],
            color=TabColor.RED,
        ),
        Rule(
            id="shopping",
            name="Shopping",
            patterns=["amazon.com", "ebay.com", "etsy.com", "shopify.com", "walmart.com"],
            color=TabColor.ORANGE,
        ),
    ]


class Settings(_BrowserModel):
    """The persisted settings object.

    ``max_tabs_per_group`` is accepted and round-tripped but not enforced.
    """

    enabled: bool = True
    rules: list[Rule] = Field(default_factory=default_rules)
    group_by_domain: bool = True
    auto_collapse_groups: bool = False
    max_tabs_per_group: int = Field(default=DEFAULT_MAX_TABS_PER_GROUP, ge=1)
    group_sort_order: GroupSortOrder = GroupSortOrder.CREATED
