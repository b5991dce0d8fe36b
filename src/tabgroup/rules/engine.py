"""URL-pattern rule matching and domain fallback grouping.

A rule matches a URL when any of its patterns matches the URL's
hostname.  Patterns are tried in this order, first hit wins:

1. exact hostname (``github.com`` matches ``github.com``)
2. parent domain (``github.com`` matches ``gist.github.com``)
3. wildcard, anchored on the whole hostname (``*.example.com``
   matches ``a.b.example.com`` but not ``example.com``)
4. dotted partial, substring of the hostname starting at a label
   boundary (``news.`` matches ``news.ycombinator.com``; ``example.com``
   does not match ``notexample.com``)
5. bare token, substring of any dot-delimited label (``shop`` matches
   ``workshop.com``)

Rules are tried in configured order and only enabled rules count; the
first matching rule wins.  Never reorder rules or patterns: the order is
user-visible behaviour.

When nothing matches, :func:`get_domain_group` derives a group from the
registrable domain, with a colour that is a pure function of the domain.
"""

from __future__ import annotations

import functools
import logging
import re
from typing import Any, Iterable, Mapping, Sequence
from urllib.parse import urlsplit

from pydantic import BaseModel, ValidationError

from tabgroup.core.defaults import COMPOUND_PUBLIC_SUFFIXES, TAB_COLORS
from tabgroup.core.hashing import pick_by_hash
from tabgroup.core.types import DomainGroup, Rule, TabColor

logger = logging.getLogger(__name__)

_WWW_PREFIX = "www."
_NAME_WORD_SEPARATORS = re.compile(r"[-_]")


def parse_hostname(url: str) -> str | None:
    """Return the lower-cased hostname of an absolute *url*.

    Returns ``None`` when *url* is not an absolute URL (no scheme) or
    cannot be parsed.  URLs without an authority (``about:blank``) yield
    an empty string.
    """
    try:
        parts = urlsplit(url.strip())
    except ValueError:
        return None
    if not parts.scheme:
        return None
    return (parts.hostname or "").lower()


@functools.lru_cache(maxsize=512)
def _wildcard_regex(pattern: str) -> re.Pattern[str]:
    return re.compile(re.escape(pattern).replace(r"\*", ".*"))


def matches_pattern(hostname: str, pattern: str) -> bool:
    """Check one *pattern* against a *hostname* (both compared lower-cased)."""
    hostname = hostname.lower()
    pattern = pattern.lower()

    if hostname == pattern:
        return True
    if hostname.endswith("." + pattern):
        return True
    if "*" in pattern:
        return _wildcard_regex(pattern).fullmatch(hostname) is not None
    if "." in pattern:
        needle = pattern if pattern.startswith(".") else "." + pattern
        return needle in "." + hostname
    return any(pattern in label for label in hostname.split("."))


def find_matching_rule(rules: Iterable[Rule], url: str) -> Rule | None:
    """Return the first enabled rule with a pattern matching *url*.

    Unparseable URLs never match.
    """
    if not url:
        return None
    hostname = parse_hostname(url)
    if hostname is None:
        logger.debug("Not an absolute URL, no rule applies")
        return None

    for rule in rules:
        if not rule.enabled:
            continue
        for pattern in rule.patterns:
            if matches_pattern(hostname, pattern):
                return rule
    return None


def registrable_domain(hostname: str) -> str:
    """Collapse *hostname* to its 2-label root (3 for known compound suffixes).

    A leading ``www.`` is removed first.  Only the short list in
    :data:`~tabgroup.core.defaults.COMPOUND_PUBLIC_SUFFIXES` is treated
    as a compound suffix; this is not a full public-suffix lookup.
    """
    hostname = hostname.lower()
    if hostname.startswith(_WWW_PREFIX):
        hostname = hostname[len(_WWW_PREFIX):]
    labels = hostname.split(".")
    if len(labels) <= 2:
        return hostname
    last_two = ".".join(labels[-2:])
    if last_two in COMPOUND_PUBLIC_SUFFIXES:
        return ".".join(labels[-3:])
    return last_two


def format_domain_name(domain: str) -> str:
    """``"stack-overflow.com"`` -> ``"Stack Overflow"``."""
    first_label = domain.split(".")[0]
    return " ".join(
        word[:1].upper() + word[1:] for word in _NAME_WORD_SEPARATORS.split(first_label)
    )


def domain_color(domain: str) -> TabColor:
    """Deterministic palette colour for *domain*; identical across runs."""
    return TabColor(pick_by_hash(domain, TAB_COLORS))


def get_domain_group(url: str) -> DomainGroup | None:
    """Derive the fallback :class:`DomainGroup` for *url*.

    Returns ``None`` for unparseable URLs and URLs without a hostname.
    """
    if not url:
        return None
    hostname = parse_hostname(url)
    if not hostname:
        return None
    domain = registrable_domain(hostname)
    return DomainGroup(
        name=format_domain_name(domain),
        domain=domain,
        color=domain_color(domain),
    )


def validate_rule(rule: Any) -> bool:
    """True iff *rule* has a non-empty name, patterns, and a palette colour."""
    if isinstance(rule, Rule):
        return True
    if not isinstance(rule, Mapping):
        return False
    try:
        Rule.model_validate(dict(rule))
    except ValidationError:
        return False
    return True


class UrlAnalysis(BaseModel, frozen=True):
    """Everything the rule layer knows about one URL."""

    url: str
    matching_rule: Rule | None
    domain_group: DomainGroup | None
    should_group: bool


class RuleEngine:
    """Holds a read-only, replaceable snapshot of the configured rules.

    Args:
        rules: Initial ruleset; may be replaced with :meth:`set_rules`
            whenever the settings change.
    """

    def __init__(self, rules: Sequence[Rule] | None = None) -> None:
        self._rules: tuple[Rule, ...] = tuple(rules or ())

    def set_rules(self, rules: Sequence[Rule] | None) -> None:
        self._rules = tuple(rules or ())

    @property
    def rules(self) -> tuple[Rule, ...]:
        return self._rules

    def find_matching_rule(self, url: str) -> Rule | None:
        return find_matching_rule(self._rules, url)

    def get_domain_group(self, url: str) -> DomainGroup | None:
        return get_domain_group(url)

    def test_pattern(self, pattern: str, test_url: str) -> bool:
        """Check a single pattern against a URL, e.g. while editing a rule."""
        hostname = parse_hostname(test_url)
        if hostname is None:
            return False
        return matches_pattern(hostname, pattern)

    def analyze_url(self, url: str) -> UrlAnalysis:
        rule = self.find_matching_rule(url)
        return UrlAnalysis(
            url=url,
            matching_rule=rule,
            domain_group=self.get_domain_group(url),
            should_group=rule is not None,
        )
