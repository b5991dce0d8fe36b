"""Mine visit history for rule suggestions.

Pipeline::

    records --aggregate--> domain -> visits
            --threshold/categorize--> per-category clusters
            --score--> suggestions (top 8 by confidence, then visits)
            --filter_existing--> suggestions not already covered by rules

Confidence is ``min(20 * n_domains, 80)`` plus a bonus for the average
visits per domain (``+15`` at 10+, ``+10`` at 5+, ``+5`` at 3+), capped at
100.  Categories need at least two qualifying domains; uncategorized
domains are suggested individually once they reach twice the minimum
visit count.
"""

from __future__ import annotations

import logging
import time
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterable, Mapping, Sequence

from pydantic import BaseModel, Field

from tabgroup.core.defaults import (
    CONFIDENCE_DOMAIN_CAP,
    CONFIDENCE_MAX,
    CONFIDENCE_PER_DOMAIN,
    CONFIDENCE_VISIT_BONUSES,
    DEFAULT_HISTORY_DAYS,
    DEFAULT_HISTORY_MAX_RESULTS,
    MAX_SUGGESTIONS,
    MAX_UNCATEGORIZED_SUGGESTIONS,
    MIN_CATEGORY_DOMAINS,
    MIN_SUGGESTION_VISITS,
    SUGGESTION_OVERLAP_THRESHOLD,
)
from tabgroup.core.types import DomainCount, Rule, Suggestion, TabColor, VisitRecord
from tabgroup.history.categories import (
    UNCATEGORIZED_CATEGORY,
    categorize_domain,
    category_color,
    category_display_name,
)
from tabgroup.history.source import HistorySource, HistorySourceError
from tabgroup.rules.engine import parse_hostname

logger = logging.getLogger(__name__)

_WWW_PREFIX = "www."
_SKIPPED_DOMAINS = frozenset({"localhost", "", "newtab", "about:blank"})


class AnalysisResult(BaseModel, frozen=True):
    domain_frequency: dict[str, int] = Field(default_factory=dict)
    suggestions: list[Suggestion] = Field(default_factory=list)
    total_visits: int = 0


def canonical_domain(url: str) -> str | None:
    """Lower-cased hostname of *url* without a leading ``www.``; ``None`` if unparseable."""
    hostname = parse_hostname(url)
    if hostname is None:
        return None
    if hostname.startswith(_WWW_PREFIX):
        hostname = hostname[len(_WWW_PREFIX):]
    return hostname


def should_skip_domain(domain: str) -> bool:
    """True for browser-internal, extension, loopback and empty domains."""
    return (
        domain in _SKIPPED_DOMAINS
        or domain.startswith(("chrome", "moz-", "127.0.0.1"))
        or "chrome-extension" in domain
    )


def aggregate_visits(records: Iterable[VisitRecord]) -> tuple[dict[str, int], int]:
    """Sum visit counts per canonical domain.

    Records with unparseable URLs or skipped domains are ignored.  A
    missing or zero ``visit_count`` counts as one visit.

    Returns:
        ``(domain_frequency, total_visits)``; the mapping keeps
        first-seen order.
    """
    frequency: dict[str, int] = {}
    total = 0
    for record in records:
        domain = canonical_domain(record.url)
        if domain is None or should_skip_domain(domain):
            continue
        visits = record.visit_count or 1
        frequency[domain] = frequency.get(domain, 0) + visits
        total += visits
    return frequency, total


def calculate_confidence(domain_count: int, total_visits: int) -> int:
    """Score a cluster of *domain_count* domains with *total_visits* visits (0-100)."""
    if domain_count <= 0:
        return 0
    avg_visits = total_visits / domain_count
    confidence = min(domain_count * CONFIDENCE_PER_DOMAIN, CONFIDENCE_DOMAIN_CAP)
    for threshold, bonus in CONFIDENCE_VISIT_BONUSES:
        if avg_visits >= threshold:
            confidence += bonus
            break
    return min(confidence, CONFIDENCE_MAX)


def domain_suggestion_name(domain: str) -> str:
    """``"example.org"`` -> ``"Example Sites"``."""
    label = domain.split(".")[0]
    return label[:1].upper() + label[1:] + " Sites"


def generate_suggestions(
    domain_frequency: Mapping[str, int],
    *,
    min_visits: int = MIN_SUGGESTION_VISITS,
    limit: int = MAX_SUGGESTIONS,
) -> list[Suggestion]:
    """Turn a domain -> visits mapping into ranked rule suggestions."""
    stamp = int(time.time() * 1000)
    categorized: dict[str, list[DomainCount]] = {}
    uncategorized: list[DomainCount] = []

    for domain, count in domain_frequency.items():
        if count < min_visits:
            continue
        category = categorize_domain(domain)
        entry = DomainCount(domain=domain, count=count)
        if category is None:
            uncategorized.append(entry)
        else:
            categorized.setdefault(category, []).append(entry)

    suggestions: list[Suggestion] = []
    for category, entries in categorized.items():
        if len(entries) < MIN_CATEGORY_DOMAINS:
            continue
        total = sum(e.count for e in entries)
        suggestions.append(
            Suggestion(
                id=f"suggested_{category}_{stamp}",
                name=category_display_name(category),
                patterns=[e.domain for e in entries],
                color=category_color(category),
                category=category,
                domains=entries,
                total_visits=total,
                confidence=calculate_confidence(len(entries), total),
            )
        )

    busy = sorted(
        (e for e in uncategorized if e.count >= min_visits * 2),
        key=lambda e: e.count,
        reverse=True,
    )
    for entry in busy[:MAX_UNCATEGORIZED_SUGGESTIONS]:
        suggestions.append(
            Suggestion(
                id=f"suggested_domain_{entry.domain}_{stamp}",
                name=domain_suggestion_name(entry.domain),
                patterns=[entry.domain],
                color=TabColor.GREY,
                category=UNCATEGORIZED_CATEGORY,
                domains=[entry],
                total_visits=entry.count,
                confidence=calculate_confidence(1, entry.count),
            )
        )

    suggestions.sort(key=lambda s: (s.confidence, s.total_visits), reverse=True)
    return suggestions[:limit]


def has_significant_overlap(suggestion: Suggestion, rules: Iterable[Rule]) -> bool:
    """True if an enabled rule already lists more than half of the suggested domains.

    Compares exact, case-insensitive pattern strings; the general
    pattern-matching semantics are deliberately not applied here.
    """
    domains = {p.lower() for p in suggestion.patterns}
    if not domains:
        return False
    for rule in rules:
        if not rule.enabled:
            continue
        covered = domains & {p.lower() for p in rule.patterns}
        if len(covered) / len(domains) > SUGGESTION_OVERLAP_THRESHOLD:
            return True
    return False


def filter_existing(suggestions: Sequence[Suggestion], rules: Sequence[Rule]) -> list[Suggestion]:
    """Drop suggestions that existing enabled rules already cover."""
    return [s for s in suggestions if not has_significant_overlap(s, rules)]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class HistoryAnalyzer:
    """Runs the suggestion pipeline against a :class:`HistorySource`.

    Args:
        clock: Returns "now"; the analysis window ends there.
        max_results: Cap on records requested from the source.
    """

    def __init__(
        self,
        clock: Callable[[], datetime] = _utcnow,
        max_results: int = DEFAULT_HISTORY_MAX_RESULTS,
    ) -> None:
        self._clock = clock
        self._max_results = max_results

    def analyze(self, source: HistorySource, days: int = DEFAULT_HISTORY_DAYS) -> AnalysisResult:
        """Analyze the last *days* of history; an unreadable source yields an empty result."""
        end = self._clock()
        start = end - timedelta(days=days)
        try:
            records = source.search(start, end, self._max_results)
        except HistorySourceError as exc:
            logger.warning("Could not read history: %s", exc)
            return AnalysisResult()
        logger.info("Analyzing %d history records from the last %d days", len(records), days)
        return self.process_history_items(records)

    def process_history_items(self, records: Iterable[VisitRecord]) -> AnalysisResult:
        frequency, total = aggregate_visits(records)
        return AnalysisResult(
            domain_frequency=frequency,
            suggestions=generate_suggestions(frequency),
            total_visits=total,
        )

    def generate_suggestions(self, domain_frequency: Mapping[str, int]) -> list[Suggestion]:
        return generate_suggestions(domain_frequency)

    def filter_existing(self, suggestions: Sequence[Suggestion], rules: Sequence[Rule]) -> list[Suggestion]:
        return filter_existing(suggestions, rules)
