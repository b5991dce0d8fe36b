"""Stateful tab grouping: classify a tab, then find, reuse, or create its group.

One :class:`GroupingEngine` instance owns two pieces of state:

* a best-effort cache ``(title, window_id) -> TabGroup`` that is
  revalidated against the registry before every reuse and evicted when
  the group is gone or was renamed, and
* the set of tab ids currently being classified.  A second request for a
  tab that is already in flight is dropped, not queued; the tab is
  reclassified on its next trigger.

Both live on the instance (construct one per session and pass it
around), so tests get a fresh engine each.  The engine is meant for a
single asyncio event loop: the in-flight check-and-mark happens before
the first ``await`` and is therefore atomic.

Registry failures never escape :meth:`GroupingEngine.process_tab`; they
come back as a :class:`~tabgroup.grouping.outcome.ProcessOutcome` with
status ``FAILED``.  :meth:`GroupingEngine.reorder_tab_groups` is the
exception and lets :class:`~tabgroup.grouping.registry.RegistryError`
propagate, since a failed reorder may leave a partial layout.
"""

from __future__ import annotations

import contextlib
import logging
from typing import Callable, Sequence

from tabgroup.core.defaults import (
    DEFAULT_GROUP_COLOR,
    DEFAULT_GROUP_TITLE,
    EXCLUDED_URL_PREFIXES,
    EXCLUDED_URLS,
)
from tabgroup.core.types import Settings, Tab, TabColor, TabGroup
from tabgroup.grouping.ordering import plan_layout, sort_groups
from tabgroup.grouping.outcome import (
    GroupWithTabs,
    ProcessOutcome,
    ProcessStatus,
    TabGroupInfo,
)
from tabgroup.grouping.registry import RegistryError, TabRegistry
from tabgroup.rules.engine import RuleEngine

logger = logging.getLogger(__name__)


def should_skip_tab(tab: Tab) -> bool:
    """True for tabs without a URL and for browser/extension-internal pages."""
    url = tab.url
    if not url:
        return True
    return url in EXCLUDED_URLS or url.startswith(EXCLUDED_URL_PREFIXES)


class GroupingEngine:
    """Places tabs into rule- or domain-derived groups through a registry.

    Args:
        registry: The host tab/group registry.
        settings: Zero-argument callable returning the current settings.
            Called at decision time, so the domain-fallback switch and the
            collapse flag of a new group reflect the configuration at the
            moment they are needed.
    """

    def __init__(
        self,
        registry: TabRegistry,
        settings: Callable[[], Settings] = Settings,
    ) -> None:
        self._registry = registry
        self._settings = settings
        self._group_cache: dict[tuple[str, int], TabGroup] = {}
        self._in_flight: set[int] = set()

    @property
    def in_flight(self) -> frozenset[int]:
        return frozenset(self._in_flight)

    def cached_group(self, title: str, window_id: int) -> TabGroup | None:
        return self._group_cache.get((title, window_id))

    def clear_cache(self) -> None:
        self._group_cache.clear()

    # -- classification --------------------------------------------------------

    async def process_tab(self, tab: Tab, rule_engine: RuleEngine) -> ProcessOutcome:
        """Classify *tab* and place it into its target group.

        A matching rule wins; otherwise, if domain grouping is enabled,
        the tab goes to its domain group.  The tab id is held in the
        in-flight set for the whole call, including all registry calls,
        and released on every exit path.
        """
        if not tab.url or should_skip_tab(tab):
            return ProcessOutcome(tab_id=tab.id, status=ProcessStatus.SKIPPED)
        if tab.id in self._in_flight:
            logger.debug("Tab %d already being processed, dropping request", tab.id)
            return ProcessOutcome(tab_id=tab.id, status=ProcessStatus.IN_FLIGHT)

        self._in_flight.add(tab.id)
        try:
            rule = rule_engine.find_matching_rule(tab.url)
            if rule is not None:
                return await self._place(tab, rule.name, rule.color)

            if self._settings().group_by_domain:
                domain_group = rule_engine.get_domain_group(tab.url)
                if domain_group is not None:
                    return await self._place(tab, domain_group.name, domain_group.color)

            return ProcessOutcome(tab_id=tab.id, status=ProcessStatus.NO_MATCH)
        finally:
            self._in_flight.discard(tab.id)

    async def _place(self, tab: Tab, title: str, color: TabColor) -> ProcessOutcome:
        try:
            group, created = await self.resolve_or_create_group(title, color, tab)
            if created:
                status = ProcessStatus.CREATED
            elif tab.group_id == group.id:
                status = ProcessStatus.ALREADY_GROUPED
            else:
                await self._detach(tab)
                await self._registry.group_tabs([tab.id], group_id=group.id)
                status = ProcessStatus.JOINED
        except RegistryError as exc:
            logger.warning("Could not place tab %d in group %r: %s", tab.id, title, exc)
            return ProcessOutcome(
                tab_id=tab.id,
                status=ProcessStatus.FAILED,
                group_title=title,
                error=str(exc),
            )
        return ProcessOutcome(
            tab_id=tab.id, status=status, group_id=group.id, group_title=group.title
        )

    async def _detach(self, tab: Tab) -> None:
        # Hosts without implicit regroup reject grouping a tab that is
        # still a member of another group.
        if tab.group_id is not None and not self._registry.implicit_regroup:
            await self._registry.ungroup_tabs([tab.id])

    # -- group resolution ------------------------------------------------------

    async def find_group_by_title(self, title: str, window_id: int) -> TabGroup | None:
        """Find the canonical group titled *title* in *window_id*.

        The cached entry is used only after the registry confirms it still
        exists with the same title and window; otherwise it is evicted and
        the window's groups are queried.  If the registry holds several
        groups with that title, the first one it reports becomes canonical.

        Raises:
            RegistryError: If the window's groups cannot be queried.
        """
        key = (title, window_id)
        cached = self._group_cache.get(key)
        if cached is not None:
            try:
                live = await self._registry.get_group(cached.id)
            except RegistryError:
                logger.debug("Cached group %r (id %d) no longer exists", title, cached.id)
                self._group_cache.pop(key, None)
            else:
                if live.title == title and live.window_id == window_id:
                    self._group_cache[key] = live
                    return live
                logger.debug("Cached group id %d is now titled %r", cached.id, live.title)
                self._group_cache.pop(key, None)

        groups = await self._registry.query_groups(window_id)
        matching = [g for g in groups if g.title == title and g.window_id == window_id]
        if not matching:
            return None
        if len(matching) > 1:
            logger.warning(
                "%d groups titled %r in window %d; using id %d",
                len(matching), title, window_id, matching[0].id,
            )
        self._group_cache[key] = matching[0]
        return matching[0]

    async def resolve_or_create_group(
        self, title: str, color: TabColor, tab: Tab
    ) -> tuple[TabGroup, bool]:
        """Return ``(group, created)`` for *title* in the tab's window.

        A new group is created holding just *tab*, then titled, coloured,
        and collapsed per the current ``auto_collapse_groups`` setting in a
        second call.  If that second call fails the tab is ungrouped again
        so no untitled group is left behind.

        Raises:
            RegistryError: If any registry call fails.
        """
        existing = await self.find_group_by_title(title, tab.window_id)
        if existing is not None:
            return existing, False

        await self._detach(tab)
        group_id = await self._registry.group_tabs([tab.id])
        try:
            group = await self._registry.update_group(
                group_id,
                title=title,
                color=color,
                collapsed=self._settings().auto_collapse_groups,
            )
        except RegistryError:
            with contextlib.suppress(RegistryError):
                await self._registry.ungroup_tabs([tab.id])
            raise
        self._group_cache[(title, tab.window_id)] = group
        logger.info("Created group %r (id %d) in window %d", title, group.id, tab.window_id)
        return group, True

    # -- direct group manipulation ---------------------------------------------

    async def move_tab_to_group(self, tab_id: int, group_id: int) -> bool:
        try:
            await self._registry.group_tabs([tab_id], group_id=group_id)
        except RegistryError as exc:
            logger.warning("Could not move tab %d to group %d: %s", tab_id, group_id, exc)
            return False
        return True

    async def create_group_from_tabs(
        self,
        tab_ids: Sequence[int],
        title: str | None = None,
        color: TabColor | None = None,
    ) -> int | None:
        """Group *tab_ids* into a new group; returns its id, or ``None`` on failure."""
        try:
            group_id = await self._registry.group_tabs(list(tab_ids))
            group = await self._registry.update_group(
                group_id,
                title=title or DEFAULT_GROUP_TITLE,
                color=color or TabColor(DEFAULT_GROUP_COLOR),
            )
        except RegistryError as exc:
            logger.warning("Could not create group from %d tabs: %s", len(tab_ids), exc)
            return None
        self._group_cache[(group.title, group.window_id)] = group
        return group.id

    async def ungroup_tabs(self, tab_ids: Sequence[int]) -> bool:
        try:
            await self._registry.ungroup_tabs(list(tab_ids))
        except RegistryError as exc:
            logger.warning("Could not ungroup %d tabs: %s", len(tab_ids), exc)
            return False
        return True

    # -- snapshots and ordering ------------------------------------------------

    async def get_tab_group_info(self, window_id: int) -> TabGroupInfo:
        """Snapshot of *window_id* with groups in configured display order.

        Returns an empty snapshot if the registry cannot be queried.
        """
        try:
            tabs = await self._registry.query_tabs(window_id)
            groups = await self._registry.query_groups(window_id)
        except RegistryError as exc:
            logger.warning("Could not read groups of window %d: %s", window_id, exc)
            return TabGroupInfo()

        by_group: dict[int, list[Tab]] = {}
        ungrouped: list[Tab] = []
        for tab in tabs:
            if tab.group_id is None:
                ungrouped.append(tab)
            else:
                by_group.setdefault(tab.group_id, []).append(tab)

        ordered = sort_groups(groups, self._settings().group_sort_order)
        return TabGroupInfo(
            groups=[GroupWithTabs(group=g, tabs=by_group.get(g.id, [])) for g in ordered],
            ungrouped_tabs=ungrouped,
            total_tabs=len(tabs),
            total_groups=len(groups),
        )

    async def reorder_tab_groups(self, window_id: int) -> int:
        """Move tabs so groups are contiguous and in configured order.

        Not atomic: a failure part-way leaves a partial layout, and calling
        again converges.  Returns the number of moves issued.

        Raises:
            RegistryError: If any registry call fails.
        """
        groups = await self._registry.query_groups(window_id)
        if len(groups) <= 1:
            return 0

        ordered = sort_groups(groups, self._settings().group_sort_order)
        tabs = await self._registry.query_tabs(window_id)
        moves = plan_layout(ordered, tabs)
        for tab_id, index in moves:
            await self._registry.move_tab(tab_id, index)
        logger.debug("Reordered %d groups in window %d (%d moves)", len(groups), window_id, len(moves))
        return len(moves)
