"""Event-level orchestration: reacts to tab lifecycle events and bulk commands.

:class:`TabGroupManager` wires a :class:`~tabgroup.core.config.SettingsStore`,
a :class:`~tabgroup.rules.engine.RuleEngine` and a
:class:`~tabgroup.grouping.engine.GroupingEngine` to one registry.  Hosts
forward their "tab created" / "tab URL changed" / "settings changed"
events to the matching ``handle_*`` / :meth:`TabGroupManager.load_settings`
methods.
"""

from __future__ import annotations

import logging

from tabgroup.core.config import SettingsStore
from tabgroup.core.defaults import INTERNAL_URL_PREFIX
from tabgroup.core.types import Settings, Tab
from tabgroup.grouping.engine import GroupingEngine, should_skip_tab
from tabgroup.grouping.outcome import ProcessOutcome, ProcessStatus
from tabgroup.grouping.registry import RegistryError, TabRegistry
from tabgroup.rules.engine import RuleEngine

logger = logging.getLogger(__name__)


class TabGroupManager:
    """Per-session coordinator.

    Args:
        registry: Host tab/group registry.
        store: Settings store; read on :meth:`load_settings` and whenever
            the engine needs the current configuration.
    """

    def __init__(self, registry: TabRegistry, store: SettingsStore) -> None:
        self._registry = registry
        self._store = store
        self.rule_engine = RuleEngine()
        self.engine = GroupingEngine(registry, settings=store.get_settings)
        self._enabled = True

    @property
    def enabled(self) -> bool:
        return self._enabled

    def load_settings(self) -> Settings:
        """Refresh the enabled flag and the rule snapshot from the store."""
        settings = self._store.get_settings()
        self._enabled = settings.enabled
        self.rule_engine.set_rules(settings.rules)
        logger.debug("Loaded %d rules (enabled=%s)", len(settings.rules), settings.enabled)
        return settings

    async def start(self) -> list[ProcessOutcome]:
        """Load settings and, if enabled, group every already-open tab."""
        self.load_settings()
        if not self._enabled:
            return []
        return await self.group_existing_tabs()

    def set_enabled(self, enabled: bool) -> bool:
        self._enabled = enabled
        return self._store.update_settings({"enabled": enabled})

    # -- tab events ------------------------------------------------------------

    async def handle_new_tab(self, tab: Tab) -> ProcessOutcome | None:
        if not self._enabled or not tab.url or tab.url.startswith(INTERNAL_URL_PREFIX):
            return None
        return await self.engine.process_tab(tab, self.rule_engine)

    async def handle_tab_update(self, tab: Tab) -> ProcessOutcome | None:
        """React to a URL change of *tab*.

        An ungrouped tab is classified normally.  A grouped tab is only
        moved when a rule now matches whose name differs from its current
        group's title; it is ungrouped and then classified again.
        """
        if not self._enabled or not tab.url or tab.url.startswith(INTERNAL_URL_PREFIX):
            return None
        if tab.group_id is None:
            return await self.engine.process_tab(tab, self.rule_engine)

        rule = self.rule_engine.find_matching_rule(tab.url)
        if rule is None:
            return None
        try:
            current = await self._registry.get_group(tab.group_id)
            if rule.name == current.title:
                return None
            await self._registry.ungroup_tabs([tab.id])
        except RegistryError as exc:
            logger.warning("Could not regroup updated tab %d: %s", tab.id, exc)
            return ProcessOutcome(tab_id=tab.id, status=ProcessStatus.FAILED, error=str(exc))
        return await self.engine.process_tab(
            tab.model_copy(update={"group_id": None}), self.rule_engine
        )

    # -- bulk commands ---------------------------------------------------------

    async def group_existing_tabs(self) -> list[ProcessOutcome]:
        """Classify every open tab, one at a time."""
        try:
            tabs = await self._registry.query_tabs()
        except RegistryError as exc:
            logger.warning("Could not list tabs: %s", exc)
            return []
        valid = [t for t in tabs if not should_skip_tab(t)]
        outcomes = [await self.engine.process_tab(t, self.rule_engine) for t in valid]
        logger.info("Processed %d existing tabs", len(valid))
        return outcomes

    async def ungroup_all_tabs(self) -> int:
        """Ungroup every grouped tab in every window; returns how many."""
        try:
            tabs = await self._registry.query_tabs()
        except RegistryError as exc:
            logger.warning("Could not list tabs: %s", exc)
            return 0
        grouped = [t.id for t in tabs if t.group_id is not None]
        if grouped and not await self.engine.ungroup_tabs(grouped):
            return 0
        logger.info("Ungrouped %d tabs", len(grouped))
        return len(grouped)

    async def collapse_all_groups(self, window_id: int, collapsed: bool = True) -> int:
        """Set the collapsed state of every group in *window_id*; returns how many changed."""
        try:
            groups = await self._registry.query_groups(window_id)
        except RegistryError as exc:
            logger.warning("Could not list groups of window %d: %s", window_id, exc)
            return 0
        changed = 0
        for group in groups:
            if group.collapsed == collapsed:
                continue
            try:
                await self._registry.update_group(group.id, collapsed=collapsed)
            except RegistryError as exc:
                logger.warning("Could not update group %d: %s", group.id, exc)
                continue
            changed += 1
        return changed
