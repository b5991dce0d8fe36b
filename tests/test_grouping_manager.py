"""Tests for event-level tab group orchestration."""

from __future__ import annotations

import asyncio

from tabgroup.adapters.memory import InMemoryTabRegistry
from tabgroup.core.config import SettingsStore
from tabgroup.grouping.manager import TabGroupManager
from tabgroup.grouping.outcome import ProcessStatus


def _titles(registry: InMemoryTabRegistry) -> list[str]:
    return sorted(g.title for g in asyncio.run(registry.query_groups(1)))


class TestStart:
    def test_groups_existing_tabs(self, registry: InMemoryTabRegistry, store: SettingsStore) -> None:
        registry.add_tab("https://github.com/org/repo")
        registry.add_tab("chrome://newtab/")
        registry.add_tab("https://www.example.com/")
        manager = TabGroupManager(registry, store)

        outcomes = asyncio.run(manager.start())

        assert [o.status for o in outcomes] == [ProcessStatus.CREATED, ProcessStatus.CREATED]
        assert _titles(registry) == ["Development", "Example"]

    def test_disabled_does_nothing(self, registry: InMemoryTabRegistry, store: SettingsStore) -> None:
        store.update_settings({"enabled": False})
        tab = registry.add_tab("https://github.com")
        manager = TabGroupManager(registry, store)

        assert asyncio.run(manager.start()) == []
        assert not manager.enabled
        assert asyncio.run(manager.handle_new_tab(tab)) is None
        assert _titles(registry) == []

    def test_list_failure(self, registry: InMemoryTabRegistry, store: SettingsStore) -> None:
        registry.add_tab("https://github.com")
        registry.fail_next("query_tabs")
        manager = TabGroupManager(registry, store)
        assert asyncio.run(manager.start()) == []


class TestTabEvents:
    def test_new_tab(self, registry: InMemoryTabRegistry, store: SettingsStore) -> None:
        manager = TabGroupManager(registry, store)
        manager.load_settings()
        outcome = asyncio.run(manager.handle_new_tab(registry.add_tab("https://reddit.com/r/python")))
        assert outcome.status is ProcessStatus.CREATED
        assert outcome.group_title == "Social Media"

    def test_new_internal_tab_ignored(self, registry: InMemoryTabRegistry, store: SettingsStore) -> None:
        manager = TabGroupManager(registry, store)
        manager.load_settings()
        assert asyncio.run(manager.handle_new_tab(registry.add_tab("chrome://extensions"))) is None
        assert asyncio.run(manager.handle_new_tab(registry.add_tab(None))) is None

    def test_update_moves_tab_to_new_rule_group(
        self, registry: InMemoryTabRegistry, store: SettingsStore
    ) -> None:
        manager = TabGroupManager(registry, store)
        manager.load_settings()
        tab = registry.add_tab("https://github.com")
        asyncio.run(manager.handle_new_tab(tab))

        outcome = asyncio.run(manager.handle_tab_update(registry.navigate(tab.id, "https://reddit.com")))

        assert outcome.status is ProcessStatus.CREATED
        assert outcome.group_title == "Social Media"
        assert _titles(registry) == ["Social Media"]

    def test_update_same_rule_is_noop(self, registry: InMemoryTabRegistry, store: SettingsStore) -> None:
        manager = TabGroupManager(registry, store)
        manager.load_settings()
        tab = registry.add_tab("https://github.com")
        asyncio.run(manager.handle_new_tab(tab))
        assert asyncio.run(manager.handle_tab_update(registry.navigate(tab.id, "https://gitlab.com"))) is None

    def test_update_without_rule_keeps_group(
        self, registry: InMemoryTabRegistry, store: SettingsStore
    ) -> None:
        manager = TabGroupManager(registry, store)
        manager.load_settings()
        tab = registry.add_tab("https://github.com")
        first = asyncio.run(manager.handle_new_tab(tab))

        updated = registry.navigate(tab.id, "https://example.org")
        assert asyncio.run(manager.handle_tab_update(updated)) is None
        assert registry.tab(tab.id).group_id == first.group_id

    def test_update_of_ungrouped_tab(self, registry: InMemoryTabRegistry, store: SettingsStore) -> None:
        manager = TabGroupManager(registry, store)
        manager.load_settings()
        tab = registry.add_tab("https://example.org")
        outcome = asyncio.run(manager.handle_tab_update(tab))
        assert outcome.status is ProcessStatus.CREATED
        assert outcome.group_title == "Example"

    def test_update_registry_failure(self, registry: InMemoryTabRegistry, store: SettingsStore) -> None:
        manager = TabGroupManager(registry, store)
        manager.load_settings()
        tab = registry.add_tab("https://github.com")
        asyncio.run(manager.handle_new_tab(tab))
        registry.fail_next("get_group")

        outcome = asyncio.run(manager.handle_tab_update(registry.navigate(tab.id, "https://reddit.com")))
        assert outcome.status is ProcessStatus.FAILED
        assert _titles(registry) == ["Development"]


class TestSettingsChanges:
    def test_set_enabled_persists(self, registry: InMemoryTabRegistry, store: SettingsStore) -> None:
        manager = TabGroupManager(registry, store)
        assert manager.set_enabled(False)
        assert not manager.enabled
        assert store.get_settings().enabled is False

    def test_reload_picks_up_new_rules(self, registry: InMemoryTabRegistry, store: SettingsStore) -> None:
        manager = TabGroupManager(registry, store)
        manager.load_settings()
        store.add_rule({"id": "docs", "name": "Docs", "patterns": ["readthedocs.io"], "color": "cyan"})
        manager.load_settings()
        outcome = asyncio.run(manager.handle_new_tab(registry.add_tab("https://pydantic.readthedocs.io")))
        assert outcome.group_title == "Docs"

    def test_collapse_flag_read_at_creation(self, registry: InMemoryTabRegistry, store: SettingsStore) -> None:
        manager = TabGroupManager(registry, store)
        manager.load_settings()
        store.update_settings({"autoCollapseGroups": True})
        asyncio.run(manager.handle_new_tab(registry.add_tab("https://github.com")))
        [group] = asyncio.run(registry.query_groups(1))
        assert group.collapsed is True


class TestBulkCommands:
    def test_ungroup_all(self, registry: InMemoryTabRegistry, store: SettingsStore) -> None:
        registry.add_tab("https://github.com")
        registry.add_tab("https://reddit.com")
        registry.add_tab("https://example.com", window_id=2)
        manager = TabGroupManager(registry, store)
        asyncio.run(manager.start())

        assert asyncio.run(manager.ungroup_all_tabs()) == 3
        assert asyncio.run(registry.query_groups()) == []

    def test_collapse_all(self, registry: InMemoryTabRegistry, store: SettingsStore) -> None:
        registry.add_tab("https://github.com")
        registry.add_tab("https://reddit.com")
        manager = TabGroupManager(registry, store)
        asyncio.run(manager.start())

        assert asyncio.run(manager.collapse_all_groups(1)) == 2
        assert asyncio.run(manager.collapse_all_groups(1)) == 0
        assert asyncio.run(manager.collapse_all_groups(1, collapsed=False)) == 2
