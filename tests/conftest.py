"""Shared fixtures for the tabgroup test suite."""

from __future__ import annotations

from pathlib import Path

import pytest

from tabgroup.adapters.memory import InMemoryTabRegistry
from tabgroup.core.config import SettingsStore
from tabgroup.core.types import Rule, Settings, TabColor
from tabgroup.rules.engine import RuleEngine


@pytest.fixture()
def dev_rule() -> Rule:
    return Rule(id="dev", name="Dev", patterns=["github.com"], color=TabColor.PURPLE)


@pytest.fixture()
def rule_engine(dev_rule: Rule) -> RuleEngine:
    return RuleEngine([dev_rule])


@pytest.fixture()
def registry() -> InMemoryTabRegistry:
    return InMemoryTabRegistry()


@pytest.fixture()
def store(tmp_path: Path) -> SettingsStore:
    return SettingsStore(tmp_path)


@pytest.fixture()
def no_domain_settings() -> Settings:
    return Settings(rules=[], group_by_domain=False)
