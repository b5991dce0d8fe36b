"""YAML I/O for rulesets.

A ruleset file is a mapping with a ``rules`` list, each entry shaped like
a persisted rule::

    version: "1"
    rules:
      - name: Dev
        patterns: [github.com, gitlab.com]
        color: purple
      - id: rule_1718000000000_k3j9x0a2b
        name: Docs
        patterns: ["*.readthedocs.io"]
        color: cyan
        enabled: false

Entries without an ``id`` get a fresh one on load.
"""

from __future__ import annotations

from pathlib import Path
from typing import Sequence

import yaml
from pydantic import BaseModel, Field

from tabgroup.core.types import Rule

RULESET_VERSION = "1"


class RuleSet(BaseModel, frozen=True):
    version: str = RULESET_VERSION
    rules: list[Rule] = Field(default_factory=list)


def load_rules(path: Path) -> list[Rule]:
    """Load and validate rules from a YAML file.

    Args:
        path: Path to a YAML file with a top-level ``rules`` list.

    Returns:
        Rules in file order.

    Raises:
        FileNotFoundError: If *path* does not exist.
        ValueError / ValidationError: If the YAML is malformed or a rule
            is invalid.
    """
    raw = yaml.safe_load(path.read_text("utf-8"))
    if not isinstance(raw, dict):
        raise ValueError(f"{path} does not contain a mapping with a 'rules' list")
    if "version" in raw:
        raw["version"] = str(raw["version"])
    return list(RuleSet.model_validate(raw).rules)


def save_rules(rules: Sequence[Rule], path: Path) -> Path:
    """Serialize *rules* to YAML.

    Args:
        rules: Rules to write, in order.
        path: Destination file path.

    Returns:
        The *path* that was written.
    """
    data = RuleSet(rules=list(rules)).model_dump(mode="json")
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.dump(data, default_flow_style=False, sort_keys=False), "utf-8")
    return path
