"""Settings persistence.

Stores the grouping settings (rules, domain fallback, collapse and sort
preferences) as a JSON file inside the data directory, using the
camelCase keys browsers persist them with.

Typical location::

    data/settings.json

Usage::

    from tabgroup.core.config import SettingsStore

    store = SettingsStore(data_dir)
    settings = store.get_settings()       # defaults until something is saved
    store.update_settings({"groupByDomain": False})
    store.add_rule({"name": "Dev", "patterns": ["github.com"], "color": "purple"})
    text = store.export_settings()
    store.import_settings(text)           # False (and no write) if invalid
"""

from __future__ import annotations

import contextlib
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Mapping

from pydantic import ValidationError

from tabgroup.core.defaults import DEFAULT_DATA_DIR, SETTINGS_FILENAME
from tabgroup.core.types import Rule, Settings

logger = logging.getLogger(__name__)


def _dump(settings: Settings) -> str:
    return json.dumps(settings.model_dump(by_alias=True, mode="json"), indent=2) + "\n"


class SettingsStore:
    """Read/write access to ``settings.json`` in a data directory.

    Nothing is written until the first mutation; until then
    :meth:`get_settings` returns the built-in defaults.  Every mutation
    re-reads the file, applies the change, validates the result, and
    replaces the file atomically (write-to-temp then rename).

    Mutating methods return ``True`` on success and ``False`` when the
    change is invalid or the file cannot be written; the stored file is
    never partially overwritten.
    """

    def __init__(self, data_dir: Path | str = DEFAULT_DATA_DIR) -> None:
        self._path = Path(data_dir) / SETTINGS_FILENAME

    @property
    def path(self) -> Path:
        return self._path

    # -- read ------------------------------------------------------------------

    def get_settings(self) -> Settings:
        """Return stored settings, or defaults if missing or unreadable."""
        if self._path.exists():
            try:
                return Settings.model_validate_json(self._path.read_text("utf-8"))
            except (ValidationError, OSError):
                logger.warning("Corrupt settings at %s; using defaults", self._path)
        return Settings()

    # -- write -----------------------------------------------------------------

    def save_settings(self, settings: Settings) -> bool:
        try:
            self._persist(_dump(settings))
        except OSError as exc:
            logger.error("Could not save settings to %s: %s", self._path, exc)
            return False
        logger.debug("Settings saved to %s", self._path)
        return True

    def _persist(self, payload: str) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=str(self._path.parent), suffix=".tmp")
        try:
            os.write(fd, payload.encode("utf-8"))
            os.close(fd)
            os.replace(tmp, str(self._path))
        except BaseException:
            with contextlib.suppress(OSError):
                os.close(fd)
            with contextlib.suppress(OSError):
                os.unlink(tmp)
            raise

    def update_settings(self, patch: Mapping[str, Any]) -> bool:
        """Shallow-merge *patch* (snake_case or camelCase keys) into the settings."""
        current = self.get_settings().model_dump(by_alias=True, mode="json")
        for key, value in patch.items():
            field = Settings.model_fields.get(key)
            current[field.alias if field is not None and field.alias else key] = value
        try:
            updated = Settings.model_validate(current)
        except ValidationError as exc:
            logger.warning("Rejected settings update: %s", exc.errors()[0]["msg"])
            return False
        return self.save_settings(updated)

    def reset_to_defaults(self) -> bool:
        return self.save_settings(Settings())

    # -- rules -----------------------------------------------------------------

    def add_rule(self, rule: Rule | Mapping[str, Any]) -> bool:
        """Append *rule*, assigning a fresh id when it has none."""
        try:
            new_rule = rule if isinstance(rule, Rule) else Rule.model_validate(dict(rule))
        except ValidationError as exc:
            logger.warning("Rejected rule: %s", exc.errors()[0]["msg"])
            return False
        settings = self.get_settings()
        if any(r.id == new_rule.id for r in settings.rules):
            logger.warning("Rule id %s already exists", new_rule.id)
            return False
        return self.save_settings(
            settings.model_copy(update={"rules": [*settings.rules, new_rule]})
        )

    def update_rule(self, rule_id: str, patch: Mapping[str, Any]) -> bool:
        """Merge *patch* into the rule with *rule_id*.  The id itself is immutable."""
        settings = self.get_settings()
        rules = list(settings.rules)
        for i, rule in enumerate(rules):
            if rule.id != rule_id:
                continue
            data = rule.model_dump()
            data.update({k: v for k, v in patch.items() if k != "id"})
            try:
                rules[i] = Rule.model_validate(data)
            except ValidationError as exc:
                logger.warning("Rejected update of rule %s: %s", rule_id, exc.errors()[0]["msg"])
                return False
            return self.save_settings(settings.model_copy(update={"rules": rules}))
        return False

    def toggle_rule(self, rule_id: str) -> bool:
        for rule in self.get_settings().rules:
            if rule.id == rule_id:
                return self.update_rule(rule_id, {"enabled": not rule.enabled})
        return False

    def delete_rule(self, rule_id: str) -> bool:
        settings = self.get_settings()
        remaining = [r for r in settings.rules if r.id != rule_id]
        if len(remaining) == len(settings.rules):
            return False
        return self.save_settings(settings.model_copy(update={"rules": remaining}))

    # -- import / export -------------------------------------------------------

    def export_settings(self) -> str:
        return _dump(self.get_settings())

    def import_settings(self, settings_json: str) -> bool:
        """Replace the stored settings with *settings_json*.

        The payload must be a JSON object with a ``rules`` list and must
        validate as :class:`~tabgroup.core.types.Settings`.  On any
        failure nothing is written.
        """
        try:
            raw = json.loads(settings_json)
        except json.JSONDecodeError as exc:
            logger.warning("Settings import is not valid JSON: %s", exc)
            return False
        if not isinstance(raw, dict) or not isinstance(raw.get("rules"), list):
            logger.warning("Settings import has no rules list")
            return False
        try:
            settings = Settings.model_validate(raw)
        except ValidationError as exc:
            logger.warning("Settings import failed validation: %s", exc.errors()[0]["msg"])
            return False
        return self.save_settings(settings)
