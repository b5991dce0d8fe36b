"""Typer CLI entrypoint and command definitions for tabgroup."""

import asyncio
import json
from pathlib import Path
from typing import List, Optional

import typer

from tabgroup.core.defaults import DEFAULT_DATA_DIR, DEFAULT_HISTORY_DAYS

app = typer.Typer()


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Rule-based tab grouping and history-mined rule suggestions."""
    from tabgroup.core.logging import configure_logging

    configure_logging(verbose)


# -- classification -----------------------------------------------------------


@app.command("match")
def match_cmd(
    url: str = typer.Argument(..., help="URL to classify"),
    data_dir: str = typer.Option(DEFAULT_DATA_DIR, help="Settings directory"),
) -> None:
    """Show which rule (or domain group) a URL would be grouped under."""
    from tabgroup.core.config import SettingsStore
    from tabgroup.rules.engine import RuleEngine

    settings = SettingsStore(data_dir).get_settings()
    analysis = RuleEngine(settings.rules).analyze_url(url)

    if analysis.matching_rule is not None:
        rule = analysis.matching_rule
        typer.echo(f"Rule: {rule.name} ({rule.color}) [{rule.id}]")
    elif settings.group_by_domain and analysis.domain_group is not None:
        group = analysis.domain_group
        typer.echo(f"Domain group: {group.name} ({group.color}) [{group.domain}]")
    else:
        typer.echo("No match")


@app.command("domain")
def domain_cmd(url: str = typer.Argument(..., help="URL to derive a domain group from")) -> None:
    """Show the domain fallback group for a URL."""
    from tabgroup.rules.engine import get_domain_group

    group = get_domain_group(url)
    if group is None:
        typer.echo(f"Not an absolute URL with a hostname: {url}", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"{group.name}\t{group.domain}\t{group.color}")


# -- rules --------------------------------------------------------------------
rules_app = typer.Typer()
app.add_typer(rules_app, name="rules")


@rules_app.command("list")
def rules_list_cmd(
    data_dir: str = typer.Option(DEFAULT_DATA_DIR, help="Settings directory"),
) -> None:
    """List rules in match order."""
    from tabgroup.core.config import SettingsStore

    for rule in SettingsStore(data_dir).get_settings().rules:
        state = "on" if rule.enabled else "off"
        typer.echo(f"{rule.id}\t{state}\t{rule.name}\t{rule.color}\t{', '.join(rule.patterns)}")


@rules_app.command("add")
def rules_add_cmd(
    name: str = typer.Option(..., "--name", help="Group title"),
    pattern: List[str] = typer.Option(..., "--pattern", help="Hostname pattern (repeatable)"),
    color: str = typer.Option("grey", "--color", help="One of the nine palette colours"),
    data_dir: str = typer.Option(DEFAULT_DATA_DIR, help="Settings directory"),
) -> None:
    """Append a rule."""
    from pydantic import ValidationError

    from tabgroup.core.config import SettingsStore
    from tabgroup.core.types import Rule

    try:
        rule = Rule(name=name, patterns=pattern, color=color)
    except ValidationError as exc:
        typer.echo(f"Invalid rule: {exc.errors()[0]['msg']}", err=True)
        raise typer.Exit(code=1)

    if not SettingsStore(data_dir).add_rule(rule):
        typer.echo("Could not save rule", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"Added rule {rule.id}")


@rules_app.command("delete")
def rules_delete_cmd(
    rule_id: str = typer.Argument(..., help="Rule id"),
    data_dir: str = typer.Option(DEFAULT_DATA_DIR, help="Settings directory"),
) -> None:
    """Delete a rule by id."""
    from tabgroup.core.config import SettingsStore

    if not SettingsStore(data_dir).delete_rule(rule_id):
        typer.echo(f"No rule with id {rule_id}", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"Deleted rule {rule_id}")


@rules_app.command("toggle")
def rules_toggle_cmd(
    rule_id: str = typer.Argument(..., help="Rule id"),
    data_dir: str = typer.Option(DEFAULT_DATA_DIR, help="Settings directory"),
) -> None:
    """Enable a disabled rule or disable an enabled one."""
    from tabgroup.core.config import SettingsStore

    store = SettingsStore(data_dir)
    if not store.toggle_rule(rule_id):
        typer.echo(f"No rule with id {rule_id}", err=True)
        raise typer.Exit(code=1)
    rule = next(r for r in store.get_settings().rules if r.id == rule_id)
    typer.echo(f"Rule {rule_id} {'enabled' if rule.enabled else 'disabled'}")


@rules_app.command("test")
def rules_test_cmd(
    pattern: str = typer.Argument(..., help="Pattern to try"),
    url: str = typer.Argument(..., help="URL to test it against"),
) -> None:
    """Check whether a single pattern matches a URL."""
    from tabgroup.rules.engine import RuleEngine

    matched = RuleEngine().test_pattern(pattern, url)
    typer.echo("match" if matched else "no match")


@rules_app.command("import-yaml")
def rules_import_yaml_cmd(
    file: str = typer.Argument(..., help="YAML ruleset file"),
    replace: bool = typer.Option(False, "--replace", help="Replace existing rules instead of appending"),
    data_dir: str = typer.Option(DEFAULT_DATA_DIR, help="Settings directory"),
) -> None:
    """Load rules from a YAML file into the settings."""
    from pydantic import ValidationError

    from tabgroup.core.config import SettingsStore
    from tabgroup.rules.io import load_rules

    path = Path(file)
    if not path.exists():
        typer.echo(f"File not found: {path}", err=True)
        raise typer.Exit(code=1)
    try:
        imported = load_rules(path)
    except (ValueError, ValidationError) as exc:
        typer.echo(f"Invalid ruleset: {exc}", err=True)
        raise typer.Exit(code=1)

    store = SettingsStore(data_dir)
    rules = [] if replace else list(store.get_settings().rules)
    known = {r.id for r in rules}
    rules.extend(r for r in imported if r.id not in known)
    if not store.update_settings({"rules": rules}):
        typer.echo("Could not save rules", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"Imported {len(imported)} rules ({len(rules)} total)")


@rules_app.command("export-yaml")
def rules_export_yaml_cmd(
    file: str = typer.Argument(..., help="Destination YAML file"),
    data_dir: str = typer.Option(DEFAULT_DATA_DIR, help="Settings directory"),
) -> None:
    """Write the configured rules to a YAML file."""
    from tabgroup.core.config import SettingsStore
    from tabgroup.rules.io import save_rules

    rules = SettingsStore(data_dir).get_settings().rules
    out = save_rules(rules, Path(file))
    typer.echo(f"Wrote {len(rules)} rules to {out}")


# -- settings -----------------------------------------------------------------
settings_app = typer.Typer()
app.add_typer(settings_app, name="settings")


@settings_app.command("show")
def settings_show_cmd(
    data_dir: str = typer.Option(DEFAULT_DATA_DIR, help="Settings directory"),
) -> None:
    """Print the current settings as JSON."""
    from tabgroup.core.config import SettingsStore

    typer.echo(SettingsStore(data_dir).export_settings(), nl=False)


@settings_app.command("export")
def settings_export_cmd(
    out: Optional[str] = typer.Option(None, "--out", help="Write to this file instead of stdout"),
    data_dir: str = typer.Option(DEFAULT_DATA_DIR, help="Settings directory"),
) -> None:
    """Export settings as JSON."""
    from tabgroup.core.config import SettingsStore

    payload = SettingsStore(data_dir).export_settings()
    if out is None:
        typer.echo(payload, nl=False)
        return
    out_path = Path(out)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(payload, "utf-8")
    typer.echo(f"Settings exported to {out_path}")


@settings_app.command("import")
def settings_import_cmd(
    file: str = typer.Argument(..., help="Settings JSON file"),
    data_dir: str = typer.Option(DEFAULT_DATA_DIR, help="Settings directory"),
) -> None:
    """Replace settings with an exported JSON file."""
    from tabgroup.core.config import SettingsStore

    path = Path(file)
    if not path.exists():
        typer.echo(f"File not found: {path}", err=True)
        raise typer.Exit(code=1)
    if not SettingsStore(data_dir).import_settings(path.read_text("utf-8")):
        typer.echo("Import failed; settings unchanged", err=True)
        raise typer.Exit(code=1)
    typer.echo("Settings imported")


@settings_app.command("reset")
def settings_reset_cmd(
    data_dir: str = typer.Option(DEFAULT_DATA_DIR, help="Settings directory"),
) -> None:
    """Restore the default settings and seed rules."""
    from tabgroup.core.config import SettingsStore

    if not SettingsStore(data_dir).reset_to_defaults():
        typer.echo("Could not save settings", err=True)
        raise typer.Exit(code=1)
    typer.echo("Settings reset to defaults")


@settings_app.command("set")
def settings_set_cmd(
    group_by_domain: Optional[bool] = typer.Option(None, "--group-by-domain/--no-group-by-domain", help="Fall back to domain groups"),
    auto_collapse: Optional[bool] = typer.Option(None, "--auto-collapse/--no-auto-collapse", help="Collapse newly created groups"),
    sort_order: Optional[str] = typer.Option(None, "--sort-order", help="created | alphabetical"),
    enabled: Optional[bool] = typer.Option(None, "--enabled/--disabled", help="Turn automatic grouping on or off"),
    data_dir: str = typer.Option(DEFAULT_DATA_DIR, help="Settings directory"),
) -> None:
    """Change individual settings."""
    from tabgroup.core.config import SettingsStore

    patch: dict = {}
    if group_by_domain is not None:
        patch["group_by_domain"] = group_by_domain
    if auto_collapse is not None:
        patch["auto_collapse_groups"] = auto_collapse
    if sort_order is not None:
        patch["group_sort_order"] = sort_order
    if enabled is not None:
        patch["enabled"] = enabled
    if not patch:
        typer.echo("Nothing to change", err=True)
        raise typer.Exit(code=1)

    if not SettingsStore(data_dir).update_settings(patch):
        typer.echo("Invalid settings; nothing changed", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"Updated {', '.join(sorted(patch))}")


# -- history ------------------------------------------------------------------
history_app = typer.Typer()
app.add_typer(history_app, name="history")


@history_app.command("analyze")
def history_analyze_cmd(
    csv_file: Optional[str] = typer.Option(None, "--csv", help="Visit history CSV (url, visit_count, last_visit_time)"),
    chromium: Optional[str] = typer.Option(None, "--chromium", help="Chromium-family History database (auto-detected if omitted)"),
    days: int = typer.Option(DEFAULT_HISTORY_DAYS, help="Analysis window in days"),
    out: Optional[str] = typer.Option(None, "--out", help="Write per-domain visit counts to this CSV"),
    accept: Optional[int] = typer.Option(None, "--accept", help="Add the Nth listed suggestion as a rule"),
    data_dir: str = typer.Option(DEFAULT_DATA_DIR, help="Settings directory"),
) -> None:
    """Suggest rules from frequently visited sites."""
    from tabgroup.adapters.chromium.history import ChromiumHistorySource, find_chromium_history_path
    from tabgroup.core.config import SettingsStore
    from tabgroup.history.analyzer import HistoryAnalyzer, filter_existing
    from tabgroup.history.store import CsvHistorySource, export_domain_frequency_csv

    if csv_file is not None:
        path = Path(csv_file)
        if not path.exists():
            typer.echo(f"File not found: {path}", err=True)
            raise typer.Exit(code=1)
        try:
            source = CsvHistorySource(path)
        except ValueError as exc:
            typer.echo(f"Invalid history CSV: {exc}", err=True)
            raise typer.Exit(code=1)
    else:
        history_path = Path(chromium) if chromium else find_chromium_history_path()
        if history_path is None or not history_path.exists():
            typer.echo("No browser history database found; pass --csv or --chromium", err=True)
            raise typer.Exit(code=1)
        source = ChromiumHistorySource(history_path)

    store = SettingsStore(data_dir)
    result = HistoryAnalyzer().analyze(source, days=days)
    suggestions = filter_existing(result.suggestions, store.get_settings().rules)
    typer.echo(f"{result.total_visits} visits across {len(result.domain_frequency)} domains in the last {days} days")

    if out is not None:
        out_path = export_domain_frequency_csv(result, Path(out))
        typer.echo(f"Domain frequency: {out_path}")

    if not suggestions:
        typer.echo("No new suggestions")
        return
    for i, s in enumerate(suggestions, start=1):
        typer.echo(f"{i}. {s.name} [{s.color}] confidence={s.confidence} visits={s.total_visits}: {', '.join(s.patterns)}")

    if accept is not None:
        if not 1 <= accept <= len(suggestions):
            typer.echo(f"--accept must be between 1 and {len(suggestions)}", err=True)
            raise typer.Exit(code=1)
        rule = suggestions[accept - 1].to_rule()
        if not store.add_rule(rule):
            typer.echo("Could not save rule", err=True)
            raise typer.Exit(code=1)
        typer.echo(f"Added rule {rule.id} ({rule.name})")


# -- simulate -----------------------------------------------------------------


@app.command("simulate")
def simulate_cmd(
    urls: str = typer.Option(..., "--urls", help="Text file with one URL per line"),
    reorder: bool = typer.Option(False, "--reorder", help="Reorder groups after grouping"),
    data_dir: str = typer.Option(DEFAULT_DATA_DIR, help="Settings directory"),
) -> None:
    """Group a list of URLs in an in-memory window and print the result as JSON."""
    from tabgroup.adapters.memory import InMemoryTabRegistry
    from tabgroup.core.config import SettingsStore
    from tabgroup.grouping.manager import TabGroupManager

    urls_path = Path(urls)
    if not urls_path.exists():
        typer.echo(f"File not found: {urls_path}", err=True)
        raise typer.Exit(code=1)

    window_id = 1
    registry = InMemoryTabRegistry()
    for line in urls_path.read_text("utf-8").splitlines():
        line = line.strip()
        if line and not line.startswith("#"):
            registry.add_tab(line, window_id=window_id)

    manager = TabGroupManager(registry, SettingsStore(data_dir))
    manager.load_settings()

    async def _run():
        await manager.group_existing_tabs()
        if reorder:
            await manager.engine.reorder_tab_groups(window_id)
        return await manager.engine.get_tab_group_info(window_id)

    info = asyncio.run(_run())
    typer.echo(json.dumps(info.model_dump(mode="json"), indent=2))


if __name__ == "__main__":
    app()
