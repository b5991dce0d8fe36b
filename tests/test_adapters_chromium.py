"""Tests for reading Chromium-family History databases."""

from __future__ import annotations

import sqlite3
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from tabgroup.adapters.chromium.history import (
    WEBKIT_EPOCH,
    ChromiumHistorySource,
    find_chromium_history_path,
    from_webkit_timestamp,
    read_chromium_history,
    to_webkit_timestamp,
)
from tabgroup.history.analyzer import HistoryAnalyzer
from tabgroup.history.source import HistorySourceError

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


def _make_history_db(path: Path, rows: list[tuple[str, str, int, datetime]]) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(path)
    try:
        conn.execute(
            "CREATE TABLE urls (id INTEGER PRIMARY KEY, url TEXT, title TEXT, "
            "visit_count INTEGER, last_visit_time INTEGER)"
        )
        conn.executemany(
            "INSERT INTO urls (url, title, visit_count, last_visit_time) VALUES (?, ?, ?, ?)",
            [(url, title, count, to_webkit_timestamp(ts)) for url, title, count, ts in rows],
        )
        conn.commit()
    finally:
        conn.close()
    return path


@pytest.fixture()
def history_db(tmp_path: Path) -> Path:
    return _make_history_db(
        tmp_path / "History",
        [
            ("https://github.com/a", "Repo", 4, NOW - timedelta(hours=1)),
            ("https://gitlab.com/b", "", 3, NOW - timedelta(days=2)),
            ("https://old.example.com", "Old", 9, NOW - timedelta(days=30)),
        ],
    )


class TestWebkitTimestamps:
    def test_epoch(self) -> None:
        assert to_webkit_timestamp(WEBKIT_EPOCH) == 0
        assert to_webkit_timestamp(datetime(1970, 1, 1, tzinfo=timezone.utc)) == 11_644_473_600_000_000

    def test_naive_is_utc(self) -> None:
        assert to_webkit_timestamp(datetime(1970, 1, 1)) == 11_644_473_600_000_000

    def test_inverse(self) -> None:
        assert from_webkit_timestamp(to_webkit_timestamp(NOW)) == NOW


class TestReadChromiumHistory:
    def test_window_and_order(self, history_db: Path) -> None:
        records = read_chromium_history(history_db, NOW - timedelta(days=7), NOW)
        assert [r.url for r in records] == ["https://github.com/a", "https://gitlab.com/b"]
        assert records[0].visit_count == 4
        assert records[0].title == "Repo"
        assert records[1].title is None
        assert records[0].last_visit_time == NOW - timedelta(hours=1)

    def test_max_results(self, history_db: Path) -> None:
        records = read_chromium_history(history_db, NOW - timedelta(days=365), NOW, max_results=1)
        assert [r.url for r in records] == ["https://github.com/a"]

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(HistorySourceError):
            read_chromium_history(tmp_path / "absent", NOW - timedelta(days=1), NOW)

    def test_not_a_database(self, tmp_path: Path) -> None:
        path = tmp_path / "History"
        path.write_text("definitely not sqlite " * 100, "utf-8")
        with pytest.raises(HistorySourceError):
            read_chromium_history(path, NOW - timedelta(days=1), NOW)

    def test_source_feeds_analyzer(self, history_db: Path) -> None:
        result = HistoryAnalyzer(clock=lambda: NOW).analyze(ChromiumHistorySource(history_db), days=7)
        assert result.domain_frequency == {"github.com": 4, "gitlab.com": 3}
        [suggestion] = result.suggestions
        assert suggestion.name == "Development Tools"


class TestFindHistoryPath:
    def test_none_when_absent(self, tmp_path: Path) -> None:
        assert find_chromium_history_path(tmp_path) is None

    def test_finds_chromium_profile(self, tmp_path: Path) -> None:
        path = _make_history_db(tmp_path / ".config" / "chromium" / "Default" / "History", [])
        assert find_chromium_history_path(tmp_path) == path
