"""Chromium-family browser history access (Chrome, Chromium, Brave, Edge).

Reads the ``urls`` table of a profile's ``History`` SQLite database.
The browser keeps that file locked while running, so it is copied to a
temporary file and the copy is queried.  Timestamps in the database are
microseconds since 1601-01-01 UTC (the WebKit epoch).
"""

from __future__ import annotations

import contextlib
import logging
import os
import shutil
import sqlite3
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Final

from tabgroup.core.defaults import DEFAULT_HISTORY_MAX_RESULTS
from tabgroup.core.types import VisitRecord
from tabgroup.history.source import HistorySourceError

logger = logging.getLogger(__name__)

WEBKIT_EPOCH: Final[datetime] = datetime(1601, 1, 1, tzinfo=timezone.utc)

# Profile-relative locations, most specific first.
_PROFILE_CANDIDATES: Final[tuple[str, ...]] = (
    ".config/google-chrome/Default/History",
    ".config/chromium/Default/History",
    ".config/BraveSoftware/Brave-Browser/Default/History",
    ".config/microsoft-edge/Default/History",
    "Library/Application Support/Google/Chrome/Default/History",
    "Library/Application Support/Chromium/Default/History",
    "Library/Application Support/BraveSoftware/Brave-Browser/Default/History",
    "Library/Application Support/Microsoft Edge/Default/History",
)

_QUERY: Final[str] = """
    SELECT url, title, visit_count, last_visit_time
    FROM urls
    WHERE last_visit_time >= ? AND last_visit_time <= ?
    ORDER BY last_visit_time DESC
    LIMIT ?
"""


def to_webkit_timestamp(ts: datetime) -> int:
    """Convert a datetime (naive = UTC) to WebKit epoch microseconds."""
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return (ts - WEBKIT_EPOCH) // timedelta(microseconds=1)


def from_webkit_timestamp(value: int) -> datetime:
    """Convert WebKit epoch microseconds to an aware UTC datetime."""
    return WEBKIT_EPOCH + timedelta(microseconds=value)


def find_chromium_history_path(home: Path | None = None) -> Path | None:
    """Return the first existing default-profile ``History`` file under *home*."""
    base = home or Path.home()
    for relative in _PROFILE_CANDIDATES:
        candidate = base / relative
        if candidate.exists():
            return candidate
    return None


def read_chromium_history(
    path: Path,
    start: datetime,
    end: datetime,
    *,
    max_results: int = DEFAULT_HISTORY_MAX_RESULTS,
) -> list[VisitRecord]:
    """Read URLs last visited within ``[start, end]``, most recent first.

    Args:
        path: A Chromium ``History`` database file.
        start: Inclusive window start.
        end: Inclusive window end.
        max_results: Row cap.

    Returns:
        ``VisitRecord`` instances carrying the browser's cumulative
        ``visit_count`` per URL.

    Raises:
        HistorySourceError: If the file cannot be copied or queried.
    """
    fd, tmp = tempfile.mkstemp(suffix=".history.db")
    os.close(fd)
    try:
        try:
            shutil.copyfile(path, tmp)
        except OSError as exc:
            raise HistorySourceError(f"Cannot copy history database {path}: {exc}") from exc

        conn = sqlite3.connect(tmp)
        try:
            rows = conn.execute(
                _QUERY,
                (to_webkit_timestamp(start), to_webkit_timestamp(end), max_results),
            ).fetchall()
        except sqlite3.Error as exc:
            raise HistorySourceError(f"Cannot query history database {path}: {exc}") from exc
        finally:
            conn.close()
    finally:
        with contextlib.suppress(OSError):
            os.unlink(tmp)

    logger.info("Read %d history rows from %s", len(rows), path)
    return [
        VisitRecord(
            url=url,
            title=title or None,
            visit_count=visit_count,
            last_visit_time=from_webkit_timestamp(last_visit) if last_visit else None,
        )
        for url, title, visit_count, last_visit in rows
    ]


class ChromiumHistorySource:
    """:class:`~tabgroup.history.source.HistorySource` backed by a ``History`` file."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def search(self, start: datetime, end: datetime, max_results: int) -> list[VisitRecord]:
        return read_chromium_history(self.path, start, end, max_results=max_results)
