"""Visit-history CSV import and domain-frequency export."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

import pandas as pd

from tabgroup.core.types import VisitRecord
from tabgroup.history.analyzer import AnalysisResult


class CsvHistorySource:
    """A :class:`~tabgroup.history.source.HistorySource` over an exported CSV.

    Rows without a ``last_visit_time`` are always inside the window.
    """

    def __init__(self, path: Path) -> None:
        self._records = import_visits_from_csv(path)

    def search(self, start: datetime, end: datetime, max_results: int) -> list[VisitRecord]:
        in_window = [
            r for r in self._records
            if r.last_visit_time is None or start <= r.last_visit_time <= end
        ]
        return in_window[:max_results]


def import_visits_from_csv(path: Path) -> list[VisitRecord]:
    """Read visit records from a CSV file.

    Required column: ``url``.  Optional columns: ``visit_count`` (missing
    values count as one visit), ``last_visit_time`` (ISO-8601, parsed as
    UTC), ``title``.

    Args:
        path: Path to an existing CSV file.

    Returns:
        One ``VisitRecord`` per row with a non-empty URL.

    Raises:
        ValueError: If the ``url`` column is missing or a row fails
            validation.
    """
    df = pd.read_csv(path)

    if "url" not in df.columns:
        raise ValueError(f"CSV missing required columns: ['url'] (found {sorted(df.columns)})")

    if "last_visit_time" in df.columns:
        df["last_visit_time"] = pd.to_datetime(df["last_visit_time"], utc=True)

    records: list[VisitRecord] = []
    for _i, row in df.iterrows():
        if pd.isna(row["url"]) or not str(row["url"]).strip():
            continue
        kwargs: dict = {"url": str(row["url"]).strip()}
        if "visit_count" in df.columns and pd.notna(row["visit_count"]):
            kwargs["visit_count"] = int(row["visit_count"])
        if "last_visit_time" in df.columns and pd.notna(row["last_visit_time"]):
            kwargs["last_visit_time"] = row["last_visit_time"].to_pydatetime()
        if "title" in df.columns and pd.notna(row["title"]):
            kwargs["title"] = str(row["title"])
        records.append(VisitRecord(**kwargs))
    return records


def export_domain_frequency_csv(result: AnalysisResult, path: Path) -> Path:
    """Write per-domain visit counts, busiest first.

    Columns: ``domain``, ``visits``, ``share`` (fraction of all counted
    visits, rounded to 4 places).

    Returns:
        The *path* that was written.
    """
    df = pd.DataFrame({
        "domain": pd.Series(list(result.domain_frequency), dtype="object"),
        "visits": pd.Series(list(result.domain_frequency.values()), dtype="int64"),
    })
    total = result.total_visits or 1
    df["share"] = (df["visits"] / total).round(4)
    df = df.sort_values(["visits", "domain"], ascending=[False, True], kind="stable")
    path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(path, index=False)
    return path
