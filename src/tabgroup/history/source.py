"""Contract for visit-history providers."""

from __future__ import annotations

from datetime import datetime
from typing import Protocol, runtime_checkable

from tabgroup.core.types import VisitRecord


class HistorySourceError(Exception):
    """The history backend could not be read."""


@runtime_checkable
class HistorySource(Protocol):
    def search(self, start: datetime, end: datetime, max_results: int) -> list[VisitRecord]:
        """Visit records last visited within ``[start, end]``, most recent first.

        Raises:
            HistorySourceError: If the backend cannot be read.
        """
        ...
