"""Typed results of grouping operations."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, Field

from tabgroup.core.types import Tab, TabGroup


class ProcessStatus(StrEnum):
    """What :meth:`~tabgroup.grouping.engine.GroupingEngine.process_tab` did.

    ``CREATED``, ``JOINED`` and ``ALREADY_GROUPED`` mean the tab ended up
    in its target group.  Every other status means group membership was
    left untouched.
    """

    CREATED = "created"
    JOINED = "joined"
    ALREADY_GROUPED = "already_grouped"
    NO_MATCH = "no_match"
    SKIPPED = "skipped"
    IN_FLIGHT = "in_flight"
    FAILED = "failed"


PLACED_STATUSES = frozenset(
    {ProcessStatus.CREATED, ProcessStatus.JOINED, ProcessStatus.ALREADY_GROUPED}
)


class ProcessOutcome(BaseModel, frozen=True):
    tab_id: int
    status: ProcessStatus
    group_id: int | None = None
    group_title: str | None = None
    error: str | None = Field(default=None, description="Registry error text for FAILED outcomes.")

    @property
    def placed(self) -> bool:
        return self.status in PLACED_STATUSES


class GroupWithTabs(BaseModel, frozen=True):
    group: TabGroup
    tabs: list[Tab] = Field(default_factory=list)


class TabGroupInfo(BaseModel, frozen=True):
    """Read-only snapshot of one window: sorted groups with their tabs."""

    groups: list[GroupWithTabs] = Field(default_factory=list)
    ungrouped_tabs: list[Tab] = Field(default_factory=list)
    total_tabs: int = 0
    total_groups: int = 0
