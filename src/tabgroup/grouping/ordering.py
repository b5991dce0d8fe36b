"""Deterministic group ordering and the tab moves that realise it."""

from __future__ import annotations

from typing import Sequence

from tabgroup.core.defaults import UNTITLED_GROUP_TITLE
from tabgroup.core.types import GroupSortOrder, Tab, TabGroup


def _alphabetical_key(group: TabGroup) -> str:
    return (group.title or UNTITLED_GROUP_TITLE).casefold()


def sort_groups(
    groups: Sequence[TabGroup],
    sort_order: GroupSortOrder | str = GroupSortOrder.CREATED,
) -> list[TabGroup]:
    """Return *groups* in display order.  Stable; never mutates *groups*.

    ``alphabetical`` compares titles case-insensitively, with empty
    titles sorting as ``"Untitled"``.  ``created`` (the default, and the
    fallback for unknown values) puts the highest id, i.e. the newest
    group, first.
    """
    if sort_order == GroupSortOrder.ALPHABETICAL:
        return sorted(groups, key=_alphabetical_key)
    return sorted(groups, key=lambda g: g.id, reverse=True)


def plan_layout(sorted_groups: Sequence[TabGroup], tabs: Sequence[Tab]) -> list[tuple[int, int]]:
    """Compute ``(tab_id, target_index)`` moves laying groups out contiguously.

    Tabs keep their relative order inside each group.  Groups without
    tabs take no positions.  Ungrouped tabs are not moved and end up
    after the last group.

    Args:
        sorted_groups: Groups in the desired order (see :func:`sort_groups`).
        tabs: All tabs of the window, in current index order.

    Returns:
        Moves to apply in order; applying each with "remove, then insert at
        index" yields the target layout.
    """
    by_group: dict[int, list[Tab]] = {}
    for tab in sorted(tabs, key=lambda t: t.index):
        if tab.group_id is not None:
            by_group.setdefault(tab.group_id, []).append(tab)

    moves: list[tuple[int, int]] = []
    position = 0
    for group in sorted_groups:
        for tab in by_group.get(group.id, []):
            moves.append((tab.id, position))
            position += 1
    return moves
