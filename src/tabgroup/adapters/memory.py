"""In-process tab registry.

Models the parts of a browser's tab model the grouping engine touches:
windows holding ordered tabs, and groups that own tabs.  Like a browser
it removes a group as soon as its last tab leaves, and grouping a tab
that is already grouped moves it (unless ``implicit_regroup=False``, in
which case that is an error, as on hosts that require an explicit
ungroup first).

Each call yields to the event loop once, so concurrent callers
interleave the way they would against a real browser.  Calls can be made
to fail with :meth:`InMemoryTabRegistry.fail_next` and are counted in
:attr:`InMemoryTabRegistry.calls`.
"""

from __future__ import annotations

import asyncio
from collections import Counter
from typing import Sequence

from tabgroup.core.defaults import DEFAULT_GROUP_COLOR
from tabgroup.core.types import Tab, TabColor, TabGroup
from tabgroup.grouping.registry import GroupNotFoundError, RegistryError, TabNotFoundError


class InMemoryTabRegistry:
    def __init__(self, *, implicit_regroup: bool = True) -> None:
        self.implicit_regroup = implicit_regroup
        self.calls: Counter[str] = Counter()
        self._windows: dict[int, list[int]] = {}
        self._tabs: dict[int, Tab] = {}
        self._groups: dict[int, TabGroup] = {}
        self._next_tab_id = 1
        self._next_group_id = 1
        self._failures: Counter[str] = Counter()

    # -- synchronous helpers (setup / inspection) ------------------------------

    def add_tab(self, url: str | None, window_id: int = 1, title: str = "") -> Tab:
        """Open a tab at the end of *window_id* and return its snapshot."""
        tab_id = self._next_tab_id
        self._next_tab_id += 1
        order = self._windows.setdefault(window_id, [])
        order.append(tab_id)
        self._tabs[tab_id] = Tab(id=tab_id, url=url, window_id=window_id, title=title)
        return self.tab(tab_id)

    def tab(self, tab_id: int) -> Tab:
        """Current snapshot of *tab_id*, with its index filled in."""
        try:
            tab = self._tabs[tab_id]
        except KeyError:
            raise TabNotFoundError(f"No tab with id {tab_id}") from None
        return tab.model_copy(update={"index": self._windows[tab.window_id].index(tab_id)})

    def navigate(self, tab_id: int, url: str) -> Tab:
        """Point *tab_id* at *url*, keeping its group, and return the new snapshot."""
        self._tabs[tab_id] = self.tab(tab_id).model_copy(update={"url": url})
        return self.tab(tab_id)

    def remove_group(self, group_id: int) -> None:
        """Delete a group behind the engine's back; its tabs become ungrouped."""
        self._groups.pop(group_id, None)
        for tab_id, tab in self._tabs.items():
            if tab.group_id == group_id:
                self._tabs[tab_id] = tab.model_copy(update={"group_id": None})

    def fail_next(self, method: str, times: int = 1) -> None:
        """Make the next *times* calls of *method* raise :class:`RegistryError`."""
        self._failures[method] += times

    async def _enter(self, method: str) -> None:
        await asyncio.sleep(0)
        self.calls[method] += 1
        if self._failures[method] > 0:
            self._failures[method] -= 1
            raise RegistryError(f"{method} rejected")

    def _prune_empty_groups(self) -> None:
        used = {t.group_id for t in self._tabs.values()}
        for group_id in [g for g in self._groups if g not in used]:
            del self._groups[group_id]

    # -- registry protocol -----------------------------------------------------

    async def query_groups(self, window_id: int | None = None) -> list[TabGroup]:
        await self._enter("query_groups")
        return [g for g in self._groups.values() if window_id is None or g.window_id == window_id]

    async def get_group(self, group_id: int) -> TabGroup:
        await self._enter("get_group")
        try:
            return self._groups[group_id]
        except KeyError:
            raise GroupNotFoundError(f"No group with id {group_id}") from None

    async def group_tabs(self, tab_ids: Sequence[int], group_id: int | None = None) -> int:
        await self._enter("group_tabs")
        if not tab_ids:
            raise RegistryError("No tabs to group")
        tabs = [self.tab(tab_id) for tab_id in tab_ids]
        if group_id is not None and group_id not in self._groups:
            raise GroupNotFoundError(f"No group with id {group_id}")

        window_id = tabs[0].window_id if group_id is None else self._groups[group_id].window_id
        for tab in tabs:
            if tab.window_id != window_id:
                raise RegistryError(f"Tab {tab.id} is not in window {window_id}")
            if not self.implicit_regroup and tab.group_id not in (None, group_id):
                raise RegistryError(f"Tab {tab.id} is already in group {tab.group_id}")

        if group_id is None:
            group_id = self._next_group_id
            self._next_group_id += 1
            self._groups[group_id] = TabGroup(
                id=group_id, color=TabColor(DEFAULT_GROUP_COLOR), window_id=window_id
            )
        for tab in tabs:
            self._tabs[tab.id] = self._tabs[tab.id].model_copy(update={"group_id": group_id})
        self._prune_empty_groups()
        return group_id

    async def update_group(
        self,
        group_id: int,
        *,
        title: str | None = None,
        color: TabColor | None = None,
        collapsed: bool | None = None,
    ) -> TabGroup:
        await self._enter("update_group")
        try:
            group = self._groups[group_id]
        except KeyError:
            raise GroupNotFoundError(f"No group with id {group_id}") from None
        changes = {
            k: v
            for k, v in (("title", title), ("color", color), ("collapsed", collapsed))
            if v is not None
        }
        group = group.model_copy(update=changes)
        self._groups[group_id] = group
        return group

    async def query_tabs(
        self, window_id: int | None = None, group_id: int | None = None
    ) -> list[Tab]:
        await self._enter("query_tabs")
        windows = [window_id] if window_id is not None else list(self._windows)
        return [
            self.tab(tab_id)
            for wid in windows
            for tab_id in self._windows.get(wid, [])
            if group_id is None or self._tabs[tab_id].group_id == group_id
        ]

    async def ungroup_tabs(self, tab_ids: Sequence[int]) -> None:
        await self._enter("ungroup_tabs")
        for tab_id in tab_ids:
            tab = self.tab(tab_id)
            self._tabs[tab_id] = tab.model_copy(update={"group_id": None})
        self._prune_empty_groups()

    async def move_tab(self, tab_id: int, index: int) -> None:
        await self._enter("move_tab")
        tab = self.tab(tab_id)
        order = self._windows[tab.window_id]
        order.remove(tab_id)
        order.insert(max(0, min(index, len(order))), tab_id)
