"""Contract for the host tab/group registry the grouping engine drives.

The registry owns live tabs and groups (a browser, or
:class:`~tabgroup.adapters.memory.InMemoryTabRegistry` in tests and
simulations).  Every call is a coroutine and may fail with
:class:`RegistryError`, typically because an id went stale between the
time it was read and the time it was used.
"""

from __future__ import annotations

from typing import Protocol, Sequence, runtime_checkable

from tabgroup.core.types import TabColor, TabGroup, Tab


class RegistryError(Exception):
    """A registry call was rejected (stale id, closed window, ...)."""


class GroupNotFoundError(RegistryError):
    pass


class TabNotFoundError(RegistryError):
    pass


@runtime_checkable
class TabRegistry(Protocol):
    """Async tab/group registry.

    ``implicit_regroup`` tells the engine whether :meth:`group_tabs`
    removes a tab from its previous group by itself.  When ``False`` the
    engine ungroups the tab before adding it to another group.
    """

    implicit_regroup: bool

    async def query_groups(self, window_id: int | None = None) -> list[TabGroup]: ...

    async def get_group(self, group_id: int) -> TabGroup: ...

    async def group_tabs(self, tab_ids: Sequence[int], group_id: int | None = None) -> int:
        """Add tabs to *group_id*, or to a new untitled group when ``None``.

        Returns the id of the group the tabs ended up in.
        """
        ...

    async def update_group(
        self,
        group_id: int,
        *,
        title: str | None = None,
        color: TabColor | None = None,
        collapsed: bool | None = None,
    ) -> TabGroup: ...

    async def query_tabs(
        self, window_id: int | None = None, group_id: int | None = None
    ) -> list[Tab]: ...

    async def ungroup_tabs(self, tab_ids: Sequence[int]) -> None: ...

    async def move_tab(self, tab_id: int, index: int) -> None: ...
