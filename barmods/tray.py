"""Tray module: shows the items registered through a status notifier watcher."""

from __future__ import annotations

import logging
from typing import Any, List, Mapping, Optional, Tuple

from barmods.sni_host import Host, HostItem
from barmods.sni_item import Item
from barmods.sni_watcher import Watcher

logger = logging.getLogger(__name__)


def _is_uint(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


class Tray:
    """A box of tray items fed by a watcher and a host."""

    def __init__(self, config: Optional[Mapping[str, Any]] = None) -> None:
        self._config = dict(config or {})
        spacing = self._config.get("spacing")
        self.spacing = spacing if _is_uint(spacing) else 0
        self._items: List[Item] = []
        self.watcher = Watcher()
        self.host = Host(self._host_added, self.on_remove)
        self.watcher.on_item_registered.append(self.host.add_registered_item)
        self.watcher.on_item_unregistered.append(self.host.item_unregistered)

    def _host_added(self, host_item: HostItem) -> None:
        self.on_add(Item(host_item.bus_name, host_item.object_path, self._config))

    @property
    def items(self) -> Tuple[Item, ...]:
        """The items shown, in the order they were added."""
        return tuple(self._items)

    def on_add(self, item: Item) -> None:
        """Show a new item at the end of the tray."""
        self._items.append(item)

    def on_remove(self, item: Any) -> None:
        """Remove the item with the same bus name and object path, if shown."""
        self._items = [
            shown
            for shown in self._items
            if (shown.bus_name, shown.object_path) != (item.bus_name, item.object_path)
        ]

    def visible(self) -> bool:
        """The tray is shown only while it holds items."""
        return bool(self._items)