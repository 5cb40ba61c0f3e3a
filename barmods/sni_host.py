"""Status notifier host: keeps the list of tray items registered with a watcher."""

from __future__ import annotations

import itertools
import os
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

DEFAULT_ITEM_PATH = "/StatusNotifierItem"
_host_ids = itertools.count()


def split_service(service: str) -> Tuple[str, str]:
    """Split a registered service into its bus name and object path."""
    slash = service.find("/")
    if slash != -1:
        return service[:slash], service[slash:]
    return service, DEFAULT_ITEM_PATH


@dataclass(frozen=True)
class HostItem:
    """A tray item known to the host."""

    bus_name: str
    object_path: str


ItemCallback = Callable[[HostItem], None]


class Host:
    """Tracks registered items and reports additions and removals."""

    def __init__(self, on_add: ItemCallback, on_remove: ItemCallback) -> None:
        host_id = next(_host_ids)
        self.bus_name = f"org.kde.StatusNotifierHost-{os.getpid()}-{host_id}"
        self.object_path = f"/StatusNotifierHost/{host_id}"
        self._on_add = on_add
        self._on_remove = on_remove
        self._items: List[HostItem] = []

    @property
    def items(self) -> Tuple[HostItem, ...]:
        """The known items in registration order."""
        return tuple(self._items)

    def add_registered_item(self, service: str) -> Optional[HostItem]:
        """Add the item for ``service`` unless known; return the new item or None."""
        bus_name, object_path = split_service(service)
        item = HostItem(bus_name, object_path)
        if item in self._items:
            return None
        self._items.append(item)
        self._on_add(item)
        return item

    def item_unregistered(self, service: str) -> Optional[HostItem]:
        """Remove the item for ``service``; return it, or None if unknown."""
        item = HostItem(*split_service(service))
        if item not in self._items:
            return None
        self._on_remove(item)
        self._items.remove(item)
        return item

    def name_vanished(self) -> None:
        """Forget all items once the watcher has gone away."""
        self._items.clear()