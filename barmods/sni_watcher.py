"""Status notifier watcher: the registry of tray hosts and items."""

from __future__ import annotations

import enum
import logging
import re
from dataclasses import dataclass
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)

DEFAULT_HOST_PATH = "/StatusNotifierHost"
DEFAULT_ITEM_PATH = "/StatusNotifierItem"
_MAX_NAME_LENGTH = 255
_UNIQUE_ELEMENT = re.compile(r"[A-Za-z0-9_-]+\Z")
_WELL_KNOWN_ELEMENT = re.compile(r"[A-Za-z_-][A-Za-z0-9_-]*\Z")


def is_bus_name(name: Optional[str]) -> bool:
    """Tell whether ``name`` is a valid unique or well-known D-Bus bus name."""
    if not name or len(name) > _MAX_NAME_LENGTH:
        return False
    if name.startswith(":"):
        elements, pattern = name[1:].split("."), _UNIQUE_ELEMENT
    else:
        elements, pattern = name.split("."), _WELL_KNOWN_ELEMENT
    return len(elements) >= 2 and all(pattern.match(element) for element in elements)


class WatchType(enum.Enum):
    """What a watch entry stands for."""

    HOST = "host"
    ITEM = "item"


@dataclass(eq=False)
class Watch:
    """A registered host or item."""

    type: WatchType
    service: str
    bus_name: str
    object_path: str

    @property
    def name(self) -> str:
        """The bus name followed by the object path."""
        return f"{self.bus_name}{self.object_path}"


class WatcherError(ValueError):
    """Raised when a registration request has invalid arguments."""


class Watcher:
    """Keeps registered hosts and items and reports changes to listeners."""

    def __init__(self) -> None:
        self.hosts: List[Watch] = []
        self.items: List[Watch] = []
        self.is_host_registered = False
        self.on_host_registered: List[Callable[[], None]] = []
        self.on_item_registered: List[Callable[[str], None]] = []
        self.on_item_unregistered: List[Callable[[str], None]] = []

    @staticmethod
    def _resolve(service: str, sender: Optional[str], default_path: str):
        if service.startswith("/"):
            return sender, service
        return service, default_path

    @staticmethod
    def _find(watches: List[Watch], bus_name: str, object_path: str) -> Optional[Watch]:
        return next(
            (w for w in watches if w.bus_name == bus_name and w.object_path == object_path),
            None,
        )

    def _emit_host_registered(self) -> None:
        for callback in list(self.on_host_registered):
            callback()

    def register_host(self, service: str, sender: Optional[str] = None) -> Watch:
        """Register a host; a service that is only a path uses the sender's name."""
        bus_name, object_path = self._resolve(service, sender, DEFAULT_HOST_PATH)
        if not is_bus_name(bus_name):
            raise WatcherError(f"D-Bus bus name '{bus_name}' is not valid")
        if self._find(self.hosts, bus_name, object_path) is not None:
            raise WatcherError(
                f"Status Notifier Host with bus name '{bus_name}' and object path "
                f"'{object_path}' is already registered"
            )
        watch = Watch(WatchType.HOST, service, bus_name, object_path)
        self.hosts.insert(0, watch)
        if not self.is_host_registered:
            self.is_host_registered = True
            self._emit_host_registered()
        return watch

    def register_item(self, service: str, sender: Optional[str] = None) -> Watch:
        """Register an item; registering it again returns the existing entry."""
        bus_name, object_path = self._resolve(service, sender, DEFAULT_ITEM_PATH)
        if not is_bus_name(bus_name):
            raise WatcherError(f"D-Bus bus name '{bus_name}' is not valid")
        existing = self._find(self.items, bus_name, object_path)
        if existing is not None:
            logger.warning(
                "Status Notifier Item with bus name '%s' and object path '%s' "
                "is already registered",
                bus_name,
                object_path,
            )
            return existing
        watch = Watch(WatchType.ITEM, service, bus_name, object_path)
        self.items.insert(0, watch)
        for callback in list(self.on_item_registered):
            callback(watch.name)
        return watch

    def name_vanished(self, watch: Watch) -> None:
        """Drop a host or item whose bus name has left the bus."""
        if watch.type is WatchType.HOST:
            if watch in self.hosts:
                self.hosts.remove(watch)
            if not self.hosts:
                self.is_host_registered = False
                self._emit_host_registered()
        elif watch.type is WatchType.ITEM:
            if watch in self.items:
                self.items.remove(watch)
            for callback in list(self.on_item_unregistered):
                callback(watch.name)

    def registered_items(self) -> List[str]:
        """Names of the registered items, most recently registered first."""
        return [watch.name for watch in self.items]