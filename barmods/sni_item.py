"""A status notifier tray item: its properties, icon data and click handling."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

logger = logging.getLogger(__name__)

DEFAULT_ICON_SIZE = 16
SCALABLE_SIZE = -1

_STRING_PROPERTIES = {
    "Category": "category",
    "Id": "id",
    "Title": "title",
    "Status": "status",
    "IconName": "icon_name",
    "OverlayIconName": "overlay_icon_name",
    "AttentionIconName": "attention_icon_name",
    "AttentionMovieName": "attention_movie_name",
    "IconThemePath": "icon_theme_path",
    "Menu": "menu",
}
# Known properties that are accepted but not displayed.
_IGNORED_PROPERTIES = {"OverlayIconPixmap", "AttentionIconPixmap", "ToolTip"}


@dataclass(frozen=True)
class Pixmap:
    """An icon image: width, height and four bytes per pixel."""

    width: int
    height: int
    data: bytes


def argb_to_rgba(data: bytes) -> bytes:
    """Reorder pixels from ARGB to RGBA byte order."""
    raw = bytes(data)
    if len(raw) % 4:
        raise ValueError("pixel data length must be a multiple of 4")
    out = bytearray(len(raw))
    out[0::4] = raw[1::4]
    out[1::4] = raw[2::4]
    out[2::4] = raw[3::4]
    out[3::4] = raw[0::4]
    return bytes(out)


PixmapLike = Union[Pixmap, Tuple[int, int, Optional[bytes]]]


def pick_largest_pixmap(pixmaps: Iterable[PixmapLike]) -> Optional[Pixmap]:
    """Return the largest well-formed ARGB pixmap converted to RGBA, or None."""
    best: Optional[Pixmap] = None
    for entry in pixmaps:
        if isinstance(entry, Pixmap):
            width, height, data = entry.width, entry.height, entry.data
        else:
            width, height, data = entry
        if width <= 0 or height <= 0 or data is None:
            continue
        area = best.width * best.height if best is not None else 0
        if width * height <= area:
            continue
        if len(data) != 4 * width * height:
            continue
        best = Pixmap(width, height, bytes(data))
    if best is None:
        return None
    return Pixmap(best.width, best.height, argb_to_rgba(best.data))


def choose_icon_size(sizes: Sequence[int], request_size: int) -> int:
    """Pick the icon size to load from the sizes a theme offers (-1 means scalable)."""
    chosen = 0
    for size in sizes:
        if size == request_size or size == SCALABLE_SIZE:
            chosen = request_size
            break
        if size < request_size:
            chosen = size
        elif size > chosen > 0:
            chosen = request_size
            break
    return chosen if chosen else request_size


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


class Item:
    """State of one status notifier item as read from its properties."""

    def __init__(
        self, bus_name: str, object_path: str, config: Optional[Mapping[str, Any]] = None
    ) -> None:
        self.bus_name = bus_name
        self.object_path = object_path
        config = dict(config or {})
        size = config.get("icon-size")
        self.icon_size = size if _is_int(size) and size >= 0 else DEFAULT_ICON_SIZE
        self.category = ""
        self.id = ""
        self.title = ""
        self.status = ""
        self.window_id = 0
        self.icon_name = ""
        self.icon_pixmap: Optional[Pixmap] = None
        self.overlay_icon_name = ""
        self.attention_icon_name = ""
        self.attention_movie_name = ""
        self.icon_theme_path = ""
        self.menu = ""
        self.item_is_menu = True
        self.update_pending = False
        self._cache: Dict[str, Any] = {}

    def _label(self) -> str:
        return self.id or self.bus_name

    def set_property(self, name: str, value: Any) -> bool:
        """Store one property; return False when it is unknown or of the wrong type."""
        logger.debug("Set tray item property: %s.%s = %r", self._label(), name, value)
        try:
            if name in _STRING_PROPERTIES:
                if not isinstance(value, str):
                    raise TypeError("expected a string")
                setattr(self, _STRING_PROPERTIES[name], value)
            elif name == "WindowId":
                if not _is_int(value):
                    raise TypeError("expected an integer")
                self.window_id = value
            elif name == "ItemIsMenu":
                if not isinstance(value, bool):
                    raise TypeError("expected a boolean")
                self.item_is_menu = value
            elif name == "IconPixmap":
                self.icon_pixmap = pick_largest_pixmap(value)
            elif name in _IGNORED_PROPERTIES:
                return True
            else:
                return False
        except (TypeError, ValueError) as exc:
            logger.warning(
                "Failed to set tray item property: %s.%s, value = %r, err = %s",
                self._label(),
                name,
                value,
                exc,
            )
            return False
        self._cache[name] = value
        return True

    def apply_properties(self, properties: Mapping[str, Any]) -> List[str]:
        """Apply a full property set; return the names whose value changed."""
        self.update_pending = False
        changed = []
        for name, value in properties.items():
            if name in self._cache and self._cache[name] == value:
                continue
            self._cache[name] = value
            self.set_property(name, value)
            changed.append(name)
        return changed

    def is_valid(self) -> bool:
        """Tell whether the item has the id, category and status it must have."""
        return bool(self.id and self.category and self.status)

    def on_signal(self, signal_name: str) -> bool:
        """Return True when the signal calls for a (debounced) property refresh."""
        logger.debug("Tray item '%s' got signal %s", self.id, signal_name)
        if self.update_pending or not signal_name.startswith("New"):
            return False
        self.update_pending = True
        return True

    def click_action(self, button: int) -> Optional[str]:
        """Return what a mouse button does.

        "menu" means the exported menu is to be shown; otherwise the name of
        the item method to call, or None when the button does nothing.
        """
        if (button == 1 and self.item_is_menu) or button == 3:
            return "menu" if self.menu else "ContextMenu"
        if button == 1:
            return "Activate"
        if button == 2:
            return "SecondaryActivate"
        return None