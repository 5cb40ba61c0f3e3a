"""Bar module showing the title of the focused sway window."""

from __future__ import annotations

import json
import logging
import threading
from dataclasses import dataclass
from typing import Any, FrozenSet, Mapping, NamedTuple, Optional, Set, Union

from barmods.sway_ipc import IpcResponse
from barmods.sway_mode import escape_markup

logger = logging.getLogger(__name__)


def _as_str(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _as_bool(value: Any) -> bool:
    return bool(value) if isinstance(value, (bool, int, float)) else False


def _as_int(value: Any) -> int:
    return int(value) if isinstance(value, (bool, int, float)) else 0


class FocusedNode(NamedTuple):
    """The focused container and the number of its siblings."""

    app_nb: int
    id: int
    name: str
    app_id: str


_NOT_FOUND = FocusedNode(0, -1, "", "")


def find_focused_node(
    nodes: Mapping[str, Any], output_name: str, all_outputs: bool = False
) -> FocusedNode:
    """Search a layout tree for the focused window container."""
    children = nodes.get("nodes") if isinstance(nodes, Mapping) else None
    if not isinstance(children, list):
        return _NOT_FOUND
    for node in children:
        if not isinstance(node, Mapping):
            continue
        if _as_bool(node.get("focused")) and node.get("type") == "con":
            if all_outputs or nodes.get("output") == output_name:
                app_id = node.get("app_id")
                if not isinstance(app_id, str):
                    props = node.get("window_properties")
                    app_id = _as_str(props.get("instance")) if isinstance(props, Mapping) else ""
                return FocusedNode(
                    len(children),
                    _as_int(node.get("id")),
                    escape_markup(_as_str(node.get("name"))),
                    app_id,
                )
        found = find_focused_node(node, output_name, all_outputs)
        if found.id > -1 and found.name:
            return found
    return _NOT_FOUND


@dataclass(frozen=True)
class WindowView:
    """What the window label and the bar should display."""

    text: str
    tooltip: Optional[str]
    classes: FrozenSet[str]


class Window:
    """Tracks the focused window from ``get_tree`` replies."""

    def __init__(self, config: Optional[Mapping[str, Any]], output_name: str) -> None:
        self._config = dict(config or {})
        self._output_name = output_name
        fmt = self._config.get("format")
        self._format = fmt if isinstance(fmt, str) else "{}"
        tooltip = self._config.get("tooltip")
        self._tooltip = tooltip if isinstance(tooltip, bool) else True
        self._lock = threading.Lock()
        self.app_nb = 0
        self.window_id = -1
        self.window = ""
        self.app_id = ""
        self._old_app_id = ""
        self._classes: Set[str] = set()

    def on_cmd(self, payload: Union[IpcResponse, str]) -> None:
        """Update the focused window from a layout tree reply."""
        text = payload.payload if isinstance(payload, IpcResponse) else payload
        try:
            tree = json.loads(text)
        except (TypeError, ValueError) as exc:
            logger.error("Window: %s", exc)
            return
        all_outputs = _as_bool(self._config.get("all-outputs"))
        focused = find_focused_node(tree, self._output_name, all_outputs)
        with self._lock:
            self.app_nb, self.window_id, self.window, self.app_id = focused

    def render(self) -> WindowView:
        """Return the label text and the style classes for the bar."""
        with self._lock:
            classes = self._classes
            if self._old_app_id:
                classes.discard(self._old_app_id)
            if self.app_nb == 0:
                classes.discard("solo")
                classes.add("empty")
            elif self.app_nb == 1:
                classes.discard("empty")
                classes.add("solo")
                if self.app_id and self.app_id not in classes:
                    classes.add(self.app_id)
                    self._old_app_id = self.app_id
            else:
                classes.discard("solo")
                classes.discard("empty")
            window = self.window
            snapshot = frozenset(classes)
        return WindowView(
            text=self._format.format(window),
            tooltip=window if self._tooltip else None,
            classes=snapshot,
        )