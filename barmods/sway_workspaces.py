"""Bar module listing sway workspaces as buttons."""

from __future__ import annotations

import json
import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Set, Union

from barmods.sway_ipc import IpcResponse, IpcType

logger = logging.getLogger(__name__)


def _as_str(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _as_bool(value: Any) -> bool:
    return bool(value) if isinstance(value, (bool, int, float)) else False


def trim_workspace_name(name: str) -> str:
    """Drop everything up to and including the first ':' in a workspace name."""
    _, sep, rest = name.partition(":")
    return rest if sep else name


@dataclass
class WorkspaceButton:
    """State of one workspace button."""

    name: str
    label: str = ""
    markup: bool = True
    visible: bool = True
    classes: Set[str] = field(default_factory=set)


class Workspaces:
    """Tracks the workspaces of one output and renders them as buttons."""

    def __init__(self, config: Optional[Mapping[str, Any]], output_name: str) -> None:
        self._config = dict(config or {})
        self._output_name = output_name
        self._lock = threading.Lock()
        self._buttons: Dict[str, WorkspaceButton] = {}
        self._scrolling = False
        self.workspaces: List[Dict[str, Any]] = []

    @property
    def _all_outputs(self) -> bool:
        return _as_bool(self._config.get("all-outputs"))

    def _format_icons(self) -> Mapping[str, Any]:
        icons = self._config.get("format-icons")
        return icons if isinstance(icons, Mapping) else {}

    def on_cmd(self, payload: Union[IpcResponse, str]) -> None:
        """Handle a command reply; workspace lists replace the current ones."""
        if isinstance(payload, IpcResponse):
            if payload.type != IpcType.GET_WORKSPACES:
                self._scrolling = False
                return
            payload = payload.payload
        try:
            data = json.loads(payload)
        except (TypeError, ValueError) as exc:
            logger.error("Workspaces: %s", exc)
            return
        if not isinstance(data, list):
            return
        nodes = [node for node in data if isinstance(node, Mapping)]
        workspaces = [
            dict(node)
            for node in nodes
            if self._all_outputs or _as_str(node.get("output")) == self._output_name
        ]
        persistent = self._config.get("persistant_workspaces")
        if isinstance(persistent, Mapping):
            for p_name in sorted(persistent):
                if any(_as_str(node.get("name")) == p_name for node in nodes):
                    continue
                outputs = persistent[p_name]
                if isinstance(outputs, list) and outputs:
                    if any(_as_str(out) == self._output_name for out in outputs):
                        workspaces.append(
                            {"name": p_name, "target_output": self._output_name}
                        )
                else:
                    workspaces.append({"name": p_name})
            workspaces.sort(key=lambda node: _as_str(node.get("name")))
        with self._lock:
            self.workspaces = workspaces

    def get_icon(self, name: str, node: Mapping[str, Any]) -> str:
        """Pick the icon for a workspace from ``format-icons``."""
        icons = self._format_icons()
        for key in (name, "urgent", "focused", "visible", "default"):
            icon = icons.get(key)
            if key in ("focused", "visible", "urgent"):
                if isinstance(icon, str) and _as_bool(node.get(key)):
                    return icon
            elif isinstance(icon, str):
                return icon
        return name

    def cycle_workspace(self, index: int, prev: bool) -> str:
        """Return the name of the workspace before or after ``index``."""
        workspaces = self.workspaces
        wrap = not _as_bool(self._config.get("disable-scroll-wraparound"))
        if prev and index == 0 and wrap:
            return _as_str(workspaces[-1].get("name"))
        if prev and index != 0:
            index -= 1
        elif not prev and index != len(workspaces):
            index += 1
        if not prev and index == len(workspaces):
            if wrap:
                return _as_str(workspaces[0].get("name"))
            index -= 1
        return _as_str(workspaces[index].get("name"))

    def scroll(self, direction_up: bool) -> Optional[str]:
        """Return the command switching to the neighbouring workspace, if any.

        Further scrolls are ignored until a command reply arrives in on_cmd.
        """
        if self._scrolling:
            return None
        self._scrolling = True
        with self._lock:
            focused = next(
                (i for i, ws in enumerate(self.workspaces) if _as_bool(ws.get("focused"))),
                None,
            )
            if focused is None:
                self._scrolling = False
                return None
            name = self.cycle_workspace(focused, direction_up)
            if not name or name == _as_str(self.workspaces[focused].get("name")):
                self._scrolling = False
                return None
        return f'workspace "{name}"'

    def click_command(self, node: Mapping[str, Any]) -> str:
        """Return the command run when the workspace button is clicked."""
        name = _as_str(node.get("name"))
        target = node.get("target_output")
        if isinstance(target, str):
            return (
                f'workspace "{name}"; move workspace to output "{target}"; '
                f'workspace "{name}"'
            )
        return f'workspace "{name}"'

    def _filter_buttons(self) -> None:
        by_name = {}
        for ws in self.workspaces:
            by_name.setdefault(_as_str(ws.get("name")), ws)
        for name in list(self._buttons):
            ws = by_name.get(name)
            if ws is None or (
                not self._all_outputs and _as_str(ws.get("output")) != self._output_name
            ):
                del self._buttons[name]

    def render(self) -> List[WorkspaceButton]:
        """Return the buttons in display order, updated to the current state."""
        fmt = self._config.get("format")
        markup = not _as_bool(self._config.get("disable-markup"))
        current_only = _as_bool(self._config.get("current-only"))
        with self._lock:
            self._filter_buttons()
            result = []
            for ws in self.workspaces:
                name = _as_str(ws.get("name"))
                button = self._buttons.get(name)
                if button is None:
                    button = WorkspaceButton(name=name, label=name)
                    self._buttons[name] = button
                flags = {
                    "focused": _as_bool(ws.get("focused")),
                    "visible": _as_bool(ws.get("visible")),
                    "urgent": _as_bool(ws.get("urgent")),
                    "persistant": isinstance(ws.get("target_output"), str),
                }
                button.classes = {cls for cls, on in flags.items() if on}
                output = self.get_icon(name, ws)
                if isinstance(fmt, str):
                    output = fmt.format(
                        icon=output,
                        name=trim_workspace_name(name),
                        index=_as_str(ws.get("num")),
                    )
                button.label = output
                button.markup = markup
                button.visible = flags["focused"] if current_only else True
                result.append(button)
        return result