"""Bar module showing the current sway binding mode."""

from __future__ import annotations

import json
import logging
import threading
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Union

from barmods.sway_ipc import IpcResponse

logger = logging.getLogger(__name__)

_ENTITIES = {"&": "&amp;", "<": "&lt;", ">": "&gt;", "'": "&apos;", '"': "&quot;"}


def _escape_char(ch: str) -> str:
    if ch in _ENTITIES:
        return _ENTITIES[ch]
    code = ord(ch)
    if (
        0x1 <= code <= 0x8
        or code in (0xB, 0xC)
        or 0xE <= code <= 0x1F
        or 0x7F <= code <= 0x84
        or 0x86 <= code <= 0x9F
    ):
        return f"&#x{code:x};"
    return ch


def escape_markup(text: str) -> str:
    """Escape text so it can be shown literally inside Pango markup."""
    return "".join(_escape_char(ch) for ch in text)


def _payload_text(payload: Union[IpcResponse, str]) -> str:
    return payload.payload if isinstance(payload, IpcResponse) else payload


def _json_to_str(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


@dataclass(frozen=True)
class ModeView:
    """What the mode label should display."""

    visible: bool
    text: str = ""
    tooltip: Optional[str] = None


class Mode:
    """Tracks the binding mode reported by ``mode`` events."""

    def __init__(self, config: Optional[Mapping[str, Any]] = None) -> None:
        self._config = dict(config or {})
        fmt = self._config.get("format")
        self._format = fmt if isinstance(fmt, str) else "{}"
        tooltip = self._config.get("tooltip")
        self._tooltip = tooltip if isinstance(tooltip, bool) else True
        self._lock = threading.Lock()
        self.mode = ""

    def on_event(self, payload: Union[IpcResponse, str]) -> None:
        """Update the mode from a ``mode`` event payload."""
        try:
            data = json.loads(_payload_text(payload))
        except (TypeError, ValueError) as exc:
            logger.error("Mode: %s", exc)
            return
        change = data.get("change") if isinstance(data, dict) else None
        with self._lock:
            if change != "default":
                self.mode = escape_markup(_json_to_str(change))
            else:
                self.mode = ""

    def render(self) -> ModeView:
        """Return the label contents for the current mode."""
        with self._lock:
            mode = self.mode
        if not mode:
            return ModeView(visible=False)
        return ModeView(
            visible=True,
            text=self._format.format(mode),
            tooltip=mode if self._tooltip else None,
        )