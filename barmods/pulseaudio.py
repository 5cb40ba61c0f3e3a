"""Bar module showing the volume of the default PulseAudio sink and source."""

from __future__ import annotations

import math
import threading
from dataclasses import dataclass, field
from typing import Any, FrozenSet, Mapping, Optional, Sequence, Tuple

PA_VOLUME_MUTED = 0
PA_VOLUME_NORM = 0x10000
PA_VOLUME_MAX = 0xFFFFFFFF // 2
DEFAULT_FORMAT = "{volume}%"
DEFAULT_SOURCE_FORMAT = "{volume}%"

PORTS = (
    "headphones",
    "speaker",
    "hdmi",
    "headset",
    "handsfree",
    "portable",
    "car",
    "hifi",
    "phone",
)


def _round_half_away(value: float) -> int:
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _cvolume_avg(volume: Sequence[int]) -> int:
    if not volume:
        return PA_VOLUME_MUTED
    return sum(volume) // len(volume)


def _cvolume_scale(volume: Sequence[int], new_max: int) -> Tuple[int, ...]:
    current = max(volume, default=PA_VOLUME_MUTED)
    if current <= PA_VOLUME_MUTED:
        return tuple(new_max for _ in volume)
    return tuple(channel * new_max // current for channel in volume)


def _cvolume_inc(volume: Sequence[int], inc: int) -> Tuple[int, ...]:
    current = max(volume, default=PA_VOLUME_MUTED)
    new_max = PA_VOLUME_MAX if current >= PA_VOLUME_MAX - inc else current + inc
    return _cvolume_scale(volume, new_max)


def _cvolume_dec(volume: Sequence[int], dec: int) -> Tuple[int, ...]:
    current = max(volume, default=PA_VOLUME_MUTED)
    new_max = current - dec if current > dec else PA_VOLUME_MUTED
    return _cvolume_scale(volume, new_max)


def _percent(volume: Sequence[int]) -> int:
    return _round_half_away(_cvolume_avg(volume) / PA_VOLUME_NORM * 100.0)


def port_icon(port_name: str) -> str:
    """Return the known port kind contained in ``port_name``, or the name itself."""
    lowered = port_name.lower()
    return next((port for port in PORTS if port in lowered), port_name)


@dataclass(frozen=True)
class DeviceInfo:
    """Information reported for a sink or a source."""

    index: int
    volume: Tuple[int, ...]
    mute: bool = False
    description: str = ""
    monitor_source_name: str = ""
    active_port: Optional[str] = None


@dataclass(frozen=True)
class PulseView:
    """What the volume label should display."""

    text: str
    tooltip: Optional[str]
    classes: FrozenSet[str] = field(default_factory=frozenset)


class Pulseaudio:
    """Tracks sink and source volumes and formats them for the bar."""

    def __init__(self, config: Optional[Mapping[str, Any]] = None) -> None:
        self._config = dict(config or {})
        fmt = self._config.get("format")
        self._format = fmt if isinstance(fmt, str) else DEFAULT_FORMAT
        tooltip = self._config.get("tooltip")
        self._tooltip = tooltip if isinstance(tooltip, bool) else True
        self.handles_scroll = not isinstance(
            self._config.get("on-scroll-up"), str
        ) and not isinstance(self._config.get("on-scroll-down"), str)
        self._lock = threading.Lock()
        self._scrolling = False
        self.sink_idx = 0
        self.pa_volume: Tuple[int, ...] = ()
        self.volume = 0
        self.muted = False
        self.desc = ""
        self.monitor = ""
        self.port_name = ""
        self.source_idx = 0
        self.source_volume = 0
        self.source_muted = False
        self.source_desc = ""
        self.source_port_name = ""

    def on_sink_info(self, info: Optional[DeviceInfo]) -> None:
        """Take over the state of the default sink."""
        if info is None:
            return
        with self._lock:
            self.pa_volume = tuple(info.volume)
            self.sink_idx = info.index
            self.volume = _percent(self.pa_volume)
            self.muted = bool(info.mute)
            self.desc = info.description
            self.monitor = info.monitor_source_name
            self.port_name = info.active_port if info.active_port is not None else "Unknown"

    def on_source_info(self, info: Optional[DeviceInfo]) -> None:
        """Take over the state of the default source."""
        if info is None:
            return
        with self._lock:
            self.source_volume = _percent(info.volume)
            self.source_idx = info.index
            self.source_muted = bool(info.mute)
            self.source_desc = info.description
            self.source_port_name = (
                info.active_port if info.active_port is not None else "Unknown"
            )

    def scroll_volume(self, direction_up: bool) -> Optional[Tuple[int, ...]]:
        """Return the channel volumes to request for the sink after one scroll step.

        Returns None while a previous scroll is still pending (until the next
        render) or when scrolling is bound to user commands.
        """
        if not self.handles_scroll or self._scrolling:
            return None
        self._scrolling = True
        tick = PA_VOLUME_NORM / 100
        change = int(tick)
        step = self._config.get("scroll-step")
        if _is_number(step):
            change = _round_half_away(step * tick)
        with self._lock:
            volume = self.pa_volume
            if direction_up:
                if self.volume + 1 < 100:
                    volume = _cvolume_inc(volume, change)
            elif self.volume - 1 >= 0:
                volume = _cvolume_dec(volume, change)
        return tuple(volume)

    def _icon(self, percentage: int, alt: str) -> str:
        icons = self._config.get("format-icons")
        if isinstance(icons, Mapping):
            icons = icons.get(alt, icons.get("default"))
        if isinstance(icons, str):
            return icons
        if isinstance(icons, list) and icons:
            position = percentage * len(icons) // 100
            icon = icons[max(0, min(len(icons) - 1, position))]
            return icon if isinstance(icon, str) else ""
        return ""

    def render(self) -> PulseView:
        """Return the label contents; also ends a pending scroll."""
        with self._lock:
            fmt = self._format
            classes = set()
            if self.muted:
                muted_fmt = self._config.get("format-muted")
                if isinstance(muted_fmt, str):
                    fmt = muted_fmt
                classes.add("muted")
            elif "a2dp_sink" in self.monitor:
                bt_fmt = self._config.get("format-bluetooth")
                if isinstance(bt_fmt, str):
                    fmt = bt_fmt
                classes.add("bluetooth")
            source_fmt = DEFAULT_SOURCE_FORMAT
            key = "format-source-muted" if self.source_muted else "format-source"
            configured = self._config.get(key)
            if isinstance(configured, str):
                source_fmt = configured
            format_source = source_fmt.format(volume=self.source_volume)
            text = fmt.format(
                volume=self.volume,
                format_source=format_source,
                icon=self._icon(self.volume, port_icon(self.port_name)),
            )
            tooltip = self.desc if self._tooltip else None
        self._scrolling = False
        return PulseView(text=text, tooltip=tooltip, classes=frozenset(classes))