"""Bar module showing a thermal sensor reading."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Tuple

DEFAULT_FORMAT = "{temperatureC}°C"
DEFAULT_INTERVAL = 10
_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _round_half_away(value: float) -> int:
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def _to_u16(value: int) -> int:
    return value & 0xFFFF


def _parse_leading_int(line: str) -> int:
    """Parse the leading integer of ``line`` the way ``strtol`` does; 0 if none."""
    match = _LEADING_INT.match(line)
    return int(match.group(1)) if match else 0


@dataclass(frozen=True)
class TemperatureView:
    """What the temperature label should display."""

    text: str
    critical: bool


class Temperature:
    """Reads a temperature from a sysfs file and formats it."""

    def __init__(self, config: Optional[Mapping[str, Any]] = None) -> None:
        self._config = dict(config or {})
        hwmon = self._config.get("hwmon-path")
        if isinstance(hwmon, str):
            self.file_path = hwmon
        else:
            zone = self._config.get("thermal-zone")
            zone = zone if _is_int(zone) else 0
            self.file_path = f"/sys/class/thermal/thermal_zone{zone}/temp"
        fmt = self._config.get("format")
        self._format = fmt if isinstance(fmt, str) else DEFAULT_FORMAT
        interval = self._config.get("interval")
        self.interval = interval if _is_int(interval) else DEFAULT_INTERVAL
        # Fail early when the sensor file cannot be opened.
        with open(self.file_path, encoding="utf-8", errors="replace"):
            pass

    def read_temperature(self) -> Tuple[int, int]:
        """Return the temperature in Celsius and Fahrenheit, rounded."""
        with open(self.file_path, encoding="utf-8", errors="replace") as handle:
            line = handle.readline()
        celsius = _parse_leading_int(line) / 1000.0
        fahrenheit = celsius * 1.8 + 32
        return _to_u16(_round_half_away(celsius)), _to_u16(_round_half_away(fahrenheit))

    def _threshold(self) -> Optional[int]:
        value = self._config.get("critical-threshold")
        return value if _is_int(value) else None

    def is_critical(self, temperature_c: int) -> bool:
        """Tell whether ``temperature_c`` reaches the configured threshold."""
        threshold = self._threshold()
        return threshold is not None and temperature_c >= threshold

    def _icon(self, temperature_c: int) -> str:
        icons = self._config.get("format-icons")
        if isinstance(icons, str):
            return icons
        if isinstance(icons, list) and icons:
            maximum = self._threshold() or 100
            if maximum <= 0:
                maximum = 100
            position = temperature_c * len(icons) // maximum
            position = max(0, min(len(icons) - 1, position))
            icon = icons[position]
            return icon if isinstance(icon, str) else ""
        return ""

    def render(self) -> TemperatureView:
        """Read the sensor and return the label contents."""
        temperature_c, temperature_f = self.read_temperature()
        critical = self.is_critical(temperature_c)
        fmt = self._format
        if critical:
            critical_fmt = self._config.get("format-critical")
            if isinstance(critical_fmt, str):
                fmt = critical_fmt
        text = fmt.format(
            temperatureC=temperature_c,
            temperatureF=temperature_f,
            icon=self._icon(temperature_c),
        )
        return TemperatureView(text=text, critical=critical)