"""Helpers for network statistics: netstat counters, rate text, interface patterns."""

from __future__ import annotations

import logging
from typing import Optional

logger = logging.getLogger(__name__)

NETSTAT_FILE = "/proc/net/netstat"
BANDWIDTH_CATEGORY = "IpExt"
BANDWIDTH_DOWN_TOTAL_KEY = "InOctets"
BANDWIDTH_UP_TOTAL_KEY = "OutOctets"


def _parse_unsigned(token: str) -> int:
    digits = ""
    for ch in token.lstrip():
        if not ch.isdigit():
            break
        digits += ch
    return int(digits) if digits else 0


def read_netstat(category: str, key: str, path: str = NETSTAT_FILE) -> Optional[int]:
    """Return the counter ``key`` of ``category`` in a netstat file, or None."""
    try:
        with open(path, encoding="utf-8", errors="replace") as handle:
            lines = handle.read().splitlines()
    except OSError:
        logger.warning("Failed to open netstat file %s", path)
        return None

    header_at = next(
        (number for number, line in enumerate(lines) if line.startswith(category)), None
    )
    if header_at is None:
        logger.warning("Category '%s' not found in netstat file %s", category, path)
        return None

    words = lines[header_at].split(" ")
    index = next((i for i, word in enumerate(words) if word.startswith(key)), None)
    if index is None:
        logger.warning(
            "Key '%s' not found in category '%s' of netstat file %s", key, category, path
        )
        return None

    if header_at + 1 >= len(lines):
        return None
    values = lines[header_at + 1].split(" ")
    if index >= len(values):
        return 0
    return _parse_unsigned(values[index])


def pow_format(value: int, unit: str) -> str:
    """Format a rate with one decimal and a G, M or k prefix above 2000 of it."""
    for threshold, scale, prefix in (
        (2000 * 1000 * 1000, 1000 * 1000 * 1000, "G"),
        (2000 * 1000, 1000 * 1000, "M"),
        (2000, 1000, "k"),
    ):
        if value > threshold:
            whole = value // scale
            tenths = (value - whole * scale) // (scale // 10)
            return f"{whole}.{tenths}{prefix}{unit}"
    return f"{value}{unit}"


def wildcard_match(pattern: str, text: str) -> bool:
    """Match ``text`` against a pattern where '*' is any run and '?' any character."""
    p = t = 0
    fallback_p = fallback_t = -1
    plen, tlen = len(pattern), len(text)
    while t < tlen:
        if p < plen and pattern[p] == "*":
            fallback_p = p
            fallback_t = t
            p += 1
        elif p < plen and pattern[p] in ("?", text[t]):
            p += 1
            t += 1
        elif fallback_p >= 0:
            p = fallback_p + 1
            fallback_t += 1
            t = fallback_t
        else:
            return False
    while p < plen and pattern[p] == "*":
        p += 1
    return p == plen