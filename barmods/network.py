"""Bar module showing the state, address, Wi-Fi link and traffic of a network interface."""

from __future__ import annotations

import enum
import ipaddress
import logging
import socket
import struct
import threading
from typing import Any, Iterable, Iterator, Mapping, Optional, Tuple, Union

import psutil

from barmods.network_stats import (
    BANDWIDTH_CATEGORY,
    BANDWIDTH_DOWN_TOTAL_KEY,
    BANDWIDTH_UP_TOTAL_KEY,
    pow_format,
    read_netstat,
    wildcard_match,
)
from barmods.sway_mode import escape_markup

logger = logging.getLogger(__name__)

DEFAULT_FORMAT = "{ifname}"
DEFAULT_INTERVAL = 60
ROUTE_BUFFER_SIZE = 8192
_U64 = 1 << 64

# Wi-Fi hardware usually operates between -90 and -20 dBm.
_HARDWARE_MAX_DBM = -20
_HARDWARE_MIN_DBM = -90

# Netlink constants used to query the main routing table.
_NLMSG_HDR = struct.Struct("=IHHII")
_RTMSG = struct.Struct("=BBBBBBBBI")
_RTATTR = struct.Struct("=HH")
_NLMSG_ERROR = 2
_NLMSG_DONE = 3
_NLM_F_REQUEST = 0x1
_NLM_F_DUMP = 0x300
_RTM_GETROUTE = 26
_RT_TABLE_MAIN = 254
_RTA_DST = 1
_RTA_OIF = 4
_RTA_GATEWAY = 5
_NETLINK_ROUTE = 0


def _align4(length: int) -> int:
    return (length + 3) & ~3


class NetworkState(str, enum.Enum):
    """Connection state of the tracked interface."""

    DISCONNECTED = "disconnected"
    LINKED = "linked"
    ETHERNET = "ethernet"
    WIFI = "wifi"


class BssStatus(enum.IntEnum):
    """Status of a BSS as reported by nl80211."""

    AUTHENTICATED = 0
    ASSOCIATED = 1
    IBSS_JOINED = 2


def parse_essid(ies: bytes) -> Optional[str]:
    """Extract the escaped SSID from 802.11 information elements, or None."""
    data = bytes(ies)
    header = 2
    pos = 0
    remaining = len(data)
    while remaining > header and data[pos] != 0:
        step = data[pos + 1] + header
        remaining -= step
        pos += step
    if remaining > header and remaining > data[pos + 1] + header:
        length = data[pos + 1]
        raw = data[pos + header : pos + header + length]
        return escape_markup(raw.decode("utf-8", errors="replace"))
    return None


def signal_percent(dbm: int) -> int:
    """Map a signal level in dBm onto the usual hardware range, as a percentage."""
    span = float(_HARDWARE_MAX_DBM - _HARDWARE_MIN_DBM)
    return int(((dbm - _HARDWARE_MIN_DBM) / span) * 100)


def is_associated(status: int) -> bool:
    """Tell whether a BSS status means we are associated, joined or authenticated."""
    return status in (
        BssStatus.ASSOCIATED,
        BssStatus.IBSS_JOINED,
        BssStatus.AUTHENTICATED,
    )


def cidr_from_netmask(netmask: str) -> int:
    """Return the prefix length of a netmask given as an address string."""
    packed = ipaddress.ip_address(netmask).packed
    return sum(bin(byte).count("1") for byte in packed)


def _route_oif(payload: bytes, family: int) -> Tuple[bool, bool, int]:
    has_gateway = False
    has_destination = False
    oif = -1
    zeroes = 4 if family == socket.AF_INET else 16
    pos = 0
    remaining = len(payload)
    while remaining >= _RTATTR.size:
        rta_len, rta_type = _RTATTR.unpack_from(payload, pos)
        if rta_len < _RTATTR.size or rta_len > remaining:
            break
        value = payload[pos + _RTATTR.size : pos + rta_len]
        if rta_type == _RTA_GATEWAY:
            has_gateway = True
        elif rta_type == _RTA_DST:
            if len(value) == zeroes:
                has_destination = not any(value)
        elif rta_type == _RTA_OIF and len(value) >= 4:
            oif = struct.unpack_from("=i", value)[0]
        step = _align4(rta_len)
        pos += step
        remaining -= step
    return has_gateway, has_destination, oif


def find_default_route(
    data: Union[bytes, Iterable[bytes]], family: int = socket.AF_INET, skip_idx: int = -1
) -> int:
    """Find the output interface of the default route in a route dump, or -1.

    ``data`` is one received buffer or an iterable of successive buffers.
    Parsing stops at the end-of-dump message; an error message yields -1.
    """
    chunks = [data] if isinstance(data, (bytes, bytearray, memoryview)) else data
    ifidx = -1
    for chunk in chunks:
        buf = bytes(chunk)
        pos = 0
        remaining = len(buf)
        while remaining >= _NLMSG_HDR.size:
            msg_len, msg_type, _, _, _ = _NLMSG_HDR.unpack_from(buf, pos)
            if msg_len < _NLMSG_HDR.size or msg_len > remaining:
                break
            if msg_type == _NLMSG_DONE:
                return ifidx
            if msg_type == _NLMSG_ERROR:
                return -1
            if ifidx == -1:
                body = buf[pos + _NLMSG_HDR.size : pos + msg_len]
                if len(body) >= _RTMSG.size and _RTMSG.unpack_from(body)[4] == _RT_TABLE_MAIN:
                    gateway, destination, oif = _route_oif(body[_RTMSG.size :], family)
                    if gateway and not destination and oif != -1 and oif != skip_idx:
                        ifidx = oif
                        break
            step = _align4(msg_len)
            pos += step
            remaining -= step
    return ifidx


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _c_div(a: int, b: int) -> int:
    quotient = abs(a) // abs(b)
    return quotient if (a >= 0) == (b > 0) else -quotient


class Network:
    """Tracks one network interface and formats its state for the bar."""

    def __init__(self, config: Optional[Mapping[str, Any]] = None) -> None:
        self._config = dict(config or {})
        self.family = socket.AF_INET6 if self._config.get("family") == "ipv6" else socket.AF_INET
        fmt = self._config.get("format")
        self._default_format = fmt if isinstance(fmt, str) else DEFAULT_FORMAT
        interval = self._config.get("interval")
        self.interval = interval if _is_int(interval) and interval > 0 else DEFAULT_INTERVAL
        tooltip = self._config.get("tooltip")
        self._tooltip = tooltip if isinstance(tooltip, bool) else True
        self._lock = threading.RLock()
        self.ifid = -1
        self.ifname = ""
        self.essid = ""
        self.ipaddr = ""
        self.netmask = ""
        self.cidr = -1
        self.signal_strength_dbm = 0
        self.signal_strength = 0
        self.frequency = 0
        self.current_state = ""
        down = read_netstat(BANDWIDTH_CATEGORY, BANDWIDTH_DOWN_TOTAL_KEY)
        up = read_netstat(BANDWIDTH_CATEGORY, BANDWIDTH_UP_TOTAL_KEY)
        self.bandwidth_down_total = down if down is not None else 0
        self.bandwidth_up_total = up if up is not None else 0

        preferred = self._preferred_iface()
        if preferred != -1:
            self.ifid = preferred
            try:
                self.ifname = socket.if_indextoname(preferred)
            except OSError:
                self.ifname = ""
            self._load_address()

    def _preferred_iface(self, skip_idx: int = -1) -> int:
        pattern = self._config.get("interface")
        if isinstance(pattern, str):
            try:
                return socket.if_nametoindex(pattern)
            except OSError:
                pass
            try:
                addrs = psutil.net_if_addrs()
            except OSError:
                return -1
            for name, entries in addrs.items():
                if any(e.family == self.family for e in entries) and wildcard_match(
                    pattern, name
                ):
                    try:
                        return socket.if_nametoindex(name)
                    except OSError:
                        return -1
            return -1
        ifid = self._external_interface(skip_idx)
        return ifid if ifid > 0 else -1

    def _external_interface(self, skip_idx: int = -1) -> int:
        netlink = getattr(socket, "AF_NETLINK", None)
        if netlink is None:
            return -1
        request = _NLMSG_HDR.pack(
            _NLMSG_HDR.size + _RTMSG.size,
            _RTM_GETROUTE,
            _NLM_F_REQUEST | _NLM_F_DUMP,
            0,
            0,
        ) + _RTMSG.pack(self.family, 0, 0, 0, _RT_TABLE_MAIN, 0, 0, 0, 0)
        try:
            with socket.socket(netlink, socket.SOCK_RAW, _NETLINK_ROUTE) as sock:
                sock.sendto(request, (0, 0))

                def responses() -> Iterator[bytes]:
                    while True:
                        chunk, _, flags, _ = sock.recvmsg(ROUTE_BUFFER_SIZE)
                        if flags & socket.MSG_TRUNC or not chunk:
                            return
                        yield chunk

                return find_default_route(responses(), self.family, skip_idx)
        except OSError:
            return -1

    def _load_address(self) -> None:
        self.cidr = 0
        try:
            entries = psutil.net_if_addrs().get(self.ifname, [])
        except OSError:
            return
        for entry in entries:
            if entry.family == self.family:
                self.set_address(entry.address, entry.netmask or "")
                return

    def state(self) -> NetworkState:
        """Return the connection state derived from the tracked data."""
        if self.ifid == -1:
            return NetworkState.DISCONNECTED
        if not self.ipaddr:
            return NetworkState.LINKED
        if not self.essid:
            return NetworkState.ETHERNET
        return NetworkState.WIFI

    def clear_iface(self) -> None:
        """Forget the address and Wi-Fi data of the interface."""
        with self._lock:
            self.essid = ""
            self.ipaddr = ""
            self.netmask = ""
            self.cidr = 0
            self.signal_strength_dbm = 0
            self.signal_strength = 0
            self.frequency = 0

    def set_address(self, ipaddr: str, netmask: str) -> None:
        """Record the interface address and its netmask."""
        with self._lock:
            self.ipaddr = ipaddr
            self.netmask = netmask
            try:
                self.cidr = cidr_from_netmask(netmask) if netmask else 0
            except ValueError:
                self.cidr = 0

    def apply_bss(
        self,
        status: Optional[int],
        ies: Optional[bytes] = None,
        signal_mbm: Optional[int] = None,
        signal_unspec: Optional[int] = None,
        frequency: Optional[int] = None,
    ) -> bool:
        """Take over a scan result; return False when it is not our link."""
        if status is None or not is_associated(status):
            return False
        with self._lock:
            if ies is not None:
                essid = parse_essid(ies)
                if essid is not None:
                    self.essid = essid
            if signal_mbm is not None:
                self.signal_strength_dbm = _c_div(signal_mbm, 100)
                self.signal_strength = signal_percent(self.signal_strength_dbm)
            if signal_unspec is not None:
                self.signal_strength = signal_unspec
            if frequency is not None:
                self.frequency = frequency
        return True

    def update_bandwidth(
        self, down_octets: Optional[int], up_octets: Optional[int]
    ) -> Tuple[int, int]:
        """Return the octets moved since the last reading and store the new totals."""
        with self._lock:
            down = 0
            if down_octets is not None:
                down = (down_octets - self.bandwidth_down_total) % _U64
                self.bandwidth_down_total = down_octets
            up = 0
            if up_octets is not None:
                up = (up_octets - self.bandwidth_up_total) % _U64
                self.bandwidth_up_total = up_octets
        return down, up

    def _icon(self, percentage: int, state: str) -> str:
        icons = self._config.get("format-icons")
        if isinstance(icons, Mapping):
            icons = icons.get(state, icons.get("default"))
        if isinstance(icons, str):
            return icons
        if isinstance(icons, list) and icons:
            position = percentage * len(icons) // 100
            icon = icons[max(0, min(len(icons) - 1, position))]
            return icon if isinstance(icon, str) else ""
        return ""

    def render(self, bandwidth_down: int = 0, bandwidth_up: int = 0) -> Tuple[str, Optional[str]]:
        """Return the label text and the tooltip (None when tooltips are off)."""
        with self._lock:
            state = self.state().value
            tooltip_format = ""
            state_format = self._config.get("format-" + state)
            if isinstance(state_format, str):
                self._default_format = state_format
            state_tooltip = self._config.get("tooltip-format-" + state)
            if isinstance(state_tooltip, str):
                tooltip_format = state_tooltip
            self.current_state = state
            values = {
                "essid": self.essid,
                "signaldBm": self.signal_strength_dbm,
                "signalStrength": self.signal_strength,
                "ifname": self.ifname,
                "netmask": self.netmask,
                "ipaddr": self.ipaddr,
                "cidr": self.cidr,
                "frequency": self.frequency,
                "icon": self._icon(self.signal_strength, state),
                "bandwidthDownBits": pow_format(bandwidth_down * 8 // self.interval, "b/s"),
                "bandwidthUpBits": pow_format(bandwidth_up * 8 // self.interval, "b/s"),
                "bandwidthDownOctets": pow_format(bandwidth_down // self.interval, "o/s"),
                "bandwidthUpOctets": pow_format(bandwidth_up // self.interval, "o/s"),
            }
            text = self._default_format.format(**values)
            if not self._tooltip:
                return text, None
            if not tooltip_format:
                generic = self._config.get("tooltip-format")
                if isinstance(generic, str):
                    tooltip_format = generic
            tooltip = tooltip_format.format(**values) if tooltip_format else text
        return text, tooltip