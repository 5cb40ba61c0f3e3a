import pytest

from barmods.network_stats import (
    BANDWIDTH_CATEGORY,
    BANDWIDTH_DOWN_TOTAL_KEY,
    BANDWIDTH_UP_TOTAL_KEY,
    pow_format,
    read_netstat,
    wildcard_match,
)

NETSTAT = (
    "TcpExt: SyncookiesSent SyncookiesRecv\n"
    "TcpExt: 5 6\n"
    "IpExt: InNoRoutes InTruncatedPkts InMcastPkts OutMcastPkts InOctets OutOctets\n"
    "IpExt: 0 0 11 12 123456 654321\n"
)


@pytest.fixture
def netstat(tmp_path):
    path = tmp_path / "netstat"
    path.write_text(NETSTAT)
    return str(path)


def test_reads_down_and_up(netstat):
    assert read_netstat(BANDWIDTH_CATEGORY, BANDWIDTH_DOWN_TOTAL_KEY, netstat) == 123456
    assert read_netstat(BANDWIDTH_CATEGORY, BANDWIDTH_UP_TOTAL_KEY, netstat) == 654321


def test_reads_other_category(netstat):
    assert read_netstat("TcpExt", "SyncookiesRecv", netstat) == 6


def test_reads_middle_column(netstat):
    assert read_netstat("IpExt", "OutMcastPkts", netstat) == 12


def test_missing_category(netstat):
    assert read_netstat("UdpLite", "InDatagrams", netstat) is None


def test_missing_key(netstat):
    assert read_netstat("IpExt", "Nothing", netstat) is None


def test_missing_file(tmp_path):
    assert read_netstat("IpExt", "InOctets", str(tmp_path / "absent")) is None


def test_small_values_unscaled():
    assert pow_format(1500, "b/s") == "1500b/s"
    assert pow_format(2000, "o/s") == "2000o/s"
    assert pow_format(0, "b/s") == "0b/s"


def test_kilo_scale():
    assert pow_format(2500, "o/s") == "2.5ko/s"


@pytest.mark.parametrize(
    "value,suffix",
    [(2001, "kb/s"), (2000001, "Mb/s"), (2000000001, "Gb/s")],
)
def test_prefix_thresholds(value, suffix):
    assert pow_format(value, "b/s").endswith(suffix)


@pytest.mark.parametrize(
    "pattern,text,expected",
    [
        ("wlp*", "wlp3s0", True),
        ("wlp*", "enp0s25", False),
        ("*", "", True),
        ("", "", True),
        ("", "eth0", False),
        ("eth?", "eth0", True),
        ("eth?", "eth10", False),
        ("*s0", "wlp3s0", True),
        ("e*n*0", "enp0s25en0", True),
        ("a*b", "acb_", False),
        ("eth0", "eth0", True),
        ("eth0**", "eth0", True),
    ],
)
def test_wildcard_match(pattern, text, expected):
    assert wildcard_match(pattern, text) is expected