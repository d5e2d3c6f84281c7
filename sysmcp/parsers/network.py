"""Parsers for netstat, nettop, ifconfig, airport and ping output."""
from __future__ import annotations

import re
import time
from typing import Sequence

from sysmcp.models import (
    Bandwidth,
    BandwidthPeaks,
    BandwidthSample,
    Connection,
    ConnectionAnalysis,
    InterfaceDetail,
    NetworkStats,
    PacketCounters,
    QualityMetrics,
    RealTimeStats,
    Throughput,
    WifiDetails,
)
from sysmcp.parsers.common import channel_to_frequency, leading_int, signal_quality

TOP_CONNECTION_LIMIT = 10

_TCP_STATS_RE = re.compile(r"tcp.*?(\d+).*?packet", re.IGNORECASE | re.DOTALL)
_UDP_STATS_RE = re.compile(r"udp.*?(\d+).*?packet", re.IGNORECASE | re.DOTALL)
_NETTOP_PAIR_RE = re.compile(r"([\d.]+\s*[KMGT]?iB).*?([\d.]+\s*[KMGT]?iB)")
_BYTE_VALUE_RE = re.compile(r"([\d.]+)\s*([KMGT]?)iB")
_IFACE_SPLIT_RE = re.compile(r"^([a-z0-9]+):", re.MULTILINE)
_MTU_RE = re.compile(r"mtu (\d+)")
_RX_PACKETS_RE = re.compile(r"RX packets:(\d+)")
_TX_PACKETS_RE = re.compile(r"TX packets:(\d+)")
_RX_ERRORS_RE = re.compile(r"RX.*?errors:(\d+)")
_TX_ERRORS_RE = re.compile(r"TX.*?errors:(\d+)")
_LOSS_RE = re.compile(r"(\d+(?:\.\d+)?)% packet loss")
_RTT_RE = re.compile(
    r"min/avg/max/(?:stddev|mdev) = ([\d.]+)/([\d.]+)/([\d.]+)/([\d.]+)"
)

_BYTE_UNITS = {
    "": 1,
    "K": 1024,
    "M": 1024 ** 2,
    "G": 1024 ** 3,
    "T": 1024 ** 4,
}

_IFACE_TYPES = (
    ("en", "ethernet"),
    ("lo", "loopback"),
    ("utun", "tunnel"),
    ("awdl", "airdrop"),
)


def parse_netstat(
    connections_output: str, stats_output: str = "", routes_output: str = ""
) -> ConnectionAnalysis:
    """Connection counts from ``netstat -an`` plus ``netstat -s`` totals.

    The routing table is collected alongside but not summarized.
    """
    analysis = ConnectionAnalysis()
    for line in (connections_output or "").split("\n"):
        if "tcp" not in line and "udp" not in line:
            continue
        analysis.active_connections += 1
        if "ESTABLISHED" in line:
            analysis.established_connections += 1
        if "LISTEN" in line:
            analysis.listening_ports += 1

        parts = line.split()
        if len(parts) < 6:
            continue
        remote = parts[4]
        if remote and "*" not in remote and len(analysis.top_connections) < TOP_CONNECTION_LIMIT:
            analysis.top_connections.append(
                Connection(
                    local_address=parts[3],
                    remote_address=remote,
                    state=parts[5],
                    protocol=parts[0],
                )
            )

    if stats_output:
        tcp = _TCP_STATS_RE.search(stats_output)
        udp = _UDP_STATS_RE.search(stats_output)
        if tcp:
            analysis.protocol_stats.tcp.connections = int(tcp.group(1))
        if udp:
            analysis.protocol_stats.udp.connections = int(udp.group(1))
    return analysis


def parse_byte_value(value: str) -> float:
    """``"1.5 MiB"`` -> bytes."""
    match = _BYTE_VALUE_RE.search(value or "")
    if not match:
        return 0.0
    try:
        number = float(match.group(1))
    except ValueError:
        return 0.0
    return number * _BYTE_UNITS[match.group(2)]


def find_active_interface(stats: Sequence[NetworkStats]) -> str:
    """Interface with the most combined traffic."""
    active = "unknown"
    max_traffic = 0
    for stat in stats:
        traffic = (stat.rx_bytes or 0) + (stat.tx_bytes or 0)
        if traffic > max_traffic:
            max_traffic = traffic
            active = stat.iface
    return active


def parse_nettop(
    output: str, stats: Sequence[NetworkStats] = (), now_ms: int | None = None
) -> RealTimeStats:
    total_down = 0.0
    total_up = 0.0
    for line in (output or "").split("\n"):
        pair = _NETTOP_PAIR_RE.search(line)
        if pair:
            total_down += parse_byte_value(pair.group(1))
            total_up += parse_byte_value(pair.group(2))

    download = round(total_down * 8 / (1024 * 1024), 2)
    upload = round(total_up * 8 / (1024 * 1024), 2)
    total = round(download + upload, 2)
    timestamp = now_ms if now_ms is not None else int(time.time() * 1000)
    return RealTimeStats(
        active_interface=find_active_interface(stats),
        current_bandwidth=Bandwidth(download=download, upload=upload, total=total),
        history=[
            BandwidthSample(
                timestamp=timestamp,
                download_mbps=download,
                upload_mbps=upload,
                total_mbps=total,
            )
        ],
        peaks=BandwidthPeaks(
            max_download=download,
            max_upload=upload,
            avg_download=download,
            avg_upload=upload,
        ),
    )


def _iface_type(name: str) -> str:
    for prefix, kind in _IFACE_TYPES:
        if name.startswith(prefix):
            return kind
    return "unknown"


def _match_int(pattern: re.Pattern[str], text: str) -> int:
    match = pattern.search(text)
    return int(match.group(1)) if match else 0


def parse_ifconfig(output: str) -> list[InterfaceDetail]:
    details: list[InterfaceDetail] = []
    if not output:
        return details
    chunks = _IFACE_SPLIT_RE.split(output)
    # re.split with one group yields [preamble, name, body, name, body, ...]
    for index in range(1, len(chunks), 2):
        name = chunks[index]
        body = chunks[index + 1] if index + 1 < len(chunks) else ""
        if not name or not body:
            continue
        mtu = _MTU_RE.search(body)
        details.append(
            InterfaceDetail(
                iface=name,
                type=_iface_type(name),
                mtu=int(mtu.group(1)) if mtu else 1500,
                duplex="full",
                carrier="status: active" in body,
                packets=PacketCounters(
                    rx_packets=_match_int(_RX_PACKETS_RE, body),
                    tx_packets=_match_int(_TX_PACKETS_RE, body),
                    rx_errors=_match_int(_RX_ERRORS_RE, body),
                    tx_errors=_match_int(_TX_ERRORS_RE, body),
                ),
                throughput=Throughput(),
            )
        )
    return details


def parse_wifi_info(airport_output: str, networksetup_output: str = "") -> WifiDetails | None:
    """``airport -I`` key/value report; ``None`` when there is no Wi-Fi data."""
    if not (airport_output or "").strip():
        return None
    info: dict[str, str] = {}
    for line in airport_output.split("\n"):
        key, sep, value = line.strip().partition(":")
        if key and sep:
            info[key.strip()] = value.strip()

    ssid = info.get("SSID")
    if not ssid and networksetup_output:
        # "Current Wi-Fi Network: <ssid>"
        _, sep, name = networksetup_output.strip().partition(":")
        ssid = name.strip() if sep else None

    rssi = leading_int(info.get("agrCtlRSSI") or info.get("RSSI"))
    channel = leading_int(info.get("channel"))
    return WifiDetails(
        ssid=ssid or "Unknown",
        signal_strength=rssi,
        signal_quality=signal_quality(rssi),
        channel=channel,
        frequency=channel_to_frequency(channel),
        link_speed=leading_int(info.get("maxRate")),
        security=info.get("security_cc") or info.get("link auth") or "Unknown",
        transmit_rate=leading_int(info.get("lastTxRate")),
        receive_rate=leading_int(info.get("maxRate")),
    )


def parse_ping(output: str) -> QualityMetrics:
    """Latency, jitter (stddev) and loss from a ``ping -c`` summary."""
    if not output or "ping failed" in output:
        return QualityMetrics()
    latency = 0.0
    jitter = 0.0
    packet_loss = 0.0
    for line in output.split("\n"):
        loss = _LOSS_RE.search(line)
        if loss:
            packet_loss = float(loss.group(1))
        rtt = _RTT_RE.search(line)
        if rtt:
            latency = float(rtt.group(2))
            jitter = float(rtt.group(4))
    return QualityMetrics(
        latency=round(latency, 2),
        jitter=round(jitter, 2),
        packet_loss=packet_loss,
        bandwidth=0.0,
        dns_resolution_time=0.0,
    )
