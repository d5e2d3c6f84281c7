from __future__ import annotations

import asyncio
import socket
import time
from typing import Any

import psutil

from sysmcp.collectors.base import DomainCollector, extend
from sysmcp.models import (
    DetailedNetworkStatus,
    NetworkInterface,
    NetworkStats,
    NetworkStatus,
)
from sysmcp.parsers.network import (
    parse_ifconfig,
    parse_netstat,
    parse_nettop,
    parse_ping,
    parse_wifi_info,
)


class NetworkCollector(DomainCollector[NetworkStatus, DetailedNetworkStatus]):
    domain = "network"

    def _basic_fallback(self) -> NetworkStatus:
        return NetworkStatus()

    def _sample(self) -> dict[str, Any]:
        """Read interface tables and two counter snapshots (blocking)."""
        addrs = psutil.net_if_addrs()
        # net_if_stats() can fail with OSError in containers without proper network support
        try:
            if_stats = psutil.net_if_stats()
        except OSError:
            self.logger.debug("Failed to get network interface stats (ioctl not supported).")
            if_stats = {}
        first = psutil.net_io_counters(pernic=True)
        started = time.monotonic()
        time.sleep(self.config.sampling.network_interval_s)
        second = psutil.net_io_counters(pernic=True)
        return {
            "addrs": addrs,
            "if_stats": if_stats,
            "first": first,
            "second": second,
            "elapsed": time.monotonic() - started,
        }

    @staticmethod
    def _interface(name: str, addr_list: list[Any], if_stat: Any) -> NetworkInterface:
        entry = NetworkInterface(iface=name)
        for addr in addr_list:
            if addr.family == socket.AF_INET and not entry.ip4:
                entry.ip4 = addr.address
            elif addr.family == socket.AF_INET6 and not entry.ip6:
                entry.ip6 = addr.address.split("%", 1)[0]
            elif getattr(psutil, "AF_LINK", None) == addr.family:
                entry.mac = addr.address
        if if_stat is not None:
            entry.speed = if_stat.speed or 0
            entry.operstate = "up" if if_stat.isup else "down"
        return entry

    async def _collect_basic(self) -> NetworkStatus:
        sample = await asyncio.to_thread(self._sample)
        interfaces = [
            self._interface(name, addr_list, sample["if_stats"].get(name))
            for name, addr_list in sample["addrs"].items()
        ]

        elapsed = sample["elapsed"]
        stats: list[NetworkStats] = []
        for name, counters in sample["second"].items():
            prev = sample["first"].get(name)
            rx_sec = tx_sec = 0.0
            if prev is not None and elapsed > 0:
                rx_sec = round(max(counters.bytes_recv - prev.bytes_recv, 0) / elapsed, 2)
                tx_sec = round(max(counters.bytes_sent - prev.bytes_sent, 0) / elapsed, 2)
            stats.append(
                NetworkStats(
                    iface=name,
                    rx_bytes=int(counters.bytes_recv),
                    tx_bytes=int(counters.bytes_sent),
                    rx_sec=rx_sec,
                    tx_sec=tx_sec,
                )
            )
        return NetworkStatus(interfaces=interfaces, stats=stats)

    async def _collect_detail(self, basic: NetworkStatus) -> DetailedNetworkStatus:
        netstat_probes = self.probe_set.netstat()
        wifi_probes = self.probe_set.wifi()
        results = await self.run(
            [
                *netstat_probes,
                self.probe_set.nettop(),
                self.probe_set.ifconfig(),
                *wifi_probes,
                self.probe_set.ping(),
            ]
        )
        netstat = [r.text for r in results[: len(netstat_probes)]]
        offset = len(netstat_probes)
        nettop, ifconfig = results[offset], results[offset + 1]
        wifi = [r.text for r in results[offset + 2: offset + 2 + len(wifi_probes)]]
        ping = results[-1]

        interface_details = parse_ifconfig(ifconfig.text)
        rates = {s.iface: s for s in basic.stats}
        for detail in interface_details:
            stat = rates.get(detail.iface)
            if stat is not None:
                detail.throughput.current_rx = stat.rx_sec
                detail.throughput.current_tx = stat.tx_sec

        return extend(
            basic,
            DetailedNetworkStatus,
            real_time_stats=parse_nettop(nettop.text, basic.stats),
            connection_analysis=parse_netstat(*netstat),
            wifi_details=parse_wifi_info(*wifi) if wifi else None,
            quality_metrics=parse_ping(ping.text),
            interface_details=interface_details,
        )
