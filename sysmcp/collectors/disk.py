from __future__ import annotations

import asyncio

import psutil

from sysmcp.collectors.base import DomainCollector
from sysmcp.models import DiskEntry, DiskIo, DiskStatus
from sysmcp.parsers.common import bytes_to_gb


class DiskCollector(DomainCollector[DiskStatus, DiskStatus]):
    """Mounted filesystems and cumulative IO counters. No detailed level."""

    domain = "disk"

    @property
    def supports_detail(self) -> bool:
        return False

    def _sample(self) -> DiskStatus:
        disks: list[DiskEntry] = []
        for part in psutil.disk_partitions(all=False):
            try:
                usage = psutil.disk_usage(part.mountpoint)
            except OSError:
                self.logger.debug("Skipping filesystem at %s (unreadable).", part.mountpoint)
                continue
            disks.append(
                DiskEntry(
                    device=part.device,
                    type=part.fstype,
                    size=bytes_to_gb(usage.total),
                    used=bytes_to_gb(usage.used),
                    available=bytes_to_gb(usage.free),
                    usage_percent=round(usage.percent, 2),
                    mount=part.mountpoint,
                )
            )

        io = DiskIo()
        try:
            counters = psutil.disk_io_counters(perdisk=False)
        except (OSError, RuntimeError):
            self.logger.debug("Disk IO counters unavailable.")
            counters = None
        if counters is not None:
            io = DiskIo(
                reads=int(counters.read_count),
                writes=int(counters.write_count),
                read_bytes=int(counters.read_bytes),
                write_bytes=int(counters.write_bytes),
            )
        return DiskStatus(disks=disks, io=io)

    async def _collect_basic(self) -> DiskStatus:
        return await asyncio.to_thread(self._sample)
