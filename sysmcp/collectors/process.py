from __future__ import annotations

import asyncio
import time

import psutil

from sysmcp.collectors.base import DomainCollector
from sysmcp.models import DetailedProcessStatus, ProcessInfo
from sysmcp.parsers.process import (
    basic_process_status,
    detailed_process_status,
    parse_ps_list,
    sort_processes,
)

# Entries passed to the minimal detailed view when the ps table is unavailable.
DEGRADED_PROCESS_COUNT = 20


def _now_ms() -> int:
    return int(time.time() * 1000)


class ProcessCollector(DomainCollector[list[ProcessInfo], DetailedProcessStatus]):
    """Process list from ``ps`` (psutil where there is none) and the ps-table analysis."""

    domain = "process"
    detail_needs_basic = False

    @property
    def supports_detail(self) -> bool:
        return self.probe_set.process_table() is not None

    def _iter_processes(self) -> list[ProcessInfo]:
        processes: list[ProcessInfo] = []
        attrs = ["pid", "name", "cpu_percent", "memory_info", "memory_percent"]
        for proc in psutil.process_iter(attrs=attrs, ad_value=None):
            info = proc.info
            memory_info = info.get("memory_info")
            processes.append(
                ProcessInfo(
                    pid=info["pid"],
                    name=info.get("name") or "",
                    cpu=round(info.get("cpu_percent") or 0.0, 2),
                    memory=round(memory_info.rss / (1024 * 1024), 2) if memory_info else 0.0,
                    memory_percent=round(info.get("memory_percent") or 0.0, 2),
                )
            )
        return processes

    async def _collect_basic(self) -> list[ProcessInfo]:
        probe = self.probe_set.process_list()
        if probe is not None:
            result = await self.run_one(probe)
            processes = parse_ps_list(result.text)
            if processes:
                return processes
            self.logger.debug("ps list unavailable, falling back to psutil.")
        return await asyncio.to_thread(self._iter_processes)

    async def process_list(self, sort_by: str = "cpu", limit: int = 10) -> list[ProcessInfo]:
        return sort_processes(await self.basic(), sort_by, limit)

    def _basic_fallback(self) -> list[ProcessInfo]:
        return []

    def _degraded(self, basic: list[ProcessInfo]) -> DetailedProcessStatus:
        return basic_process_status(
            sort_processes(basic, "cpu", DEGRADED_PROCESS_COUNT), _now_ms()
        )

    async def _collect_detail(self, basic: list[ProcessInfo] | None) -> DetailedProcessStatus:
        table, fds = await self.run([self.probe_set.process_table(), self.probe_set.fd_counts()])
        if not table.ok:
            raise RuntimeError(f"ps table unavailable: {table.error}")
        status = detailed_process_status(table.text, fds.text, _now_ms())
        self.logger.info(
            "Analyzed %d processes (%d running).",
            status.summary.total_processes,
            status.summary.running_processes,
        )
        return status
