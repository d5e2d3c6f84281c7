"""Operation table mapping tool names onto monitor calls."""
from __future__ import annotations

from dataclasses import dataclass
import json
import logging
from typing import Any, Awaitable, Callable

from sysmcp.aggregator import SystemMonitor
from sysmcp.models import to_payload

Operation = Callable[..., Awaitable[tuple[str, Any]]]


@dataclass(frozen=True)
class ToolResult:
    ok: bool
    title: str = ""
    payload: Any = None
    error: str | None = None

    def to_text(self) -> str:
        if not self.ok:
            return f"Error: {self.error}"
        return f"## {self.title}\n\n{json.dumps(self.payload, indent=2)}"


class ToolBoundary:
    """Invoke a named operation and wrap the outcome in a :class:`ToolResult`.

    Nothing raised by the collectors escapes :meth:`call`.
    """

    def __init__(self, monitor: SystemMonitor) -> None:
        self.monitor = monitor
        self.logger = logging.getLogger(self.__class__.__name__)
        self.operations: dict[str, Operation] = {
            "get_cpu_status": self.get_cpu_status,
            "get_memory_status": self.get_memory_status,
            "get_gpu_status": self.get_gpu_status,
            "get_network_status": self.get_network_status,
            "get_disk_status": self.get_disk_status,
            "get_system_overview": self.get_system_overview,
            "get_process_list": self.get_process_list,
            "get_detailed_cpu_status": self.get_detailed_cpu_status,
            "get_detailed_memory_status": self.get_detailed_memory_status,
            "get_detailed_gpu_status": self.get_detailed_gpu_status,
            "get_detailed_network_status": self.get_detailed_network_status,
            "get_detailed_process_status": self.get_detailed_process_status,
        }

    @property
    def names(self) -> list[str]:
        return list(self.operations)

    async def call(self, name: str, arguments: dict[str, Any] | None = None) -> ToolResult:
        operation = self.operations.get(name)
        if operation is None:
            return ToolResult(ok=False, error=f"Unknown tool: {name}")
        self.logger.info("Tool call: %s %s", name, arguments or {})
        try:
            title, record = await operation(**(arguments or {}))
        except Exception as exc:
            self.logger.error("Tool %s failed: %s", name, exc)
            return ToolResult(ok=False, error=str(exc))
        return ToolResult(ok=True, title=title, payload=to_payload(record))

    async def get_cpu_status(self) -> tuple[str, Any]:
        return "CPU Status", await self.monitor.cpu.basic()

    async def get_memory_status(self) -> tuple[str, Any]:
        return "Memory Status", await self.monitor.memory.basic()

    async def get_gpu_status(self) -> tuple[str, Any]:
        return "GPU Status", await self.monitor.gpu.basic()

    async def get_network_status(self) -> tuple[str, Any]:
        return "Network Status", await self.monitor.network.basic()

    async def get_disk_status(self) -> tuple[str, Any]:
        return "Disk Status", await self.monitor.disk.basic()

    async def get_system_overview(self, include_analysis: bool = True) -> tuple[str, Any]:
        overview = await self.monitor.collect_overview(bool(include_analysis))
        if overview.analysis is not None:
            self.logger.info(
                "Overview analysis: %d bottleneck(s), score %d",
                len(overview.analysis.bottlenecks),
                overview.analysis.score,
            )
        return "System Overview", overview

    async def get_process_list(self, sort_by: str = "cpu", limit: int = 10) -> tuple[str, Any]:
        limit = int(limit)
        processes = await self.monitor.processes.process_list(sort_by, limit)
        return f"Process List (top {limit}, by {sort_by})", processes

    async def get_detailed_cpu_status(self) -> tuple[str, Any]:
        return "Detailed CPU Status", await self.monitor.cpu.detailed()

    async def get_detailed_memory_status(self) -> tuple[str, Any]:
        return "Detailed Memory Status", await self.monitor.memory.detailed()

    async def get_detailed_gpu_status(self) -> tuple[str, Any]:
        return "Detailed GPU Status", await self.monitor.gpu.detailed()

    async def get_detailed_network_status(self) -> tuple[str, Any]:
        return "Detailed Network Status", await self.monitor.network.detailed()

    async def get_detailed_process_status(self) -> tuple[str, Any]:
        return "Detailed Process Analysis", await self.monitor.processes.detailed()
