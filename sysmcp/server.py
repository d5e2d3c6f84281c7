"""FastMCP registration of the tool boundary."""
from __future__ import annotations

from typing import Literal

from mcp.server.fastmcp import FastMCP
from mcp.server.fastmcp.exceptions import ToolError

from sysmcp.config import ServerConfig
from sysmcp.tools import ToolBoundary


def build_server(boundary: ToolBoundary, config: ServerConfig | None = None) -> FastMCP:
    config = config or ServerConfig()
    app = FastMCP(config.name)

    async def invoke(name: str, **arguments: object) -> str:
        result = await boundary.call(name, arguments)
        if not result.ok:
            raise ToolError(result.to_text())
        return result.to_text()

    @app.tool()
    async def get_cpu_status() -> str:
        """CPU usage, core count, clock speed, temperature and load average."""
        return await invoke("get_cpu_status")

    @app.tool()
    async def get_memory_status() -> str:
        """Memory usage, available memory and swap."""
        return await invoke("get_memory_status")

    @app.tool()
    async def get_gpu_status() -> str:
        """GPU controllers with VRAM, utilization and temperature where reported."""
        return await invoke("get_gpu_status")

    @app.tool()
    async def get_network_status() -> str:
        """Network interfaces, byte counters and current throughput."""
        return await invoke("get_network_status")

    @app.tool()
    async def get_disk_status() -> str:
        """Mounted filesystems with usage and disk IO counters."""
        return await invoke("get_disk_status")

    @app.tool()
    async def get_system_overview(include_analysis: bool = True) -> str:
        """Whole-system snapshot, optionally with a bottleneck analysis and score."""
        return await invoke("get_system_overview", include_analysis=include_analysis)

    @app.tool()
    async def get_process_list(
        sort_by: Literal["cpu", "memory", "name"] = "cpu", limit: int = 10
    ) -> str:
        """Running processes with CPU and memory usage, sorted and truncated."""
        return await invoke("get_process_list", sort_by=sort_by, limit=limit)

    @app.tool()
    async def get_detailed_cpu_status() -> str:
        """macOS: performance/efficiency cores, temperatures, power and frequencies."""
        return await invoke("get_detailed_cpu_status")

    @app.tool()
    async def get_detailed_memory_status() -> str:
        """macOS: app, wired, compressed and cached memory plus memory pressure."""
        return await invoke("get_detailed_memory_status")

    @app.tool()
    async def get_detailed_gpu_status() -> str:
        """Apple Silicon: GPU utilization, VRAM, thermal, power, clients and throttling."""
        return await invoke("get_detailed_gpu_status")

    @app.tool()
    async def get_detailed_network_status() -> str:
        """macOS: live bandwidth, connections, Wi-Fi details, link quality and interfaces."""
        return await invoke("get_detailed_network_status")

    @app.tool()
    async def get_detailed_process_status() -> str:
        """Per-process resources, services, security and performance impact."""
        return await invoke("get_detailed_process_status")

    return app
