"""System-wide overview and the derived performance analysis."""
from __future__ import annotations

import asyncio
import logging
import time

from sysmcp.collectors import (
    CpuCollector,
    DiskCollector,
    GpuCollector,
    MemoryCollector,
    NetworkCollector,
    ProcessCollector,
)
from sysmcp.config import AppConfig
from sysmcp.logging_utils import log_duration
from sysmcp.models import Analysis, SystemOverview
from sysmcp.platforms import PlatformProbeSet, probe_set_for
from sysmcp.probes import Runner

OVERVIEW_PROCESS_COUNT = 10
BUSY_PROCESS_CPU = 20


def _now_ms() -> int:
    return int(time.time() * 1000)


def performance_tier(score: int) -> str:
    if score >= 90:
        return "excellent"
    if score >= 75:
        return "good"
    if score >= 60:
        return "moderate"
    if score >= 40:
        return "poor"
    return "critical"


def analyze(overview: SystemOverview, timestamp: int | None = None) -> Analysis:
    """Score an overview from 100 down by fixed per-condition penalties."""
    score = 100
    bottlenecks: list[str] = []
    recommendations: list[str] = []

    cpu = overview.cpu.usage
    if cpu > 80:
        score -= 20
        bottlenecks.append("High CPU usage detected")
        recommendations.append("CPU usage is high. Check background processes.")
    elif cpu > 60:
        score -= 10
        recommendations.append("Monitoring CPU usage is recommended.")

    memory = overview.memory.usage_percent
    if memory > 90:
        score -= 25
        bottlenecks.append("Critical memory usage")
        recommendations.append("Memory usage is very high. Close unnecessary applications.")
    elif memory > 75:
        score -= 15
        bottlenecks.append("High memory usage")
        recommendations.append("Memory usage is high. Consider freeing memory.")

    controllers = overview.gpu.controllers
    if controllers and (controllers[0].utilization_gpu or 0) > 90:
        score -= 15
        bottlenecks.append("High GPU usage")
        recommendations.append("GPU usage is high. Check graphics-intensive workloads.")

    for disk in overview.disk.disks:
        if disk.usage_percent > 95:
            score -= 20
            bottlenecks.append(f"Disk {disk.device} almost full")
            recommendations.append(f"Disk {disk.device} is running out of space. Clean up files.")
        elif disk.usage_percent > 85:
            score -= 10
            recommendations.append(f"Check free space on disk {disk.device}.")

    busy = [p.name for p in overview.processes if p.cpu > BUSY_PROCESS_CPU]
    if busy:
        recommendations.append(f"High CPU processes: {', '.join(busy)}")

    return Analysis(
        performance=performance_tier(score),
        score=score,
        bottlenecks=bottlenecks,
        recommendations=recommendations,
        timestamp=timestamp if timestamp is not None else _now_ms(),
    )


class SystemMonitor:
    """Owns one collector per domain, all sharing a probe set and runner."""

    def __init__(
        self,
        config: AppConfig | None = None,
        probe_set: PlatformProbeSet | None = None,
        runner: Runner | None = None,
    ) -> None:
        self.config = config or AppConfig()
        self.probe_set = probe_set or probe_set_for(config=self.config.probes)
        self.logger = logging.getLogger(self.__class__.__name__)
        shared = {"probe_set": self.probe_set, "runner": runner, "config": self.config}
        self.cpu = CpuCollector(**shared)
        self.memory = MemoryCollector(**shared)
        self.gpu = GpuCollector(**shared)
        self.network = NetworkCollector(**shared)
        self.disk = DiskCollector(**shared)
        self.processes = ProcessCollector(**shared)

    async def collect_overview(self, include_analysis: bool = True) -> SystemOverview:
        """Basic status of every domain; any domain failure fails the overview."""
        self.logger.info("Collecting system overview.")
        with log_duration(self.logger, "system overview"):
            cpu, memory, gpu, network, disk, processes = await asyncio.gather(
                self.cpu.basic(),
                self.memory.basic(),
                self.gpu.basic(),
                self.network.basic(),
                self.disk.basic(),
                self.processes.process_list("cpu", OVERVIEW_PROCESS_COUNT),
            )
        timestamp = _now_ms()
        overview = SystemOverview(
            timestamp=timestamp,
            cpu=cpu,
            memory=memory,
            gpu=gpu,
            network=network,
            disk=disk,
            processes=processes,
        )
        if include_analysis:
            overview.analysis = analyze(overview, timestamp)
            self.logger.info(
                "System performance %s (score %d).",
                overview.analysis.performance,
                overview.analysis.score,
            )
        return overview
