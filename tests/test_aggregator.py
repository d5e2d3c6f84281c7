"""Tests for the overview aggregator and performance analysis."""
from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock

import pytest

from sysmcp.aggregator import SystemMonitor, analyze, performance_tier
from sysmcp.exceptions import CollectionError
from sysmcp.models import (
    CpuStatus,
    DiskEntry,
    DiskStatus,
    GpuController,
    GpuStatus,
    MemoryStatus,
    NetworkStatus,
    ProcessInfo,
    SystemOverview,
)


@pytest.fixture
def monitor(linux_probes, app_config, fake_runner):
    """SystemMonitor whose domain collectors are stubbed out."""
    monitor = SystemMonitor(app_config, linux_probes, fake_runner())
    monitor.cpu.basic = AsyncMock(return_value=CpuStatus(usage=85.0, cores=8))
    monitor.memory.basic = AsyncMock(return_value=MemoryStatus(total=16.0, usage_percent=92.0))
    monitor.gpu.basic = AsyncMock(return_value=GpuStatus())
    monitor.network.basic = AsyncMock(return_value=NetworkStatus())
    monitor.disk.basic = AsyncMock(
        return_value=DiskStatus(disks=[DiskEntry(device="/dev/disk1", usage_percent=97.0)])
    )
    monitor.processes.process_list = AsyncMock(
        return_value=[ProcessInfo(pid=1, name="busy", cpu=35.0)]
    )
    return monitor


class TestPerformanceTier:
    """Tests for score tiers."""

    @pytest.mark.parametrize(
        "score,tier",
        [
            (100, "excellent"),
            (90, "excellent"),
            (89, "good"),
            (75, "good"),
            (74, "moderate"),
            (60, "moderate"),
            (59, "poor"),
            (40, "poor"),
            (39, "critical"),
            (-10, "critical"),
        ],
    )
    def test_boundaries(self, score, tier):
        """Lower bounds are inclusive."""
        assert performance_tier(score) == tier


class TestAnalyze:
    """Tests for analyze."""

    def test_idle_system(self):
        """No penalties on an idle host."""
        analysis = analyze(SystemOverview(), timestamp=123)
        assert analysis.score == 100
        assert analysis.performance == "excellent"
        assert analysis.bottlenecks == []
        assert analysis.recommendations == []
        assert analysis.timestamp == 123

    def test_overloaded_system(self):
        """CPU, memory and a nearly full disk stack their penalties."""
        overview = SystemOverview(
            cpu=CpuStatus(usage=85.0),
            memory=MemoryStatus(usage_percent=92.0),
            disk=DiskStatus(disks=[DiskEntry(device="/dev/disk1", usage_percent=97.0)]),
        )
        analysis = analyze(overview, timestamp=0)
        assert analysis.score == 35
        assert analysis.performance == "critical"
        assert analysis.bottlenecks == [
            "High CPU usage detected",
            "Critical memory usage",
            "Disk /dev/disk1 almost full",
        ]
        assert len(analysis.recommendations) == 3

    def test_moderate_thresholds(self):
        """Warning bands deduct less and add recommendations only."""
        overview = SystemOverview(
            cpu=CpuStatus(usage=65.0),
            memory=MemoryStatus(usage_percent=80.0),
            disk=DiskStatus(disks=[DiskEntry(device="/dev/sda1", usage_percent=90.0)]),
        )
        analysis = analyze(overview, timestamp=0)
        assert analysis.score == 65
        assert analysis.performance == "moderate"
        assert analysis.bottlenecks == ["High memory usage"]
        assert "Monitoring CPU usage is recommended." in analysis.recommendations
        assert "Check free space on disk /dev/sda1." in analysis.recommendations

    def test_thresholds_are_exclusive(self):
        """Exactly 80% CPU only reaches the warning band."""
        analysis = analyze(SystemOverview(cpu=CpuStatus(usage=80.0)), timestamp=0)
        assert analysis.score == 90
        assert analysis.bottlenecks == []

    def test_gpu_uses_first_controller(self):
        """Only the first controller's utilization counts."""
        overview = SystemOverview(
            gpu=GpuStatus(
                controllers=[
                    GpuController(model="A", utilization_gpu=95.0),
                    GpuController(model="B", utilization_gpu=10.0),
                ]
            )
        )
        analysis = analyze(overview, timestamp=0)
        assert analysis.score == 85
        assert analysis.bottlenecks == ["High GPU usage"]

    def test_busy_processes_named(self):
        """Processes above 20% CPU are listed without a penalty."""
        overview = SystemOverview(
            processes=[
                ProcessInfo(name="render", cpu=40.0),
                ProcessInfo(name="idle", cpu=1.0),
                ProcessInfo(name="encode", cpu=25.0),
            ]
        )
        analysis = analyze(overview, timestamp=0)
        assert analysis.score == 100
        assert analysis.recommendations == ["High CPU processes: render, encode"]


class TestSystemMonitor:
    """Tests for collect_overview."""

    def test_overview_with_analysis(self, monitor):
        """All domains plus the analysis."""
        overview = asyncio.run(monitor.collect_overview())
        assert overview.cpu.usage == 85.0
        assert overview.processes[0].name == "busy"
        assert overview.analysis.score == 35
        assert overview.analysis.timestamp == overview.timestamp
        monitor.processes.process_list.assert_awaited_once_with("cpu", 10)

    def test_overview_without_analysis(self, monitor):
        """Analysis can be skipped."""
        overview = asyncio.run(monitor.collect_overview(include_analysis=False))
        assert overview.analysis is None

    def test_domain_failure_fails_overview(self, monitor):
        """Any basic failure propagates."""
        monitor.disk.basic = AsyncMock(side_effect=CollectionError("disk", "boom"))
        with pytest.raises(CollectionError, match="disk collection failed: boom"):
            asyncio.run(monitor.collect_overview())

    def test_collectors_share_probe_set(self, monitor, linux_probes):
        """Every collector uses the monitor's probe set."""
        assert monitor.cpu.probe_set is linux_probes
        assert monitor.processes.probe_set is linux_probes
