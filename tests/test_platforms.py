"""Tests for probe set selection."""
from __future__ import annotations

import pytest

from sysmcp.config import ProbeConfig
from sysmcp.platforms import (
    DarwinProbeSet,
    LinuxProbeSet,
    PlatformProbeSet,
    PosixProbeSet,
    probe_set_for,
)


class TestProbeSetFor:
    """Tests for probe_set_for."""

    @pytest.mark.parametrize(
        "system,expected",
        [
            ("Darwin", DarwinProbeSet),
            ("Linux", LinuxProbeSet),
            ("FreeBSD", PosixProbeSet),
            ("Windows", PlatformProbeSet),
            ("SunOS", PlatformProbeSet),
        ],
    )
    def test_family_selection(self, system, expected):
        """Each OS name maps onto its probe set."""
        assert type(probe_set_for(system)) is expected

    def test_only_darwin_is_rich(self):
        """Detailed probes exist only on macOS."""
        assert probe_set_for("Darwin").rich is True
        assert probe_set_for("Linux").rich is False
        assert probe_set_for("Windows").rich is False

    def test_config_is_passed_through(self):
        """Paths and timeouts come from ProbeConfig."""
        config = ProbeConfig(smctemp_path="/opt/bin/smctemp", sensor_timeout_ms=1234)
        probes = probe_set_for("Darwin", config)
        cpu_temp = probes.cpu_temperatures()[0]
        assert cpu_temp.command == "/opt/bin/smctemp -c"
        assert cpu_temp.timeout_ms == 1234


@pytest.mark.darwin
class TestDarwinProbeSet:
    """macOS probe catalogue."""

    def test_detailed_probes_present(self, darwin_probes):
        """Every detailed collector has probes."""
        assert len(darwin_probes.cpu_sysctl()) == 6
        assert darwin_probes.vm_stat() is not None
        assert darwin_probes.gpu_profile() is not None
        assert len(darwin_probes.netstat()) == 3
        assert len(darwin_probes.wifi()) == 2

    def test_powermetrics_timeout(self, darwin_probes):
        """powermetrics uses its own timeout."""
        assert darwin_probes.power().timeout_ms == ProbeConfig().powermetrics_timeout_ms


@pytest.mark.linux
class TestLinuxProbeSet:
    """Linux probe catalogue."""

    def test_no_detailed_probes(self, linux_probes):
        """Linux has no macOS-only probes."""
        assert linux_probes.cpu_sysctl() == []
        assert linux_probes.vm_stat() is None
        assert linux_probes.nettop() is None

    def test_gpu_controller_probes(self, linux_probes):
        """nvidia-smi first, then lspci."""
        assert [p.name for p in linux_probes.gpu_controllers()] == ["nvidia-smi", "lspci"]

    def test_process_probes(self, linux_probes):
        """ps is available on every POSIX host."""
        assert linux_probes.process_list() is not None
        assert linux_probes.process_table() is not None


class TestGenericProbeSet:
    """Fallback probe set."""

    def test_no_process_probes(self, generic_probes):
        """Generic hosts fall back to psutil for processes."""
        assert generic_probes.process_list() is None
        assert generic_probes.process_table() is None
