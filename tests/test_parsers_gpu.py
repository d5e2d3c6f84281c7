"""Tests for GPU parsers."""
from __future__ import annotations

import json

import pytest

from sysmcp.models import GpuController
from sysmcp.parsers.gpu import (
    GpuReadout,
    gpu_memory,
    merge_controllers,
    parse_gpu_clients,
    parse_gpu_details,
    parse_gpu_temperature,
    parse_lspci,
    parse_nvidia_smi,
    parse_system_profiler_controllers,
    parse_vram_free_mb,
    split_vram,
)

PROFILE = json.dumps(
    {
        "SPDisplaysDataType": [
            {
                "sppci_model": "Apple M2 Pro",
                "sppci_cores": "19",
                "spdisplays_mtlgpufamilysupport": "spdisplays_metal3",
            }
        ]
    }
)

IOREG = (
    '"VRAM,totalMB"=12288\n'
    '"PerformanceStatistics" = {"Device Utilization %"=12,"GPU UT Engagement %"=37}\n'
)

CLIENTS = """    |   "IOUserClientCreator" = "pid 512, WindowServer"
    |   "CommandQueueCount" = 3
    |   "accumulatedGPUTime" = 98765
    |   "IOUserClientCreator" = "pid 900, Safari"
    |   "CommandQueueCount" = 0
    |   "IOUserClientCreator" = "pid 1200, Terminal"
    |   "AppUsage" = ({"API"="Metal","accumulatedGPUTime"=1234})
"""


class TestVramSplit:
    """Tests for split_vram tiers."""

    @pytest.mark.parametrize(
        "free,expected",
        [
            (15, (818, 15551)),
            (100, (3257, 13027)),
            (1000, (7692, 7692)),
            (None, (500, 0)),
        ],
    )
    def test_tiers(self, free, expected):
        """Less free memory counts a smaller share as actual use."""
        assert split_vram(16384, free) == expected

    def test_vram_free_bytes(self):
        """vramFreeBytes is reported in MB."""
        assert parse_vram_free_mb('"vramFreeBytes"=15728640') == 15
        assert parse_vram_free_mb("") is None


class TestGpuDetails:
    """Tests for parse_gpu_details and gpu_memory."""

    def test_profile_and_ioreg(self):
        """system_profiler identity plus ioreg statistics."""
        readout = parse_gpu_details(PROFILE, IOREG)
        assert readout.chipset == "Apple M2 Pro"
        assert readout.total_cores == 19
        assert readout.metal_support == "spdisplays_metal3"
        assert readout.total_vram_mb == 12288
        assert readout.utilization == 37.0
        assert readout.frequency_mhz == 1000
        assert readout.max_power == 15
        assert readout.is_throttling is False
        assert readout.throttle_reason is None

    def test_vram_from_profile(self):
        """Without an ioreg total the profile VRAM string is used."""
        profile = json.dumps({"SPDisplaysDataType": [{"sppci_model": "X", "spdisplays_vram": "8 GB"}]})
        assert parse_gpu_details(profile, "").total_vram_mb == 8192

    def test_vram_default(self):
        """Neither source gives the 16 GB default."""
        profile = json.dumps({"SPDisplaysDataType": [{"sppci_model": "X"}]})
        readout = parse_gpu_details(profile, "")
        assert readout.total_vram_mb == 16384
        assert readout.max_power == 20

    def test_throttling(self):
        """A non-zero throttle figure marks thermal throttling."""
        readout = parse_gpu_details(PROFILE, IOREG + "Throttle Percent = 12\n")
        assert readout.is_throttling is True
        assert readout.throttle_percent == 12.0
        assert readout.throttle_reason == "Thermal"

    def test_empty_inputs(self):
        """No data gives the default readout."""
        assert parse_gpu_details("", "") == GpuReadout()

    def test_invalid_json(self):
        """Broken profile JSON is ignored."""
        readout = parse_gpu_details("{not json", IOREG)
        assert readout.chipset == "Unknown"
        assert readout.total_vram_mb == 12288

    def test_memory_prefers_vram_probe(self):
        """The dedicated vramFreeBytes probe wins."""
        memory = gpu_memory(GpuReadout(total_vram_mb=16384), '"vramFreeBytes"=1048576000')
        assert memory.total_mb == 16384
        assert memory.free_mb == 1000
        assert memory.used_mb == 7692
        assert memory.cached_mb == 7692
        assert memory.utilization_percent == 47
        assert memory.total_utilization_percent == 94
        assert memory.bandwidth == 200

    def test_memory_fallback(self):
        """Without a free figure, 500 MB is assumed used."""
        memory = gpu_memory(GpuReadout(), "")
        assert memory.total_mb == 16384
        assert memory.used_mb == 500
        assert memory.free_mb == 15884
        assert memory.cached_mb == 0


class TestGpuTelemetry:
    """Temperature and client parsing."""

    def test_temperature(self):
        """smctemp -g output."""
        assert parse_gpu_temperature("41.3\n") == 41.3
        assert parse_gpu_temperature("") == 0.0

    def test_clients(self):
        """Idle clients are dropped and the rest sorted by GPU time."""
        clients = parse_gpu_clients(CLIENTS)
        assert [(c.pid, c.name) for c in clients] == [(512, "WindowServer"), (1200, "Terminal")]
        assert clients[0].command_queue_count == 3
        assert clients[0].accumulated_gpu_time == 98765
        assert clients[1].accumulated_gpu_time == 1234
        assert clients[1].api == "Metal"

    def test_no_clients(self):
        """No output, no clients."""
        assert parse_gpu_clients("") == []


class TestControllerParsers:
    """nvidia-smi, lspci and system_profiler controllers."""

    def test_nvidia_smi(self):
        """CSV rows become controllers."""
        (controller,) = parse_nvidia_smi("NVIDIA GeForce RTX 4090, 24564, 1024, 35, 52\n")
        assert controller.model == "NVIDIA GeForce RTX 4090"
        assert controller.vendor == "NVIDIA"
        assert controller.vram == 23.99
        assert controller.memory_total == 24564.0
        assert controller.memory_used == 1024.0
        assert controller.utilization_gpu == 35.0
        assert controller.temperature_gpu == 52.0

    def test_nvidia_smi_not_available_fields(self):
        """[N/A] fields are absent."""
        (controller,) = parse_nvidia_smi("Tesla T4, 15360, 0, [N/A], [N/A]")
        assert controller.utilization_gpu is None
        assert controller.temperature_gpu is None

    def test_lspci(self):
        """Only display-class devices are reported."""
        output = (
            '00:02.0 "VGA compatible controller" "Intel Corporation" '
            '"Alder Lake-P GT2 [Iris Xe Graphics]" -r0c "Dell" "Device 0b19"\n'
            '00:1f.3 "Audio device" "Intel Corporation" "Alder Lake PCH-P HD Audio" "Dell" "Device"\n'
        )
        (controller,) = parse_lspci(output)
        assert controller.vendor == "Intel Corporation"
        assert controller.model == "Alder Lake-P GT2 [Iris Xe Graphics]"

    def test_system_profiler_controllers(self):
        """Vendor prefix is stripped and VRAM converted to GB."""
        output = json.dumps(
            {
                "SPDisplaysDataType": [
                    {
                        "sppci_model": "AMD Radeon Pro 5500M",
                        "spdisplays_vendor": "sppci_vendor_amd",
                        "spdisplays_vram": "4 GB",
                    }
                ]
            }
        )
        (controller,) = parse_system_profiler_controllers(output)
        assert controller.model == "AMD Radeon Pro 5500M"
        assert controller.vendor == "amd"
        assert controller.vram == 4.0

    def test_merge_skips_known_vendors(self):
        """lspci entries for a vendor nvidia-smi reported are dropped."""
        primary = [GpuController(model="RTX", vendor="NVIDIA")]
        secondary = [
            GpuController(model="GA102", vendor="NVIDIA Corporation"),
            GpuController(model="Iris", vendor="Intel Corporation"),
        ]
        merged = merge_controllers(primary, secondary)
        assert [c.model for c in merged] == ["RTX", "Iris"]
