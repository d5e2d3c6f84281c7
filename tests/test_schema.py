"""Tests for overview payload schema validation."""
from __future__ import annotations

from sysmcp.models import (
    Analysis,
    CpuStatus,
    DiskEntry,
    DiskStatus,
    GpuController,
    GpuStatus,
    NetworkInterface,
    NetworkStats,
    NetworkStatus,
    ProcessInfo,
    SystemOverview,
    to_payload,
)
from sysmcp.schema import get_validator, validate_payload


def overview_payload():
    """A realistic overview serialized the way the tool returns it."""
    overview = SystemOverview(
        timestamp=1_700_000_000_000,
        cpu=CpuStatus(usage=12.5, cores=8, speed=3.2, temperature=48.0, model="Apple M2"),
        gpu=GpuStatus(controllers=[GpuController(model="Apple M2", vendor="Apple", vram=16.0)]),
        network=NetworkStatus(
            interfaces=[NetworkInterface(iface="en0", ip4="192.168.1.5")],
            stats=[NetworkStats(iface="en0", rx_bytes=10, tx_bytes=20, rx_sec=1.5)],
        ),
        disk=DiskStatus(disks=[DiskEntry(device="/dev/disk3s1", usage_percent=40.0, mount="/")]),
        processes=[ProcessInfo(pid=1, name="launchd", cpu=0.1, memory=10.0)],
        analysis=Analysis(timestamp=1_700_000_000_000),
    )
    return to_payload(overview)


class TestSchema:
    """Tests for validate_payload."""

    def test_schema_is_valid(self):
        """The bundled schema loads."""
        assert get_validator().schema["title"] == "sysmcp system overview"

    def test_overview_passes(self):
        """A collected overview validates."""
        assert validate_payload(overview_payload()) == []

    def test_default_overview_passes(self):
        """Zero-value records validate too."""
        assert validate_payload(to_payload(SystemOverview())) == []

    def test_network_stats_keep_snake_case(self):
        """Byte counters keep their wire names."""
        stats = overview_payload()["network"]["stats"][0]
        assert set(stats) == {"iface", "rx_bytes", "tx_bytes", "rx_sec", "tx_sec"}

    def test_missing_domain(self):
        """Removing a domain is reported at the root."""
        payload = overview_payload()
        del payload["cpu"]
        errors = validate_payload(payload)
        assert len(errors) == 1
        assert errors[0].startswith("<root>: 'cpu' is a required property")

    def test_bad_tier(self):
        """Unknown performance tiers are rejected with their location."""
        payload = overview_payload()
        payload["analysis"]["performance"] = "bogus"
        (error,) = validate_payload(payload)
        assert error.startswith("analysis/performance:")
