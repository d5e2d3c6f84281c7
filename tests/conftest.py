"""Pytest configuration and shared fixtures."""
from __future__ import annotations

import pytest

from sysmcp.config import AppConfig, SamplingConfig
from sysmcp.platforms import probe_set_for
from sysmcp.probes import ProbeResult


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "darwin: mark test as exercising the macOS probe set"
    )
    config.addinivalue_line(
        "markers", "linux: mark test as exercising the Linux probe set"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as integration test (spawns real processes)"
    )


class FakeRunner:
    """Probe runner answering from canned output instead of spawning commands.

    Keys match a command exactly first, then as a substring (in insertion
    order). Values may be a string (successful output), a ``ProbeResult`` or
    an exception to raise. Unmatched commands fail like a missing binary.
    """

    def __init__(self, outputs=None):
        self.outputs = dict(outputs or {})
        self.calls = []

    def _lookup(self, command):
        if command in self.outputs:
            return self.outputs[command]
        for key, value in self.outputs.items():
            if key in command:
                return value
        return ProbeResult.failure("exit status 127: command not found")

    async def __call__(self, command, timeout_ms):
        self.calls.append(command)
        value = self._lookup(command)
        if isinstance(value, BaseException):
            raise value
        if isinstance(value, ProbeResult):
            return value
        return ProbeResult(ok=True, output=value)


@pytest.fixture
def fake_runner():
    """Factory for FakeRunner instances."""
    return FakeRunner


@pytest.fixture
def app_config():
    """Config with zero sampling windows so psutil reads return immediately."""
    return AppConfig(sampling=SamplingConfig(cpu_interval_s=0.0, network_interval_s=0.0))


@pytest.fixture
def darwin_probes():
    """macOS probe set (the only one with detailed probes)."""
    return probe_set_for("Darwin")


@pytest.fixture
def linux_probes():
    """Linux probe set."""
    return probe_set_for("Linux")


@pytest.fixture
def generic_probes():
    """Probe set for hosts without a dedicated family (e.g. Windows)."""
    return probe_set_for("Windows")


VM_STAT_OUTPUT = """Mach Virtual Memory Statistics: (page size of 16384 bytes)
Pages free:                               65536.
Pages active:                            131072.
Pages inactive:                           65536.
Pages speculative:                         1000.
Pages throttled:                              0.
Pages wired down:                         65536.
Pages purgeable:                            100.
"Translation faults":                 123456789.
Pages copy-on-write:                    1000000.
Pages zero filled:                    200000000.
Pages reactivated:                       500000.
Pages purged:                            100000.
File-backed pages:                       200000.
Anonymous pages:                         300000.
Pages stored in compressor:              131072.
Pages occupied by compressor:             50000.
Decompressions:                          400000.
Compressions:                            800000.
Pageins:                                 900000.
Pageouts:                                  1234.
Swapins:                                      0.
Swapouts:                                     0.
"""

PS_LIST_OUTPUT = """    1   0.0  0.1   10240 /sbin/launchd
  100  12.5  2.0  204800 /Applications/Safari.app/Contents/MacOS/Safari
  200   3.0  5.0  512000 /usr/local/bin/node
  300   0.0  0.0       0 idle
  400  45.0  1.0  102400 /Applications/Google Chrome.app/Contents/MacOS/Google Chrome
  500   1.0  8.0  819200 python3
"""

PS_TABLE_OUTPUT = """    1     0   0.5  0.1   20480  400000   1:00.00 root     Ss   31    0 /sbin/launchd
  100     1  60.0  3.0  102400  800000  10:00.00 alice    R    31    0 /usr/bin/mystery --flag
  200     1  25.0 12.0 2252800 5000000   5:00.00 alice    S    31    0 /Applications/Safari.app/Contents/MacOS/Safari
  300   200   0.0  0.5   10240  100000   0:01.00 alice    Z    31    0 /usr/libexec/helper
bad line here
"""

FD_COUNTS_OUTPUT = """100 1200
200 60
"""


@pytest.fixture
def vm_stat_output():
    """vm_stat report with 16 KiB pages (65536 pages == 1 GB)."""
    return VM_STAT_OUTPUT


@pytest.fixture
def ps_list_output():
    """ps list rows: five active processes and one idle one."""
    return PS_LIST_OUTPUT


@pytest.fixture
def ps_table_output():
    """ps table rows for a small four-process tree plus a garbled line."""
    return PS_TABLE_OUTPUT


@pytest.fixture
def fd_counts_output():
    """lsof summary for the ps table fixture."""
    return FD_COUNTS_OUTPUT
