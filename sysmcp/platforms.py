"""Per-OS probe catalogues.

A ``PlatformProbeSet`` answers "which commands exist here, and how long may
they run". Collectors pick one set at construction time and never branch on
the host OS themselves. Only ``DarwinProbeSet`` is ``rich``: it is the one
family with the extra probes behind the detailed snapshots.
"""
from __future__ import annotations

import platform
import shlex

from sysmcp.config import ProbeConfig
from sysmcp.probes import Probe

SYSCTL_CPU_KEYS = (
    "hw.physicalcpu",
    "hw.logicalcpu",
    "hw.perflevel0.physicalcpu",
    "hw.perflevel1.physicalcpu",
    "hw.cpufrequency_max",
    "hw.cpufrequency_min",
)

PS_TABLE_COLUMNS = "pid=,ppid=,pcpu=,pmem=,rss=,vsz=,time=,user=,state=,pri=,nice=,args="


class PlatformProbeSet:
    """Probes available on every host (including Windows)."""

    family = "generic"
    rich = False

    def __init__(self, config: ProbeConfig | None = None) -> None:
        self.config = config or ProbeConfig()

    def _probe(self, name: str, command: str, timeout_ms: int | None = None) -> Probe:
        return Probe(name, command, timeout_ms or self.config.default_timeout_ms)

    # CPU
    def cpu_model(self) -> Probe | None:
        return None

    def cpu_sysctl(self) -> list[Probe]:
        return []

    def cpu_temperatures(self) -> list[Probe]:
        return []

    def power(self) -> Probe | None:
        return None

    def scheduler(self) -> Probe | None:
        return None

    # Memory
    def vm_stat(self) -> Probe | None:
        return None

    def memory_pressure(self) -> Probe | None:
        return None

    # GPU
    def gpu_controllers(self) -> list[Probe]:
        return [
            self._probe(
                "nvidia-smi",
                f"{shlex.quote(self.config.nvidia_smi_path)} "
                "--query-gpu=name,memory.total,memory.used,utilization.gpu,temperature.gpu "
                "--format=csv,noheader,nounits",
            )
        ]

    def gpu_profile(self) -> Probe | None:
        return None

    def gpu_ioreg(self) -> list[Probe]:
        return []

    def gpu_vram_free(self) -> Probe | None:
        return None

    def gpu_temperature(self) -> Probe | None:
        return None

    def gpu_clients(self) -> Probe | None:
        return None

    # Network
    def netstat(self) -> list[Probe]:
        return []

    def nettop(self) -> Probe | None:
        return None

    def ifconfig(self) -> Probe | None:
        return None

    def wifi(self) -> list[Probe]:
        return []

    def ping(self) -> Probe | None:
        return None

    # Processes
    def process_list(self) -> Probe | None:
        return None

    def process_table(self) -> Probe | None:
        return None

    def fd_counts(self) -> Probe | None:
        return None


class PosixProbeSet(PlatformProbeSet):
    family = "posix"

    def cpu_model(self) -> Probe | None:
        return self._probe("cpu-model", "sysctl -n hw.model")

    def process_list(self) -> Probe | None:
        return self._probe(
            "ps-list", "ps -A -o pid=,pcpu=,pmem=,rss=,comm=", self.config.ps_timeout_ms
        )

    def process_table(self) -> Probe | None:
        return self._probe(
            "ps-table", f"ps -A -ww -o {PS_TABLE_COLUMNS}", self.config.ps_timeout_ms
        )

    def fd_counts(self) -> Probe | None:
        return self._probe(
            "lsof-summary",
            "lsof -n 2>/dev/null | awk 'NR>1{fd_count[$2]++} "
            "END{for(pid in fd_count) print pid, fd_count[pid]}'",
            self.config.ps_timeout_ms,
        )


class LinuxProbeSet(PosixProbeSet):
    family = "linux"

    def cpu_model(self) -> Probe | None:
        return self._probe("cpu-model", "cat /proc/cpuinfo")

    def gpu_controllers(self) -> list[Probe]:
        return super().gpu_controllers() + [self._probe("lspci", "lspci -mm")]


class DarwinProbeSet(PosixProbeSet):
    family = "darwin"
    rich = True

    def cpu_model(self) -> Probe | None:
        return self._probe("cpu-model", "sysctl -n machdep.cpu.brand_string")

    def cpu_sysctl(self) -> list[Probe]:
        return [self._probe(key, f"sysctl -n {key}") for key in SYSCTL_CPU_KEYS]

    def cpu_temperatures(self) -> list[Probe]:
        smctemp = shlex.quote(self.config.smctemp_path)
        timeout = self.config.sensor_timeout_ms
        return [
            self._probe("smctemp-cpu", f"{smctemp} -c", timeout),
            self._probe("smctemp-gpu", f"{smctemp} -g", timeout),
        ]

    def power(self) -> Probe | None:
        # -n keeps sudo from prompting; without a sudoers rule this just fails
        return self._probe(
            "powermetrics",
            f"sudo -n {shlex.quote(self.config.powermetrics_path)} "
            "-n 1 -i 1000 --samplers cpu_power,gpu_power",
            self.config.powermetrics_timeout_ms,
        )

    def scheduler(self) -> Probe | None:
        return self._probe("iostat", "iostat -c 1 | tail -n +4")

    def vm_stat(self) -> Probe | None:
        return self._probe("vm_stat", "vm_stat")

    def memory_pressure(self) -> Probe | None:
        return self._probe("memory-pressure", "sysctl -n kern.memorystatus_vm_pressure_level")

    def gpu_controllers(self) -> list[Probe]:
        profile = self.gpu_profile()
        return [profile] if profile else []

    def gpu_profile(self) -> Probe | None:
        return self._probe("system_profiler", "system_profiler SPDisplaysDataType -json")

    def gpu_ioreg(self) -> list[Probe]:
        timeout = self.config.sensor_timeout_ms
        commands = [
            'ioreg -l | grep -A 30 -B 5 "AGX\\|GPU"',
            "ioreg -c AGXAccelerator -l",
            "ioreg -c IOAccelerator -l",
            'ioreg -l | grep "vramFreeBytes" | head -1',
            'ioreg -l | grep "VRAM,totalMB" | head -1',
        ]
        return [self._probe(f"ioreg-{i}", cmd, timeout) for i, cmd in enumerate(commands)]

    def gpu_vram_free(self) -> Probe | None:
        return self._probe(
            "ioreg-vram-free",
            'ioreg -l | grep "vramFreeBytes" | head -1',
            self.config.sensor_timeout_ms,
        )

    def gpu_temperature(self) -> Probe | None:
        return self._probe(
            "smctemp-gpu", f"{shlex.quote(self.config.smctemp_path)} -g",
            self.config.sensor_timeout_ms,
        )

    def gpu_clients(self) -> Probe | None:
        return self._probe(
            "agx-clients",
            'ioreg -c AGXDeviceUserClient -l | '
            'grep -E "IOUserClientCreator|AppUsage|CommandQueueCount|API"',
        )

    def netstat(self) -> list[Probe]:
        timeout = self.config.netstat_timeout_ms
        return [
            self._probe("netstat-connections", "netstat -an | head -100", timeout),
            self._probe("netstat-protocols", "netstat -s", timeout),
            self._probe("netstat-routes", "netstat -rn", timeout),
        ]

    def nettop(self) -> Probe | None:
        return self._probe("nettop", "nettop -l 1 -c | head -50")

    def ifconfig(self) -> Probe | None:
        return self._probe("ifconfig", "ifconfig -a")

    def wifi(self) -> list[Probe]:
        timeout = self.config.sensor_timeout_ms
        return [
            self._probe("airport", f"{shlex.quote(self.config.airport_path)} -I", timeout),
            self._probe(
                "networksetup",
                "networksetup -getairportnetwork en1 2>/dev/null"
                " || networksetup -getairportnetwork en0 2>/dev/null",
                timeout,
            ),
        ]

    def ping(self) -> Probe | None:
        return self._probe(
            "ping", f"ping -c 3 -t 3 {shlex.quote(self.config.ping_host)}",
            self.config.ping_timeout_ms,
        )


_FAMILIES: dict[str, type[PlatformProbeSet]] = {
    "darwin": DarwinProbeSet,
    "linux": LinuxProbeSet,
    "freebsd": PosixProbeSet,
    "openbsd": PosixProbeSet,
    "netbsd": PosixProbeSet,
    "windows": PlatformProbeSet,
}


def probe_set_for(
    system: str | None = None, config: ProbeConfig | None = None
) -> PlatformProbeSet:
    """Select the probe set for ``system`` (defaults to the running host)."""
    name = (system or platform.system()).lower()
    return _FAMILIES.get(name, PlatformProbeSet)(config)
