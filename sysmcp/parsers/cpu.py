"""Parsers for the Darwin CPU probes (sysctl, smctemp, powermetrics, iostat)."""
from __future__ import annotations

import re

from sysmcp.models import CpuDetails, CpuFrequencies, CpuPower, CpuTemperatures, SchedulerInfo
from sysmcp.parsers.common import first_number, leading_int, parse_float

_IOREG_TEMP_RE = re.compile(r'"?temperature"?\s*=\s*(\d+\.?\d*)', re.IGNORECASE)

# Readings outside this open interval are treated as sensor noise.
_MIN_VALID_TEMP = 0
_MAX_VALID_TEMP = 150

_POWER_LABELS = {
    "Package Power": "package_power",
    "CPU Power": "cpu_power",
    "GPU Power": "gpu_power",
    "ANE Power": "ane_power",
}


def parse_cpu_model(output: str) -> str:
    """Model name from ``sysctl machdep.cpu.brand_string`` or ``/proc/cpuinfo``."""
    if not output:
        return ""
    fallback = ""
    for line in output.splitlines():
        key, sep, value = line.partition(":")
        if not sep:
            continue
        key = key.strip().lower()
        if key == "model name" and value.strip():
            return value.strip()
        # ARM boards report the SoC under "Hardware" or "Model"
        if key in ("hardware", "model") and value.strip() and not fallback:
            fallback = value.strip()
    if fallback:
        return fallback
    for line in output.splitlines():
        if line.strip() and ":" not in line:
            return line.strip()
    return ""


def parse_sysctl_cpu(output: str) -> CpuDetails:
    """Parse the six positional sysctl values, one per line.

    Order: physical cores, logical cores, performance cores, efficiency
    cores, max frequency (Hz), min frequency (Hz).
    """
    lines = (output or "").split("\n")
    values = [leading_int(lines[i]) if i < len(lines) else 0 for i in range(6)]
    physical, logical, perf, eff, max_freq, min_freq = values
    return CpuDetails(
        physical_cores=physical,
        logical_cores=logical,
        performance_cores=perf,
        efficiency_cores=eff,
        frequencies=CpuFrequencies(
            base=round(min_freq / 1_000_000_000, 2),
            boost=round(max_freq / 1_000_000_000, 2),
            current=[],
            avg=round((max_freq + min_freq) / 2 / 1_000_000_000, 2),
        ),
        core_usage=[],
    )


def _valid(temp: float) -> bool:
    return _MIN_VALID_TEMP < temp < _MAX_VALID_TEMP


def parse_temperatures(
    cpu_output: str, gpu_output: str, sensors_output: str = "", ioreg_output: str = ""
) -> CpuTemperatures:
    """Fuse smctemp readings with the optional sensor list and ioreg scan.

    The CPU figure prefers ``smctemp -c``; otherwise the first valid sensor
    reading is used; otherwise 0.
    """
    if not any((part or "").strip() for part in (cpu_output, gpu_output, sensors_output, ioreg_output)):
        return CpuTemperatures()

    sensors: dict[str, float] = {}
    core_temps: list[float] = []

    cpu_temp = 0.0
    parsed_cpu = parse_float(cpu_output)
    if parsed_cpu is not None:
        cpu_temp = parsed_cpu
        sensors["CPU"] = cpu_temp
        core_temps.append(cpu_temp)

    parsed_gpu = parse_float(gpu_output)
    if parsed_gpu is not None:
        sensors["GPU"] = parsed_gpu

    for index, line in enumerate((sensors_output or "").split("\n")):
        if not line:
            continue
        temp = first_number(line)
        if temp is None or not _valid(temp):
            continue
        sensors[f"sensor_{index}"] = temp
        lowered = line.lower()
        if "cpu" in lowered or "core" in lowered:
            core_temps.append(temp)

    for line in (ioreg_output or "").split("\n"):
        match = _IOREG_TEMP_RE.search(line)
        if match and _valid(float(match.group(1))):
            sensors["ioreg_temp"] = float(match.group(1))

    valid = [t for t in sensors.values() if t > 0]
    final_cpu = cpu_temp if cpu_temp > 0 else (valid[0] if valid else 0.0)
    max_temp = max(valid) if valid else 0.0
    cores = core_temps if core_temps else [final_cpu]

    return CpuTemperatures(
        cpu=round(final_cpu, 1),
        cores=[round(t, 1) for t in cores],
        max=round(max_temp, 1),
        sensors=sensors,
    )


def parse_powermetrics(output: str) -> CpuPower:
    readings: dict[str, float] = {}
    for line in (output or "").split("\n"):
        for label, key in _POWER_LABELS.items():
            if label in line:
                value = first_number(line)
                if value is not None:
                    readings[key] = value
    # Zero readings are reported as absent
    return CpuPower(**{key: value or None for key, value in readings.items()})


def parse_iostat(output: str) -> SchedulerInfo:
    """Context switches and interrupts from ``iostat -c`` rows.

    Heuristic: columns 4 and 5 of the last row with at least six fields.
    """
    context_switches = 0
    interrupts = 0
    for line in (output or "").split("\n"):
        parts = line.split()
        if len(parts) >= 6:
            context_switches = leading_int(parts[4])
            interrupts = leading_int(parts[5])
    return SchedulerInfo(run_queue=0, context_switches=context_switches, interrupts=interrupts)
