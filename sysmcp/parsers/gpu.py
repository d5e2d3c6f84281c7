"""Parsers for GPU probes: nvidia-smi, lspci, system_profiler and ioreg."""
from __future__ import annotations

from dataclasses import dataclass
import json
import re
import shlex
from typing import Any

from sysmcp.models import GpuClient, GpuController, GpuMemory
from sysmcp.parsers.common import leading_int, parse_float, round_half_up

DEFAULT_VRAM_MB = 16384
DEFAULT_GPU_CORES = 10
MEMORY_BANDWIDTH_GBPS = 200
# Used VRAM assumed when the free figure cannot be read.
FALLBACK_USED_VRAM_MB = 500

_VRAM_TOTAL_RE = re.compile(r'"VRAM,totalMB"=(\d+)')
_VRAM_FREE_RE = re.compile(r'"vramFreeBytes"=(\d+)')
_UTILIZATION_RE = re.compile(r"GPU UT Engagement.*?(\d+\.?\d*)")
_PERF_STATE_RE = re.compile(r"perf state (\d+)")
_THROTTLE_RE = re.compile(r"Throttle.*?(\d+\.?\d*)")
_SIZE_RE = re.compile(r"(\d+(?:\.\d+)?)\s*(GB|MB)?", re.IGNORECASE)

_CREATOR_RE = re.compile(r'IOUserClientCreator.*?pid (\d+), (.+?)"')
_QUEUE_RE = re.compile(r"CommandQueueCount.*?(\d+)")
_GPU_TIME_RE = re.compile(r"accumulatedGPUTime.*?(\d+)")
_API_RE = re.compile(r'"API"\s*=\s*"(.+?)"')

_LSPCI_DISPLAY_CLASSES = ("VGA compatible controller", "3D controller", "Display controller")


@dataclass
class GpuReadout:
    """Fused view of system_profiler and ioreg output."""

    chipset: str = "Unknown"
    total_cores: int = 0
    metal_support: str = "Unknown"
    total_vram_mb: int = 0
    used_vram_mb: int = 0
    cached_vram_mb: int = 0
    free_vram_mb: int | None = None
    utilization: float = 0.0
    performance_state: int = 0
    frequency_mhz: float | None = None
    max_power: float | None = None
    is_throttling: bool = False
    throttle_percent: float = 0.0
    throttle_reason: str | None = None


def _load_displays(profile_output: str) -> list[dict[str, Any]]:
    try:
        data = json.loads(profile_output or "{}")
    except json.JSONDecodeError:
        return []
    displays = data.get("SPDisplaysDataType") if isinstance(data, dict) else None
    return [d for d in displays if isinstance(d, dict)] if isinstance(displays, list) else []


def _size_to_mb(value: str | None) -> float | None:
    """``"16 GB"`` / ``"1536 MB"`` -> MB."""
    if not value:
        return None
    match = _SIZE_RE.search(str(value))
    if not match:
        return None
    number = float(match.group(1))
    unit = (match.group(2) or "MB").upper()
    return number * 1024 if unit == "GB" else number


def parse_vram_free_mb(output: str) -> int | None:
    match = _VRAM_FREE_RE.search(output or "")
    if not match:
        return None
    return round_half_up(int(match.group(1)) / (1024 * 1024))


def split_vram(total_mb: int, free_mb: int | None) -> tuple[int, int]:
    """Split occupied VRAM into (actual, cached) MB.

    Unified-memory GPUs keep most of "used" VRAM as reclaimable cache; the
    less free memory there is, the smaller the share counted as actual use.
    """
    if free_mb is None:
        return FALLBACK_USED_VRAM_MB, 0
    occupied = total_mb - free_mb
    if free_mb < 50:
        used = round_half_up(occupied * 0.05)
    elif free_mb < 500:
        used = round_half_up(occupied * 0.2)
    else:
        used = round_half_up(occupied * 0.5)
    return used, occupied - used


def parse_gpu_details(profile_output: str, ioreg_output: str) -> GpuReadout:
    if not (profile_output or "").strip() and not (ioreg_output or "").strip():
        return GpuReadout()

    readout = GpuReadout()
    displays = _load_displays(profile_output)
    if displays:
        gpu = displays[0]
        readout.chipset = gpu.get("sppci_model") or gpu.get("_name") or "Apple GPU"
        readout.total_cores = (
            leading_int(str(gpu.get("sppci_cores") or ""))
            or leading_int(str(gpu.get("sppci_bus") or "0"))
            or DEFAULT_GPU_CORES
        )
        readout.metal_support = (
            gpu.get("spdisplays_metal") or gpu.get("spdisplays_mtlgpufamilysupport") or "Metal 3"
        )
        vram_total = _VRAM_TOTAL_RE.search(ioreg_output or "")
        if vram_total:
            readout.total_vram_mb = int(vram_total.group(1))
        else:
            vram = _size_to_mb(gpu.get("spdisplays_vram") or gpu.get("sppci_vram"))
            readout.total_vram_mb = int(vram) if vram else DEFAULT_VRAM_MB
    else:
        vram_total = _VRAM_TOTAL_RE.search(ioreg_output or "")
        if vram_total:
            readout.total_vram_mb = int(vram_total.group(1))

    if ioreg_output:
        utilization = _UTILIZATION_RE.search(ioreg_output)
        if utilization:
            readout.utilization = float(utilization.group(1))
        perf_state = _PERF_STATE_RE.search(ioreg_output)
        if perf_state:
            readout.performance_state = int(perf_state.group(1))
        throttle = _THROTTLE_RE.search(ioreg_output)
        if throttle:
            readout.throttle_percent = float(throttle.group(1))
            readout.is_throttling = readout.throttle_percent > 0
        readout.free_vram_mb = parse_vram_free_mb(ioreg_output)
        readout.used_vram_mb, readout.cached_vram_mb = split_vram(
            readout.total_vram_mb, readout.free_vram_mb
        )
        readout.frequency_mhz = 1000

    readout.max_power = 20 if readout.total_vram_mb >= DEFAULT_VRAM_MB else 15
    readout.throttle_reason = "Thermal" if readout.is_throttling else None
    return readout


def gpu_memory(readout: GpuReadout, vram_free_output: str = "") -> GpuMemory:
    """VRAM figures, preferring the dedicated vramFreeBytes probe."""
    total = readout.total_vram_mb or DEFAULT_VRAM_MB
    free = parse_vram_free_mb(vram_free_output)
    if free is None:
        free = readout.free_vram_mb
    used, cached = split_vram(total, free)
    if free is None:
        free = max(total - used, 0)
    occupied = used + cached
    return GpuMemory(
        total_mb=total,
        used_mb=used,
        free_mb=free,
        cached_mb=cached,
        utilization_percent=round_half_up(used / total * 100),
        total_utilization_percent=round_half_up(occupied / total * 100),
        bandwidth=MEMORY_BANDWIDTH_GBPS,
    )


def parse_gpu_temperature(output: str) -> float:
    value = parse_float(output)
    return round(value, 1) if value is not None else 0.0


def parse_gpu_clients(output: str, limit: int = 10) -> list[GpuClient]:
    """Per-process GPU clients from ``ioreg -c AGXDeviceUserClient``."""
    clients: list[GpuClient] = []
    current: GpuClient | None = None
    for line in (output or "").split("\n"):
        creator = _CREATOR_RE.search(line)
        if creator:
            if current is not None:
                clients.append(current)
            current = GpuClient(pid=int(creator.group(1)), name=creator.group(2))
        if current is None:
            continue
        queue = _QUEUE_RE.search(line)
        if queue:
            current.command_queue_count = int(queue.group(1))
        gpu_time = _GPU_TIME_RE.search(line)
        if gpu_time:
            current.accumulated_gpu_time = int(gpu_time.group(1))
        api = _API_RE.search(line)
        if api:
            current.api = api.group(1)
    if current is not None:
        clients.append(current)

    active = [c for c in clients if c.accumulated_gpu_time > 0 or c.command_queue_count > 0]
    active.sort(key=lambda c: c.accumulated_gpu_time, reverse=True)
    return active[:limit]


def _optional_number(value: str) -> float | None:
    value = value.strip()
    if not value or value.startswith("["):
        return None
    return parse_float(value)


def parse_nvidia_smi(output: str) -> list[GpuController]:
    """``nvidia-smi --query-gpu=name,memory.total,memory.used,utilization.gpu,temperature.gpu``."""
    controllers: list[GpuController] = []
    for line in (output or "").splitlines():
        parts = [p.strip() for p in line.split(",")]
        if len(parts) < 5 or not parts[0]:
            continue
        memory_total = _optional_number(parts[1])
        controllers.append(
            GpuController(
                model=parts[0],
                vendor="NVIDIA",
                vram=round(memory_total / 1024, 2) if memory_total is not None else None,
                memory_used=_optional_number(parts[2]),
                memory_total=memory_total,
                utilization_gpu=_optional_number(parts[3]),
                temperature_gpu=_optional_number(parts[4]),
            )
        )
    return controllers


def parse_lspci(output: str) -> list[GpuController]:
    """Display controllers from ``lspci -mm``."""
    controllers: list[GpuController] = []
    for line in (output or "").splitlines():
        try:
            parts = shlex.split(line)
        except ValueError:
            continue
        if len(parts) < 4 or parts[1] not in _LSPCI_DISPLAY_CLASSES:
            continue
        controllers.append(GpuController(model=parts[3] or "Unknown", vendor=parts[2] or "Unknown"))
    return controllers


def parse_system_profiler_controllers(output: str) -> list[GpuController]:
    controllers: list[GpuController] = []
    for gpu in _load_displays(output):
        vendor = str(gpu.get("spdisplays_vendor") or gpu.get("sppci_vendor") or "Unknown")
        vendor = vendor.replace("sppci_vendor_", "")
        vram_mb = _size_to_mb(gpu.get("spdisplays_vram") or gpu.get("sppci_vram"))
        controllers.append(
            GpuController(
                model=gpu.get("sppci_model") or gpu.get("_name") or "Unknown",
                vendor=vendor,
                vram=round(vram_mb / 1024, 2) if vram_mb else None,
            )
        )
    return controllers


def merge_controllers(
    primary: list[GpuController], secondary: list[GpuController]
) -> list[GpuController]:
    """Append secondary controllers whose vendor the primary source missed."""
    vendors = {c.vendor.lower() for c in primary}
    merged = list(primary)
    for controller in secondary:
        vendor = controller.vendor.lower()
        if any(known in vendor or vendor in known for known in vendors):
            continue
        merged.append(controller)
    return merged
