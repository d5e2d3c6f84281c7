"""Parsers for ``vm_stat`` and the memory-pressure probe."""
from __future__ import annotations

import re

from sysmcp.models import MemoryPageDetails, VmStatBreakdown
from sysmcp.parsers.common import bytes_to_gb, first_int

DEFAULT_PAGE_SIZE = 16384

_PAGE_SIZE_RE = re.compile(r"page size of (\d+) bytes")


def _extract(lines: list[str], label: str) -> int:
    for line in lines:
        if label in line:
            return first_int(line) or 0
    return 0


def parse_page_size(output: str) -> int:
    match = _PAGE_SIZE_RE.search(output or "")
    return int(match.group(1)) if match else DEFAULT_PAGE_SIZE


def parse_vm_stat(output: str) -> VmStatBreakdown:
    """Turn a ``vm_stat`` page report into GB figures.

    Used memory is active + wired + half of compressed; free is free +
    inactive + half of compressed. Inactive pages are treated as reclaimable.
    """
    lines = (output or "").split("\n")
    wired = _extract(lines, "Pages wired down")
    active = _extract(lines, "Pages active")
    inactive = _extract(lines, "Pages inactive")
    compressed = _extract(lines, "Pages stored in compressor")
    free = _extract(lines, "Pages free")
    swap_ins = _extract(lines, "Pageins")
    swap_outs = _extract(lines, "Pageouts")

    if not any((wired, active, inactive, compressed, free, swap_ins, swap_outs)):
        return VmStatBreakdown()

    page_size = parse_page_size(output)
    free_memory = bytes_to_gb(free * page_size)

    return VmStatBreakdown(
        app_memory=bytes_to_gb((active + inactive) * page_size),
        wired_memory=bytes_to_gb(wired * page_size),
        compressed_memory=bytes_to_gb(compressed * page_size),
        # Keep 1 GB of free memory out of the cache estimate
        cached_files=round(max(0.0, free_memory - 1), 2),
        actual_used=bytes_to_gb((active + wired + compressed * 0.5) * page_size),
        actual_free=bytes_to_gb((free + inactive + compressed * 0.5) * page_size),
        details=MemoryPageDetails(
            page_size=page_size,
            pages_active=active,
            pages_inactive=inactive,
            pages_wired=wired,
            pages_compressed=compressed,
            pages_free=free,
            swap_ins=swap_ins,
            swap_outs=swap_outs,
        ),
    )


def vm_stat_basic_usage(
    breakdown: VmStatBreakdown, total_gb: float
) -> tuple[float, float, float] | None:
    """(used, free, usage percent) excluding cache and inactive pages.

    ``None`` when the breakdown carries no page counts or ``total_gb`` is 0.
    """
    if total_gb <= 0 or not breakdown.details.page_size:
        return None
    used = breakdown.actual_used
    return used, breakdown.actual_free, round(used / total_gb * 100, 2)


def parse_memory_pressure(output: str) -> str:
    """Bucket a pressure report into Normal / Warning / Critical.

    Accepts the numeric ``kern.memorystatus_vm_pressure_level`` (1, 2, 4) or
    free text from ``memory_pressure``.
    """
    text = (output or "").strip().lower()
    if text.isdigit():
        level = int(text)
        if level >= 4:
            return "Critical"
        if level >= 2:
            return "Warning"
        return "Normal"
    if "warn" in text:
        return "Warning"
    if "critical" in text or "urgent" in text:
        return "Critical"
    return "Normal"
