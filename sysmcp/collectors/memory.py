from __future__ import annotations

import asyncio

import psutil

from sysmcp.collectors.base import DomainCollector, extend
from sysmcp.models import DetailedMemoryStatus, MemoryStatus
from sysmcp.parsers.common import bytes_to_gb
from sysmcp.parsers.memory import parse_memory_pressure, parse_vm_stat, vm_stat_basic_usage

HIGH_USAGE_PERCENT = 80


class MemoryCollector(DomainCollector[MemoryStatus, DetailedMemoryStatus]):
    domain = "memory"

    async def _collect_basic(self) -> MemoryStatus:
        (vm, swap), vm_stat = await asyncio.gather(
            asyncio.to_thread(lambda: (psutil.virtual_memory(), psutil.swap_memory())),
            self.run_one(self.probe_set.vm_stat()),
        )
        total = bytes_to_gb(vm.total)
        status = MemoryStatus(
            total=total,
            used=bytes_to_gb(vm.used),
            free=bytes_to_gb(vm.free),
            usage_percent=round(vm.used / vm.total * 100, 2) if vm.total else 0.0,
            available=bytes_to_gb(vm.available),
            swap_total=bytes_to_gb(swap.total),
            swap_used=bytes_to_gb(swap.used),
        )

        # vm_stat excludes cached and inactive pages from "used"
        usage = vm_stat_basic_usage(parse_vm_stat(vm_stat.text), total)
        if usage is not None:
            status.used, status.free, status.usage_percent = usage
        elif self.probe_set.vm_stat() is not None:
            self.logger.warning("vm_stat unavailable, using generic memory figures.")

        if status.usage_percent > HIGH_USAGE_PERCENT:
            self.logger.warning("Memory usage is high: %.2f%%", status.usage_percent)
        return status

    async def _collect_detail(self, basic: MemoryStatus) -> DetailedMemoryStatus:
        vm_stat, pressure = await self.run(
            [self.probe_set.vm_stat(), self.probe_set.memory_pressure()]
        )
        breakdown = parse_vm_stat(vm_stat.text)
        return extend(
            basic,
            DetailedMemoryStatus,
            app_memory=breakdown.app_memory,
            wired_memory=breakdown.wired_memory,
            compressed_memory=breakdown.compressed_memory,
            cached_files=breakdown.cached_files,
            memory_pressure=parse_memory_pressure(pressure.text),
            details=breakdown.details,
        )
