from __future__ import annotations

import asyncio
import os
from typing import Any

import psutil

from sysmcp.collectors.base import DomainCollector, extend
from sysmcp.models import CpuStatus, DetailedCpuStatus
from sysmcp.parsers.cpu import (
    parse_cpu_model,
    parse_iostat,
    parse_powermetrics,
    parse_sysctl_cpu,
    parse_temperatures,
)


class CpuCollector(DomainCollector[CpuStatus, DetailedCpuStatus]):
    domain = "cpu"

    def _sample(self) -> dict[str, Any]:
        """Blocking psutil sample; runs in a worker thread."""
        usage = psutil.cpu_percent(interval=self.config.sampling.cpu_interval_s)
        cores = psutil.cpu_count(logical=True) or 0

        speed = 0.0
        try:
            freq = psutil.cpu_freq()
            if freq and freq.current:
                speed = round(freq.current / 1000, 2)
        except Exception:
            self.logger.debug("Failed to collect CPU frequency data.")

        temperature = None
        if hasattr(psutil, "sensors_temperatures"):
            try:
                temps = psutil.sensors_temperatures(fahrenheit=False)
            except Exception:
                temps = {}
            for entries in (temps or {}).values():
                if entries and entries[0].current is not None:
                    temperature = float(entries[0].current)
                    break

        load_average = [0.0]
        if hasattr(os, "getloadavg"):
            try:
                load_average = [round(v, 2) for v in os.getloadavg()]
            except OSError:
                self.logger.debug("Load average unavailable.")

        return {
            "usage": round(usage, 2),
            "cores": cores,
            "speed": speed,
            "temperature": temperature,
            "load_average": load_average,
        }

    async def _collect_basic(self) -> CpuStatus:
        sample, model = await asyncio.gather(
            asyncio.to_thread(self._sample),
            self.run_one(self.probe_set.cpu_model()),
        )
        status = CpuStatus(model=parse_cpu_model(model.text), **sample)
        self.logger.debug("CPU usage %.2f%% on %d cores (%s)", status.usage, status.cores, status.model)
        return status

    async def _collect_detail(self, basic: CpuStatus) -> DetailedCpuStatus:
        sysctl_probes = self.probe_set.cpu_sysctl()
        temp_probes = self.probe_set.cpu_temperatures()
        results = await self.run(
            [*sysctl_probes, *temp_probes, self.probe_set.power(), self.probe_set.scheduler()]
        )
        sysctl = results[: len(sysctl_probes)]
        temps = results[len(sysctl_probes): len(sysctl_probes) + len(temp_probes)]
        power, scheduler = results[-2:]

        # Failed sysctl reads count as 0 so positions stay aligned
        details = parse_sysctl_cpu("\n".join(r.text.strip() or "0" for r in sysctl))
        cpu_temp = temps[0].text if temps else ""
        gpu_temp = temps[1].text if len(temps) > 1 else ""

        return extend(
            basic,
            DetailedCpuStatus,
            performance_cores=details.performance_cores,
            efficiency_cores=details.efficiency_cores,
            physical_cores=details.physical_cores,
            logical_cores=details.logical_cores,
            temperatures=parse_temperatures(cpu_temp, gpu_temp),
            power=parse_powermetrics(power.text),
            frequencies=details.frequencies,
            core_usage=details.core_usage,
            scheduler=parse_iostat(scheduler.text),
        )
