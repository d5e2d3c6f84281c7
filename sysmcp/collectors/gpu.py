from __future__ import annotations

from sysmcp.collectors.base import DomainCollector
from sysmcp.models import (
    DetailedGpuStatus,
    GpuController,
    GpuDetails,
    GpuPower,
    GpuStatus,
    GpuThermal,
    GpuThrottling,
    GpuUtilization,
)
from sysmcp.parsers.common import thermal_state
from sysmcp.parsers.cpu import parse_powermetrics
from sysmcp.parsers.gpu import (
    gpu_memory,
    merge_controllers,
    parse_gpu_clients,
    parse_gpu_details,
    parse_gpu_temperature,
    parse_lspci,
    parse_nvidia_smi,
    parse_system_profiler_controllers,
)

_CONTROLLER_PARSERS = {
    "nvidia-smi": parse_nvidia_smi,
    "lspci": parse_lspci,
    "system_profiler": parse_system_profiler_controllers,
}


class GpuCollector(DomainCollector[GpuStatus, DetailedGpuStatus]):
    """GPU controllers everywhere; Apple GPU telemetry on Darwin.

    A host with no GPU tooling reports an empty controller list.
    """

    domain = "gpu"

    def _basic_fallback(self) -> GpuStatus:
        return GpuStatus()

    async def _collect_basic(self) -> GpuStatus:
        probes = self.probe_set.gpu_controllers()
        results = await self.run(probes)
        controllers: list[GpuController] = []
        for probe, result in zip(probes, results):
            parser = _CONTROLLER_PARSERS.get(probe.name)
            if parser is None or not result.ok:
                continue
            controllers = merge_controllers(controllers, parser(result.text))
        self.logger.debug("Found %d GPU controller(s).", len(controllers))
        return GpuStatus(controllers=controllers)

    async def _collect_detail(self, basic: GpuStatus) -> DetailedGpuStatus:
        ioreg_probes = self.probe_set.gpu_ioreg()
        results = await self.run(
            [
                self.probe_set.gpu_profile(),
                *ioreg_probes,
                self.probe_set.gpu_vram_free(),
                self.probe_set.gpu_temperature(),
                self.probe_set.power(),
                self.probe_set.gpu_clients(),
            ]
        )
        profile = results[0]
        ioreg = "\n".join(r.text for r in results[1: 1 + len(ioreg_probes)])
        vram_free, temperature, power, clients = results[1 + len(ioreg_probes):]

        readout = parse_gpu_details(profile.text, ioreg)
        gpu_temp = parse_gpu_temperature(temperature.text)
        gpu_power = parse_powermetrics(power.text).gpu_power

        details = GpuDetails(
            chipset=readout.chipset,
            total_cores=readout.total_cores,
            metal_support=readout.metal_support,
            utilization=GpuUtilization(
                overall=readout.utilization,
                performance_state=readout.performance_state,
                frequency_mhz=readout.frequency_mhz,
            ),
            memory=gpu_memory(readout, vram_free.text),
            thermal=GpuThermal(temperature=gpu_temp, thermal_state=thermal_state(gpu_temp)),
            power=GpuPower(
                usage=gpu_power or 0.0,
                max_power=readout.max_power,
                efficiency=readout.utilization / gpu_power if gpu_power else None,
            ),
            active_processes=parse_gpu_clients(clients.text),
            throttling=GpuThrottling(
                is_throttling=readout.is_throttling,
                reason=readout.throttle_reason,
                throttle_percent=readout.throttle_percent,
            ),
        )
        self.logger.info(
            "GPU %s at %.1f%% utilization, %.1f C", details.chipset,
            details.utilization.overall, details.thermal.temperature,
        )
        return DetailedGpuStatus(controllers=basic.controllers, details=details)
