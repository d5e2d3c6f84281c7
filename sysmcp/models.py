"""Typed metric records returned by the collectors.

Every record is constructible with no arguments: required numeric fields
default to zero and optional fields to ``None``. ``to_payload`` turns a record
into the JSON-ready dict the tool surface returns, dropping ``None`` fields.
"""
from __future__ import annotations

from dataclasses import dataclass, field, fields, is_dataclass
import re
from typing import Any

_CAMEL_RE = re.compile(r"_([a-z0-9])")


def _camel(name: str) -> str:
    return _CAMEL_RE.sub(lambda m: m.group(1).upper(), name)


def wire_key(key: str) -> dict[str, str]:
    """Field metadata pinning the serialized key (skips camelCase conversion)."""
    return {"key": key}


def to_payload(value: Any) -> Any:
    if is_dataclass(value) and not isinstance(value, type):
        payload: dict[str, Any] = {}
        for item in fields(value):
            raw = getattr(value, item.name)
            if raw is None:
                continue
            payload[item.metadata.get("key", _camel(item.name))] = to_payload(raw)
        return payload
    if isinstance(value, (list, tuple)):
        return [to_payload(v) for v in value]
    if isinstance(value, dict):
        return {k: to_payload(v) for k, v in value.items()}
    return value


# --- CPU ---------------------------------------------------------------------


@dataclass
class CpuTemperatures:
    cpu: float = 0.0
    cores: list[float] = field(default_factory=list)
    max: float = 0.0
    sensors: dict[str, float] = field(default_factory=dict)


@dataclass
class CpuPower:
    package_power: float | None = None
    cpu_power: float | None = None
    gpu_power: float | None = None
    ane_power: float | None = None


@dataclass
class CpuFrequencies:
    base: float = 0.0
    boost: float = 0.0
    current: list[float] = field(default_factory=list)
    avg: float = 0.0


@dataclass
class SchedulerInfo:
    run_queue: int = 0
    context_switches: int = 0
    interrupts: int = 0


@dataclass
class CpuDetails:
    """Positional sysctl readout."""

    physical_cores: int = 0
    logical_cores: int = 0
    performance_cores: int = 0
    efficiency_cores: int = 0
    frequencies: CpuFrequencies = field(default_factory=CpuFrequencies)
    core_usage: list[float] = field(default_factory=list)


@dataclass
class CpuStatus:
    usage: float = 0.0
    cores: int = 0
    speed: float = 0.0
    temperature: float | None = None
    load_average: list[float] = field(default_factory=lambda: [0.0])
    model: str = ""


@dataclass
class DetailedCpuStatus(CpuStatus):
    performance_cores: int | None = None
    efficiency_cores: int | None = None
    physical_cores: int | None = None
    logical_cores: int | None = None
    temperatures: CpuTemperatures | None = None
    power: CpuPower | None = None
    frequencies: CpuFrequencies | None = None
    core_usage: list[float] | None = None
    scheduler: SchedulerInfo | None = None


# --- Memory ------------------------------------------------------------------


@dataclass
class MemoryPageDetails:
    page_size: int = 0
    pages_active: int = 0
    pages_inactive: int = 0
    pages_wired: int = 0
    pages_compressed: int = 0
    pages_free: int = 0
    swap_ins: int = 0
    swap_outs: int = 0


@dataclass
class VmStatBreakdown:
    """GB figures derived from a vm_stat page report."""

    app_memory: float = 0.0
    wired_memory: float = 0.0
    compressed_memory: float = 0.0
    cached_files: float = 0.0
    actual_used: float = 0.0
    actual_free: float = 0.0
    details: MemoryPageDetails = field(default_factory=MemoryPageDetails)


@dataclass
class MemoryStatus:
    total: float = 0.0
    used: float = 0.0
    free: float = 0.0
    usage_percent: float = 0.0
    available: float = 0.0
    swap_total: float = 0.0
    swap_used: float = 0.0


@dataclass
class DetailedMemoryStatus(MemoryStatus):
    app_memory: float | None = None
    wired_memory: float | None = None
    compressed_memory: float | None = None
    cached_files: float | None = None
    memory_pressure: str | None = None
    details: MemoryPageDetails | None = None


# --- GPU ---------------------------------------------------------------------


@dataclass
class GpuController:
    model: str = "Unknown"
    vendor: str = "Unknown"
    vram: float | None = None
    memory_used: float | None = None
    memory_total: float | None = None
    utilization_gpu: float | None = None
    temperature_gpu: float | None = None


@dataclass
class GpuUtilization:
    overall: float = 0.0
    performance_state: int = 0
    frequency_mhz: float | None = field(default=None, metadata=wire_key("frequencyMHz"))


@dataclass
class GpuMemory:
    total_mb: int = field(default=0, metadata=wire_key("totalMB"))
    used_mb: int = field(default=0, metadata=wire_key("usedMB"))
    free_mb: int = field(default=0, metadata=wire_key("freeMB"))
    cached_mb: int | None = field(default=None, metadata=wire_key("cachedMB"))
    utilization_percent: int = 0
    total_utilization_percent: int | None = None
    bandwidth: float | None = None


@dataclass
class GpuThermal:
    temperature: float = 0.0
    thermal_state: str | None = None
    fan_speed: float | None = None


@dataclass
class GpuPower:
    usage: float = 0.0
    max_power: float | None = None
    efficiency: float | None = None


@dataclass
class GpuClient:
    pid: int = 0
    name: str = ""
    command_queue_count: int = 0
    accumulated_gpu_time: int = 0
    api: str = "Metal"


@dataclass
class GpuThrottling:
    is_throttling: bool = False
    reason: str | None = None
    throttle_percent: float | None = None


@dataclass
class GpuDetails:
    chipset: str = "Unknown"
    total_cores: int = 0
    metal_support: str = "Unknown"
    utilization: GpuUtilization = field(default_factory=GpuUtilization)
    memory: GpuMemory = field(default_factory=GpuMemory)
    thermal: GpuThermal = field(default_factory=GpuThermal)
    power: GpuPower = field(default_factory=GpuPower)
    active_processes: list[GpuClient] | None = None
    throttling: GpuThrottling | None = None


@dataclass
class GpuStatus:
    controllers: list[GpuController] = field(default_factory=list)


@dataclass
class DetailedGpuStatus(GpuStatus):
    details: GpuDetails | None = None


# --- Network -----------------------------------------------------------------


@dataclass
class NetworkInterface:
    iface: str = ""
    ip4: str = ""
    ip6: str = ""
    mac: str = ""
    speed: float = 0
    operstate: str = "unknown"


@dataclass
class NetworkStats:
    iface: str = ""
    rx_bytes: int = field(default=0, metadata=wire_key("rx_bytes"))
    tx_bytes: int = field(default=0, metadata=wire_key("tx_bytes"))
    rx_sec: float = field(default=0.0, metadata=wire_key("rx_sec"))
    tx_sec: float = field(default=0.0, metadata=wire_key("tx_sec"))


@dataclass
class Bandwidth:
    download: float = 0.0
    upload: float = 0.0
    total: float = 0.0


@dataclass
class BandwidthSample:
    timestamp: int = 0
    download_mbps: float = 0.0
    upload_mbps: float = 0.0
    total_mbps: float = 0.0


@dataclass
class BandwidthPeaks:
    max_download: float = 0.0
    max_upload: float = 0.0
    avg_download: float = 0.0
    avg_upload: float = 0.0


@dataclass
class RealTimeStats:
    active_interface: str = "unknown"
    current_bandwidth: Bandwidth = field(default_factory=Bandwidth)
    history: list[BandwidthSample] = field(default_factory=list)
    peaks: BandwidthPeaks = field(default_factory=BandwidthPeaks)


@dataclass
class Connection:
    pid: int = 0
    process_name: str = "Unknown"
    local_address: str = ""
    remote_address: str = ""
    bytes_in: int = 0
    bytes_out: int = 0
    state: str = ""
    protocol: str = ""


@dataclass
class ProtocolCounters:
    connections: int = 0
    bytes_in: int = 0
    bytes_out: int = 0


@dataclass
class ProtocolStats:
    tcp: ProtocolCounters = field(default_factory=ProtocolCounters)
    udp: ProtocolCounters = field(default_factory=ProtocolCounters)
    other: ProtocolCounters = field(default_factory=ProtocolCounters)


@dataclass
class ConnectionAnalysis:
    active_connections: int = 0
    established_connections: int = 0
    listening_ports: int = 0
    top_connections: list[Connection] = field(default_factory=list)
    protocol_stats: ProtocolStats = field(default_factory=ProtocolStats)


@dataclass
class WifiDetails:
    ssid: str = "Unknown"
    signal_strength: int = 0
    signal_quality: int = 0
    channel: int = 0
    frequency: int = 0
    link_speed: int = 0
    security: str = "Unknown"
    transmit_rate: int = 0
    receive_rate: int = 0


@dataclass
class QualityMetrics:
    latency: float = 0.0
    jitter: float = 0.0
    packet_loss: float = 100.0
    bandwidth: float = 0.0
    dns_resolution_time: float = 0.0


@dataclass
class PacketCounters:
    rx_packets: int = 0
    tx_packets: int = 0
    rx_errors: int = 0
    tx_errors: int = 0
    rx_dropped: int = 0
    tx_dropped: int = 0


@dataclass
class Throughput:
    current_rx: float = 0.0
    current_tx: float = 0.0
    avg_rx: float = 0.0
    avg_tx: float = 0.0


@dataclass
class InterfaceDetail:
    iface: str = ""
    type: str = "unknown"
    mtu: int = 1500
    duplex: str = "full"
    carrier: bool = False
    packets: PacketCounters = field(default_factory=PacketCounters)
    throughput: Throughput = field(default_factory=Throughput)


@dataclass
class NetworkStatus:
    interfaces: list[NetworkInterface] = field(default_factory=list)
    stats: list[NetworkStats] = field(default_factory=list)


@dataclass
class DetailedNetworkStatus(NetworkStatus):
    real_time_stats: RealTimeStats | None = None
    connection_analysis: ConnectionAnalysis | None = None
    wifi_details: WifiDetails | None = None
    quality_metrics: QualityMetrics | None = None
    interface_details: list[InterfaceDetail] | None = None


# --- Disk --------------------------------------------------------------------


@dataclass
class DiskEntry:
    device: str = ""
    type: str = ""
    size: float = 0.0
    used: float = 0.0
    available: float = 0.0
    usage_percent: float = 0.0
    mount: str = ""


@dataclass
class DiskIo:
    reads: int = 0
    writes: int = 0
    read_bytes: int = 0
    write_bytes: int = 0


@dataclass
class DiskStatus:
    disks: list[DiskEntry] = field(default_factory=list)
    io: DiskIo = field(default_factory=DiskIo)


# --- Processes ---------------------------------------------------------------


@dataclass
class ProcessInfo:
    pid: int = 0
    name: str = ""
    cpu: float = 0.0
    memory: float = 0.0
    memory_percent: float = 0.0


@dataclass
class ProcessSummary:
    total_processes: int = 0
    running_processes: int = 0
    sleeping_processes: int = 0
    zombie_processes: int = 0
    total_threads: int = 0


@dataclass
class MemoryDetails:
    rss: int = 0
    vsz: int = 0
    shared: int = 0
    private: int = 0


@dataclass
class TimeInfo:
    cpu_time: str = "0:00.00"
    start_time: int = 0
    run_time: float = 0.0


@dataclass
class ProcessResources:
    threads: int = 1
    file_descriptors: int = 0
    open_files: int = 0
    ports: int = 0


@dataclass
class ProcessState:
    state: str = "unknown"
    priority: int = 0
    nice: int = 0
    context_switches: int = 0


@dataclass
class ProcessDetail:
    pid: int = 0
    ppid: int = 0
    name: str = ""
    command: str = ""
    user: str = "unknown"
    cpu: float = 0.0
    memory: float = 0.0
    memory_percent: float = 0.0
    memory_details: MemoryDetails = field(default_factory=MemoryDetails)
    time_info: TimeInfo = field(default_factory=TimeInfo)
    resources: ProcessResources = field(default_factory=ProcessResources)
    status: ProcessState = field(default_factory=ProcessState)


@dataclass
class MemoryRanked:
    pid: int = 0
    name: str = ""
    memory: float = 0.0
    memory_percent: float = 0.0
    cpu: float = 0.0
    user: str = "unknown"


@dataclass
class DescriptorRanked:
    pid: int = 0
    name: str = ""
    file_descriptors: int = 0
    open_files: int = 0
    user: str = "unknown"


@dataclass
class TopProcesses:
    by_cpu: list[ProcessDetail] = field(default_factory=list)
    by_memory: list[MemoryRanked] = field(default_factory=list)
    by_file_descriptors: list[DescriptorRanked] = field(default_factory=list)


@dataclass
class ChildProcess:
    pid: int = 0
    name: str = ""
    cpu: float = 0.0
    memory: float = 0.0


@dataclass
class ParentProcess:
    pid: int = 0
    name: str = ""
    child_count: int = 0
    total_cpu_usage: float = 0.0
    total_memory_usage: float = 0.0
    children: list[ChildProcess] = field(default_factory=list)


@dataclass
class ProcessTree:
    top_parents: list[ParentProcess] = field(default_factory=list)


@dataclass
class CriticalService:
    name: str = ""
    pid: int = 0
    status: str = "running"
    cpu: float = 0.0
    memory: float = 0.0
    restarts: int = 0


@dataclass
class HeavyService:
    name: str = ""
    pid: int = 0
    cpu: float = 0.0
    memory: float = 0.0
    impact: str = "low"


@dataclass
class SystemServices:
    critical_services: list[CriticalService] = field(default_factory=list)
    heavy_services: list[HeavyService] = field(default_factory=list)


@dataclass
class RootProcess:
    pid: int = 0
    name: str = ""
    command: str = ""
    cpu: float = 0.0
    memory: float = 0.0


@dataclass
class SuspiciousProcess:
    pid: int = 0
    name: str = ""
    reason: str = ""
    cpu: float = 0.0
    memory: float = 0.0
    file_descriptors: int = 0


@dataclass
class SecurityAnalysis:
    root_processes: list[RootProcess] = field(default_factory=list)
    suspicious_processes: list[SuspiciousProcess] = field(default_factory=list)


@dataclass
class CpuBottleneck:
    pid: int = 0
    name: str = ""
    cpu: float = 0.0
    impact: int = 0
    recommendation: str = ""


@dataclass
class MemoryBottleneck:
    pid: int = 0
    name: str = ""
    memory: float = 0.0
    memory_percent: float = 0.0
    impact: int = 0
    recommendation: str = ""


@dataclass
class IoIntensiveProcess:
    pid: int = 0
    name: str = ""
    file_descriptors: int = 0
    disk_reads: int = 0
    disk_writes: int = 0
    network_connections: int = 0


@dataclass
class PerformanceImpact:
    cpu_bottlenecks: list[CpuBottleneck] = field(default_factory=list)
    memory_bottlenecks: list[MemoryBottleneck] = field(default_factory=list)
    io_intensive_processes: list[IoIntensiveProcess] = field(default_factory=list)


@dataclass
class DetailedProcessStatus:
    summary: ProcessSummary = field(default_factory=ProcessSummary)
    top_processes: TopProcesses = field(default_factory=TopProcesses)
    process_tree: ProcessTree | None = None
    system_services: SystemServices | None = None
    security_analysis: SecurityAnalysis | None = None
    performance_impact: PerformanceImpact | None = None


# --- Overview ----------------------------------------------------------------


@dataclass
class Analysis:
    performance: str = "excellent"
    score: int = 100
    bottlenecks: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)
    timestamp: int = 0


@dataclass
class SystemOverview:
    timestamp: int = 0
    cpu: CpuStatus = field(default_factory=CpuStatus)
    memory: MemoryStatus = field(default_factory=MemoryStatus)
    gpu: GpuStatus = field(default_factory=GpuStatus)
    network: NetworkStatus = field(default_factory=NetworkStatus)
    disk: DiskStatus = field(default_factory=DiskStatus)
    processes: list[ProcessInfo] = field(default_factory=list)
    analysis: Analysis | None = None
