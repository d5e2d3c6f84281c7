"""Per-domain collectors built on :class:`DomainCollector`."""
from sysmcp.collectors.base import DomainCollector
from sysmcp.collectors.cpu import CpuCollector
from sysmcp.collectors.disk import DiskCollector
from sysmcp.collectors.gpu import GpuCollector
from sysmcp.collectors.memory import MemoryCollector
from sysmcp.collectors.network import NetworkCollector
from sysmcp.collectors.process import ProcessCollector

__all__ = [
    "CpuCollector",
    "DiskCollector",
    "DomainCollector",
    "GpuCollector",
    "MemoryCollector",
    "NetworkCollector",
    "ProcessCollector",
]
