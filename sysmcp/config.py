from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
import configparser

DEFAULT_AIRPORT_PATH = (
    "/System/Library/PrivateFrameworks/Apple80211.framework"
    "/Versions/Current/Resources/airport"
)


@dataclass(frozen=True)
class ProbeConfig:
    default_timeout_ms: int = 5000
    sensor_timeout_ms: int = 3000
    netstat_timeout_ms: int = 5000
    ps_timeout_ms: int = 10000
    powermetrics_timeout_ms: int = 5000
    ping_timeout_ms: int = 8000
    smctemp_path: str = "smctemp"
    powermetrics_path: str = "powermetrics"
    nvidia_smi_path: str = "nvidia-smi"
    airport_path: str = DEFAULT_AIRPORT_PATH
    ping_host: str = "8.8.8.8"


@dataclass(frozen=True)
class SamplingConfig:
    cpu_interval_s: float = 0.5
    network_interval_s: float = 0.5


@dataclass(frozen=True)
class ServerConfig:
    name: str = "sysmcp-server"
    transport: str = "stdio"


@dataclass(frozen=True)
class AppConfig:
    probes: ProbeConfig = field(default_factory=ProbeConfig)
    sampling: SamplingConfig = field(default_factory=SamplingConfig)
    server: ServerConfig = field(default_factory=ServerConfig)


def _get_optional(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value if value else None


def _get_path(parser: configparser.ConfigParser, option: str, fallback: str) -> str:
    # Blank values keep the default command name
    return _get_optional(parser.get("probes", option, fallback=None)) or fallback


def load_config(path: str | Path | None = None) -> AppConfig:
    if path is None:
        return AppConfig()

    parser = configparser.ConfigParser()
    read_files = parser.read(path)
    if not read_files:
        raise FileNotFoundError(f"Config file not found: {path}")

    defaults = ProbeConfig()
    # Use parser.getint/get with fallback to handle missing sections
    probes = ProbeConfig(
        default_timeout_ms=parser.getint(
            "probes", "default_timeout_ms", fallback=defaults.default_timeout_ms
        ),
        sensor_timeout_ms=parser.getint(
            "probes", "sensor_timeout_ms", fallback=defaults.sensor_timeout_ms
        ),
        netstat_timeout_ms=parser.getint(
            "probes", "netstat_timeout_ms", fallback=defaults.netstat_timeout_ms
        ),
        ps_timeout_ms=parser.getint("probes", "ps_timeout_ms", fallback=defaults.ps_timeout_ms),
        powermetrics_timeout_ms=parser.getint(
            "probes", "powermetrics_timeout_ms", fallback=defaults.powermetrics_timeout_ms
        ),
        ping_timeout_ms=parser.getint(
            "probes", "ping_timeout_ms", fallback=defaults.ping_timeout_ms
        ),
        smctemp_path=_get_path(parser, "smctemp_path", defaults.smctemp_path),
        powermetrics_path=_get_path(parser, "powermetrics_path", defaults.powermetrics_path),
        nvidia_smi_path=_get_path(parser, "nvidia_smi_path", defaults.nvidia_smi_path),
        airport_path=_get_path(parser, "airport_path", defaults.airport_path),
        ping_host=_get_path(parser, "ping_host", defaults.ping_host),
    )

    sampling = SamplingConfig(
        cpu_interval_s=parser.getfloat("sampling", "cpu_interval_s", fallback=0.5),
        network_interval_s=parser.getfloat("sampling", "network_interval_s", fallback=0.5),
    )

    server = ServerConfig(
        name=parser.get("server", "name", fallback="sysmcp-server"),
        transport=parser.get("server", "transport", fallback="stdio"),
    )

    return AppConfig(probes=probes, sampling=sampling, server=server)
