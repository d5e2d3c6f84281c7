"""sysmcp host telemetry MCP server."""

from sysmcp.aggregator import SystemMonitor, analyze
from sysmcp.config import AppConfig, load_config
from sysmcp.exceptions import CollectionError, SysmcpError
from sysmcp.schema import validate_payload
from sysmcp.tools import ToolBoundary, ToolResult

__all__ = [
    "AppConfig",
    "CollectionError",
    "SysmcpError",
    "SystemMonitor",
    "ToolBoundary",
    "ToolResult",
    "analyze",
    "load_config",
    "validate_payload",
]
