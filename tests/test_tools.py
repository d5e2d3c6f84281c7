"""Tests for the tool boundary and MCP registration."""
from __future__ import annotations

import asyncio
import json
from unittest.mock import AsyncMock, Mock

import pytest

from sysmcp.exceptions import CollectionError
from sysmcp.models import CpuStatus, ProcessInfo, SystemOverview
from sysmcp.server import build_server
from sysmcp.tools import ToolBoundary, ToolResult


@pytest.fixture
def boundary():
    """ToolBoundary over a mocked monitor."""
    monitor = Mock()
    monitor.cpu.basic = AsyncMock(return_value=CpuStatus(usage=1.5, cores=4))
    monitor.memory.basic = AsyncMock(side_effect=CollectionError("memory", "vm failed"))
    monitor.processes.process_list = AsyncMock(
        return_value=[ProcessInfo(pid=7, name="a", cpu=2.0, memory=3.0, memory_percent=0.5)]
    )
    monitor.collect_overview = AsyncMock(return_value=SystemOverview(timestamp=5))
    return ToolBoundary(monitor)


class TestToolResult:
    """Tests for ToolResult rendering."""

    def test_success_text(self):
        """Title heading followed by indented JSON."""
        result = ToolResult(ok=True, title="CPU Status", payload={"usage": 1})
        assert result.to_text() == "## CPU Status\n\n" + json.dumps({"usage": 1}, indent=2)

    def test_error_text(self):
        """Errors render as a single line."""
        assert ToolResult(ok=False, error="boom").to_text() == "Error: boom"


class TestToolBoundary:
    """Tests for ToolBoundary.call."""

    def test_names(self, boundary):
        """Twelve operations are exposed."""
        assert len(boundary.names) == 12
        assert "get_detailed_process_status" in boundary.names

    def test_success_payload(self, boundary):
        """Records are serialized with camelCase keys and no null fields."""
        result = asyncio.run(boundary.call("get_cpu_status"))
        assert result.ok is True
        assert result.title == "CPU Status"
        assert result.payload == {
            "usage": 1.5,
            "cores": 4,
            "speed": 0.0,
            "loadAverage": [0.0],
            "model": "",
        }

    def test_collection_error_becomes_result(self, boundary):
        """Failures never escape call()."""
        result = asyncio.run(boundary.call("get_memory_status"))
        assert result.ok is False
        assert result.error == "memory collection failed: vm failed"
        assert result.to_text() == "Error: memory collection failed: vm failed"

    def test_unknown_tool(self, boundary):
        """Unknown names are reported, not raised."""
        result = asyncio.run(boundary.call("get_everything"))
        assert result.ok is False
        assert result.error == "Unknown tool: get_everything"

    def test_process_list_arguments(self, boundary):
        """sort_by and limit reach the collector; the title names them."""
        result = asyncio.run(
            boundary.call("get_process_list", {"sort_by": "memory", "limit": "5"})
        )
        assert result.title == "Process List (top 5, by memory)"
        assert result.payload[0]["memoryPercent"] == 0.5
        boundary.monitor.processes.process_list.assert_awaited_once_with("memory", 5)

    def test_bad_arguments(self, boundary):
        """Unexpected arguments produce an error result."""
        result = asyncio.run(boundary.call("get_cpu_status", {"verbose": True}))
        assert result.ok is False

    def test_overview_analysis_flag(self, boundary):
        """include_analysis is forwarded to the monitor."""
        result = asyncio.run(boundary.call("get_system_overview", {"include_analysis": False}))
        assert result.ok is True
        assert result.payload["timestamp"] == 5
        assert "analysis" not in result.payload
        boundary.monitor.collect_overview.assert_awaited_once_with(False)


class TestServer:
    """Tests for FastMCP registration."""

    def test_registers_every_operation(self, boundary):
        """Every boundary operation is an MCP tool."""
        app = build_server(boundary)
        tools = asyncio.run(app.list_tools())
        assert sorted(tool.name for tool in tools) == sorted(boundary.names)
