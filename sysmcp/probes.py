"""Run external commands as telemetry probes.

A probe never raises: every failure mode (missing binary, non-zero exit,
timeout) comes back as a ``ProbeResult`` with ``ok=False`` so the owning
parser can fall back to its defaults.
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass
import logging
import os
import signal
import sys
from typing import Awaitable, Callable, Sequence

from sysmcp.logging_utils import TRACE_LEVEL

logger = logging.getLogger(__name__)

# How long to wait for a killed probe to be reaped before abandoning it.
REAP_TIMEOUT_S = 0.5


@dataclass(frozen=True)
class ProbeResult:
    ok: bool
    output: str = ""
    error: str | None = None

    @classmethod
    def failure(cls, error: str) -> ProbeResult:
        return cls(ok=False, output="", error=error)

    @property
    def text(self) -> str:
        """Output when the probe succeeded, otherwise an empty string."""
        return self.output if self.ok else ""


Runner = Callable[[str, int], Awaitable[ProbeResult]]


@dataclass(frozen=True)
class Probe:
    name: str
    command: str
    timeout_ms: int

    async def run(self, runner: Runner | None = None) -> ProbeResult:
        try:
            return await (runner or run_probe)(self.command, self.timeout_ms)
        except Exception as exc:
            # Injected runners must not take siblings down with them
            logger.debug("Probe %s raised: %s", self.name, exc)
            return ProbeResult.failure(str(exc))


def _kill_group(process: asyncio.subprocess.Process) -> None:
    try:
        if sys.platform != "win32":
            os.killpg(process.pid, signal.SIGKILL)
        else:
            process.kill()
    except (ProcessLookupError, PermissionError):
        pass


async def run_probe(command: str, timeout_ms: int) -> ProbeResult:
    timeout_s = max(timeout_ms, 1) / 1000
    try:
        process = await asyncio.create_subprocess_shell(
            command,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            start_new_session=sys.platform != "win32",
        )
    except OSError as exc:
        logger.debug("Probe failed to start (%s): %s", exc, command)
        return ProbeResult.failure(f"spawn failed: {exc}")

    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout_s)
    except asyncio.TimeoutError:
        _kill_group(process)
        try:
            await asyncio.wait_for(process.wait(), REAP_TIMEOUT_S)
        except asyncio.TimeoutError:
            logger.debug("Abandoning unreaped probe pid %s", process.pid)
        logger.debug("Probe timed out after %d ms: %s", timeout_ms, command)
        return ProbeResult.failure(f"timed out after {timeout_ms} ms")

    out_text = stdout.decode("utf-8", errors="replace") if stdout else ""
    if process.returncode != 0:
        err_text = stderr.decode("utf-8", errors="replace").strip() if stderr else ""
        logger.debug("Probe failed (%s): %s", process.returncode, command)
        if err_text:
            logger.log(TRACE_LEVEL, "stderr: %s", err_text)
        detail = f"exit status {process.returncode}"
        return ProbeResult.failure(f"{detail}: {err_text}" if err_text else detail)

    if out_text:
        logger.log(TRACE_LEVEL, "stdout: %s", out_text.strip())
    return ProbeResult(ok=True, output=out_text)


async def run_probes(
    probes: Sequence[Probe], runner: Runner | None = None
) -> list[ProbeResult]:
    """Run probes concurrently; results come back in issue order."""
    if not probes:
        return []
    return list(await asyncio.gather(*(probe.run(runner) for probe in probes)))
