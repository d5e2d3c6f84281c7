"""Basic/detailed collection state machine shared by every domain."""
from __future__ import annotations

from dataclasses import fields
import logging
from typing import Any, Generic, Sequence, TypeVar

from sysmcp.config import AppConfig
from sysmcp.exceptions import CollectionError
from sysmcp.logging_utils import log_duration
from sysmcp.platforms import PlatformProbeSet
from sysmcp.probes import Probe, ProbeResult, Runner, run_probe, run_probes

BasicT = TypeVar("BasicT")
DetailedT = TypeVar("DetailedT")


def extend(basic: Any, detailed_cls: type[DetailedT], **extra: Any) -> DetailedT:
    """Build a detailed record carrying ``basic``'s fields verbatim plus ``extra``."""
    base = {item.name: getattr(basic, item.name) for item in fields(basic)}
    return detailed_cls(**base, **extra)


class DomainCollector(Generic[BasicT, DetailedT]):
    """One domain's two service levels.

    ``basic()`` may raise :class:`CollectionError`; ``detailed()`` only raises
    when ``basic()`` did and the domain has no empty fallback record.
    """

    domain = "generic"
    # False when _collect_detail gathers everything itself and ignores the basic record.
    detail_needs_basic = True

    def __init__(
        self,
        probe_set: PlatformProbeSet,
        runner: Runner | None = None,
        config: AppConfig | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.probe_set = probe_set
        self.runner = runner or run_probe
        self.config = config or AppConfig()
        self.logger = logger or logging.getLogger(self.__class__.__name__)

    @property
    def supports_detail(self) -> bool:
        return self.probe_set.rich

    async def basic(self) -> BasicT:
        try:
            with log_duration(self.logger, f"{self.domain} status"):
                return await self._collect_basic()
        except CollectionError:
            raise
        except Exception as exc:
            self.logger.error("Failed to collect %s status: %s", self.domain, exc)
            raise CollectionError(self.domain, exc) from exc

    async def detailed(self) -> BasicT | DetailedT:
        if self.supports_detail and not self.detail_needs_basic:
            self.logger.info("Collecting detailed %s status.", self.domain)
            try:
                return await self._timed_detail(None)
            except Exception as exc:
                self.logger.warning(
                    "Detailed %s collection failed, returning basic status: %s", self.domain, exc
                )
                return self._degraded(await self._detail_base())

        base = await self._detail_base()
        if not self.supports_detail:
            self.logger.debug(
                "Detailed %s status not available on %s; returning basic status.",
                self.domain,
                self.probe_set.family,
            )
            return self._degraded(base)

        self.logger.info("Collecting detailed %s status.", self.domain)
        try:
            return await self._timed_detail(base)
        except Exception as exc:
            self.logger.warning(
                "Detailed %s collection failed, returning basic status: %s", self.domain, exc
            )
            return self._degraded(base)

    async def _detail_base(self) -> BasicT:
        try:
            return await self.basic()
        except CollectionError:
            fallback = self._basic_fallback()
            if fallback is None:
                raise
            self.logger.warning("Using empty %s status as the detailed base.", self.domain)
            return fallback

    async def _timed_detail(self, base: BasicT | None) -> DetailedT:
        with log_duration(self.logger, f"detailed {self.domain} status"):
            result = await self._collect_detail(base)
        self.logger.info("Detailed %s status collected.", self.domain)
        return result

    async def _collect_basic(self) -> BasicT:
        raise NotImplementedError

    async def _collect_detail(self, basic: BasicT | None) -> DetailedT:
        raise NotImplementedError

    def _basic_fallback(self) -> BasicT | None:
        return None

    def _degraded(self, basic: BasicT) -> BasicT | DetailedT:
        """What ``detailed()`` returns when detail is unavailable or failed."""
        return basic

    async def run(self, probes: Sequence[Probe | None]) -> list[ProbeResult]:
        """Run probes concurrently; ``None`` slots come back as failures."""
        present = [p for p in probes if p is not None]
        results = iter(await run_probes(present, self.runner))
        output = []
        for probe in probes:
            if probe is None:
                output.append(ProbeResult.failure("unsupported on this platform"))
            else:
                result = next(results)
                if not result.ok:
                    self.logger.debug("Probe %s failed: %s", probe.name, result.error)
                output.append(result)
        return output

    async def run_one(self, probe: Probe | None) -> ProbeResult:
        (result,) = await self.run([probe])
        return result
