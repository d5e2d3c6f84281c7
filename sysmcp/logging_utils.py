from __future__ import annotations

from contextlib import contextmanager
import logging
import sys
import time
from typing import Iterator

from colorlog import ColoredFormatter

TRACE_LEVEL = 5


def _trace(self: logging.Logger, message: str, *args: object, **kwargs: object) -> None:
    if self.isEnabledFor(TRACE_LEVEL):
        self._log(TRACE_LEVEL, message, args, **kwargs)


def configure_logging(level: int) -> None:
    logging.addLevelName(TRACE_LEVEL, "TRACE")
    setattr(logging.Logger, "trace", _trace)
    formatter = ColoredFormatter(
        "%(log_color)s%(asctime)s %(levelname)s %(name)s %(message)s",
        log_colors={
            "TRACE": "cyan",
            "DEBUG": "blue",
            "INFO": "green",
            "WARNING": "yellow",
            "ERROR": "red",
            "CRITICAL": "red,bg_white",
        },
    )
    # stdout carries the MCP stdio transport
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)
    logging.basicConfig(level=level, handlers=[handler], force=True)


def resolve_log_level(verbosity: int, fallback: str) -> int:
    if verbosity >= 2:
        return TRACE_LEVEL
    if verbosity == 1:
        return logging.DEBUG
    return logging._nameToLevel.get(fallback.upper(), logging.INFO)


@contextmanager
def log_duration(logger: logging.Logger, operation: str) -> Iterator[None]:
    """Log how long the wrapped block took, whether or not it raised."""
    start = time.monotonic()
    try:
        yield
    finally:
        elapsed_ms = int((time.monotonic() - start) * 1000)
        logger.debug("%s completed in %d ms", operation, elapsed_ms)
