from __future__ import annotations


class SysmcpError(Exception):
    """Base class for errors raised by sysmcp."""


class CollectionError(SysmcpError):
    """A domain's baseline collection failed and has no zero-value substitute."""

    def __init__(self, domain: str, cause: BaseException | str) -> None:
        self.domain = domain
        self.cause = cause
        super().__init__(f"{domain} collection failed: {cause}")
