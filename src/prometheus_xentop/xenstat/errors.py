"""Errors raised while talking to the hypervisor statistics interface."""

from __future__ import annotations


class XenStatError(Exception):
    """Base class for all statistics client errors."""


class CannotConnect(XenStatError):
    """The statistics interface is not available (startup or reconnect)."""

    def __init__(self, message: str = "cannot connect to xend") -> None:
        super().__init__(message)


class Disconnected(XenStatError):
    """A previously live connection is gone and must be re-established.

    The client that raised this is unusable; callers create a new one.
    """

    def __init__(self, message: str = "not connected to xend") -> None:
        super().__init__(message)


class DeviceReadFailure(XenStatError):
    """Counters of a single block or network device could not be read."""

    def __init__(self, domain: str, kind: str, index: int, detail: str) -> None:
        self.domain = domain
        self.kind = kind
        self.index = index
        super().__init__(f"{domain}: could not read {kind} {index}: {detail}")
