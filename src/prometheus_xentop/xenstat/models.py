"""Snapshot model produced by one poll of the hypervisor."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Iterable

SECTOR_SIZE = 512
NANOSECONDS_PER_SECOND = 1_000_000_000


class DomainState(str, enum.Enum):
    RUNNING = "running"
    BLOCKED = "blocked"
    PAUSED = "paused"
    SHUTDOWN = "shutdown"
    CRASHED = "crashed"
    DYING = "dying"
    UNKNOWN = "unknown"


# Flags are applied in this order and the last one set wins.
STATE_PRECEDENCE: tuple[DomainState, ...] = (
    DomainState.RUNNING,
    DomainState.PAUSED,
    DomainState.CRASHED,
    DomainState.BLOCKED,
    DomainState.SHUTDOWN,
    DomainState.DYING,
)


def resolve_state(active: Iterable[DomainState]) -> DomainState:
    """Collapse the set of raised state flags into a single state.

    The hypervisor may report several flags at once.  Walking
    :data:`STATE_PRECEDENCE` and keeping the last raised flag means
    ``dying`` overrides everything and ``running`` only survives alone.
    """
    raised = set(active)
    state = DomainState.UNKNOWN
    for candidate in STATE_PRECEDENCE:
        if candidate in raised:
            state = candidate
    return state


@dataclass(frozen=True)
class BlockDeviceSnapshot:
    """Counters of one virtual block device (VBD)."""

    major: int
    minor: int
    out_of_requests: int
    read_requests: int
    write_requests: int
    bytes_read: int
    bytes_written: int

    @classmethod
    def from_sectors(
        cls,
        *,
        major: int,
        minor: int,
        out_of_requests: int,
        read_requests: int,
        write_requests: int,
        sectors_read: int,
        sectors_written: int,
    ) -> BlockDeviceSnapshot:
        return cls(
            major=major,
            minor=minor,
            out_of_requests=out_of_requests,
            read_requests=read_requests,
            write_requests=write_requests,
            bytes_read=sectors_read * SECTOR_SIZE,
            bytes_written=sectors_written * SECTOR_SIZE,
        )


@dataclass(frozen=True)
class NetworkDeviceSnapshot:
    """Byte counters of one virtual network interface."""

    bytes_transmitted: int
    bytes_received: int


@dataclass(frozen=True)
class DomainSnapshot:
    """One domain as seen by a single poll.

    Devices are kept in the order the hypervisor enumerated them.  The
    position is *not* a stable identity: after a hot-plug, index 0 may be
    a different disk than it was in the previous poll.
    """

    name: str
    state: DomainState
    cpu_seconds: float
    vcpu_count: int
    memory_bytes: int
    max_memory_bytes: int
    block_devices: tuple[BlockDeviceSnapshot, ...] = field(default_factory=tuple)
    network_devices: tuple[NetworkDeviceSnapshot, ...] = field(default_factory=tuple)
    # Device counts as reported by the hypervisor; unreadable devices are
    # counted here even though they are missing from the tuples above.
    vbd_count: int | None = None
    nic_count: int | None = None

    def __post_init__(self) -> None:
        if self.vbd_count is None:
            object.__setattr__(self, "vbd_count", len(self.block_devices))
        if self.nic_count is None:
            object.__setattr__(self, "nic_count", len(self.network_devices))


def cpu_seconds_from_ns(cpu_ns: int) -> float:
    return cpu_ns / NANOSECONDS_PER_SECOND
