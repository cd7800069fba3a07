"""Tests for the snapshot model."""

import dataclasses

import pytest

from prometheus_xentop.xenstat.models import (
    STATE_PRECEDENCE,
    BlockDeviceSnapshot,
    DomainSnapshot,
    DomainState,
    NetworkDeviceSnapshot,
    cpu_seconds_from_ns,
    resolve_state,
)


def test_cpu_seconds_is_plain_division():
    assert cpu_seconds_from_ns(2_000_000_000) == 2.0
    assert cpu_seconds_from_ns(1_234_567_891) == 1_234_567_891 / 1_000_000_000
    assert cpu_seconds_from_ns(0) == 0.0


def test_block_device_bytes_from_sectors():
    vbd = BlockDeviceSnapshot.from_sectors(
        major=202, minor=0, out_of_requests=0, read_requests=10,
        write_requests=5, sectors_read=100, sectors_written=50,
    )
    assert vbd.bytes_read == 51200
    assert vbd.bytes_written == 25600
    assert vbd.read_requests == 10
    assert vbd.write_requests == 5


def test_resolve_state_single_flag():
    for state in STATE_PRECEDENCE:
        assert resolve_state([state]) is state


def test_resolve_state_no_flags_is_unknown():
    assert resolve_state([]) is DomainState.UNKNOWN


def test_resolve_state_last_flag_wins():
    assert resolve_state([DomainState.RUNNING, DomainState.PAUSED]) is DomainState.PAUSED
    assert resolve_state([DomainState.BLOCKED, DomainState.CRASHED]) is DomainState.BLOCKED
    assert resolve_state([DomainState.SHUTDOWN, DomainState.BLOCKED]) is DomainState.SHUTDOWN
    assert resolve_state(STATE_PRECEDENCE) is DomainState.DYING


def test_domain_device_counts():
    dom = DomainSnapshot(
        name="vm1",
        state=DomainState.RUNNING,
        cpu_seconds=1.0,
        vcpu_count=2,
        memory_bytes=1024,
        max_memory_bytes=2048,
        block_devices=(BlockDeviceSnapshot(202, 0, 0, 0, 0, 0, 0),),
        network_devices=(NetworkDeviceSnapshot(1, 2), NetworkDeviceSnapshot(3, 4)),
    )
    assert dom.vbd_count == 1
    assert dom.nic_count == 2


def test_snapshots_are_immutable():
    dom = DomainSnapshot("vm1", DomainState.RUNNING, 0.0, 1, 0, 0)
    with pytest.raises(dataclasses.FrozenInstanceError):
        dom.name = "other"  # type: ignore[misc]
    assert dom.block_devices == ()
    assert dom.network_devices == ()


def test_domain_device_counts_can_exceed_records():
    dom = DomainSnapshot(
        "vm1", DomainState.RUNNING, 0.0, 1, 0, 0,
        block_devices=(BlockDeviceSnapshot(202, 0, 0, 0, 0, 0, 0),),
        vbd_count=2,
        nic_count=1,
    )
    assert dom.vbd_count == 2
    assert dom.nic_count == 1
