"""Stateful connection to the hypervisor statistics interface."""

from __future__ import annotations

import logging
import threading
from typing import Any

from .backend import StatsBackend
from .errors import CannotConnect, DeviceReadFailure, Disconnected
from .models import (
    BlockDeviceSnapshot,
    DomainSnapshot,
    DomainState,
    NetworkDeviceSnapshot,
    cpu_seconds_from_ns,
    resolve_state,
)

logger = logging.getLogger(__name__)

_STATE_ACCESSORS: tuple[tuple[DomainState, str], ...] = (
    (DomainState.RUNNING, "domain_running"),
    (DomainState.PAUSED, "domain_paused"),
    (DomainState.CRASHED, "domain_crashed"),
    (DomainState.BLOCKED, "domain_blocked"),
    (DomainState.SHUTDOWN, "domain_shutdown"),
    (DomainState.DYING, "domain_dying"),
)


def _bad(value: Any) -> bool:
    return value is None or value < 0


class XenStats:
    """Connection to the statistics interface of the local hypervisor.

    Obtain one with :meth:`connect` and release it with :meth:`close` (or
    use it as a context manager).  All access to the underlying handle is
    serialized by a per-instance lock, so a single client may be shared
    between concurrent scrapes.

    Once :meth:`poll` raises :class:`Disconnected` the instance is dead:
    its handle has been released and every further poll fails the same
    way.  Recovery is up to the caller, which connects a new client.
    """

    def __init__(self, backend: StatsBackend, handle: Any) -> None:
        self._backend = backend
        self._handle = handle
        self._lock = threading.Lock()

    @classmethod
    def connect(cls, backend: StatsBackend) -> XenStats:
        handle = backend.init()
        if handle is None:
            raise CannotConnect()
        logger.info("Connected to hypervisor statistics interface")
        return cls(backend, handle)

    @property
    def connected(self) -> bool:
        return self._handle is not None

    def close(self) -> None:
        """Release the handle.  Safe to call more than once."""
        with self._lock:
            self._teardown()

    def __enter__(self) -> XenStats:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def _teardown(self) -> None:
        if self._handle is None:
            return
        handle, self._handle = self._handle, None
        self._backend.uninit(handle)

    def poll(self) -> list[DomainSnapshot]:
        """Read a fresh snapshot of every domain on the host.

        Devices whose counters cannot be read are left out of their
        domain.  A failure at node or domain level tears the connection
        down and raises :class:`Disconnected`.
        """
        with self._lock:
            if self._handle is None:
                raise Disconnected()

            node = self._backend.get_node(self._handle)
            if node is None:
                self._teardown()
                raise Disconnected("could not get node statistics")

            try:
                try:
                    return self._read_node(node)
                finally:
                    self._backend.free_node(node)
            except Disconnected:
                self._teardown()
                raise

    # -- readers (called with the lock held) --------------------------------

    def _read_node(self, node: Any) -> list[DomainSnapshot]:
        b = self._backend
        count = b.node_num_domains(node)
        if _bad(count):
            raise Disconnected("could not count domains")

        raw_domains = []
        for i in range(count):
            domain = b.node_domain_by_index(node, i)
            if domain is None:
                raise Disconnected(f"could not get domain {i}")
            raw_domains.append(domain)

        return [self._read_domain(d) for d in raw_domains]

    def _read_domain(self, domain: Any) -> DomainSnapshot:
        b = self._backend
        name = b.domain_name(domain)
        if name is None:
            raise Disconnected("could not read domain name")

        values = {
            "cpu_ns": b.domain_cpu_ns(domain),
            "vcpus": b.domain_num_vcpus(domain),
            "cur_mem": b.domain_cur_mem(domain),
            "max_mem": b.domain_max_mem(domain),
            "num_vbds": b.domain_num_vbds(domain),
            "num_networks": b.domain_num_networks(domain),
        }
        for field_name, value in values.items():
            if _bad(value):
                raise Disconnected(f"{name}: could not read {field_name}")

        state = resolve_state(
            st for st, accessor in _STATE_ACCESSORS if getattr(b, accessor)(domain)
        )

        vbds = []
        for i in range(values["num_vbds"]):
            try:
                vbds.append(self._read_vbd(name, domain, i))
            except DeviceReadFailure as exc:
                logger.warning("Skipping device: %s", exc)

        nics = []
        for i in range(values["num_networks"]):
            try:
                nics.append(self._read_nic(name, domain, i))
            except DeviceReadFailure as exc:
                logger.warning("Skipping device: %s", exc)

        return DomainSnapshot(
            name=name,
            state=state,
            cpu_seconds=cpu_seconds_from_ns(values["cpu_ns"]),
            vcpu_count=values["vcpus"],
            memory_bytes=values["cur_mem"],
            max_memory_bytes=values["max_mem"],
            block_devices=tuple(vbds),
            network_devices=tuple(nics),
            vbd_count=values["num_vbds"],
            nic_count=values["num_networks"],
        )

    def _read_vbd(self, name: str, domain: Any, index: int) -> BlockDeviceSnapshot:
        b = self._backend
        vbd = b.domain_vbd(domain, index)
        if vbd is None:
            raise DeviceReadFailure(name, "vbd", index, "device not found")

        counters = {
            "dev": b.vbd_dev(vbd),
            "oo_reqs": b.vbd_oo_reqs(vbd),
            "rd_reqs": b.vbd_rd_reqs(vbd),
            "wr_reqs": b.vbd_wr_reqs(vbd),
            "rd_sects": b.vbd_rd_sects(vbd),
            "wr_sects": b.vbd_wr_sects(vbd),
        }
        for counter, value in counters.items():
            if _bad(value):
                raise DeviceReadFailure(name, "vbd", index, f"{counter} unreadable")

        dev = counters["dev"]
        return BlockDeviceSnapshot.from_sectors(
            major=(dev >> 8) & 0xFF,
            minor=dev & 0xFF,
            out_of_requests=counters["oo_reqs"],
            read_requests=counters["rd_reqs"],
            write_requests=counters["wr_reqs"],
            sectors_read=counters["rd_sects"],
            sectors_written=counters["wr_sects"],
        )

    def _read_nic(self, name: str, domain: Any, index: int) -> NetworkDeviceSnapshot:
        b = self._backend
        nic = b.domain_network(domain, index)
        if nic is None:
            raise DeviceReadFailure(name, "nic", index, "device not found")

        tx = b.network_tbytes(nic)
        rx = b.network_rbytes(nic)
        if _bad(tx) or _bad(rx):
            raise DeviceReadFailure(name, "nic", index, "byte counters unreadable")
        return NetworkDeviceSnapshot(bytes_transmitted=tx, bytes_received=rx)
