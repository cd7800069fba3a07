"""Abstract interface onto the hypervisor statistics library.

The accessors mirror libxenstat one to one.  Handles, nodes, domains and
devices are opaque objects owned by the backend.  Every accessor signals
failure by returning ``None`` (for lookups) or a negative number (for
counts and counters); :class:`~prometheus_xentop.xenstat.client.XenStats`
turns those sentinels into errors.

The ctypes binding declares every counter unsigned and can only produce
the ``None`` sentinel; negative values come from other backends such as
:class:`~prometheus_xentop.xenstat.for_testing.FakeBackend`.
"""

from __future__ import annotations

import abc
from typing import Any


class StatsBackend(abc.ABC):
    """Capability consumed by the statistics client."""

    # -- connection and node ------------------------------------------------

    @abc.abstractmethod
    def init(self) -> Any | None:
        """Open a handle onto the statistics interface."""

    @abc.abstractmethod
    def uninit(self, handle: Any) -> None:
        """Release a handle returned by :meth:`init`."""

    @abc.abstractmethod
    def get_node(self, handle: Any) -> Any | None:
        """Take a full statistics snapshot of the host."""

    @abc.abstractmethod
    def free_node(self, node: Any) -> None:
        """Release a node returned by :meth:`get_node`."""

    @abc.abstractmethod
    def node_num_domains(self, node: Any) -> int: ...

    @abc.abstractmethod
    def node_domain_by_index(self, node: Any, index: int) -> Any | None: ...

    # -- domain -------------------------------------------------------------

    @abc.abstractmethod
    def domain_name(self, domain: Any) -> str | None: ...

    @abc.abstractmethod
    def domain_running(self, domain: Any) -> bool: ...

    @abc.abstractmethod
    def domain_blocked(self, domain: Any) -> bool: ...

    @abc.abstractmethod
    def domain_paused(self, domain: Any) -> bool: ...

    @abc.abstractmethod
    def domain_shutdown(self, domain: Any) -> bool: ...

    @abc.abstractmethod
    def domain_crashed(self, domain: Any) -> bool: ...

    @abc.abstractmethod
    def domain_dying(self, domain: Any) -> bool: ...

    @abc.abstractmethod
    def domain_cpu_ns(self, domain: Any) -> int: ...

    @abc.abstractmethod
    def domain_num_vcpus(self, domain: Any) -> int: ...

    @abc.abstractmethod
    def domain_cur_mem(self, domain: Any) -> int: ...

    @abc.abstractmethod
    def domain_max_mem(self, domain: Any) -> int: ...

    @abc.abstractmethod
    def domain_num_vbds(self, domain: Any) -> int: ...

    @abc.abstractmethod
    def domain_num_networks(self, domain: Any) -> int: ...

    # -- block devices ------------------------------------------------------

    @abc.abstractmethod
    def domain_vbd(self, domain: Any, index: int) -> Any | None: ...

    @abc.abstractmethod
    def vbd_dev(self, vbd: Any) -> int:
        """Packed device number, major in bits 8-15 and minor in bits 0-7."""

    @abc.abstractmethod
    def vbd_oo_reqs(self, vbd: Any) -> int: ...

    @abc.abstractmethod
    def vbd_rd_reqs(self, vbd: Any) -> int: ...

    @abc.abstractmethod
    def vbd_wr_reqs(self, vbd: Any) -> int: ...

    @abc.abstractmethod
    def vbd_rd_sects(self, vbd: Any) -> int: ...

    @abc.abstractmethod
    def vbd_wr_sects(self, vbd: Any) -> int: ...

    # -- network devices ----------------------------------------------------

    @abc.abstractmethod
    def domain_network(self, domain: Any, index: int) -> Any | None: ...

    @abc.abstractmethod
    def network_tbytes(self, network: Any) -> int: ...

    @abc.abstractmethod
    def network_rbytes(self, network: Any) -> int: ...
