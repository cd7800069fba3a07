"""In-memory statistics backend for tests and local experiments.

Domains are described with plain dictionaries::

    backend = FakeBackend([
        {
            "name": "vm1",
            "flags": ["running"],
            "cpu_ns": 2_000_000_000,
            "vbds": [{"major": 202, "minor": 0, "rd": 10, "wr": 5,
                      "rsect": 100, "wsect": 50}],
            "nics": [{"tx": 1000, "rx": 2000}],
        },
    ])

A device entry of ``None`` makes that device lookup fail.  Any counter may
be set negative to simulate an unreadable value.
"""

from __future__ import annotations

import itertools
from typing import Any

from .backend import StatsBackend


class FakeBackend(StatsBackend):
    """Scriptable :class:`StatsBackend` with failure injection."""

    def __init__(self, domains: list[dict[str, Any]] | None = None) -> None:
        self.domains: list[dict[str, Any]] = list(domains or [])
        self.fail_init = False
        self.fail_node = False
        self.fail_domain_index: int | None = None
        self.init_calls = 0
        self.open_handles: set[int] = set()
        self.live_nodes: set[int] = set()
        self._ids = itertools.count(1)

    def set_domains(self, domains: list[dict[str, Any]]) -> None:
        self.domains = list(domains)

    # -- connection and node ------------------------------------------------

    def init(self) -> Any | None:
        self.init_calls += 1
        if self.fail_init:
            return None
        handle = next(self._ids)
        self.open_handles.add(handle)
        return handle

    def uninit(self, handle: Any) -> None:
        self.open_handles.discard(handle)

    def get_node(self, handle: Any) -> Any | None:
        if self.fail_node or handle not in self.open_handles:
            return None
        node = next(self._ids)
        self.live_nodes.add(node)
        return {"id": node, "domains": [dict(d) for d in self.domains]}

    def free_node(self, node: Any) -> None:
        self.live_nodes.discard(node["id"])

    def node_num_domains(self, node: Any) -> int:
        return len(node["domains"])

    def node_domain_by_index(self, node: Any, index: int) -> Any | None:
        if index == self.fail_domain_index:
            return None
        if 0 <= index < len(node["domains"]):
            return node["domains"][index]
        return None

    # -- domain -------------------------------------------------------------

    def domain_name(self, domain: Any) -> str | None:
        return domain.get("name")

    def _flag(self, domain: Any, flag: str) -> bool:
        return flag in domain.get("flags", ())

    def domain_running(self, domain: Any) -> bool:
        return self._flag(domain, "running")

    def domain_blocked(self, domain: Any) -> bool:
        return self._flag(domain, "blocked")

    def domain_paused(self, domain: Any) -> bool:
        return self._flag(domain, "paused")

    def domain_shutdown(self, domain: Any) -> bool:
        return self._flag(domain, "shutdown")

    def domain_crashed(self, domain: Any) -> bool:
        return self._flag(domain, "crashed")

    def domain_dying(self, domain: Any) -> bool:
        return self._flag(domain, "dying")

    def domain_cpu_ns(self, domain: Any) -> int:
        return domain.get("cpu_ns", 0)

    def domain_num_vcpus(self, domain: Any) -> int:
        return domain.get("vcpus", 1)

    def domain_cur_mem(self, domain: Any) -> int:
        return domain.get("mem", 0)

    def domain_max_mem(self, domain: Any) -> int:
        return domain.get("max_mem", 0)

    def domain_num_vbds(self, domain: Any) -> int:
        return domain.get("num_vbds", len(domain.get("vbds", ())))

    def domain_num_networks(self, domain: Any) -> int:
        return domain.get("num_nics", len(domain.get("nics", ())))

    # -- block devices ------------------------------------------------------

    def domain_vbd(self, domain: Any, index: int) -> Any | None:
        vbds = domain.get("vbds", ())
        if 0 <= index < len(vbds):
            return vbds[index]
        return None

    def vbd_dev(self, vbd: Any) -> int:
        if "dev" in vbd:
            return vbd["dev"]
        return (vbd.get("major", 0) << 8) | vbd.get("minor", 0)

    def vbd_oo_reqs(self, vbd: Any) -> int:
        return vbd.get("oo", 0)

    def vbd_rd_reqs(self, vbd: Any) -> int:
        return vbd.get("rd", 0)

    def vbd_wr_reqs(self, vbd: Any) -> int:
        return vbd.get("wr", 0)

    def vbd_rd_sects(self, vbd: Any) -> int:
        return vbd.get("rsect", 0)

    def vbd_wr_sects(self, vbd: Any) -> int:
        return vbd.get("wsect", 0)

    # -- network devices ----------------------------------------------------

    def domain_network(self, domain: Any, index: int) -> Any | None:
        nics = domain.get("nics", ())
        if 0 <= index < len(nics):
            return nics[index]
        return None

    def network_tbytes(self, network: Any) -> int:
        return network.get("tx", 0)

    def network_rbytes(self, network: Any) -> int:
        return network.get("rx", 0)
