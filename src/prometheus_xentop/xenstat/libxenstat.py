"""ctypes binding onto the C ``libxenstat`` shared library."""

from __future__ import annotations

import ctypes
import ctypes.util
import logging
import threading
from typing import Any

from .backend import StatsBackend

logger = logging.getLogger(__name__)

XENSTAT_VCPU = 0x1
XENSTAT_NETWORK = 0x2
XENSTAT_XEN_VERSION = 0x4
XENSTAT_VBD = 0x8
XENSTAT_ALL = XENSTAT_VCPU | XENSTAT_NETWORK | XENSTAT_XEN_VERSION | XENSTAT_VBD

_p = ctypes.c_void_p
_uint = ctypes.c_uint
_ull = ctypes.c_ulonglong

# name -> (restype, argtypes)
_PROTOTYPES: dict[str, tuple[Any, list[Any]]] = {
    "xenstat_init": (_p, []),
    "xenstat_uninit": (None, [_p]),
    "xenstat_get_node": (_p, [_p, _uint]),
    "xenstat_free_node": (None, [_p]),
    "xenstat_node_num_domains": (_uint, [_p]),
    "xenstat_node_domain_by_index": (_p, [_p, _uint]),
    "xenstat_domain_name": (ctypes.c_char_p, [_p]),
    "xenstat_domain_running": (_uint, [_p]),
    "xenstat_domain_blocked": (_uint, [_p]),
    "xenstat_domain_paused": (_uint, [_p]),
    "xenstat_domain_shutdown": (_uint, [_p]),
    "xenstat_domain_crashed": (_uint, [_p]),
    "xenstat_domain_dying": (_uint, [_p]),
    "xenstat_domain_cpu_ns": (_ull, [_p]),
    "xenstat_domain_num_vcpus": (_uint, [_p]),
    "xenstat_domain_cur_mem": (_ull, [_p]),
    "xenstat_domain_max_mem": (_ull, [_p]),
    "xenstat_domain_num_vbds": (_uint, [_p]),
    "xenstat_domain_num_networks": (_uint, [_p]),
    "xenstat_domain_vbd": (_p, [_p, _uint]),
    "xenstat_vbd_dev": (_uint, [_p]),
    "xenstat_vbd_oo_reqs": (_ull, [_p]),
    "xenstat_vbd_rd_reqs": (_ull, [_p]),
    "xenstat_vbd_wr_reqs": (_ull, [_p]),
    "xenstat_vbd_rd_sects": (_ull, [_p]),
    "xenstat_vbd_wr_sects": (_ull, [_p]),
    "xenstat_domain_network": (_p, [_p, _uint]),
    "xenstat_network_tbytes": (_ull, [_p]),
    "xenstat_network_rbytes": (_ull, [_p]),
}


def find_library(path: str = "") -> str | None:
    """Return the path to load libxenstat from, or None if it is not found."""
    if path:
        return path
    return ctypes.util.find_library("xenstat")


class LibXenstat(StatsBackend):
    """Backend talking to the local Xen toolstack through libxenstat.

    The shared library is loaded on the first :meth:`init` call.  If it
    cannot be found or loaded, :meth:`init` returns ``None`` so the
    collector reports the interface as unavailable and tries again on the
    next scrape.
    """

    def __init__(self, library: str = "") -> None:
        self._library = library
        self._lib: ctypes.CDLL | None = None
        self._load_lock = threading.Lock()

    def _load(self) -> ctypes.CDLL | None:
        with self._load_lock:
            if self._lib is not None:
                return self._lib
            path = find_library(self._library)
            if path is None:
                logger.warning("libxenstat not found on this host")
                return None
            try:
                lib = ctypes.CDLL(path)
                for name, (restype, argtypes) in _PROTOTYPES.items():
                    fn = getattr(lib, name)
                    fn.restype = restype
                    fn.argtypes = argtypes
            except (OSError, AttributeError) as exc:
                logger.warning("Could not load libxenstat from %s: %s", path, exc)
                return None
            logger.info("Loaded libxenstat from %s", path)
            self._lib = lib
            return lib

    @property
    def lib(self) -> ctypes.CDLL:
        if self._lib is None:
            raise RuntimeError("libxenstat is not loaded")
        return self._lib

    def init(self) -> Any | None:
        lib = self._load()
        if lib is None:
            return None
        return lib.xenstat_init()

    def uninit(self, handle: Any) -> None:
        self.lib.xenstat_uninit(handle)

    def get_node(self, handle: Any) -> Any | None:
        return self.lib.xenstat_get_node(handle, XENSTAT_ALL)

    def free_node(self, node: Any) -> None:
        self.lib.xenstat_free_node(node)

    def node_num_domains(self, node: Any) -> int:
        return self.lib.xenstat_node_num_domains(node)

    def node_domain_by_index(self, node: Any, index: int) -> Any | None:
        return self.lib.xenstat_node_domain_by_index(node, index)

    def domain_name(self, domain: Any) -> str | None:
        raw = self.lib.xenstat_domain_name(domain)
        if raw is None:
            return None
        return raw.decode("utf-8", errors="replace")

    def domain_running(self, domain: Any) -> bool:
        return self.lib.xenstat_domain_running(domain) != 0

    def domain_blocked(self, domain: Any) -> bool:
        return self.lib.xenstat_domain_blocked(domain) != 0

    def domain_paused(self, domain: Any) -> bool:
        return self.lib.xenstat_domain_paused(domain) != 0

    def domain_shutdown(self, domain: Any) -> bool:
        return self.lib.xenstat_domain_shutdown(domain) != 0

    def domain_crashed(self, domain: Any) -> bool:
        return self.lib.xenstat_domain_crashed(domain) != 0

    def domain_dying(self, domain: Any) -> bool:
        return self.lib.xenstat_domain_dying(domain) != 0

    def domain_cpu_ns(self, domain: Any) -> int:
        return self.lib.xenstat_domain_cpu_ns(domain)

    def domain_num_vcpus(self, domain: Any) -> int:
        return self.lib.xenstat_domain_num_vcpus(domain)

    def domain_cur_mem(self, domain: Any) -> int:
        return self.lib.xenstat_domain_cur_mem(domain)

    def domain_max_mem(self, domain: Any) -> int:
        return self.lib.xenstat_domain_max_mem(domain)

    def domain_num_vbds(self, domain: Any) -> int:
        return self.lib.xenstat_domain_num_vbds(domain)

    def domain_num_networks(self, domain: Any) -> int:
        return self.lib.xenstat_domain_num_networks(domain)

    def domain_vbd(self, domain: Any, index: int) -> Any | None:
        return self.lib.xenstat_domain_vbd(domain, index)

    def vbd_dev(self, vbd: Any) -> int:
        return self.lib.xenstat_vbd_dev(vbd)

    def vbd_oo_reqs(self, vbd: Any) -> int:
        return self.lib.xenstat_vbd_oo_reqs(vbd)

    def vbd_rd_reqs(self, vbd: Any) -> int:
        return self.lib.xenstat_vbd_rd_reqs(vbd)

    def vbd_wr_reqs(self, vbd: Any) -> int:
        return self.lib.xenstat_vbd_wr_reqs(vbd)

    def vbd_rd_sects(self, vbd: Any) -> int:
        return self.lib.xenstat_vbd_rd_sects(vbd)

    def vbd_wr_sects(self, vbd: Any) -> int:
        return self.lib.xenstat_vbd_wr_sects(vbd)

    def domain_network(self, domain: Any, index: int) -> Any | None:
        return self.lib.xenstat_domain_network(domain, index)

    def network_tbytes(self, network: Any) -> int:
        return self.lib.xenstat_network_tbytes(network)

    def network_rbytes(self, network: Any) -> int:
        return self.lib.xenstat_network_rbytes(network)
