"""The fixed table of metrics exported for every domain."""

from __future__ import annotations

import enum
from operator import attrgetter
from typing import Iterator

from .base import MetricKind, MetricScope, MetricSpec

NAMESPACE = "xen"

DOMAIN_LABEL = "dom"
VBD_LABEL = "vbd"
NIC_LABEL = "nic"


class Granularity(str, enum.Enum):
    """Label width of device metrics.

    ``fine`` emits one series per device, labelled with its positional
    index.  ``coarse`` sums all devices of a domain into one series.
    """

    FINE = "fine"
    COARSE = "coarse"


def _spec(name: str, kind: MetricKind, help_text: str, scope: MetricScope, attr: str) -> MetricSpec:
    return MetricSpec(
        name=f"{NAMESPACE}_{name}",
        kind=kind,
        help=help_text,
        scope=scope,
        value=attrgetter(attr),
    )


_C, _G = MetricKind.COUNTER, MetricKind.GAUGE
_DOM, _VBD, _NIC = MetricScope.DOMAIN, MetricScope.VBD, MetricScope.NIC

METRICS: tuple[MetricSpec, ...] = (
    _spec("cpu_seconds_total", _C,
          "Total number of seconds spent across all CPUs executing in this domain",
          _DOM, "cpu_seconds"),
    _spec("cpu_count", _G, "Count of virtual CPUs assigned to this domain", _DOM, "vcpu_count"),
    _spec("memory_used_bytes", _G, "Memory used by this domain", _DOM, "memory_bytes"),
    _spec("memory_maximum_bytes", _G,
          "Maximum memory this domain is allowed to allocate, assuming availability",
          _DOM, "max_memory_bytes"),
    _spec("vbd_count", _G, "Count of virtual block devices assigned to this domain", _DOM, "vbd_count"),
    _spec("nic_count", _G, "Count of virtual network devices assigned to this domain", _DOM, "nic_count"),
    _spec("vbd_out_of_requests_errors_total", _C,
          "Count of out-of-request situations this domain has encountered",
          _VBD, "out_of_requests"),
    _spec("vbd_read_requests_total", _C, "Count of read requests this domain has issued",
          _VBD, "read_requests"),
    _spec("vbd_write_requests_total", _C, "Count of write requests this domain has issued",
          _VBD, "write_requests"),
    _spec("vbd_read_bytes_total", _C,
          "Total bytes this domain has read from virtual block devices",
          _VBD, "bytes_read"),
    _spec("vbd_written_bytes_total", _C,
          "Total bytes this domain has written to virtual block devices",
          _VBD, "bytes_written"),
    _spec("net_transmit_bytes_total", _C,
          "Total bytes this domain has transmitted through virtual network devices",
          _NIC, "bytes_transmitted"),
    _spec("net_receive_bytes_total", _C,
          "Total bytes this domain has received through virtual network devices",
          _NIC, "bytes_received"),
)


class MetricCatalog:
    """Read-only view of :data:`METRICS` for one label granularity."""

    def __init__(self, granularity: Granularity = Granularity.FINE) -> None:
        self._granularity = Granularity(granularity)
        self._specs = METRICS
        self._by_name = {spec.name: spec for spec in self._specs}

    @property
    def granularity(self) -> Granularity:
        return self._granularity

    def __iter__(self) -> Iterator[MetricSpec]:
        return iter(self._specs)

    def __len__(self) -> int:
        return len(self._specs)

    def get(self, name: str) -> MetricSpec:
        return self._by_name[name]

    def specs_for(self, scope: MetricScope) -> tuple[MetricSpec, ...]:
        return tuple(spec for spec in self._specs if spec.scope is scope)

    def labels_for(self, spec: MetricSpec) -> tuple[str, ...]:
        if spec.scope is MetricScope.DOMAIN or self._granularity is Granularity.COARSE:
            return (DOMAIN_LABEL,)
        if spec.scope is MetricScope.VBD:
            return (DOMAIN_LABEL, VBD_LABEL)
        return (DOMAIN_LABEL, NIC_LABEL)


def build_catalog(granularity: Granularity | str = Granularity.FINE) -> MetricCatalog:
    """Build the catalog; raises ValueError for an unknown granularity."""
    return MetricCatalog(Granularity(granularity))
