"""Prometheus collector exposing per-domain Xen statistics."""

from __future__ import annotations

import logging
import threading
from typing import Iterator

from prometheus_client.core import CounterMetricFamily, GaugeMetricFamily, Metric
from prometheus_client.registry import Collector

from ..xenstat.backend import StatsBackend
from ..xenstat.client import XenStats
from ..xenstat.errors import CannotConnect, Disconnected
from ..xenstat.models import DomainSnapshot
from .base import MetricKind, MetricSample, MetricSpec
from .catalog import MetricCatalog
from .flatten import flatten

logger = logging.getLogger(__name__)


class XenCollector(Collector):
    """Polls the hypervisor on every scrape and yields metric families.

    The collector owns at most one :class:`XenStats` client.  It is
    connected lazily on the first scrape and thrown away as soon as a
    poll reports :class:`Disconnected`, so the next scrape starts from a
    fresh connection.  A scrape that cannot reach the hypervisor yields
    no samples instead of raising, keeping the HTTP endpoint healthy.
    """

    def __init__(self, backend: StatsBackend, catalog: MetricCatalog | None = None) -> None:
        self._backend = backend
        self._catalog = catalog or MetricCatalog()
        self._client: XenStats | None = None
        self._lock = threading.Lock()

    @property
    def catalog(self) -> MetricCatalog:
        return self._catalog

    @property
    def client(self) -> XenStats | None:
        return self._client

    def _acquire_client(self) -> XenStats | None:
        with self._lock:
            if self._client is None:
                try:
                    self._client = XenStats.connect(self._backend)
                except CannotConnect as exc:
                    logger.warning("Error collecting metrics: %s", exc)
                    return None
                except Exception:
                    logger.exception("Unexpected failure while connecting to hypervisor statistics")
                    return None
            return self._client

    def _discard_client(self, client: XenStats) -> None:
        with self._lock:
            if self._client is client:
                self._client = None
        client.close()

    def poll(self) -> list[DomainSnapshot]:
        """Run one poll, connecting first if needed.  Never raises."""
        client = self._acquire_client()
        if client is None:
            return []
        try:
            return client.poll()
        except Disconnected as exc:
            logger.warning("Error collecting metrics: %s", exc)
        except Exception:
            logger.exception("Unexpected failure while polling hypervisor statistics")
        self._discard_client(client)
        return []

    def collect_samples(self) -> list[MetricSample]:
        """Samples for one scrape, all taken from the same poll."""
        return flatten(self.poll(), self._catalog)

    def _family(self, spec: MetricSpec) -> Metric:
        labels = list(self._catalog.labels_for(spec))
        if spec.kind is MetricKind.COUNTER:
            return CounterMetricFamily(spec.name, spec.help, labels=labels)
        return GaugeMetricFamily(spec.name, spec.help, labels=labels)

    def describe(self) -> Iterator[Metric]:
        for spec in self._catalog:
            yield self._family(spec)

    def collect(self) -> Iterator[Metric]:
        samples = self.collect_samples()
        families = {spec.name: (spec, self._family(spec)) for spec in self._catalog}
        for sample in samples:
            spec, family = families[sample.name]
            family.add_metric(
                [sample.labels[name] for name in self._catalog.labels_for(spec)],
                sample.value,
            )
        for _spec, family in families.values():
            if family.samples:
                yield family

    def close(self) -> None:
        with self._lock:
            client, self._client = self._client, None
        if client is not None:
            client.close()
