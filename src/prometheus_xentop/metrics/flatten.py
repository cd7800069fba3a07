"""Translate snapshot trees into flat, labelled samples."""

from __future__ import annotations

from typing import Iterable, Sequence

from ..xenstat.models import DomainSnapshot
from .base import MetricSample, MetricScope, MetricSpec
from .catalog import Granularity, MetricCatalog


def _sample(catalog: MetricCatalog, spec: MetricSpec, value: float, *label_values: str) -> MetricSample:
    return MetricSample(
        name=spec.name,
        kind=spec.kind,
        value=float(value),
        labels=dict(zip(catalog.labels_for(spec), label_values)),
        description=spec.help,
    )


def _device_samples(
    catalog: MetricCatalog,
    specs: Sequence[MetricSpec],
    domain_name: str,
    devices: Sequence[object],
) -> list[MetricSample]:
    if catalog.granularity is Granularity.COARSE:
        return [
            _sample(catalog, spec, sum(spec.value(dev) for dev in devices), domain_name)
            for spec in specs
        ]

    samples: list[MetricSample] = []
    for index, device in enumerate(devices):
        # Positional index, not a stable device identity.
        label = str(index)
        for spec in specs:
            samples.append(_sample(catalog, spec, spec.value(device), domain_name, label))
    return samples


def flatten_domain(domain: DomainSnapshot, catalog: MetricCatalog) -> list[MetricSample]:
    """Samples for a single domain, domain-level metrics first."""
    samples = [
        _sample(catalog, spec, spec.value(domain), domain.name)
        for spec in catalog.specs_for(MetricScope.DOMAIN)
    ]
    samples.extend(_device_samples(
        catalog, catalog.specs_for(MetricScope.VBD), domain.name, domain.block_devices,
    ))
    samples.extend(_device_samples(
        catalog, catalog.specs_for(MetricScope.NIC), domain.name, domain.network_devices,
    ))
    return samples


def flatten(domains: Iterable[DomainSnapshot], catalog: MetricCatalog) -> list[MetricSample]:
    """Flatten every domain of one poll into a single batch."""
    samples: list[MetricSample] = []
    for domain in domains:
        samples.extend(flatten_domain(domain, catalog))
    return samples
