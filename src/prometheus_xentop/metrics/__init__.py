"""Metric catalog and the Prometheus collector built on it."""

from .base import MetricKind, MetricSample, MetricScope, MetricSpec
from .catalog import Granularity, MetricCatalog, build_catalog
from .collector import XenCollector
from .flatten import flatten

__all__ = [
    "Granularity",
    "MetricCatalog",
    "MetricKind",
    "MetricSample",
    "MetricScope",
    "MetricSpec",
    "XenCollector",
    "build_catalog",
    "flatten",
]
