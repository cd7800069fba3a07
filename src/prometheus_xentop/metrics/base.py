"""Building blocks shared by the metric catalog and the collector."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Callable


class MetricKind(str, enum.Enum):
    COUNTER = "counter"
    GAUGE = "gauge"


class MetricScope(str, enum.Enum):
    """Which part of a domain snapshot a metric is read from."""

    DOMAIN = "domain"
    VBD = "vbd"
    NIC = "nic"


@dataclass(frozen=True)
class MetricSpec:
    """Static description of one exported metric."""

    name: str
    kind: MetricKind
    help: str
    scope: MetricScope
    value: Callable[[Any], float]


@dataclass
class MetricSample:
    """A single labelled data point produced by a scrape."""

    name: str
    kind: MetricKind
    value: float
    labels: dict[str, str]
    description: str = ""
