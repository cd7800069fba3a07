"""Configuration loading and validation for prometheus_xentop."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .metrics.catalog import Granularity

DEFAULT_CONFIG_FILE = "prometheus_xentop.yaml"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class ExporterConfig:
    """Scrape endpoint settings."""

    bind: str = ":8080"
    granularity: str = Granularity.FINE.value
    log_level: str = "INFO"


@dataclass
class XenstatConfig:
    """Hypervisor statistics library settings."""

    library: str = ""


@dataclass
class PrometheusXentopConfig:
    """Top-level prometheus_xentop configuration."""

    exporter: ExporterConfig = field(default_factory=ExporterConfig)
    xenstat: XenstatConfig = field(default_factory=XenstatConfig)


def parse_bind(bind: str) -> tuple[str, int]:
    """Split a ``host:port`` bind address.

    An empty host (``":8080"``) means all interfaces.  IPv6 hosts are
    written in brackets, e.g. ``"[::1]:8080"``.
    """
    host, sep, port_text = bind.rpartition(":")
    if not sep:
        raise ValueError(f"bind address {bind!r} must be host:port")
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    elif ":" in host:
        raise ValueError(f"IPv6 host in {bind!r} must be in brackets")
    try:
        port = int(port_text)
    except ValueError:
        raise ValueError(f"invalid port in bind address {bind!r}") from None
    if not 0 < port < 65536:
        raise ValueError(f"port {port} out of range in bind address {bind!r}")
    return host or "0.0.0.0", port


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Apply environment variable overrides using PROMETHEUS_XENTOP_ prefix."""
    env_map = {
        "PROMETHEUS_XENTOP_BIND": ("exporter", "bind"),
        "PROMETHEUS_XENTOP_GRANULARITY": ("exporter", "granularity"),
        "PROMETHEUS_XENTOP_LOG_LEVEL": ("exporter", "log_level"),
        "PROMETHEUS_XENTOP_XENSTAT_LIBRARY": ("xenstat", "library"),
    }
    for env_key, path in env_map.items():
        value = os.environ.get(env_key)
        if value is not None:
            obj = data
            for part in path[:-1]:
                obj = obj.setdefault(part, {})
            obj[path[-1]] = value
    return data


def _dict_to_config(data: dict[str, Any]) -> PrometheusXentopConfig:
    """Convert a raw dictionary to a PrometheusXentopConfig dataclass."""
    exporter_data = data.get("exporter") or {}
    xenstat_data = data.get("xenstat") or {}
    for section, value in (("exporter", exporter_data), ("xenstat", xenstat_data)):
        if not isinstance(value, dict):
            raise ValueError(f"{section} section must be a mapping, got {value!r}")

    return PrometheusXentopConfig(
        exporter=ExporterConfig(**{
            k: v for k, v in exporter_data.items()
            if k in ExporterConfig.__dataclass_fields__
        }),
        xenstat=XenstatConfig(**{
            k: v for k, v in xenstat_data.items()
            if k in XenstatConfig.__dataclass_fields__
        }),
    )


def validate_config(cfg: PrometheusXentopConfig) -> PrometheusXentopConfig:
    """Normalize values and raise ValueError on anything unusable."""
    if not isinstance(cfg.exporter.bind, str):
        raise ValueError(f"bind must be a host:port string, got {cfg.exporter.bind!r}")
    parse_bind(cfg.exporter.bind)
    if not isinstance(cfg.xenstat.library, str):
        raise ValueError(f"xenstat library must be a path string, got {cfg.xenstat.library!r}")
    try:
        cfg.exporter.granularity = Granularity(str(cfg.exporter.granularity).lower()).value
    except ValueError:
        raise ValueError(
            f"granularity must be one of {[g.value for g in Granularity]}, "
            f"got {cfg.exporter.granularity!r}"
        ) from None
    level = str(cfg.exporter.log_level).upper()
    if level not in LOG_LEVELS:
        raise ValueError(f"log_level must be one of {list(LOG_LEVELS)}, got {cfg.exporter.log_level!r}")
    cfg.exporter.log_level = level
    return cfg


def load_config(path: str | Path | None = None) -> PrometheusXentopConfig:
    """Load configuration from a YAML file with environment overrides.

    Looks for ``prometheus_xentop.yaml`` in the current directory if *path*
    is None.  A missing file yields the defaults.
    """
    data: dict[str, Any] = {}
    if path is None:
        path = Path(DEFAULT_CONFIG_FILE)
    else:
        path = Path(path)

    if path.exists():
        with open(path, encoding="utf-8") as fh:
            loaded = yaml.safe_load(fh)
            if isinstance(loaded, dict):
                data = loaded

    data = _apply_env_overrides(data)
    return validate_config(_dict_to_config(data))
