"""prometheus_xentop – Xen domain statistics exporter for Prometheus."""

__version__ = "0.3.0"
