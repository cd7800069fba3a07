"""CLI interface for prometheus_xentop."""

from __future__ import annotations

import argparse
import logging
import signal
import sys
import time

from . import __version__
from .config import PrometheusXentopConfig, load_config, parse_bind, validate_config

logger = logging.getLogger(__name__)


def _load(args: argparse.Namespace) -> PrometheusXentopConfig:
    """Load the config file and apply command-line overrides."""
    try:
        cfg = load_config(args.config)
        if getattr(args, "bind", None):
            cfg.exporter.bind = args.bind
        if getattr(args, "granularity", None):
            cfg.exporter.granularity = args.granularity
        cfg = validate_config(cfg)
    except ValueError as exc:
        print(f"prometheus-xentop: configuration error: {exc}", file=sys.stderr)
        sys.exit(2)
    logging.getLogger().setLevel(cfg.exporter.log_level)
    return cfg


def _build_collector(cfg: PrometheusXentopConfig):
    from .metrics.catalog import build_catalog
    from .metrics.collector import XenCollector
    from .xenstat.libxenstat import LibXenstat

    backend = LibXenstat(cfg.xenstat.library)
    return XenCollector(backend, build_catalog(cfg.exporter.granularity))


def _cmd_serve(args: argparse.Namespace) -> None:
    """Serve the metrics endpoint until interrupted."""
    cfg = _load(args)
    host, port = parse_bind(cfg.exporter.bind)

    from prometheus_client import REGISTRY

    from .server import METRICS_PATH, serve

    collector = _build_collector(cfg)
    REGISTRY.register(collector)

    try:
        server, _thread = serve(host, port, REGISTRY)
    except OSError as exc:
        logger.error("Cannot listen on %s: %s", cfg.exporter.bind, exc)
        collector.close()
        sys.exit(1)

    stop = False

    def _handle_signal(_sig: int, _frame: object) -> None:
        nonlocal stop
        stop = True

    signal.signal(signal.SIGINT, _handle_signal)
    signal.signal(signal.SIGTERM, _handle_signal)

    logger.info(
        "Starting server on address %s, path %s (granularity=%s)",
        cfg.exporter.bind,
        METRICS_PATH,
        cfg.exporter.granularity,
    )
    try:
        while not stop:
            time.sleep(0.5)
    finally:
        server.shutdown()
        server.server_close()
        REGISTRY.unregister(collector)
        collector.close()
    logger.info("Server stopped")


def _cmd_poll(args: argparse.Namespace) -> None:
    """Scrape once and print the exposition text."""
    cfg = _load(args)

    from prometheus_client import CollectorRegistry, generate_latest

    collector = _build_collector(cfg)
    registry = CollectorRegistry()
    registry.register(collector)
    try:
        output = generate_latest(registry).decode("utf-8")
    finally:
        collector.close()

    if not output.strip():
        logger.error("No samples collected from the hypervisor")
        sys.exit(1)
    sys.stdout.write(output)


def _cmd_version(_args: argparse.Namespace) -> None:
    print(f"prometheus-xentop {__version__}")


def main(argv: list[str] | None = None) -> None:
    """Entry point for the prometheus-xentop CLI."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    parser = argparse.ArgumentParser(
        prog="prometheus-xentop",
        description="Export Xen domain statistics to Prometheus",
    )
    parser.add_argument("--config", "-c", default=None, help="Path to prometheus_xentop.yaml")
    sub = parser.add_subparsers(dest="command")

    granularity_help = "Per-device series (fine) or per-domain sums (coarse)"

    # serve
    serve_p = sub.add_parser("serve", help="Serve metrics over HTTP")
    serve_p.add_argument("--bind", default=None, help="The address to bind to (host:port)")
    serve_p.add_argument("--granularity", choices=["fine", "coarse"], default=None, help=granularity_help)
    serve_p.set_defaults(func=_cmd_serve)

    # poll
    poll_p = sub.add_parser("poll", help="Scrape once and print the metrics")
    poll_p.add_argument("--granularity", choices=["fine", "coarse"], default=None, help=granularity_help)
    poll_p.set_defaults(func=_cmd_poll)

    # version
    ver_p = sub.add_parser("version", help="Print version")
    ver_p.set_defaults(func=_cmd_version)

    args = parser.parse_args(argv)
    if not hasattr(args, "func"):
        parser.print_help()
        sys.exit(1)

    args.func(args)


if __name__ == "__main__":
    main()
