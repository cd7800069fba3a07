"""HTTP scrape endpoint serving the exposition on a single path."""

from __future__ import annotations

import logging
import socket
import threading
from typing import Any, Callable, Iterable
from wsgiref.simple_server import WSGIRequestHandler, make_server

from prometheus_client import CollectorRegistry, make_wsgi_app
from prometheus_client.exposition import ThreadingWSGIServer

logger = logging.getLogger(__name__)

METRICS_PATH = "/metrics"


def make_app(registry: CollectorRegistry, path: str = METRICS_PATH) -> Callable[..., Iterable[bytes]]:
    """WSGI app answering *path* with the exposition and 404 elsewhere."""
    metrics_app = make_wsgi_app(registry)

    def app(environ: dict[str, Any], start_response: Callable[..., Any]) -> Iterable[bytes]:
        if environ.get("PATH_INFO", "").rstrip("/") == path:
            return metrics_app(environ, start_response)
        start_response("404 Not Found", [("Content-Type", "text/plain; charset=utf-8")])
        return [b"Not Found\n"]

    return app


class _QuietHandler(WSGIRequestHandler):
    def log_message(self, format: str, *args: Any) -> None:
        logger.debug("%s - %s", self.address_string(), format % args)


def _server_class(host: str) -> type[ThreadingWSGIServer]:
    if ":" not in host:
        return ThreadingWSGIServer

    class _V6Server(ThreadingWSGIServer):
        address_family = socket.AF_INET6

    return _V6Server


def serve(host: str, port: int, registry: CollectorRegistry) -> tuple[ThreadingWSGIServer, threading.Thread]:
    """Start serving in a daemon thread.  Raises OSError if binding fails."""
    httpd = make_server(
        host, port, make_app(registry),
        server_class=_server_class(host), handler_class=_QuietHandler,
    )
    thread = threading.Thread(target=httpd.serve_forever, daemon=True)
    thread.start()
    return httpd, thread
