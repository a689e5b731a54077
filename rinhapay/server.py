"""HTTP server that exposes the payment endpoints."""

from __future__ import annotations

import argparse
import logging
import os
import signal
import threading
from collections.abc import Callable, Sequence
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from urllib.parse import urlsplit

from rinhapay.handlers import PaymentHandler, Response

log = logging.getLogger(__name__)

DEFAULT_PORT = 8080
READ_TIMEOUT = 2.0
DEFAULT_PROCESSOR_URL = "http://processor-default:8080/process"
FALLBACK_PROCESSOR_URL = "http://processor-fallback:8080/process"

_Route = Callable[[str, bytes], Response]


def get_env(key: str, default: str) -> str:
    """Return the environment variable *key*, or *default* if unset or empty."""
    return os.environ.get(key) or default


def _text(message: str, status: HTTPStatus) -> Response:
    return Response(int(status), message.encode("utf-8"), "text/plain; charset=utf-8")


def make_server(handler: PaymentHandler, host: str = "", port: int = DEFAULT_PORT) -> ThreadingHTTPServer:
    """Create a threaded HTTP server routing requests to *handler*."""
    routes: dict[str, _Route] = {
        "/health": lambda method, body: Response(int(HTTPStatus.OK), b"ok", "text/plain"),
        "/payments": handler.post_payments,
        "/payments-summary": lambda method, body: handler.get_payments_summary(method),
    }

    class _RequestHandler(BaseHTTPRequestHandler):
        protocol_version = "HTTP/1.1"
        timeout = READ_TIMEOUT

        def _dispatch(self) -> None:
            try:
                length = int(self.headers.get("Content-Length") or 0)
            except ValueError:
                self._send(_text("Invalid Content-Length\n", HTTPStatus.BAD_REQUEST))
                return
            body = self.rfile.read(length) if length > 0 else b""
            route = routes.get(urlsplit(self.path).path)
            if route is None:
                response = _text("404 page not found\n", HTTPStatus.NOT_FOUND)
            else:
                response = route(self.command, body)
            self._send(response)

        def _send(self, response: Response) -> None:
            self.send_response(response.status)
            self.send_header("Content-Type", response.content_type)
            self.send_header("Content-Length", str(len(response.body)))
            self.end_headers()
            if self.command != "HEAD":
                self.wfile.write(response.body)

        do_GET = do_POST = do_PUT = do_DELETE = do_PATCH = do_HEAD = do_OPTIONS = _dispatch

        def log_message(self, format: str, *args: object) -> None:
            log.debug("%s - %s", self.address_string(), format % args)

    server = ThreadingHTTPServer((host, port), _RequestHandler)
    server.daemon_threads = True
    return server


def main(argv: Sequence[str] | None = None) -> int:
    """Run the payment server until SIGINT or SIGTERM."""
    parser = argparse.ArgumentParser(prog="rinhapay", description="Payment intake server.")
    parser.add_argument("--host", default="", help="address to bind (default: all)")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT, help="port to listen on")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")

    default_url = get_env("DEFAULT_PROCESSOR_URL", DEFAULT_PROCESSOR_URL)
    fallback_url = get_env("FALLBACK_PROCESSOR_URL", FALLBACK_PROCESSOR_URL)

    handler = PaymentHandler(default_url, fallback_url)
    handler.start_health_checker()

    try:
        server = make_server(handler, args.host, args.port)
    except OSError as exc:
        log.error("failed to start server: %s", exc)
        handler.stop()
        return 1

    stop = threading.Event()
    previous = {
        sig: signal.signal(sig, lambda signum, frame: stop.set())
        for sig in (signal.SIGINT, signal.SIGTERM)
    }

    thread = threading.Thread(target=server.serve_forever, name="http-server", daemon=True)
    thread.start()
    log.info("server listening on port %d", server.server_address[1])
    log.info("default processor: %s", default_url)
    log.info("fallback processor: %s", fallback_url)

    try:
        while not stop.wait(0.5):
            pass
        log.info("starting graceful shutdown")
        server.shutdown()
        thread.join(timeout=5.0)
        server.server_close()
        handler.stop()
        log.info("server stopped")
    finally:
        for sig, old in previous.items():
            signal.signal(sig, old)
    return 0