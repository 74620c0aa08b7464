"""
Simple HTTP Server App

A minimal HTTP server demonstrating awhost.

Run with::

    SERVER_PORT=8080 python -m awhost -v examples/http_serve/app.py:app
"""

import asyncio
import logging
from http.server import HTTPServer, BaseHTTPRequestHandler
from threading import Thread
from typing import Annotated, Optional

from awhost import App, Config, LogIntrospector, NotReadyError, Resolve, register


class RequestHandler(BaseHTTPRequestHandler):
    """Simple HTTP request handler."""

    def do_GET(self):
        if self.path == "/health":
            self.send_response(200)
            self.send_header("Content-Type", "application/json")
            self.end_headers()
            self.wfile.write(b'{"status": "healthy"}')
        elif self.path == "/info":
            self.send_response(200)
            self.send_header("Content-Type", "application/json")
            self.end_headers()
            self.wfile.write(b'{"name": "awhost example server", "version": "1.0.0"}')
        else:
            self.send_response(404)
            self.send_header("Content-Type", "text/plain")
            self.end_headers()
            self.wfile.write(b"Not Found")

    def log_message(self, format, *args):
        """Suppress default logging."""
        pass


class LoggerSetup:
    """Registers the logger shared by the hosted services."""

    def setup(self, scope):
        register(logging.Logger, logging.getLogger("http_serve"))


class HttpServer:
    """Serves HTTP from a background thread until the app scope is cancelled."""

    logger: Annotated[logging.Logger, Resolve()]
    host: Annotated[str, Config("SERVER_HOST", default="127.0.0.1")]
    port: Annotated[int, Config("SERVER_PORT", default="8080")]

    def __init__(self):
        self._server: Optional[HTTPServer] = None
        self._thread: Optional[Thread] = None

    @property
    def address(self) -> tuple[str, int]:
        assert self._server is not None
        return self._server.server_address[:2]

    async def run(self, scope):
        self._server = HTTPServer((self.host, self.port), RequestHandler)

        # serve_forever handles shutdown() from another thread
        self._thread = Thread(target=self._server.serve_forever, daemon=True)
        self._thread.start()
        self.logger.info("HTTP server running at http://%s:%d", *self.address)

        await scope.wait()

        self.logger.info("Shutting down HTTP server...")
        await asyncio.to_thread(self._server.shutdown)

    def is_ready(self, scope):
        if self._thread is None or not self._thread.is_alive():
            raise NotReadyError("http server not started")

    def close(self):
        if self._server:
            self._server.server_close()
            self._server = None

        if self._thread:
            self._thread.join(timeout=2)
            self._thread = None

        self.logger.info("HTTP server stopped")


def make_app() -> App:
    return (
        App()
        .initialize(LoggerSetup())
        .host(HttpServer())
        .introspect(LogIntrospector(level=logging.DEBUG))
    )


app = make_app()
