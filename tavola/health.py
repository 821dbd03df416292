"""HTTP health endpoint that runs dependency checks on every request."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

HEALTH_PATH = "/healz"

_log = logging.getLogger(__name__)


class HealthApp:
    """Serves /healz: 200 when every pinger succeeds, 500 when any raises."""

    def __init__(self, pingers: Iterable[Callable[[], object]], addr: str, port: str | int) -> None:
        self.pingers = list(pingers)
        self.host = addr
        self.port = str(port)
        self.addr = f"{addr}:{port}"
        self._server: ThreadingHTTPServer | None = None
        self._thread: threading.Thread | None = None

    def check(self) -> HTTPStatus:
        """Run all pingers concurrently and report the resulting HTTP status."""
        if not self.pingers:
            return HTTPStatus.OK
        with ThreadPoolExecutor(max_workers=len(self.pingers)) as pool:
            futures = [pool.submit(pinger) for pinger in self.pingers]
            failed = [f for f in futures if f.exception() is not None]
        return HTTPStatus.INTERNAL_SERVER_ERROR if failed else HTTPStatus.OK

    @property
    def server_address(self) -> tuple[str, int] | None:
        """The bound (host, port) while serving, otherwise None."""
        if self._server is None:
            return None
        host, port = self._server.server_address[:2]
        return host, port

    def _handler(self) -> type[BaseHTTPRequestHandler]:
        app = self

        class Handler(BaseHTTPRequestHandler):
            def _respond(self) -> None:
                path = self.path.split("?", 1)[0]
                status = app.check() if path == HEALTH_PATH else HTTPStatus.NOT_FOUND
                self.send_response(status)
                self.send_header("Content-Length", "0")
                self.end_headers()

            do_GET = do_HEAD = do_POST = do_PUT = do_DELETE = _respond

            def log_message(self, format: str, *args: object) -> None:
                _log.debug(format, *args)

        return Handler

    def start(self) -> None:
        """Start serving in a background thread; a bind failure is reported, not raised."""
        _log.debug("health starting")
        print("health starting")
        try:
            server = ThreadingHTTPServer((self.host, int(self.port)), self._handler())
        except (OSError, ValueError) as exc:
            _log.debug("err %s", exc)
            print(str(exc))
        else:
            server.daemon_threads = True
            self._server = server
            self._thread = threading.Thread(
                target=server.serve_forever, name="health", daemon=True
            )
            self._thread.start()
        _log.debug("health started")
        print("health started")

    def stop(self) -> None:
        """Stop serving and release the socket."""
        if self._server is None:
            return
        self._server.shutdown()
        self._server.server_close()
        if self._thread is not None:
            self._thread.join()
        self._server = None
        self._thread = None