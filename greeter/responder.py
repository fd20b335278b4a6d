"""Threaded HTTP responder that answers every request with a fixed greeting."""

from __future__ import annotations

import logging
import socket
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Optional, Tuple, Union

from .config import ServerConfig
from .errors import BindError, ClientIOError

logger = logging.getLogger(__name__)
access_logger = logging.getLogger("greeter.access")

# Bodies up to this size are read so the connection can be reused. Larger
# ones are answered first and then swallowed by a lingering close.
MAX_DRAIN_BYTES = 1024 * 1024
LINGER_TIMEOUT = 30.0


class GreetingHandler(BaseHTTPRequestHandler):
    protocol_version = "HTTP/1.1"
    server_version = "greeter/1.0"

    server: "GreetingServer"

    def setup(self) -> None:
        self.timeout = self.server.idle_timeout
        self.linger = False
        super().setup()

    def do_GET(self) -> None:  # noqa: N802 - http.server API uses camelcase
        self._send_greeting()

    def do_HEAD(self) -> None:  # noqa: N802 - http.server API uses camelcase
        self._send_greeting(include_body=False)

    def handle_one_request(self) -> None:
        # Same flow as BaseHTTPRequestHandler, but any method falls back to
        # do_GET instead of a 501.
        try:
            self.raw_requestline = self.rfile.readline(65537)
            if len(self.raw_requestline) > 65536:
                self.requestline = ""
                self.request_version = ""
                self.command = ""
                self.send_error(HTTPStatus.REQUEST_URI_TOO_LONG)
                return
            if not self.raw_requestline:
                self.close_connection = True
                return
            if not self.parse_request():
                return
            method = getattr(self, "do_" + self.command, self.do_GET)
            method()
            self.wfile.flush()
        except TimeoutError as exc:
            self.log_error("Request timed out: %r", exc)
            self.close_connection = True
            return
        except (ClientIOError, ConnectionError) as exc:
            logger.debug("Dropping connection from %s: %s", self.address_string(), exc)
            self.close_connection = True
            return
        if self.linger:
            self._linger_close()

    def log_message(self, format: str, *args) -> None:  # noqa: A002 - keep default signature
        access_logger.debug("%s - %s", self.address_string(), format % args)

    def _read_exactly(self, size: int) -> bool:
        while size > 0:
            chunk = self.rfile.read(min(size, 65536))
            if not chunk:
                return False
            size -= len(chunk)
        return True

    def _discard_chunked(self) -> bool:
        total = 0
        while True:
            line = self.rfile.readline(65537)
            if not line:
                self.close_connection = True
                return True
            try:
                size = int(line.split(b";", 1)[0].strip(), 16)
            except ValueError:
                return False
            if size == 0:
                break
            total += size
            if total > MAX_DRAIN_BYTES:
                return False
            # chunk data plus its trailing CRLF
            if not self._read_exactly(size + 2):
                self.close_connection = True
                return True
        while True:
            line = self.rfile.readline(65537)
            if line in (b"\r\n", b"\n", b""):
                return True

    def _discard_body(self) -> bool:
        """Consume the request body.

        Returns False when the body was left (partly) unread, in which case
        the connection must be closed with a lingering close.
        """
        encoding = self.headers.get("Transfer-Encoding")
        if encoding:
            if encoding.split(",")[-1].strip().lower() != "chunked":
                return False
            return self._discard_chunked()
        length = self.headers.get("Content-Length")
        if not length:
            return True
        try:
            remaining = int(length)
        except ValueError:
            return False
        if remaining > MAX_DRAIN_BYTES:
            return False
        if not self._read_exactly(remaining):
            self.close_connection = True
        return True

    def _linger_close(self) -> None:
        """Stop writing, then read and drop whatever the client still sends."""
        try:
            self.connection.shutdown(socket.SHUT_WR)
            self.connection.settimeout(self.timeout or LINGER_TIMEOUT)
            while self.rfile.read1(65536):
                pass
        except OSError as exc:
            logger.debug("Lingering close for %s ended: %s", self.address_string(), exc)

    def _send_greeting(self, include_body: bool = True) -> None:
        try:
            drained = self._discard_body()
        except (ConnectionError, TimeoutError) as exc:
            raise ClientIOError(f"reading request body failed: {exc}") from exc
        if not drained:
            self.close_connection = True
            self.linger = True
        body = self.server.body
        try:
            self.send_response(200)
            self.send_header("Content-Type", "text/plain; charset=utf-8")
            self.send_header("Content-Length", str(len(body)))
            if self.close_connection:
                self.send_header("Connection", "close")
            self.end_headers()
            if include_body:
                self.wfile.write(body)
        except (ConnectionError, TimeoutError) as exc:
            raise ClientIOError(f"writing response failed: {exc}") from exc


class GreetingServer(ThreadingHTTPServer):
    """ThreadingHTTPServer carrying the greeting its handlers write."""

    allow_reuse_port = False
    request_queue_size = 128

    def __init__(
        self,
        server_address: Tuple[str, int],
        greeting: str,
        idle_timeout: Optional[float] = None,
    ) -> None:
        self.greeting = greeting
        self.body = greeting.encode("utf-8")
        self.idle_timeout = idle_timeout
        super().__init__(server_address, GreetingHandler)

    @property
    def port(self) -> int:
        return self.server_address[1]

    def handle_error(self, request, client_address) -> None:
        logger.exception("Unhandled error while serving %s", client_address)


def start(config: Union[ServerConfig, int]) -> GreetingServer:
    """Bind the listening socket and return the server, ready to serve.

    Accepts either a full ServerConfig or a bare port number. Raises
    BindError when the address is in use, not permitted, or invalid.
    """
    if isinstance(config, int):
        config = ServerConfig(port=config)
    try:
        server = GreetingServer(
            (config.host, config.port),
            config.greeting,
            idle_timeout=config.idle_timeout,
        )
    except (OSError, OverflowError) as exc:
        raise BindError(config.host, config.port, exc) from exc
    logger.debug("Bound %s:%d", config.host, server.port)
    return server


def serve(server: GreetingServer) -> None:
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        pass
    finally:
        server.server_close()
