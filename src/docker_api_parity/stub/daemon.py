"""Fake Docker daemon that answers "inspect container" requests.

Every connection gets ``{"ID":"<id>"}`` back, where ``<id>`` is taken from
the ``GET /containers/<id>/json`` request path. Used to exercise a client
library's inspect call under concurrency without a real daemon.
"""

import json
import logging
import re
import socket
import socketserver
import threading

logger = logging.getLogger(__name__)

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 2375
READ_CHUNK_SIZE = 1024

CONTAINER_REQUEST = re.compile(r"^(?:/v[0-9.]+)?/containers/([^/?]+)/json(?:\?.*)?$")

NOT_FOUND_BODY = "Not found\n"


def read_request(sock: socket.socket) -> bytes:
    """Read until a short read; assumes requests never fill the last chunk exactly."""
    chunks = []
    while True:
        data = sock.recv(READ_CHUNK_SIZE)
        chunks.append(data)
        if len(data) < READ_CHUNK_SIZE:
            break
    return b"".join(chunks)


def parse_container_id(raw: bytes) -> str | None:
    """Return the container id of an inspect request, or None."""
    request_line = raw.split(b"\r\n", 1)[0].decode("latin-1")
    parts = request_line.split()
    if len(parts) != 3 or parts[0] != "GET":
        return None

    match = CONTAINER_REQUEST.match(parts[1])
    if not match:
        return None
    return match.group(1)


def build_response(container_id: str) -> bytes:
    content = json.dumps({"ID": container_id}, separators=(",", ":"))
    lines = [
        "HTTP/1.1 200 OK",
        f"Content-Length: {len(content.encode('utf-8'))}",
        "Content-Type: application/json",
        "",
        content,
        "",
        "",
    ]
    return "\r\n".join(lines).encode("utf-8")


def build_not_found() -> bytes:
    lines = [
        "HTTP/1.1 404 Not Found",
        f"Content-Length: {len(NOT_FOUND_BODY)}",
        "Content-Type: text/plain",
        "",
        NOT_FOUND_BODY,
    ]
    return "\r\n".join(lines).encode("utf-8")


class InspectRequestHandler(socketserver.BaseRequestHandler):
    """Handles one connection: one request, one canned response, half-close."""

    def setup(self):
        self.tracked = self.server.track(self.request)

    def handle(self):
        if not self.tracked:
            return

        raw = read_request(self.request)
        if self.server.stopping.is_set():
            # stop() shut the socket down under us
            return

        container_id = parse_container_id(raw)

        if container_id is None:
            logger.warning("Unrecognized request from %s: %r", self.client_address, raw[:80])
            self.request.sendall(build_not_found())
        else:
            logger.debug("Inspect %s from %s", container_id, self.client_address)
            self.request.sendall(build_response(container_id))

        self.request.shutdown(socket.SHUT_WR)

    def finish(self):
        self.server.untrack(self.request)


class _ThreadingServer(socketserver.ThreadingTCPServer):
    allow_reuse_address = True
    daemon_threads = True
    block_on_close = False
    request_queue_size = 128

    def __init__(self, server_address, handler_class):
        super().__init__(server_address, handler_class)
        self.stopping = threading.Event()
        self._connections: set[socket.socket] = set()
        self._lock = threading.Lock()

    @property
    def connection_count(self) -> int:
        with self._lock:
            return len(self._connections)

    def track(self, sock: socket.socket) -> bool:
        """Register a live connection. False once stopping has begun."""
        with self._lock:
            if self.stopping.is_set():
                return False
            self._connections.add(sock)
            return True

    def untrack(self, sock: socket.socket) -> None:
        with self._lock:
            self._connections.discard(sock)

    def close_connections(self) -> None:
        """Signal stop and unblock every handler still reading or writing."""
        with self._lock:
            self.stopping.set()
            connections = list(self._connections)

        for sock in connections:
            try:
                sock.shutdown(socket.SHUT_RDWR)
            except OSError:
                # already closed by its handler
                continue


class StubDaemon:
    """Listener running its accept loop on a background thread.

    Each accepted connection is handled on its own thread. Use as a context
    manager, or call start() and stop(). stop() also shuts down connections
    that are still in flight, so their clients see EOF.
    """

    def __init__(self, host: str = DEFAULT_HOST, port: int = DEFAULT_PORT):
        self.host = host
        self.port = port
        self._server: _ThreadingServer | None = None
        self._thread: threading.Thread | None = None

    @property
    def address(self) -> tuple[str, int]:
        if self._server is None:
            return (self.host, self.port)
        return self._server.server_address[:2]

    @property
    def base_url(self) -> str:
        host, port = self.address
        return f"tcp://{host}:{port}"

    @property
    def running(self) -> bool:
        return self._server is not None

    @property
    def connection_count(self) -> int:
        if self._server is None:
            return 0
        return self._server.connection_count

    def start(self) -> "StubDaemon":
        if self._server is not None:
            raise RuntimeError("stub daemon already started")

        self._server = _ThreadingServer((self.host, self.port), InspectRequestHandler)
        self._thread = threading.Thread(
            target=self._server.serve_forever, name="stub-daemon", daemon=True
        )
        self._thread.start()
        logger.info("Stub daemon listening on %s", self.base_url)
        return self

    def stop(self) -> None:
        server = self._server
        if server is None:
            return

        base_url = self.base_url
        server.shutdown()
        server.close_connections()
        server.server_close()
        if self._thread is not None:
            self._thread.join()
        logger.info("Stub daemon on %s stopped", base_url)
        self._server = None
        self._thread = None

    def serve_forever(self) -> None:
        """Run the accept loop in the calling thread until interrupted or stopped."""
        if self._server is not None:
            raise RuntimeError("stub daemon already started")

        server = self._server = _ThreadingServer((self.host, self.port), InspectRequestHandler)
        logger.info("Stub daemon listening on %s", self.base_url)
        try:
            server.serve_forever()
        finally:
            server.close_connections()
            server.server_close()
            self._server = None

    def __enter__(self) -> "StubDaemon":
        return self.start()

    def __exit__(self, *exc_info) -> None:
        self.stop()
