"""
Shared test doubles: a fake remote for httpx.MockTransport and two small
local HTTP servers for tests that need real sockets.
"""

from __future__ import annotations

import socket
import threading
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import httpx

FILE_URL = "https://example.com/fake_image.png"
APP_NAME = "myapp"


class FakeRemote:
    """httpx.MockTransport handler standing in for a remote server.

    Records every request. Flip ``online`` to False to make the network
    unreachable, or change ``content``/``status`` between calls.
    """

    def __init__(self, content: bytes = b"\x89PNG fake image bytes", status: int = 200) -> None:
        self.content = content
        self.status = status
        self.online = True
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self.online:
            raise httpx.ConnectError("Network unreachable", request=request)
        return httpx.Response(self.status, content=self.content)


class TrickleServer:
    """Raw socket server that sends its body one byte per ``interval``.

    Every individual read succeeds quickly, so only a whole-request
    deadline stops a client from waiting for the full body.
    """

    def __init__(self, body_size: int = 10, interval: float = 0.2) -> None:
        self.body_size = body_size
        self.interval = interval
        self._stop = threading.Event()
        self._sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self._sock.bind(("127.0.0.1", 0))
        self._sock.listen(5)
        self._sock.settimeout(0.1)
        self._thread = threading.Thread(target=self._serve, daemon=True)

    @property
    def url(self) -> str:
        host, port = self._sock.getsockname()
        return f"http://{host}:{port}/slow"

    def start(self) -> None:
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()
        self._thread.join(timeout=5)
        self._sock.close()

    def _serve(self) -> None:
        while not self._stop.is_set():
            try:
                conn, _ = self._sock.accept()
            except OSError:
                continue
            with conn:
                self._handle(conn)

    def _handle(self, conn: socket.socket) -> None:
        conn.settimeout(5)
        try:
            request = b""
            while b"\r\n\r\n" not in request:
                chunk = conn.recv(65536)
                if not chunk:
                    return
                request += chunk
            conn.sendall(
                b"HTTP/1.1 200 OK\r\n"
                b"Content-Type: application/octet-stream\r\n"
                + f"Content-Length: {self.body_size}\r\n".encode("ascii")
                + b"Connection: close\r\n\r\n"
            )
            for _ in range(self.body_size):
                if self._stop.is_set():
                    return
                time.sleep(self.interval)
                conn.sendall(b"x")
        except OSError:
            # Client gave up mid-body
            return


class _EchoPathHandler(BaseHTTPRequestHandler):
    protocol_version = "HTTP/1.1"
    timeout = 5

    def do_GET(self) -> None:
        body = self.path.encode("utf-8")
        self.send_response(200)
        self.send_header("Content-Type", "text/plain")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format: str, *args: object) -> None:
        pass


class KeepAliveServer:
    """Threaded HTTP/1.1 server that keeps connections open and echoes the path."""

    def __init__(self) -> None:
        self._server = ThreadingHTTPServer(("127.0.0.1", 0), _EchoPathHandler)
        self._thread = threading.Thread(target=self._server.serve_forever, daemon=True)

    @property
    def url(self) -> str:
        host, port = self._server.server_address[:2]
        return f"http://{host}:{port}"

    def start(self) -> None:
        self._thread.start()

    def stop(self) -> None:
        self._server.shutdown()
        self._server.server_close()
        self._thread.join(timeout=5)
