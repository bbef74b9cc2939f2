"""
pytest configuration and fixtures.
"""

import socket
import threading
from typing import Generator, List

import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from httpchain import HTTPServer, ServerConfig, JWTVerifier, create_router, Dispatcher
from httpchain.http import Request, Response
from httpchain.middleware import Middleware


# HMAC keys shorter than the hash size make PyJWT warn.
JWT_SECRET = "test-secret-0123456789abcdef0123456789abcdef"


class SpyLeaf:
    """Leaf handler that records every call and writes a fixed body."""

    def __init__(self, body: str = "leaf"):
        self.body = body
        self.calls: List[Request] = []

    @property
    def call_count(self) -> int:
        return len(self.calls)

    def __call__(self, request: Request, response: Response) -> None:
        self.calls.append(request)
        response.write(self.body)


class RecordingMiddleware(Middleware):
    """Appends its label to a shared list, then forwards."""

    def __init__(self, next_handler, label: str, trace: list):
        super().__init__(next_handler)
        self.label = label
        self.trace = trace

    def __call__(self, request: Request, response: Response) -> None:
        self.trace.append(self.label)
        self.forward(request, response)


@pytest.fixture
def spy_leaf() -> SpyLeaf:
    return SpyLeaf()


@pytest.fixture
def trace() -> list:
    return []


@pytest.fixture
def jwt_secret() -> str:
    return JWT_SECRET


@pytest.fixture
def verifier(jwt_secret: str) -> JWTVerifier:
    return JWTVerifier(jwt_secret)


@pytest.fixture
def valid_token(verifier: JWTVerifier) -> str:
    return verifier.issue({"sub": "tester"}, expires_in=300)


@pytest.fixture
def demo_dispatcher(verifier: JWTVerifier) -> Dispatcher:
    """The demo route table (/, /post, /health) behind a Dispatcher."""
    return Dispatcher(create_router(verifier))


def _make_request(path: str, method: str = "GET", **headers: str) -> Request:
    return Request(
        method=method,
        path=path,
        headers={name.replace("_", "-"): value for name, value in headers.items()},
    )


@pytest.fixture
def make_request():
    """Request builder; keyword headers use underscores for dashes."""
    return _make_request


@pytest.fixture
def recorder(trace: list):
    """Factory of RecordingMiddleware factories sharing one trace list."""
    def make(label: str):
        return RecordingMiddleware.factory(label=label, trace=trace)
    return make


@pytest.fixture
def config(jwt_secret: str) -> ServerConfig:
    """Default test server configuration."""
    return ServerConfig(
        host="127.0.0.1",
        port=0,  # Let OS pick a free port
        min_workers=2,
        max_workers=4,
        timeout=5.0,
        keep_alive_timeout=1.0,
        log_level="WARNING",
        jwt_secret=jwt_secret,
    )


class BackgroundServer:
    """Runs an HTTPServer in a daemon thread for socket-level tests."""

    def __init__(self, server: HTTPServer):
        self.server = server
        self._thread: threading.Thread = None

    @property
    def port(self) -> int:
        return self.server.address[1]

    def start(self):
        self._thread = threading.Thread(
            target=self.server.run,
            kwargs={"configure_logging": False},
            daemon=True,
        )
        self._thread.start()
        if not self.server.wait_until_ready(timeout=5.0):
            raise RuntimeError("Server failed to start")

    def stop(self):
        self.server.shutdown()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=10.0)

    def request(self, raw: bytes) -> bytes:
        """Send raw bytes on a fresh connection and read until close."""
        with socket.create_connection(("127.0.0.1", self.port), timeout=5.0) as sock:
            sock.sendall(raw)
            chunks = []
            while True:
                chunk = sock.recv(4096)
                if not chunk:
                    break
                chunks.append(chunk)
        return b"".join(chunks)


@pytest.fixture
def test_server(config: ServerConfig, demo_dispatcher: Dispatcher) -> Generator[BackgroundServer, None, None]:
    """The demo app served on a free port."""
    background = BackgroundServer(HTTPServer(demo_dispatcher, config))
    background.start()

    yield background

    background.stop()


@pytest.fixture
def serve_in_background():
    """Start any HTTPServer in the background; stopped at teardown."""
    started: List[BackgroundServer] = []

    def start(server: HTTPServer) -> BackgroundServer:
        background = BackgroundServer(server)
        background.start()
        started.append(background)
        return background

    yield start

    for background in started:
        background.stop()
