"""Shared fixtures for vdjsync tests."""

import os
import threading
from collections.abc import Callable, Generator
from unittest.mock import MagicMock
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest

# Run Qt headless when no display is available.
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from vdjsync.api.dispatcher import Dispatcher
from vdjsync.core.config import ConfigManager
from vdjsync.core.host import MemoryHost
from vdjsync.models.deck_state import DeckState
from vdjsync.models.endpoint import Endpoint


class FakeResponse:
    """Minimal stand-in for http.client.HTTPResponse."""

    def __init__(self, status: int = 200) -> None:
        self.status = status

    def read(self) -> bytes:
        return b""


class FakeConnection:
    """Stand-in for http.client.HTTPConnection recording requests.

    Raises if used after close() so a torn client swap is detected.
    """

    def __init__(self, endpoint: Endpoint, status: int = 200) -> None:
        self.endpoint = endpoint
        self.status = status
        self.requests: list[tuple[str, str, bytes, dict[str, str]]] = []
        self.closed = False

    def request(self, method: str, url: str, body: bytes, headers: dict[str, str]) -> None:
        if self.closed:
            raise RuntimeError(f"request on closed connection to {self.endpoint}")
        self.requests.append((method, url, body, headers))

    def getresponse(self) -> FakeResponse:
        if self.closed:
            raise RuntimeError(f"response on closed connection to {self.endpoint}")
        return FakeResponse(self.status)

    def close(self) -> None:
        self.closed = True


class RecordingDispatcher(Dispatcher):
    """Dispatcher that records sent states instead of posting them.

    ``on_send`` runs before each state is recorded; returning False makes
    the send report failure.
    """

    def __init__(
        self,
        endpoint: Endpoint | None = None,
        on_send: Callable[[DeckState], bool | None] | None = None,
    ) -> None:
        super().__init__(endpoint, client_factory=FakeConnection)  # type: ignore[arg-type]
        self._on_send = on_send
        self._record_lock = threading.Lock()
        self.sent: list[DeckState] = []
        self.rebound: list[Endpoint] = []

    def send(self, state: DeckState) -> bool:
        result = self._on_send(state) if self._on_send is not None else None
        with self._record_lock:
            self.sent.append(state)
        return result is not False

    def rebind(self, endpoint: Endpoint) -> None:
        with self._record_lock:
            self.rebound.append(endpoint)
        super().rebind(endpoint)

    def sent_for(self, deck: int) -> list[DeckState]:
        with self._record_lock:
            return [s for s in self.sent if s.deck == deck]


class UpdateServer:
    """Local HTTP server capturing posted deck updates."""

    def __init__(self, status: int = 200) -> None:
        self.requests: list[tuple[str, str, bytes]] = []
        self._lock = threading.Lock()
        owner = self

        class Handler(BaseHTTPRequestHandler):
            def do_POST(self) -> None:  # noqa: N802
                length = int(self.headers.get("Content-Length", "0"))
                body = self.rfile.read(length)
                with owner._lock:
                    owner.requests.append(
                        (self.path, self.headers.get("Content-Type", ""), body)
                    )
                self.send_response(status)
                self.send_header("Content-Length", "0")
                self.end_headers()

            def log_message(self, format: str, *args: object) -> None:  # noqa: A002
                pass

        self._server = ThreadingHTTPServer(("127.0.0.1", 0), Handler)
        self._thread = threading.Thread(target=self._server.serve_forever, daemon=True)

    @property
    def endpoint(self) -> Endpoint:
        return Endpoint("127.0.0.1", self._server.server_address[1])

    def received(self) -> list[tuple[str, str, bytes]]:
        with self._lock:
            return list(self.requests)

    def start(self) -> None:
        self._thread.start()

    def stop(self) -> None:
        self._server.shutdown()
        self._server.server_close()
        self._thread.join()


@pytest.fixture
def config() -> ConfigManager:
    """Return a fresh ConfigManager for each test."""
    # Use unique organization/app to avoid test interference
    config = ConfigManager("VdjVideoSyncTest", "TestConfig")
    config.clear()
    return config


@pytest.fixture
def host() -> MemoryHost:
    """Return an empty in-memory host."""
    return MemoryHost()


@pytest.fixture
def dispatcher_factory() -> Callable[..., Dispatcher]:
    """Return a factory for recording dispatchers.

    Built dispatchers keep sent states in ``.sent`` and rebinds in ``.rebound``.
    Pass ``on_send`` to hook each send.
    """
    return RecordingDispatcher


@pytest.fixture
def dispatcher(dispatcher_factory: Callable[..., Dispatcher]) -> Dispatcher:
    """Return a dispatcher recording sends."""
    return dispatcher_factory()


@pytest.fixture
def connection_factory() -> MagicMock:
    """Return a client factory building fake connections.

    Built connections are kept in ``.created``; ``.status`` sets the HTTP
    status they answer with.
    """
    factory = MagicMock()
    factory.created = []
    factory.status = 200

    def build(endpoint: Endpoint) -> FakeConnection:
        connection = FakeConnection(endpoint, status=factory.status)
        factory.created.append(connection)
        return connection

    factory.side_effect = build
    return factory


@pytest.fixture
def server_factory() -> Generator[Callable[[], UpdateServer], None, None]:
    """Return a factory starting local update servers, stopped after the test."""
    servers: list[UpdateServer] = []

    def start() -> UpdateServer:
        server = UpdateServer()
        server.start()
        servers.append(server)
        return server

    yield start
    for server in servers:
        server.stop()


@pytest.fixture
def update_server(server_factory: Callable[[], UpdateServer]) -> UpdateServer:
    """Run a local server accepting deck updates."""
    return server_factory()
