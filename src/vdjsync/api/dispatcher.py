"""HTTP dispatcher posting deck updates to the video sync server.

All access to the underlying connection goes through one lock, so a
rebind from the config watcher can never tear the client out from under a
send running on the sampler thread.
"""

import http.client
import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass

from vdjsync.api.protocol import CONTENT_TYPE, UPDATE_PATH, encode_deck_update
from vdjsync.models.deck_state import DeckState
from vdjsync.models.endpoint import Endpoint

logger = logging.getLogger(__name__)

# Connect and read timeout in seconds
REQUEST_TIMEOUT = 2.0

ClientFactory = Callable[[Endpoint], http.client.HTTPConnection]


def create_connection(endpoint: Endpoint) -> http.client.HTTPConnection:
    """Create an HTTP connection for an endpoint (does not connect yet)."""
    return http.client.HTTPConnection(endpoint.host, endpoint.port, timeout=REQUEST_TIMEOUT)


@dataclass(slots=True)
class DispatchStats:
    """Counters for dispatched updates.

    Attributes:
        sent: Updates acknowledged with a 2xx status.
        failed: Updates that failed or got a non-2xx status.
        rebinds: Number of client replacements.
    """

    sent: int = 0
    failed: int = 0
    rebinds: int = 0


class Dispatcher:
    """Best-effort, fire-and-forget sender of deck updates.

    Example:
        dispatcher = Dispatcher(Endpoint("127.0.0.1", 8090))
        dispatcher.send(DeckState(deck=1, filename="track.mp3"))
        dispatcher.rebind(Endpoint("192.168.1.20", 8090))
        dispatcher.close()
    """

    def __init__(
        self,
        endpoint: Endpoint | None = None,
        client_factory: ClientFactory = create_connection,
    ) -> None:
        """Initialize the dispatcher.

        Args:
            endpoint: Server endpoint (defaults to 127.0.0.1:8090).
            client_factory: Builds the connection for an endpoint.
        """
        self._endpoint = endpoint or Endpoint()
        self._client_factory = client_factory
        self._client: http.client.HTTPConnection | None = None
        self._closed = False
        self._lock = threading.Lock()
        self._stats = DispatchStats()

    @property
    def endpoint(self) -> Endpoint:
        """Return the endpoint the dispatcher is bound to."""
        return self._endpoint

    @property
    def stats(self) -> DispatchStats:
        """Return a copy of the dispatch counters."""
        with self._lock:
            return DispatchStats(self._stats.sent, self._stats.failed, self._stats.rebinds)

    @property
    def is_closed(self) -> bool:
        """Return True once close() has been called."""
        return self._closed

    def send(self, state: DeckState) -> bool:
        """Post a deck update.

        Never raises for transport problems and never retries.

        Args:
            state: Deck state to send.

        Returns:
            True if the server answered with a 2xx status.
        """
        body = encode_deck_update(state).encode("utf-8")
        with self._lock:
            if self._closed:
                return False
            if self._client is None:
                self._client = self._client_factory(self._endpoint)
            client = self._client
            try:
                client.request(
                    "POST",
                    UPDATE_PATH,
                    body=body,
                    headers={"Content-Type": CONTENT_TYPE},
                )
                response = client.getresponse()
                response.read()
                status = response.status
            except (OSError, http.client.HTTPException) as e:
                logger.debug("Update for deck %d to %s failed: %s", state.deck, self._endpoint, e)
                # Drop the socket; HTTPConnection reconnects on the next request
                client.close()
                self._stats.failed += 1
                return False

            if 200 <= status < 300:  # noqa: PLR2004
                self._stats.sent += 1
                return True
            logger.debug("Server %s answered %d for deck %d", self._endpoint, status, state.deck)
            self._stats.failed += 1
            return False

    def rebind(self, endpoint: Endpoint) -> None:
        """Replace the client with one bound to a new endpoint.

        The new client is built and swapped in before the old one is closed,
        all under the dispatcher lock.

        Args:
            endpoint: New server endpoint.
        """
        with self._lock:
            if endpoint == self._endpoint and self._client is not None:
                return
            new_client = self._client_factory(endpoint)
            old_client = self._client
            self._client = new_client
            self._endpoint = endpoint
            self._closed = False
            self._stats.rebinds += 1
            if old_client is not None:
                old_client.close()
        logger.info("Dispatcher bound to %s", endpoint)

    def close(self) -> None:
        """Close the client. Later sends are dropped until the next rebind."""
        with self._lock:
            self._closed = True
            if self._client is not None:
                self._client.close()
                self._client = None
