"""Deck sampler: polls the host and sends deck state changes.

Each tick reads every deck back-to-back before any network call, so the
mirrored-deck comparison works on values sampled at the same instant.
Only then are the surviving decks compared against what was last sent and
dispatched.
"""

import logging
import threading
import time
from collections.abc import Callable, Sequence

from PySide6.QtCore import QObject, Signal

from vdjsync.api.dispatcher import Dispatcher
from vdjsync.core.config import DEFAULT_POLL_INTERVAL_MS, MAX_DECKS
from vdjsync.core.config_sync import ConfigSync
from vdjsync.core.host import HostQuery, read_deck_state
from vdjsync.models.deck_state import DeckState

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = DEFAULT_POLL_INTERVAL_MS / 1000  # seconds


def find_mirrored_decks(states: Sequence[DeckState]) -> list[bool]:
    """Flag decks that must not be sent this tick.

    When the plugin runs on the master bus the host reports a loaded deck's
    filename and transport on decks that have nothing loaded. A deck is
    flagged when it is empty, or when an earlier deck that is not itself
    flagged has the same filename, play and audible state. The first such
    earlier deck wins.

    Args:
        states: Deck states in deck order.

    Returns:
        One flag per state, True meaning suppressed.
    """
    suppressed = [False] * len(states)
    for index, state in enumerate(states):
        if not state.is_loaded:
            suppressed[index] = True
            continue
        for prev in range(index):
            if suppressed[prev]:
                continue
            if state.mirrors(states[prev]):
                suppressed[index] = True
                break
    return suppressed


class SamplerLoop(QObject):
    """Periodic deck sampler running in a background thread.

    Started when the effect is switched on in the host and stopped when it
    is switched off. ``stop()`` waits for the thread, so no tick is in
    flight once it returns.

    Example:
        sampler = SamplerLoop(host, dispatcher, config_sync)
        sampler.deck_sent.connect(lambda s: print(f"deck {s.deck} sent"))
        sampler.start()
        ...
        sampler.stop()
    """

    # Emitted with the DeckState after it was handed to the dispatcher
    deck_sent = Signal(object)

    def __init__(
        self,
        host: HostQuery,
        dispatcher: Dispatcher,
        config_sync: ConfigSync,
        deck_count: int = MAX_DECKS,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        parent: QObject | None = None,
    ) -> None:
        """Initialize the sampler.

        Args:
            host: Host to read deck state from.
            dispatcher: Dispatcher used to send updates.
            config_sync: Reconciled at the start of every tick.
            deck_count: Number of decks to sample.
            poll_interval: Target tick period in seconds.
            parent: Optional parent QObject.
        """
        super().__init__(parent)
        if deck_count < 1:
            raise ValueError(f"deck_count must be at least 1, got {deck_count}")
        self._host = host
        self._dispatcher = dispatcher
        self._config_sync = config_sync
        self._deck_count = deck_count
        self._poll_interval = poll_interval
        self._last_sent = [DeckState(deck=d) for d in range(1, deck_count + 1)]
        self._lock = threading.Lock()
        self._stop_event: threading.Event | None = None
        self._thread: threading.Thread | None = None

    @property
    def deck_count(self) -> int:
        """Return the number of sampled decks."""
        return self._deck_count

    @property
    def poll_interval(self) -> float:
        """Return the tick period in seconds."""
        return self._poll_interval

    @property
    def is_running(self) -> bool:
        """Return True between ``start()`` and ``stop()``."""
        return self._stop_event is not None

    def last_sent(self, deck: int) -> DeckState:
        """Return the last state sent for a deck (1-based)."""
        return self._last_sent[deck - 1]

    def reset(self) -> None:
        """Forget what was sent so every loaded deck is sent on the next tick."""
        self._last_sent = [DeckState(deck=d) for d in range(1, self._deck_count + 1)]

    def start(self) -> None:
        """Start sampling in a background thread.

        A thread that stopped itself from inside a tick is joined first, so
        at most one sampler thread touches the last-sent state.
        """
        with self._lock:
            if self._stop_event is not None:
                return
            previous, self._thread = self._thread, None
        if previous is not None and previous is not threading.current_thread():
            previous.join()

        with self._lock:
            if self._stop_event is not None:
                return
            # Each thread gets its own event so a restart never revives an old one
            stop_event = threading.Event()
            self._stop_event = stop_event
            self._thread = threading.Thread(
                target=self.run,
                args=(lambda: not stop_event.is_set(),),
                name="vdjsync-sampler",
                daemon=True,
            )
            self._thread.start()
        logger.info(
            "Sampler started (%d decks, %.0f ms)", self._deck_count, self._poll_interval * 1000
        )

    def stop(self) -> None:
        """Stop sampling and wait for the current tick to finish.

        Called from the sampler thread itself, only signals the stop; the
        next ``start()`` joins that thread.
        """
        with self._lock:
            stop_event, self._stop_event = self._stop_event, None
            if stop_event is None:
                return
            stop_event.set()
            thread = self._thread
            if thread is threading.current_thread():
                thread = None
            else:
                self._thread = None
        if thread is not None:
            thread.join()
        logger.info("Sampler stopped")

    def run(self, should_continue: Callable[[], bool]) -> None:
        """Tick until ``should_continue`` returns False.

        Sleeps the remainder of the poll interval after each tick; an
        overrun tick is followed immediately by the next one.
        """
        while should_continue():
            started = time.monotonic()
            try:
                self.tick()
            except Exception:
                logger.exception("Sampler tick failed")
            remaining = self._poll_interval - (time.monotonic() - started)
            if remaining > 0:
                time.sleep(remaining)

    def tick(self) -> list[DeckState]:
        """Run one sampling pass.

        Returns:
            The deck states handed to the dispatcher, in deck order.
        """
        self._config_sync.reconcile()

        current = [read_deck_state(self._host, d) for d in range(1, self._deck_count + 1)]
        suppressed = find_mirrored_decks(current)

        sent: list[DeckState] = []
        for index, state in enumerate(current):
            if suppressed[index]:
                continue
            # Playing decks go out every tick to keep elapsedMs live
            if state != self._last_sent[index] or state.is_playing:
                self._last_sent[index] = state
                self._dispatcher.send(state)
                sent.append(state)
                self.deck_sent.emit(state)
        return sent
