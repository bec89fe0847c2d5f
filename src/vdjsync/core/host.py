"""Host (VirtualDJ) query interface and per-deck state reader.

The plugin only talks to the host through ``HostQuery``: numeric and
string info queries, script commands and the persistent variable store.
"""

import logging
import math
import threading
from typing import Protocol

from vdjsync.models.deck_state import DEFAULT_PITCH, DeckState

logger = logging.getLogger(__name__)

# Persistent VirtualDJ variables holding the sync server endpoint
VAR_SERVER_IP = "@$video_sync_ip"
VAR_SERVER_PORT = "@$video_sync_port"

MS_PER_SECOND = 1000


class HostQuery(Protocol):
    """Read access to the host plus its scripting variable store."""

    def get_info(self, query: str) -> float | None:
        """Return a numeric value, or None when unavailable."""
        ...

    def get_string_info(self, query: str) -> str | None:
        """Return a string value, or None when unavailable."""
        ...

    def send_command(self, command: str) -> None:
        """Run a host script command."""
        ...

    def get_variable(self, name: str) -> str | None:
        """Return a persistent variable, or None when unset."""
        ...

    def set_variable(self, name: str, value: str) -> None:
        """Set a persistent variable."""
        ...

    def prompt_variable(self, name: str, label: str) -> None:
        """Show an edit prompt for a variable (result lands in the variable later)."""
        ...


def deck_query(deck: int, verb: str) -> str:
    """Build a deck-prefixed host query, e.g. ``deck 2 get_bpm``."""
    return f"deck {deck} {verb}"


def _number(host: HostQuery, query: str) -> float | None:
    try:
        value = host.get_info(query)
    except Exception as e:  # noqa: BLE001
        logger.debug("Host query %r failed: %s", query, e)
        return None
    # NaN and infinities count as unavailable
    if value is None or not math.isfinite(value):
        return None
    return value


def _string(host: HostQuery, query: str) -> str | None:
    try:
        return host.get_string_info(query)
    except Exception as e:  # noqa: BLE001
        logger.debug("Host query %r failed: %s", query, e)
        return None


def read_deck_state(host: HostQuery, deck: int) -> DeckState:
    """Read one deck's state from the host.

    Each field is queried on its own; an unavailable field keeps its
    default (0, False, empty string, or 100.0 for pitch).

    Args:
        host: Host to query.
        deck: Deck index, 1-based.

    Returns:
        DeckState for the deck.
    """
    audible = _number(host, deck_query(deck, "is_audible"))
    playing = _number(host, deck_query(deck, "play"))
    volume = _number(host, deck_query(deck, "get_volume"))
    elapsed = _number(host, deck_query(deck, "get_time elapsed absolute"))
    bpm = _number(host, deck_query(deck, "get_bpm"))
    filename = _string(host, deck_query(deck, "get_filename"))
    pitch = _number(host, deck_query(deck, "get_pitch_value"))
    length = _number(host, deck_query(deck, "get_songlength"))
    title = _string(host, deck_query(deck, "get_title"))
    artist = _string(host, deck_query(deck, "get_artist"))

    return DeckState(
        deck=deck,
        is_audible=audible is not None and audible != 0.0,
        is_playing=playing is not None and playing != 0.0,
        volume=volume if volume is not None else 0.0,
        elapsed_ms=int(elapsed) if elapsed is not None else 0,
        bpm=bpm if bpm is not None else 0.0,
        filename=filename or "",
        pitch=pitch if pitch is not None else DEFAULT_PITCH,
        total_time_ms=int(length * MS_PER_SECOND) if length is not None else 0,
        title=title or "",
        artist=artist or "",
    )


class MemoryHost:
    """In-memory host used by the simulator and tests.

    Thread-safe: values may be changed from one thread while the sampler
    and watcher read them from others.

    Example:
        host = MemoryHost()
        host.load_deck(DeckState(deck=1, is_playing=True, filename="a.mp3"))
        host.set_variable(VAR_SERVER_PORT, "9000")
    """

    def __init__(self) -> None:
        """Initialize an empty host."""
        self._lock = threading.Lock()
        self._numbers: dict[str, float] = {}
        self._strings: dict[str, str] = {}
        self._variables: dict[str, str] = {}
        self._commands: list[str] = []
        self._prompts: list[tuple[str, str]] = []

    def get_info(self, query: str) -> float | None:
        """Return a numeric value, or None when unavailable."""
        with self._lock:
            return self._numbers.get(query)

    def get_string_info(self, query: str) -> str | None:
        """Return a string value, or None when unavailable."""
        with self._lock:
            return self._strings.get(query)

    def send_command(self, command: str) -> None:
        """Record a script command."""
        with self._lock:
            self._commands.append(command)

    def get_variable(self, name: str) -> str | None:
        """Return a persistent variable, or None when unset."""
        with self._lock:
            return self._variables.get(name)

    def set_variable(self, name: str, value: str) -> None:
        """Set a persistent variable."""
        with self._lock:
            self._variables[name] = value

    def prompt_variable(self, name: str, label: str) -> None:
        """Record an edit prompt request."""
        with self._lock:
            self._prompts.append((name, label))

    def set_info(self, query: str, value: float | None) -> None:
        """Set (or with None, remove) a numeric value."""
        with self._lock:
            if value is None:
                self._numbers.pop(query, None)
            else:
                self._numbers[query] = value

    def set_string_info(self, query: str, value: str | None) -> None:
        """Set (or with None, remove) a string value."""
        with self._lock:
            if value is None:
                self._strings.pop(query, None)
            else:
                self._strings[query] = value

    def load_deck(self, state: DeckState) -> None:
        """Expose a deck state through the deck queries."""
        deck = state.deck
        numbers = {
            "is_audible": 1.0 if state.is_audible else 0.0,
            "play": 1.0 if state.is_playing else 0.0,
            "get_volume": state.volume,
            "get_time elapsed absolute": float(state.elapsed_ms),
            "get_bpm": state.bpm,
            "get_pitch_value": state.pitch,
            "get_songlength": state.total_time_ms / MS_PER_SECOND,
        }
        strings = {
            "get_filename": state.filename,
            "get_title": state.title,
            "get_artist": state.artist,
        }
        with self._lock:
            for verb, value in numbers.items():
                self._numbers[deck_query(deck, verb)] = value
            for verb, text in strings.items():
                self._strings[deck_query(deck, verb)] = text

    def unload_deck(self, deck: int) -> None:
        """Remove every value of a deck."""
        prefix = deck_query(deck, "")
        with self._lock:
            for table in (self._numbers, self._strings):
                for key in [k for k in table if k.startswith(prefix)]:
                    del table[key]

    @property
    def commands(self) -> list[str]:
        """Return a copy of the recorded script commands."""
        with self._lock:
            return list(self._commands)

    @property
    def prompts(self) -> list[tuple[str, str]]:
        """Return a copy of the recorded prompt requests."""
        with self._lock:
            return list(self._prompts)
