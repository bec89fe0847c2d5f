"""Wire format of deck updates posted to the video sync server.

Floats are always written with six decimals and a '.' separator so the
server can parse the body whatever the locale of the DJ machine.
"""

import json
import math
from typing import Any

from vdjsync.models.deck_state import DEFAULT_PITCH, DeckState

UPDATE_PATH = "/api/deck/update"
CONTENT_TYPE = "application/json"


class ProtocolError(ValueError):
    """Raised when a deck update body cannot be decoded."""


def format_float(value: float) -> str:
    """Render a float with exactly six decimals.

    Python's format spec never applies the locale decimal separator, so
    the output always uses '.'. NaN and infinities become 0.000000.
    """
    if not math.isfinite(value):
        value = 0.0
    return f"{value:.6f}"


def _quote(value: str) -> str:
    return json.dumps(value, ensure_ascii=False)


def _bool(value: bool) -> str:
    return "true" if value else "false"


def encode_deck_update(state: DeckState) -> str:
    """Serialize a deck state to the JSON body of an update request."""
    fields = [
        ("deck", str(int(state.deck))),
        ("isAudible", _bool(state.is_audible)),
        ("isPlaying", _bool(state.is_playing)),
        ("volume", format_float(state.volume)),
        ("elapsedMs", str(int(state.elapsed_ms))),
        ("bpm", format_float(state.bpm)),
        ("filename", _quote(state.filename)),
        ("pitch", format_float(state.pitch)),
        ("totalTimeMs", str(int(state.total_time_ms))),
        ("title", _quote(state.title)),
        ("artist", _quote(state.artist)),
    ]
    return "{" + ",".join(f'"{name}":{value}' for name, value in fields) + "}"


def _get(data: dict[str, Any], key: str, kind: type, default: Any) -> Any:
    value = data.get(key, default)
    if kind is float and isinstance(value, int) and not isinstance(value, bool):
        value = float(value)
    if not isinstance(value, kind) or (kind is int and isinstance(value, bool)):
        raise ProtocolError(f"Field {key!r} has unexpected type {type(value).__name__}")
    return value


def decode_deck_update(body: str | bytes) -> DeckState:
    """Parse an update body back into a DeckState.

    Missing fields take the DeckState defaults.

    Raises:
        ProtocolError: If the body is not a JSON object or a field has the wrong type.
    """
    try:
        data = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ProtocolError(f"Invalid JSON body: {e}") from e
    if not isinstance(data, dict):
        raise ProtocolError("Deck update body must be a JSON object")
    if "deck" not in data:
        raise ProtocolError("Deck update body has no 'deck' field")

    return DeckState(
        deck=_get(data, "deck", int, 0),
        is_audible=_get(data, "isAudible", bool, False),
        is_playing=_get(data, "isPlaying", bool, False),
        volume=_get(data, "volume", float, 0.0),
        elapsed_ms=_get(data, "elapsedMs", int, 0),
        bpm=_get(data, "bpm", float, 0.0),
        filename=_get(data, "filename", str, ""),
        pitch=_get(data, "pitch", float, DEFAULT_PITCH),
        total_time_ms=_get(data, "totalTimeMs", int, 0),
        title=_get(data, "title", str, ""),
        artist=_get(data, "artist", str, ""),
    )
