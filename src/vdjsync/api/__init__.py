"""HTTP transport for deck updates."""

from vdjsync.api.dispatcher import DispatchStats, Dispatcher
from vdjsync.api.protocol import (
    CONTENT_TYPE,
    UPDATE_PATH,
    ProtocolError,
    decode_deck_update,
    encode_deck_update,
)

__all__ = [
    "CONTENT_TYPE",
    "UPDATE_PATH",
    "DispatchStats",
    "Dispatcher",
    "ProtocolError",
    "decode_deck_update",
    "encode_deck_update",
]
