"""Data models for deck snapshots and the sync server endpoint."""

from vdjsync.models.deck_state import DeckState
from vdjsync.models.endpoint import (
    DEFAULT_HOST,
    DEFAULT_PORT,
    Endpoint,
    InvalidEndpointError,
    parse_port,
    validate_host,
)

__all__ = [
    "DEFAULT_HOST",
    "DEFAULT_PORT",
    "DeckState",
    "Endpoint",
    "InvalidEndpointError",
    "parse_port",
    "validate_host",
]
