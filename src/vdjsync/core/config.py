"""Plugin parameter store using QSettings for persistent storage.

Holds the values shown in the plugin's parameter panel. The server IP and
port are kept as strings, the way the host persists string parameters.
"""

import logging

from PySide6.QtCore import QSettings

from vdjsync.models.endpoint import DEFAULT_HOST, DEFAULT_PORT

logger = logging.getLogger(__name__)

# Settings keys
_KEY_SERVER_IP = "server/ip"
_KEY_SERVER_PORT = "server/port"

# Sampling
_KEY_POLL_INTERVAL = "sampling/poll_interval_ms"
_KEY_WATCH_INTERVAL = "sampling/watch_interval_ms"
_KEY_DECK_COUNT = "sampling/deck_count"

DEFAULT_POLL_INTERVAL_MS = 50
DEFAULT_WATCH_INTERVAL_MS = 200
MAX_DECKS = 4


def _clamp(value: object, default: int, low: int, high: int) -> int:
    try:
        number = int(value)  # type: ignore[call-overload]
    except (TypeError, ValueError):
        logger.warning("Ignoring non-numeric setting value %r", value)
        number = default
    return max(low, min(high, number))


class ConfigManager:
    """Wrapper around QSettings for type-safe parameter access.

    Example:
        config = ConfigManager()
        config.set_server_ip("192.168.1.20")
        config.get_server_port()  # "8090"
    """

    def __init__(self, organization: str = "VdjVideoSync", application: str = "VdjVideoSync") -> None:
        """Initialize the config manager.

        Args:
            organization: Organization name for QSettings.
            application: Application name for QSettings.
        """
        self._settings = QSettings(organization, application)

    @property
    def settings(self) -> QSettings:
        """Return the underlying QSettings instance."""
        return self._settings

    # -- Server parameters -----------------------------------------------------

    def get_server_ip(self) -> str:
        """Return the server IP parameter (unvalidated)."""
        value = self._settings.value(_KEY_SERVER_IP, DEFAULT_HOST, str)
        return str(value) if value is not None else ""

    def set_server_ip(self, host: str) -> None:
        """Set the server IP parameter."""
        self._settings.setValue(_KEY_SERVER_IP, host)

    def get_server_port(self) -> str:
        """Return the server port parameter as a string (unvalidated)."""
        value = self._settings.value(_KEY_SERVER_PORT, str(DEFAULT_PORT), str)
        return str(value) if value is not None else ""

    def set_server_port(self, port: str | int) -> None:
        """Set the server port parameter."""
        self._settings.setValue(_KEY_SERVER_PORT, str(port))

    # -- Sampling settings -----------------------------------------------------

    def get_poll_interval_ms(self) -> int:
        """Return the sampling interval in milliseconds (10-1000, default 50)."""
        value = self._settings.value(_KEY_POLL_INTERVAL, DEFAULT_POLL_INTERVAL_MS)
        return _clamp(value, DEFAULT_POLL_INTERVAL_MS, 10, 1000)

    def set_poll_interval_ms(self, interval_ms: int) -> None:
        """Set the sampling interval (clamped to 10-1000 ms)."""
        self._settings.setValue(_KEY_POLL_INTERVAL, max(10, min(1000, interval_ms)))

    def get_watch_interval_ms(self) -> int:
        """Return the config watcher interval in milliseconds (50-5000, default 200)."""
        value = self._settings.value(_KEY_WATCH_INTERVAL, DEFAULT_WATCH_INTERVAL_MS)
        return _clamp(value, DEFAULT_WATCH_INTERVAL_MS, 50, 5000)

    def set_watch_interval_ms(self, interval_ms: int) -> None:
        """Set the config watcher interval (clamped to 50-5000 ms)."""
        self._settings.setValue(_KEY_WATCH_INTERVAL, max(50, min(5000, interval_ms)))

    def get_deck_count(self) -> int:
        """Return the number of decks to sample (1-4, default 4)."""
        value = self._settings.value(_KEY_DECK_COUNT, MAX_DECKS)
        return _clamp(value, MAX_DECKS, 1, MAX_DECKS)

    def set_deck_count(self, count: int) -> None:
        """Set the number of decks to sample (clamped to 1-4)."""
        self._settings.setValue(_KEY_DECK_COUNT, max(1, min(MAX_DECKS, count)))

    # -- General settings ------------------------------------------------------

    def clear(self) -> None:
        """Clear all settings (useful for testing or reset)."""
        self._settings.clear()

    def sync(self) -> None:
        """Force settings to be written to disk."""
        self._settings.sync()
