"""Reconciles the endpoint configuration with the host's editable stores.

The endpoint can be edited from two places: the plugin parameter panel
(``ConfigManager``) and the host's persistent variables (edited through a
script prompt). ``ConfigSync`` owns the authoritative ``Endpoint``; the
variable store wins whenever it disagrees with the last known value, and
every change rebinds the dispatcher.

``reconcile()`` is called from both the sampler and the watcher thread and
is serialized by an internal lock.
"""

import logging
import threading

from PySide6.QtCore import QObject, Signal

from vdjsync.api.dispatcher import Dispatcher
from vdjsync.core.config import ConfigManager
from vdjsync.core.host import VAR_SERVER_IP, VAR_SERVER_PORT, HostQuery
from vdjsync.models.endpoint import Endpoint, parse_port, validate_host

logger = logging.getLogger(__name__)

FIELD_HOST = "host"
FIELD_PORT = "port"

PROMPT_LABEL_IP = "Video Sync server IP"
PROMPT_LABEL_PORT = "Video Sync server port"


class ConfigSync(QObject):
    """Single authority for the sync server endpoint.

    Example:
        sync = ConfigSync(host, dispatcher, config)
        sync.endpoint_changed.connect(lambda ep: print(f"Now sending to {ep}"))
        sync.publish()
        sync.reconcile()  # picks up edits made in the host's variables
    """

    # Emitted with the new Endpoint after a change was applied
    endpoint_changed = Signal(object)

    # Emitted with (field, raw value) when an external value fails validation
    value_rejected = Signal(str, str)

    def __init__(
        self,
        host: HostQuery,
        dispatcher: Dispatcher,
        config: ConfigManager | None = None,
        endpoint: Endpoint | None = None,
        parent: QObject | None = None,
    ) -> None:
        """Initialize the config sync.

        Args:
            host: Host providing the persistent variable store.
            dispatcher: Dispatcher to rebind on changes.
            config: Parameter store mirrored on changes (optional).
            endpoint: Initial endpoint (defaults to the dispatcher's).
            parent: Optional parent QObject.
        """
        super().__init__(parent)
        self._host = host
        self._dispatcher = dispatcher
        self._config = config
        self._endpoint = endpoint or dispatcher.endpoint
        self._lock = threading.RLock()
        self._rejected: dict[str, str] = {}

    @property
    def endpoint(self) -> Endpoint:
        """Return the current endpoint."""
        with self._lock:
            return self._endpoint

    def reconcile(self) -> bool:
        """Pull edits from the variable store into the endpoint.

        Invalid values are ignored and the previous valid value is kept.
        Does nothing when the store agrees with the current endpoint.

        Returns:
            True if the endpoint changed.
        """
        rejected: list[tuple[str, str]] = []
        with self._lock:
            raw_host = self._read_variable(VAR_SERVER_IP)
            raw_port = self._read_variable(VAR_SERVER_PORT)
            host = self._validated(FIELD_HOST, raw_host, validate_host(raw_host), rejected)
            port = self._validated(FIELD_PORT, raw_port, parse_port(raw_port), rejected)
            changed = self._apply(host, port)
            endpoint = self._endpoint
        for field, raw in rejected:
            self.value_rejected.emit(field, raw)
        if changed:
            self.endpoint_changed.emit(endpoint)
        return changed

    def publish(self) -> None:
        """Write the current endpoint out to the variable store.

        Used before showing an edit prompt so it starts with the live value.
        """
        with self._lock:
            endpoint = self._endpoint
            self._host.set_variable(VAR_SERVER_IP, endpoint.host)
            self._host.set_variable(VAR_SERVER_PORT, str(endpoint.port))

    def prompt(self) -> None:
        """Publish the endpoint and ask the host to show edit prompts for it."""
        self.publish()
        self._host.prompt_variable(VAR_SERVER_IP, PROMPT_LABEL_IP)
        self._host.prompt_variable(VAR_SERVER_PORT, PROMPT_LABEL_PORT)

    def apply_parameters(self, host: str, port: str) -> Endpoint:
        """Apply an edit made in the parameter panel.

        Valid fields are applied, then the endpoint is published so the
        variable store agrees and the next reconcile is a no-op.

        Args:
            host: Raw host parameter.
            port: Raw port parameter.

        Returns:
            The endpoint after the edit.
        """
        rejected: list[tuple[str, str]] = []
        with self._lock:
            valid_host = self._validated(FIELD_HOST, host, validate_host(host), rejected)
            valid_port = self._validated(FIELD_PORT, port, parse_port(port), rejected)
            changed = self._apply(valid_host, valid_port)
            self.publish()
            endpoint = self._endpoint
        for field, raw in rejected:
            self.value_rejected.emit(field, raw)
        if changed:
            self.endpoint_changed.emit(endpoint)
        return endpoint

    def load_parameters(self) -> Endpoint:
        """Apply whatever the parameter store currently holds."""
        if self._config is None:
            return self.endpoint
        with self._lock:
            host = self._config.get_server_ip()
            port = self._config.get_server_port()
        return self.apply_parameters(host, port)

    def _read_variable(self, name: str) -> str | None:
        try:
            return self._host.get_variable(name)
        except Exception as e:  # noqa: BLE001
            logger.debug("Reading variable %s failed: %s", name, e)
            return None

    def _validated(
        self,
        field: str,
        raw: str | None,
        value: str | int | None,
        rejected: list[tuple[str, str]],
    ) -> str | int | None:
        """Return the validated value, tracking rejections.

        Unset or empty values are skipped silently. A rejected value is
        logged once until the store holds something else.
        """
        if value is not None:
            self._rejected.pop(field, None)
            return value
        if not raw:
            return None
        if self._rejected.get(field) != raw:
            self._rejected[field] = raw
            logger.warning("Ignoring invalid %s %r, keeping %s", field, raw, self._endpoint)
            rejected.append((field, raw))
        return None

    def _apply(self, host: str | int | None, port: str | int | None) -> bool:
        """Replace the endpoint if a validated field differs. Caller holds the lock."""
        current = self._endpoint
        new_host = host if isinstance(host, str) else current.host
        new_port = port if isinstance(port, int) else current.port
        if new_host == current.host and new_port == current.port:
            return False

        endpoint = Endpoint(new_host, new_port)
        self._endpoint = endpoint
        logger.info("Endpoint changed from %s to %s", current, endpoint)
        if self._config is not None:
            self._config.set_server_ip(endpoint.host)
            self._config.set_server_port(endpoint.port)
        self._dispatcher.rebind(endpoint)
        return True
