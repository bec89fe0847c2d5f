"""Sync server endpoint model and validation rules."""

import re
from dataclasses import dataclass

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8090

MAX_HOST_LENGTH = 63
MIN_PORT = 1
MAX_PORT = 65535

_HOST_PATTERN = re.compile(r"[A-Za-z0-9.:\-]+")
_PORT_PATTERN = re.compile(r"[0-9]+")


class InvalidEndpointError(ValueError):
    """Raised when a host or port value fails validation."""

    def __init__(self, field: str, value: object) -> None:
        super().__init__(f"Invalid {field}: {value!r}")
        self.field = field
        self.value = value


def validate_host(value: object) -> str | None:
    """Validate a host name or IP literal.

    Args:
        value: Raw value from a configuration store.

    Returns:
        The host string if valid, else None.
    """
    if not isinstance(value, str):
        return None
    if not value or len(value) > MAX_HOST_LENGTH:
        return None
    if not _HOST_PATTERN.fullmatch(value):
        return None
    return value


def parse_port(value: object) -> int | None:
    """Parse a TCP port from a string (or int).

    Args:
        value: Raw value from a configuration store.

    Returns:
        The port number if valid, else None.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        port = value
    elif isinstance(value, str) and _PORT_PATTERN.fullmatch(value):
        port = int(value)
    else:
        return None
    if MIN_PORT <= port <= MAX_PORT:
        return port
    return None


@dataclass(frozen=True, slots=True)
class Endpoint:
    """The (host, port) pair the dispatcher posts updates to.

    Attributes:
        host: Hostname or IP address.
        port: TCP port.
    """

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT

    def __post_init__(self) -> None:
        """Reject hosts and ports that fail validation."""
        if validate_host(self.host) is None:
            raise InvalidEndpointError("host", self.host)
        if parse_port(self.port) is None:
            raise InvalidEndpointError("port", self.port)

    @classmethod
    def from_strings(cls, host: str, port: str) -> "Endpoint":
        """Build an endpoint from the string form stored by the host.

        Raises:
            InvalidEndpointError: If either value is invalid.
        """
        parsed_port = parse_port(port)
        if parsed_port is None:
            raise InvalidEndpointError("port", port)
        return cls(host=host, port=parsed_port)

    @property
    def base_url(self) -> str:
        """Return the HTTP base URL (IPv6 literals are bracketed)."""
        host = f"[{self.host}]" if ":" in self.host else self.host
        return f"http://{host}:{self.port}"

    def __str__(self) -> str:
        """Return host:port."""
        return f"{self.host}:{self.port}"
