"""Data models for the transport layer.

These models describe where the relay lives and how a connection behaves,
independent of the transport library used to reach it.
"""

from enum import Enum
from urllib.parse import urlparse

from pydantic import BaseModel, Field, field_validator

DEFAULT_SERVER_URL = "http://localhost:3000"

_SUPPORTED_SCHEMES = ("http", "https", "ws", "wss")


class ConnectionState(str, Enum):
    """Lifecycle state of the single relay connection."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class ReconnectPolicy(BaseModel):
    """Opt-in reconnection behaviour.

    Disabled by default: a dropped or refused connection stays down until
    connect() is called again.
    """

    enabled: bool = Field(default=False, description="Retry after a failed or dropped connection")
    attempts: int = Field(default=0, ge=0, description="Maximum attempts, 0 for unlimited")
    delay: float = Field(default=1.0, gt=0, description="Initial delay between attempts in seconds")
    delay_max: float = Field(default=5.0, gt=0, description="Upper bound for the backoff delay")


class ConnectionConfig(BaseModel):
    """Configuration of the relay endpoint.

    Fixed at startup; the connection is not reconfigured at runtime.
    """

    url: str = Field(default=DEFAULT_SERVER_URL, description="Relay server URL (host and port)")
    namespace: str = Field(default="/", description="Socket.IO namespace")
    transports: list[str] | None = Field(
        default=None,
        description="Allowed transports ('polling', 'websocket'); None lets the client negotiate"
    )
    wait_timeout: float = Field(default=5.0, gt=0, description="Seconds to wait for the handshake")
    log_wire: bool = Field(default=False, description="Log Socket.IO and Engine.IO traffic")
    reconnect: ReconnectPolicy = Field(default_factory=ReconnectPolicy)

    @field_validator("url")
    @classmethod
    def _check_url(cls, value: str) -> str:
        parsed = urlparse(value)
        if parsed.scheme not in _SUPPORTED_SCHEMES or not parsed.netloc:
            raise ValueError(
                f"Unsupported relay URL: {value!r}. "
                f"Expected one of {', '.join(_SUPPORTED_SCHEMES)} with a host"
            )
        return value

    @field_validator("namespace")
    @classmethod
    def _check_namespace(cls, value: str) -> str:
        if not value.startswith("/"):
            raise ValueError("Namespace must start with '/'")
        return value
