"""Domain types for transport sessions."""

from dataclasses import dataclass, field
from enum import Enum


class SessionState(Enum):
    """Lifecycle of a transport session."""

    UNINITIALIZED = "UNINITIALIZED"
    ACTIVE = "ACTIVE"
    CLOSED = "CLOSED"


class SessionEvent(Enum):
    """Lifecycle events emitted by a session for the registry to consume."""

    INITIALIZED = "INITIALIZED"
    REJECTED = "REJECTED"
    CLOSED = "CLOSED"


@dataclass(frozen=True)
class SessionOutcome:
    """Result of handling one message on a session."""

    response: dict[str, object] | None
    status_code: int = 200
    event: SessionEvent | None = None


@dataclass(frozen=True)
class ClientInfo:
    """Client identity captured during the handshake."""

    name: str
    version: str
    capabilities: dict[str, object] = field(default_factory=dict)
