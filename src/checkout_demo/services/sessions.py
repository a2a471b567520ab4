"""Session registry and per-session transport state machine."""

import asyncio
import contextlib
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from uuid import uuid4

from pydantic import ValidationError

from checkout_demo.domain.jsonrpc import (
    InitializeParams,
    JsonRpcMessage,
    error_message,
    result_message,
)
from checkout_demo.domain.sessions import (
    ClientInfo,
    SessionEvent,
    SessionOutcome,
    SessionState,
)
from checkout_demo.errors import (
    INVALID_PARAMS,
    INVALID_REQUEST,
    SERVER_NOT_INITIALIZED,
    ProtocolError,
    SessionNotFound,
)
from checkout_demo.services.protocol import ProtocolHandler

_logger = logging.getLogger(__name__)


def _new_session_id() -> str:
    return uuid4().hex


@dataclass
class Session:
    """Transport state for one client session.

    State checks and transitions run under the session lock. Request
    dispatch runs outside it so a slow tool call never blocks a close.
    """

    id: str
    handler: ProtocolHandler
    clock: Callable[[], float] = field(default=time.monotonic, repr=False)
    state: SessionState = SessionState.UNINITIALIZED
    created_at: float = 0.0
    last_seen_at: float = 0.0
    protocol_version: str | None = None
    client_info: ClientInfo | None = None
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)

    def __post_init__(self) -> None:
        self.created_at = self.clock()
        self.last_seen_at = self.created_at

    async def handle(self, message: JsonRpcMessage) -> SessionOutcome:
        """Validate one inbound message and produce the exchange's answer."""
        async with self._lock:
            if self.state is SessionState.CLOSED:
                raise SessionNotFound(self.id)
            self.last_seen_at = self.clock()
            if self.state is SessionState.UNINITIALIZED:
                return self._initialize(message)

        if message.method == "initialize":
            return _error(message, INVALID_REQUEST, "Session already initialized")
        if message.is_notification:
            return SessionOutcome(response=None, status_code=202)
        try:
            result = await self.handler.handle_request(message)
        except ProtocolError as exc:
            return SessionOutcome(response=error_message(message.id, exc.to_error()))
        return SessionOutcome(response=result_message(message.id, result))

    async def close(self) -> SessionEvent:
        """Transition to CLOSED; a session can only be closed once."""
        async with self._lock:
            if self.state is SessionState.CLOSED:
                raise SessionNotFound(self.id)
            self.state = SessionState.CLOSED
        return SessionEvent.CLOSED

    def _initialize(self, message: JsonRpcMessage) -> SessionOutcome:
        if message.method != "initialize" or message.is_notification:
            return _error(
                message,
                SERVER_NOT_INITIALIZED,
                "Bad Request: Server not initialized",
                status_code=400,
                event=SessionEvent.REJECTED,
            )
        try:
            params = InitializeParams.model_validate(message.params or {})
        except ValidationError:
            return _error(
                message,
                INVALID_PARAMS,
                "Invalid initialize params",
                status_code=400,
                event=SessionEvent.REJECTED,
            )
        result = self.handler.initialize(params)
        self.protocol_version = str(result["protocolVersion"])
        self.client_info = ClientInfo(
            name=str(params.client_info.get("name", "unknown")),
            version=str(params.client_info.get("version", "unknown")),
            capabilities=params.capabilities,
        )
        self.state = SessionState.ACTIVE
        return SessionOutcome(
            response=result_message(message.id, result),
            event=SessionEvent.INITIALIZED,
        )


def _error(
    message: JsonRpcMessage,
    code: int,
    text: str,
    *,
    status_code: int = 200,
    event: SessionEvent | None = None,
) -> SessionOutcome:
    return SessionOutcome(
        response=error_message(message.id, {"code": code, "message": text}),
        status_code=status_code,
        event=event,
    )


@dataclass
class SessionRegistry:
    """Owns every live session, keyed by its id.

    All map mutations are serialized by one lock that is never held while a
    request is being dispatched.
    """

    handler: ProtocolHandler
    id_factory: Callable[[], str] = field(default=_new_session_id)
    clock: Callable[[], float] = field(default=time.monotonic, repr=False)
    _sessions: dict[str, Session] = field(default_factory=dict, repr=False)
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)

    def __len__(self) -> int:
        return len(self._sessions)

    def ids(self) -> list[str]:
        """Return the ids of live sessions."""
        return list(self._sessions)

    async def resolve(self, session_id: str | None) -> Session:
        """Return the session for an id, creating one when no id is given."""
        async with self._lock:
            if not session_id:
                return self._create()
            session = self._sessions.get(session_id)
            if session is None:
                raise SessionNotFound(session_id)
            return session

    async def remove(self, session_id: str) -> Session:
        """Forget a session and return it."""
        async with self._lock:
            session = self._sessions.pop(session_id, None)
        if session is None:
            raise SessionNotFound(session_id)
        _logger.info("Session removed: %s", session_id)
        return session

    async def discard(self, session_id: str) -> None:
        """Drop a session whose handshake was rejected."""
        async with self._lock:
            self._sessions.pop(session_id, None)

    async def close(self, session_id: str) -> None:
        """Terminate a session on behalf of the client."""
        session = await self.resolve(session_id)
        event = await session.close()
        await self.apply(session, event)

    async def apply(self, session: Session, event: SessionEvent | None) -> None:
        """Consume a lifecycle event emitted by a session."""
        if event is SessionEvent.INITIALIZED:
            _logger.info(
                "Session initialized: %s (client=%s, protocol=%s)",
                session.id,
                session.client_info.name if session.client_info else "unknown",
                session.protocol_version,
            )
        elif event is SessionEvent.REJECTED:
            await self.discard(session.id)
        elif event is SessionEvent.CLOSED:
            await self.remove(session.id)

    async def evict_idle(self, max_idle_seconds: float) -> list[str]:
        """Close and forget sessions that have been quiet for too long."""
        cutoff = self.clock() - max_idle_seconds
        async with self._lock:
            stale = [
                session
                for session in self._sessions.values()
                if session.last_seen_at < cutoff
            ]
            for session in stale:
                del self._sessions[session.id]
        for session in stale:
            with contextlib.suppress(SessionNotFound):
                await session.close()
            _logger.info("Session expired: %s", session.id)
        return [session.id for session in stale]

    def _create(self) -> Session:
        session_id = self.id_factory()
        while session_id in self._sessions:
            session_id = self.id_factory()
        session = Session(id=session_id, handler=self.handler, clock=self.clock)
        self._sessions[session_id] = session
        _logger.info("Session created: %s", session_id)
        return session
