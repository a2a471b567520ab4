"""Error taxonomy shared by the transport, tools and gateway layers."""

# JSON-RPC 2.0 error codes
PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
SERVER_NOT_INITIALIZED = -32002
RESOURCE_NOT_FOUND = -32002


class SessionNotFound(Exception):  # noqa: N818
    """Raised when a session token does not match a live session."""

    def __init__(self, session_id: str | None) -> None:
        super().__init__(f"Session not found: {session_id}")
        self.session_id = session_id


class ProtocolError(Exception):
    """A JSON-RPC level failure answered inside the exchange."""

    def __init__(self, code: int, message: str, data: object | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.data = data

    def to_error(self) -> dict[str, object]:
        """Return the JSON-RPC error object."""
        error: dict[str, object] = {"code": self.code, "message": self.message}
        if self.data is not None:
            error["data"] = self.data
        return error


class UnknownToolError(ProtocolError):
    """Raised when a tools/call names a tool that is not registered."""

    def __init__(self, name: str) -> None:
        super().__init__(INVALID_PARAMS, f"Unknown tool: {name}")
        self.name = name


class GatewayError(Exception):
    """Raised when the payment provider call fails."""


class GatewayNotConfigured(GatewayError):
    """Raised when the payment provider has no usable credentials."""
