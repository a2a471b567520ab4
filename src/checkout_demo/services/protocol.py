"""JSON-RPC method routing for initialized sessions."""

from dataclasses import dataclass
from typing import TypeVar

from pydantic import BaseModel, ValidationError

from checkout_demo.domain.jsonrpc import (
    InitializeParams,
    JsonRpcMessage,
    ResourceReadParams,
    ToolCallParams,
)
from checkout_demo.errors import (
    INVALID_PARAMS,
    METHOD_NOT_FOUND,
    RESOURCE_NOT_FOUND,
    ProtocolError,
)
from checkout_demo.services.tools import ToolDispatcher
from checkout_demo.widget.resource import WidgetResource

SERVER_NAME = "checkout-demo"
SERVER_VERSION = "0.1.0"
LATEST_PROTOCOL_VERSION = "2025-06-18"
SUPPORTED_PROTOCOL_VERSIONS = ("2025-06-18", "2025-03-26", "2024-11-05")

ModelT = TypeVar("ModelT", bound=BaseModel)


@dataclass
class ProtocolHandler:
    """Answer requests that arrive on an active session."""

    dispatcher: ToolDispatcher
    widget: WidgetResource

    def initialize(self, params: InitializeParams) -> dict[str, object]:
        """Build the handshake result for a negotiated protocol version."""
        return {
            "protocolVersion": negotiate_protocol_version(params.protocol_version),
            "capabilities": {
                "tools": {"listChanged": False},
                "resources": {"listChanged": False},
            },
            "serverInfo": {"name": SERVER_NAME, "version": SERVER_VERSION},
        }

    async def handle_request(self, message: JsonRpcMessage) -> dict[str, object]:
        """Return the result for a request or raise a ProtocolError."""
        method = message.method
        params = message.params or {}
        if method == "ping":
            return {}
        if method == "tools/list":
            return {"tools": self.dispatcher.list_tools()}
        if method == "tools/call":
            call = _parse(ToolCallParams, params)
            result = await self.dispatcher.call(call.name, call.arguments)
            return result.to_payload()
        if method == "resources/list":
            return {"resources": [self.widget.descriptor()]}
        if method == "resources/templates/list":
            return {"resourceTemplates": []}
        if method == "resources/read":
            read = _parse(ResourceReadParams, params)
            if read.uri != self.widget.uri:
                raise ProtocolError(
                    RESOURCE_NOT_FOUND, "Resource not found", {"uri": read.uri}
                )
            return self.widget.contents()
        raise ProtocolError(METHOD_NOT_FOUND, f"Method not found: {method}")


def negotiate_protocol_version(requested: str) -> str:
    """Echo a supported client version, otherwise offer the latest."""
    if requested in SUPPORTED_PROTOCOL_VERSIONS:
        return requested
    return LATEST_PROTOCOL_VERSION


def _parse(model: type[ModelT], params: dict[str, object]) -> ModelT:
    try:
        return model.model_validate(params)
    except ValidationError as exc:
        details = exc.errors(
            include_url=False, include_context=False, include_input=False
        )
        raise ProtocolError(INVALID_PARAMS, "Invalid params", details) from exc
