"""Pydantic models for JSON-RPC 2.0 messages."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class JsonRpcMessage(BaseModel):
    """Inbound JSON-RPC request or notification."""

    model_config = ConfigDict(extra="allow")

    jsonrpc: Literal["2.0"]
    method: str = Field(min_length=1)
    id: int | str | None = None
    params: dict[str, object] | None = None

    @property
    def is_notification(self) -> bool:
        """Return True when the message expects no response."""
        return "id" not in self.model_fields_set


class InitializeParams(BaseModel):
    """Parameters of the initialize request."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    protocol_version: str = Field(alias="protocolVersion")
    capabilities: dict[str, object] = Field(default_factory=dict)
    client_info: dict[str, object] = Field(default_factory=dict, alias="clientInfo")


class ToolCallParams(BaseModel):
    """Parameters of the tools/call request."""

    model_config = ConfigDict(extra="allow")

    name: str = Field(min_length=1)
    arguments: dict[str, object] | None = None


class ResourceReadParams(BaseModel):
    """Parameters of the resources/read request."""

    model_config = ConfigDict(extra="allow")

    uri: str = Field(min_length=1)


def result_message(message_id: int | str | None, result: dict[str, object]) -> dict:
    """Build a JSON-RPC success response."""
    return {"jsonrpc": "2.0", "id": message_id, "result": result}


def error_message(message_id: int | str | None, error: dict[str, object]) -> dict:
    """Build a JSON-RPC error response."""
    return {"jsonrpc": "2.0", "id": message_id, "error": error}
