"""Agent-side client for the session-scoped JSON-RPC endpoint."""

from dataclasses import dataclass, field

import httpx

from checkout_demo.domain.tools import ToolResult
from checkout_demo.services.protocol import LATEST_PROTOCOL_VERSION
from checkout_demo.widget.purchase import ToolCaller

SESSION_HEADER = "mcp-session-id"


class McpClientError(Exception):
    """Raised when the server answers with a JSON-RPC error or bad status."""

    def __init__(self, message: str, code: int | None = None) -> None:
        super().__init__(message)
        self.code = code


@dataclass
class HttpxMcpClient(ToolCaller):
    """JSON-RPC client that keeps one server session alive."""

    endpoint: str
    http_client: httpx.AsyncClient
    session_id: str | None = None
    protocol_version: str = LATEST_PROTOCOL_VERSION
    _next_id: int = field(default=0, repr=False)

    @classmethod
    def create(cls, endpoint: str) -> "HttpxMcpClient":
        """Create a client with a managed httpx session."""
        return cls(endpoint=endpoint, http_client=httpx.AsyncClient(timeout=30))

    async def initialize(
        self, client_name: str = "checkout-demo-client", client_version: str = "0.1.0"
    ) -> dict[str, object]:
        """Perform the handshake and remember the issued session id."""
        result = await self._request(
            "initialize",
            {
                "protocolVersion": self.protocol_version,
                "capabilities": {},
                "clientInfo": {"name": client_name, "version": client_version},
            },
        )
        self.protocol_version = str(
            result.get("protocolVersion", self.protocol_version)
        )
        await self._notify("notifications/initialized")
        return result

    async def list_tools(self) -> list[dict[str, object]]:
        """Return the advertised tool descriptors."""
        result = await self._request("tools/list", {})
        return list(result.get("tools", []))

    async def call_tool(
        self, name: str, arguments: dict[str, object] | None = None
    ) -> ToolResult:
        """Invoke a tool and parse its result."""
        result = await self._request(
            "tools/call", {"name": name, "arguments": arguments or {}}
        )
        return ToolResult.from_payload(result)

    async def read_resource(self, uri: str) -> dict[str, object]:
        """Fetch a resource document by URI."""
        return await self._request("resources/read", {"uri": uri})

    async def terminate(self) -> None:
        """Close the server session."""
        if self.session_id is None:
            return
        response = await self.http_client.delete(
            self.endpoint, headers={SESSION_HEADER: self.session_id}
        )
        self.session_id = None
        if response.status_code != httpx.codes.OK:
            raise McpClientError(
                f"Session termination failed with status {response.status_code}"
            )

    async def close(self) -> None:
        """Close the underlying HTTP client session."""
        await self.http_client.aclose()

    async def _request(
        self, method: str, params: dict[str, object]
    ) -> dict[str, object]:
        self._next_id += 1
        response = await self._post(
            {"jsonrpc": "2.0", "id": self._next_id, "method": method, "params": params}
        )
        payload = response.json() if response.content else {}
        error = payload.get("error")
        if isinstance(error, dict):
            raise McpClientError(str(error.get("message")), code=error.get("code"))
        if isinstance(error, str):
            raise McpClientError(error)
        if response.status_code != httpx.codes.OK:
            raise McpClientError(f"Server returned status {response.status_code}")
        session_id = response.headers.get(SESSION_HEADER)
        if session_id:
            self.session_id = session_id
        return payload.get("result") or {}

    async def _notify(self, method: str) -> None:
        response = await self._post({"jsonrpc": "2.0", "method": method})
        if response.status_code != httpx.codes.ACCEPTED:
            raise McpClientError(f"Notification {method} was not accepted")

    async def _post(self, message: dict[str, object]) -> httpx.Response:
        headers = {"Accept": "application/json, text/event-stream"}
        if self.session_id is not None:
            headers[SESSION_HEADER] = self.session_id
        return await self.http_client.post(
            self.endpoint, json=message, headers=headers
        )
