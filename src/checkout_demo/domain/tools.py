"""Tool invocation results."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class ToolResult:
    """Outcome of a tool call: human-readable text plus structured content."""

    text: str
    structured_content: dict[str, object] = field(default_factory=dict)
    is_error: bool = False

    def to_payload(self) -> dict[str, object]:
        """Render the result as a tools/call response body."""
        return {
            "content": [{"type": "text", "text": self.text}],
            "structuredContent": self.structured_content,
            "isError": self.is_error,
        }

    @classmethod
    def from_payload(cls, payload: dict[str, object]) -> "ToolResult":
        """Parse a tools/call response body."""
        texts = [
            str(block.get("text", ""))
            for block in payload.get("content") or []
            if isinstance(block, dict) and block.get("type") == "text"
        ]
        structured = payload.get("structuredContent")
        return cls(
            text="\n".join(texts),
            structured_content=structured if isinstance(structured, dict) else {},
            is_error=bool(payload.get("isError", False)),
        )
