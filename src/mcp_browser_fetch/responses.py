"""
Response model shared by every tool.

A tool call ends in exactly one of two variants:

    SuccessResponse(fields, summary, next_steps)
    ErrorResponse(message, next_steps)

Both validate their fields once, on construction, and raise ResponseValidationError when
malformed. ``to_mcp_format()`` produces the protocol dict:

    {"content": [{"type": "text", "text": ...}],
     "isError": bool,
     "structuredContent": {"success": bool, ..., "nextSteps": [...]}}
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Union

from mcp import types


RESERVED_FIELDS = frozenset({"success", "nextSteps"})


class ResponseValidationError(TypeError):
    """A response was constructed with fields of the wrong shape."""


def _check_next_steps(next_steps) -> List[str]:
    if not isinstance(next_steps, (list, tuple)):
        raise ResponseValidationError("next_steps must be a list of strings")
    if not all(isinstance(step, str) for step in next_steps):
        raise ResponseValidationError("All next_steps must be strings")
    return list(next_steps)


@dataclass(frozen=True)
class SuccessResponse:
    """Successful tool result; ``fields`` are the tool-specific structured values."""

    fields: Dict[str, Any] = field(default_factory=dict)
    summary: str = "Operation completed successfully"
    next_steps: List[str] = field(default_factory=list)

    def __post_init__(self):
        if not isinstance(self.fields, dict):
            raise ResponseValidationError("fields must be a dict")
        bad_keys = [k for k in self.fields if not isinstance(k, str)]
        if bad_keys:
            raise ResponseValidationError(f"field names must be strings, got {bad_keys!r}")
        reserved = sorted(RESERVED_FIELDS.intersection(self.fields))
        if reserved:
            raise ResponseValidationError(f"reserved field name(s): {', '.join(reserved)}")
        if not isinstance(self.summary, str):
            raise ResponseValidationError("summary must be a string")
        object.__setattr__(self, "next_steps", _check_next_steps(self.next_steps))

    @property
    def is_error(self) -> bool:
        return False

    def to_structured(self) -> dict:
        return {"success": True, **self.fields, "nextSteps": list(self.next_steps)}

    def text_summary(self) -> str:
        return self.summary

    def to_mcp_format(self) -> dict:
        return {
            "content": [{"type": "text", "text": self.text_summary()}],
            "isError": False,
            "structuredContent": self.to_structured(),
        }

    def to_call_tool_result(self) -> types.CallToolResult:
        return types.CallToolResult(
            content=[types.TextContent(type="text", text=self.text_summary())],
            structuredContent=self.to_structured(),
            isError=False,
        )


@dataclass(frozen=True)
class ErrorResponse:
    """Failed tool result. ``next_steps`` tells the caller how to recover."""

    message: str
    next_steps: List[str] = field(default_factory=list)

    def __post_init__(self):
        if not isinstance(self.message, str):
            raise ResponseValidationError("message must be a string")
        object.__setattr__(self, "next_steps", _check_next_steps(self.next_steps))

    @property
    def is_error(self) -> bool:
        return True

    def to_structured(self) -> dict:
        return {"success": False, "message": self.message, "nextSteps": list(self.next_steps)}

    def text_summary(self) -> str:
        text = f"Error: {self.message}"
        if self.next_steps:
            text += "\n\nSuggested actions:\n" + "\n".join(f"- {s}" for s in self.next_steps)
        return text

    def to_mcp_format(self) -> dict:
        return {
            "content": [{"type": "text", "text": self.text_summary()}],
            "isError": True,
            "structuredContent": self.to_structured(),
        }

    def to_call_tool_result(self) -> types.CallToolResult:
        return types.CallToolResult(
            content=[types.TextContent(type="text", text=self.text_summary())],
            structuredContent=self.to_structured(),
            isError=True,
        )


ToolResponse = Union[SuccessResponse, ErrorResponse]


__all__ = [
    "ResponseValidationError",
    "SuccessResponse",
    "ErrorResponse",
    "ToolResponse",
]
