"""Schemas and DTOs for the agent core."""

from .domain import (
    ContentPart,
    ExecMeta,
    FunctionCall,
    Message,
    PlainText,
    PreTask,
    Role,
    StructuredParts,
    ToolCall,
    ToolResult,
)

__all__ = [
    "ContentPart",
    "ExecMeta",
    "FunctionCall",
    "Message",
    "PlainText",
    "PreTask",
    "Role",
    "StructuredParts",
    "ToolCall",
    "ToolResult",
]
