from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import ConfigDict, Field, ValidationError, field_validator

from .base import BaseSchema, WireSchema

TEXT_PART_TYPES = frozenset({"text", "output_text"})

DEFAULT_PRETASK_INPUT = "Begin"


class Role(str, Enum):
    system = "system"
    user = "user"
    assistant = "assistant"
    tool = "tool"


class ContentPart(WireSchema):
    """One typed part of structured message content (``{"type": ..., ...}``)."""

    model_config = ConfigDict(extra="allow", frozen=True)

    type: Any = None
    text: Any = None


class PlainText(WireSchema):
    kind: Literal["plain"] = "plain"
    text: str

    def render_text(self) -> str:
        return self.text

    def to_wire(self) -> Any:
        return self.text


class StructuredParts(WireSchema):
    kind: Literal["parts"] = "parts"
    parts: List[ContentPart] = Field(default_factory=list)

    def render_text(self) -> str:
        """Concatenate the text of ``text``/``output_text`` parts, in order."""
        chunks: list[str] = []
        for part in self.parts:
            if not (isinstance(part.type, str) and part.type in TEXT_PART_TYPES):
                continue
            if isinstance(part.text, str) and part.text:
                chunks.append(part.text)
        return "".join(chunks)

    def to_wire(self) -> Any:
        return [part.model_dump(exclude_none=True) for part in self.parts]


MessageContent = Annotated[Union[PlainText, StructuredParts], Field(discriminator="kind")]


class FunctionCall(WireSchema):
    name: str
    arguments: str = ""

    @field_validator("arguments", mode="before")
    @classmethod
    def _arguments_as_text(cls, value: Any) -> Any:
        # Some providers send already-decoded argument objects.
        if value is None:
            return ""
        if isinstance(value, (dict, list)):
            return json.dumps(value)
        return value


class ToolCall(WireSchema):
    id: str = ""
    type: str = "function"
    function: FunctionCall

    def decode_arguments(self) -> Dict[str, Any]:
        """Decode the JSON argument payload; anything but a JSON object yields ``{}``."""
        try:
            decoded = json.loads(self.function.arguments)
        except (TypeError, ValueError):
            return {}
        if not isinstance(decoded, dict):
            return {}
        return decoded


class Message(WireSchema):
    """A single conversation message.

    ``content`` is a tagged variant: ``PlainText`` for string content and
    ``StructuredParts`` for a list of typed parts. Raw wire values (a string or
    a list of part objects) are accepted and wrapped; any other shape is
    treated as no content.
    """

    role: Role
    content: Optional[MessageContent] = None
    tool_calls: List[ToolCall] = Field(default_factory=list)
    tool_call_id: Optional[str] = None

    @field_validator("content", mode="before")
    @classmethod
    def _wrap_content(cls, value: Any) -> Any:
        if value is None or isinstance(value, (PlainText, StructuredParts)):
            return value
        if isinstance(value, str):
            return PlainText(text=value)
        if isinstance(value, list):
            return StructuredParts(parts=[part for part in value if isinstance(part, dict)])
        if isinstance(value, dict):
            kind = value.get("kind")
            if kind == "plain":
                variant = PlainText
            elif kind == "parts":
                variant = StructuredParts
            else:
                return None
            try:
                return variant.model_validate(value)
            except ValidationError:
                return None
        return None

    @field_validator("tool_calls", mode="before")
    @classmethod
    def _null_tool_calls(cls, value: Any) -> Any:
        return [] if value is None else value

    @classmethod
    def system(cls, text: str) -> "Message":
        return cls(role=Role.system, content=PlainText(text=text))

    @classmethod
    def user(cls, text: str) -> "Message":
        return cls(role=Role.user, content=PlainText(text=text))

    @classmethod
    def tool(cls, tool_call_id: str, output: str) -> "Message":
        return cls(role=Role.tool, content=PlainText(text=output), tool_call_id=tool_call_id)

    @property
    def text(self) -> str:
        """Extracted textual content; ``""`` when there is none."""
        if self.content is None:
            return ""
        return self.content.render_text()

    def to_wire(self) -> Dict[str, Any]:
        """Serialize to the chat completions message shape, omitting empty fields."""
        out: Dict[str, Any] = {"role": self.role.value}
        if self.content is not None:
            out["content"] = self.content.to_wire()
        if self.tool_calls:
            out["tool_calls"] = [call.model_dump() for call in self.tool_calls]
        if self.tool_call_id:
            out["tool_call_id"] = self.tool_call_id
        return out


@dataclass(frozen=True)
class ExecMeta:
    """Confinement metadata for one execution attempt.

    Attributes:
        sandboxed: The command ran under a confinement profile.
        sandbox_error: The failure was classified as a policy denial.
        sandbox_reason: Short human-readable denial reason.
    """

    sandboxed: bool = False
    sandbox_error: bool = False
    sandbox_reason: str = ""


@dataclass(frozen=True)
class ToolResult:
    """Outcome of one tool invocation.

    Only ``output`` is sent back to the model; ``status``, ``error`` and
    ``exec_meta`` are for the host application's display layer.
    """

    success: bool
    output: str = ""
    status: str = ""
    error: Optional[str] = None
    exec_meta: Optional[ExecMeta] = None

    @classmethod
    def failure(cls, error: str, *, status: Optional[str] = None, output: Optional[str] = None) -> "ToolResult":
        # The model only sees ``output``, so it carries the error text by default.
        return cls(
            success=False,
            output=output if output is not None else f"error: {error}",
            status=status or f"fail: {error}",
            error=error,
        )


class PreTask(BaseSchema):
    """A marker-terminated side conversation run before the primary one."""

    name: str
    system_prompt: str
    initial_input: str = ""
    done_marker: str

    @property
    def effective_input(self) -> str:
        return self.initial_input or DEFAULT_PRETASK_INPUT
