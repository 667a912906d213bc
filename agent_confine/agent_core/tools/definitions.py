"""Tool definitions exposed to the model.

This module defines the function tools offered to the model: shell execution
(routed through the sandbox) and the plain file/python tools served by the
tool registry. Each tool's parameters are a pydantic input model, rendered as
JSON schema in the chat completions ``tools`` format.
"""

from typing import Any, Dict, List, Optional, Type

from pydantic import BaseModel, ConfigDict, Field

RUN_SHELL = "run_shell"


class RunShellInput(BaseModel):
    """Input schema for shell execution."""

    command: str = Field(..., description="Shell command to execute")


class SubagentRunShellInput(BaseModel):
    """Input schema for shell execution in the subagent tool set.

    ``description`` and ``safety`` are for display only; they never affect
    confinement.
    """

    command: str = Field(..., description="Shell command to execute")
    description: Optional[str] = Field(None, description="Short description of what the command does")
    safety: Optional[str] = Field(None, description="Why the command is safe to run")


class ReadFileInput(BaseModel):
    """Input schema for file read operation."""

    path: str = Field(..., description="Path to the file to read")


class WriteFileInput(BaseModel):
    """Input schema for file write operation."""

    path: str = Field(..., description="Path to the file to write")
    content: str = Field(..., description="Content to write to the file")


class EditFileInput(BaseModel):
    """Input schema for string replacement in a file."""

    path: str = Field(..., description="Path to the file to edit")
    old_string: str = Field(..., description="Exact text to replace")
    new_string: str = Field(..., description="Replacement text")
    replace_all: bool = Field(default=False, description="Replace every occurrence instead of exactly one")


class PythonRuntimeInput(BaseModel):
    """Input schema for running a Python snippet."""

    code: str = Field(..., description="Python source code to execute with python3")


class ToolDefinition(BaseModel):
    """Pydantic model for tool definitions.

    Provides a structured, validated way to define the tools offered to the
    model with a clear input schema.
    """

    name: str = Field(..., description="Unique identifier for the tool")
    description: str = Field(..., description="Human-readable description of what the tool does")
    input_schema: Type[BaseModel] = Field(..., description="Pydantic model class for input validation")

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    def get_input_schema_json(self) -> Dict[str, Any]:
        """Get the input schema as JSON schema.

        Returns:
            JSON schema for input validation
        """
        return self.input_schema.model_json_schema()

    def to_openai_tool(self) -> Dict[str, Any]:
        """Convert to the chat completions ``tools`` entry format.

        Returns:
            ``{"type": "function", "function": {name, description, parameters}}``
        """
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.get_input_schema_json(),
            },
        }


run_shell_tool = ToolDefinition(
    name=RUN_SHELL,
    description="Run a shell command and return its combined output. Commands may run inside a sandbox that restricts file writes, program execution and network access.",
    input_schema=RunShellInput,
)

subagent_run_shell_tool = ToolDefinition(
    name=RUN_SHELL,
    description="Run a shell command and return its combined output. Describe what the command does and why it is safe.",
    input_schema=SubagentRunShellInput,
)

read_file_tool = ToolDefinition(
    name="read_file",
    description="Read the contents of a file from the filesystem.",
    input_schema=ReadFileInput,
)

write_file_tool = ToolDefinition(
    name="write_file",
    description="Write content to a file, creating it or overwriting it.",
    input_schema=WriteFileInput,
)

edit_file_tool = ToolDefinition(
    name="edit_file",
    description="Replace an exact string in a file. Fails when the string is absent, or appears several times without replace_all.",
    input_schema=EditFileInput,
)

python_runtime_tool = ToolDefinition(
    name="python_runtime",
    description="Execute a Python snippet with python3 and return its output.",
    input_schema=PythonRuntimeInput,
)

DEFAULT_TOOLS: List[ToolDefinition] = [
    run_shell_tool,
    read_file_tool,
    write_file_tool,
    edit_file_tool,
    python_runtime_tool,
]

SUBAGENT_TOOLS: List[ToolDefinition] = [subagent_run_shell_tool, read_file_tool]
