"""Tool schema and plain tool dispatch.

- ``definitions``: the function tools offered to the model.
- ``handlers``: implementations of the non-shell tools.
- ``registry``: name → handler mapping used as the default ``ToolDispatcher``.

``run_shell`` is defined here but never dispatched through the registry; the
runtime routes it through the sandbox executor and fallback negotiator.
"""

from .definitions import (
    DEFAULT_TOOLS,
    RUN_SHELL,
    SUBAGENT_TOOLS,
    ToolDefinition,
    edit_file_tool,
    python_runtime_tool,
    read_file_tool,
    run_shell_tool,
    subagent_run_shell_tool,
    write_file_tool,
)
from .handlers import ToolHandler, python_command
from .registry import ToolRegistry, default_tool_registry

__all__ = [
    "DEFAULT_TOOLS",
    "RUN_SHELL",
    "SUBAGENT_TOOLS",
    "ToolDefinition",
    "ToolHandler",
    "ToolRegistry",
    "default_tool_registry",
    "edit_file_tool",
    "python_command",
    "python_runtime_tool",
    "read_file_tool",
    "run_shell_tool",
    "subagent_run_shell_tool",
    "write_file_tool",
]
