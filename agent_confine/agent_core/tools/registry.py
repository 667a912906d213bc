from __future__ import annotations

"""Tool registry and plain tool dispatcher.

The registry maps a tool name to a ``ToolHandler`` implementation and acts as
the orchestrator's ``ToolDispatcher`` for every tool other than ``run_shell``.
Arguments arrive as the decoded JSON mapping the model produced; they are
validated against the handler's input model before execution.
"""

from typing import Any, Dict

from pydantic import ValidationError

from agent_confine.core.logging_config import get_logger

from ..errors import UnknownToolError
from ..sandbox.executor import ShellExecutor
from ..schemas.domain import ToolResult
from .handlers import (
    EditFileHandler,
    PythonRuntimeHandler,
    ReadFileHandler,
    ToolHandler,
    WriteFileHandler,
)

logger = get_logger(__name__)


class ToolRegistry:
    """
    In-memory mapping of tool names to handler implementations.

    Notes:
        - ``register`` overwrites any existing mapping for the tool name.
        - ``get`` will raise ``KeyError`` if the tool is missing.
        - ``dispatch`` never raises for tool-level problems; it returns a
          failed ``ToolResult`` instead.
    """

    def __init__(self) -> None:
        """Initialize an empty tool registry."""
        self._handlers: Dict[str, ToolHandler[Any]] = {}

    def register(self, handler: ToolHandler[Any]) -> None:
        """
        Register a tool handler.

        Args:
            handler: The handler instance to register, keyed by its ``name``.
        """
        self._handlers[handler.name] = handler

    def get(self, name: str) -> ToolHandler[Any]:
        """
        Retrieve a registered handler by name.

        Raises:
            KeyError: If no handler is registered with the given name.
        """
        return self._handlers[name]

    def has(self, name: str) -> bool:
        return name in self._handlers

    async def dispatch(self, name: str, args: Dict[str, Any]) -> ToolResult:
        """
        Validate arguments and execute the named tool.

        Args:
            name: Tool name requested by the model.
            args: Decoded argument mapping (possibly empty).

        Returns:
            The handler's result, or a failed result for an unknown tool or
            invalid arguments.
        """
        if not self.has(name):
            err = UnknownToolError(name)
            logger.warning(str(err))
            return ToolResult.failure(str(err), status="fail: unknown tool")

        handler = self.get(name)
        try:
            input_data = handler.input_schema.model_validate(args)
        except ValidationError as e:
            logger.warning(f"Invalid arguments for tool {name}: {e.error_count()} error(s)")
            return ToolResult.failure(f"invalid arguments for {name}: {e}", status="fail: invalid arguments")

        return await handler.execute(input_data)


def default_tool_registry(executor: ShellExecutor) -> ToolRegistry:
    """Build the registry serving ``read_file``, ``write_file``, ``edit_file`` and ``python_runtime``."""
    registry = ToolRegistry()
    registry.register(ReadFileHandler())
    registry.register(WriteFileHandler())
    registry.register(EditFileHandler())
    registry.register(PythonRuntimeHandler(executor))
    return registry
