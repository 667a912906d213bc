"""Tool handlers for the plain (non-shell) tools.

Handlers share an abstract base so the registry can validate arguments
against each handler's input model and always get a ``ToolResult`` back.
Tool failures (missing file, target string absent, ambiguous edit) are
returned as failed results, never raised, so the model can see the failure
and try something else.
"""

import base64
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Generic, Type, TypeVar

from pydantic import BaseModel

from agent_confine.core.logging_config import get_logger

from ..errors import MultipleMatchesError, StringNotFoundError
from ..sandbox.executor import ShellExecutor
from ..schemas.domain import ToolResult
from .definitions import EditFileInput, PythonRuntimeInput, ReadFileInput, WriteFileInput

logger = get_logger(__name__)

InputType = TypeVar("InputType", bound=BaseModel)


class ToolHandler(ABC, Generic[InputType]):
    """Abstract base class for tool handlers."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Get the tool handler name."""

    @property
    @abstractmethod
    def input_schema(self) -> Type[InputType]:
        """Pydantic model the raw arguments are validated against."""

    @abstractmethod
    async def execute(self, input_data: InputType) -> ToolResult:
        """Execute the tool operation.

        Args:
            input_data: Validated input for the tool

        Returns:
            Result of the tool execution
        """

    async def __call__(self, input_data: InputType) -> ToolResult:
        return await self.execute(input_data)


class ReadFileHandler(ToolHandler[ReadFileInput]):
    """Handler for file read operations."""

    @property
    def name(self) -> str:
        return "read_file"

    @property
    def input_schema(self) -> Type[ReadFileInput]:
        return ReadFileInput

    async def execute(self, input_data: ReadFileInput) -> ToolResult:
        try:
            content = Path(input_data.path).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"Error reading file {input_data.path}: {e}")
            return ToolResult.failure(str(e))

        lines = len(content.split("\n"))
        logger.debug(f"Read file: {input_data.path} ({lines} lines)")
        return ToolResult(success=True, output=content, status=f"{lines} lines")


class WriteFileHandler(ToolHandler[WriteFileInput]):
    """Handler for file write operations."""

    @property
    def name(self) -> str:
        return "write_file"

    @property
    def input_schema(self) -> Type[WriteFileInput]:
        return WriteFileInput

    async def execute(self, input_data: WriteFileInput) -> ToolResult:
        try:
            Path(input_data.path).write_text(input_data.content, encoding="utf-8")
        except OSError as e:
            logger.error(f"Error writing file {input_data.path}: {e}")
            return ToolResult.failure(str(e))

        logger.info(f"Wrote file: {input_data.path}")
        return ToolResult(success=True, output="ok", status="written")


class EditFileHandler(ToolHandler[EditFileInput]):
    """Handler for exact string replacement in a file."""

    @property
    def name(self) -> str:
        return "edit_file"

    @property
    def input_schema(self) -> Type[EditFileInput]:
        return EditFileInput

    async def execute(self, input_data: EditFileInput) -> ToolResult:
        path = Path(input_data.path)
        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            return ToolResult.failure(str(e))

        count = content.count(input_data.old_string)
        if count == 0:
            return ToolResult.failure(str(StringNotFoundError()), status="fail: string not found")

        if count > 1 and not input_data.replace_all:
            err = MultipleMatchesError(count)
            return ToolResult.failure(str(err), status=f"fail: {count} matches (use replace_all)")

        if input_data.replace_all:
            updated = content.replace(input_data.old_string, input_data.new_string)
        else:
            updated = content.replace(input_data.old_string, input_data.new_string, 1)

        try:
            path.write_text(updated, encoding="utf-8")
        except OSError as e:
            return ToolResult.failure(str(e))

        logger.info(f"Edited file: {path} ({count} replacement(s))")
        return ToolResult(success=True, output=f"replaced {count} occurrence(s)", status="ok")


def python_command(code: str) -> str:
    """Wrap Python source in a heredoc that decodes and executes it with python3."""
    encoded = base64.b64encode(code.encode("utf-8")).decode("ascii")
    return (
        "python3 - <<'PY'\n"
        "import base64\n"
        f"code = base64.b64decode('{encoded}')\n"
        "exec(compile(code, '<python_runtime>', 'exec'))\n"
        "PY\n"
    )


class PythonRuntimeHandler(ToolHandler[PythonRuntimeInput]):
    """Run Python code through the shell executor (confined when available, no fallback)."""

    def __init__(self, executor: ShellExecutor) -> None:
        self._executor = executor

    @property
    def name(self) -> str:
        return "python_runtime"

    @property
    def input_schema(self) -> Type[PythonRuntimeInput]:
        return PythonRuntimeInput

    async def execute(self, input_data: PythonRuntimeInput) -> ToolResult:
        result, _ = await self._executor.run(python_command(input_data.code))
        return result
