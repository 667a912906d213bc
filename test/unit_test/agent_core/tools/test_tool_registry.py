from __future__ import annotations

import base64
from pathlib import Path
from typing import List, Tuple

import pytest

from agent_confine.agent_core.schemas.domain import ExecMeta, ToolResult
from agent_confine.agent_core.tools.definitions import (
    DEFAULT_TOOLS,
    SUBAGENT_TOOLS,
    run_shell_tool,
    subagent_run_shell_tool,
)
from agent_confine.agent_core.tools.handlers import python_command
from agent_confine.agent_core.tools.registry import ToolRegistry, default_tool_registry


class _RecordingExecutor:
    def __init__(self) -> None:
        self.commands: List[str] = []

    @property
    def sandboxed(self) -> bool:
        return True

    async def run(self, command: str) -> Tuple[ToolResult, ExecMeta]:
        self.commands.append(command)
        meta = ExecMeta(sandboxed=True)
        return ToolResult(success=True, output="42\n", status="ok (0.0s)", exec_meta=meta), meta


@pytest.fixture
def registry() -> ToolRegistry:
    return default_tool_registry(_RecordingExecutor())


def test_default_registry_serves_plain_tools(registry: ToolRegistry) -> None:
    for name in ("read_file", "write_file", "edit_file", "python_runtime"):
        assert registry.has(name)
    assert not registry.has("run_shell")
    with pytest.raises(KeyError):
        registry.get("run_shell")


@pytest.mark.asyncio
async def test_unknown_tool_is_failed_result(registry: ToolRegistry) -> None:
    res = await registry.dispatch("nope", {})
    assert res.success is False
    assert res.error == "unknown tool: nope"
    assert "unknown tool: nope" in res.output


@pytest.mark.asyncio
async def test_invalid_arguments_are_failed_result(registry: ToolRegistry) -> None:
    res = await registry.dispatch("read_file", {})
    assert res.success is False
    assert res.status == "fail: invalid arguments"
    assert "path" in res.output


@pytest.mark.asyncio
async def test_write_then_read(registry: ToolRegistry, tmp_path: Path) -> None:
    target = tmp_path / "notes.txt"

    written = await registry.dispatch("write_file", {"path": str(target), "content": "a\nb\nc"})
    assert written.success is True
    assert written.output == "ok"
    assert written.status == "written"

    read = await registry.dispatch("read_file", {"path": str(target)})
    assert read.success is True
    assert read.output == "a\nb\nc"
    assert read.status == "3 lines"


@pytest.mark.asyncio
async def test_read_missing_file_fails(registry: ToolRegistry, tmp_path: Path) -> None:
    res = await registry.dispatch("read_file", {"path": str(tmp_path / "missing.txt")})
    assert res.success is False
    assert res.output.startswith("error: ")


@pytest.mark.asyncio
async def test_edit_single_match(registry: ToolRegistry, tmp_path: Path) -> None:
    target = tmp_path / "f.py"
    target.write_text("x = 1\ny = 2\n", encoding="utf-8")

    res = await registry.dispatch("edit_file", {"path": str(target), "old_string": "y = 2", "new_string": "y = 3"})

    assert res.success is True
    assert res.output == "replaced 1 occurrence(s)"
    assert target.read_text(encoding="utf-8") == "x = 1\ny = 3\n"


@pytest.mark.asyncio
async def test_edit_target_absent(registry: ToolRegistry, tmp_path: Path) -> None:
    target = tmp_path / "f.py"
    target.write_text("x = 1\n", encoding="utf-8")

    res = await registry.dispatch("edit_file", {"path": str(target), "old_string": "zzz", "new_string": "q"})

    assert res.success is False
    assert res.error == "old_string not found in file"
    assert res.status == "fail: string not found"
    assert target.read_text(encoding="utf-8") == "x = 1\n"


@pytest.mark.asyncio
async def test_edit_multiple_matches_requires_replace_all(registry: ToolRegistry, tmp_path: Path) -> None:
    target = tmp_path / "f.txt"
    target.write_text("a a a", encoding="utf-8")

    ambiguous = await registry.dispatch("edit_file", {"path": str(target), "old_string": "a", "new_string": "b"})
    assert ambiguous.success is False
    assert ambiguous.error == "multiple matches found, use replace_all"
    assert ambiguous.status == "fail: 3 matches (use replace_all)"
    assert target.read_text(encoding="utf-8") == "a a a"

    replaced = await registry.dispatch(
        "edit_file", {"path": str(target), "old_string": "a", "new_string": "b", "replace_all": True}
    )
    assert replaced.success is True
    assert replaced.output == "replaced 3 occurrence(s)"
    assert target.read_text(encoding="utf-8") == "b b b"


@pytest.mark.asyncio
async def test_python_runtime_goes_through_executor() -> None:
    executor = _RecordingExecutor()
    registry = default_tool_registry(executor)

    res = await registry.dispatch("python_runtime", {"code": "print(6 * 7)"})

    assert res.success is True
    assert res.output == "42\n"
    assert executor.commands == [python_command("print(6 * 7)")]


def test_python_command_embeds_base64_source() -> None:
    cmd = python_command("print('hi')\n")
    encoded = base64.b64encode(b"print('hi')\n").decode("ascii")
    assert cmd.startswith("python3 - <<'PY'\n")
    assert encoded in cmd
    assert cmd.rstrip().endswith("PY")


def test_openai_tool_schema() -> None:
    schema = run_shell_tool.to_openai_tool()
    assert schema["type"] == "function"
    assert schema["function"]["name"] == "run_shell"
    params = schema["function"]["parameters"]
    assert params["required"] == ["command"]
    assert set(params["properties"]) == {"command"}

    sub = subagent_run_shell_tool.to_openai_tool()["function"]["parameters"]
    assert set(sub["properties"]) == {"command", "description", "safety"}
    assert sub["required"] == ["command"]


def test_tool_lists() -> None:
    assert [t.name for t in DEFAULT_TOOLS][0] == "run_shell"
    assert {t.name for t in DEFAULT_TOOLS} == {"run_shell", "read_file", "write_file", "edit_file", "python_runtime"}
    assert subagent_run_shell_tool in SUBAGENT_TOOLS
