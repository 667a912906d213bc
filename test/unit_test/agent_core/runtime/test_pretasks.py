from __future__ import annotations

from typing import Any, Dict, List, Sequence, Tuple

import pytest

from agent_confine.agent_core.config import AgentConfig
from agent_confine.agent_core.errors import (
    EmptyResponseError,
    MaxTurnsExceededError,
    PreTaskError,
    ToolCancelledError,
    TransportError,
)
from agent_confine.agent_core.hooks import AutoApprover, NullObserver
from agent_confine.agent_core.runtime.loop import ConversationLoop
from agent_confine.agent_core.runtime.orchestrator import Orchestrator
from agent_confine.agent_core.runtime.pretasks import (
    DONE_MARKER,
    PreTaskRunner,
    default_exploring_task,
)
from agent_confine.agent_core.sandbox.executor import PassthroughExecutor
from agent_confine.agent_core.sandbox.fallback import FallbackNegotiator
from agent_confine.agent_core.sandbox.models import SandboxConfig
from agent_confine.agent_core.schemas.domain import Message, PreTask, Role, ToolResult


def _assistant(text=None, calls: Sequence[Tuple[str, str, str]] = ()) -> Message:
    return Message.model_validate(
        {
            "role": "assistant",
            "content": text,
            "tool_calls": [
                {"id": cid, "type": "function", "function": {"name": name, "arguments": args}}
                for cid, name, args in calls
            ],
        }
    )


class _ScriptedClient:
    def __init__(self, responses: Sequence[Message]) -> None:
        self._responses = list(responses)
        self.requests: List[Tuple[Message, ...]] = []

    async def complete(self, history: Sequence[Message], tools: Sequence[Any]) -> Message:
        self.requests.append(tuple(history))
        if not self._responses:
            raise AssertionError("model called more often than scripted")
        return self._responses.pop(0)


class _Dispatcher:
    async def dispatch(self, name: str, args: Dict[str, Any]) -> ToolResult:
        return ToolResult(success=True, output=f"{name} ok", status="ok")


class _DecliningApprover:
    async def approve(self, name: str, args: Dict[str, Any]) -> bool:
        return False


class _Observer:
    def __init__(self) -> None:
        self.events: List[Tuple[str, str]] = []

    def on_message(self, text: str) -> None:
        self.events.append(("message", text))

    def on_tool_done(self, name: str, args: Dict[str, Any], result: ToolResult) -> None:
        self.events.append(("tool", name))

    def on_pretask_start(self, name: str) -> None:
        self.events.append(("start", name))

    def on_pretask_end(self, name: str) -> None:
        self.events.append(("end", name))


def _task(**kw: Any) -> PreTask:
    base: Dict[str, Any] = dict(name="explore", system_prompt="look around", done_marker=DONE_MARKER)
    base.update(kw)
    return PreTask(**base)


def _loop(client, *, approver=None, observer=None) -> ConversationLoop:
    executor = PassthroughExecutor()
    return ConversationLoop(
        client=client,
        tools=[],
        approver=approver or AutoApprover(),
        negotiator=FallbackNegotiator(executor),
        dispatcher=_Dispatcher(),
        observer=observer or NullObserver(),
    )


@pytest.mark.asyncio
async def test_marker_on_second_turn_completes_after_two_turns() -> None:
    client = _ScriptedClient([_assistant("still exploring"), _assistant("AGENT.md written {{DONE}}")])
    observer = _Observer()
    runner = PreTaskRunner(_loop(client, observer=observer), observer=observer)

    outcome = await runner.run(_task())

    assert outcome.turns == 2
    assert outcome.answer == "AGENT.md written {{DONE}}"
    assert len(client.requests) == 2
    assert client.requests[0] == (Message.system("look around"), Message.user("Begin"))
    assert [m.role for m in client.requests[1]] == [Role.system, Role.user, Role.assistant]
    assert observer.events[0] == ("start", "explore")
    assert observer.events[-1] == ("end", "explore")


@pytest.mark.asyncio
async def test_custom_initial_input_is_used() -> None:
    client = _ScriptedClient([_assistant("{{DONE}}")])
    await PreTaskRunner(_loop(client)).run(_task(initial_input="Start here"))
    assert client.requests[0][1] == Message.user("Start here")


@pytest.mark.asyncio
async def test_tool_calls_then_marker() -> None:
    client = _ScriptedClient(
        [
            _assistant(calls=[("c1", "read_file", '{"path": "AGENT.md"}')]),
            _assistant("done {{DONE}}"),
        ]
    )
    outcome = await PreTaskRunner(_loop(client)).run(_task())
    assert outcome.turns == 2
    assert [m.role for m in client.requests[1]] == [Role.system, Role.user, Role.assistant, Role.tool]


@pytest.mark.asyncio
async def test_missing_marker_exhausts_budget() -> None:
    client = _ScriptedClient([_assistant(f"turn {i}") for i in range(3)])
    runner = PreTaskRunner(_loop(client), max_turns=3)

    with pytest.raises(PreTaskError) as exc_info:
        await runner.run(_task())

    assert exc_info.value.task_name == "explore"
    assert isinstance(exc_info.value.__cause__, MaxTurnsExceededError)
    assert len(client.requests) == 3


@pytest.mark.asyncio
async def test_empty_response_fails_the_task() -> None:
    client = _ScriptedClient([_assistant("")])
    with pytest.raises(PreTaskError) as exc_info:
        await PreTaskRunner(_loop(client)).run(_task())
    assert isinstance(exc_info.value.__cause__, EmptyResponseError)


@pytest.mark.asyncio
async def test_cancellation_fails_the_task_and_still_ends_it() -> None:
    observer = _Observer()
    client = _ScriptedClient([_assistant(calls=[("c1", "write_file", '{"path": "AGENT.md", "content": ""}')])])
    runner = PreTaskRunner(_loop(client, approver=_DecliningApprover(), observer=observer), observer=observer)

    with pytest.raises(PreTaskError) as exc_info:
        await runner.run(_task())

    assert isinstance(exc_info.value.__cause__, ToolCancelledError)
    assert "explore" in str(exc_info.value)
    assert observer.events == [("start", "explore"), ("end", "explore")]


@pytest.mark.asyncio
async def test_transport_errors_propagate_unchanged() -> None:
    class _Failing:
        async def complete(self, history, tools):
            raise TransportError("http request: down")

    with pytest.raises(TransportError):
        await PreTaskRunner(_loop(_Failing())).run(_task())


@pytest.mark.asyncio
async def test_first_failure_aborts_sequence() -> None:
    client = _ScriptedClient([_assistant("")])
    runner = PreTaskRunner(_loop(client))
    with pytest.raises(PreTaskError):
        await runner.run_all([_task(name="first"), _task(name="second")])
    assert len(client.requests) == 1


def _config(tasks: Sequence[PreTask]) -> AgentConfig:
    return AgentConfig(api_key="sk-test", pre_tasks=list(tasks), sandbox=SandboxConfig(enabled=False))


@pytest.mark.asyncio
async def test_orchestrator_runs_pretasks_once_in_isolation() -> None:
    client = _ScriptedClient(
        [
            _assistant("working"),
            _assistant("{{DONE}}"),
            _assistant("answer one"),
            _assistant("answer two"),
        ]
    )
    orch = Orchestrator(_config([_task()]), client=client, dispatcher=_Dispatcher())

    assert await orch.chat("first") == "answer one"
    assert await orch.chat("second") == "answer two"

    assert len(client.requests) == 4
    assert client.requests[2] == (Message.user("first"),)
    assert all("{{DONE}}" not in m.text and m.text != "working" for m in orch.messages)


@pytest.mark.asyncio
async def test_failed_pretasks_are_retried_on_next_input() -> None:
    client = _ScriptedClient(
        [
            _assistant(""),
            _assistant("{{DONE}}"),
            _assistant("answer"),
        ]
    )
    orch = Orchestrator(_config([_task()]), client=client, dispatcher=_Dispatcher())

    with pytest.raises(PreTaskError):
        await orch.chat("first")
    assert orch.messages == ()

    assert await orch.chat("again") == "answer"
    assert orch.messages[0] == Message.user("again")


def test_default_exploring_task() -> None:
    task = default_exploring_task()
    assert task.name == "exploring"
    assert task.done_marker == "{{DONE}}"
    assert task.effective_input == "Begin"
    assert "AGENT.md" in task.system_prompt
    assert "{{DONE}}" in task.system_prompt


@pytest.mark.parametrize(
    "section",
    [
        "## Project Map",
        "**Entry:**",
        "**Core:**",
        "### Structure (grouped)",
        "### Conventions",
        "### Finding things",
        "## Rules",
        "### Always",
        "### Never",
        "### Style",
        "### When unsure",
    ],
)
def test_exploring_prompt_lists_required_sections(section: str) -> None:
    prompt = default_exploring_task().system_prompt
    assert f"\n{section}\n" in prompt
    assert f"- [ ] `{section}`" in prompt


def test_exploring_prompt_checks_then_validates_agent_md() -> None:
    prompt = default_exploring_task().system_prompt
    assert 'ls -la AGENT.md 2>/dev/null || echo "NOT_FOUND"' in prompt
    assert 'grep -E "^## Project Map|' in prompt
    assert "Your final output MUST be exactly `{{DONE}}`" in prompt
    assert prompt.index("## Step 1") < prompt.index("## Step 2") < prompt.index("## Step 3")
