from __future__ import annotations

from typing import List, Optional, Tuple

import pytest

from agent_confine.agent_core.sandbox.fallback import ExecutionPath, FallbackNegotiator
from agent_confine.agent_core.schemas.domain import ExecMeta, ToolResult


class _ScriptedExecutor:
    def __init__(self, *, sandboxed: bool, result: ToolResult, meta: ExecMeta) -> None:
        self._sandboxed = sandboxed
        self._result = result
        self._meta = meta
        self.commands: List[str] = []

    @property
    def sandboxed(self) -> bool:
        return self._sandboxed

    async def run(self, command: str) -> Tuple[ToolResult, ExecMeta]:
        self.commands.append(command)
        return self._result, self._meta


class _FallbackApprover:
    def __init__(self, answer: bool) -> None:
        self.answer = answer
        self.calls: List[Tuple[str, str]] = []

    async def approve_fallback(self, command: str, reason: str) -> bool:
        self.calls.append((command, reason))
        return self.answer


_DENIED_META = ExecMeta(sandboxed=True, sandbox_error=True, sandbox_reason="write access denied")
_DENIED = ToolResult(success=False, output="Permission denied", status="sandbox blocked (0.0s)", exec_meta=_DENIED_META)
_UNCONFINED_META = ExecMeta(sandboxed=False)
_UNCONFINED_OK = ToolResult(success=True, output="wrote it", status="ok (0.0s)", exec_meta=_UNCONFINED_META)


def _negotiator(
    approver: Optional[_FallbackApprover], *, allow: bool = True
) -> tuple[FallbackNegotiator, _ScriptedExecutor, _ScriptedExecutor]:
    confined = _ScriptedExecutor(sandboxed=True, result=_DENIED, meta=_DENIED_META)
    unconfined = _ScriptedExecutor(sandboxed=False, result=_UNCONFINED_OK, meta=_UNCONFINED_META)
    neg = FallbackNegotiator(confined, approver=approver, allow_fallback=allow, unconfined=unconfined)
    return neg, confined, unconfined


@pytest.mark.asyncio
async def test_approved_fallback_reruns_identical_command_text() -> None:
    approver = _FallbackApprover(True)
    neg, confined, unconfined = _negotiator(approver)
    command = "touch /usr/local/blocked.txt && echo  'two  spaces'\n"

    outcome = await neg.run(command)

    assert outcome.path == ExecutionPath.fallback_approved
    assert confined.commands == [command]
    assert unconfined.commands == [command]
    assert unconfined.commands[0].encode() == confined.commands[0].encode()
    assert approver.calls == [(command, "write access denied")]
    assert outcome.result.exec_meta is not None
    assert outcome.result.exec_meta.sandboxed is False
    assert outcome.result.success is True


@pytest.mark.asyncio
async def test_declined_fallback_returns_original_denial() -> None:
    approver = _FallbackApprover(False)
    neg, _, unconfined = _negotiator(approver)

    outcome = await neg.run("touch /usr/local/x")

    assert outcome.path == ExecutionPath.fallback_declined
    assert outcome.result is _DENIED
    assert unconfined.commands == []


@pytest.mark.asyncio
async def test_no_approver_configured_declines() -> None:
    neg, _, unconfined = _negotiator(None)
    outcome = await neg.run("touch /usr/local/x")
    assert outcome.path == ExecutionPath.fallback_declined
    assert outcome.result is _DENIED
    assert unconfined.commands == []


@pytest.mark.asyncio
async def test_fallback_disabled_never_asks() -> None:
    approver = _FallbackApprover(True)
    neg, _, unconfined = _negotiator(approver, allow=False)

    outcome = await neg.run("touch /usr/local/x")

    assert outcome.path == ExecutionPath.fallback_declined
    assert approver.calls == []
    assert unconfined.commands == []


@pytest.mark.asyncio
async def test_confined_success_and_ordinary_failure_skip_negotiation() -> None:
    approver = _FallbackApprover(True)
    failing_meta = ExecMeta(sandboxed=True)
    failing = ToolResult(success=False, output="no such file", status="fail (0.0s)", exec_meta=failing_meta)
    confined = _ScriptedExecutor(sandboxed=True, result=failing, meta=failing_meta)
    neg = FallbackNegotiator(confined, approver=approver)

    outcome = await neg.run("ls nope")

    assert outcome.path == ExecutionPath.confined
    assert outcome.result is failing
    assert approver.calls == []


@pytest.mark.asyncio
async def test_unconfined_executor_runs_directly_once() -> None:
    approver = _FallbackApprover(True)
    direct = _ScriptedExecutor(sandboxed=False, result=_UNCONFINED_OK, meta=_UNCONFINED_META)
    neg = FallbackNegotiator(direct, approver=approver)

    outcome = await neg.run("echo hello")

    assert outcome.path == ExecutionPath.unconfined_direct
    assert direct.commands == ["echo hello"]
    assert approver.calls == []
