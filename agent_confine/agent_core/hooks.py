from __future__ import annotations

"""Capability interfaces injected into the orchestrator.

Host applications customize a conversation by supplying implementations of
these protocols instead of nullable callbacks:

- ``Approver``: decides, before a tool call runs, whether it may run at all.
  Declining cancels the whole turn.
- ``FallbackApprover``: decides whether a command the confinement policy
  blocked may be re-executed without confinement.
- ``ToolDispatcher``: executes every tool other than ``run_shell``.
- ``ConversationObserver``: display hooks (messages, tool results, pre-task
  progress). Observers never influence control flow.
- ``ModelClient``: produces one assistant message per turn.

Each protocol has a default implementation that preserves the "nothing
configured" behavior: tools auto-execute, fallbacks are declined and nothing
is displayed.
"""

from typing import Any, Dict, Protocol, Sequence

from .schemas.domain import Message, ToolResult

SHELL_TOOLS = frozenset({"run_shell", "python_runtime"})
READ_ONLY_TOOLS = frozenset({"read_file"})


class Approver(Protocol):
    async def approve(self, name: str, args: Dict[str, Any]) -> bool: ...


class FallbackApprover(Protocol):
    async def approve_fallback(self, command: str, reason: str) -> bool: ...


class ToolDispatcher(Protocol):
    async def dispatch(self, name: str, args: Dict[str, Any]) -> ToolResult: ...


class ConversationObserver(Protocol):
    def on_message(self, text: str) -> None: ...

    def on_tool_done(self, name: str, args: Dict[str, Any], result: ToolResult) -> None: ...

    def on_pretask_start(self, name: str) -> None: ...

    def on_pretask_end(self, name: str) -> None: ...


class ModelClient(Protocol):
    async def complete(self, history: Sequence[Message], tools: Sequence[Any]) -> Message: ...


class AutoApprover:
    """Approve every tool call."""

    async def approve(self, name: str, args: Dict[str, Any]) -> bool:
        return True


class DenyFallback:
    """Never approve unconfined re-execution."""

    async def approve_fallback(self, command: str, reason: str) -> bool:
        return False


class NullObserver:
    def on_message(self, text: str) -> None:
        return None

    def on_tool_done(self, name: str, args: Dict[str, Any], result: ToolResult) -> None:
        return None

    def on_pretask_start(self, name: str) -> None:
        return None

    def on_pretask_end(self, name: str) -> None:
        return None


def requires_confirmation(name: str, *, sandboxed: bool) -> bool:
    """
    Decide whether a tool call needs an explicit human decision.

    Reads never do. Shell tools do not when commands run confined, because the
    policy and the fallback negotiation already guard them. Everything else,
    including unconfined shell commands, does.

    Args:
        name: Tool name.
        sandboxed: Whether shell commands currently run under confinement.
    """
    if name in READ_ONLY_TOOLS:
        return False
    if name in SHELL_TOOLS and sandboxed:
        return False
    return True


class ConfirmingApprover:
    """
    Ask ``inner`` only for calls that need confirmation; approve the rest.

    With confinement disabled or unavailable this is the single decision point
    consulted before an unconfined shell command runs at all.
    """

    def __init__(self, inner: Approver, *, sandboxed: bool) -> None:
        self._inner = inner
        self._sandboxed = sandboxed

    async def approve(self, name: str, args: Dict[str, Any]) -> bool:
        if not requires_confirmation(name, sandboxed=self._sandboxed):
            return True
        return await self._inner.approve(name, args)
