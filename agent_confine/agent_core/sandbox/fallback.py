from __future__ import annotations

"""Fallback negotiation for commands blocked by the confinement policy.

``FallbackNegotiator`` wraps a ``ShellExecutor``. There are two distinct
decision points and they are never merged:

- Confinement off (disabled or unavailable): the orchestrator's approval hook
  has already been consulted before any execution; the command runs
  unconfined exactly once (``ExecutionPath.unconfined_direct``).
- Confinement on and the policy denied the command: when fallback is allowed,
  the ``FallbackApprover`` is asked with the command and the denial reason. On
  approval the identical command text runs unconfined
  (``fallback_approved``); otherwise the original denial result is returned
  unchanged (``fallback_declined``).
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from agent_confine.core.logging_config import get_logger

from ..hooks import DenyFallback, FallbackApprover
from ..schemas.domain import ToolResult
from .executor import PassthroughExecutor, ShellExecutor

logger = get_logger(__name__)


class ExecutionPath(str, Enum):
    """
    How a shell command ended up being executed.

    Attributes:
        unconfined_direct: Confinement is off; ran unconfined after pre-approval.
        confined: Ran under confinement (success or ordinary failure).
        fallback_approved: Denied, then re-run unconfined after approval.
        fallback_declined: Denied; fallback disabled or declined.
    """
    unconfined_direct = "unconfined_direct"
    confined = "confined"
    fallback_approved = "fallback_approved"
    fallback_declined = "fallback_declined"


@dataclass(frozen=True)
class ShellOutcome:
    result: ToolResult
    path: ExecutionPath
    command: str


class FallbackNegotiator:
    """Run shell commands through an executor with approved unconfined fallback."""

    def __init__(
        self,
        executor: ShellExecutor,
        *,
        approver: Optional[FallbackApprover] = None,
        allow_fallback: bool = True,
        unconfined: Optional[ShellExecutor] = None,
    ) -> None:
        """
        Initialize the negotiator.

        Args:
            executor: Primary executor (confined or passthrough).
            approver: Consulted on denial; defaults to declining.
            allow_fallback: ``SandboxConfig.fallback_outside_sandbox``.
            unconfined: Executor used for the fallback run.
        """
        self._executor = executor
        self._approver = approver or DenyFallback()
        self._allow_fallback = allow_fallback
        self._unconfined = unconfined or PassthroughExecutor()

    @property
    def executor(self) -> ShellExecutor:
        return self._executor

    async def run(self, command: str) -> ShellOutcome:
        """
        Execute ``command`` and negotiate a fallback when the policy denies it.

        Args:
            command: Shell command text; re-executed byte-for-byte on fallback.

        Returns:
            The final result and the execution path taken.
        """
        if not self._executor.sandboxed:
            result, _ = await self._executor.run(command)
            return ShellOutcome(result=result, path=ExecutionPath.unconfined_direct, command=command)

        result, meta = await self._executor.run(command)
        if not meta.sandbox_error:
            return ShellOutcome(result=result, path=ExecutionPath.confined, command=command)

        if not self._allow_fallback:
            logger.info("Sandbox denial returned as-is: fallback outside sandbox is disabled")
            return ShellOutcome(result=result, path=ExecutionPath.fallback_declined, command=command)

        approved = await self._approver.approve_fallback(command, meta.sandbox_reason)
        if not approved:
            logger.info(f"Unconfined fallback declined: reason={meta.sandbox_reason!r}")
            return ShellOutcome(result=result, path=ExecutionPath.fallback_declined, command=command)

        logger.warning(f"Re-running command outside the sandbox after approval: reason={meta.sandbox_reason!r}")
        fallback_result, _ = await self._unconfined.run(command)
        return ShellOutcome(result=fallback_result, path=ExecutionPath.fallback_approved, command=command)
