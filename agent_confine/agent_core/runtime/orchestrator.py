from __future__ import annotations

"""Primary conversation orchestrator.

The ``Orchestrator`` owns the primary conversation history and wires the
runtime together:

- the shell executor (confined when the platform supports it and the
  configuration enables it, otherwise passthrough),
- the fallback negotiator wrapped around it,
- the plain tool dispatcher for every tool other than ``run_shell``,
- the ``ConversationLoop`` that performs the turns,
- the ``PreTaskRunner`` for side conversations run once before the first turn.

Every collaborator can be injected; the defaults reproduce the behavior of an
orchestrator with nothing configured (auto-approved tools, declined
fallbacks, no display).
"""

from typing import Optional, Sequence

from agent_confine.core.logging_config import get_logger

from ..client import ChatCompletionClient
from ..config import AgentConfig
from ..hooks import (
    Approver,
    AutoApprover,
    ConversationObserver,
    FallbackApprover,
    ModelClient,
    NullObserver,
    ToolDispatcher,
)
from ..sandbox.executor import ShellExecutor, create_shell_executor
from ..sandbox.fallback import FallbackNegotiator
from ..schemas.domain import Message
from ..tools.definitions import DEFAULT_TOOLS, ToolDefinition
from ..tools.registry import default_tool_registry
from .loop import ConversationLoop
from .models import ConversationState
from .pretasks import PreTaskRunner

logger = get_logger(__name__)


class Orchestrator:
    """Drive a multi-turn, tool-calling conversation with a model.

    Usage
    -----
    ``answer = await orchestrator.chat("list the files here")`` returns the
    final text, or ``None`` when the approver declined a tool call (the turn
    is rolled back in that case). Errors propagate to the caller; the history
    appended before the failure is kept.
    """

    def __init__(
        self,
        config: AgentConfig,
        *,
        client: Optional[ModelClient] = None,
        executor: Optional[ShellExecutor] = None,
        approver: Optional[Approver] = None,
        fallback_approver: Optional[FallbackApprover] = None,
        dispatcher: Optional[ToolDispatcher] = None,
        observer: Optional[ConversationObserver] = None,
        tools: Optional[Sequence[ToolDefinition]] = None,
    ) -> None:
        """
        Initialize the Orchestrator.

        Args:
            config: Conversation configuration.
            client: Model client; a ``ChatCompletionClient`` is built when omitted.
            executor: Shell executor; built from ``config.sandbox`` when omitted.
            approver: Pre-execution approval for every tool call.
            fallback_approver: Approval for unconfined re-execution after a denial.
            dispatcher: Executes tools other than ``run_shell``.
            observer: Display hooks.
            tools: Tool schema offered to the model.

        Raises:
            MissingAPIKeyError: If the configuration has no API key.
        """
        config.validate_credentials()
        self._config = config
        sandbox = config.resolved_sandbox()

        self._executor = executor or create_shell_executor(sandbox)
        self._tools = list(DEFAULT_TOOLS if tools is None else tools)
        self._client = client or ChatCompletionClient(config, tools=self._tools)
        self._observer = observer or NullObserver()

        negotiator = FallbackNegotiator(
            self._executor,
            approver=fallback_approver,
            allow_fallback=sandbox.fallback_outside_sandbox,
        )
        self._loop = ConversationLoop(
            client=self._client,
            tools=self._tools,
            approver=approver or AutoApprover(),
            negotiator=negotiator,
            dispatcher=dispatcher or default_tool_registry(self._executor),
            observer=self._observer,
        )
        self._pretasks = PreTaskRunner(self._loop, max_turns=config.max_pretask_turns, observer=self._observer)
        self._pretasks_done = False

        self._history = ConversationState()
        self._seed()
        logger.debug(f"Orchestrator ready (model={config.model}, sandboxed={self._executor.sandboxed})")

    def _seed(self) -> None:
        if self._config.system_prompt:
            self._history.append(Message.system(self._config.system_prompt))

    @property
    def executor(self) -> ShellExecutor:
        return self._executor

    @property
    def sandboxed(self) -> bool:
        return self._executor.sandboxed

    @property
    def messages(self) -> tuple[Message, ...]:
        """Snapshot of the primary conversation history."""
        return self._history.messages

    def reset(self) -> None:
        """Clear the conversation, keeping only the system prompt."""
        self._history.clear()
        self._seed()

    async def chat(self, text: str) -> Optional[str]:
        """
        Send a user input and run turns until a final answer.

        Pending pre-tasks run first; they are marked done only once they all
        succeed, so a failed sequence is retried on the next call.

        Returns:
            The final assistant text, or None when a tool call was declined.

        Raises:
            PreTaskError: When a pre-task fails.
            MaxTurnsExceededError: When the turn budget is exhausted.
            EmptyResponseError: When the model returns nothing usable.
            TransportError: On model client failures.
        """
        if not self._pretasks_done and self._config.pre_tasks:
            await self._pretasks.run_all(self._config.pre_tasks)
        self._pretasks_done = True

        self._history.append(Message.user(text))
        outcome = await self._loop.run(self._history, max_turns=self._config.max_chat_turns)
        if outcome.cancelled:
            logger.info("Turn cancelled, history rolled back")
        return outcome.answer
