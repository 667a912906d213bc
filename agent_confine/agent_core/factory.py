from __future__ import annotations

"""Convenience factories for wiring an orchestrator.

These helpers keep application wiring and tests concise: they read
``AgentSettings`` from the environment, configure logging and build an
``Orchestrator`` with the default pre-task list. Hosts that need full control
construct ``Orchestrator`` directly.
"""

from typing import List, Optional, Sequence

from agent_confine.core.config import AgentSettings
from agent_confine.core.logging_config import setup_logging

from .client import ChatCompletionClient
from .config import AgentConfig
from .hooks import Approver, ConfirmingApprover, ConversationObserver, FallbackApprover
from .runtime.orchestrator import Orchestrator
from .runtime.pretasks import default_exploring_task
from .sandbox.executor import create_shell_executor
from .schemas.domain import PreTask
from .tools.definitions import DEFAULT_TOOLS


def default_pre_tasks() -> List[PreTask]:
    """Return the built-in pre-task list (the "exploring" task)."""
    return [default_exploring_task()]


def build_orchestrator(
    config: AgentConfig,
    *,
    approver: Optional[Approver] = None,
    fallback_approver: Optional[FallbackApprover] = None,
    observer: Optional[ConversationObserver] = None,
) -> Orchestrator:
    """Construct an ``Orchestrator`` with the default executor and client.

    When ``approver`` is given it is wrapped in ``ConfirmingApprover`` so that
    reads and confined shell commands do not prompt.
    """
    executor = create_shell_executor(config.resolved_sandbox())
    client = ChatCompletionClient(config, tools=DEFAULT_TOOLS)
    return Orchestrator(
        config,
        client=client,
        executor=executor,
        approver=ConfirmingApprover(approver, sandboxed=executor.sandboxed) if approver is not None else None,
        fallback_approver=fallback_approver,
        observer=observer,
    )


def create_orchestrator_from_env(
    *,
    settings: Optional[AgentSettings] = None,
    pre_tasks: Optional[Sequence[PreTask]] = None,
    approver: Optional[Approver] = None,
    fallback_approver: Optional[FallbackApprover] = None,
    observer: Optional[ConversationObserver] = None,
) -> Orchestrator:
    """Build an ``Orchestrator`` from ``AGENT_*`` environment settings.

    Logging is configured from the settings' log level. ``pre_tasks`` defaults
    to ``default_pre_tasks()``; pass an empty list to skip them.
    """
    settings = settings or AgentSettings()
    setup_logging(log_level=settings.log_level, enable_file=False)

    config = settings.to_agent_config()
    tasks = default_pre_tasks() if pre_tasks is None else list(pre_tasks)
    config = config.model_copy(update={"pre_tasks": tasks})
    return build_orchestrator(
        config,
        approver=approver,
        fallback_approver=fallback_approver,
        observer=observer,
    )
