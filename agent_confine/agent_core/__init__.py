"""Conversation runtime, confinement layer and tools.

Design overview
---------------

- The model proposes tool calls; ``runtime.ConversationLoop`` executes them in
  order and appends the results as one batch. A declined call rolls the whole
  turn back.
- ``run_shell`` commands go through ``sandbox.FallbackNegotiator``: confined
  by a compiled allow-list profile when available, with an approved
  unconfined re-run after a policy denial.
- Every other tool goes through a ``hooks.ToolDispatcher`` (by default the
  ``tools.ToolRegistry``).

Typical usage
-------------

``factory.create_orchestrator_from_env()`` builds a ready orchestrator from
``AGENT_*`` settings; ``runtime.Orchestrator`` can also be wired by hand.
"""

from .client import ChatCompletionClient
from .config import AgentConfig
from .errors import (
    AgentError,
    APIError,
    ConfigurationError,
    EmptyResponseError,
    MaxTurnsExceededError,
    MissingAPIKeyError,
    NoChoicesError,
    PreTaskError,
    ToolCancelledError,
    TransportError,
)
from .hooks import (
    Approver,
    AutoApprover,
    ConfirmingApprover,
    ConversationObserver,
    DenyFallback,
    FallbackApprover,
    NullObserver,
    ToolDispatcher,
)
from .runtime import Orchestrator, default_exploring_task
from .sandbox import SandboxConfig, default_sandbox_config
from .schemas.domain import Message, PreTask, ToolResult

__all__ = [
    "APIError",
    "AgentConfig",
    "AgentError",
    "Approver",
    "AutoApprover",
    "ChatCompletionClient",
    "ConfigurationError",
    "ConfirmingApprover",
    "ConversationObserver",
    "DenyFallback",
    "EmptyResponseError",
    "FallbackApprover",
    "MaxTurnsExceededError",
    "Message",
    "MissingAPIKeyError",
    "NoChoicesError",
    "NullObserver",
    "Orchestrator",
    "PreTask",
    "PreTaskError",
    "SandboxConfig",
    "ToolCancelledError",
    "ToolDispatcher",
    "ToolResult",
    "TransportError",
    "default_exploring_task",
    "default_sandbox_config",
]
