"""Conversation runtime.

- ``Orchestrator``: the primary conversation.
- ``ConversationLoop``: LangGraph turn loop shared with pre-tasks.
- ``PreTaskRunner``: isolated side conversations run before the first turn.
- ``ConversationState``: append-only history with atomic tool batches.
"""

from .loop import ConversationLoop
from .models import ConversationState, LoopOutcome, LoopStatus
from .orchestrator import Orchestrator
from .pretasks import (
    DONE_MARKER,
    EXPLORING_SYSTEM_PROMPT,
    PreTaskRunner,
    default_exploring_task,
)

__all__ = [
    "DONE_MARKER",
    "EXPLORING_SYSTEM_PROMPT",
    "ConversationLoop",
    "ConversationState",
    "LoopOutcome",
    "LoopStatus",
    "Orchestrator",
    "PreTaskRunner",
    "default_exploring_task",
]
