from __future__ import annotations

"""Conversation history and LangGraph state types.

- ``ConversationState`` is the ordered, append-only message history owned by
  one orchestrator (or one pre-task). Rollback removes a contiguous suffix.
- ``_LoopState`` is the mutable state passed between LangGraph nodes of the
  turn loop.
- ``LoopOutcome`` is what a finished turn loop reports back.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Iterator, NotRequired, Optional, Required, Sequence, TypedDict

from ..schemas.domain import Message, Role


class ConversationState:
    """Ordered, append-only message history.

    Tool-role messages can only be appended as one batch answering the calls
    of the immediately preceding assistant message; anything else raises
    ``ValueError`` so the history can never hold an orphaned tool result.
    """

    def __init__(self, messages: Iterable[Message] = ()) -> None:
        self._messages: list[Message] = list(messages)

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[Message]:
        return iter(self._messages)

    def __getitem__(self, index: int) -> Message:
        return self._messages[index]

    @property
    def messages(self) -> tuple[Message, ...]:
        """Immutable snapshot of the history."""
        return tuple(self._messages)

    def append(self, message: Message) -> None:
        if message.role == Role.tool:
            raise ValueError("tool messages must be appended with append_tool_results")
        self._messages.append(message)

    def append_tool_results(self, results: Sequence[Message]) -> None:
        """Append a complete tool-result batch atomically.

        Raises:
            ValueError: If the last message is not an assistant message with
                tool calls, or a result does not answer one of its calls.
        """
        if not results:
            return
        last = self._messages[-1] if self._messages else None
        if last is None or last.role != Role.assistant or not last.tool_calls:
            raise ValueError("tool results must follow an assistant message with tool calls")
        call_ids = {call.id for call in last.tool_calls}
        for result in results:
            if result.role != Role.tool or result.tool_call_id not in call_ids:
                raise ValueError(f"tool result does not answer a pending call: {result.tool_call_id!r}")
        self._messages.extend(results)

    def truncate(self, length: int) -> None:
        """Drop every message after the first ``length`` (rollback)."""
        if length < 0 or length > len(self._messages):
            raise ValueError(f"cannot truncate history of {len(self._messages)} messages to {length}")
        del self._messages[length:]

    def clear(self) -> None:
        self._messages.clear()


class LoopStatus(str, Enum):
    answered = "answered"
    cancelled = "cancelled"


@dataclass(frozen=True)
class LoopOutcome:
    """
    Result of a finished turn loop.

    Attributes:
        status: ``answered`` or ``cancelled``.
        answer: Final text when answered, otherwise None.
        turns: Number of model round-trips performed.
    """
    status: LoopStatus
    answer: Optional[str]
    turns: int

    @property
    def cancelled(self) -> bool:
        return self.status == LoopStatus.cancelled


class _LoopState(TypedDict):
    """Mutable LangGraph state for one turn loop.

    Required keys:

    - ``history``: the conversation being driven (mutated in place).
    - ``max_turns``: turn budget.
    - ``done_marker``: literal marker that ends a pre-task; None for the
      primary conversation, where any non-empty answer ends the loop.
    - ``turns``: model round-trips performed so far.

    Optional keys:

    - ``turn_start``: history length before the current turn (rollback point).
    - ``last_message``: assistant message of the current turn.
    - ``answer`` / ``cancelled``: terminal markers for routing.
    """

    history: Required[ConversationState]
    max_turns: Required[int]
    done_marker: Required[Optional[str]]
    turns: Required[int]
    turn_start: NotRequired[int]
    last_message: NotRequired[Message]
    answer: NotRequired[Optional[str]]
    cancelled: NotRequired[bool]
