"""Error types for the agent core.

Purpose:
- Give every failure mode of a conversation its own typed exception so
  callers can tell configuration problems, transport failures and
  conversation-level terminations apart.
- Keep tool-level failures (``ToolError``) inside the conversation: the
  dispatcher converts them to failed ``ToolResult`` values that the model sees.

Usage:
- Catch ``TransportError`` to retry a turn; history appended so far is kept.
- Catch ``ConversationError`` for ``MaxTurnsExceededError``,
  ``EmptyResponseError`` and ``PreTaskError``.
"""

from __future__ import annotations

from typing import Optional


class AgentError(Exception):
    """Base error for all agent-confine failures."""


class ConfigurationError(AgentError):
    """Invalid or incomplete configuration detected at construction time."""


class MissingAPIKeyError(ConfigurationError):
    def __init__(self, message: str = "API key is required") -> None:
        super().__init__(message)


class TransportError(AgentError):
    """Network or API failure during a model round-trip."""


class APIError(TransportError):
    """Non-success HTTP response from the chat completions API.

    Args:
        status_code: HTTP status code returned by the API.
        body: Raw response body, kept for diagnosis.
    """

    def __init__(self, status_code: int, body: str) -> None:
        super().__init__(f"API error ({status_code}): {body}")
        self.status_code = status_code
        self.body = body


class NoChoicesError(TransportError):
    def __init__(self, message: str = "no choices in API response") -> None:
        super().__init__(message)


class ConversationError(AgentError):
    """A conversation ended without an answer for a reason the caller must see."""


class MaxTurnsExceededError(ConversationError):
    def __init__(self, max_turns: int) -> None:
        super().__init__(f"max turns exceeded ({max_turns})")
        self.max_turns = max_turns


class EmptyResponseError(ConversationError):
    def __init__(self, message: str = "empty response from model") -> None:
        super().__init__(message)


class ToolCancelledError(ConversationError):
    def __init__(self, message: str = "tool execution cancelled by user") -> None:
        super().__init__(message)


class PreTaskError(ConversationError):
    """A pre-task failed; the remaining pre-tasks were not run.

    The underlying reason is chained as ``__cause__``.
    """

    def __init__(self, task_name: str, reason: Optional[BaseException] = None) -> None:
        detail = f": {reason}" if reason is not None else ""
        super().__init__(f"pretask {task_name}{detail}")
        self.task_name = task_name
        self.reason = reason


class ToolError(AgentError):
    """Tool-level failure. Never escapes the tool dispatcher."""


class UnknownToolError(ToolError):
    def __init__(self, name: str) -> None:
        super().__init__(f"unknown tool: {name}")
        self.name = name


class StringNotFoundError(ToolError):
    def __init__(self, message: str = "old_string not found in file") -> None:
        super().__init__(message)


class MultipleMatchesError(ToolError):
    def __init__(self, count: int) -> None:
        super().__init__("multiple matches found, use replace_all")
        self.count = count
