"""Configuration for an orchestrated conversation.

``AgentConfig`` bundles everything needed to build an ``Orchestrator``: the
model endpoint and credentials, the system prompt, the pre-tasks and the
sandbox allow-list. Values are validated by pydantic; the API key is checked
separately by ``validate_credentials`` so the error type is a
``MissingAPIKeyError`` raised at construction time.
"""

from typing import List, Optional

from pydantic import Field

from .errors import MissingAPIKeyError
from .sandbox.models import SandboxConfig, default_sandbox_config
from .schemas.base import BaseSchema
from .schemas.domain import PreTask

DEFAULT_BASE_URL = "https://openrouter.ai/api/v1"
DEFAULT_MODEL = "anthropic/claude-opus-4.5"
DEFAULT_HTTP_TIMEOUT = 30.0
DEFAULT_MAX_TURNS = 10


class AgentConfig(BaseSchema):
    """
    Configuration for an agent conversation.

    Attributes:
        api_key: Bearer credential for the chat completions API (required).
        base_url: API base URL.
        model: Model identifier sent with each request.
        http_timeout: Timeout in seconds for one model round-trip.
        system_prompt: Optional system prompt seeded into the history.
        pre_tasks: Side conversations run before the first turn.
        sandbox: Allow-list configuration; defaults are used when omitted.
        api_log_path: Optional JSONL file recording every API call.
        max_chat_turns: Turn budget of the primary conversation per input.
        max_pretask_turns: Turn budget of each pre-task.
    """

    api_key: str = ""
    base_url: str = DEFAULT_BASE_URL
    model: str = DEFAULT_MODEL
    http_timeout: float = Field(default=DEFAULT_HTTP_TIMEOUT, gt=0.0)
    system_prompt: str = ""
    pre_tasks: List[PreTask] = Field(default_factory=list)
    sandbox: Optional[SandboxConfig] = None
    api_log_path: Optional[str] = None
    max_chat_turns: int = Field(default=DEFAULT_MAX_TURNS, ge=1)
    max_pretask_turns: int = Field(default=DEFAULT_MAX_TURNS, ge=1)

    def validate_credentials(self) -> None:
        """
        Ensure the configuration can authenticate against the API.

        Raises:
            MissingAPIKeyError: If no API key is configured.
        """
        if not self.api_key.strip():
            raise MissingAPIKeyError()

    def resolved_sandbox(self) -> SandboxConfig:
        """Return the configured sandbox allow-list, or the platform defaults."""
        return self.sandbox if self.sandbox is not None else default_sandbox_config()
