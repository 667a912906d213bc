"""
Configuration Settings.

This module defines environment-driven configuration using Pydantic's
BaseSettings. Values are loaded from environment variables and an optional
``.env`` file, then turned into an ``AgentConfig``.
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from agent_confine.agent_core.config import (
    DEFAULT_BASE_URL,
    DEFAULT_HTTP_TIMEOUT,
    DEFAULT_MAX_TURNS,
    DEFAULT_MODEL,
    AgentConfig,
)
from agent_confine.agent_core.sandbox.models import default_sandbox_config


class AgentSettings(BaseSettings):
    """Agent settings loaded from ``AGENT_*`` environment variables."""

    api_key: Optional[str] = Field(default=None, alias="AGENT_API_KEY", description="API key for the chat completions API")
    base_url: str = Field(default=DEFAULT_BASE_URL, alias="AGENT_BASE_URL", description="Chat completions API base URL")
    model: str = Field(default=DEFAULT_MODEL, alias="AGENT_MODEL", description="Model identifier")
    http_timeout: float = Field(
        default=DEFAULT_HTTP_TIMEOUT, alias="AGENT_HTTP_TIMEOUT", description="Model round-trip timeout in seconds"
    )
    system_prompt: str = Field(default="", alias="AGENT_SYSTEM_PROMPT", description="System prompt for the conversation")
    api_log_path: Optional[str] = Field(
        default=None, alias="AGENT_API_LOG_PATH", description="JSONL file recording API calls (optional)"
    )
    max_chat_turns: int = Field(default=DEFAULT_MAX_TURNS, alias="AGENT_MAX_CHAT_TURNS", description="Turn budget per input")
    max_pretask_turns: int = Field(
        default=DEFAULT_MAX_TURNS, alias="AGENT_MAX_PRETASK_TURNS", description="Turn budget per pre-task"
    )

    sandbox_enabled: Optional[bool] = Field(
        default=None,
        alias="AGENT_SANDBOX_ENABLED",
        description="Force confinement on/off (defaults to platform availability)",
    )
    sandbox_allow_network: bool = Field(
        default=False, alias="AGENT_SANDBOX_ALLOW_NETWORK", description="Allow network from confined commands"
    )
    sandbox_fallback: bool = Field(
        default=True, alias="AGENT_SANDBOX_FALLBACK", description="Offer unconfined fallback after a denial"
    )

    log_level: str = Field(default="INFO", alias="AGENT_LOG_LEVEL", description="Console log level")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    def to_agent_config(self) -> AgentConfig:
        """Build an ``AgentConfig`` with the sandbox defaults adjusted by these settings."""
        defaults = default_sandbox_config()
        sandbox = defaults.model_copy(
            update={
                "enabled": defaults.enabled if self.sandbox_enabled is None else self.sandbox_enabled,
                "allow_network": self.sandbox_allow_network,
                "fallback_outside_sandbox": self.sandbox_fallback,
            }
        )
        return AgentConfig(
            api_key=self.api_key or "",
            base_url=self.base_url,
            model=self.model,
            http_timeout=self.http_timeout,
            system_prompt=self.system_prompt,
            api_log_path=self.api_log_path,
            max_chat_turns=self.max_chat_turns,
            max_pretask_turns=self.max_pretask_turns,
            sandbox=sandbox,
        )
