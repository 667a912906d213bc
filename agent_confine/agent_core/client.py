"""Chat completions API client

Overview
--------
Thin async HTTP client for an OpenAI-compatible ``/chat/completions``
endpoint. It implements the ``ModelClient`` protocol used by the runtime:
``complete(history, tools)`` sends the full ordered history plus the active
tool schema and returns the first choice's assistant message.

API call log
------------
When ``AgentConfig.api_log_path`` is set, every call is appended to a JSONL
file with the request, the response or error, and the duration. Failures to
write the log are logged and never fail the call.

Errors
------
- ``APIError`` for non-200 responses (status code and body attached),
- ``TransportError`` for network failures and undecodable responses,
- ``NoChoicesError`` when the response carries no choices.

The only timeout in the system is the one applied here, to the model
round-trip.
"""

from __future__ import annotations

import json
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import httpx
from pydantic import Field, ValidationError

from agent_confine.core.logging_config import get_logger

from .config import AgentConfig
from .errors import APIError, NoChoicesError, TransportError
from .schemas.base import WireSchema
from .schemas.domain import Message
from .tools.definitions import ToolDefinition

logger = get_logger(__name__)


class Choice(WireSchema):
    message: Message


class ChatResponse(WireSchema):
    choices: List[Choice] = Field(default_factory=list)


class ChatCompletionClient:
    """Async client for the chat completions API.

    Responsibilities
    ----------------
    - Authenticate requests with the configured bearer key.
    - Serialize history and tool schema into the request body.
    - Map HTTP and decoding failures to typed errors.
    - Record each call in the optional JSONL API log.
    """

    def __init__(
        self,
        config: AgentConfig,
        *,
        tools: Optional[Sequence[ToolDefinition]] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        """Create a chat completions client.

        Args:
            config: Agent configuration; the API key must be set.
            tools: Default tool schema used when ``complete`` gets none.
            http_client: Optional preconfigured ``httpx.AsyncClient``.

        Raises:
            MissingAPIKeyError: If the configuration has no API key.
        """
        config.validate_credentials()
        self._config = config
        self._tools = list(tools or [])
        self._client = http_client or httpx.AsyncClient(timeout=config.http_timeout)
        self._log_path = Path(config.api_log_path) if config.api_log_path else None

    @property
    def url(self) -> str:
        return f"{self._config.base_url.rstrip('/')}/chat/completions"

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self._config.api_key}",
            "Content-Type": "application/json",
            "HTTP-Referer": "http://localhost",
            "X-Title": "Agent",
        }

    def build_request(self, history: Sequence[Message], tools: Sequence[ToolDefinition]) -> Dict[str, Any]:
        """Build the JSON request body for a completion."""
        body: Dict[str, Any] = {
            "model": self._config.model,
            "messages": [m.to_wire() for m in history],
        }
        if tools:
            body["tools"] = [t.to_openai_tool() for t in tools]
        return body

    def _log_call(
        self,
        request: Dict[str, Any],
        *,
        started: float,
        response: Optional[Any] = None,
        error: Optional[str] = None,
    ) -> None:
        if self._log_path is None:
            return
        entry: Dict[str, Any] = {
            "ts": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"),
            "request": request,
            "duration_ms": int((time.monotonic() - started) * 1000),
        }
        if response is not None:
            entry["response"] = response
        if error is not None:
            entry["error"] = error
        try:
            self._log_path.parent.mkdir(parents=True, exist_ok=True)
            with self._log_path.open("a", encoding="utf-8") as f:
                f.write(json.dumps(entry, default=str) + "\n")
        except OSError as e:
            logger.warning(f"Could not write API log {self._log_path}: {e}")

    async def complete(self, history: Sequence[Message], tools: Optional[Sequence[ToolDefinition]] = None) -> Message:
        """Request one assistant message for ``history``.

        Args:
            history: Full ordered conversation history.
            tools: Tool schema for this request; defaults to the client's tools.

        Returns:
            The first choice's assistant message.

        Raises:
            APIError: When the response status is not 200.
            TransportError: On network failure or an undecodable response.
            NoChoicesError: When the response has no choices.
        """
        started = time.monotonic()
        request = self.build_request(history, self._tools if tools is None else tools)

        try:
            resp = await self._client.post(self.url, json=request, headers=self._headers())
        except httpx.HTTPError as e:
            self._log_call(request, started=started, error=str(e))
            raise TransportError(f"http request: {e}") from e

        if resp.status_code != 200:
            err = APIError(resp.status_code, resp.text)
            self._log_call(request, started=started, error=str(err))
            raise err

        try:
            payload = resp.json()
            parsed = ChatResponse.model_validate(payload)
        except (ValueError, ValidationError) as e:
            self._log_call(request, started=started, error=str(e))
            raise TransportError(f"decode response: {e}") from e

        self._log_call(request, started=started, response=payload)
        logger.debug(f"Chat completion finished in {time.monotonic() - started:.2f}s")

        if not parsed.choices:
            raise NoChoicesError()
        return parsed.choices[0].message

    async def aclose(self) -> None:
        await self._client.aclose()
