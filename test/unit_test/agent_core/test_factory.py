from __future__ import annotations

from typing import Any, Dict, List

import pytest

from agent_confine.agent_core import factory
from agent_confine.agent_core.client import ChatCompletionClient
from agent_confine.agent_core.errors import MissingAPIKeyError
from agent_confine.agent_core.hooks import ConfirmingApprover
from agent_confine.agent_core.runtime.orchestrator import Orchestrator
from agent_confine.core.config import AgentSettings


class _Approver:
    async def approve(self, name: str, args: Dict[str, Any]) -> bool:
        return True


@pytest.fixture(autouse=True)
def _no_logging_setup(monkeypatch: pytest.MonkeyPatch) -> List[Dict[str, Any]]:
    calls: List[Dict[str, Any]] = []
    monkeypatch.setattr(factory, "setup_logging", lambda **kw: calls.append(kw))
    return calls


def test_create_from_env(monkeypatch: pytest.MonkeyPatch, _no_logging_setup) -> None:
    monkeypatch.setenv("AGENT_API_KEY", "sk-env")
    monkeypatch.setenv("AGENT_SANDBOX_ENABLED", "false")
    monkeypatch.setenv("AGENT_LOG_LEVEL", "debug")

    orch = factory.create_orchestrator_from_env(settings=AgentSettings(_env_file=None))

    assert isinstance(orch, Orchestrator)
    assert orch.sandboxed is False
    assert isinstance(orch._client, ChatCompletionClient)
    assert [t.name for t in orch._config.pre_tasks] == ["exploring"]
    assert _no_logging_setup == [{"log_level": "debug", "enable_file": False}]


def test_create_from_env_without_pretasks(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("AGENT_API_KEY", "sk-env")
    orch = factory.create_orchestrator_from_env(settings=AgentSettings(_env_file=None), pre_tasks=[])
    assert orch._config.pre_tasks == []


def test_create_from_env_requires_api_key() -> None:
    with pytest.raises(MissingAPIKeyError):
        factory.create_orchestrator_from_env(settings=AgentSettings(_env_file=None))


def test_approver_is_wrapped(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("AGENT_API_KEY", "sk-env")
    monkeypatch.setenv("AGENT_SANDBOX_ENABLED", "false")
    orch = factory.create_orchestrator_from_env(settings=AgentSettings(_env_file=None), approver=_Approver())
    assert isinstance(orch._loop._approver, ConfirmingApprover)
