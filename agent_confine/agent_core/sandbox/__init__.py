"""Confined command execution.

The sandbox layer turns a declarative allow-list into a platform-native
confinement profile and runs shell commands under it. It is intentionally
separate from the conversation runtime so that:

- profile compilation and denial classification stay pure and testable,
- the orchestrator only sees ``ToolResult``/``ExecMeta`` values.

Components
----------

- ``SandboxConfig``: allow-list configuration (read/write/exec subtrees,
  network, fallback).
- ``compile_profile``: SBPL profile compiler.
- ``classify_denial``: policy-denial vs ordinary-failure classifier.
- ``SandboxedExecutor`` / ``PassthroughExecutor``: shell executors.
- ``FallbackNegotiator``: approved unconfined re-execution after a denial.
"""

from .classifier import classify_denial, extract_denial_reason, is_sandbox_denial
from .executor import (
    PassthroughExecutor,
    SandboxedExecutor,
    ShellExecutor,
    create_shell_executor,
)
from .fallback import ExecutionPath, FallbackNegotiator, ShellOutcome
from .models import (
    DenialClassification,
    SandboxConfig,
    default_sandbox_config,
    sandbox_available,
)
from .profile import CompiledProfile, compile_profile

__all__ = [
    "CompiledProfile",
    "DenialClassification",
    "ExecutionPath",
    "FallbackNegotiator",
    "PassthroughExecutor",
    "SandboxConfig",
    "SandboxedExecutor",
    "ShellExecutor",
    "ShellOutcome",
    "classify_denial",
    "compile_profile",
    "create_shell_executor",
    "default_sandbox_config",
    "extract_denial_reason",
    "is_sandbox_denial",
    "sandbox_available",
]
