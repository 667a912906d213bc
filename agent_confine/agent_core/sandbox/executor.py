from __future__ import annotations

"""Shell command executors.

Two implementations share the ``ShellExecutor`` protocol:

- ``SandboxedExecutor`` runs ``sh -c <command>`` under ``sandbox-exec`` with
  the compiled profile and classifies failures as policy denials or ordinary
  command failures.
- ``PassthroughExecutor`` runs ``sh -c <command>`` directly. There is no
  policy to violate, so failures are never classified.

Executors hold no per-call mutable state: the sandboxed executor compiles its
profile once at construction and every ``run`` call is independent, so one
instance can be shared by several conversations.

The command string is passed to the shell opaquely; it is never parsed,
sanitized or rewritten. No timeout is applied to the child process.
"""

import asyncio
import time
from typing import Protocol, Sequence

from agent_confine.core.logging_config import get_logger

from ..schemas.domain import ExecMeta, ToolResult
from .classifier import classify_denial
from .models import SANDBOX_EXEC_BINARY, SandboxConfig, sandbox_available
from .profile import CompiledProfile, compile_profile

logger = get_logger(__name__)

SHELL = "sh"


class ShellExecutor(Protocol):
    """Protocol for shell command execution."""

    @property
    def sandboxed(self) -> bool: ...

    async def run(self, command: str) -> tuple[ToolResult, ExecMeta]: ...


async def _run_process(argv: Sequence[str]) -> tuple[int, str]:
    """Spawn ``argv`` with stderr merged into stdout and wait for it to exit."""
    proc = await asyncio.create_subprocess_exec(
        *argv,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.STDOUT,
    )
    out, _ = await proc.communicate()
    return int(proc.returncode or 0), out.decode("utf-8", errors="replace")


class PassthroughExecutor:
    """Execute commands directly, without confinement."""

    @property
    def sandboxed(self) -> bool:
        return False

    async def run(self, command: str) -> tuple[ToolResult, ExecMeta]:
        """
        Run a command unconfined.

        Args:
            command: Shell command text, passed verbatim to ``sh -c``.

        Returns:
            The tool result and ``ExecMeta(sandboxed=False)``.
        """
        meta = ExecMeta(sandboxed=False)
        start = time.monotonic()
        try:
            exit_code, output = await _run_process([SHELL, "-c", command])
        except OSError as e:
            elapsed = time.monotonic() - start
            logger.error(f"Failed to start shell for command: {e}")
            return (
                ToolResult(
                    success=False, output=f"error: {e}", status=f"fail ({elapsed:.1f}s)", error=str(e), exec_meta=meta
                ),
                meta,
            )
        elapsed = time.monotonic() - start

        if exit_code != 0:
            logger.info(f"Command failed unconfined: exit={exit_code} elapsed={elapsed:.1f}s")
            return (
                ToolResult(
                    success=False,
                    output=output,
                    status=f"fail ({elapsed:.1f}s)",
                    error=f"exit status {exit_code}",
                    exec_meta=meta,
                ),
                meta,
            )

        logger.info(f"Command succeeded unconfined: elapsed={elapsed:.1f}s")
        return ToolResult(success=True, output=output, status=f"ok ({elapsed:.1f}s)", exec_meta=meta), meta


class SandboxedExecutor:
    """Execute commands inside ``sandbox-exec`` with a compiled profile."""

    def __init__(self, config: SandboxConfig) -> None:
        """
        Initialize the executor.

        Args:
            config: Allow-list configuration; compiled once into the profile.
        """
        self._config = config
        self._profile = compile_profile(config)

    @property
    def sandboxed(self) -> bool:
        return True

    @property
    def config(self) -> SandboxConfig:
        return self._config

    @property
    def profile(self) -> CompiledProfile:
        return self._profile

    def argv(self, command: str) -> list[str]:
        """Build the confined invocation for ``command``."""
        return [SANDBOX_EXEC_BINARY, "-p", self._profile.text, SHELL, "-c", command]

    async def run(self, command: str) -> tuple[ToolResult, ExecMeta]:
        """
        Run a command under confinement.

        Returns one of three outcomes: success; a policy denial
        (``ExecMeta.sandbox_error`` set, status ``sandbox blocked``); or an
        ordinary failure (status ``fail``).
        """
        start = time.monotonic()
        try:
            exit_code, output = await _run_process(self.argv(command))
        except OSError as e:
            elapsed = time.monotonic() - start
            meta = ExecMeta(sandboxed=True)
            logger.error(f"Failed to start sandbox-exec: {e}")
            return (
                ToolResult(
                    success=False, output=f"error: {e}", status=f"fail ({elapsed:.1f}s)", error=str(e), exec_meta=meta
                ),
                meta,
            )
        elapsed = time.monotonic() - start

        if exit_code == 0:
            meta = ExecMeta(sandboxed=True)
            logger.info(f"Command succeeded in sandbox: elapsed={elapsed:.1f}s")
            return ToolResult(success=True, output=output, status=f"ok ({elapsed:.1f}s)", exec_meta=meta), meta

        verdict = classify_denial(output, exit_code)
        if verdict.is_denial:
            meta = ExecMeta(sandboxed=True, sandbox_error=True, sandbox_reason=verdict.reason or "")
            logger.warning(f"Command blocked by sandbox: reason={meta.sandbox_reason!r} exit={exit_code}")
            return (
                ToolResult(
                    success=False,
                    output=output,
                    status=f"sandbox blocked ({elapsed:.1f}s)",
                    error=f"command blocked by sandbox policy: {meta.sandbox_reason}",
                    exec_meta=meta,
                ),
                meta,
            )

        meta = ExecMeta(sandboxed=True)
        logger.info(f"Command failed in sandbox: exit={exit_code} elapsed={elapsed:.1f}s")
        return (
            ToolResult(
                success=False,
                output=output,
                status=f"fail ({elapsed:.1f}s)",
                error=f"exit status {exit_code}",
                exec_meta=meta,
            ),
            meta,
        )


def create_shell_executor(config: SandboxConfig) -> ShellExecutor:
    """
    Create the executor matching the configuration and the platform.

    Returns a ``SandboxedExecutor`` only when confinement is enabled and
    ``sandbox-exec`` is available; otherwise a ``PassthroughExecutor``.
    """
    if config.enabled and sandbox_available():
        return SandboxedExecutor(config)
    if config.enabled:
        logger.info("Sandbox requested but sandbox-exec is unavailable; commands run unconfined")
    return PassthroughExecutor()
