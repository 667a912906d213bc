from __future__ import annotations

"""Confinement profile compiler.

``compile_profile`` turns a ``SandboxConfig`` allow-list into the SBPL text
consumed by ``sandbox-exec -p``.

Profile layout
--------------

- a single ``(deny default)`` baseline,
- process fork/exec primitives,
- one additive allow rule per configured read, write and exec subtree,
- fixed system essentials every shell needs (metadata and sysctl reads,
  service lookups, signals, device-framework open, ``/dev`` pseudo-terminals),
- exactly one network rule keyed on ``allow_network``.

Rules are purely additive under default-deny, so the order of configured
paths never changes the meaning of the profile.
"""

from dataclasses import dataclass
from typing import Iterable

from agent_confine.core.logging_config import get_logger

from .models import SandboxConfig

logger = get_logger(__name__)

PROFILE_HEADER = ("(version 1)", "(deny default)")

PROCESS_RULES = ("(allow process-fork)", "(allow process-exec)")

SYSTEM_ESSENTIAL_RULES = (
    "(allow file-read-metadata)",
    "(allow sysctl-read)",
    "(allow mach-lookup)",
    "(allow signal)",
    "(allow iokit-open)",
    '(allow file-read* file-write* (regex #"^/dev/"))',
    '(allow file-ioctl (regex #"^/dev/"))',
)

NETWORK_ALLOW_RULE = "(allow network*)"
NETWORK_DENY_RULE = "(deny network*)"


@dataclass(frozen=True)
class CompiledProfile:
    """Compiled SBPL profile text. A pure function of its ``SandboxConfig``."""

    text: str

    def __str__(self) -> str:
        return self.text


def _quote(path: str) -> str:
    escaped = path.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def _subpath_rules(operation: str, paths: Iterable[str]) -> list[str]:
    return [f"(allow {operation} (subpath {_quote(p)}))" for p in paths]


def compile_profile(config: SandboxConfig) -> CompiledProfile:
    """
    Compile a confinement profile from an allow-list configuration.

    Empty path lists are legal and simply add no rules; an empty write or exec
    list usually means a shell cannot do anything useful, so it is logged as
    a warning rather than rejected.

    Args:
        config: The allow-list configuration.

    Returns:
        The compiled profile.
    """
    if not config.write_paths:
        logger.warning("Sandbox profile has no write paths; confined commands cannot write anywhere")
    if not config.exec_paths:
        logger.warning("Sandbox profile has no exec paths; confined commands cannot launch programs")

    lines: list[str] = [*PROFILE_HEADER, *PROCESS_RULES]
    lines += _subpath_rules("file-read*", config.read_paths)
    lines += _subpath_rules("file-write*", config.write_paths)
    lines += _subpath_rules("process-exec", config.exec_paths)
    lines += SYSTEM_ESSENTIAL_RULES
    lines.append(NETWORK_ALLOW_RULE if config.allow_network else NETWORK_DENY_RULE)

    logger.debug(
        f"Compiled sandbox profile: read={len(config.read_paths)} write={len(config.write_paths)} "
        f"exec={len(config.exec_paths)} network={'allow' if config.allow_network else 'deny'}"
    )
    return CompiledProfile(text="\n".join(lines) + "\n")
