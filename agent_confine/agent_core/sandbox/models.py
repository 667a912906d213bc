from __future__ import annotations

import os
import shutil
import sys
import tempfile
from dataclasses import dataclass
from typing import Optional

from pydantic import ConfigDict, Field

from ..schemas.base import BaseSchema

SANDBOX_EXEC_BINARY = "sandbox-exec"

DEFAULT_EXEC_PATHS = (
    "/bin",
    "/usr/bin",
    "/usr/local/bin",
    "/opt/homebrew/bin",
    "/usr/sbin",
    "/sbin",
)


class SandboxConfig(BaseSchema):
    """
    Declarative allow-list for confined command execution.

    Paths are directory subtrees (prefix match), not individual files. The
    configuration is immutable so a compiled profile can never drift from it.
    """
    model_config = ConfigDict(populate_by_name=True, extra="forbid", frozen=True)

    enabled: bool = Field(default=False, description="Confine commands when the platform supports it.")
    allow_network: bool = Field(default=False, description="Allow network access from confined commands.")
    read_paths: tuple[str, ...] = Field(default=(), description="Subtrees readable by confined commands.")
    write_paths: tuple[str, ...] = Field(default=(), description="Subtrees writable by confined commands.")
    exec_paths: tuple[str, ...] = Field(default=(), description="Subtrees executables may be launched from.")
    fallback_outside_sandbox: bool = Field(
        default=True,
        description="Offer approved unconfined re-execution when the policy denies a command.",
    )


@dataclass(frozen=True)
class DenialClassification:
    """
    Result of classifying a failed confined command.

    Attributes:
        is_denial: Whether the failure was caused by the confinement policy.
        reason: Human-readable reason when ``is_denial`` is true.
    """
    is_denial: bool
    reason: Optional[str] = None


def sandbox_available() -> bool:
    """Return True when the platform has ``sandbox-exec`` on the executable search path."""
    if sys.platform != "darwin":
        return False
    return shutil.which(SANDBOX_EXEC_BINARY) is not None


def default_sandbox_config() -> SandboxConfig:
    """
    Build the default confinement configuration.

    Confinement is enabled only where it is natively available; network is
    denied; writes go to the working directory and the temp directories;
    executables come from the conventional system and user binary directories.
    """
    return SandboxConfig(
        enabled=sandbox_available(),
        allow_network=False,
        read_paths=("/",),
        write_paths=(
            os.getcwd(),
            tempfile.gettempdir(),
            "/private/tmp",
            "/private/var/folders",  # macOS per-user temp folders
        ),
        exec_paths=DEFAULT_EXEC_PATHS,
        fallback_outside_sandbox=True,
    )
