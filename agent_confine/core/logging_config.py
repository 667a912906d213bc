"""
Logging configuration for agent-confine.

Modules never configure logging themselves; they call ``get_logger(__name__)``
and emit messages. Hosts (or ``create_orchestrator_from_env``) call
``setup_logging`` once to attach handlers.

Environment variables
---------------------
- ``AGENT_LOG_LEVEL``: console level (default ``INFO``).
- ``LOG_FORMAT``: ``simple``, ``detailed`` (default) or ``json``.
- ``LOG_FILE_DIR``: directory for ``agent_confine.log`` (default ``logs``).
- ``ENABLE_FILE_LOGGING``: ``true`` to also log to that file (default off).

Levels
------
Confinement decisions (denials, fallbacks) are logged at WARNING, command
outcomes at INFO, profile compilation and turn transitions at DEBUG.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

LOG_FILE_NAME = "agent_confine.log"

FORMATS: Dict[str, str] = {
    "simple": "%(levelname)s %(name)s: %(message)s",
    "detailed": "%(asctime)s %(levelname)-8s %(name)s [%(filename)s:%(lineno)d] %(message)s",
    "json": (
        '{"ts": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", '
        '"line": %(lineno)d, "message": "%(message)s"}'
    ),
}

# Per-package floors applied after the root level; noisy libraries are raised.
MODULE_LOG_LEVELS: Dict[str, str] = {
    "agent_confine.agent_core.sandbox": "DEBUG",
    "agent_confine.agent_core.runtime": "DEBUG",
    "agent_confine.agent_core.tools": "INFO",
    "agent_confine.agent_core.client": "INFO",
    "httpx": "WARNING",
    "httpcore": "WARNING",
    "asyncio": "WARNING",
}


def _env_flag(name: str) -> bool:
    return os.getenv(name, "false").strip().lower() in ("true", "1", "yes")


@dataclass(frozen=True)
class LogSettings:
    level: str = "INFO"
    fmt: str = "detailed"
    file_dir: str = "logs"
    file_enabled: bool = False

    @classmethod
    def from_env(cls) -> "LogSettings":
        """Read settings from the environment at call time, not at import."""
        return cls(
            level=os.getenv("AGENT_LOG_LEVEL", "INFO").upper(),
            fmt=os.getenv("LOG_FORMAT", "detailed").lower(),
            file_dir=os.getenv("LOG_FILE_DIR", "logs"),
            file_enabled=_env_flag("ENABLE_FILE_LOGGING"),
        )


def setup_logging(
    log_level: Optional[str] = None,
    log_format: Optional[str] = None,
    enable_file: bool = True,
) -> None:
    """
    Configure the root logger.

    Existing root handlers are replaced, so calling this twice does not
    duplicate output.

    Args:
        log_level: Console level override (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_format: Format override (simple, detailed, json).
        enable_file: Allow the file handler; it is still only added when
            ``ENABLE_FILE_LOGGING`` is set.
    """
    env = LogSettings.from_env()
    level = (log_level or env.level).upper()
    fmt = (log_format or env.fmt).lower()
    formatter = logging.Formatter(FORMATS.get(fmt, FORMATS["detailed"]), datefmt="%Y-%m-%d %H:%M:%S")

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for handler in list(root.handlers):
        root.removeHandler(handler)

    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(formatter)
    root.addHandler(console)

    to_file = enable_file and env.file_enabled
    if to_file:
        log_dir = Path(env.file_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_dir / LOG_FILE_NAME)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    for name, module_level in MODULE_LOG_LEVELS.items():
        logging.getLogger(name).setLevel(module_level)

    root.debug(f"Logging configured: level={level}, format={fmt}, file_logging={to_file}")


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a module.

    Args:
        name: The module name (typically __name__)

    Returns:
        A logger instance
    """
    return logging.getLogger(name)
