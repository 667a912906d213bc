"""
Core utilities and configuration for agent-confine.

This package provides shared functionality: logging configuration and the
settings/configuration models used to build an orchestrator.
"""

from agent_confine.core.logging_config import get_logger, setup_logging

__all__ = ["get_logger", "setup_logging"]
