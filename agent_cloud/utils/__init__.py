"""Utility functions for Agent-Cloud."""

from agent_cloud.utils.logging import configure_logging, configure_tracing, get_logger

__all__ = [
    "configure_logging",
    "configure_tracing",
    "get_logger",
]
