"""Logging configuration using structlog."""

import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import structlog

from agent_cloud.config import Settings


def configure_logging(
    settings: Settings,
    log_dir: Path | None = None,
    session_id: str | None = None,
) -> Path | None:
    """Configure structured logging for the application.

    Console output goes to stderr so it never interleaves with the CLI's
    rendered output on stdout. When ``log_dir`` is given and file logging is
    enabled, every session also writes to ``deployment-<session>.log``.

    Returns:
        Path to the session log file, if one was created
    """
    level = logging.DEBUG if settings.debug else getattr(logging, settings.log_level)

    console_handler = logging.StreamHandler(sys.stderr)
    # Keep the terminal quiet unless debugging; the log file gets everything
    console_handler.setLevel(level if settings.debug else logging.WARNING)
    handlers: list[logging.Handler] = [console_handler]

    log_file: Path | None = None
    if settings.log_to_file and log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        session = session_id or datetime.now(timezone.utc).strftime("%Y%m%d%H%M%S")
        log_file = log_dir / f"deployment-{session}.log"
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        handlers.append(file_handler)

    # Set up standard library logging
    logging.basicConfig(
        format="%(message)s",
        level=level,
        handlers=handlers,
        force=True,
    )

    # Configure structlog
    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    # Add renderer based on format
    if settings.log_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    return log_file


def configure_tracing(settings: Settings) -> bool:
    """Enable LangSmith tracing of Claude Agent SDK calls when requested."""
    if not settings.langsmith_tracing:
        return False

    from langsmith.integrations.claude_agent_sdk import configure_claude_agent_sdk

    configure_claude_agent_sdk()
    return True


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)
