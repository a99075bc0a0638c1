"""Structured logging utilities using structlog for stores and orchestration."""

import os
import sys
import uuid
from typing import Optional
import structlog
from structlog.processors import JSONRenderer
from structlog.contextvars import merge_contextvars

IS_TTY = sys.stderr.isatty()
LOG_FORMAT = os.getenv("LOG_FORMAT", "console").lower()
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


def configure_structured_logging() -> None:
    """
    Configure structured logging with appropriate processors and renderers.

    Uses:
    - Console renderer for development (colorized, human-readable)
    - JSON renderer for production (structured, machine-readable)
    - Context variables for per-run correlation (content_id, run_id)
    """
    processors = [
        merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if IS_TTY and LOG_FORMAT == "console":
        processors.append(
            structlog.dev.ConsoleRenderer(
                colors=True,
                exception_formatter=structlog.dev.plain_traceback,
            )
        )
    else:
        processors.append(JSONRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(LOG_LEVEL),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


def new_run_id() -> str:
    """Generate a correlation ID for one pipeline run."""
    return str(uuid.uuid4())


def bind_run_context(content_id: str, run_id: Optional[str] = None) -> str:
    """
    Bind content_id and run_id into the structlog context for the current task.

    Every structlog event emitted afterwards in the same asyncio task
    carries both keys until clear_run_context() is called.

    Returns:
        The run_id that was bound
    """
    run_id = run_id or new_run_id()
    structlog.contextvars.bind_contextvars(content_id=content_id, run_id=run_id)
    return run_id


def clear_run_context() -> None:
    """Remove the per-run keys from the structlog context."""
    structlog.contextvars.unbind_contextvars("content_id", "run_id")


configure_structured_logging()


__all__ = [
    "new_run_id",
    "bind_run_context",
    "clear_run_context",
    "configure_structured_logging",
]
