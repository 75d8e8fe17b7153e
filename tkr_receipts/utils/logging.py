"""Structured logging configuration using structlog."""

import logging
import sys
from contextlib import AbstractContextManager
from typing import Any, Optional

import structlog
from structlog.typing import EventDict, Processor

from tkr_receipts.config.settings import settings


def add_app_env(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Tag events with the application environment."""
    event_dict.setdefault("env", settings.app.env)
    return event_dict


def document_context(**identifiers: Optional[str]) -> AbstractContextManager:
    """
    Bind document identifiers to every event logged inside the block.

    Usage:
        with document_context(receipt_number="TKR2025-0007"):
            ...

    Empty identifiers are not bound.
    """
    return structlog.contextvars.bound_contextvars(
        **{key: value for key, value in identifiers.items() if value}
    )


def configure_logging() -> None:
    """Configure structured logging."""
    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        add_app_env,
        structlog.processors.StackInfoRenderer(),
    ]

    if settings.app.log_format == "json":
        processors: list[Processor] = shared_processors + [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(ensure_ascii=False),
        ]
    else:
        processors = shared_processors + [
            structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # Configure stdlib logging; stdout is reserved for command output
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, settings.app.log_level),
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a configured logger instance."""
    return structlog.get_logger(name)
