"""
logscope logging - structured logging configuration.

This module configures structlog so that log events carry the diagnostic
context managed by logscope, and gives every logscope module its logger.

Architecture:
    ::

        Configuration Flow:
        ┌────────────────────────────────────────────────────────────┐
        │ configure_logging(level="INFO", json_format=True)          │
        │                                                             │
        │     ↓                                                       │
        │ structlog configured with processor chain:                  │
        │   1. merge_contextvars      (structlog backend)             │
        │   2. add_scope_context      (local backend: ndc + mdc)      │
        │   3. add_log_level / add_logger_name                        │
        │   4. TimeStamper (UTC ISO-8601)                             │
        │   5. StackInfoRenderer / format_exc_info                    │
        │   6. JSONRenderer (or ConsoleRenderer for dev)              │
        └────────────────────────────────────────────────────────────┘

        Usage Flow:
        ┌────────────────────────────────────────────────────────────┐
        │ @logging_context("OrdersService")                          │
        │ class OrdersService:                                       │
        │     def issue_refund(self, order_id: Annotated[str,        │
        │                      LoggingContext("order")]):            │
        │         logger.info("refund_issued")                       │
        │                                                             │
        │ Output (JSON format):                                       │
        │ {"event": "refund_issued", "ndc": ["OrdersService"],        │
        │  "order": "A-17", "level": "info", ...}                     │
        └────────────────────────────────────────────────────────────┘

Configuration is read from settings (``LOGSCOPE_LOG_LEVEL``,
``LOGSCOPE_LOG_FORMAT``) unless passed explicitly.

Tags:
    logging, structlog, observability, logscope
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog
from structlog.types import Processor

from logscope.core.settings import get_settings

# Track if logging has been configured
_configured = False


def configure_logging(
    level: str | None = None,
    json_format: bool | None = None,
    force: bool = False,
) -> None:
    """Configure structured logging for the application.

    Should be called once at application startup. Subsequent calls are
    no-ops unless ``force=True``.

    Args:
        level: Log level (overrides LOGSCOPE_LOG_LEVEL)
        json_format: True for JSON, False for console, None for settings/auto
            (JSON if stdout is not a tty)
        force: Reconfigure even if already configured
    """
    global _configured

    if _configured and not force:
        return

    # Imported here: the backend module logs through this one
    from logscope.backends.local import add_scope_context

    settings = get_settings()
    log_level = (level or settings.log_level).upper()

    if json_format is None:
        if settings.log_format is not None:
            json_format = settings.log_format == "json"
        else:
            json_format = not sys.stdout.isatty()

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        add_scope_context,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if json_format:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, log_level)),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # Configure stdlib logging to match
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, log_level),
        force=True,
    )

    _configured = True


def get_logger(name: str | None = None) -> Any:
    """Get a structured logger.

    Args:
        name: Logger name (usually __name__)
    """
    return structlog.get_logger(name)


def is_configured() -> bool:
    """Check if logging has been configured."""
    return _configured


__all__ = ["configure_logging", "get_logger", "is_configured"]
