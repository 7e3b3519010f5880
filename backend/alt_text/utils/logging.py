"""
Structured logging configuration with structlog.

Log events are emitted as JSON (or coloured console output in development)
and carry the correlation ID of the request that produced them, so a single
alt-text generation can be followed from the HTTP layer down to the vision
backend call.
"""
import logging
import sys
import uuid
from contextvars import ContextVar
from typing import Any, Optional

import structlog
from structlog.types import EventDict, Processor

# Correlation ID of the request currently being handled
correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="")


def add_correlation_id(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Processor that copies the current correlation ID into the event."""
    correlation_id = correlation_id_var.get()
    if correlation_id:
        event_dict["correlation_id"] = correlation_id
    return event_dict


def configure_logging(
    log_level: str = "INFO",
    json_output: bool = True,
    include_timestamp: bool = True,
) -> None:
    """
    Configure structlog on top of the standard library logging module.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_output: Emit JSON lines (True) or human-readable output (False)
        include_timestamp: Whether to add an ISO timestamp to each event
    """
    shared_processors: list[Processor] = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        add_correlation_id,
    ]
    if include_timestamp:
        shared_processors.append(structlog.processors.TimeStamper(fmt="iso"))
    shared_processors += [
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if json_output:
        renderer: Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=shared_processors + [renderer],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper(), logging.INFO),
    )


def get_logger(name: Optional[str] = None) -> structlog.stdlib.BoundLogger:
    """
    Get a configured structlog logger.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Bound structlog logger
    """
    return structlog.get_logger(name or "alt_text")


def set_correlation_id(correlation_id: str) -> None:
    """Set the correlation ID for the current context."""
    correlation_id_var.set(correlation_id)


def get_correlation_id() -> str:
    """Return the current correlation ID, or an empty string."""
    return correlation_id_var.get()


def generate_correlation_id() -> str:
    """Generate a new correlation ID (UUID4)."""
    return str(uuid.uuid4())
