"""Structured logging setup for the CLI and library callers.

Log events carry a request ID and, when known, the user ID. Free-text
health data and credentials never reach the log stream: the fields in
``SENSITIVE_FIELDS`` are masked before rendering.
"""

import logging
import sys
from collections.abc import MutableMapping
from typing import Any, TextIO

import structlog


_REQUEST_CONTEXT_KEYS = ("request_id", "user_id")

# Event fields that may hold patient text or secrets
SENSITIVE_FIELDS = frozenset(
    {
        "api_key",
        "authorization",
        "context",
        "conversation",
        "prompt",
        "x-goog-api-key",
    }
)

REDACTED_VALUE = "[REDACTED]"


def redact_sensitive_fields(
    _logger: Any, _method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """Structlog processor masking sensitive event fields.

    Args:
        _logger: Wrapped logger (unused).
        _method_name: Log method name (unused).
        event_dict: Event being rendered.

    Returns:
        The event with sensitive values replaced by ``[REDACTED]``.
    """
    for key in event_dict:
        if key.lower() in SENSITIVE_FIELDS:
            event_dict[key] = REDACTED_VALUE
    return event_dict


def configure_logging(
    level: int = logging.INFO,
    output: TextIO | None = None,
    json_format: bool = True,
) -> None:
    """Configure structlog for the process.

    Args:
        level: Minimum level to emit.
        output: Stream for log lines. Defaults to the current stderr.
        json_format: JSON lines when True, colored console output otherwise.
    """
    stream = output or sys.stderr
    renderer: structlog.types.Processor = (
        structlog.processors.JSONRenderer(sort_keys=True)
        if json_format
        else structlog.dev.ConsoleRenderer(colors=stream.isatty())
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            redact_sensitive_fields,
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=stream),
        cache_logger_on_first_use=False,
    )
    logging.basicConfig(format="%(message)s", stream=stream, level=level)


def bind_request_context(request_id: str, user_id: str | None = None) -> None:
    """Bind request context to all subsequent log messages.

    Args:
        request_id: Identifier of the inbound request.
        user_id: Identifier of the requesting user, if known.
    """
    clear_request_context()
    context: dict[str, str] = {"request_id": request_id}
    if user_id is not None:
        context["user_id"] = user_id
    structlog.contextvars.bind_contextvars(**context)


def clear_request_context() -> None:
    """Drop the request ID and user ID from the log context."""
    structlog.contextvars.unbind_contextvars(*_REQUEST_CONTEXT_KEYS)
