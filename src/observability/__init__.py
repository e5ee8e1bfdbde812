"""Structured logging for the matching service."""

from src.observability.logging import (
    SENSITIVE_FIELDS,
    bind_request_context,
    clear_request_context,
    configure_logging,
    redact_sensitive_fields,
)


__all__ = [
    "SENSITIVE_FIELDS",
    "bind_request_context",
    "clear_request_context",
    "configure_logging",
    "redact_sensitive_fields",
]
