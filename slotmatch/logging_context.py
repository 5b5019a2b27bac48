"""Correlation ID logging context for tracing one HTTP call across modules.

Usage:
    from slotmatch.logging_context import set_request_id

    set_request_id("req-abc123")
    logger.info("Processing")  # → [req-abc123] Processing
"""

import logging
import uuid
from contextvars import ContextVar

_request_id: ContextVar[str] = ContextVar("request_id", default="-")


def set_request_id(request_id: str | None = None) -> str:
    """Set the correlation ID for the current context, generating one if needed."""
    value = request_id or uuid.uuid4().hex[:12]
    _request_id.set(value)
    return value


class RequestIdFilter(logging.Filter):
    """Injects request_id into every log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = _request_id.get()  # type: ignore[attr-defined]
        return True
