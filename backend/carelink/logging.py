"""Logging configuration for the service.

Every record carries the request id assigned by the HTTP middleware and the
profile id of the authenticated caller, so a partially applied approval or a
skipped demographic refresh can be traced back to who triggered it.
"""

from __future__ import annotations

import contextvars
import logging

from carelink.config import settings

LOG_FORMAT = (
    "%(asctime)s %(levelname)s %(name)s %(message)s "
    "request_id=%(request_id)s actor=%(actor_id)s"
)

request_id_var: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "request_id",
    default=None,
)
actor_id_var: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "actor_id",
    default=None,
)


def _stamp(record: logging.LogRecord) -> None:
    if not getattr(record, "request_id", None):
        record.request_id = request_id_var.get() or "-"
    if not getattr(record, "actor_id", None):
        record.actor_id = actor_id_var.get() or "-"


class RequestContextFilter(logging.Filter):
    """Attach request_id and actor_id from contextvars to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        _stamp(record)
        return True


def configure_logging() -> None:
    """Configure structured logging for the service."""
    factory = logging.getLogRecordFactory()

    def record_factory(*args, **kwargs):
        record = factory(*args, **kwargs)
        _stamp(record)
        return record

    logging.setLogRecordFactory(record_factory)
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format=LOG_FORMAT,
    )
    root_logger = logging.getLogger()
    root_logger.addFilter(RequestContextFilter())
    for handler in root_logger.handlers:
        handler.addFilter(RequestContextFilter())
