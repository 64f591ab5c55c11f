"""Logging setup: every record carries the current request id."""

from __future__ import annotations

import contextvars
import logging

from healthwatch.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s request_id=%(request_id)s"

request_id_var: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "request_id",
    default=None,
)


def _stamp(record: logging.LogRecord) -> logging.LogRecord:
    record.request_id = getattr(record, "request_id", None) or request_id_var.get() or "-"
    return record


class RequestIdFilter(logging.Filter):
    """Attach request_id from contextvars to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        _stamp(record)
        return True


def configure_logging() -> None:
    """Configure the root logger at ``settings.log_level``.

    Evaluation tasks scheduled by a request inherit its id; the outbox
    worker and the scheduler log ``-``.
    """
    base_factory = logging.getLogRecordFactory()

    def record_factory(*args, **kwargs):
        return _stamp(base_factory(*args, **kwargs))

    logging.setLogRecordFactory(record_factory)
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format=LOG_FORMAT,
    )
    for handler in logging.getLogger().handlers:
        handler.addFilter(RequestIdFilter())
