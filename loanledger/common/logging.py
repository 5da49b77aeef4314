"""JSON logging for the statement service.

Each record carries the service name, the request trace id and the customer
whose statement is being built. The ids come from context variables, so
concurrent requests keep their own values.
"""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar

from pythonjsonlogger.json import JsonFormatter

from loanledger.common.config import settings


trace_id_ctx: ContextVar[str] = ContextVar("trace_id", default="")
customer_id_ctx: ContextVar[str] = ContextVar("customer_id", default="")

# Third-party loggers that are chatty at INFO.
QUIET_LOGGERS = ("sqlalchemy.engine", "httpx", "opentelemetry")


class ContextFilter(logging.Filter):
    """Stamp service, trace and customer identifiers onto each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.service_name = settings.service_name
        record.trace_id = trace_id_ctx.get()
        record.customer_id = customer_id_ctx.get()
        return True


@contextmanager
def customer_context(customer_id) -> Iterator[None]:
    """Tag log lines emitted inside the block with `customer_id`."""

    token = customer_id_ctx.set(str(customer_id))
    try:
        yield
    finally:
        customer_id_ctx.reset(token)


def configure_logging(level: str | None = None) -> None:
    """Route every logger to JSON on stdout; call once per process."""

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(ContextFilter())
    handler.setFormatter(
        JsonFormatter(
            "%(asctime)s %(levelname)s %(name)s %(service_name)s %(trace_id)s %(customer_id)s %(message)s",
            rename_fields={"asctime": "timestamp", "levelname": "level", "name": "logger"},
        )
    )

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level or settings.log_level)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


logger = logging.getLogger("loanledger")
