"""Logging with a per-request correlation id and rental context fields.

Service code logs through ``get_logger(__name__)`` and passes identifiers in
``extra``; the formatter renders the known ones as ``key=value`` after the
message so a single grep for a reservation or unit id finds every line:

    [5f0c...] 2026-06-01 10:00:00 INFO rental_shared.services.booking:
    Reservation created | reservation_id=RES-2026-1A2B3C4D stock_item_ids=['trailer-01-a']
"""

import logging
import uuid
from contextvars import ContextVar
from typing import Any

_correlation_id: ContextVar[str | None] = ContextVar("correlation_id", default=None)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
NO_CORRELATION_ID = "-"

# Rendered after the message when present in ``extra``, in this order.
CONTEXT_FIELDS = (
    "product_id",
    "reservation_id",
    "stock_item_ids",
    "session_id",
    "event_id",
    "payment_status",
    "order_status",
    "attempt",
)


def generate_correlation_id() -> str:
    return str(uuid.uuid4())


def set_correlation_id(correlation_id: str | None = None) -> str:
    """Bind a correlation id (a new one if None) to the current context."""
    cid = correlation_id or generate_correlation_id()
    _correlation_id.set(cid)
    return cid


def get_correlation_id() -> str | None:
    return _correlation_id.get()


def clear_correlation_id() -> None:
    _correlation_id.set(None)


class CorrelationIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id() or NO_CORRELATION_ID
        return True


class StructuredFormatter(logging.Formatter):
    """``[correlation-id] <standard line> | key=value ...``"""

    def format(self, record: logging.LogRecord) -> str:
        correlation_id = getattr(record, "correlation_id", None) or (
            get_correlation_id() or NO_CORRELATION_ID
        )
        line = f"[{correlation_id}] {super().format(record)}"
        context = [
            f"{name}={getattr(record, name)}"
            for name in CONTEXT_FIELDS
            if getattr(record, name, None) is not None
        ]
        if context:
            line = f"{line} | {' '.join(context)}"
        return line


def configure_logging(level: str = "INFO") -> None:
    """Install the structured formatter on the root logger.

    Safe to call more than once; existing root handlers are reformatted
    rather than duplicated.
    """
    root = logging.getLogger()
    root.setLevel(level.upper())
    if not root.handlers:
        root.addHandler(logging.StreamHandler())
    for handler in root.handlers:
        handler.setFormatter(StructuredFormatter(LOG_FORMAT))


def get_logger(name: str) -> logging.Logger:
    logger = logging.getLogger(name)
    if not any(isinstance(f, CorrelationIdFilter) for f in logger.filters):
        logger.addFilter(CorrelationIdFilter())
    return logger


def log_availability_check(
    logger: logging.Logger,
    product_id: str,
    *,
    start_date: str,
    end_date: str,
    available: bool,
    available_count: int,
    blocked_count: int,
    **extra: Any,
) -> None:
    """Log the outcome of an availability check.

    Args:
        logger: Logger instance
        product_id: Product that was checked
        start_date: Requested start (ISO)
        end_date: Requested end (ISO)
        available: Whether at least one unit is free
        available_count: Number of free units
        blocked_count: Number of blocked units
        **extra: Additional context fields
    """
    logger.info(
        "Availability %s..%s: %d free, %d blocked",
        start_date,
        end_date,
        available_count,
        blocked_count,
        extra={
            "product_id": product_id,
            "start_date": start_date,
            "end_date": end_date,
            "available": available,
            "available_count": available_count,
            "blocked_count": blocked_count,
            **extra,
        },
    )


def log_payment_operation(
    logger: logging.Logger,
    operation: str,
    *,
    reservation_id: str | None = None,
    session_id: str | None = None,
    amount_cents: int | None = None,
    error: str | None = None,
    **extra: Any,
) -> None:
    """Log a checkout step; logged at ERROR when ``error`` is given."""
    context: dict[str, Any] = {
        "operation": operation,
        "reservation_id": reservation_id,
        "session_id": session_id,
        "amount_cents": amount_cents,
        **extra,
    }
    if error:
        context["error"] = error
        logger.error("Payment %s failed: %s", operation, error, extra=context)
    else:
        logger.info("Payment %s", operation, extra=context)
