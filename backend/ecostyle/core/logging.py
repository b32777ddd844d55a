"""
Structured logging for the EcoStyle backend.

Log lines are structlog events rendered as JSON outside development. Every
event is tagged with the request ID and, once a handler binds it, the PayPal
payment ID. A checkout spans several requests (payment creation, the buyer's
approval redirect, capture), so the payment ID is what stitches the log lines
of one purchase back together.
"""

import logging
import sys
import time
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Optional
from uuid import uuid4

import structlog
from structlog.types import EventDict, Processor

from ecostyle.core.config import get_settings

request_id_ctx: ContextVar[str] = ContextVar("request_id", default="")
payment_id_ctx: ContextVar[Optional[str]] = ContextVar("payment_id", default=None)

# Event keys filled from context variables when the event does not set them
CORRELATION_FIELDS: dict[str, ContextVar] = {
    "request_id": request_id_ctx,
    "payment_id": payment_id_ctx,
}

LIBRARY_LOG_LEVELS = {
    "uvicorn": logging.INFO,
    "uvicorn.access": logging.WARNING,
    "sqlalchemy.engine": logging.WARNING,
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
    "asyncio": logging.WARNING,
}


def add_correlation_ids(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Copy request and payment IDs from context into the event."""
    for key, var in CORRELATION_FIELDS.items():
        value = var.get()
        if value and key not in event_dict:
            event_dict[key] = value
    return event_dict


def add_service_fields(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    event_dict["timestamp"] = datetime.now(timezone.utc).isoformat()
    event_dict["logger"] = logger.name
    return event_dict


def _processors(console: bool) -> list[Processor]:
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        add_service_fields,
        add_correlation_ids,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]
    if console:
        processors.append(
            structlog.dev.ConsoleRenderer(
                colors=True,
                exception_formatter=structlog.dev.plain_traceback,
            )
        )
    else:
        processors.append(structlog.processors.JSONRenderer())
    return processors


def configure_logging() -> None:
    """
    Configure structlog and the standard library root logger.

    Development gets the colored console renderer; test, staging and
    production emit one JSON object per line on stdout.
    """
    settings = get_settings()

    structlog.configure(
        processors=_processors(console=settings.is_development),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, settings.log_level),
    )
    for name, level in LIBRARY_LOG_LEVELS.items():
        logging.getLogger(name).setLevel(level)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """
    Get a configured logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger instance
    """
    return structlog.get_logger(name)


def set_request_id(request_id: Optional[str] = None) -> str:
    """
    Set the request ID for the current request, generating one if absent.

    Returns:
        Request ID that was set
    """
    request_id = request_id or str(uuid4())
    request_id_ctx.set(request_id)
    return request_id


def get_request_id() -> str:
    return request_id_ctx.get()


def bind_payment_id(payment_id: Optional[str]) -> None:
    """Tag every later log line of the current request with a PayPal payment ID."""
    payment_id_ctx.set(payment_id)


def clear_context() -> None:
    """Reset correlation IDs at the end of a request."""
    request_id_ctx.set("")
    payment_id_ctx.set(None)


class PerformanceLogger:
    """
    Context manager that logs how long a block took.

    Completion is logged at info, or at warning past ``slow_ms``; a block that
    raises is logged at error with the exception type and the exception is
    left to propagate. ``duration_ms`` is available after the block exits.
    """

    def __init__(
        self,
        logger: structlog.stdlib.BoundLogger,
        operation: str,
        slow_ms: float = 1000,
        **context: Any,
    ):
        self.logger = logger
        self.operation = operation
        self.slow_ms = slow_ms
        self.context = context
        self.duration_ms: Optional[float] = None
        self._started: Optional[float] = None

    def __enter__(self) -> "PerformanceLogger":
        self._started = time.perf_counter()
        self.logger.debug("Operation started", operation=self.operation, **self.context)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._started is None:
            return

        self.duration_ms = round((time.perf_counter() - self._started) * 1000, 2)
        fields = {
            "operation": self.operation,
            "duration_ms": self.duration_ms,
            **self.context,
        }

        if exc_type is not None:
            self.logger.error(
                "Operation failed",
                error_type=exc_type.__name__,
                **fields,
            )
        elif self.duration_ms > self.slow_ms:
            self.logger.warning("Slow operation", **fields)
        else:
            self.logger.info("Operation completed", **fields)


def log_performance(
    logger: structlog.stdlib.BoundLogger,
    operation: str,
    **context: Any,
) -> PerformanceLogger:
    """
    Time a block of code.

    Example:
        >>> with log_performance(logger, "paypal_execute", payment_id="PAY-1"):
        ...     await client.execute_payment(...)
    """
    return PerformanceLogger(logger, operation, **context)
