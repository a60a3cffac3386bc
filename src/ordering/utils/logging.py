"""Logging for the ordering service.

Standard library logging owns the handlers (console plus rotating files) and
structlog renders the events: JSON in production and staging, a colored
console renderer everywhere else.

Two processors are specific to ordering events:

- ``mask_payment_secrets`` keeps wallet tokens, provider credentials and
  payer emails out of the logs, since the payment bridge logs whole
  charge requests and webhook deliveries.
- ``render_domain_values`` turns amounts, ledger dates and status enums into
  plain strings so the JSON renderer never falls back to ``repr``.
"""

import logging
import logging.handlers
import os
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Any

import structlog

_LEVELS = {
    "production": "INFO",
    "staging": "INFO",
    "development": "DEBUG",
    "test": "WARNING",
}

_SECRET_KEYS = {"token", "access_token", "authorization", "mercadopago_access_token"}
_EMAIL_KEYS = {"payer_email", "email"}

# Libraries that log every provider round trip at DEBUG
_QUIET_LOGGERS = ("urllib3", "requests", "asyncio", "protean")


def _environment() -> str:
    return (os.getenv("ENV") or os.getenv("ENVIRONMENT") or os.getenv("PROTEAN_ENV") or "development").lower()


def get_log_level() -> str:
    return os.getenv("LOG_LEVEL", _LEVELS.get(_environment(), "INFO"))


# ---------------------------------------------------------------------------
# Processors
# ---------------------------------------------------------------------------
def _mask_email(value: str) -> str:
    local, _, domain = value.partition("@")
    if not domain:
        return "***"
    return f"{local[:1]}***@{domain}"


def mask_payment_secrets(logger: Any, method_name: str, event_dict: dict) -> dict:
    for key, value in event_dict.items():
        if value is None:
            continue
        if key in _SECRET_KEYS:
            event_dict[key] = "***"
        elif key in _EMAIL_KEYS and isinstance(value, str):
            event_dict[key] = _mask_email(value)
    return event_dict


def render_domain_values(logger: Any, method_name: str, event_dict: dict) -> dict:
    for key, value in event_dict.items():
        if isinstance(value, Decimal):
            event_dict[key] = str(value)
        elif isinstance(value, (datetime, date)):
            event_dict[key] = value.isoformat()
        elif isinstance(value, Enum):
            event_dict[key] = value.value
    return event_dict


# ---------------------------------------------------------------------------
# Setup
# ---------------------------------------------------------------------------
def setup_stdlib_logging(level: str | None = None, log_dir: str | None = None) -> None:
    log_level = level or get_log_level()

    log_path = Path(log_dir or os.getenv("LOG_DIR", "logs"))
    log_path.mkdir(parents=True, exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers = []

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    root_logger.addHandler(console_handler)

    for filename, handler_level in (("ordering.log", log_level), ("ordering_error.log", logging.ERROR)):
        handler = logging.handlers.RotatingFileHandler(
            filename=log_path / filename,
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8",
        )
        handler.setLevel(handler_level)
        root_logger.addHandler(handler)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def setup_structlog() -> None:
    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        mask_payment_secrets,
        render_domain_values,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.CallsiteParameterAdder(
            parameters=[
                structlog.processors.CallsiteParameter.MODULE,
                structlog.processors.CallsiteParameter.FUNC_NAME,
            ]
        ),
    ]

    if _environment() in ("production", "staging"):
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(
            structlog.dev.ConsoleRenderer(
                colors=True,
                exception_formatter=structlog.dev.RichTracebackFormatter(show_locals=False, max_frames=2),
            )
        )

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def configure_logging(level: str | None = None, log_dir: str | None = None) -> None:
    setup_stdlib_logging(level=level, log_dir=log_dir)
    setup_structlog()


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


# ---------------------------------------------------------------------------
# Context
# ---------------------------------------------------------------------------
def add_context(**kwargs: Any) -> None:
    """Bind values to every event logged from the current request or task."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()


@contextmanager
def order_context(order_id, **kwargs: Any) -> Iterator[None]:
    """Tag the events of one order's transition, e.g. inside a sweep or a webhook."""
    with structlog.contextvars.bound_contextvars(order_id=str(order_id), **kwargs):
        yield
