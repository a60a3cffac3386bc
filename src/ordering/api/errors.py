"""HTTP mapping for domain errors.

Protean's FastAPI integration covers its own exception hierarchy; the
ordering errors are registered on top so the most specific class wins.
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from protean.exceptions import InvalidOperationError, ObjectNotFoundError, ValidationError
from protean.integrations.fastapi import register_exception_handlers

from ordering.errors import (
    Forbidden,
    IllegalTransition,
    InsufficientStock,
    PaymentProviderError,
    PaymentRejected,
    StockNotConfigured,
    StockUnavailable,
)

_STATUS_CODES = {
    ValidationError: 400,
    ObjectNotFoundError: 404,
    InvalidOperationError: 422,
    StockNotConfigured: 404,
    InsufficientStock: 409,
    StockUnavailable: 409,
    IllegalTransition: 409,
    Forbidden: 403,
    PaymentRejected: 402,
    PaymentProviderError: 502,
}


def error_body(exc: Exception) -> dict:
    """Error payload as ``{field: [message]}``, also for Protean's bare exceptions."""
    messages = getattr(exc, "messages", None)
    if isinstance(messages, dict):
        return messages
    if messages:
        return {"detail": messages if isinstance(messages, list) else [str(messages)]}
    return {"detail": [str(exc)]}


def _handler(status_code: int):
    async def handle(request: Request, exc: Exception) -> JSONResponse:
        return JSONResponse(status_code=status_code, content={"error": error_body(exc)})

    return handle


def register_error_handlers(app: FastAPI) -> None:
    register_exception_handlers(app)
    for exc_class, status_code in _STATUS_CODES.items():
        app.add_exception_handler(exc_class, _handler(status_code))
