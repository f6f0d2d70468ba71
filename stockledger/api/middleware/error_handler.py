"""
Error handling middleware.

Standardizes all API error responses into the result envelope:
- kind: machine-readable identifier
- message: human-readable description
- hint: suggested recovery action
- details: structured context (shortages, conflicting entry, ...)
"""

import traceback
from collections.abc import Awaitable, Callable
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from stockledger.application.dto.responses import Envelope, ErrorBody
from stockledger.config import get_logger
from stockledger.core.exceptions import (
    AlreadyExistsError,
    ConcurrencyConflictError,
    ConfigurationError,
    ConversionRecordNotFoundError,
    CurrentValueNotFoundError,
    EntryNotFoundError,
    InsufficientStockError,
    LedgerError,
    NoHistoryError,
    PersistenceError,
    StorageError,
    TemplateInactiveError,
    TemplateNotFoundError,
    ValidationError,
)

logger = get_logger(__name__)


# Map exceptions to HTTP status codes; first match wins
EXCEPTION_STATUS_MAP: dict[type[Exception], int] = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    InsufficientStockError: status.HTTP_409_CONFLICT,
    ConcurrencyConflictError: status.HTTP_409_CONFLICT,
    TemplateInactiveError: status.HTTP_409_CONFLICT,
    AlreadyExistsError: status.HTTP_409_CONFLICT,
    NoHistoryError: status.HTTP_404_NOT_FOUND,
    EntryNotFoundError: status.HTTP_404_NOT_FOUND,
    TemplateNotFoundError: status.HTTP_404_NOT_FOUND,
    ConversionRecordNotFoundError: status.HTTP_404_NOT_FOUND,
    CurrentValueNotFoundError: status.HTTP_404_NOT_FOUND,
    PersistenceError: status.HTTP_500_INTERNAL_SERVER_ERROR,
    StorageError: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ConfigurationError: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ValueError: status.HTTP_400_BAD_REQUEST,
}

# Hint messages per error code
HINT_MAP: dict[str, str] = {
    "VALIDATION_ERROR": "Check the request body against the API schema.",
    "INSUFFICIENT_STOCK": "Receive more stock or reduce the quantity. See details for shortages.",
    "CONCURRENCY_CONFLICT": "Another movement changed the batch. Retry the command.",
    "TEMPLATE_INACTIVE": "Only ACTIVE templates can be produced. Check GET /api/conversions/templates.",
    "ALREADY_EXISTS": "Use POST /api/summaries/rebuild to regenerate an existing month.",
    "NO_HISTORY": "The item has no ledger entries up to that month.",
    "ENTRY_NOT_FOUND": "Check the entry ID and try GET /api/movements to list entries.",
    "TEMPLATE_NOT_FOUND": "Check the template ID and try GET /api/conversions/templates.",
    "CONVERSION_NOT_FOUND": "Check the reference code and try GET /api/conversions.",
    "CURRENT_VALUE_NOT_FOUND": "Run POST /api/current-values/refresh for the item.",
    "PERSISTENCE_ERROR": "A database operation failed. Check server logs.",
    "ValueError": "A parameter value is invalid. Check the request.",
}

# Default hints by HTTP status code
STATUS_HINTS: dict[int, str] = {
    400: "Check the request parameters and body.",
    404: "The requested resource was not found. Verify the ID.",
    409: "The request conflicts with the current stock state.",
    422: "The request could not be processed. Check the input format.",
    500: "An internal error occurred. Check server logs.",
}


def _get_hint(error_code: str, status_code: int) -> str:
    """Resolve hint from error code, falling back to status-based hint."""
    return HINT_MAP.get(error_code) or STATUS_HINTS.get(status_code, "")


def _status_for(exc: Exception) -> int:
    for exc_type, code in EXCEPTION_STATUS_MAP.items():
        if isinstance(exc, exc_type):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def _envelope(
    status_code: int,
    kind: str,
    message: str,
    path: str,
    details: dict[str, Any] | None = None,
) -> JSONResponse:
    body = ErrorBody(
        kind=kind,
        message=message,
        hint=_get_hint(kind, status_code),
        details=details or {},
        path=path,
    )
    return JSONResponse(
        status_code=status_code,
        content=Envelope.fail(body).model_dump(mode="json"),
    )


def error_response(request: Request, exc: Exception) -> JSONResponse:
    """Convert exception to a failed envelope."""
    status_code = _status_for(exc)

    if isinstance(exc, LedgerError):
        error_code = exc.code
        details = exc.details
        message = exc.message
    else:
        error_code = exc.__class__.__name__
        details = {}
        message = str(exc)

    log = logger.error if status_code >= 500 else logger.warning
    log(
        "request_error",
        request_id=getattr(request.state, "request_id", None),
        path=request.url.path,
        error_type=error_code,
        error=message,
        traceback=traceback.format_exc() if status_code >= 500 else None,
    )

    return _envelope(status_code, error_code, message, request.url.path, details)


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """
    Global error handling middleware.

    Catches anything that escaped the registered exception handlers.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        """Handle request with error catching."""
        try:
            return await call_next(request)

        except Exception as e:
            return error_response(request, e)


def setup_exception_handlers(app: FastAPI) -> None:
    """Set up FastAPI exception handlers."""
    from fastapi.exceptions import RequestValidationError
    from starlette.exceptions import HTTPException

    @app.exception_handler(LedgerError)
    async def ledger_exception_handler(request: Request, exc: LedgerError) -> JSONResponse:
        """Handle domain errors."""
        return error_response(request, exc)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        """Handle Pydantic validation errors."""
        errors = []
        for error in exc.errors():
            loc = " -> ".join(str(part) for part in error["loc"])
            errors.append(f"{loc}: {error['msg']}")

        return _envelope(
            422,
            "VALIDATION_ERROR",
            "Request validation failed",
            request.url.path,
            {"errors": errors},
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(
        request: Request,
        exc: HTTPException,
    ) -> JSONResponse:
        """Handle HTTP exceptions with standardized format."""
        error_code = _infer_error_code(exc.status_code)
        return _envelope(
            exc.status_code,
            error_code,
            exc.detail or "An error occurred",
            request.url.path,
        )


def _infer_error_code(status_code: int) -> str:
    """Infer a machine-readable error code from an HTTP status."""
    if status_code == 404:
        return "NOT_FOUND"
    if status_code == 400:
        return "BAD_REQUEST"
    if status_code == 405:
        return "METHOD_NOT_ALLOWED"
    if status_code == 422:
        return "UNPROCESSABLE_ENTITY"
    return "HTTP_ERROR"
