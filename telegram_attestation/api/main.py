"""
FastAPI application receiving wallet-pairing events.

The pairing flow (wallet, device hub) calls these endpoints; each one drives
a device-side operation of the attestation strategy.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import peewee
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response

from telegram_attestation.api.exceptions import APIException, ErrorCode
from telegram_attestation.api.models import ErrorDetail, error_response, success_response
from telegram_attestation.api.routers import pairing
from telegram_attestation.core.logging_utils import generate_correlation_id, get_logger
from telegram_attestation.core.wallet_address import ObyteAddressValidator
from telegram_attestation.domain.exceptions.domain_exceptions import (
    DomainException,
    ResourceNotFoundError,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from telegram_attestation.adapters.telegram.attestation_strategy import (
        TelegramAttestationStrategy,
    )
    from telegram_attestation.protocols import Validator

logger = get_logger(__name__)


async def correlation_id_middleware(request: Request, call_next: Callable):
    """Tag each request with ``X-Correlation-ID`` (generated when absent)."""
    correlation_id = request.headers.get("X-Correlation-ID") or f"api-{generate_correlation_id()}"
    request.state.correlation_id = correlation_id
    response = await call_next(request)
    response.headers["X-Correlation-ID"] = correlation_id
    return response


def _error(request: Request, status_code: int, detail: ErrorDetail) -> JSONResponse:
    correlation_id = getattr(request.state, "correlation_id", None)
    return JSONResponse(
        status_code=status_code, content=error_response(detail, correlation_id=correlation_id)
    )


async def api_exception_handler(request: Request, exc: Exception) -> Response:
    if not isinstance(exc, APIException):
        raise exc
    logger.error(
        f"API error: {exc.error_code.value} - {exc.message}",
        extra={
            "correlation_id": getattr(request.state, "correlation_id", None),
            "error_code": exc.error_code.value,
            "status_code": exc.status_code,
            "path": request.url.path,
        },
    )
    detail = ErrorDetail(
        code=exc.error_code.value,
        message=exc.message,
        retryable=exc.retryable,
        details=exc.details or None,
    )
    return _error(request, exc.status_code, detail)


async def validation_exception_handler(request: Request, exc: Exception) -> Response:
    if not isinstance(exc, RequestValidationError):
        raise exc
    fields = [
        {
            "field": ".".join(str(loc) for loc in error["loc"]),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in exc.errors()
    ]
    logger.warning(
        "Request validation failed",
        extra={"errors": fields, "path": request.url.path},
    )
    detail = ErrorDetail(
        code=ErrorCode.VALIDATION_ERROR.value,
        message="Request validation failed",
        details={"fields": fields},
    )
    return _error(request, status.HTTP_422_UNPROCESSABLE_ENTITY, detail)


async def domain_exception_handler(request: Request, exc: Exception) -> Response:
    if not isinstance(exc, DomainException):
        raise exc
    if isinstance(exc, ResourceNotFoundError):
        status_code, code = status.HTTP_404_NOT_FOUND, ErrorCode.NOT_FOUND
    else:
        status_code, code = status.HTTP_409_CONFLICT, ErrorCode.CONFLICT
    logger.warning(
        "domain_error",
        extra={"error": exc.message, "error_type": type(exc).__name__, "path": request.url.path},
    )
    detail = ErrorDetail(code=code.value, message=exc.message, details=exc.details or None)
    return _error(request, status_code, detail)


async def database_exception_handler(request: Request, exc: Exception) -> Response:
    logger.error(
        f"Database error: {exc}",
        exc_info=True,
        extra={"path": request.url.path},
    )
    detail = ErrorDetail(
        code=ErrorCode.DATABASE_ERROR.value,
        message="Database temporarily unavailable",
        retryable=True,
    )
    return _error(request, status.HTTP_503_SERVICE_UNAVAILABLE, detail)


async def global_exception_handler(request: Request, exc: Exception) -> Response:
    logger.exception(
        "unhandled_api_error",
        extra={"path": request.url.path, "error_type": type(exc).__name__},
    )
    detail = ErrorDetail(
        code=ErrorCode.INTERNAL_ERROR.value,
        message="An unexpected error occurred",
        retryable=True,
    )
    return _error(request, status.HTTP_500_INTERNAL_SERVER_ERROR, detail)


def create_app(
    strategy: TelegramAttestationStrategy,
    sessions: Any,
    *,
    validator: Validator | None = None,
    pairing_secret: str = "",
) -> FastAPI:
    """Build the pairing API around an already wired strategy and session store."""
    app = FastAPI(
        title="Telegram Attestation Pairing API",
        version="1.0.0",
        docs_url=None,
        redoc_url=None,
    )
    app.state.strategy = strategy
    app.state.sessions = sessions
    app.state.validator = validator or ObyteAddressValidator()
    app.state.pairing_secret = pairing_secret

    app.middleware("http")(correlation_id_middleware)

    app.add_exception_handler(APIException, api_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(DomainException, domain_exception_handler)
    app.add_exception_handler(peewee.DatabaseError, database_exception_handler)
    app.add_exception_handler(TimeoutError, database_exception_handler)
    app.add_exception_handler(Exception, global_exception_handler)

    app.include_router(pairing.router, prefix="/pairing", tags=["Pairing"])

    @app.get("/health")
    async def health_check(request: Request):
        return success_response(
            {"status": "healthy", "version": app.version},
            correlation_id=getattr(request.state, "correlation_id", None),
        )

    return app
