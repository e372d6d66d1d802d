"""
Error Handlers

Centralized exception handlers for the FastAPI application.
"""

import traceback

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError

from ...config.settings import settings
from ...domain.errors import DomainError
from ...utils.logger import get_logger, get_correlation_id

logger = get_logger(__name__)


def _headers(request: Request) -> dict:
    # The 500 handler runs outside CorrelationIdMiddleware, where the context
    # variable is unset; the middleware also stores the id on the request state.
    correlation_id = getattr(request.state, "correlation_id", None) or get_correlation_id()
    return {"X-Correlation-Id": correlation_id or ""}


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    """
    Handle domain-specific errors (business logic errors).

    These are expected errors that occur during normal operation,
    such as validation failures, not found errors, permission denied, etc.
    """
    logger.warning(
        f"Domain error: {exc.error_code} - {exc.message} ({request.method} {request.url.path})",
        extra={"error_code": exc.error_code}
    )
    return JSONResponse(
        status_code=exc.http_status,
        content=jsonable_encoder(exc.to_dict()),
        headers=_headers(request)
    )


async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """
    Handle request validation errors.

    These occur when request data doesn't match expected schema.
    """
    logger.warning(
        f"Validation error: {exc.errors()}, "
        f"path={request.url.path}, "
        f"method={request.method}"
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": {
                "code": "VALIDATION_ERROR",
                "message": "Request validation failed",
                "details": {"errors": jsonable_encoder(exc.errors())}
            }
        },
        headers=_headers(request)
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handle unexpected errors.

    Logs the full stack trace. Outside production the trace is also
    returned to the client.
    """
    logger.error(f"Unexpected error: {exc}", exc_info=True)

    details = {}
    if not settings.is_production:
        details["trace"] = traceback.format_exception(type(exc), exc, exc.__traceback__)

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": str(exc) or "An unexpected error occurred",
                "details": details
            }
        },
        headers=_headers(request)
    )


def register_error_handlers(app: FastAPI) -> None:
    """
    Register all exception handlers with the FastAPI application.

    Args:
        app: The FastAPI application instance
    """
    app.add_exception_handler(DomainError, domain_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, general_exception_handler)
