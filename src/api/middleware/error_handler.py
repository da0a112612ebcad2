"""Global exception handlers for the FastAPI application.

Every failure leaves the API as an ``ErrorResponse``. Request parameter
errors and undecodable bodies are client errors and map to
``400 Bad Request``; anything unexpected maps to ``500``.
"""

import traceback
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import Response
from loguru import logger
from starlette.exceptions import HTTPException

from src.api.schemas.errors import ErrorResponse, ServiceInfo
from src.api.utils.responses import ORJSONResponse
from src.core.config import Settings, get_settings
from src.core.context import RequestContext, generate_request_id
from src.core.exceptions import (
    ErrorCode,
    RelayError,
    RequestDecodingError,
    Severity,
    ValidationError,
)

# HTTP status -> (error code, severity) for framework-raised HTTPExceptions
HTTP_ERROR_CODES: dict[int, tuple[ErrorCode, Severity]] = {
    status.HTTP_400_BAD_REQUEST: (ErrorCode.VALIDATION_ERROR, Severity.LOW),
    status.HTTP_404_NOT_FOUND: (ErrorCode.NOT_FOUND, Severity.LOW),
}


def get_service_info(settings: Settings) -> ServiceInfo:
    """Create ServiceInfo from application settings.

    Args:
        settings: Application settings

    Returns:
        ServiceInfo: Instance with current service metadata
    """
    return ServiceInfo(
        name=settings.app_name,
        version=settings.app_version,
        environment=settings.environment,
    )


def status_code_for(exc: RelayError) -> int:
    """Map an application exception to its HTTP status code."""
    if isinstance(exc, ValidationError | RequestDecodingError):
        return status.HTTP_400_BAD_REQUEST
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def _render(
    status_code: int,
    error_code: str,
    message: str,
    severity: Severity,
    *,
    details: dict[str, Any] | None = None,
    debug_info: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
) -> Response:
    settings = get_settings()
    error_response = ErrorResponse(
        error_code=error_code,
        message=message,
        details=details,
        correlation_id=RequestContext.get_correlation_id(),
        request_id=generate_request_id(),
        severity=severity.value,
        service_info=get_service_info(settings),
        debug_info=debug_info if settings.environment == "development" else None,
    )
    return ORJSONResponse(
        status_code=status_code,
        content=error_response.model_dump(mode="json"),
        headers=headers,
    )


async def relay_error_handler(request: Request, exc: Exception) -> Response:
    """Render a RelayError, naming the offending parameter in ``details``.

    Raises:
        TypeError: If exc is not a RelayError instance
    """
    if not isinstance(exc, RelayError):
        raise TypeError(f"Expected RelayError, got {type(exc).__name__}")

    log = logger.warning if exc.is_expected else logger.error
    log(
        "Handling {exception_type}: {message}",
        exception_type=type(exc).__name__,
        message=exc.message,
        method=request.method,
        path=str(request.url.path),
        error_code=exc.error_code,
        fingerprint=exc.fingerprint,
    )

    debug_info: dict[str, Any] = {
        "exception_type": type(exc).__name__,
        "stack_trace": exc.stack_trace,
        "error_context": exc.context,
    }
    if exc.cause:
        debug_info["cause"] = {
            "type": type(exc.cause).__name__,
            "message": str(exc.cause),
        }

    return _render(
        status_code_for(exc),
        exc.error_code,
        exc.message,
        exc.severity,
        details=exc.context or None,
        debug_info=debug_info,
    )


async def validation_error_handler(request: Request, exc: Exception) -> Response:
    """Render FastAPI's own validation errors, grouped by field.

    Raises:
        TypeError: If exc is not a RequestValidationError instance
    """
    if not isinstance(exc, RequestValidationError):
        raise TypeError(f"Expected RequestValidationError, got {type(exc).__name__}")

    # ('query', 'limit') -> 'limit'
    field_errors: dict[str, list[str]] = {}
    for error in exc.errors():
        location = error.get("loc", ())
        field_name = ".".join(
            str(part) for part in location[1:] if part != "__root__"
        )
        field_errors.setdefault(field_name or "root", []).append(
            error.get("msg", "Invalid value")
        )

    logger.warning(
        "Request validation failed",
        method=request.method,
        path=str(request.url.path),
        validation_errors=field_errors,
    )
    return _render(
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        ErrorCode.VALIDATION_ERROR.value,
        "Request validation failed",
        Severity.LOW,
        details={"validation_errors": field_errors},
    )


async def http_exception_handler(request: Request, exc: Exception) -> Response:
    """Render routing and framework HTTP errors such as 404 and 405.

    Raises:
        TypeError: If exc is not an HTTPException instance
    """
    if not isinstance(exc, HTTPException):
        raise TypeError(f"Expected HTTPException, got {type(exc).__name__}")

    default_severity = (
        Severity.HIGH
        if exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR
        else Severity.MEDIUM
    )
    error_code, severity = HTTP_ERROR_CODES.get(
        exc.status_code, (ErrorCode.INTERNAL_ERROR, default_severity)
    )

    logger.warning(
        "HTTP {status}: {detail}",
        status=exc.status_code,
        detail=exc.detail,
        method=request.method,
        path=str(request.url.path),
    )
    return _render(
        exc.status_code,
        error_code.value,
        str(exc.detail),
        severity,
        headers=exc.headers,
    )


async def generic_exception_handler(request: Request, exc: Exception) -> Response:
    """Render an unexpected exception; production responses hide its details."""
    logger.opt(exception=exc).error(
        "Unhandled exception: {exception_type}",
        exception_type=type(exc).__name__,
        correlation_id=RequestContext.get_correlation_id(),
        method=request.method,
        path=str(request.url.path),
    )

    if get_settings().environment == "production":
        return _render(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            ErrorCode.INTERNAL_ERROR.value,
            "An internal server error occurred",
            Severity.CRITICAL,
        )

    return _render(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        ErrorCode.INTERNAL_ERROR.value,
        f"Internal server error: {type(exc).__name__}",
        Severity.CRITICAL,
        details={"error": str(exc), "type": type(exc).__name__},
        debug_info={
            "exception_type": type(exc).__name__,
            "stack_trace": traceback.format_tb(exc.__traceback__),
        },
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI application.

    Args:
        app: The FastAPI application instance
    """
    app.add_exception_handler(RelayError, relay_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    logger.info("Exception handlers registered")
