"""
Global exception handlers.

Translates the quote router's exception hierarchy into the JSON response
envelope, keeping caller errors, missing liquidity and internal faults
distinguishable for API consumers.
"""

from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .exceptions import SplenexException, create_safe_error_dict
from .middleware import TRACE_HEADER, get_request_trace_id

logger = logging.getLogger(__name__)

SAFE_INTERNAL_MESSAGE = (
    "An unexpected error occurred. Please contact support with the traceId."
)


def get_client_info(request: Request) -> Dict[str, str]:
    """
    Extract client information from request.

    Args:
        request: FastAPI request object

    Returns:
        Dictionary with client information
    """
    client_ip = "unknown"
    forwarded_for = request.headers.get('X-Forwarded-For')
    if forwarded_for:
        client_ip = forwarded_for.split(',')[0].strip()
    elif request.headers.get('X-Real-IP'):
        client_ip = request.headers['X-Real-IP'].strip()
    elif request.client:
        client_ip = request.client.host

    return {
        "ip": client_ip,
        "user_agent": request.headers.get("User-Agent", "unknown"),
        "origin": request.headers.get("Origin", "unknown"),
    }


def error_envelope(
    status_code: int,
    message: str,
    error_code: str,
    trace_id: str,
    **extra: Any,
) -> JSONResponse:
    """Build the failure envelope shared by every error response."""
    content: Dict[str, Any] = {
        "success": False,
        "error": message,
        "errorCode": error_code,
        "traceId": trace_id,
    }
    content.update(extra)
    return JSONResponse(
        status_code=status_code,
        content=content,
        headers={TRACE_HEADER: trace_id},
    )


async def splenex_exception_handler(request: Request, exc: SplenexException) -> JSONResponse:
    """
    Handle domain exceptions raised by the aggregation core or the API layer.

    Args:
        request: FastAPI request object
        exc: Domain exception

    Returns:
        JSONResponse carrying the exception's status code
    """
    trace_id = get_request_trace_id(request)
    error_details = create_safe_error_dict(exc, trace_id)
    error_details.update({
        "path": request.url.path,
        "method": request.method,
        "status_code": exc.status_code,
    })

    if exc.status_code >= 500:
        logger.error(
            f"{type(exc).__name__}: {exc.message}",
            extra={'extra_data': error_details},
            exc_info=exc,
        )
        return error_envelope(exc.status_code, SAFE_INTERNAL_MESSAGE, exc.error_code, trace_id)

    logger.info(
        f"{type(exc).__name__}: {exc.message}",
        extra={'extra_data': error_details},
    )
    return error_envelope(exc.status_code, exc.message, exc.error_code, trace_id)


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """
    Turn request validation failures into caller errors (400).

    Args:
        request: FastAPI request object
        exc: Validation exception

    Returns:
        JSONResponse with validation error details
    """
    trace_id = get_request_trace_id(request)
    validation_errors = [
        {
            "field": ".".join(str(part) for part in error.get("loc", ()) if part != "body"),
            "message": error.get("msg", "invalid value"),
        }
        for error in exc.errors()
    ]

    logger.info(
        "Request validation failed",
        extra={'extra_data': {
            "path": request.url.path,
            "method": request.method,
            "validation_errors": validation_errors,
            "client_info": get_client_info(request),
        }},
    )

    first = validation_errors[0] if validation_errors else None
    message = (
        f"Invalid field {first['field']}: {first['message']}"
        if first and first["field"]
        else "Request validation failed"
    )
    return error_envelope(
        400, message, "INVALID_REQUEST", trace_id, validationErrors=validation_errors
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """
    Handle HTTP exceptions such as unknown routes and disallowed methods.

    Args:
        request: FastAPI request object
        exc: HTTP exception that was raised

    Returns:
        JSONResponse with error details
    """
    trace_id = get_request_trace_id(request)

    if exc.status_code >= 500:
        logger.error(
            f"HTTP {exc.status_code}: {exc.detail}",
            extra={'extra_data': {"path": request.url.path, "method": request.method}},
        )
        message = SAFE_INTERNAL_MESSAGE
    else:
        logger.info(
            f"HTTP {exc.status_code}: {exc.detail}",
            extra={'extra_data': {"path": request.url.path, "method": request.method}},
        )
        message = str(exc.detail)

    response = error_envelope(exc.status_code, message, f"HTTP_{exc.status_code}", trace_id)
    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handle uncaught exceptions with logging and a user-safe response.

    Args:
        request: FastAPI request object
        exc: Exception that was raised

    Returns:
        JSONResponse with user-safe error message
    """
    trace_id = get_request_trace_id(request)

    logger.error(
        f"Unhandled exception: {type(exc).__name__}: {exc}",
        extra={'extra_data': {
            "path": request.url.path,
            "method": request.method,
            "query_params": str(request.query_params),
            "client_info": get_client_info(request),
            "error_type": type(exc).__name__,
        }},
        exc_info=exc,
    )

    return error_envelope(500, SAFE_INTERNAL_MESSAGE, "INTERNAL_ERROR", trace_id)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register all exception handlers with the FastAPI app.

    Args:
        app: FastAPI application instance
    """
    app.add_exception_handler(SplenexException, splenex_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, global_exception_handler)

    logger.info("Exception handlers registered successfully")


__all__ = [
    "error_envelope",
    "get_client_info",
    "global_exception_handler",
    "http_exception_handler",
    "register_exception_handlers",
    "splenex_exception_handler",
    "validation_exception_handler",
]
