"""
FastAPI middleware for request tracing.
"""
from __future__ import annotations

import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from .logging import get_logger, reset_trace_id, set_trace_id

logger = get_logger(__name__)

TRACE_HEADER = "X-Trace-ID"


class RequestTracingMiddleware(BaseHTTPMiddleware):
    """
    Middleware that binds a trace ID to each request and logs request/response info.

    An incoming X-Trace-ID header is reused so callers can correlate their own logs.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """
        Process request with tracing and timing.

        Args:
            request: Incoming request
            call_next: Next middleware/handler

        Returns:
            Response with added headers
        """
        trace_id = set_trace_id(request.headers.get(TRACE_HEADER))
        request.state.trace_id = trace_id

        start_time = time.perf_counter()

        logger.info(
            f"Request started: {request.method} {request.url.path}",
            extra={
                'extra_data': {
                    'method': request.method,
                    'path': request.url.path,
                    'query_params': str(request.query_params),
                    'client_ip': request.client.host if request.client else "unknown",
                }
            }
        )

        try:
            response = await call_next(request)
        except Exception as exc:
            process_time = time.perf_counter() - start_time
            logger.error(
                f"Request failed: {request.method} {request.url.path}",
                extra={
                    'extra_data': {
                        'exception_type': type(exc).__name__,
                        'exception_message': str(exc),
                        'process_time_ms': round(process_time * 1000, 2),
                    }
                }
            )
            # Global handler renders the 500 and adds the trace header
            raise

        process_time = time.perf_counter() - start_time
        response.headers[TRACE_HEADER] = trace_id
        response.headers["X-Process-Time"] = str(round(process_time * 1000, 2))

        logger.info(
            f"Request completed: {request.method} {request.url.path}",
            extra={
                'extra_data': {
                    'status_code': response.status_code,
                    'process_time_ms': round(process_time * 1000, 2),
                }
            }
        )
        reset_trace_id()
        return response


def get_request_trace_id(request: Request) -> str:
    """
    Return the trace ID for a request, binding a new one if the middleware did not run.

    Args:
        request: FastAPI request object

    Returns:
        Trace ID for request correlation
    """
    trace_id = getattr(request.state, "trace_id", None)
    if trace_id is None:
        trace_id = set_trace_id()
        request.state.trace_id = trace_id
    return trace_id
