"""
FastAPI middleware for request correlation IDs.

Each request gets a correlation ID (taken from X-Correlation-ID when the
caller sends one) that is attached to every log entry emitted while the
request is handled and echoed back in the response headers.
"""
import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from alt_text.utils.logging import (
    generate_correlation_id,
    get_logger,
    set_correlation_id,
)
from alt_text.utils.metrics import (
    http_request_duration_seconds,
    http_request_size_bytes,
    http_requests_total,
    http_response_size_bytes,
)

logger = get_logger(__name__)


def endpoint_label(request: Request) -> str:
    """Route template (e.g. /api/{collection}/generate-alt) for metric labels."""
    route = request.scope.get("route")
    return getattr(route, "path", None) or request.url.path


class CorrelationIDMiddleware(BaseHTTPMiddleware):
    """
    Middleware to add correlation IDs to requests.

    1. Sets the ID in the logging context
    2. Adds it to response headers (X-Correlation-ID)
    3. Logs and records metrics for request start, completion and errors
    """

    async def dispatch(self, request: Request, call_next):
        correlation_id = request.headers.get("X-Correlation-ID") or generate_correlation_id()
        set_correlation_id(correlation_id)

        start_time = time.time()
        request_body_size = 0
        if request.method in ("POST", "PUT", "PATCH"):
            try:
                request_body_size = int(request.headers.get("content-length") or 0)
            except ValueError:
                request_body_size = 0

        logger.info(
            "request_started",
            method=request.method,
            path=request.url.path,
            client_host=request.client.host if request.client else None,
        )

        try:
            response = await call_next(request)
        except Exception as e:
            duration = time.time() - start_time
            endpoint = endpoint_label(request)
            http_requests_total.labels(method=request.method, endpoint=endpoint, status_code=500).inc()
            http_request_duration_seconds.labels(method=request.method, endpoint=endpoint).observe(duration)
            logger.error(
                "request_error",
                method=request.method,
                path=request.url.path,
                error_type=type(e).__name__,
                error_message=str(e),
                duration_seconds=round(duration, 3),
                exc_info=True,
            )
            raise

        duration = time.time() - start_time
        endpoint = endpoint_label(request)
        http_requests_total.labels(
            method=request.method, endpoint=endpoint, status_code=response.status_code
        ).inc()
        http_request_duration_seconds.labels(method=request.method, endpoint=endpoint).observe(duration)
        http_request_size_bytes.labels(method=request.method, endpoint=endpoint).observe(request_body_size)
        http_response_size_bytes.labels(method=request.method, endpoint=endpoint).observe(
            int(response.headers.get("content-length", 0))
        )

        response.headers["X-Correlation-ID"] = correlation_id
        logger.info(
            "request_completed",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_seconds=round(duration, 3),
        )
        return response
