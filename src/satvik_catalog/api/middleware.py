"""Request middleware: request ids, access logging and response headers."""

import logging
import time
import uuid
from collections.abc import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from satvik_catalog.observability.logging import LogContext

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

# Health checks are polled constantly; their access lines go to DEBUG.
QUIET_PATHS = frozenset({"/health", "/ready"})

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
}


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 1)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Tag each request with an id and log one access line for it.

    The id is bound to the log context for the whole request, so catalog
    loads triggered by the request log it too. A caller-supplied
    ``X-Request-ID`` is reused.
    """

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Response]
    ) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        request.state.request_id = request_id
        path = request.url.path
        start = time.perf_counter()

        with LogContext(request_id=request_id):
            try:
                response = await call_next(request)
            except Exception as e:
                logger.error(
                    "%s %s failed",
                    request.method,
                    path,
                    extra={
                        "method": request.method,
                        "path": path,
                        "error": str(e),
                        "duration_ms": _elapsed_ms(start),
                    },
                )
                raise

            duration_ms = _elapsed_ms(start)
            response.headers[REQUEST_ID_HEADER] = request_id
            response.headers["X-Response-Time-Ms"] = str(duration_ms)
            logger.log(
                logging.DEBUG if path in QUIET_PATHS else logging.INFO,
                "%s %s -> %d",
                request.method,
                path,
                response.status_code,
                extra={
                    "method": request.method,
                    "path": path,
                    "status_code": response.status_code,
                    "duration_ms": duration_ms,
                },
            )
        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add the standard security headers unless a route already set them."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Response]
    ) -> Response:
        response = await call_next(request)
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        return response
