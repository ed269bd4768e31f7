"""
Request context middleware.

Gives every request a correlation id (taken from ``X-Request-ID`` or
``X-Correlation-ID``, generated otherwise), binds it to structlog
contextvars for the duration of the request, echoes it back in the
response, and logs one line per request. When tracing is enabled the
request runs inside a server span.
"""

import time
import uuid

import structlog
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from pulsewatch.observability.tracing import get_tracer, is_tracing_enabled

logger = structlog.get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
_INBOUND_HEADERS = (REQUEST_ID_HEADER, "X-Correlation-ID")


def resolve_request_id(request: Request) -> str:
    for header in _INBOUND_HEADERS:
        value = request.headers.get(header)
        if value:
            return value
    return str(uuid.uuid4())


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Correlation id, access log and optional tracing span per request."""

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = resolve_request_id(request)
        structlog.contextvars.bind_contextvars(request_id=request_id)
        started = time.perf_counter()

        try:
            if is_tracing_enabled():
                response = await self._call_traced(request, call_next, request_id)
            else:
                response = await call_next(request)

            response.headers[REQUEST_ID_HEADER] = request_id
            logger.info(
                "HTTP request",
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
            )
            return response
        finally:
            structlog.contextvars.clear_contextvars()

    async def _call_traced(self, request: Request, call_next, request_id: str) -> Response:
        tracer = get_tracer("pulsewatch.api")
        with tracer.start_as_current_span(
            f"{request.method} {request.url.path}",
            attributes={
                "http.method": request.method,
                "http.route": request.url.path,
                "http.request_id": request_id,
            },
        ) as span:
            response = await call_next(request)
            span.set_attribute("http.status_code", response.status_code)
            return response
