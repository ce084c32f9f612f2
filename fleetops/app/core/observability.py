"""
Request observability.

Every request gets a correlation id (taken from X-Correlation-ID or freshly
generated). It is echoed back on the response, held in a context variable
for the duration of the request, and stamped on every log record by
CorrelationIdFilter so service-level log lines can be tied to the request
that produced them.
"""

import logging
import time
import uuid
from contextvars import ContextVar
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

CORRELATION_HEADER = "X-Correlation-ID"

correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="-")

logger = logging.getLogger("fleetops.requests")


class CorrelationIdFilter(logging.Filter):
    """Adds `correlation_id` to each record passing through the handler."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = correlation_id_var.get()
        return True


def _level_for(status_code: int) -> int:
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400:
        return logging.WARNING
    return logging.INFO


class ObservabilityMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        correlation_id = request.headers.get(CORRELATION_HEADER) or uuid.uuid4().hex
        token = correlation_id_var.set(correlation_id)
        started = time.perf_counter()
        try:
            response = await call_next(request)
            duration_ms = round((time.perf_counter() - started) * 1000, 2)
            response.headers[CORRELATION_HEADER] = correlation_id
            response.headers["X-Process-Time"] = f"{duration_ms:.2f}"
            _log_request(request, response.status_code, duration_ms)
            return response
        finally:
            correlation_id_var.reset(token)


def _log_request(request: Request, status_code: int, duration_ms: float) -> None:
    logger.log(
        _level_for(status_code),
        "%s %s -> %s (%.2f ms)",
        request.method, request.url.path, status_code, duration_ms,
        extra={
            "method": request.method,
            "path": request.url.path,
            "status_code": status_code,
            "duration_ms": duration_ms,
            "ip": request.client.host if request.client else "unknown",
        },
    )
