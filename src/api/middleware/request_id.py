"""
Request ID and access-log middleware.

- Accepts X-Request-ID from the client or generates one
- Stores it in request.state, the response headers and the logging context
- Logs one access line per request, naming the authenticated user when the
  auth gate attached a principal
"""

import time
import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from src.logging_config import get_logger, request_id_var

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
SLOW_REQUEST_MS = 1000
# Polled by load balancers; logged at DEBUG only
QUIET_PATHS = frozenset({"/health"})


def access_fields(request: Request, status_code: int, duration_ms: float) -> dict:
    """Structured fields for one access log line."""
    fields = {
        "method": request.method,
        "path": request.url.path,
        "status_code": status_code,
        "duration_ms": duration_ms,
    }
    principal = getattr(request.state, "principal", None)
    if principal is not None:
        fields["user_id"] = str(principal.user_id)
    return fields


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Assign a request ID to each request and log its outcome."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id
        token = request_id_var.set(request_id)

        try:
            start = time.perf_counter()
            response = await call_next(request)
            duration_ms = round((time.perf_counter() - start) * 1000, 1)
            response.headers[REQUEST_ID_HEADER] = request_id

            fields = access_fields(request, response.status_code, duration_ms)
            if duration_ms > SLOW_REQUEST_MS:
                logger.warning("Slow request", extra=fields)
            elif request.url.path in QUIET_PATHS:
                logger.debug("%s %s -> %s", request.method, request.url.path, response.status_code, extra=fields)
            else:
                logger.info("%s %s -> %s", request.method, request.url.path, response.status_code, extra=fields)

            return response
        finally:
            request_id_var.reset(token)
