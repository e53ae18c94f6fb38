"""
Blog API — Access Log Middleware
==================================

What:  One log line per HTTP request: method, path, status, duration,
       request id and client IP.
Why:   uvicorn's own access log has no request id and no timing.
How:   Logged to the `blog_api.access` logger at a level chosen by status
       (5xx ERROR, 4xx WARNING, otherwise INFO). Structured fields are also
       attached via `extra` for JSON log shippers.

Not logged: request bodies and uploaded files (comment text, emails and
submission links are personal data).
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from app.middleware.request_id import request_id_var

logger = logging.getLogger("blog_api.access")

# Probed every few seconds by orchestrators
QUIET_PATHS = {"/health"}


def client_ip_of(request: Request) -> str:
    return request.client.host if request.client else "unknown"


class RequestLoggingMiddleware(BaseHTTPMiddleware):

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in QUIET_PATHS:
            return await call_next(request)

        start = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start) * 1000

        status = response.status_code
        if status >= 500:
            level = logging.ERROR
        elif status >= 400:
            level = logging.WARNING
        else:
            level = logging.INFO

        rid = request_id_var.get("")
        client_ip = client_ip_of(request)
        logger.log(
            level,
            "%s %s %d %.1fms from %s",
            request.method,
            request.url.path,
            status,
            duration_ms,
            client_ip,
            extra={
                "request_id": rid,
                "method": request.method,
                "path": request.url.path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
            },
        )
        return response
