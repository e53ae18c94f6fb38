"""
Blog API — Request ID Middleware
==================================

What:  Assigns every request a short correlation id, echoes it back in the
       X-Request-ID response header and makes it available to log records.
Why:   Error bodies carry `request_id`; support can grep the logs for it.
How:   A ContextVar holds the id for the lifetime of the request's task.
       `RequestIDLogFilter` copies it onto every LogRecord so the format
       string in setup_logging() can print `%(request_id)s`.
"""

import logging
import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# Coroutine-local; concurrent requests on one thread each see their own id
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

REQUEST_ID_HEADER = "X-Request-ID"


class RequestIDLogFilter(logging.Filter):
    """Adds `request_id` to every record ("-" outside a request)."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not getattr(record, "request_id", None):
            record.request_id = request_id_var.get("") or "-"
        return True


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Uses the client's X-Request-ID when present (so a frontend can correlate
    its own error reports), otherwise generates an 8-character id.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:8]
        token = request_id_var.set(rid)
        request.state.request_id = rid
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)

        response.headers[REQUEST_ID_HEADER] = rid
        return response
