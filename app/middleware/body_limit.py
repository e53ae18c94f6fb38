"""
Blog API — Request Body Size Limit
====================================

What:  Rejects requests whose declared Content-Length is over the limit for
       their kind, with 413, before any of the body is read.
Why:   Post bodies are HTML and can be large, but not unbounded. Multipart
       forms carry one image (2MB) plus a few text fields, so they get a
       much lower ceiling than JSON.

Limits:
    multipart/*   max_upload_size + multipart_form_allowance
    anything else max_json_body_size (50MB)

Requests without a Content-Length (chunked) pass through; the per-file
bounded read in routes/blogs.py still caps what is buffered.
"""

import logging

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from app.config import settings
from app.middleware.request_id import request_id_var

logger = logging.getLogger(__name__)


def body_limit_for(content_type: str) -> int:
    if content_type.startswith("multipart/"):
        return settings.max_upload_size + settings.multipart_form_allowance
    return settings.max_json_body_size


class BodySizeLimitMiddleware(BaseHTTPMiddleware):

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        declared = request.headers.get("content-length")

        if declared and declared.isdigit():
            limit = body_limit_for(request.headers.get("content-type", ""))
            if int(declared) > limit:
                logger.warning(
                    "Rejected %s %s: body of %s bytes exceeds %d",
                    request.method,
                    request.url.path,
                    declared,
                    limit,
                )
                return JSONResponse(
                    status_code=413,
                    content={
                        "error": "payload_too_large",
                        "message": "Request body too large",
                        "details": {"max_size": limit},
                        "request_id": request_id_var.get(""),
                    },
                )

        return await call_next(request)
