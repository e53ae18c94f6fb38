"""
Blog API — Middleware Package
===============================

What:  Cross-cutting concerns applied before requests reach the routers.

Middleware Chain (outermost first):
    Request → [Request ID] → [Access Log] → [Rate Limit] → [Body Limit]
            → [GZip] → [CORS] → Route Handler

    Request ID is outermost so every later log line, including the access
    log and 429 responses, carries the id.
"""

from app.middleware.body_limit import BodySizeLimitMiddleware
from app.middleware.logging import RequestLoggingMiddleware
from app.middleware.rate_limit import RateLimitMiddleware, RateLimitRule
from app.middleware.request_id import RequestIDLogFilter, RequestIDMiddleware, request_id_var

__all__ = [
    "BodySizeLimitMiddleware",
    "RateLimitMiddleware",
    "RateLimitRule",
    "RequestIDLogFilter",
    "RequestIDMiddleware",
    "RequestLoggingMiddleware",
    "request_id_var",
]
