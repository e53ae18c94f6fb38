"""
Blog API — Rate Limiting Middleware
=====================================

What:  Per-IP sliding-window limits on selected routes.
Why:   The public submission form is the one unauthenticated write that
       triggers moderator work; it is capped at 10 submissions per minute
       per client IP. Reads and comments are not limited here.
How:   Each `RateLimitRule` matches a method and exact path. Per (rule, IP)
       the middleware keeps the timestamps of accepted requests inside the
       window; a request arriving with the window already full gets 429
       and a Retry-After header.

Algorithm: Sliding Window Log
    1. Drop timestamps older than now - window
    2. If the remaining count >= limit → reject
    3. Otherwise record now and pass the request on

State is in-process. With several uvicorn workers each worker enforces the
limit separately.
"""

import logging
import time
from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from app.config import settings
from app.exceptions import RateLimitExceededError
from app.middleware.logging import client_ip_of
from app.middleware.request_id import request_id_var

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimitRule:
    method: str
    path: str
    limit: int
    window: int
    message: str = "Too many requests, please try again later."

    def matches(self, request: Request) -> bool:
        return request.method == self.method and request.url.path.rstrip("/") == self.path


def default_rules() -> List[RateLimitRule]:
    return [
        RateLimitRule(
            method="POST",
            path="/api/blog/submission",
            limit=settings.submission_rate_limit,
            window=settings.submission_rate_window,
            message="Too many submissions, please try again later.",
        ),
    ]


class RateLimitMiddleware(BaseHTTPMiddleware):
    """In-memory sliding window limiter driven by a list of rules."""

    def __init__(self, app, rules: Optional[Iterable[RateLimitRule]] = None, **kwargs):
        super().__init__(app, **kwargs)
        self.rules = list(rules) if rules is not None else default_rules()
        self._hits: Dict[Tuple[str, str], List[float]] = defaultdict(list)
        self._accepted = 0

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rule = next((r for r in self.rules if r.matches(request)), None)
        if rule is None:
            return await call_next(request)

        client_ip = client_ip_of(request)
        key = (rule.path, client_ip)
        now = time.monotonic()
        window_start = now - rule.window

        hits = [ts for ts in self._hits[key] if ts > window_start]
        self._hits[key] = hits

        if len(hits) >= rule.limit:
            retry_after = max(1, int(hits[0] + rule.window - now) + 1)
            logger.warning(
                "Rate limit exceeded for %s on %s %s: %d requests in %ds",
                client_ip,
                rule.method,
                rule.path,
                len(hits),
                rule.window,
            )
            # Middleware runs outside the app's exception handlers
            exc = RateLimitExceededError(retry_after=retry_after, message=rule.message)
            return JSONResponse(
                status_code=429,
                content={
                    "error": "rate_limit_exceeded",
                    "message": exc.message,
                    "details": {"retry_after": exc.retry_after},
                    "request_id": request_id_var.get(""),
                },
                headers={"Retry-After": str(exc.retry_after)},
            )

        hits.append(now)
        self._accepted += 1
        if self._accepted % 1000 == 0:
            self._forget_idle_clients(window_start)

        return await call_next(request)

    def _forget_idle_clients(self, window_start: float) -> None:
        idle = [key for key, hits in self._hits.items() if not hits or hits[-1] < window_start]
        for key in idle:
            del self._hits[key]
        if idle:
            logger.debug("Dropped rate limit state for %d idle clients", len(idle))
