"""
Archinnection Backend: Rate Limiting Middleware
=================================================

What:  Per-IP sliding window limit on mutating API calls.
How:   Keeps the timestamps of each IP's recent POST/PUT/PATCH/DELETE
       requests under /api; once the window holds RATE_LIMIT_REQUESTS
       entries, further writes get a 429 with Retry-After.
Who:   Sign-up, sign-in, posting, liking, commenting, uploads, job posts.

Algorithm: Sliding Window Log
    1. Drop timestamps older than the window
    2. If remaining count >= limit, reject with 429
    3. Otherwise record now and continue

    In-memory, so limits are per process. Multi-worker deployments need a
    shared store (e.g. Redis INCR with TTL) in its place.
"""

import logging
import time
from collections import defaultdict
from typing import Dict, List

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from archinnection.config import settings
from archinnection.exceptions import RateLimitExceededError
from archinnection.middleware.request_id import error_body

logger = logging.getLogger(__name__)

LIMITED_METHODS = {"POST", "PUT", "PATCH", "DELETE"}


class RateLimitMiddleware(BaseHTTPMiddleware):

    def __init__(self, app, **kwargs):
        super().__init__(app, **kwargs)
        self._requests: Dict[str, List[float]] = defaultdict(list)
        self._recorded = 0

    @staticmethod
    def is_limited(request: Request) -> bool:
        return request.method in LIMITED_METHODS and request.url.path.startswith("/api/")

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if not self.is_limited(request):
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        now = time.time()
        window_start = now - settings.rate_limit_window

        recent = [ts for ts in self._requests[client_ip] if ts > window_start]
        self._requests[client_ip] = recent

        if len(recent) >= settings.rate_limit_requests:
            retry_after = int(recent[0] + settings.rate_limit_window - now) + 1
            logger.warning(
                "Rate limit exceeded for IP %s: %d writes in %ds window",
                client_ip,
                len(recent),
                settings.rate_limit_window,
            )
            exc = RateLimitExceededError(retry_after=retry_after)
            return JSONResponse(
                status_code=exc.status_code,
                content=error_body(exc),
                headers={"Retry-After": str(retry_after)},
            )

        recent.append(now)
        self._recorded += 1
        if self._recorded % 1000 == 0:
            self._cleanup_inactive_ips(window_start)

        return await call_next(request)

    def _cleanup_inactive_ips(self, window_start: float) -> None:
        """Forget IPs with no writes inside the current window."""
        inactive = [
            ip for ip, timestamps in self._requests.items()
            if not timestamps or timestamps[-1] < window_start
        ]
        for ip in inactive:
            del self._requests[ip]
        if inactive:
            logger.debug("Cleaned up %d inactive IP entries", len(inactive))
