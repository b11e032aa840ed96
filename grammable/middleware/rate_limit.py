"""
Grammable — Credential Rate Limiting Middleware
=================================================

What:  Per-IP sliding window limit on sign-in and sign-up submissions.
How:   Keeps the timestamps of recent limited requests per IP in memory;
       once an IP has `max_requests` inside `window` seconds, further limited
       requests get 429 with a Retry-After header.
Who:   Applied to every request; only POST /users/sign_in and POST /users
       count toward or are blocked by the limit.

Limitation:
    State is per process. Multi-worker deployments get one window per worker.
"""

import logging
import time
from collections import defaultdict
from typing import Dict, FrozenSet, List, Optional, Tuple

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from grammable.config import settings
from grammable.exceptions import RateLimitExceededError
from grammable.middleware.request_id import request_id_var

logger = logging.getLogger(__name__)

LIMITED_ROUTES: FrozenSet[Tuple[str, str]] = frozenset({
    ("POST", "/users/sign_in"),
    ("POST", "/users"),
})


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    In-memory sliding window rate limiter for credential endpoints.

    Configuration (from settings unless overridden):
        rate_limit_requests: Max limited requests per window (default: 20)
        rate_limit_window: Window duration in seconds (default: 300)
    """

    def __init__(
        self,
        app,
        max_requests: Optional[int] = None,
        window: Optional[int] = None,
        **kwargs,
    ):
        super().__init__(app, **kwargs)
        self.max_requests = max_requests or settings.rate_limit_requests
        self.window = window or settings.rate_limit_window
        self._requests: Dict[str, List[float]] = defaultdict(list)

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path.rstrip("/") or "/"
        if (request.method, path) not in LIMITED_ROUTES:
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"

        now = time.time()
        window_start = now - self.window

        # Drop timestamps that slid out of the window
        self._requests[client_ip] = [
            ts for ts in self._requests[client_ip] if ts > window_start
        ]

        if len(self._requests[client_ip]) >= self.max_requests:
            oldest = self._requests[client_ip][0]
            exc = RateLimitExceededError(retry_after=int(oldest + self.window - now) + 1)

            logger.warning(
                "Rate limit exceeded for IP %s on %s %s: %d requests in %ds window",
                client_ip,
                request.method,
                path,
                len(self._requests[client_ip]),
                self.window,
            )

            return JSONResponse(
                status_code=429,
                content={
                    "error": "rate_limit_exceeded",
                    "message": exc.message,
                    "details": exc.context,
                    "request_id": request_id_var.get(""),
                },
                headers={"Retry-After": str(exc.retry_after)},
            )

        self._requests[client_ip].append(now)

        # Forget idle IPs every so often so the dict does not grow without bound
        if sum(len(v) for v in self._requests.values()) % 1000 == 0:
            self._cleanup_inactive_ips(window_start)

        return await call_next(request)

    def _cleanup_inactive_ips(self, window_start: float) -> None:
        inactive_ips = [
            ip for ip, timestamps in self._requests.items()
            if not timestamps or max(timestamps) < window_start
        ]
        for ip in inactive_ips:
            del self._requests[ip]

        if inactive_ips:
            logger.debug("Cleaned up %d inactive IP entries", len(inactive_ips))
