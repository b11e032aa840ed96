"""
Grammable — Request Logging Middleware
========================================

What:  One access log line for every HTTP request.
How:   Times the downstream call and logs method, path, status, duration,
       request ID, client IP and the signed-in user's ID (when there is one).

Example line:
    POST /grams 302 12.4ms [a1b2c3d4] from 192.168.1.100 user=5f0c...

Level by status:
    5xx → ERROR, 4xx → WARNING, everything else (incl. 302) → INFO

Not logged: request bodies, cookies, passwords.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from grammable.middleware.request_id import request_id_var

logger = logging.getLogger("grammable.access")

QUIET_PATHS = {"/health"}


class RequestLoggingMiddleware(BaseHTTPMiddleware):

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in QUIET_PATHS:
            return await call_next(request)

        start_time = time.perf_counter()
        client_ip = request.client.host if request.client else "unknown"
        method = request.method
        path = request.url.path
        rid = request_id_var.get("")

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start_time) * 1000
        # Set by get_current_user() when the request carried a valid session
        user_id = getattr(request.state, "user_id", None) or "-"

        status = response.status_code
        if status >= 500:
            log_level = logging.ERROR
        elif status >= 400:
            log_level = logging.WARNING
        else:
            log_level = logging.INFO

        logger.log(
            log_level,
            "%s %s %d %.1fms [%s] from %s user=%s",
            method,
            path,
            status,
            duration_ms,
            rid,
            client_ip,
            user_id,
            extra={
                "request_id": rid,
                "method": method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
                "user_id": user_id,
            },
        )

        return response
