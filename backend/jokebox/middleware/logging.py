"""
Jokebox Backend: Request Logging Middleware
============================================

What:  One access line per HTTP request: method, path, status, duration,
       request ID, and who made it (user id or "anon").
How:   Times the call to the inner app, then reads the session that
       SessionMiddleware decoded into the shared ASGI scope.

Logged: method, path, status, duration, client IP, request ID, user id.
Not logged: request bodies (passwords, joke drafts) and cookies.

Example:
    2024-01-15T12:00:00 [INFO] jokebox.access: POST /jokes/new 303 12.4ms [a1b2c3d4] user=7f3e... from 127.0.0.1
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from jokebox.auth import SESSION_USER_KEY
from jokebox.middleware.request_id import request_id_var

logger = logging.getLogger("jokebox.access")


def level_for_status(status: int) -> int:
    """5xx → ERROR, 4xx → WARNING, everything else → INFO."""
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):

    # Probed every few seconds by load balancers
    SILENT_PATHS = {"/health"}

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in self.SILENT_PATHS:
            return await call_next(request)

        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            # The 500 body is rendered further out; log the line it will get
            self._log(request, 500, started)
            raise
        self._log(request, response.status_code, started)
        return response

    def _log(self, request: Request, status: int, started: float) -> None:
        elapsed_ms = round((time.perf_counter() - started) * 1000, 2)

        # Populated by SessionMiddleware further down the chain
        session = request.scope.get("session") or {}
        actor = session.get(SESSION_USER_KEY) or "anon"

        entry = {
            "request_id": request_id_var.get(""),
            "method": request.method,
            "path": request.url.path,
            "status": status,
            "duration_ms": elapsed_ms,
            "user_id": actor,
            "client_ip": request.client.host if request.client else "unknown",
        }
        logger.log(
            level_for_status(status),
            "%(method)s %(path)s %(status)d %(duration_ms).1fms [%(request_id)s] "
            "user=%(user_id)s from %(client_ip)s",
            entry,
            extra=entry,
        )
