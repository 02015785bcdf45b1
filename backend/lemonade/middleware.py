"""
Lemonade Backend: Request Context Middleware
=============================================

What:  Gives every request a correlation id and writes one access-log line
       per request.
How:   The id comes from the client's X-Request-ID header or is generated
       (8 hex chars). It is stored in a ContextVar so exception handlers and
       services can log it, echoed back in the X-Request-ID response header,
       and included in the access log.

Access log line (logger "lemonade.access"):
    POST /orders 201 12.4ms [a1b2c3d4] from 127.0.0.1

Level by status: 5xx → ERROR, 4xx → WARNING, otherwise INFO.
/health is not logged. Request bodies are never logged (they carry customer
contact details).
"""

import logging
import time
import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# Coroutine-local: concurrent requests on one event loop each see their own id
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

access_logger = logging.getLogger("lemonade.access")

UNLOGGED_PATHS = {"/health"}


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Assigns X-Request-ID and logs method, path, status and duration."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        start_time = time.perf_counter()

        rid = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:8]
        token = request_id_var.set(rid)
        request.state.request_id = rid

        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)

        response.headers["X-Request-ID"] = rid

        path = request.url.path
        if path not in UNLOGGED_PATHS:
            duration_ms = (time.perf_counter() - start_time) * 1000
            status = response.status_code
            if status >= 500:
                level = logging.ERROR
            elif status >= 400:
                level = logging.WARNING
            else:
                level = logging.INFO
            client_ip = request.client.host if request.client else "unknown"

            access_logger.log(
                level,
                "%s %s %d %.1fms [%s] from %s",
                request.method,
                path,
                status,
                duration_ms,
                rid,
                client_ip,
                extra={
                    "request_id": rid,
                    "method": request.method,
                    "path": path,
                    "status": status,
                    "duration_ms": round(duration_ms, 2),
                    "client_ip": client_ip,
                },
            )

        return response
