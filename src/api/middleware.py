"""Request ID middleware for request tracing."""

import contextvars
import re
import time
import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

request_id_var: contextvars.ContextVar[str] = contextvars.ContextVar("request_id", default="")

_SESSION_PATH = re.compile(r"/sessions/([0-9a-f]+)")


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Assigns a request ID and binds it (plus any session ID) to log context."""

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))
        request_id_var.set(request_id)

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)
        match = _SESSION_PATH.search(request.url.path)
        if match:
            structlog.contextvars.bind_contextvars(session_id=match.group(1))

        logger = structlog.get_logger()
        start_time = time.perf_counter()
        response = await call_next(request)
        duration_ms = round((time.perf_counter() - start_time) * 1000, 2)

        await logger.ainfo(
            "request_completed",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=duration_ms,
        )

        response.headers["X-Request-ID"] = request_id
        return response
