"""
Pizza Gateway — Request ID Middleware
======================================

What:  Tags every request with a short correlation ID, echoes it in the
       X-Request-ID response header, and makes it available to log records.
How:   The ID lives in a ContextVar; RequestIdLogFilter copies it onto each
       LogRecord as `request_id` so the log format can print it.
"""

import logging
import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

request_id_var: ContextVar[str] = ContextVar("request_id", default="")


class RequestIdLogFilter(logging.Filter):
    """Injects the current request ID ("-" outside a request) into log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not getattr(record, "request_id", None):
            record.request_id = request_id_var.get("") or "-"
        return True


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Behavior:
        1. Reuse the caller's X-Request-ID when present, else a fresh 8-char ID
        2. Store it in the ContextVar and on request.state
        3. Return it in the X-Request-ID response header
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:8]
        token = request_id_var.set(rid)
        request.state.request_id = rid
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)
        response.headers["X-Request-ID"] = rid
        return response
