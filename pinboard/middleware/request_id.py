"""
Pinboard API: Request ID Middleware
=====================================

What:  Gives every request a short correlation ID and returns it in the
       X-Request-ID response header.
Why:   Every log line of a request and every error body carry the same ID,
       so a client-reported error can be found in the logs.

A client-supplied X-Request-ID is reused as-is.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# Coroutine-local: concurrent requests on the same thread each see their own ID
request_id_var: ContextVar[str] = ContextVar("request_id", default="")


class RequestIDMiddleware(BaseHTTPMiddleware):

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        # 8 chars are plenty for correlation and keep log lines short
        rid = request.headers.get("X-Request-ID", str(uuid.uuid4())[:8])

        request_id_var.set(rid)
        request.state.request_id = rid

        response = await call_next(request)
        response.headers["X-Request-ID"] = rid
        return response
