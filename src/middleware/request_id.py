"""Middleware that assigns a unique request ID to every request."""

import uuid
from contextvars import ContextVar

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

_request_id_var: ContextVar[str] = ContextVar("request_id", default="-")


def get_request_id() -> str:
    """Return the request ID bound to the current context, or ``-``."""
    return _request_id_var.get()


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Generate or propagate a request ID for every HTTP request.

    An incoming ``X-Request-ID`` header is reused, otherwise a UUID-4 is
    generated. The ID lives on ``request.state.request_id`` for error
    envelopes, in a context variable for log records, and is echoed back via
    the ``X-Request-ID`` response header.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id
        token = _request_id_var.set(request_id)
        try:
            response = await call_next(request)
        finally:
            _request_id_var.reset(token)
        response.headers["X-Request-ID"] = request_id
        return response
