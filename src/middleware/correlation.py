"""Request correlation ID middleware for tracking requests across logs."""

import re
import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from src.core.logger import correlation_id_ctx

_REQUEST_ID_RE = re.compile(r"^[A-Za-z0-9._-]{1,64}$")


class CorrelationMiddleware(BaseHTTPMiddleware):
    """Middleware to add correlation ID to all requests and responses."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """
        Process request and add correlation ID.

        Args:
            request: Incoming HTTP request
            call_next: Next middleware or route handler

        Returns:
            HTTP response with correlation ID header
        """
        # Client-supplied ids are only reused when they are log-safe
        request_id = request.headers.get("X-Request-ID", "")
        if not _REQUEST_ID_RE.match(request_id):
            request_id = str(uuid.uuid4())

        token = correlation_id_ctx.set(request_id)
        try:
            response = await call_next(request)
        finally:
            correlation_id_ctx.reset(token)

        response.headers["X-Request-ID"] = request_id
        return response


def get_correlation_id() -> str:
    """
    Get the current request's correlation ID.

    Returns:
        Correlation ID string, or empty string if not set
    """
    return correlation_id_ctx.get() or ""
