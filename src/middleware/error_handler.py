"""Global error handling middleware for the OTP relay."""

import traceback
from typing import Callable, cast

from fastapi import Request, Response, status
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from src.utils.log_sanitizer import sanitize_log_value

REDACTED_DETAIL = "An unexpected error occurred. Please try again later."


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """
    Last-resort handler for exceptions no route or exception handler converted.

    Relay errors are rendered by the registered exception handlers; anything
    reaching this middleware (for example an unparsable request body) becomes
    a 500. The exception text is only included when ``debug`` is set
    (development and testing); otherwise the detail is redacted.
    """

    def __init__(self, app: ASGIApp, debug: bool = False):
        super().__init__(app)
        self.debug = debug

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """
        Process request and handle any exceptions.

        Args:
            request: FastAPI request
            call_next: Next middleware/handler in chain

        Returns:
            Response object
        """
        try:
            response = await call_next(request)
            return cast(Response, response)
        except Exception as e:
            return self._handle_unexpected_error(e, request)

    def _handle_unexpected_error(self, error: Exception, request: Request) -> JSONResponse:
        """Handle unexpected errors with RFC 7807 format."""
        logger.error(
            f"Unexpected error on {request.method} {request.url.path}: "
            f"{error.__class__.__name__}: {sanitize_log_value(str(error), max_length=200)}"
        )
        logger.debug(traceback.format_exc())

        detail = str(error) if self.debug else REDACTED_DETAIL
        content = {
            "type": "urn:otprelay:error:internal-server",
            "title": "Internal Server Error",
            "status": 500,
            "detail": detail,
            "instance": request.url.path,
            "success": False,
            "error": "Internal server error",
        }

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=content,
            media_type="application/problem+json",
        )
