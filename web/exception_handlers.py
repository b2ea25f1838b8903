"""RFC 7807 Problem Details exception handlers for FastAPI."""

from typing import Any, Dict

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.exceptions import HTTPException

from src.core.exceptions import RelayError

PROBLEM_JSON = "application/problem+json"

_ERROR_TYPES = {
    400: "urn:otprelay:error:bad-request",
    401: "urn:otprelay:error:unauthorized",
    404: "urn:otprelay:error:not-found",
    405: "urn:otprelay:error:method-not-allowed",
    422: "urn:otprelay:error:validation",
    429: "urn:otprelay:error:rate-limit",
    500: "urn:otprelay:error:internal-server",
    503: "urn:otprelay:error:service-unavailable",
}

_ERROR_TITLES = {
    400: "Bad Request",
    401: "Unauthorized",
    404: "Not Found",
    405: "Method Not Allowed",
    422: "Validation Error",
    429: "Too Many Requests",
    500: "Internal Server Error",
    503: "Service Unavailable",
}


def _problem(status_code: int, detail: str, instance: str, **extra: Any) -> Dict[str, Any]:
    content = {
        "type": _ERROR_TYPES.get(status_code, f"urn:otprelay:error:http-{status_code}"),
        "title": _ERROR_TITLES.get(status_code, "Error"),
        "status": status_code,
        "detail": detail,
        "instance": instance,
    }
    content.update(extra)
    return content


async def relay_exception_handler(request: Request, exc: RelayError) -> JSONResponse:
    """Render relay errors as RFC 7807 documents that also carry ``success``/``error``."""
    if exc.http_status >= 500:
        logger.error(f"{exc.__class__.__name__} on {request.url.path}: {exc.message}")
    else:
        logger.warning(f"{exc.__class__.__name__} on {request.url.path}: {exc.message}")

    content = {
        "type": exc.error_type_uri,
        "title": exc.title,
        "status": exc.http_status,
        "detail": exc.message,
        "instance": request.url.path,
        "recoverable": exc.recoverable,
        "success": False,
        "error": exc.message,
    }
    if exc.details:
        content["details"] = exc.details

    return JSONResponse(status_code=exc.http_status, content=content, media_type=PROBLEM_JSON)


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Convert FastAPI HTTPException to RFC 7807 Problem Details format."""
    detail = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content=_problem(exc.status_code, detail, request.url.path, success=False, error=detail),
        headers=getattr(exc, "headers", None) or {},
        media_type=PROBLEM_JSON,
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Convert Pydantic validation errors to RFC 7807 format."""
    errors = {}
    for error in exc.errors():
        field = ".".join(str(loc) for loc in error["loc"] if loc != "body")
        errors[field] = error["msg"]

    return JSONResponse(
        status_code=422,
        content=_problem(
            422,
            "Request validation failed",
            request.url.path,
            errors=errors,
            success=False,
            error="Request validation failed",
        ),
        media_type=PROBLEM_JSON,
    )
