"""FastAPI application for the email OTP relay."""

import time
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Callable, Optional

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from src import __version__
from src.core.config.settings import RelaySettings, get_settings
from src.core.exceptions import RelayError
from src.middleware import CorrelationMiddleware, ErrorHandlerMiddleware
from src.services.otp_relay import CodeExtractor, CodeModelClient, CodeRegistry, GeminiCodeModel
from src.utils.webhook_utils import WebhookVerifier
from web.exception_handlers import (
    http_exception_handler,
    relay_exception_handler,
    validation_exception_handler,
)
from web.rate_limit import configure_limiter
from web.routes import codes_router, health_router, webhook_router


def build_registry(
    settings: RelaySettings, clock: Optional[Callable[[], datetime]] = None
) -> CodeRegistry:
    options = {
        "ttl_minutes": settings.code_ttl_minutes,
        "max_records": settings.max_records,
        "sweep_interval_seconds": settings.sweep_interval_seconds,
    }
    if clock is not None:
        options["clock"] = clock
    return CodeRegistry(**options)


def build_extractor(
    settings: RelaySettings, model_client: Optional[CodeModelClient] = None
) -> CodeExtractor:
    if model_client is None:
        api_key = settings.gemini_api_key.get_secret_value() if settings.gemini_api_key else None
        model_client = GeminiCodeModel(api_key=api_key, model_name=settings.model_name)
    return CodeExtractor(model_client=model_client, timeout_seconds=settings.model_timeout_seconds)


def build_verifier(settings: RelaySettings) -> WebhookVerifier:
    if not settings.signing_key:
        logger.warning("MAILGUN_SIGNING_KEY not set, webhook signatures cannot be verified")
    return WebhookVerifier(settings.signing_key, max_age_seconds=settings.max_webhook_age_seconds)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    FastAPI lifespan context manager for startup and shutdown.

    Handles:
    - Registry, extractor and verifier construction on startup
    - Starting and stopping the expired-code sweep
    """
    settings: RelaySettings = app.state.settings

    logger.info("OTP relay starting up...")
    app.state.registry = build_registry(settings, app.state.clock)
    app.state.extractor = build_extractor(settings, app.state.model_client)
    app.state.verifier = build_verifier(settings)
    app.state.started_at = time.monotonic()
    await app.state.registry.start()

    yield

    logger.info("OTP relay shutting down...")
    try:
        await app.state.registry.stop()
    except Exception as e:
        logger.error(f"Error stopping code sweep: {e}")


def create_app(
    settings: Optional[RelaySettings] = None,
    model_client: Optional[CodeModelClient] = None,
    clock: Optional[Callable[[], datetime]] = None,
) -> FastAPI:
    """
    Factory function to create FastAPI application instance.

    Args:
        settings: Settings to use (default: process settings singleton)
        model_client: Primary extraction model (default: Gemini client from settings)
        clock: Registry clock returning UTC datetimes (tests)

    Returns:
        Configured FastAPI application instance
    """
    settings = settings or get_settings()
    _is_dev = settings.is_development()

    app = FastAPI(
        title="OTP Relay API",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs" if _is_dev else None,
        redoc_url="/redoc" if _is_dev else None,
        openapi_url="/openapi.json" if _is_dev else None,
        description="""
## Email OTP relay

Receives verification emails from Mailgun, extracts the one-time code and
hands it to polling automation clients exactly once.

* `POST /webhook/2fa` - Mailgun webhook (signature verified)
* `GET /api/code/latest` - consume the most recent matching code
* `GET /api/codes` - record metadata (code values are never listed)
    """,
        openapi_tags=[
            {"name": "webhook", "description": "Inbound email notifications"},
            {"name": "codes", "description": "Code lookup and administration"},
            {"name": "health", "description": "Service health and statistics"},
        ],
    )
    app.state.settings = settings
    app.state.model_client = model_client
    app.state.clock = clock

    # Configure middleware (last added runs first)
    # 1. Error handling middleware (catches everything the handlers did not)
    app.add_middleware(ErrorHandlerMiddleware, debug=_is_dev)

    # 2. Correlation ID middleware for request tracking
    app.add_middleware(CorrelationMiddleware)

    # 3. Configure CORS
    allowed_origins = settings.get_cors_origins()
    if not allowed_origins and not _is_dev:
        raise RuntimeError(
            "CRITICAL: No valid CORS origins configured for production. "
            "Set CORS_ALLOWED_ORIGINS in .env (e.g., 'https://yourdomain.com')."
        )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=False,
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["Accept", "Content-Type", "X-Request-ID"],
        expose_headers=["X-Request-ID"],
        max_age=3600,
    )

    # Rate limiter keyed on the real client IP
    app.state.limiter = configure_limiter(settings)
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    app.add_exception_handler(RelayError, relay_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    app.include_router(webhook_router)
    app.include_router(codes_router)
    app.include_router(health_router)

    return app
