"""Routes package for the OTP relay web application."""

from .codes import router as codes_router
from .health import router as health_router
from .webhook import router as webhook_router

__all__ = [
    "codes_router",
    "health_router",
    "webhook_router",
]
