"""Health check and statistics routes."""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from src.services.otp_relay import CodeExtractor, CodeRegistry
from web.dependencies import get_extractor, get_registry, get_uptime
from web.models import HealthResponse, RegistryStatsModel, StatsResponse

router = APIRouter(tags=["health"])


def get_version() -> str:
    """
    Get application version from centralized source.

    Returns:
        Version string
    """
    from src import __version__

    return __version__


@router.get("/health", response_model=HealthResponse)
async def health_check(
    registry: CodeRegistry = Depends(get_registry),
    extractor: CodeExtractor = Depends(get_extractor),
    uptime: float = Depends(get_uptime),
) -> HealthResponse:
    """
    Health check endpoint for monitoring and container orchestration.

    Returns:
        Service status, uptime and registry counts
    """
    model = extractor.model_client
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(timezone.utc),
        version=get_version(),
        uptime=uptime,
        sweep_running=registry.running,
        primary_extraction=bool(model is not None and model.enabled),
        stats=RegistryStatsModel(**registry.stats().to_dict()),
    )


@router.get("/api/stats", response_model=StatsResponse)
async def get_stats(
    registry: CodeRegistry = Depends(get_registry),
    uptime: float = Depends(get_uptime),
) -> StatsResponse:
    """Registry statistics for dashboards."""
    return StatsResponse(
        stats=RegistryStatsModel(**registry.stats().to_dict()),
        uptime=uptime,
        timestamp=datetime.now(timezone.utc),
    )
