"""Pydantic models for the relay's HTTP API."""

from .codes import (
    ActionResponse,
    CamelModel,
    CodeDetailResponse,
    CodeListResponse,
    CodeMetadata,
    HealthResponse,
    LatestCodeResponse,
    RegistryStatsModel,
    StatsResponse,
    WebhookProbeResponse,
    WebhookResponse,
)

__all__ = [
    "CamelModel",
    # Ingestion
    "WebhookResponse",
    "WebhookProbeResponse",
    # Lookup and administration
    "LatestCodeResponse",
    "CodeMetadata",
    "CodeListResponse",
    "CodeDetailResponse",
    "ActionResponse",
    # Monitoring
    "RegistryStatsModel",
    "StatsResponse",
    "HealthResponse",
]
