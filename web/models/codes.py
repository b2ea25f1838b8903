"""Response models for the relay's HTTP API (camelCase JSON keys)."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serialised with camelCase aliases."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class WebhookResponse(CamelModel):
    """Ingestion result: the stored code's id, or why nothing was stored."""

    success: bool
    code_id: Optional[str] = None
    platform: Optional[str] = None
    confidence: Optional[float] = None
    reasoning: Optional[str] = None
    error: Optional[str] = None


class WebhookProbeResponse(CamelModel):
    message: str
    method: str
    timestamp: datetime
    server: str


class LatestCodeResponse(CamelModel):
    """Result of a consuming lookup; ``success=False`` means retry later."""

    success: bool
    code: Optional[str] = None
    code_id: Optional[str] = None
    platform: Optional[str] = None
    extracted_at: Optional[datetime] = None
    confidence: Optional[float] = None
    error: Optional[str] = None


class CodeMetadata(CamelModel):
    """Listing view of a stored record; never carries the code value."""

    id: str
    platform: str
    sender: str
    subject: str
    extracted_at: datetime
    expires_at: datetime
    used: bool
    confidence: float


class RegistryStatsModel(CamelModel):
    total: int
    active: int
    used: int
    expired: int
    platforms: List[str]
    average_confidence: float


class CodeListResponse(CamelModel):
    success: bool = True
    codes: List[CodeMetadata]
    stats: RegistryStatsModel


class CodeDetailResponse(CamelModel):
    success: bool = True
    code: CodeMetadata


class ActionResponse(CamelModel):
    success: bool
    message: Optional[str] = None


class StatsResponse(CamelModel):
    success: bool = True
    stats: RegistryStatsModel
    uptime: float
    timestamp: datetime


class HealthResponse(CamelModel):
    status: str
    timestamp: datetime
    version: str
    uptime: float
    sweep_running: bool
    primary_extraction: bool
    stats: RegistryStatsModel
