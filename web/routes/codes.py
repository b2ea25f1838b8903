"""Code lookup and administration routes."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from loguru import logger

from src.constants import OTP
from src.core.exceptions import CodeNotFoundError
from src.services.otp_relay import CodeQuery, CodeRegistry, VerificationCode
from web.dependencies import get_registry
from web.models import (
    ActionResponse,
    CodeDetailResponse,
    CodeListResponse,
    CodeMetadata,
    LatestCodeResponse,
    RegistryStatsModel,
)

router = APIRouter(prefix="/api", tags=["codes"])


def _metadata(record: VerificationCode) -> CodeMetadata:
    return CodeMetadata(**record.to_metadata())


@router.get("/code/latest", response_model=LatestCodeResponse, response_model_exclude_none=True)
async def get_latest_code(
    platform: Optional[str] = Query(default=None, max_length=64),
    max_age: float = Query(
        default=OTP.DEFAULT_MAX_AGE_SECONDS,
        alias="maxAge",
        ge=0,
        le=OTP.MAX_QUERY_AGE_SECONDS,
        allow_inf_nan=False,
    ),
    min_confidence: float = Query(
        default=OTP.DEFAULT_MIN_CONFIDENCE,
        alias="minConfidence",
        ge=0.0,
        le=1.0,
        allow_inf_nan=False,
    ),
    registry: CodeRegistry = Depends(get_registry),
) -> LatestCodeResponse:
    """
    Hand out the most recent matching code; the returned record is marked used.

    A miss answers ``success=False`` with "no matching codes"; pollers retry.
    """
    result = registry.get_latest(
        CodeQuery(platform=platform or None, max_age_seconds=max_age, min_confidence=min_confidence)
    )
    if result.success:
        logger.info(f"Code retrieved by client (platform: {result.platform})")
    return LatestCodeResponse(
        success=result.success,
        code=result.code,
        code_id=result.code_id,
        platform=result.platform,
        extracted_at=result.extracted_at,
        confidence=result.confidence,
        error=result.error,
    )


@router.get("/codes", response_model=CodeListResponse)
async def list_codes(registry: CodeRegistry = Depends(get_registry)) -> CodeListResponse:
    """List record metadata (newest first) with aggregate stats; code values are omitted."""
    return CodeListResponse(
        codes=[_metadata(record) for record in registry.list_all()],
        stats=RegistryStatsModel(**registry.stats().to_dict()),
    )


@router.get("/code/{code_id}", response_model=CodeDetailResponse)
async def get_code(code_id: str, registry: CodeRegistry = Depends(get_registry)) -> CodeDetailResponse:
    record = registry.get_by_id(code_id)
    if record is None:
        raise CodeNotFoundError(code_id)
    return CodeDetailResponse(code=_metadata(record))


@router.post("/code/{code_id}/use", response_model=ActionResponse, response_model_exclude_none=True)
async def mark_code_used(
    code_id: str, registry: CodeRegistry = Depends(get_registry)
) -> ActionResponse:
    """
    Manually consume a code.

    Raises:
        CodeNotFoundError: If the id is unknown (404)
    """
    if not registry.mark_used(code_id):
        raise CodeNotFoundError(code_id)
    return ActionResponse(success=True)


@router.delete("/code/{code_id}", response_model=ActionResponse)
async def delete_code(code_id: str, registry: CodeRegistry = Depends(get_registry)) -> ActionResponse:
    """
    Remove a code from the registry.

    Raises:
        CodeNotFoundError: If the id is unknown (404)
    """
    if not registry.delete(code_id):
        raise CodeNotFoundError(code_id)
    return ActionResponse(success=True, message="Code deleted")
