"""Health check endpoint.

Served without authentication; the auth middleware also exempts it from
rate limiting so monitoring never consumes a client's budget.
"""

from datetime import UTC, datetime

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from hlpfl_forms.dependencies import AppServices, get_services

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    timestamp: str
    version: str
    security: str


@router.get("/health", response_model=HealthResponse)
async def health_check(services: AppServices = Depends(get_services)) -> HealthResponse:
    policy = services.policy
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(UTC).isoformat(),
        version=services.settings.app_version,
        security="enhanced" if policy.enforce_csrf else "standard",
    )
