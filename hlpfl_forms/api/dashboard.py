"""Dashboard summary endpoint."""

from typing import Any

from fastapi import APIRouter, Depends

from hlpfl_forms.dependencies import AppServices, get_current_user_id, get_services
from hlpfl_forms.schemas.form import DashboardStatsResponse

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/stats", response_model=DashboardStatsResponse)
async def get_dashboard_stats(
    user_id: Any = Depends(get_current_user_id),
    services: AppServices = Depends(get_services),
) -> DashboardStatsResponse:
    """Form and submission counts for the caller."""
    stats = await services.forms.stats(user_id)
    return DashboardStatsResponse(**stats)
