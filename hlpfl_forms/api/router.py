"""HLPFL Forms API Router - aggregates all API routes."""

from fastapi import APIRouter

from hlpfl_forms.api import auth, dashboard, forms, health, submit

# Main API router - all routes will be prefixed with /api
api_router = APIRouter(prefix="/api")

api_router.include_router(health.router)
api_router.include_router(auth.router)
api_router.include_router(auth.csrf_router)
api_router.include_router(forms.router)
api_router.include_router(dashboard.router)
api_router.include_router(submit.router)
