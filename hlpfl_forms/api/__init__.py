"""HLPFL Forms API routes."""

from hlpfl_forms.api.router import api_router

__all__ = ["api_router"]
