"""Middleware module for the HLPFL Forms API."""

from hlpfl_forms.middleware.auth import AuthMiddleware, RouteClass, classify_route
from hlpfl_forms.middleware.security_headers import cors_headers, response_headers

__all__ = [
    "AuthMiddleware",
    "RouteClass",
    "classify_route",
    "cors_headers",
    "response_headers",
]
