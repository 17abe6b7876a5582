"""Pydantic schemas for authentication API."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    """Base model: snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RegisterRequest(ApiModel):
    """Request for account registration."""

    username: str = Field(..., max_length=50)
    password: str = Field(..., max_length=128)
    email: str = Field(..., max_length=254)


class LoginRequest(ApiModel):
    """Request for login."""

    username: str
    password: str


class RefreshRequest(ApiModel):
    """Request for token refresh."""

    token: str = Field(..., min_length=1)


class UserResponse(ApiModel):
    """Response with user information."""

    id: int | str
    username: str
    email: str
    role: str


class AuthResponse(ApiModel):
    """Response after registration or login.

    ``csrf_token`` is only present when the security policy enforces CSRF.
    """

    success: bool = True
    token: str
    csrf_token: str | None = None
    user: UserResponse


class RefreshResponse(ApiModel):
    success: bool = True
    token: str


class VerifyResponse(ApiModel):
    valid: bool
    user: UserResponse | None = None


class CsrfTokenResponse(ApiModel):
    csrf_token: str


class MessageResponse(ApiModel):
    """Generic message response."""

    success: bool = True
    message: str
