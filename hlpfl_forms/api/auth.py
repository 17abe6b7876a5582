"""Authentication API endpoints.

Register and login are throttled per client by the auth middleware before
they reach these handlers. Tokens are returned in the response body only;
nothing is set in cookies.
"""

import logging

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse

from hlpfl_forms.core.exceptions import AuthError
from hlpfl_forms.core.request_utils import extract_bearer_token
from hlpfl_forms.dependencies import AppServices, get_current_user_id, get_services
from hlpfl_forms.schemas.auth import (
    AuthResponse,
    CsrfTokenResponse,
    LoginRequest,
    MessageResponse,
    RefreshRequest,
    RefreshResponse,
    RegisterRequest,
    UserResponse,
    VerifyResponse,
)
from hlpfl_forms.security import SUBJECT_CLAIM
from hlpfl_forms.security.tokens import strip_reserved
from hlpfl_forms.services.auth import User

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])
csrf_router = APIRouter(tags=["auth"])


async def _issue_credentials(services: AppServices, user: User) -> AuthResponse:
    policy = services.policy
    token = await services.tokens.issue(user.id, user.token_claims(), policy.token_ttl_seconds)
    csrf_token = None
    if policy.enforce_csrf:
        csrf_token = await services.sessions.issue_csrf(user.id, policy.csrf_ttl_seconds)
    return AuthResponse(
        token=token,
        csrf_token=csrf_token,
        user=UserResponse(**user.public()),
    )


@router.post(
    "/register",
    response_model=AuthResponse,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
)
async def register(
    request: RegisterRequest,
    services: AppServices = Depends(get_services),
) -> AuthResponse:
    """Create an account and return a bearer token for it."""
    user = await services.auth.register(
        username=request.username,
        password=request.password,
        email=request.email,
    )
    return await _issue_credentials(services, user)


@router.post("/login", response_model=AuthResponse, response_model_exclude_none=True)
async def login(
    request: LoginRequest,
    services: AppServices = Depends(get_services),
) -> AuthResponse:
    """Authenticate and get a bearer token (and CSRF token when enforced)."""
    user = await services.auth.authenticate(
        username=request.username,
        password=request.password,
    )
    logger.info(f"User logged in: {user.username}")
    return await _issue_credentials(services, user)


@router.post("/logout", response_model=MessageResponse)
async def logout(
    http_request: Request,
    services: AppServices = Depends(get_services),
) -> MessageResponse:
    """Revoke the presented bearer token and drop the caller's CSRF token.

    Succeeds even without a token so clients can always clear local state.
    """
    token = extract_bearer_token(http_request)
    if token:
        payload = await services.tokens.verify(token)
        # A token that fails verification is already unusable
        if payload is not None:
            await services.sessions.revoke_token(token, expires_at=payload.get("exp"))
            await services.sessions.drop_csrf(payload[SUBJECT_CLAIM])
            logger.info(f"User logged out: {payload.get('username')}")
    return MessageResponse(message="Logged out successfully")


@router.post("/refresh", response_model=RefreshResponse)
async def refresh_token(
    request: RefreshRequest,
    services: AppServices = Depends(get_services),
) -> RefreshResponse:
    """Exchange a valid token for a new one. The old token is revoked."""
    payload = await services.tokens.verify(request.token)
    if payload is None:
        raise AuthError("Invalid token", "Invalid or expired refresh token.")

    if not await services.sessions.revoke_token(request.token, expires_at=payload.get("exp")):
        # A concurrent refresh already consumed this token
        raise AuthError("Invalid token", "Invalid or expired refresh token.")

    token = await services.tokens.issue(
        payload[SUBJECT_CLAIM],
        strip_reserved(payload),
        services.policy.token_ttl_seconds,
    )
    return RefreshResponse(token=token)


@router.get("/verify", response_model=VerifyResponse, response_model_exclude_none=True)
async def verify_token(
    http_request: Request,
    services: AppServices = Depends(get_services),
) -> VerifyResponse | JSONResponse:
    """Report whether the presented bearer token is valid."""
    token = extract_bearer_token(http_request)
    payload = await services.tokens.verify(token) if token else None
    user = None
    if payload is not None:
        user = await services.auth.users.get_by_id(payload[SUBJECT_CLAIM])

    if user is None:
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content={
                "valid": False,
                "error": "Invalid or expired token",
                "message": "Please login again.",
            },
        )
    return VerifyResponse(valid=True, user=UserResponse(**user.public()))


@csrf_router.get("/csrf-token", response_model=CsrfTokenResponse)
async def get_csrf_token(
    user_id=Depends(get_current_user_id),
    services: AppServices = Depends(get_services),
) -> CsrfTokenResponse:
    """Mint a fresh CSRF token for the caller, replacing any previous one."""
    csrf_token = await services.sessions.issue_csrf(user_id, services.policy.csrf_ttl_seconds)
    return CsrfTokenResponse(csrf_token=csrf_token)
