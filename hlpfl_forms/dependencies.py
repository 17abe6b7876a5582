"""Service wiring and FastAPI dependencies.

Everything stateful hangs off one ``AppServices`` instance stored on
``app.state.services``; nothing lives in module globals.
"""

import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from fastapi import Request

from hlpfl_forms.core.config import Settings
from hlpfl_forms.core.exceptions import AuthError
from hlpfl_forms.security import (
    SUBJECT_CLAIM,
    OpaqueTokenCodec,
    RateLimiter,
    SecurityPolicy,
    SessionStore,
    SignedTokenCodec,
    TokenCodec,
)
from hlpfl_forms.services.auth import AuthService, MemoryUserStore, UserStore
from hlpfl_forms.services.forms import FormStore, MemoryFormStore
from hlpfl_forms.storage import StateStore, create_state_store


@dataclass
class AppServices:
    settings: Settings
    policy: SecurityPolicy
    store: StateStore
    sessions: SessionStore
    tokens: TokenCodec
    rate_limiter: RateLimiter
    auth: AuthService
    forms: FormStore


def build_services(
    settings: Settings,
    policy: SecurityPolicy | None = None,
    store: StateStore | None = None,
    users: UserStore | None = None,
    forms: FormStore | None = None,
    clock: Callable[[], float] = time.time,
) -> AppServices:
    """Assemble the service graph. Collaborators can be swapped for tests."""
    policy = policy if policy is not None else SecurityPolicy.from_settings(settings)
    store = (
        store if store is not None else create_state_store(settings.state_store_url, clock=clock)
    )
    sessions = SessionStore(store, clock=clock)

    tokens: TokenCodec
    if policy.token_scheme == "signed":
        tokens = SignedTokenCodec(
            settings.jwt_secret_key,
            sessions,
            algorithm=settings.jwt_algorithm,
            clock=clock,
        )
    else:
        tokens = OpaqueTokenCodec(store, sessions, clock=clock)

    return AppServices(
        settings=settings,
        policy=policy,
        store=store,
        sessions=sessions,
        tokens=tokens,
        rate_limiter=RateLimiter(store, clock=clock),
        auth=AuthService(users if users is not None else MemoryUserStore()),
        forms=forms if forms is not None else MemoryFormStore(),
    )


def get_services(request: Request) -> AppServices:
    """Dependency to get the application's service container."""
    return request.app.state.services


def get_current_user_id(request: Request) -> Any:
    """Dependency to get the subject the auth middleware resolved."""
    claims = getattr(request.state, "claims", None)
    if not claims or SUBJECT_CLAIM not in claims:
        # Only reachable if a protected route is mounted outside /api
        raise AuthError()
    return claims[SUBJECT_CLAIM]


def get_current_claims(request: Request) -> dict[str, Any]:
    claims = getattr(request.state, "claims", None)
    if not claims:
        raise AuthError()
    return claims
