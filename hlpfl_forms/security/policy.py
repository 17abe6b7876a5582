"""Security policy: one config struct selecting how the auth pipeline behaves."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Literal

from hlpfl_forms.security.rate_limit import RateLimitRule

if TYPE_CHECKING:
    from hlpfl_forms.core.config import Settings

TokenScheme = Literal["opaque", "signed"]

DEFAULT_WINDOW_MS = 60_000


@dataclass(frozen=True)
class RateLimits:
    """Thresholds per call site. ``None`` disables that limit."""

    general: RateLimitRule | None = RateLimitRule(100, DEFAULT_WINDOW_MS)
    auth: RateLimitRule | None = RateLimitRule(5, DEFAULT_WINDOW_MS)
    form_submission: RateLimitRule | None = RateLimitRule(10, DEFAULT_WINDOW_MS)


@dataclass(frozen=True)
class SecurityPolicy:
    token_scheme: TokenScheme = "signed"
    enforce_csrf: bool = True
    rate_limits: RateLimits = field(default_factory=RateLimits)
    token_ttl_seconds: int = 24 * 60 * 60
    csrf_ttl_seconds: int = 60 * 60
    cors_origin: str = "*"

    @classmethod
    def basic(cls) -> SecurityPolicy:
        """Opaque tokens and a global request cap only."""
        return cls(
            token_scheme="opaque",
            enforce_csrf=False,
            rate_limits=RateLimits(auth=None, form_submission=None),
        )

    @classmethod
    def enhanced(cls) -> SecurityPolicy:
        """Opaque tokens with authentication throttling, no CSRF."""
        return cls(
            token_scheme="opaque",
            enforce_csrf=False,
            rate_limits=RateLimits(form_submission=None),
        )

    @classmethod
    def secure(cls) -> SecurityPolicy:
        """Signed tokens, CSRF on mutations, every limit on."""
        return cls()

    @classmethod
    def from_settings(cls, settings: Settings) -> SecurityPolicy:
        window = settings.rate_limit_window_ms
        return cls(
            token_scheme=settings.token_scheme,
            enforce_csrf=settings.enforce_csrf,
            rate_limits=RateLimits(
                general=RateLimitRule(settings.rate_limit_requests, window),
                auth=RateLimitRule(settings.rate_limit_auth_attempts, window),
                form_submission=RateLimitRule(settings.rate_limit_form_submissions, window),
            ),
            token_ttl_seconds=settings.token_ttl_seconds,
            csrf_ttl_seconds=settings.csrf_ttl_seconds,
            cors_origin=settings.cors_origin,
        )

    def with_overrides(self, **changes) -> SecurityPolicy:
        return replace(self, **changes)
