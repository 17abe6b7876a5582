"""Authentication, CSRF and rate-limiting primitives."""

from hlpfl_forms.security.policy import RateLimits, SecurityPolicy
from hlpfl_forms.security.rate_limit import RateLimitDecision, RateLimiter, RateLimitRule
from hlpfl_forms.security.sessions import SessionStore
from hlpfl_forms.security.tokens import (
    SUBJECT_CLAIM,
    OpaqueTokenCodec,
    SignedTokenCodec,
    TokenCodec,
)

__all__ = [
    "SUBJECT_CLAIM",
    "OpaqueTokenCodec",
    "RateLimitDecision",
    "RateLimitRule",
    "RateLimiter",
    "RateLimits",
    "SecurityPolicy",
    "SessionStore",
    "SignedTokenCodec",
    "TokenCodec",
]
