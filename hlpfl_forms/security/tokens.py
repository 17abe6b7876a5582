"""Bearer token codecs.

Two schemes share one interface:

- ``signed``: HS256 JWT. Self-contained; verification needs only the secret
  and the revocation set.
- ``opaque``: random hex handle whose claims live in the state store.
"""

from __future__ import annotations

import logging
import secrets
import time
from collections.abc import Callable
from typing import Any, Protocol

import jwt
from jwt.exceptions import PyJWTError

from hlpfl_forms.security.sessions import SessionStore
from hlpfl_forms.storage import StateStore

logger = logging.getLogger(__name__)

# Claim carrying the subject. Not "sub": PyJWT requires "sub" to be a string
# and user ids are integers.
SUBJECT_CLAIM = "user_id"

# Claims the codec owns; callers cannot override them through ``claims``
RESERVED_CLAIMS = frozenset({SUBJECT_CLAIM, "iat", "exp", "jti"})


class TokenCodec(Protocol):
    scheme: str

    async def issue(self, subject: int | str, claims: dict[str, Any], ttl_seconds: int) -> str:
        ...

    async def verify(self, token: str) -> dict[str, Any] | None:
        """Return the token payload, or None if the token is not valid."""
        ...


def build_payload(
    subject: int | str,
    claims: dict[str, Any],
    now: int,
    ttl_seconds: int,
) -> dict[str, Any]:
    payload = {k: v for k, v in claims.items() if k not in RESERVED_CLAIMS}
    payload[SUBJECT_CLAIM] = subject
    payload["iat"] = now
    payload["exp"] = now + int(ttl_seconds)
    # Two tokens minted for one subject in the same second must still differ
    payload["jti"] = secrets.token_hex(16)
    return payload


def strip_reserved(payload: dict[str, Any]) -> dict[str, Any]:
    """Claims that should carry over when a token is re-issued."""
    return {k: v for k, v in payload.items() if k not in RESERVED_CLAIMS}


def _is_expired(payload: dict[str, Any], now: int) -> bool:
    exp = payload.get("exp")
    if exp is None:
        return False
    if not isinstance(exp, (int, float)) or isinstance(exp, bool):
        return True
    return now >= exp


class SignedTokenCodec:
    """HMAC-SHA256 signed tokens: ``<header>.<payload>.<signature>``."""

    scheme = "signed"

    def __init__(
        self,
        secret: str,
        sessions: SessionStore,
        algorithm: str = "HS256",
        clock: Callable[[], float] = time.time,
    ) -> None:
        if not secret:
            raise ValueError("A signing secret is required")
        self._secret = secret
        self._sessions = sessions
        self._algorithm = algorithm
        self._clock = clock

    async def issue(self, subject: int | str, claims: dict[str, Any], ttl_seconds: int) -> str:
        payload = build_payload(subject, claims, int(self._clock()), ttl_seconds)
        token = jwt.encode(payload, self._secret, algorithm=self._algorithm)
        # PyJWT 2.x returns str; older type stubs may declare bytes
        return str(token)

    def decode(self, token: str) -> dict[str, Any] | None:
        """Check structure, signature and expiry. Ignores revocation."""
        if not isinstance(token, str) or token.count(".") != 2:
            return None

        try:
            # Expiry is checked against the injected clock below, not PyJWT's
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"verify_exp": False, "verify_iat": False, "verify_nbf": False},
            )
        except (PyJWTError, ValueError) as e:
            logger.debug(f"Token rejected: {e}")
            return None

        if _is_expired(payload, int(self._clock())):
            return None
        return payload

    async def verify(self, token: str) -> dict[str, Any] | None:
        if not token or await self._sessions.is_revoked(token):
            return None
        return self.decode(token)


class OpaqueTokenCodec:
    """Random handles backed by a server-side session record."""

    scheme = "opaque"

    def __init__(
        self,
        store: StateStore,
        sessions: SessionStore,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._store = store
        self._sessions = sessions
        self._clock = clock

    @staticmethod
    def _key(token: str) -> str:
        return f"token:{token}"

    async def issue(self, subject: int | str, claims: dict[str, Any], ttl_seconds: int) -> str:
        token = secrets.token_hex(32)
        payload = build_payload(subject, claims, int(self._clock()), ttl_seconds)
        await self._store.set(self._key(token), payload, ttl_seconds=ttl_seconds)
        return token

    async def verify(self, token: str) -> dict[str, Any] | None:
        if not token or len(token) > 128 or await self._sessions.is_revoked(token):
            return None

        payload = await self._store.get(self._key(token))
        if payload is None:
            return None

        if _is_expired(payload, int(self._clock())):
            await self._store.delete(self._key(token))
            return None
        return payload
