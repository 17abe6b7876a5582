"""Per-subject CSRF tokens and the bearer-token revocation set."""

from __future__ import annotations

import hashlib
import hmac
import logging
import secrets
import time
from collections.abc import Callable

from hlpfl_forms.storage import StateStore

logger = logging.getLogger(__name__)

CSRF_TOKEN_BYTES = 32


def _csrf_key(subject: int | str) -> str:
    return f"csrf:{subject}"


def _revoked_key(token: str) -> str:
    # Tokens can be long; key on a digest so every backend can index it
    return "revoked:" + hashlib.sha256(token.encode("utf-8")).hexdigest()


class SessionStore:
    """At most one live CSRF token per subject, plus revoked bearer tokens."""

    def __init__(self, store: StateStore, clock: Callable[[], float] = time.time) -> None:
        self._store = store
        self._clock = clock

    async def issue_csrf(self, subject: int | str, ttl_seconds: float) -> str:
        """Mint a CSRF token for ``subject``, replacing any previous one."""
        token = secrets.token_hex(CSRF_TOKEN_BYTES)
        entry = {"token": token, "expires_at": self._clock() + ttl_seconds}
        await self._store.set(_csrf_key(subject), entry)
        return token

    async def validate_csrf(self, subject: int | str, candidate: str | None) -> bool:
        if not candidate:
            return False

        key = _csrf_key(subject)
        entry = await self._store.get(key)
        if entry is None:
            return False

        if self._clock() > entry["expires_at"]:
            # Only evict the entry we looked at; a concurrent re-issue must survive
            await self._store.delete_if(key, entry)
            logger.debug(f"Expired CSRF token evicted for subject {subject}")
            return False

        return hmac.compare_digest(candidate.encode("utf-8"), entry["token"].encode("utf-8"))

    async def drop_csrf(self, subject: int | str) -> None:
        await self._store.delete(_csrf_key(subject))

    async def revoke_token(self, token: str, expires_at: float | None = None) -> bool:
        """Add ``token`` to the revocation set. Idempotent.

        Returns True only for the call that actually revoked the token, so
        callers racing on the same token can tell which one won.

        When the token's own expiry is known the entry is kept only that long;
        past that point the token fails verification on its own.
        """
        ttl = max(0.0, expires_at - self._clock()) if expires_at is not None else None
        return await self._store.add_if_absent(_revoked_key(token), True, ttl_seconds=ttl)

    async def is_revoked(self, token: str) -> bool:
        return await self._store.get(_revoked_key(token)) is not None
