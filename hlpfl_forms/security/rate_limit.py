"""Sliding-window rate limiting keyed by arbitrary identifiers."""

from __future__ import annotations

import logging
import math
import time
from collections.abc import Callable
from dataclasses import dataclass

from hlpfl_forms.storage import StateStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimitRule:
    """Maximum requests admitted per trailing window."""

    max_requests: int
    window_ms: int = 60_000


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    limit: int
    remaining: int
    retry_after: int | None = None

    @property
    def headers(self) -> dict[str, str]:
        headers = {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
        }
        if self.retry_after is not None:
            headers["Retry-After"] = str(self.retry_after)
            headers["X-RateLimit-Reset"] = str(self.retry_after)
        return headers


class RateLimiter:
    """Admission control over a trailing window per key.

    The limiter does not know what a key means; call sites compose keys such
    as ``<client>``, ``auth:<client>`` or ``form:<form_id>:<client>`` and pick
    the rule. The check-and-record step is one atomic store operation, so two
    racing requests cannot both take the last slot.
    """

    def __init__(self, store: StateStore, clock: Callable[[], float] = time.time) -> None:
        self._store = store
        self._clock = clock

    async def check(self, key: str, rule: RateLimitRule) -> RateLimitDecision:
        now_ms = self._clock() * 1000
        result = await self._store.increment_window(
            key, now_ms, rule.window_ms, rule.max_requests
        )
        remaining = max(0, rule.max_requests - result.count)

        if result.allowed:
            return RateLimitDecision(allowed=True, limit=rule.max_requests, remaining=remaining)

        oldest = result.oldest_ms if result.oldest_ms is not None else now_ms
        retry_after = max(1, math.ceil((oldest + rule.window_ms - now_ms) / 1000))
        logger.warning(f"Rate limit exceeded for key {key}")
        return RateLimitDecision(
            allowed=False,
            limit=rule.max_requests,
            remaining=0,
            retry_after=retry_after,
        )

    async def allow(self, key: str, max_requests: int, window_ms: int) -> bool:
        decision = await self.check(key, RateLimitRule(max_requests, window_ms))
        return decision.allowed
