"""State store interface.

All shared mutable state (rate-limit windows, CSRF entries, opaque token
sessions, the revocation set) goes through this interface so the same
middleware runs against process memory in tests and a database in
production.

Values must be JSON-serialisable. Every method is a single atomic operation
on one key.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol


@dataclass(frozen=True)
class WindowResult:
    """Outcome of a sliding-window increment."""

    allowed: bool
    count: int
    oldest_ms: float | None


class StateStore(Protocol):
    async def initialize(self) -> None:
        ...

    async def close(self) -> None:
        ...

    async def get(self, key: str) -> Any | None:
        ...

    async def set(self, key: str, value: Any, ttl_seconds: float | None = None) -> None:
        ...

    async def delete(self, key: str) -> bool:
        ...

    async def add_if_absent(self, key: str, value: Any, ttl_seconds: float | None = None) -> bool:
        """Store ``value`` unless ``key`` already holds a live entry.

        Returns True when this call created the entry.
        """
        ...

    async def delete_if(self, key: str, expected: Any) -> bool:
        """Delete ``key`` only while it still holds ``expected``."""
        ...

    async def increment_window(
        self,
        key: str,
        now_ms: float,
        window_ms: int,
        max_requests: int,
    ) -> WindowResult:
        """Prune timestamps ``<= now_ms - window_ms`` and append ``now_ms``
        unless the pruned window already holds ``max_requests`` entries."""
        ...

    async def purge_expired(self) -> int:
        ...


def prune_window(timestamps: list[float], now_ms: float, window_ms: int) -> list[float]:
    cutoff = now_ms - window_ms
    return [ts for ts in timestamps if ts > cutoff]


def apply_window(
    timestamps: list[float],
    now_ms: float,
    window_ms: int,
    max_requests: int,
) -> tuple[list[float], WindowResult]:
    """Shared compare-and-append used by every store implementation."""
    recent = prune_window(timestamps, now_ms, window_ms)
    if len(recent) >= max_requests:
        return recent, WindowResult(allowed=False, count=len(recent), oldest_ms=recent[0])
    recent.append(now_ms)
    return recent, WindowResult(allowed=True, count=len(recent), oldest_ms=recent[0])
