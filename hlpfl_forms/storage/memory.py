"""In-process state store."""

from __future__ import annotations

import copy
import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from hlpfl_forms.storage.base import WindowResult, apply_window

logger = logging.getLogger(__name__)


@dataclass
class _Entry:
    value: Any
    expires_at: float | None = None

    def expired(self, now: float) -> bool:
        return self.expires_at is not None and now > self.expires_at


class MemoryStateStore:
    """Dict-backed store guarded by one lock.

    A ``threading.Lock`` is used rather than an ``asyncio.Lock`` because no
    operation awaits while holding it, and sync handlers running in the
    threadpool share the same instance.
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._data: dict[str, _Entry] = {}
        self._lock = threading.Lock()
        self._clock = clock

    async def initialize(self) -> None:
        return None

    async def close(self) -> None:
        with self._lock:
            self._data.clear()

    def _live(self, key: str, now: float) -> _Entry | None:
        entry = self._data.get(key)
        if entry is not None and entry.expired(now):
            del self._data[key]
            return None
        return entry

    async def get(self, key: str) -> Any | None:
        with self._lock:
            entry = self._live(key, self._clock())
            return copy.deepcopy(entry.value) if entry else None

    async def set(self, key: str, value: Any, ttl_seconds: float | None = None) -> None:
        expires_at = self._clock() + ttl_seconds if ttl_seconds is not None else None
        with self._lock:
            self._data[key] = _Entry(copy.deepcopy(value), expires_at)

    async def delete(self, key: str) -> bool:
        with self._lock:
            return self._data.pop(key, None) is not None

    async def add_if_absent(self, key: str, value: Any, ttl_seconds: float | None = None) -> bool:
        now = self._clock()
        expires_at = now + ttl_seconds if ttl_seconds is not None else None
        with self._lock:
            if self._live(key, now) is not None:
                return False
            self._data[key] = _Entry(copy.deepcopy(value), expires_at)
            return True

    async def delete_if(self, key: str, expected: Any) -> bool:
        with self._lock:
            entry = self._data.get(key)
            if entry is None or entry.value != expected:
                return False
            del self._data[key]
            return True

    async def increment_window(
        self,
        key: str,
        now_ms: float,
        window_ms: int,
        max_requests: int,
    ) -> WindowResult:
        with self._lock:
            entry = self._data.get(key)
            timestamps = entry.value if entry else []
            recent, result = apply_window(timestamps, now_ms, window_ms, max_requests)
            self._data[key] = _Entry(recent)
            return result

    async def purge_expired(self) -> int:
        now = self._clock()
        with self._lock:
            expired = [key for key, entry in self._data.items() if entry.expired(now)]
            for key in expired:
                del self._data[key]
        if expired:
            logger.debug(f"Purged {len(expired)} expired state entries")
        return len(expired)

    def __len__(self) -> int:
        return len(self._data)
