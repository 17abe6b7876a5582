"""Shared-state storage backends."""

import time
from collections.abc import Callable

from hlpfl_forms.storage.base import StateStore, WindowResult
from hlpfl_forms.storage.memory import MemoryStateStore
from hlpfl_forms.storage.sql import SQLStateStore


def create_state_store(url: str = "", clock: Callable[[], float] = time.time) -> StateStore:
    """Return an in-memory store for an empty URL, otherwise a SQL store."""
    if not url:
        return MemoryStateStore(clock=clock)
    return SQLStateStore(url, clock=clock)


__all__ = [
    "MemoryStateStore",
    "SQLStateStore",
    "StateStore",
    "WindowResult",
    "create_state_store",
]
