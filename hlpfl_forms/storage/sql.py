"""SQLAlchemy-backed state store.

Keeps shared state in a single ``state_entries`` table so rate-limit windows,
CSRF entries and revocations survive process restarts and can be shared by
several workers pointing at the same database.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from typing import Any

from sqlalchemy import JSON, Float, String, delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.pool import StaticPool

from hlpfl_forms.storage.base import WindowResult, apply_window

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


class StateEntry(Base):
    """One key of shared state. ``expires_at`` is a Unix timestamp or NULL."""

    __tablename__ = "state_entries"

    key: Mapped[str] = mapped_column(String(255), primary_key=True)
    value: Mapped[Any] = mapped_column(JSON, nullable=False)
    expires_at: Mapped[float | None] = mapped_column(Float, nullable=True, index=True)


class SQLStateStore:
    """State store on any async SQLAlchemy database.

    Each operation runs in its own transaction with the row locked
    (``SELECT ... FOR UPDATE`` where the dialect supports it). The in-process
    ``asyncio.Lock`` serialises callers sharing this instance, which SQLite
    needs since it has no row locks.
    """

    def __init__(self, url: str, clock: Callable[[], float] = time.time) -> None:
        engine_kwargs: dict[str, Any] = {}
        if url.startswith("sqlite") and ":memory:" in url:
            # One shared connection, otherwise every checkout sees an empty database
            engine_kwargs["poolclass"] = StaticPool
            engine_kwargs["connect_args"] = {"check_same_thread": False}
        else:
            engine_kwargs["pool_pre_ping"] = True

        self._engine = create_async_engine(url, **engine_kwargs)
        self._session_maker = async_sessionmaker(
            self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
        self._lock = asyncio.Lock()
        self._clock = clock

    async def initialize(self) -> None:
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("State store tables ready")

    async def close(self) -> None:
        await self._engine.dispose()

    async def _locked_row(self, session: AsyncSession, key: str) -> StateEntry | None:
        result = await session.execute(
            select(StateEntry).where(StateEntry.key == key).with_for_update()
        )
        return result.scalar_one_or_none()

    def _expired(self, row: StateEntry, now: float) -> bool:
        return row.expires_at is not None and now > row.expires_at

    async def get(self, key: str) -> Any | None:
        async with self._lock, self._session_maker() as session, session.begin():
            row = await self._locked_row(session, key)
            if row is None:
                return None
            if self._expired(row, self._clock()):
                await session.delete(row)
                return None
            return row.value

    async def set(self, key: str, value: Any, ttl_seconds: float | None = None) -> None:
        expires_at = self._clock() + ttl_seconds if ttl_seconds is not None else None
        async with self._lock, self._session_maker() as session, session.begin():
            row = await self._locked_row(session, key)
            if row is None:
                session.add(StateEntry(key=key, value=value, expires_at=expires_at))
            else:
                row.value = value
                row.expires_at = expires_at

    async def delete(self, key: str) -> bool:
        async with self._lock, self._session_maker() as session, session.begin():
            result = await session.execute(delete(StateEntry).where(StateEntry.key == key))
            return (result.rowcount or 0) > 0

    async def add_if_absent(self, key: str, value: Any, ttl_seconds: float | None = None) -> bool:
        now = self._clock()
        expires_at = now + ttl_seconds if ttl_seconds is not None else None
        try:
            async with self._lock, self._session_maker() as session, session.begin():
                row = await self._locked_row(session, key)
                if row is not None and not self._expired(row, now):
                    return False
                if row is None:
                    session.add(StateEntry(key=key, value=value, expires_at=expires_at))
                else:
                    row.value = value
                    row.expires_at = expires_at
        except IntegrityError:
            # Another worker inserted the same key between our select and commit
            return False
        return True

    async def delete_if(self, key: str, expected: Any) -> bool:
        async with self._lock, self._session_maker() as session, session.begin():
            row = await self._locked_row(session, key)
            if row is None or row.value != expected:
                return False
            await session.delete(row)
            return True

    async def increment_window(
        self,
        key: str,
        now_ms: float,
        window_ms: int,
        max_requests: int,
    ) -> WindowResult:
        async with self._lock, self._session_maker() as session, session.begin():
            row = await self._locked_row(session, key)
            timestamps = list(row.value) if row is not None else []
            recent, result = apply_window(timestamps, now_ms, window_ms, max_requests)
            if row is None:
                session.add(StateEntry(key=key, value=recent, expires_at=None))
            else:
                # Assign a new list so the JSON column is flagged dirty
                row.value = recent
            return result

    async def purge_expired(self) -> int:
        now = self._clock()
        async with self._lock, self._session_maker() as session, session.begin():
            result = await session.execute(
                delete(StateEntry).where(
                    StateEntry.expires_at.is_not(None),
                    StateEntry.expires_at < now,
                )
            )
            removed = result.rowcount or 0
        if removed:
            logger.debug(f"Purged {removed} expired state entries")
        return removed
