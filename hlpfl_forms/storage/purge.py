"""Background purge of expired state entries shared by every store backend."""

import asyncio
import logging

from hlpfl_forms.storage.base import StateStore

logger = logging.getLogger(__name__)


async def state_purge_loop(store: StateStore, interval_seconds: float = 300) -> None:
    """Periodically drop expired revocations, CSRF entries and opaque sessions.

    Rate-limit windows carry no expiry and are pruned on access instead.
    """
    while True:
        try:
            await asyncio.sleep(interval_seconds)
            removed = await store.purge_expired()
            if removed > 0:
                logger.debug(f"State purge: removed {removed} expired entries")
        except asyncio.CancelledError:
            break
        except Exception as e:
            logger.warning(f"State purge error: {e}")
