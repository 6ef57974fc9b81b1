"""
Expired Link Sweeper

Expiration is evaluated lazily on every redirect, so nothing has to run in the
background for correctness. This sweeper is an optional housekeeping task that
hard-deletes links which expired more than EXPIRED_RETENTION_SECONDS ago,
freeing their codes for reuse.

Design:
- One sweeper per application instance, started on startup and cancelled on
  shutdown (disabled when EXPIRED_SWEEP_INTERVAL_SECONDS is 0)
- Each run opens its own session; request sessions are never shared
- Running it on several instances at once is harmless: the purge is a single
  DELETE with a time cutoff
"""

import asyncio
import logging
from datetime import timedelta
from typing import Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from shortlinks.core.clock import utcnow
from shortlinks.core.exceptions import StoreUnavailableError
from shortlinks.core.setting import settings
from shortlinks.services.link_store import LinkStore

logger = logging.getLogger(__name__)


class ExpirySweeper:
    """Periodically purges long-expired links."""

    def __init__(
        self,
        session_factory: Callable[[], AsyncSession],
        interval_seconds: float,
        retention_seconds: int = 0,
    ):
        """
        Args:
            session_factory: Callable returning an async session context manager
            interval_seconds: Pause between runs
            retention_seconds: How long an expired link is kept before purging
        """
        self.session_factory = session_factory
        self.interval_seconds = interval_seconds
        self.retention = timedelta(seconds=retention_seconds)
        self._task: Optional[asyncio.Task] = None

    async def sweep_once(self) -> int:
        """
        Purge links that expired before now minus the retention window.

        Returns:
            Number of links deleted
        """
        cutoff = utcnow() - self.retention
        async with self.session_factory() as session:
            purged = await LinkStore(session).purge_expired(cutoff)
        if purged:
            logger.info(f"Purged {purged} expired short links (expired before {cutoff.isoformat()})")
        return purged

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            try:
                await self.sweep_once()
            except StoreUnavailableError as e:
                # Try again next interval
                logger.warning(f"Expired link sweep failed: {e}")
            except Exception as e:
                logger.error(f"Unexpected error in expired link sweep: {e}", exc_info=True)

    def start(self) -> None:
        if self._task is None:
            self._task = asyncio.create_task(self._run())
            logger.info(f"Expired link sweeper started (every {self.interval_seconds}s)")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Expired link sweeper stopped")


# Global sweeper instance (initialized on startup)
_sweeper: Optional[ExpirySweeper] = None


async def start_sweeper() -> None:
    """Start the sweeper if EXPIRED_SWEEP_INTERVAL_SECONDS is set."""
    global _sweeper

    if settings.EXPIRED_SWEEP_INTERVAL_SECONDS <= 0:
        logger.info("Expired link sweeper disabled")
        return

    if _sweeper is not None:
        logger.warning("Expired link sweeper already running")
        return

    from shortlinks.db.session import async_session_maker

    _sweeper = ExpirySweeper(
        session_factory=async_session_maker,
        interval_seconds=settings.EXPIRED_SWEEP_INTERVAL_SECONDS,
        retention_seconds=settings.EXPIRED_RETENTION_SECONDS,
    )
    _sweeper.start()


async def stop_sweeper() -> None:
    """Cancel the sweeper on shutdown."""
    global _sweeper

    if _sweeper is not None:
        await _sweeper.stop()
        _sweeper = None
