"""Background sweep that evicts expired challenges."""

from __future__ import annotations

import asyncio
import contextlib
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from otpgate.otp.store import ChallengeStore

logger = structlog.get_logger(__name__)

DEFAULT_INTERVAL_SECONDS = 300.0


class ChallengeReaper:
    """Periodically calls ``ChallengeStore.evict_expired``.

    Only bounds memory held by abandoned challenges; ``verify`` re-checks
    expiry on its own, so a missed sweep never affects outcomes.
    """

    def __init__(
        self,
        store: ChallengeStore,
        interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
    ) -> None:
        self._store = store
        self._interval = interval_seconds
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Schedule the sweep loop on the running event loop."""
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="otp-reaper")
        logger.info("otp_reaper_started", interval_seconds=self._interval)

    async def stop(self) -> None:
        """Cancel the sweep loop and wait for it to finish."""
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        logger.info("otp_reaper_stopped")

    async def sweep_once(self) -> int:
        evicted = await self._store.evict_expired()
        logger.debug("otp_reaper_sweep", evicted=evicted, remaining=len(self._store))
        return evicted

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                await self.sweep_once()
            except Exception:
                logger.exception("otp_reaper_sweep_error")
