import asyncio
import time
from typing import Callable, Optional, Set

from backend import Backend, StoreError
from constants import BROADCAST_TARGET, LEAVE_TEXT, STALE_AFTER_SECONDS, SWEEP_INTERVAL_SECONDS
from logging_config import get_logger
from messages import status_message
from presence import PresenceRegistry, to_millis

logger = get_logger(__name__)


class Reaper:
    """Periodically evicts participants that stopped sending heartbeats.

    A heartbeat landing between the stale read and the batch delete can still
    be evicted; the next join simply starts over.
    """

    def __init__(
        self,
        store: Backend,
        presence: PresenceRegistry,
        clock: Callable[[], float] = time.time,
        interval: float = SWEEP_INTERVAL_SECONDS,
        stale_after: float = STALE_AFTER_SECONDS,
        broadcast_target: str = BROADCAST_TARGET,
    ):
        self.store = store
        self.presence = presence
        self.clock = clock
        self.interval = interval
        self.stale_after = stale_after
        self.broadcast_target = broadcast_target
        self._task: Optional[asyncio.Task] = None
        # Names whose leave notice is stored but whose eviction has not succeeded yet
        self._announced: Set[str] = set()

    def sweep(self) -> int:
        """Run one eviction pass. Returns the number of participants removed."""
        now = self.clock()
        cutoff = to_millis(now - self.stale_after)

        try:
            stale = self.presence.stale(cutoff)
        except StoreError:
            logger.error("Sweep aborted: could not read stale participants")
            return 0
        names = [participant["name"] for participant in stale]
        # A participant that refreshed since the failed eviction gets a fresh notice later
        self._announced &= set(names)
        if not stale:
            return 0

        for name in names:
            if name in self._announced:
                continue
            try:
                self.store.insert_message(status_message(name, LEAVE_TEXT, now, self.broadcast_target))
                self._announced.add(name)
            except StoreError:
                logger.warning(f"Could not store leave notice for {name}")

        try:
            removed = self.presence.evict_stale(cutoff)
        except StoreError:
            logger.error(
                f"Sweep could not evict {len(stale)} stale participants; "
                f"leave notices already stored for {sorted(self._announced)}"
            )
            return 0

        self._announced.clear()
        logger.info(f"Evicted {removed} inactive participants: {names}")
        return removed

    async def run(self):
        """Sweep forever on a fixed period. Only cancellation stops the loop."""
        logger.info(f"Starting reaper: every {self.interval}s, stale after {self.stale_after}s")
        loop = asyncio.get_running_loop()
        try:
            while True:
                await asyncio.sleep(self.interval)
                try:
                    # Store calls block, keep them off the event loop
                    await loop.run_in_executor(None, self.sweep)
                except Exception as e:
                    logger.error(f"Reaper sweep failed: {e}", exc_info=True)
        except asyncio.CancelledError:
            logger.info("Reaper task cancelled")
            raise

    def start(self) -> asyncio.Task:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.run())
        return self._task

    async def stop(self):
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
