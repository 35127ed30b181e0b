import asyncio

from ..exceptions import StorageError
from ..logging_config import get_logger
from ..metrics import LIVE_TOKENS, SWEEP_EVICTIONS
from ..ports.clock import Clock
from ..ports.token_store import TokenStore

logger = get_logger(__name__)


class ExpirySweeper:
    """Evicts expired tokens from the store."""

    def __init__(self, store: TokenStore, clock: Clock):
        self.store = store
        self.clock = clock

    async def sweep(self) -> int:
        """Delete every token whose deadline has passed. Returns the eviction count.

        Expiry is re-evaluated per token at delete time, so a token issued
        while a pass is running is never evicted by it.
        """
        now = self.clock.now()
        evicted = await self.store.purge_expired(now)
        if SWEEP_EVICTIONS is not None and evicted:
            SWEEP_EVICTIONS.inc(evicted)
        if evicted:
            logger.info("tokens_swept", evicted=evicted)
        if LIVE_TOKENS is not None:
            try:
                LIVE_TOKENS.set(await self.store.count())
            except StorageError as e:
                # the purge already happened; only the gauge goes stale
                logger.warning("live_token_count_failed", error=str(e))
        return evicted

    async def run_forever(self, interval_seconds: float) -> None:
        """Sweep every ``interval_seconds`` until cancelled.

        Store failures are logged and the loop carries on with the next pass.
        """
        logger.info("token_sweeper_started", interval_seconds=interval_seconds)
        try:
            while True:
                try:
                    await self.sweep()
                except StorageError as e:
                    logger.error("token_sweep_failed", error=str(e))
                await asyncio.sleep(interval_seconds)
        except asyncio.CancelledError:
            logger.info("token_sweeper_stopped")
            raise
