"""Rate limit guard: polls API quota, checkpoints, and calls time on the crawl."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable

from verwalker.config.models import GuardConfig
from verwalker.crawl.pipeline import CrawlProgress
from verwalker.vcs.base import VCSProvider
from verwalker.vcs.models import RateLimitStatus, VCSError

logger = logging.getLogger(__name__)


class RateGuard:
    """Watches the core API quota while a crawl runs.

    Every ``interval`` seconds it logs progress, reads the quota and writes
    a checkpoint. Once remaining/limit drops below ``low_water_ratio`` it
    stops watching and returns the reason, leaving the caller to stop the
    crawl and write the final index.
    """

    def __init__(
        self,
        provider: VCSProvider,
        config: GuardConfig,
        progress: Callable[[], CrawlProgress],
        checkpoint: Callable[[], object],
    ) -> None:
        self.provider = provider
        self.config = config
        self._progress = progress
        self._checkpoint = checkpoint

    async def poll(self) -> RateLimitStatus | None:
        """Log progress and the current quota. Returns None if the quota can't be read."""
        p = self._progress()
        logger.info(
            "[running] %d repos done, %d packages found (page %d of %s)",
            p.processed,
            p.packages,
            p.page,
            p.account,
        )
        try:
            status = await self.provider.get_rate_limit()
        except VCSError as e:
            logger.warning("could not read rate limit: %s", e)
            return None
        minutes = round((status.reset - time.time()) / 60)
        logger.info(
            "github rate limit %d / %d (reset in %d min)",
            status.remaining,
            status.limit,
            minutes,
        )
        return status

    def exhausted(self, status: RateLimitStatus) -> bool:
        return status.ratio < self.config.low_water_ratio

    async def watch(self) -> str:
        """Run until the quota falls below the low-water mark."""
        while True:
            await asyncio.sleep(self.config.interval)
            status = await self.poll()
            if status is not None and self.exhausted(status):
                reason = (
                    f"rate limit nearly exhausted ({status.remaining} / {status.limit} left)"
                )
                logger.error("%s, stopping early; indexing what we have so far", reason)
                return reason
            self._checkpoint()
