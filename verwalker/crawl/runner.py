"""IndexRunner: crawls until done or stopped, then writes the index."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import signal
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Literal

from pydantic import BaseModel

from verwalker.config.models import VerwalkerConfig
from verwalker.crawl.guard import RateGuard
from verwalker.crawl.pipeline import CrawlPipeline, CrawlState
from verwalker.index.builder import build_index
from verwalker.index.models import Index
from verwalker.index.store import IndexStore
from verwalker.vcs.base import VCSProvider

logger = logging.getLogger(__name__)

StopReason = Literal["completed", "rate_limited", "interrupted"]


class CrawlSummary(BaseModel):
    """What a finished run did."""

    reason: StopReason
    processed: int
    packages: int
    indexed: int
    index_file: Path


class IndexRunner:
    """Crawls, then builds and persists the index.

    The crawl ends when the enumeration is exhausted, when the rate guard
    reports the quota is nearly gone, or on SIGINT. All three end the same
    way: every record emitted so far is indexed and written. A transport
    failure propagates instead; only earlier checkpoints survive it.
    """

    def __init__(
        self, provider: VCSProvider, config: VerwalkerConfig, store: IndexStore
    ) -> None:
        self.provider = provider
        self.config = config
        self.store = store
        self.state = CrawlState()
        self.pipeline = CrawlPipeline(provider, config.crawl)
        self.guard = RateGuard(
            provider,
            config.guard,
            progress=self.pipeline.progress,
            checkpoint=self.checkpoint,
        )

    def checkpoint(self) -> Index:
        """Build and write an index from the records collected so far."""
        index = build_index(self.state.snapshot())
        self.store.save(index)
        return index

    async def run(self, stop: asyncio.Event | None = None) -> CrawlSummary:
        stop = stop or asyncio.Event()
        crawl_task = asyncio.create_task(self.pipeline.run(self.state))
        guard_task = asyncio.create_task(self.guard.watch())
        stop_task = asyncio.create_task(stop.wait())
        tasks = (crawl_task, guard_task, stop_task)

        with _interrupt_handler(stop.set):
            try:
                await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
            finally:
                for task in tasks:
                    task.cancel()
                await asyncio.gather(*tasks, return_exceptions=True)

        reason: StopReason
        if crawl_task.done() and not crawl_task.cancelled():
            # re-raises a transport failure
            crawl_task.result()
            reason = "completed"
        elif guard_task.done() and not guard_task.cancelled():
            guard_task.result()
            reason = "rate_limited"
        else:
            logger.warning("interrupted, indexing what we have so far")
            reason = "interrupted"

        logger.info("[indexing]")
        index = self.checkpoint()
        progress = self.pipeline.progress()
        logger.info("[done] %d packages written to %s", len(index.packages), self.store.path)
        return CrawlSummary(
            reason=reason,
            processed=progress.processed,
            packages=progress.packages,
            indexed=len(index.packages),
            index_file=self.store.path,
        )


@contextlib.contextmanager
def _interrupt_handler(callback: Callable[[], None]) -> Iterator[None]:
    """Route SIGINT to ``callback`` while the crawl runs."""
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, callback)
    except (NotImplementedError, RuntimeError):
        # no signal support here (non-main thread or non-Unix loop)
        yield
        return
    try:
        yield
    finally:
        loop.remove_signal_handler(signal.SIGINT)
