"""Crawl pipeline: a chain of async generator stages.

    enumerate -> manifest -> build script -> .gitmodules -> submodules -> parse

Each stage pulls one item from the stage before it, does its (possibly
suspending) work and yields that item on, or drops it. Nothing is fetched
ahead of the consumer, and records come out in enumeration order.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator

from pydantic import BaseModel

from verwalker.config.models import CrawlConfig
from verwalker.crawl.enumerator import RepoEnumerator
from verwalker.crawl.fetcher import FileFetcher
from verwalker.crawl.parser import ManifestParseError, RecordParser
from verwalker.crawl.submodules import SubmoduleResolver, parse_gitmodules
from verwalker.crawl.tree_cache import RepoWork
from verwalker.index.models import Index, PackageRecord
from verwalker.vcs.base import VCSProvider

logger = logging.getLogger(__name__)


class CrawlProgress(BaseModel):
    """Counters reported by the rate guard."""

    processed: int = 0
    packages: int = 0
    page: int = 0
    account: str | None = None


class CrawlState:
    """Accumulates emitted records until the index is built.

    When two repositories declare the same package name the first one
    seen is kept; both repositories still map to that name.
    """

    def __init__(self) -> None:
        self.packages: dict[str, PackageRecord] = {}
        self.repositories: dict[str, str] = {}

    def __len__(self) -> int:
        return len(self.packages)

    def add(self, record: PackageRecord) -> None:
        if record.name in self.packages:
            logger.info(
                "%s: package name %r already taken by %s, keeping the first",
                record.repository,
                record.name,
                self.packages[record.name].repository,
            )
        else:
            self.packages[record.name] = record
        if record.repository:
            self.repositories[record.repository] = record.name

    def snapshot(self) -> Index:
        """Copy of everything collected so far, as an unbuilt index."""
        return Index(packages=dict(self.packages), repositories=dict(self.repositories))


class CrawlPipeline:
    """Wires the crawl stages together for one run."""

    def __init__(self, provider: VCSProvider, config: CrawlConfig) -> None:
        self.provider = provider
        self.config = config
        self.enumerator = RepoEnumerator(provider, config.accounts, config.per_page)
        self.fetcher = FileFetcher(provider, config.branch)
        self.resolver = SubmoduleResolver()
        self.parser = RecordParser()
        self.processed = 0
        self.packages = 0

    def progress(self) -> CrawlProgress:
        return CrawlProgress(
            processed=self.processed,
            packages=self.packages,
            page=self.enumerator.page,
            account=self.enumerator.account,
        )

    async def records(self) -> AsyncIterator[PackageRecord]:
        """Yield a PackageRecord per repository that has a usable manifest."""
        stream = self._start()
        stream = self._fetch(stream, self.config.manifest_path, optional=False)
        stream = self._fetch(stream, self.config.build_script_path, optional=True)
        stream = self._fetch(stream, self.config.submodules_path, optional=True)
        stream = self._resolve_submodules(stream)
        async for record in self._parse(stream):
            yield record

    async def run(self, state: CrawlState) -> None:
        """Drain the pipeline into ``state``."""
        async for record in self.records():
            state.add(record)

    # -- stages -----------------------------------------------------------

    async def _start(self) -> AsyncIterator[RepoWork]:
        async for repo in self.enumerator:
            self.processed += 1
            yield RepoWork.start(self.provider, repo)

    async def _fetch(
        self, upstream: AsyncIterator[RepoWork], path: str, *, optional: bool
    ) -> AsyncIterator[RepoWork]:
        async for work in upstream:
            result = await self.fetcher.fetch(work, path)
            if result.found:
                work.files[path] = result.content
            elif not optional:
                logger.debug("%s: no %s, skipping", work.repo_id, path)
                continue
            yield work

    async def _resolve_submodules(
        self, upstream: AsyncIterator[RepoWork]
    ) -> AsyncIterator[RepoWork]:
        async for work in upstream:
            raw = work.files.get(self.config.submodules_path)
            if raw and work.refs is not None:
                submodules = parse_gitmodules(raw.decode("utf-8", errors="replace"))
                work.submodule_deps = await self.resolver.resolve(
                    work.trees, work.refs.tree_sha, submodules
                )
            yield work

    async def _parse(self, upstream: AsyncIterator[RepoWork]) -> AsyncIterator[PackageRecord]:
        async for work in upstream:
            try:
                record = self.parser.parse(
                    work.repo_id,
                    work.files[self.config.manifest_path],
                    build_script=work.files.get(self.config.build_script_path),
                    submodule_deps=work.submodule_deps,
                )
            except ManifestParseError as e:
                logger.info("%s", e)
                continue
            self.packages += 1
            yield record
