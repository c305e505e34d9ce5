"""Crawl pipeline: repositories in, package records out."""

from verwalker.crawl.enumerator import RepoEnumerator
from verwalker.crawl.fetcher import FileFetcher
from verwalker.crawl.guard import RateGuard
from verwalker.crawl.parser import ManifestParseError, RecordParser, parse_build_vars
from verwalker.crawl.pipeline import CrawlPipeline, CrawlProgress, CrawlState
from verwalker.crawl.runner import CrawlSummary, IndexRunner
from verwalker.crawl.submodules import SubmoduleResolver, parse_gitmodules
from verwalker.crawl.tree_cache import RepoWork, TreeCache

__all__ = [
    "CrawlPipeline",
    "CrawlProgress",
    "CrawlState",
    "CrawlSummary",
    "FileFetcher",
    "IndexRunner",
    "ManifestParseError",
    "RateGuard",
    "RecordParser",
    "RepoEnumerator",
    "RepoWork",
    "SubmoduleResolver",
    "TreeCache",
    "parse_build_vars",
    "parse_gitmodules",
]
