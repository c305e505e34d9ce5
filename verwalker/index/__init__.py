"""Dependency index: models, builder, persistence and queries."""

from verwalker.index.builder import build_index
from verwalker.index.models import Index, PackageRecord
from verwalker.index.query import PackageNotFoundError, RevDep, compare_versions, deps, revdeps
from verwalker.index.store import IndexFileError, IndexStore

__all__ = [
    "Index",
    "IndexFileError",
    "IndexStore",
    "PackageNotFoundError",
    "PackageRecord",
    "RevDep",
    "build_index",
    "compare_versions",
    "deps",
    "revdeps",
]
