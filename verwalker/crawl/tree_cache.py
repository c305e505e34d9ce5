"""Per-repository tree listing cache and path lookup."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Literal

from verwalker.vcs.base import VCSProvider
from verwalker.vcs.models import GitObjectRefs, RepoDescriptor, TreeEntry

logger = logging.getLogger(__name__)

EntryType = Literal["blob", "tree", "commit"]


class TreeCache:
    """Memoizes tree listings by sha for a single repository.

    A repository is checked for several files and submodule paths, and all
    of them start from the same root tree, so each tree object is fetched
    at most once per run.
    """

    def __init__(self, provider: VCSProvider, repo_id: str) -> None:
        self.provider = provider
        self.repo_id = repo_id
        self._listings: dict[str, list[TreeEntry]] = {}

    def __len__(self) -> int:
        return len(self._listings)

    def __contains__(self, tree_sha: str) -> bool:
        return tree_sha in self._listings

    async def listing(self, tree_sha: str) -> list[TreeEntry]:
        if tree_sha not in self._listings:
            self._listings[tree_sha] = await self.provider.get_tree(self.repo_id, tree_sha)
        return self._listings[tree_sha]

    async def find(self, tree_sha: str, name: str, type: EntryType) -> TreeEntry | None:
        """Return the single entry named ``name`` of the given type.

        Zero or several matches both count as not found.
        """
        matches = [
            e for e in await self.listing(tree_sha) if e.path == name and e.type == type
        ]
        if len(matches) != 1:
            return None
        return matches[0]

    async def resolve(
        self, root_sha: str, path: str, final_type: EntryType
    ) -> TreeEntry | None:
        """Walk ``path`` segment by segment from the root tree.

        Intermediate segments must be trees; the last one must be
        ``final_type``.
        """
        segments = [s for s in path.split("/") if s]
        if not segments:
            return None
        current = root_sha
        entry: TreeEntry | None = None
        for depth, segment in enumerate(segments):
            expected = final_type if depth == len(segments) - 1 else "tree"
            entry = await self.find(current, segment, expected)
            if entry is None:
                logger.debug(
                    "%s: no %s %r under %s", self.repo_id, expected, segment, current
                )
                return None
            current = entry.sha
        return entry


@dataclass
class RepoWork:
    """A repository flowing through the crawl stages.

    Holds the per-repository caches; dropped once the record is emitted.
    """

    repo: RepoDescriptor
    trees: TreeCache
    refs: GitObjectRefs | None = None
    missing_branch: bool = False
    files: dict[str, bytes] = field(default_factory=dict)
    submodule_deps: dict[str, str] = field(default_factory=dict)

    @classmethod
    def start(cls, provider: VCSProvider, repo: RepoDescriptor) -> RepoWork:
        return cls(repo=repo, trees=TreeCache(provider, repo.full_name))

    @property
    def repo_id(self) -> str:
        return self.repo.full_name
