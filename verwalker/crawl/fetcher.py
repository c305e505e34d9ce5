"""File fetcher: branch -> commit -> tree -> blob."""

from __future__ import annotations

import logging

from verwalker.crawl.tree_cache import RepoWork
from verwalker.vcs.base import VCSProvider
from verwalker.vcs.models import FetchResult, GitObjectRefs

logger = logging.getLogger(__name__)


class FileFetcher:
    """Fetches files from a repository's branch head.

    The commit and root tree are resolved once per repository and kept on
    the RepoWork, as are tree listings, so fetching several files from one
    repository only costs one extra blob request per file.
    """

    def __init__(self, provider: VCSProvider, branch: str = "master") -> None:
        self.provider = provider
        self.branch = branch

    async def refs(self, work: RepoWork) -> GitObjectRefs | None:
        """Resolve the branch head commit and its root tree, once."""
        if work.refs is not None or work.missing_branch:
            return work.refs
        commit_sha = await self.provider.get_branch_head(work.repo_id, self.branch)
        if commit_sha is None:
            work.missing_branch = True
            return None
        tree_sha = await self.provider.get_commit_tree(work.repo_id, commit_sha)
        work.refs = GitObjectRefs(commit_sha=commit_sha, tree_sha=tree_sha)
        return work.refs

    async def fetch(self, work: RepoWork, path: str) -> FetchResult:
        """Fetch ``path`` from the branch head.

        Returns an absent result when the branch is missing, the repository
        is empty, or the path does not name exactly one blob. Transport
        failures raise VCSError.
        """
        refs = await self.refs(work)
        if refs is None:
            return FetchResult.absent()
        entry = await work.trees.resolve(refs.tree_sha, path, "blob")
        if entry is None:
            return FetchResult.absent()
        content = await self.provider.get_blob(work.repo_id, entry.sha)
        logger.debug("%s: fetched %s (%d bytes)", work.repo_id, path, len(content))
        return FetchResult.ok(content)
