"""GitHub VCS provider using PyGithub."""

from __future__ import annotations

import asyncio
import base64
import logging
from collections.abc import Callable
from functools import cached_property
from typing import TypeVar

from github import Auth, Github, GithubException
from github.Repository import Repository

from verwalker.config.models import VCSConfig
from verwalker.vcs.base import VCSProvider
from verwalker.vcs.models import RateLimitStatus, RepoDescriptor, TreeEntry, VCSError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Statuses that mean "nothing there" for ref lookups: 404 for a missing
# branch, 409 for a repository without any commits.
_ABSENT_STATUSES = {404, 409}
_TREE_TYPES = {"blob", "tree", "commit"}


class GitHubProvider(VCSProvider):
    """GitHub implementation of VCSProvider using PyGithub.

    PyGithub is synchronous, so all blocking calls are wrapped
    with asyncio.to_thread() to avoid blocking the event loop.
    Credentials are sent as HTTP basic auth.
    """

    def __init__(self, user: str, key: str, config: VCSConfig | None = None):
        if not user or not key:
            raise ValueError("GitHub credentials required: both user and key must be set.")
        self._user = user
        self._key = key
        self.config = config or VCSConfig()

    @cached_property
    def _client(self) -> Github:
        # retry=None keeps PyGithub from retrying on its own
        retry = self.config.retries or None
        return Github(
            auth=Auth.Login(self._user, self._key),
            base_url=self.config.api_url,
            timeout=self.config.timeout,
            retry=retry,
        )

    def _get_repo(self, repo_id: str) -> Repository:
        """Get a lazy PyGithub Repository; no request is made until used."""
        return self._client.get_repo(repo_id, lazy=True)

    async def _run(self, operation: str, target: str, fn: Callable[[], T]) -> T:
        try:
            return await asyncio.to_thread(fn)
        except (GithubException, OSError) as e:
            raise VCSError(operation, target, e) from e

    async def list_repos_page(
        self, account: str, page: int, per_page: int
    ) -> list[RepoDescriptor]:
        """List one page of /users/{account}/repos."""

        def _sync() -> list[RepoDescriptor]:
            _, data = self._client.requester.requestJsonAndCheck(
                "GET",
                f"/users/{account}/repos",
                parameters={"per_page": per_page, "page": page},
            )
            return [
                RepoDescriptor(
                    full_name=obj["full_name"],
                    owner=(obj.get("owner") or {}).get("login", account),
                )
                for obj in data or []
            ]

        return await self._run("list repositories", f"{account} page {page}", _sync)

    async def get_branch_head(self, repo_id: str, branch: str) -> str | None:
        def _sync() -> str | None:
            try:
                ref = self._get_repo(repo_id).get_git_ref(f"heads/{branch}")
            except GithubException as e:
                if e.status in _ABSENT_STATUSES:
                    logger.debug("%s: no %s branch (%s)", repo_id, branch, e.status)
                    return None
                raise
            return ref.object.sha

        return await self._run(f"dereference {branch}", repo_id, _sync)

    async def get_commit_tree(self, repo_id: str, commit_sha: str) -> str:
        def _sync() -> str:
            return self._get_repo(repo_id).get_git_commit(commit_sha).tree.sha

        return await self._run(f"fetch commit {commit_sha}", repo_id, _sync)

    async def get_tree(self, repo_id: str, tree_sha: str) -> list[TreeEntry]:
        def _sync() -> list[TreeEntry]:
            tree = self._get_repo(repo_id).get_git_tree(tree_sha)
            if tree.raw_data.get("truncated"):
                logger.warning("%s: tree %s listing is truncated", repo_id, tree_sha)
            return [
                TreeEntry(path=el.path, type=el.type, sha=el.sha)
                for el in tree.tree
                if el.type in _TREE_TYPES
            ]

        return await self._run(f"fetch tree {tree_sha}", repo_id, _sync)

    async def get_blob(self, repo_id: str, blob_sha: str) -> bytes:
        def _sync() -> bytes:
            blob = self._get_repo(repo_id).get_git_blob(blob_sha)
            if blob.encoding == "base64":
                return base64.b64decode(blob.content)
            return blob.content.encode("utf-8")

        return await self._run(f"fetch blob {blob_sha}", repo_id, _sync)

    async def get_rate_limit(self) -> RateLimitStatus:
        """Read /rate_limit and return its resources.core block."""

        def _sync() -> RateLimitStatus:
            _, data = self._client.requester.requestJsonAndCheck("GET", "/rate_limit")
            core = data["resources"]["core"]
            return RateLimitStatus(
                remaining=core["remaining"],
                limit=core["limit"],
                reset=core["reset"],
            )

        return await self._run("read rate limit", "core", _sync)
