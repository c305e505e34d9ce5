"""Shared test fixtures for verwalker."""

from __future__ import annotations

import asyncio
import hashlib
import json
from dataclasses import dataclass
from unittest.mock import AsyncMock, MagicMock

import pytest

from verwalker.config.models import CrawlConfig, GuardConfig, VerwalkerConfig
from verwalker.index.models import Index, PackageRecord
from verwalker.vcs.base import VCSProvider
from verwalker.vcs.models import RateLimitStatus, RepoDescriptor, TreeEntry, VCSError


@dataclass(frozen=True)
class Gitlink:
    """A submodule entry pinned to ``sha``."""

    sha: str


def _sha(prefix: str, payload: object) -> str:
    return f"{prefix}-{hashlib.sha1(repr(payload).encode()).hexdigest()[:10]}"


class InMemoryProvider(VCSProvider):
    """VCSProvider over hand-built repositories.

    Repositories are added with ``add_repo``; every call is recorded in
    ``calls`` so tests can count requests.
    """

    def __init__(self) -> None:
        self.accounts: dict[str, list[RepoDescriptor]] = {}
        self.heads: dict[str, str] = {}
        self.commits: dict[tuple[str, str], str] = {}
        self.trees: dict[tuple[str, str], list[TreeEntry]] = {}
        self.blobs: dict[tuple[str, str], bytes] = {}
        self.calls: list[tuple] = []
        self.rate = RateLimitStatus(remaining=5000, limit=5000, reset=0)
        # repo -> event the branch head lookup waits on
        self.blocked: dict[str, asyncio.Event] = {}
        # (method, repo) -> error to raise
        self.failures: dict[tuple[str, str], Exception] = {}

    def add_repo(
        self,
        full_name: str,
        files: dict[str, str | bytes] | None = None,
        gitlinks: dict[str, str] | None = None,
        *,
        branch: bool = True,
    ) -> None:
        owner = full_name.split("/")[0]
        self.accounts.setdefault(owner, []).append(
            RepoDescriptor(full_name=full_name, owner=owner)
        )
        if not branch:
            return
        root: dict = {}
        for path, content in (files or {}).items():
            data = content.encode() if isinstance(content, str) else content
            self._insert(root, path, data)
        for path, sha in (gitlinks or {}).items():
            self._insert(root, path, Gitlink(sha))
        tree_sha = self._store_tree(full_name, root)
        commit_sha = _sha("commit", (full_name, tree_sha))
        self.heads[full_name] = commit_sha
        self.commits[(full_name, commit_sha)] = tree_sha

    @staticmethod
    def _insert(root: dict, path: str, value: object) -> None:
        *dirs, leaf = path.split("/")
        node = root
        for d in dirs:
            node = node.setdefault(d, {})
        node[leaf] = value

    def _store_tree(self, repo: str, node: dict) -> str:
        entries = []
        for name, value in sorted(node.items()):
            if isinstance(value, dict):
                entries.append(
                    TreeEntry(path=name, type="tree", sha=self._store_tree(repo, value))
                )
            elif isinstance(value, Gitlink):
                entries.append(TreeEntry(path=name, type="commit", sha=value.sha))
            else:
                sha = _sha("blob", value)
                self.blobs[(repo, sha)] = value
                entries.append(TreeEntry(path=name, type="blob", sha=sha))
        sha = _sha("tree", [e.model_dump() for e in entries])
        self.trees[(repo, sha)] = entries
        return sha

    def _check(self, method: str, repo: str) -> None:
        self.calls.append((method, repo))
        error = self.failures.get((method, repo))
        if error is not None:
            raise error

    def count(self, method: str, repo: str | None = None) -> int:
        return sum(1 for m, r in self.calls if m == method and (repo is None or r == repo))

    async def list_repos_page(
        self, account: str, page: int, per_page: int
    ) -> list[RepoDescriptor]:
        self._check("list_repos_page", account)
        repos = self.accounts.get(account, [])
        return repos[(page - 1) * per_page : page * per_page]

    async def get_branch_head(self, repo_id: str, branch: str) -> str | None:
        self._check("get_branch_head", repo_id)
        if repo_id in self.blocked:
            await self.blocked[repo_id].wait()
        return self.heads.get(repo_id)

    async def get_commit_tree(self, repo_id: str, commit_sha: str) -> str:
        self._check("get_commit_tree", repo_id)
        return self.commits[(repo_id, commit_sha)]

    async def get_tree(self, repo_id: str, tree_sha: str) -> list[TreeEntry]:
        self._check("get_tree", repo_id)
        return list(self.trees[(repo_id, tree_sha)])

    async def get_blob(self, repo_id: str, blob_sha: str) -> bytes:
        self._check("get_blob", repo_id)
        return self.blobs[(repo_id, blob_sha)]

    async def get_rate_limit(self) -> RateLimitStatus:
        self._check("get_rate_limit", "")
        return self.rate


def manifest(name: str, version: str = "1.0.0", **dependencies: str) -> str:
    return json.dumps({"name": name, "version": version, "dependencies": dependencies})


def transport_error(operation: str = "fetch blob", target: str = "acme/widget") -> VCSError:
    return VCSError(operation, target, ConnectionError("connection reset"))


@pytest.fixture
def provider():
    return InMemoryProvider()


@pytest.fixture
def mock_vcs_provider():
    provider = MagicMock(spec=VCSProvider)
    provider.list_repos_page = AsyncMock(return_value=[])
    provider.get_branch_head = AsyncMock(return_value="c1")
    provider.get_commit_tree = AsyncMock(return_value="t-root")
    provider.get_tree = AsyncMock(return_value=[])
    provider.get_blob = AsyncMock(return_value=b"")
    provider.get_rate_limit = AsyncMock(
        return_value=RateLimitStatus(remaining=4000, limit=5000, reset=0)
    )
    return provider


@pytest.fixture
def crawl_config():
    return CrawlConfig(accounts=["acme"], per_page=2)


@pytest.fixture
def verwalker_config(crawl_config):
    return VerwalkerConfig(crawl=crawl_config, guard=GuardConfig(interval=0.01))


@pytest.fixture
def sample_index():
    """A small built index: widget depends on gadget (via git URL) and lodash."""
    return Index(
        packages={
            "widget": PackageRecord(
                repository="acme/widget",
                name="widget",
                version="1.4.0",
                dependencies={"gadget": "#v2.0", "lodash": "^4.17.0"},
                node_version="v0.10.26",
            ),
            "gadget": PackageRecord(
                repository="acme/gadget",
                name="gadget",
                version="2.0.0",
                dependencies={"lodash": "1.2.0"},
                node_version="v0.8.28",
                dependents={"widget"},
            ),
            "sprocket": PackageRecord(
                repository="acme/sprocket",
                name="sprocket",
                version="0.1.0",
                dependencies={"lodash": ">=5.0.0"},
            ),
            "lodash": PackageRecord(
                name="lodash", dependents={"widget", "gadget", "sprocket"}
            ),
        },
        repositories={
            "acme/widget": "widget",
            "acme/gadget": "gadget",
            "acme/sprocket": "sprocket",
        },
    )
