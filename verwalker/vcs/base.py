"""Abstract VCS interface for verwalker."""

from abc import ABC, abstractmethod

from verwalker.vcs.models import RateLimitStatus, RepoDescriptor, TreeEntry


class VCSProvider(ABC):
    """Abstract base class for hosting API providers.

    Every method is a single network round trip. Methods that can hit a
    missing object return None for it; any other failure is raised as
    VCSError.
    """

    @abstractmethod
    async def list_repos_page(
        self, account: str, page: int, per_page: int
    ) -> list[RepoDescriptor]:
        """List one page of repositories for an account.

        Args:
            account: User or organization login.
            page: 1-based page number.
            per_page: Page size.
        """
        ...

    @abstractmethod
    async def get_branch_head(self, repo_id: str, branch: str) -> str | None:
        """Return the commit sha a branch points at.

        Returns None when the branch does not exist or the repository is empty.
        """
        ...

    @abstractmethod
    async def get_commit_tree(self, repo_id: str, commit_sha: str) -> str:
        """Return the root tree sha of a commit."""
        ...

    @abstractmethod
    async def get_tree(self, repo_id: str, tree_sha: str) -> list[TreeEntry]:
        """List the entries of one tree object (non-recursive)."""
        ...

    @abstractmethod
    async def get_blob(self, repo_id: str, blob_sha: str) -> bytes:
        """Fetch and decode the raw bytes of a blob."""
        ...

    @abstractmethod
    async def get_rate_limit(self) -> RateLimitStatus:
        """Read the remaining/total core quota."""
        ...
