"""VCS providers for verwalker."""

import os

from verwalker.config.models import VCSConfig
from verwalker.vcs.base import VCSProvider
from verwalker.vcs.github import GitHubProvider
from verwalker.vcs.models import (
    FetchResult,
    GitObjectRefs,
    RateLimitStatus,
    RepoDescriptor,
    Submodule,
    TreeEntry,
    VCSError,
)


def create_provider(config: VCSConfig) -> VCSProvider:
    """Create a VCS provider from config.

    Resolves basic-auth credentials from the environment variables named in
    config.user_env and config.key_env.
    """
    if config.provider != "github":
        raise ValueError(
            f"Unsupported VCS provider: {config.provider!r}. "
            "Currently only 'github' is supported."
        )
    user = os.environ.get(config.user_env, "")
    key = os.environ.get(config.key_env, "")
    if not user or not key:
        raise ValueError(
            f"please set env vars {config.user_env} and {config.key_env}"
        )
    return GitHubProvider(user=user, key=key, config=config)


__all__ = [
    "FetchResult",
    "GitHubProvider",
    "GitObjectRefs",
    "RateLimitStatus",
    "RepoDescriptor",
    "Submodule",
    "TreeEntry",
    "VCSError",
    "VCSProvider",
    "create_provider",
]
