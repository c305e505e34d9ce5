"""Repository enumerator: pages through each account's repositories."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator

from verwalker.vcs.base import VCSProvider
from verwalker.vcs.models import RepoDescriptor

logger = logging.getLogger(__name__)


class RepoEnumerator:
    """Lazily yields repositories for a list of accounts.

    Pages are requested one at a time, and only after the consumer has
    taken every repository of the previous page. An empty page ends the
    current account. A failed page request raises VCSError and ends the
    enumeration.
    """

    def __init__(
        self, provider: VCSProvider, accounts: list[str], per_page: int = 100
    ) -> None:
        self.provider = provider
        self.accounts = list(accounts)
        self.per_page = per_page
        self.account: str | None = None
        self.page = 0

    def __aiter__(self) -> AsyncIterator[RepoDescriptor]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[RepoDescriptor]:
        for account in self.accounts:
            self.account = account
            self.page = 1
            while True:
                repos = await self.provider.list_repos_page(account, self.page, self.per_page)
                if not repos:
                    logger.debug("%s: no more repositories after page %d", account, self.page - 1)
                    break
                self.page += 1
                for repo in repos:
                    yield repo
