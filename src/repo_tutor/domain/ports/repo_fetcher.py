"""Port: repository fetcher — defined by the domain, implemented by infrastructure."""

from __future__ import annotations

from typing import Protocol

from repo_tutor.domain.entities import FileContent, TreeEntry
from repo_tutor.domain.value_objects import RepositoryIdentity


class RepoFetcher(Protocol):
    """Abstract contract for fetching GitHub repository data."""

    async def fetch_tree(
        self, identity: RepositoryIdentity, token: str | None = None
    ) -> list[TreeEntry]:
        """Return the recursive file tree of the default branch."""
        ...

    async def fetch_file(
        self, identity: RepositoryIdentity, path: str, token: str | None = None
    ) -> FileContent:
        """Return the decoded text of a single file.

        Implementations must never raise: a failed fetch yields a placeholder
        :class:`FileContent` instead.
        """
        ...
