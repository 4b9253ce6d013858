"""GitHub REST API adapter — implements the RepoFetcher port."""

from __future__ import annotations

import base64
import logging
from datetime import datetime, timezone
from typing import Any
from urllib.parse import quote

import httpx

from repo_tutor.domain.entities import EntryKind, FileContent, TreeEntry
from repo_tutor.domain.exceptions import (
    ContentExtractionError,
    GitHubApiError,
    RateLimitedError,
    RepositoryNotFoundError,
)
from repo_tutor.domain.value_objects import RepositoryIdentity

logger = logging.getLogger(__name__)

_GITHUB_API = "https://api.github.com"
_USER_AGENT = "repo-tutor/1.0"


def fetch_error_placeholder(path: str) -> str:
    """Body substituted for a file whose content could not be retrieved."""
    return f"// Error fetching content for {path}"


class GitHubRestAdapter:
    """Concrete RepoFetcher backed by the GitHub v3 REST API."""

    def __init__(self, client: httpx.AsyncClient, api_base: str = _GITHUB_API) -> None:
        self._client = client
        self._api_base = api_base.rstrip("/")

    async def fetch_tree(
        self, identity: RepositoryIdentity, token: str | None = None
    ) -> list[TreeEntry]:
        """Resolve the default branch, then GET its recursive tree."""
        resp = await self._api_get(f"/repos/{identity.owner}/{identity.repo}", token)
        branch = resp.json().get("default_branch", "main")

        resp = await self._api_get(
            f"/repos/{identity.owner}/{identity.repo}/git/trees/{quote(branch)}",
            token,
            params={"recursive": "1"},
        )
        tree = resp.json().get("tree", [])
        logger.debug("Fetched %d tree entries for %s@%s", len(tree), identity.full_name, branch)

        return [
            TreeEntry(
                path=item["path"],
                kind=EntryKind(item.get("type", "blob")),
                size=item.get("size"),
            )
            for item in tree
        ]

    async def fetch_file(
        self, identity: RepositoryIdentity, path: str, token: str | None = None
    ) -> FileContent:
        """GET /repos/{owner}/{repo}/contents/{path} → decoded FileContent.

        Never raises; any failure yields a placeholder body for *path*.
        """
        try:
            resp = await self._api_get(
                f"/repos/{identity.owner}/{identity.repo}/contents/{quote(path)}",
                token,
            )
            return FileContent(path=path, content=await self._decode_contents(resp.json()))
        except Exception as exc:
            logger.warning("Failed to fetch content for %s: %s", path, exc)
            return FileContent(path=path, content=fetch_error_placeholder(path))

    async def _decode_contents(self, data: Any) -> str:
        """Turn a contents-API payload into text (base64 or raw download)."""
        if not isinstance(data, dict):
            raise ContentExtractionError("Path does not refer to a single file.")

        if data.get("content") and data.get("encoding") == "base64":
            raw = base64.b64decode(data["content"].replace("\n", ""))
            return raw.decode("utf-8")

        download_url = data.get("download_url")
        if download_url:
            try:
                resp = await self._client.get(
                    download_url, headers={"User-Agent": _USER_AGENT}
                )
            except httpx.HTTPError as exc:
                raise ContentExtractionError(
                    f"Network error fetching {download_url}: {exc}"
                ) from exc
            if resp.status_code != 200:
                raise ContentExtractionError(
                    f"Raw download returned HTTP {resp.status_code} for {download_url}"
                )
            return resp.text

        raise ContentExtractionError("Could not decode content")

    def _headers(self, token: str | None) -> dict[str, str]:
        headers = {
            "Accept": "application/vnd.github.v3+json",
            "User-Agent": _USER_AGENT,
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    async def _api_get(
        self,
        endpoint: str,
        token: str | None,
        params: dict[str, str] | None = None,
    ) -> httpx.Response:
        """Perform a GitHub API GET request with error translation."""
        url = f"{self._api_base}{endpoint}"
        try:
            resp = await self._client.get(
                url, headers=self._headers(token), params=params
            )
        except httpx.HTTPError as exc:
            raise GitHubApiError(f"Network error fetching {url}: {exc}") from exc

        if resp.status_code == 200:
            return resp

        if resp.status_code == 404:
            raise RepositoryNotFoundError("Repository not found. Please check the URL.")

        if resp.status_code in (403, 429):
            message = (
                "GitHub API rate limit exceeded. "
                "Please try again later or provide a token."
            )
            reset_raw = resp.headers.get("x-ratelimit-reset", "")
            if reset_raw:
                try:
                    reset_str = datetime.fromtimestamp(int(reset_raw), tz=timezone.utc).strftime(
                        "%Y-%m-%d %H:%M:%S UTC"
                    )
                    message += f" Resets at {reset_str}."
                except (ValueError, OSError):
                    pass
            raise RateLimitedError(message)

        raise GitHubApiError(f"GitHub API Error: {resp.reason_phrase or resp.status_code}")
