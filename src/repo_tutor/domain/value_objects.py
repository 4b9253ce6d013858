"""Value objects — self-validating domain primitives."""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import urlsplit

from repo_tutor.domain.exceptions import InvalidUrlError


@dataclass(frozen=True, slots=True)
class RepositoryIdentity:
    """Owner / repository pair resolved from a repository URL.

    The first two non-empty path segments of the URL become *owner* and
    *repo*; anything after them (``/tree/main/src``, ``/issues`` …) is
    ignored.  A URL without a scheme and host, or with fewer than two
    segments, is rejected.
    """

    owner: str
    repo: str

    @classmethod
    def from_url(cls, url: str) -> RepositoryIdentity:
        """Parse a raw URL string."""
        url = url.strip()
        try:
            parts = urlsplit(url)
        except ValueError as exc:
            raise InvalidUrlError(f"Invalid GitHub URL: '{url}'.") from exc

        segments = [s for s in parts.path.split("/") if s]
        if not parts.scheme or not parts.netloc or len(segments) < 2:
            raise InvalidUrlError(
                f"Invalid GitHub URL: '{url}'. "
                "Expected format: https://github.com/<owner>/<repo>"
            )
        return cls(owner=segments[0], repo=segments[1])

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"
