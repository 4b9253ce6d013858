"""Domain exception hierarchy.

Each exception maps to a specific HTTP status code at the interface layer.
Inner layers raise these; the outermost error-handler translates them.
"""

from __future__ import annotations


class RepoTutorError(Exception):
    """Base exception for the entire application."""


# ── Input validation ────────────────────────────────────────────────────────


class InvalidUrlError(RepoTutorError):
    """The supplied URL does not name an ``owner/repo`` pair."""


# ── GitHub API errors ───────────────────────────────────────────────────────


class RepositoryNotFoundError(RepoTutorError):
    """The repository does not exist or is not accessible (404)."""


class RateLimitedError(RepoTutorError):
    """GitHub API rate limit exceeded (403 / 429)."""


class GitHubApiError(RepoTutorError):
    """Any other GitHub API failure; carries the status text."""


# ── LLM errors ──────────────────────────────────────────────────────────────


class GenerationError(RepoTutorError):
    """The model call failed or returned unparseable output."""


# ── Session errors ──────────────────────────────────────────────────────────


class ChapterNotFoundError(RepoTutorError):
    """The requested chapter id is not part of the current outline."""


class SessionStateError(RepoTutorError):
    """The operation is not valid in the session's current phase."""


class AnalysisInProgressError(RepoTutorError):
    """Another repository is already being analyzed."""


# ── Processing errors ───────────────────────────────────────────────────────


class ContentExtractionError(RepoTutorError):
    """Failed to extract or decode repository content."""
