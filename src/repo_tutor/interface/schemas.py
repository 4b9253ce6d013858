"""Pydantic request / response DTOs for the API boundary."""

from __future__ import annotations

from pydantic import BaseModel, SecretStr, field_validator

from repo_tutor.domain.entities import Chapter, ChapterStatus, Phase


class AnalyzeRequest(BaseModel):
    """Request body for ``POST /analyze``."""

    repo_url: str
    github_token: SecretStr | None = None

    @field_validator("repo_url")
    @classmethod
    def _must_not_be_empty(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            msg = "repo_url must not be empty."
            raise ValueError(msg)
        return stripped

    def token(self) -> str | None:
        if self.github_token is None:
            return None
        return self.github_token.get_secret_value().strip() or None


class ChapterSummary(BaseModel):
    """One entry of the table of contents."""

    id: str
    title: str
    description: str
    relevant_files: list[str]
    status: ChapterStatus

    @classmethod
    def from_chapter(cls, chapter: Chapter, status: ChapterStatus) -> ChapterSummary:
        return cls(
            id=chapter.id,
            title=chapter.title,
            description=chapter.description,
            relevant_files=list(chapter.relevant_files),
            status=status,
        )


class SessionResponse(BaseModel):
    """Snapshot of the tutorial session."""

    phase: Phase
    repo_url: str
    owner: str | None = None
    repo: str | None = None
    loading_step: str = ""
    error: str | None = None
    current_chapter_id: str | None = None
    chapters: list[ChapterSummary] = []


class ChapterResponse(BaseModel):
    """A chapter together with its Markdown body (``None`` until generated)."""

    chapter: ChapterSummary
    content: str | None = None


class ErrorResponse(BaseModel):
    """Standard error envelope returned on all failure paths."""

    status: str = "error"
    message: str
