"""API routes — thin controllers that delegate to the orchestrator."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from repo_tutor.domain.entities import ChapterStatus
from repo_tutor.interface.dependencies import get_orchestrator
from repo_tutor.interface.schemas import (
    AnalyzeRequest,
    ChapterResponse,
    ChapterSummary,
    SessionResponse,
)
from repo_tutor.services.tutorial_orchestrator import TutorialOrchestrator

router = APIRouter()


def _session_view(orchestrator: TutorialOrchestrator) -> SessionResponse:
    session = orchestrator.session
    return SessionResponse(
        phase=session.phase,
        repo_url=session.repo_url,
        owner=session.identity.owner if session.identity else None,
        repo=session.identity.repo if session.identity else None,
        loading_step=session.loading_step,
        error=session.error,
        current_chapter_id=session.current_chapter_id,
        chapters=[
            ChapterSummary.from_chapter(c, orchestrator.chapter_status(c.id))
            for c in session.chapters
        ],
    )


def _chapter_view(orchestrator: TutorialOrchestrator, chapter_id: str) -> ChapterResponse:
    chapter = orchestrator.get_chapter(chapter_id)
    return ChapterResponse(
        chapter=ChapterSummary.from_chapter(chapter, orchestrator.chapter_status(chapter_id)),
        content=orchestrator.chapter_content(chapter_id),
    )


@router.post(
    "/analyze",
    response_model=SessionResponse,
    responses={
        422: {"description": "Invalid repository URL"},
        404: {"description": "Repository not found"},
        409: {"description": "Another repository is being analyzed"},
        429: {"description": "GitHub API rate limit exceeded"},
        502: {"description": "GitHub API or LLM provider error"},
    },
)
async def analyze(
    body: AnalyzeRequest,
    orchestrator: TutorialOrchestrator = Depends(get_orchestrator),
) -> SessionResponse:
    """Build the chapter outline for a public GitHub repository."""
    await orchestrator.analyze(body.repo_url, body.token())
    return _session_view(orchestrator)


@router.get("/session", response_model=SessionResponse)
async def get_session(
    orchestrator: TutorialOrchestrator = Depends(get_orchestrator),
) -> SessionResponse:
    """Current phase, progress text, last error and table of contents."""
    return _session_view(orchestrator)


@router.post("/reset", response_model=SessionResponse)
async def reset(
    orchestrator: TutorialOrchestrator = Depends(get_orchestrator),
) -> SessionResponse:
    orchestrator.reset()
    return _session_view(orchestrator)


@router.post(
    "/chapters/{chapter_id}/select",
    response_model=ChapterResponse,
    responses={
        404: {"description": "Unknown chapter"},
        409: {"description": "No tutorial loaded"},
    },
)
async def select_chapter(
    chapter_id: str,
    orchestrator: TutorialOrchestrator = Depends(get_orchestrator),
) -> ChapterResponse:
    """Make a chapter current, generating its body on first selection."""
    chapter = orchestrator.get_chapter(chapter_id)
    # The session may be replaced while the body is generated.
    content = await orchestrator.select_chapter(chapter_id)
    return ChapterResponse(
        chapter=ChapterSummary.from_chapter(chapter, ChapterStatus.READY),
        content=content,
    )


@router.get(
    "/chapters/{chapter_id}",
    response_model=ChapterResponse,
    responses={
        404: {"description": "Unknown chapter"},
        409: {"description": "No tutorial loaded"},
    },
)
async def get_chapter(
    chapter_id: str,
    orchestrator: TutorialOrchestrator = Depends(get_orchestrator),
) -> ChapterResponse:
    """Return a chapter and its cached body without generating anything."""
    return _chapter_view(orchestrator, chapter_id)
