"""Global exception handlers — translate domain errors to HTTP responses.

Each domain exception maps to a specific HTTP status code and the
standard ``{"status": "error", "message": "..."}`` envelope.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from repo_tutor.domain.exceptions import (
    AnalysisInProgressError,
    ChapterNotFoundError,
    ContentExtractionError,
    GenerationError,
    GitHubApiError,
    InvalidUrlError,
    RateLimitedError,
    RepositoryNotFoundError,
    RepoTutorError,
    SessionStateError,
)

logger = logging.getLogger(__name__)

_EXCEPTION_STATUS: list[tuple[type[RepoTutorError], int]] = [
    (InvalidUrlError, 422),
    (RepositoryNotFoundError, 404),
    (ChapterNotFoundError, 404),
    (SessionStateError, 409),
    (AnalysisInProgressError, 409),
    (RateLimitedError, 429),
    (GitHubApiError, 502),
    (GenerationError, 502),
    (ContentExtractionError, 500),
]


def _error_json(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"status": "error", "message": message},
    )


def status_for(exc: RepoTutorError) -> int:
    """Return the HTTP status for *exc*, honouring subclass order."""
    for exc_type, code in _EXCEPTION_STATUS:
        if isinstance(exc, exc_type):
            return code
    return 500


def register_error_handlers(app: FastAPI) -> None:
    """Attach exception handlers to the FastAPI application."""

    # ── Domain exceptions ───────────────────────────────────────────────

    @app.exception_handler(RepoTutorError)
    async def domain_handler(request: Request, exc: RepoTutorError) -> JSONResponse:
        code = status_for(exc)
        logger.warning("%s on %s: %s", type(exc).__name__, request.url.path, exc)
        return _error_json(code, str(exc))

    # ── Pydantic / FastAPI validation errors ────────────────────────────

    @app.exception_handler(RequestValidationError)
    async def validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        messages = [
            f"{'.'.join(str(p) for p in err.get('loc', []))}: {err.get('msg', 'validation error')}"
            for err in exc.errors()
        ]
        return _error_json(422, "; ".join(messages))

    # ── Catch-all for unexpected errors ─────────────────────────────────

    @app.exception_handler(Exception)
    async def generic_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled exception on %s", request.url.path)
        return _error_json(500, "An unexpected error occurred. Please try again later.")
