"""FastAPI dependency injection wiring."""

from __future__ import annotations

import httpx

from repo_tutor.infrastructure.config import get_settings
from repo_tutor.infrastructure.github_rest_adapter import GitHubRestAdapter
from repo_tutor.infrastructure.openai_adapter import OpenAIAdapter
from repo_tutor.services.tutorial_generator import TutorialGenerator
from repo_tutor.services.tutorial_orchestrator import TutorialOrchestrator

_http_client: httpx.AsyncClient | None = None
_openai_adapter: OpenAIAdapter | None = None
_orchestrator: TutorialOrchestrator | None = None


async def startup() -> None:
    """Initialise shared resources — called from the lifespan context manager."""
    global _http_client, _openai_adapter, _orchestrator  # noqa: PLW0603

    settings = get_settings()
    _http_client = httpx.AsyncClient(timeout=httpx.Timeout(settings.http_timeout_s))
    _openai_adapter = OpenAIAdapter(
        api_key=settings.openai_api_key.get_secret_value(),
        model=settings.openai_outline_model,
    )
    generator = TutorialGenerator(
        _openai_adapter,
        outline_model=settings.openai_outline_model,
        chapter_model=settings.openai_chapter_model,
        timeout_s=settings.generation_timeout_s,
        max_tree_paths=settings.max_tree_paths,
        max_readme_chars=settings.max_readme_chars,
        max_file_chars=settings.max_file_chars,
    )
    token = settings.github_token.get_secret_value() if settings.github_token else None
    _orchestrator = TutorialOrchestrator(
        repo_fetcher=GitHubRestAdapter(client=_http_client),
        generator=generator,
        default_token=token,
        max_concurrent_fetches=settings.max_concurrent_fetches,
    )


async def shutdown() -> None:
    """Release shared resources."""
    global _http_client, _openai_adapter, _orchestrator  # noqa: PLW0603

    _orchestrator = None
    if _http_client:
        await _http_client.aclose()
        _http_client = None
    if _openai_adapter:
        await _openai_adapter.close()
        _openai_adapter = None


def get_orchestrator() -> TutorialOrchestrator:
    """Return the process-wide orchestrator (one tutorial session per process)."""
    assert _orchestrator is not None, "startup() was not called"
    return _orchestrator
