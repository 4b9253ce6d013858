"""FastAPI application factory."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from repo_tutor.interface.dependencies import shutdown, startup
from repo_tutor.interface.error_handlers import register_error_handlers
from repo_tutor.interface.routes import router


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage startup / shutdown of shared resources."""
    await startup()
    yield
    await shutdown()


def create_app() -> FastAPI:
    """Build and wire the FastAPI application."""
    app = FastAPI(
        title="Repo Tutor",
        version="1.0.0",
        description=(
            "Turns a public GitHub repository into a chapter-based tutorial: "
            "an AI-generated outline keyed to the repository's files, and "
            "chapter bodies generated on first selection."
        ),
        lifespan=_lifespan,
    )

    register_error_handlers(app)
    app.include_router(router)

    @app.get("/health", include_in_schema=False)
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    return app
