"""Pytest fixtures and in-memory fakes for repo_tutor tests."""

from __future__ import annotations

import asyncio
import json
from typing import Any

import pytest

from repo_tutor.domain.entities import EntryKind, FileContent, TreeEntry
from repo_tutor.domain.exceptions import GenerationError
from repo_tutor.domain.value_objects import RepositoryIdentity
from repo_tutor.infrastructure.github_rest_adapter import fetch_error_placeholder
from repo_tutor.services.tutorial_generator import TutorialGenerator
from repo_tutor.services.tutorial_orchestrator import TutorialOrchestrator


def blob(path: str, size: int = 100) -> TreeEntry:
    return TreeEntry(path=path, kind=EntryKind.BLOB, size=size)


def tree_dir(path: str) -> TreeEntry:
    return TreeEntry(path=path, kind=EntryKind.TREE)


class FakeRepoFetcher:
    """In-memory RepoFetcher recording every call."""

    def __init__(
        self,
        tree: list[TreeEntry] | None = None,
        files: dict[str, str] | None = None,
        tree_error: Exception | None = None,
    ) -> None:
        self.tree = tree if tree is not None else []
        self.files = files or {}
        self.tree_error = tree_error
        self.broken: set[str] = set()
        self.tree_calls: list[tuple[RepositoryIdentity, str | None]] = []
        self.file_calls: list[tuple[str, str | None]] = []

    async def fetch_tree(
        self, identity: RepositoryIdentity, token: str | None = None
    ) -> list[TreeEntry]:
        self.tree_calls.append((identity, token))
        await asyncio.sleep(0)
        if self.tree_error is not None:
            raise self.tree_error
        return list(self.tree)

    async def fetch_file(
        self, identity: RepositoryIdentity, path: str, token: str | None = None
    ) -> FileContent:
        self.file_calls.append((path, token))
        await asyncio.sleep(0)
        if path in self.broken or path not in self.files:
            return FileContent(path=path, content=fetch_error_placeholder(path))
        return FileContent(path=path, content=self.files[path])


class FakeLlmGateway:
    """LlmGateway fake: JSON outline for schema calls, Markdown otherwise.

    Chapter calls can be held open with :attr:`release` to exercise
    in-flight behaviour.
    """

    def __init__(self, outline: list[dict[str, Any]] | None = None) -> None:
        self.outline = outline if outline is not None else []
        self.outline_error: Exception | None = None
        self.chapter_error: Exception | None = None
        self.outline_calls: list[str] = []
        self.chapter_calls: list[str] = []
        self.release: asyncio.Event | None = None

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        response_schema: dict[str, Any] | None = None,
        model: str | None = None,
    ) -> str:
        if response_schema is not None:
            self.outline_calls.append(user_prompt)
            if self.outline_error is not None:
                raise self.outline_error
            return json.dumps({"chapters": self.outline})

        self.chapter_calls.append(user_prompt)
        if self.release is not None:
            await self.release.wait()
        if self.chapter_error is not None:
            raise self.chapter_error
        title = user_prompt.split('Chapter "', 1)[1].split('"', 1)[0]
        return f"## {title}\n\nbody #{len(self.chapter_calls)}"


SAMPLE_OUTLINE: list[dict[str, Any]] = [
    {
        "id": "intro",
        "title": "Setup",
        "description": "Getting started",
        "relevantFiles": ["README.md", "package.json"],
    },
    {
        "id": "intro",
        "title": "Core",
        "description": "Main logic",
        "relevantFiles": ["src/index.ts", "broken/path.ts"],
    },
]


@pytest.fixture
def fetcher() -> FakeRepoFetcher:
    return FakeRepoFetcher(
        tree=[
            blob("README.md"),
            blob("package.json"),
            tree_dir("src"),
            blob("src/index.ts"),
            blob("node_modules/x/index.js"),
            blob("test/util.test.ts"),
        ],
        files={
            "README.md": "# Demo\n\nA demo project.",
            "package.json": '{"name": "demo"}',
            "src/index.ts": "export const main = () => 42;",
        },
    )


@pytest.fixture
def llm() -> FakeLlmGateway:
    return FakeLlmGateway(outline=[dict(item) for item in SAMPLE_OUTLINE])


@pytest.fixture
def orchestrator(fetcher: FakeRepoFetcher, llm: FakeLlmGateway) -> TutorialOrchestrator:
    return TutorialOrchestrator(
        repo_fetcher=fetcher,
        generator=TutorialGenerator(llm, timeout_s=5.0),
        default_token="env-token",
    )


@pytest.fixture
def failing_llm() -> FakeLlmGateway:
    gateway = FakeLlmGateway()
    gateway.outline_error = GenerationError("boom")
    return gateway
