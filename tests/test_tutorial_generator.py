"""Tests for outline / chapter generation."""

from __future__ import annotations

import asyncio
import json
from typing import Any

import pytest

from repo_tutor.domain.entities import Chapter, FileContent
from repo_tutor.domain.exceptions import GenerationError
from repo_tutor.services.tutorial_generator import (
    CHAPTER_ERROR_MARKDOWN,
    OUTLINE_ERROR_MESSAGE,
    OUTLINE_SCHEMA,
    TutorialGenerator,
    build_chapter_prompt,
    build_outline_prompt,
    parse_outline,
)

from conftest import FakeLlmGateway

CHAPTER = Chapter(id="chapter-0", title="Core", description="Main logic", relevant_files=("a.py",))


class ScriptedGateway:
    """Returns a fixed payload and records keyword arguments."""

    def __init__(self, payload: str = "", delay: float = 0.0) -> None:
        self.payload = payload
        self.delay = delay
        self.kwargs: list[dict[str, Any]] = []

    async def complete(self, system_prompt: str, user_prompt: str, **kwargs: Any) -> str:
        self.kwargs.append(kwargs)
        if self.delay:
            await asyncio.sleep(self.delay)
        return self.payload


class TestOutlinePrompt:
    def test_tree_truncated_after_limit(self) -> None:
        paths = [f"f{i}.py" for i in range(5)]
        prompt = build_outline_prompt("demo", paths, "", max_paths=3)
        assert "f2.py\n...(truncated)" in prompt
        assert "f3.py" not in prompt

    def test_tree_at_limit_not_marked(self) -> None:
        prompt = build_outline_prompt("demo", ["a.py", "b.py"], "", max_paths=2)
        assert "(truncated)" not in prompt

    def test_readme_capped(self) -> None:
        prompt = build_outline_prompt("demo", [], "x" * 50 + "TAIL", max_readme_chars=50)
        assert "x" * 50 in prompt
        assert "TAIL" not in prompt

    def test_repo_name_embedded(self) -> None:
        assert '"demo" project' in build_outline_prompt("demo", [], "")


class TestChapterPrompt:
    def test_files_in_input_order_with_labels(self) -> None:
        files = [FileContent("b.py", "B"), FileContent("a.py", "A")]
        prompt = build_chapter_prompt("demo", CHAPTER, files)
        assert prompt.index("--- File: b.py ---") < prompt.index("--- File: a.py ---")
        assert 'Chapter "Core"' in prompt
        assert "Main logic" in prompt
        assert "mermaid" in prompt

    def test_each_file_truncated_individually(self) -> None:
        files = [FileContent("big.py", "y" * 30 + "END"), FileContent("small.py", "ok")]
        prompt = build_chapter_prompt("demo", CHAPTER, files, max_file_chars=30)
        assert "y" * 30 + "\n...[truncated]" in prompt
        assert "END" not in prompt
        assert "--- File: small.py ---\nok\n" in prompt


class TestParseOutline:
    def test_wrapped_object(self) -> None:
        raw = json.dumps(
            {"chapters": [{"id": "x", "title": "T", "description": "D", "relevantFiles": ["a"]}]}
        )
        [item] = parse_outline(raw)
        assert (item.title, item.description, item.relevant_files) == ("T", "D", ("a",))

    def test_bare_array_in_fence(self) -> None:
        raw = '```json\n[{"title": "A"}, {"title": "B", "relevantFiles": ["x", 3]}]\n```'
        items = parse_outline(raw)
        assert [i.title for i in items] == ["A", "B"]
        assert items[0].relevant_files == ()
        assert items[1].relevant_files == ("x", "3")

    def test_empty_response_is_empty_outline(self) -> None:
        assert parse_outline("") == []

    @pytest.mark.parametrize(
        "raw",
        ["not json", '{"foo": 1}', '["a"]', '[{"description": "no title"}]', "42"],
    )
    def test_bad_shapes_raise(self, raw: str) -> None:
        with pytest.raises(GenerationError):
            parse_outline(raw)


class TestGenerateOutline:
    async def test_requests_structured_output(self) -> None:
        gateway = ScriptedGateway(json.dumps({"chapters": []}))
        generator = TutorialGenerator(gateway, outline_model="small")
        assert await generator.generate_outline("demo", ["a.py"], "") == []
        assert gateway.kwargs == [{"response_schema": OUTLINE_SCHEMA, "model": "small"}]

    async def test_ignores_model_ids(self, llm: FakeLlmGateway) -> None:
        outline = await TutorialGenerator(llm).generate_outline("demo", ["a.py"], "")
        assert [i.title for i in outline] == ["Setup", "Core"]
        assert not hasattr(outline[0], "id")

    async def test_gateway_failure_collapses(self, failing_llm: FakeLlmGateway) -> None:
        with pytest.raises(GenerationError) as info:
            await TutorialGenerator(failing_llm).generate_outline("demo", [], "")
        assert str(info.value) == OUTLINE_ERROR_MESSAGE

    async def test_parse_failure_collapses(self) -> None:
        generator = TutorialGenerator(ScriptedGateway("{{{"))
        with pytest.raises(GenerationError, match=OUTLINE_ERROR_MESSAGE):
            await generator.generate_outline("demo", [], "")

    async def test_timeout_collapses(self) -> None:
        generator = TutorialGenerator(ScriptedGateway("[]", delay=1.0), timeout_s=0.01)
        with pytest.raises(GenerationError, match=OUTLINE_ERROR_MESSAGE):
            await generator.generate_outline("demo", [], "")


class TestGenerateChapterBody:
    async def test_returns_markdown(self) -> None:
        gateway = ScriptedGateway("## Hello")
        generator = TutorialGenerator(gateway, chapter_model="big")
        body = await generator.generate_chapter_body("demo", CHAPTER, [FileContent("a.py", "x")])
        assert body == "## Hello"
        assert gateway.kwargs == [{"model": "big"}]

    async def test_failure_returns_error_document(self, llm: FakeLlmGateway) -> None:
        llm.chapter_error = RuntimeError("down")
        body = await TutorialGenerator(llm).generate_chapter_body("demo", CHAPTER, [])
        assert body == CHAPTER_ERROR_MARKDOWN
        assert body.startswith("## Error")

    async def test_timeout_returns_error_document(self) -> None:
        generator = TutorialGenerator(ScriptedGateway("late", delay=1.0), timeout_s=0.01)
        assert await generator.generate_chapter_body("demo", CHAPTER, []) == CHAPTER_ERROR_MARKDOWN
