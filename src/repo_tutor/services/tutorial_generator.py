"""Tutorial generation — outline and chapter-body prompts over the LLM port.

Outline failures raise :class:`GenerationError`.  Chapter-body failures
never raise; they come back as an inline Markdown error document.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Sequence
from typing import Any

from repo_tutor.domain.entities import Chapter, FileContent, OutlineItem
from repo_tutor.domain.exceptions import GenerationError
from repo_tutor.domain.ports.llm_gateway import LlmGateway

logger = logging.getLogger(__name__)

OUTLINE_ERROR_MESSAGE = "Failed to generate tutorial outline."
CHAPTER_ERROR_MARKDOWN = "## Error\n\nFailed to generate this chapter. Please try again."

TREE_TRUNCATION_MARKER = "...(truncated)"
FILE_TRUNCATION_MARKER = "...[truncated]"

# ── Prompt templates ────────────────────────────────────────────────────────

OUTLINE_SYSTEM_PROMPT = "You are an expert technical writer and code educator."

OUTLINE_PROMPT = """\
You are a senior software architect creating a comprehensive onboarding \
tutorial for a new developer joining the "{repo_name}" project.

Based on the file structure and the README below, create a structured \
"Table of Contents" for a tutorial series that gradually explains the codebase.
The chapters should be logical: starting from "Overview & Setup", moving to \
"Core Architecture", "Key Features", and finally "Advanced/Utility".

For each chapter, list the *specific file paths* from the provided tree that \
are most relevant to read/analyze for that chapter.

File Tree:
{file_tree}

README:
{readme}
"""

CHAPTER_SYSTEM_PROMPT = """\
You are a world-class developer advocate writing high-quality documentation. \
You specialize in creating clear visual diagrams using Mermaid.js."""

CHAPTER_PROMPT = """\
Context: You are writing Chapter "{title}" for the "{repo_name}" codebase tutorial.
Chapter Description: {description}

Here are the relevant source code files for this chapter:
{codebase_context}

Task: Write a detailed, educational Markdown tutorial for this chapter.

Guidelines:
1. **Structure**: Use H2 (##) for main sections.
2. **Explanation**: Explain the *purpose* of the code, how the components \
interact, and the data flow.
3. **Code**: Use code blocks (with language specified, e.g. `python`) to show \
snippets. Do NOT just dump the whole code.
4. **Visuals**: You MUST use **Mermaid diagrams** to visualize relationships, \
data flows, or class structures where complex interactions exist.
   - Use `mermaid` code blocks.
   - Example:
     ```mermaid
     graph TD;
       A[Client] -->|Request| B(Server);
     ```
   - Create diagrams for: Call hierarchies, Data models, State machines, or \
Component architecture.
5. **Tone**: Be concise, professional, and insightful.

If a file is missing or truncated, infer its role from context.
"""

OUTLINE_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "chapters": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "id": {"type": "string"},
                    "title": {"type": "string"},
                    "description": {"type": "string"},
                    "relevantFiles": {"type": "array", "items": {"type": "string"}},
                },
                "required": ["id", "title", "description", "relevantFiles"],
                "additionalProperties": False,
            },
        },
    },
    "required": ["chapters"],
    "additionalProperties": False,
}


# ── Prompt construction ─────────────────────────────────────────────────────


def render_file_tree(file_paths: Sequence[str], max_paths: int) -> str:
    """Join paths one per line, capping the listing at *max_paths*."""
    if len(file_paths) > max_paths:
        return "\n".join(file_paths[:max_paths]) + "\n" + TREE_TRUNCATION_MARKER
    return "\n".join(file_paths)


def render_codebase_context(files: Sequence[FileContent], max_chars: int) -> str:
    """Label each file and cap its body at *max_chars* characters."""
    parts: list[str] = []
    for f in files:
        content = f.content
        if len(content) > max_chars:
            content = content[:max_chars] + "\n" + FILE_TRUNCATION_MARKER
        parts.append(f"\n--- File: {f.path} ---\n{content}\n")
    return "".join(parts)


def build_outline_prompt(
    repo_name: str,
    file_paths: Sequence[str],
    readme: str,
    *,
    max_paths: int = 2_000,
    max_readme_chars: int = 10_000,
) -> str:
    return OUTLINE_PROMPT.format(
        repo_name=repo_name,
        file_tree=render_file_tree(file_paths, max_paths),
        readme=readme[:max_readme_chars],
    )


def build_chapter_prompt(
    repo_name: str,
    chapter: Chapter,
    files: Sequence[FileContent],
    *,
    max_file_chars: int = 20_000,
) -> str:
    return CHAPTER_PROMPT.format(
        title=chapter.title,
        repo_name=repo_name,
        description=chapter.description,
        codebase_context=render_codebase_context(files, max_file_chars),
    )


# ── Response parsing ────────────────────────────────────────────────────────


def parse_outline(raw: str) -> list[OutlineItem]:
    """Parse the model's JSON outline into :class:`OutlineItem` objects.

    Accepts either a bare JSON array or an object wrapping the array under
    ``"chapters"``, optionally inside a Markdown code fence.  Any ``id`` the
    model proposes is dropped.
    """
    text = raw.strip()

    # Strip markdown code fences if present
    if text.startswith("```"):
        first_nl = text.index("\n") if "\n" in text else 3
        text = text[first_nl + 1 :]
        if text.endswith("```"):
            text = text[:-3]
        text = text.strip()

    try:
        data: Any = json.loads(text or "[]")
    except json.JSONDecodeError as exc:
        raise GenerationError(f"LLM returned invalid JSON: {exc}") from exc

    if isinstance(data, dict):
        data = data.get("chapters")
    if not isinstance(data, list):
        raise GenerationError("LLM response is not a list of chapters.")

    items: list[OutlineItem] = []
    for entry in data:
        if not isinstance(entry, dict):
            raise GenerationError("LLM response contains a non-object chapter.")
        title = entry.get("title")
        if not isinstance(title, str) or not title:
            raise GenerationError("LLM response chapter is missing 'title'.")
        description = entry.get("description")
        files = entry.get("relevantFiles")
        if not isinstance(files, list):
            files = []
        items.append(
            OutlineItem(
                title=title,
                description=description if isinstance(description, str) else "",
                relevant_files=tuple(str(p) for p in files if p),
            )
        )
    return items


# ── Generator ───────────────────────────────────────────────────────────────


class TutorialGenerator:
    """Builds prompts, calls the LLM and interprets its answers.

    Parameters
    ----------
    llm_gateway:
        Adapter that can send prompts to an LLM.
    outline_model / chapter_model:
        Model names passed through to the gateway; ``None`` uses its default.
    timeout_s:
        Upper bound for each model round trip.
    """

    def __init__(
        self,
        llm_gateway: LlmGateway,
        *,
        outline_model: str | None = None,
        chapter_model: str | None = None,
        timeout_s: float = 180.0,
        max_tree_paths: int = 2_000,
        max_readme_chars: int = 10_000,
        max_file_chars: int = 20_000,
    ) -> None:
        self._llm = llm_gateway
        self._outline_model = outline_model
        self._chapter_model = chapter_model
        self._timeout_s = timeout_s
        self._max_tree_paths = max_tree_paths
        self._max_readme_chars = max_readme_chars
        self._max_file_chars = max_file_chars

    async def generate_outline(
        self, repo_name: str, file_paths: Sequence[str], readme: str
    ) -> list[OutlineItem]:
        """Ask the model for an ordered chapter outline."""
        prompt = build_outline_prompt(
            repo_name,
            file_paths,
            readme,
            max_paths=self._max_tree_paths,
            max_readme_chars=self._max_readme_chars,
        )
        try:
            raw = await asyncio.wait_for(
                self._llm.complete(
                    OUTLINE_SYSTEM_PROMPT,
                    prompt,
                    response_schema=OUTLINE_SCHEMA,
                    model=self._outline_model,
                ),
                timeout=self._timeout_s,
            )
            outline = parse_outline(raw)
        except Exception as exc:
            logger.error("Outline generation failed for %s: %s", repo_name, exc)
            raise GenerationError(OUTLINE_ERROR_MESSAGE) from exc

        logger.info("Outline for %s has %d chapter(s)", repo_name, len(outline))
        return outline

    async def generate_chapter_body(
        self, repo_name: str, chapter: Chapter, files: Sequence[FileContent]
    ) -> str:
        """Return the chapter's Markdown; never raises."""
        prompt = build_chapter_prompt(
            repo_name, chapter, files, max_file_chars=self._max_file_chars
        )
        try:
            return await asyncio.wait_for(
                self._llm.complete(
                    CHAPTER_SYSTEM_PROMPT, prompt, model=self._chapter_model
                ),
                timeout=self._timeout_s,
            )
        except Exception as exc:
            logger.error("Chapter generation failed for %r: %s", chapter.title, exc)
            return CHAPTER_ERROR_MARKDOWN
