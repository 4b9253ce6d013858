"""Domain entities — pure data structures with no external dependencies."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from repo_tutor.domain.value_objects import RepositoryIdentity


class EntryKind(str, Enum):
    """Node type reported by the GitHub tree API."""

    BLOB = "blob"
    TREE = "tree"
    COMMIT = "commit"  # submodule


class Phase(str, Enum):
    """Lifecycle of a tutorial session."""

    LANDING = "landing"
    ANALYZING = "analyzing"
    TUTORIAL = "tutorial"


class ChapterStatus(str, Enum):
    """Generation state of a single chapter body."""

    ABSENT = "absent"
    PENDING = "pending"
    READY = "ready"


@dataclass(frozen=True, slots=True)
class TreeEntry:
    """A single node from the GitHub tree API (blob or sub-tree)."""

    path: str
    kind: EntryKind
    size: int | None = None

    @property
    def is_file(self) -> bool:
        return self.kind is EntryKind.BLOB


@dataclass(frozen=True, slots=True)
class FileContent:
    """A fetched file with its decoded text."""

    path: str
    content: str


@dataclass(frozen=True, slots=True)
class OutlineItem:
    """One chapter proposal as returned by the outline generator."""

    title: str
    description: str
    relevant_files: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class Chapter:
    """A tutorial chapter with its canonical, session-stable id."""

    id: str
    title: str
    description: str
    relevant_files: tuple[str, ...] = ()


@dataclass(slots=True)
class TutorialSession:
    """The single in-memory tutorial state.

    Only :class:`~repo_tutor.services.tutorial_orchestrator.TutorialOrchestrator`
    mutates instances of this class; every other consumer treats it as
    read-only.
    """

    phase: Phase = Phase.LANDING
    repo_url: str = ""
    identity: RepositoryIdentity | None = None
    tree: list[TreeEntry] = field(default_factory=list)
    chapters: list[Chapter] = field(default_factory=list)
    current_chapter_id: str | None = None
    content_by_chapter_id: dict[str, str] = field(default_factory=dict)
    loading_step: str = ""
    error: str | None = None

    def find_chapter(self, chapter_id: str) -> Chapter | None:
        for chapter in self.chapters:
            if chapter.id == chapter_id:
                return chapter
        return None
