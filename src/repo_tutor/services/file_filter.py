"""File filtering — decide which tree entries are worth showing the model."""

from __future__ import annotations

from collections.abc import Iterable

from repo_tutor.domain.entities import TreeEntry

IGNORED_DIRS: frozenset[str] = frozenset(
    {
        "node_modules",
        "dist",
        "build",
        ".git",
        "coverage",
        "__tests__",
        "test",
        "vendor",
    }
)

IMPORTANT_EXTENSIONS: tuple[str, ...] = (
    ".md", ".json",
    ".ts", ".tsx", ".js", ".jsx",
    ".py", ".go", ".rs", ".java",
    ".c", ".cpp", ".h",
    ".css", ".html",
    ".yml", ".yaml",
)

README_NAME = "readme.md"
MANIFEST_SUFFIX = "package.json"


def _filename(path: str) -> str:
    return path.rsplit("/", maxsplit=1)[-1]


def _in_ignored_dir(path: str) -> bool:
    """Return *True* if ``path`` sits under one of ``IGNORED_DIRS``."""
    return any(
        f"/{name}/" in path or path.startswith(f"{name}/")
        for name in IGNORED_DIRS
    )


def is_readme(path: str) -> bool:
    return _filename(path).lower() == README_NAME


def is_important(entry: TreeEntry) -> bool:
    """Return *True* if the entry should be part of the outline prompt."""
    if not entry.is_file:
        return False
    if _in_ignored_dir(entry.path):
        return False
    if is_readme(entry.path) or entry.path.endswith(MANIFEST_SUFFIX):
        return True
    return entry.path.endswith(IMPORTANT_EXTENSIONS)


def filter_important(tree: Iterable[TreeEntry]) -> list[TreeEntry]:
    """Filter the raw tree, preserving input order."""
    return [entry for entry in tree if is_important(entry)]
