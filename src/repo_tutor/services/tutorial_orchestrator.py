"""Tutorial orchestrator — owns the session and drives both phases.

Analyze: URL → tree → README → importance filter → outline → chapters.
Chapter selection: cached? → concurrent file fetch → chapter body → cache.

This is the only component that mutates :class:`TutorialSession`.  It
depends only on the :class:`RepoFetcher` port and the
:class:`TutorialGenerator`; the interface layer injects concrete adapters.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence

from repo_tutor.domain.entities import (
    Chapter,
    ChapterStatus,
    FileContent,
    OutlineItem,
    Phase,
    TreeEntry,
    TutorialSession,
)
from repo_tutor.domain.exceptions import (
    AnalysisInProgressError,
    ChapterNotFoundError,
    InvalidUrlError,
    SessionStateError,
)
from repo_tutor.domain.ports.repo_fetcher import RepoFetcher
from repo_tutor.domain.value_objects import RepositoryIdentity
from repo_tutor.services.file_filter import filter_important, is_readme
from repo_tutor.services.single_flight import EntryState, SingleFlightCache
from repo_tutor.services.tutorial_generator import TutorialGenerator

logger = logging.getLogger(__name__)

STEP_FETCH_TREE = "Fetching repository structure..."
STEP_READ_DOCS = "Reading documentation..."
STEP_OUTLINE = "Generating study plan with AI..."

_GENERIC_ERROR = "An error occurred while analyzing the repository."


def assign_chapter_ids(outline: Sequence[OutlineItem]) -> list[Chapter]:
    """Give chapters canonical ids ``chapter-0 … chapter-(N-1)`` in outline order."""
    return [
        Chapter(
            id=f"chapter-{index}",
            title=item.title,
            description=item.description,
            relevant_files=tuple(item.relevant_files),
        )
        for index, item in enumerate(outline)
    ]


def find_root_readme(tree: Sequence[TreeEntry]) -> TreeEntry | None:
    for entry in tree:
        if entry.is_file and "/" not in entry.path and is_readme(entry.path):
            return entry
    return None


class TutorialOrchestrator:
    """State machine for one tutorial session.

    Parameters
    ----------
    repo_fetcher:
        Adapter that can fetch the tree and file content from GitHub.
    generator:
        Builds prompts and calls the LLM for outlines and chapter bodies.
    default_token:
        GitHub token used when :meth:`analyze` is called without one.
    max_concurrent_fetches:
        Upper bound on simultaneous file downloads for one chapter.
    """

    def __init__(
        self,
        repo_fetcher: RepoFetcher,
        generator: TutorialGenerator,
        default_token: str | None = None,
        max_concurrent_fetches: int = 10,
    ) -> None:
        self._fetcher = repo_fetcher
        self._generator = generator
        self._default_token = default_token
        self._max_concurrent = max_concurrent_fetches

        self._session = TutorialSession()
        self._token: str | None = default_token
        self._analysis: SingleFlightCache[str, TutorialSession] = SingleFlightCache(
            retain=False
        )
        self._chapters: SingleFlightCache[str, str] = SingleFlightCache()

    # ── Read access ─────────────────────────────────────────────────────

    @property
    def session(self) -> TutorialSession:
        """The current session; callers must treat it as read-only."""
        return self._session

    def get_chapter(self, chapter_id: str) -> Chapter:
        return self._require_chapter(chapter_id)

    def current_chapter(self) -> Chapter | None:
        if self._session.current_chapter_id is None:
            return None
        return self._session.find_chapter(self._session.current_chapter_id)

    def chapter_status(self, chapter_id: str) -> ChapterStatus:
        self._require_chapter(chapter_id)
        if chapter_id in self._session.content_by_chapter_id:
            return ChapterStatus.READY
        return ChapterStatus(self._chapters.status(chapter_id).value)

    def chapter_content(self, chapter_id: str) -> str | None:
        """Return cached content without triggering generation."""
        self._require_chapter(chapter_id)
        return self._session.content_by_chapter_id.get(chapter_id)

    # ── Analyze phase ───────────────────────────────────────────────────

    async def analyze(self, repo_url: str, token: str | None = None) -> TutorialSession:
        """Run the analyze sequence and return the committed session.

        Concurrent calls for the same repository share one run.
        """
        try:
            identity = RepositoryIdentity.from_url(repo_url)
        except InvalidUrlError as exc:
            self._session.error = str(exc)
            raise

        key = identity.full_name
        if self._analysis.status(key) is not EntryState.PENDING:
            self._begin_analysis(repo_url, identity, token)

        session, token = self._session, self._token
        return await self._analysis.get_or_compute(
            key, lambda: self._run_analysis(session, token)
        )

    def _begin_analysis(
        self, repo_url: str, identity: RepositoryIdentity, token: str | None
    ) -> None:
        # Runs before the first await, so a second call in the same loop
        # turn already sees ANALYZING.
        if self._session.phase is Phase.ANALYZING:
            busy = self._session.identity
            raise AnalysisInProgressError(
                f"Already analyzing {busy.full_name if busy else 'a repository'}."
            )
        self._session = TutorialSession(
            phase=Phase.ANALYZING,
            repo_url=repo_url,
            identity=identity,
            loading_step=STEP_FETCH_TREE,
        )
        self._token = token or self._default_token
        self._chapters = SingleFlightCache()

    async def _run_analysis(
        self, session: TutorialSession, token: str | None
    ) -> TutorialSession:
        identity = session.identity
        assert identity is not None, "analysis without a repository identity"
        logger.info("Analyzing %s", identity.full_name)

        try:
            # 1. Full tree
            session.loading_step = STEP_FETCH_TREE
            tree = await self._fetcher.fetch_tree(identity, token)

            # 2. README (optional)
            session.loading_step = STEP_READ_DOCS
            readme = ""
            readme_entry = find_root_readme(tree)
            if readme_entry is not None:
                readme = (await self._fetcher.fetch_file(identity, readme_entry.path, token)).content

            # 3. Candidate paths
            candidates = filter_important(tree)
            logger.info(
                "%d of %d tree entries kept for %s",
                len(candidates), len(tree), identity.full_name,
            )

            # 4. Outline
            session.loading_step = STEP_OUTLINE
            outline = await self._generator.generate_outline(
                identity.repo, [entry.path for entry in candidates], readme
            )
        except Exception as exc:
            logger.warning("Analysis of %s failed: %s", identity.full_name, exc)
            if self._session is session:
                self._session = TutorialSession(
                    phase=Phase.LANDING, error=str(exc) or _GENERIC_ERROR
                )
            raise

        session.tree = tree
        session.chapters = assign_chapter_ids(outline)
        session.current_chapter_id = None
        session.loading_step = ""
        session.error = None
        session.phase = Phase.TUTORIAL
        logger.info(
            "Tutorial for %s ready with %d chapter(s)",
            identity.full_name, len(session.chapters),
        )
        return session

    # ── Chapter phase ───────────────────────────────────────────────────

    async def select_chapter(self, chapter_id: str) -> str:
        """Make *chapter_id* current and return its (possibly new) content."""
        chapter = self._require_chapter(chapter_id)
        self._session.current_chapter_id = chapter.id
        return await self._load_chapter(chapter)

    async def _load_chapter(self, chapter: Chapter) -> str:
        session = self._session
        cached = session.content_by_chapter_id.get(chapter.id)
        if cached is not None:
            return cached

        token = self._token
        return await self._chapters.get_or_compute(
            chapter.id, lambda: self._generate_chapter(session, chapter, token)
        )

    async def _generate_chapter(
        self, session: TutorialSession, chapter: Chapter, token: str | None
    ) -> str:
        identity = session.identity
        assert identity is not None, "chapter generation outside a tutorial session"

        logger.info("Generating %s (%s)", chapter.id, chapter.title)
        files = await self._fetch_files(identity, chapter.relevant_files, token)
        markdown = await self._generator.generate_chapter_body(identity.repo, chapter, files)

        session.content_by_chapter_id.setdefault(chapter.id, markdown)
        logger.info("Generated %s (%d chars)", chapter.id, len(markdown))
        return session.content_by_chapter_id[chapter.id]

    async def _fetch_files(
        self, identity: RepositoryIdentity, paths: Sequence[str], token: str | None
    ) -> list[FileContent]:
        """Fetch files concurrently; results follow *paths* order."""
        sem = asyncio.Semaphore(self._max_concurrent)

        async def _fetch_one(path: str) -> FileContent:
            async with sem:
                return await self._fetcher.fetch_file(identity, path, token)

        return list(await asyncio.gather(*(_fetch_one(p) for p in paths)))

    # ── Lifecycle ───────────────────────────────────────────────────────

    def reset(self) -> TutorialSession:
        """Discard the tutorial and go back to the landing phase."""
        if self._session.phase is Phase.ANALYZING:
            raise SessionStateError("Cannot reset while a repository is being analyzed.")
        self._session = TutorialSession()
        self._token = self._default_token
        self._chapters = SingleFlightCache()
        return self._session

    def _require_chapter(self, chapter_id: str) -> Chapter:
        if self._session.phase is not Phase.TUTORIAL:
            raise SessionStateError("No tutorial is loaded. Analyze a repository first.")
        chapter = self._session.find_chapter(chapter_id)
        if chapter is None:
            raise ChapterNotFoundError(f"Unknown chapter: '{chapter_id}'.")
        return chapter
