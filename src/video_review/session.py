"""Review session: the owned state object tying store, cursor and persistence.

One ``ReviewSession`` exists per open review. It starts from a backend's
init payload, keeps the label store and cursor as the single source of
truth, and funnels every mutation into the persistence coordinator.
"""

from __future__ import annotations

import asyncio
import logging
import posixpath
from collections.abc import Callable

from rapidfuzz import fuzz

from video_review.cursor import SessionCursor
from video_review.labels import LabelStore
from video_review.models import (
    ACCEPT,
    REJECT,
    InitPayload,
    LabelState,
    PageItem,
    ReviewConfig,
    ReviewStats,
    SearchHit,
    VideoDescriptor,
)
from video_review.persistence import PersistenceCoordinator, SaveResult, Scheduler
from video_review.services.interfaces import ReviewBackend, StorageError

logger = logging.getLogger(__name__)

# Minimum WRatio score before a "did you mean" suggestion is offered
SUGGESTION_SCORE_CUTOFF = 60


class SessionStartError(RuntimeError):
    """The catalog or review document could not be loaded."""

    def __init__(self, message: str, *, retryable: bool = True) -> None:
        super().__init__(message)
        self.retryable = retryable


class ReviewSession:
    """Explicit owner of one review's state."""

    def __init__(
        self,
        backend: ReviewBackend,
        config: ReviewConfig,
        *,
        schedule: Scheduler | None = None,
        on_save_status: Callable[[str], None] | None = None,
        on_save_result: Callable[[SaveResult], None] | None = None,
    ) -> None:
        self.backend = backend
        self.config = config
        self._schedule = schedule
        self._on_save_status = on_save_status
        self._on_save_result = on_save_result
        self._labels: LabelStore | None = None
        self._cursor: SessionCursor | None = None
        self._persistence: PersistenceCoordinator | None = None
        self._descriptors: list[VideoDescriptor] = []
        self._descriptor_page: int | None = None
        self._page_request = 0
        self.page_error: str | None = None

    # -- lifecycle ---------------------------------------------------------

    @property
    def loaded(self) -> bool:
        return self._cursor is not None

    @property
    def labels(self) -> LabelStore:
        if self._labels is None:
            raise RuntimeError("Session is not loaded")
        return self._labels

    @property
    def cursor(self) -> SessionCursor:
        if self._cursor is None:
            raise RuntimeError("Session is not loaded")
        return self._cursor

    @property
    def persistence(self) -> PersistenceCoordinator:
        if self._persistence is None:
            raise RuntimeError("Session is not loaded")
        return self._persistence

    async def load(self, *, restore_page: bool = True) -> InitPayload:
        """Fetch catalog and document, then build store, cursor and coordinator.

        Raises ``SessionStartError``; calling ``load`` again retries.
        """
        try:
            payload = await self.backend.init()
        except StorageError as e:
            logger.warning("Session start failed for %s: %s", self.backend.description, e)
            raise SessionStartError(str(e), retryable=e.retryable) from e

        start_page = payload.last_page if restore_page else 0
        cursor = SessionCursor(payload.video_keys, self.effective_page_size(), start_page)
        persistence = PersistenceCoordinator(
            self.backend.save,
            labels=payload.labels,
            last_page=cursor.current_page,
            delay=self.config.autosave_delay,
            schedule=self._schedule,
            on_status=self._on_save_status,
            on_result=self._on_save_result,
        )
        self._cursor = cursor
        self._persistence = persistence
        self._labels = LabelStore(payload.labels, on_change=persistence.observe_labels)
        self._descriptors = []
        self._descriptor_page = None
        logger.info(
            "Session loaded: %d videos, %d pages, starting at page %d",
            len(payload.video_keys),
            cursor.total_pages,
            cursor.current_page + 1,
        )
        return payload

    def effective_page_size(self) -> int:
        """Page width: the backend's fixed size if it has one, else the config's."""
        fixed = getattr(self.backend, "page_size", None)
        if fixed:
            if fixed != self.config.page_size:
                logger.info(
                    "%s pages are %d wide; ignoring page_size=%d",
                    self.backend.description,
                    fixed,
                    self.config.page_size,
                )
            return fixed
        return self.config.page_size

    async def close(self) -> SaveResult | None:
        """End-of-session save; waits for every in-flight write."""
        if self._persistence is None:
            return None
        return await self._persistence.close()

    async def health(self) -> bool:
        return await self.backend.health()

    # -- pages -------------------------------------------------------------

    async def open_page(self, page: int | None = None) -> bool:
        """Fetch descriptors for the current page (after moving to ``page``).

        Only the most recent request may populate the view; label changes
        never trigger a refetch.
        """
        cursor = self.cursor
        if page is not None:
            self.go_to_page(page)
        target = cursor.current_page
        self._page_request += 1
        token = self._page_request
        self.page_error = None
        try:
            descriptors = await self.backend.fetch_page(target, cursor.page_size)
        except StorageError as e:
            if token != self._page_request:
                return False
            logger.warning("Could not load page %d: %s", target + 1, e)
            self._descriptors = []
            self._descriptor_page = target
            self.page_error = str(e)
            return False
        if token != self._page_request or target != cursor.current_page:
            logger.debug("Discarding stale response for page %d", target + 1)
            return False
        self._descriptors = descriptors[: cursor.page_size]
        self._descriptor_page = target
        self.page_error = None
        return True

    def page_view(self) -> list[PageItem]:
        """Rows for the current page, each paired with its label right now."""
        if self._cursor is None or self._descriptor_page != self._cursor.current_page:
            return []
        labels = self.labels
        return [
            PageItem(slot=slot, key=item.key, url=item.url, label=labels.get(item.key))
            for slot, item in enumerate(self._descriptors)
        ]

    def focused_item(self) -> PageItem | None:
        view = self.page_view()
        index = self.cursor.focused_index
        return view[index] if index < len(view) else None

    # -- labels ------------------------------------------------------------

    def label(self, key: str, disposition: str, tag: str | None = None) -> LabelState:
        """Set ``key``'s disposition; ``tag=None`` keeps the current tag."""
        current = self.labels.get(key)
        new_tag = current.tag if tag is None else tag.strip()
        return self.labels.set(key, disposition, new_tag)

    def set_tag(self, key: str, tag: str) -> LabelState:
        current = self.labels.get(key)
        return self.labels.set(key, current.disposition, tag.strip())

    def _focused_key(self) -> str | None:
        item = self.focused_item()
        return item.key if item is not None else None

    def label_focused(self, disposition: str) -> LabelState | None:
        key = self._focused_key()
        if key is None:
            return None
        return self.label(key, disposition)

    def toggle_focused(self) -> LabelState | None:
        key = self._focused_key()
        if key is None:
            return None
        current = self.labels.get(key)
        return self.label(key, REJECT if current.disposition == ACCEPT else ACCEPT)

    # -- navigation --------------------------------------------------------

    def _moved(self, before: int) -> bool:
        after = self.cursor.current_page
        if after == before:
            return False
        self.persistence.observe_page(after)
        return True

    def navigate(self, direction: int) -> bool:
        """Move one page; returns True when the page changed."""
        before = self.cursor.current_page
        self.cursor.advance(direction)
        return self._moved(before)

    def go_to_page(self, page: int) -> bool:
        before = self.cursor.current_page
        self.cursor.go_to(page)
        return self._moved(before)

    def focus(self, index: int) -> bool:
        return self.cursor.focus_index(index)

    def move_focus(self, delta: int) -> bool:
        """Shift focus within the loaded rows of the current page."""
        rows = len(self.page_view()) or self.cursor.page_size
        target = max(0, min(self.cursor.focused_index + delta, rows - 1))
        return self.cursor.focus_index(target)

    def jump_to(self, query: str) -> SearchHit | None:
        """Move to the first video whose key contains ``query``."""
        hit = self.cursor.find_page_for_identifier(query)
        if hit is None:
            return None
        before = self.cursor.current_page
        self.cursor.jump_to(hit)
        self._moved(before)
        return hit

    def suggest(self, query: str) -> str | None:
        """Closest catalog key by fuzzy file-name match, if any is close enough."""
        needle = query.strip().lower()
        if not needle:
            return None
        best_key: str | None = None
        best_score = 0.0
        for key in self.cursor.catalog:
            score = fuzz.WRatio(needle, posixpath.basename(key).lower())
            if score > best_score:
                best_key, best_score = key, score
        return best_key if best_score >= SUGGESTION_SCORE_CUTOFF else None

    # -- saving ------------------------------------------------------------

    def save_now(self) -> asyncio.Task[SaveResult]:
        """Manual save of the freshest state; returns the write task."""
        return self.persistence.save_now("manual")

    def stats(self) -> ReviewStats:
        return self.labels.stats(frozenset(self.cursor.catalog))


__all__ = ["SUGGESTION_SCORE_CUTOFF", "ReviewSession", "SessionStartError"]
