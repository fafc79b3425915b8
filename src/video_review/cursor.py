"""Session cursor: page index and in-page focus over an immutable catalog."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from video_review.models import SearchHit

logger = logging.getLogger(__name__)


def total_pages(catalog_size: int, page_size: int) -> int:
    """Return ceil(catalog_size / page_size); an empty catalog has zero pages."""
    if catalog_size <= 0:
        return 0
    if page_size <= 0:
        raise ValueError("page_size must be positive")
    return -(-catalog_size // page_size)


def clamp_page(requested: int, pages: int) -> int:
    """Clamp a page index into [0, pages - 1], or 0 when there are no pages."""
    return max(0, min(requested, pages - 1))


class SessionCursor:
    """Current page plus focused slot, derived purely from navigation events.

    Every transition is synchronous and always lands on a valid page, so
    there is nothing to cancel.
    """

    def __init__(self, catalog: Sequence[str], page_size: int, current_page: int = 0) -> None:
        if page_size <= 0:
            raise ValueError("page_size must be positive")
        self._catalog = catalog
        self.page_size = page_size
        self.total_pages = total_pages(len(catalog), page_size)
        self.current_page = clamp_page(current_page, self.total_pages)
        self.focused_index = 0

    @property
    def catalog(self) -> Sequence[str]:
        return self._catalog

    def go_to(self, page: int) -> int:
        """Move to ``page`` (clamped). Focus resets to the first slot on change."""
        target = clamp_page(page, self.total_pages)
        if target != self.current_page:
            self.current_page = target
            self.focused_index = 0
        return self.current_page

    def advance(self, direction: int) -> int:
        """Move one page forward (+1) or back (-1)."""
        if direction not in (1, -1):
            raise ValueError(f"direction must be +1 or -1, got {direction!r}")
        return self.go_to(self.current_page + direction)

    def focus_index(self, index: int) -> bool:
        """Focus slot ``index``; out-of-range requests are ignored."""
        if 0 <= index < self.page_size:
            self.focused_index = index
            return True
        return False

    def page_keys(self, page: int | None = None) -> list[str]:
        """Return the catalog keys shown on ``page`` (default: current page)."""
        page = self.current_page if page is None else page
        start = page * self.page_size
        return list(self._catalog[start : start + self.page_size])

    def focused_key(self) -> str | None:
        """Return the key in the focused slot, or None on a short final page."""
        keys = self.page_keys()
        if self.focused_index < len(keys):
            return keys[self.focused_index]
        return None

    def find_page_for_identifier(self, query: str) -> SearchHit | None:
        """Find the first key containing ``query`` (case-insensitive)."""
        needle = query.strip().lower()
        if not needle:
            return None
        for position, key in enumerate(self._catalog):
            if needle in key.lower():
                page, index = divmod(position, self.page_size)
                return SearchHit(page=page, index=index, key=key)
        logger.debug("No catalog entry matches %r", query)
        return None

    def jump_to(self, hit: SearchHit) -> None:
        """Move to a search hit's page and focus its slot."""
        self.go_to(hit.page)
        self.focus_index(hit.index)


__all__ = ["SessionCursor", "clamp_page", "total_pages"]
