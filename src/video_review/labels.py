"""In-memory label store: the single source of truth for review decisions."""

from __future__ import annotations

import logging
from collections.abc import Callable, Collection, Iterator, Mapping

from video_review.models import DEFAULT_LABEL, REJECT, LabelState, ReviewStats

logger = logging.getLogger(__name__)

LabelListener = Callable[[dict[str, LabelState]], None]


class LabelStore:
    """Authoritative mapping from video key to its label state.

    ``set`` is the only mutation entry point. Every call updates the map
    synchronously and then hands each listener a snapshot of the whole map,
    since the durable format is a full-document overwrite.
    """

    def __init__(
        self,
        labels: Mapping[str, LabelState] | None = None,
        on_change: LabelListener | None = None,
    ) -> None:
        self._labels: dict[str, LabelState] = dict(labels or {})
        self._listeners: list[LabelListener] = []
        if on_change is not None:
            self._listeners.append(on_change)

    def add_listener(self, listener: LabelListener) -> None:
        self._listeners.append(listener)

    def get(self, key: str) -> LabelState:
        """Return the stored state, or the default (accept, no tag) when absent."""
        return self._labels.get(key, DEFAULT_LABEL)

    def set(self, key: str, disposition: str, tag: str) -> LabelState:
        """Replace the full label state for ``key`` and notify listeners."""
        state = LabelState(disposition=disposition, tag=tag)
        self._labels[key] = state
        logger.debug("Label set: %s -> %s %r", key, disposition, tag)
        for listener in self._listeners:
            listener(self.snapshot())
        return state

    def snapshot(self) -> dict[str, LabelState]:
        """Return an independent copy of the whole map.

        ``LabelState`` is immutable, so a new dict is enough to keep a
        background writer isolated from later mutations.
        """
        return dict(self._labels)

    def stats(self, catalog: Collection[str]) -> ReviewStats:
        """Count decisions for the videos in ``catalog``.

        Untouched videos count as accepted. Labels for keys that are no
        longer in the catalog are kept but not counted.
        """
        in_catalog = [state for key, state in self._labels.items() if key in catalog]
        rejected = sum(1 for state in in_catalog if state.disposition == REJECT)
        return ReviewStats(
            total=len(catalog),
            reviewed=len(in_catalog),
            accepted=len(catalog) - rejected,
            rejected=rejected,
            tagged=sum(1 for state in in_catalog if state.tag),
        )

    def __contains__(self, key: object) -> bool:
        return key in self._labels

    def __iter__(self) -> Iterator[str]:
        return iter(self._labels)

    def __len__(self) -> int:
        return len(self._labels)


__all__ = ["LabelListener", "LabelStore"]
