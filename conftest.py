"""Shared test fixtures for video review tests."""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Sequence

import pytest

from video_review.models import (
    ACCEPT,
    InitPayload,
    LabelState,
    ReviewConfig,
    ReviewSnapshot,
    VideoDescriptor,
)
from video_review.services.interfaces import StorageError
from video_review.themes import DEFAULT_THEME, THEME_COLORS

# ── Module-level dict isolation ──────────────────────────────────────────────


@pytest.fixture(autouse=True)
def _reset_theme_colors():
    """Restore THEME_COLORS after each test.

    VideoReviewApp mutates this module-level dict when a theme is applied.
    """
    yield
    THEME_COLORS.clear()
    THEME_COLORS.update(DEFAULT_THEME)


# ── Fakes ────────────────────────────────────────────────────────────────────


class FakeTimer:
    def __init__(self, delay: float, callback: Callable[[], None]) -> None:
        self.delay = delay
        self.callback = callback
        self.stopped = False
        self.fired = False

    def stop(self) -> None:
        self.stopped = True


class FakeScheduler:
    """Manual clock for the persistence coordinator's debounce timer."""

    def __init__(self) -> None:
        self.timers: list[FakeTimer] = []

    def __call__(self, delay: float, callback: Callable[[], None]) -> FakeTimer:
        timer = FakeTimer(delay, callback)
        self.timers.append(timer)
        return timer

    @property
    def active(self) -> list[FakeTimer]:
        return [t for t in self.timers if not t.stopped and not t.fired]

    def fire(self) -> int:
        """Run every live timer's callback; returns how many fired."""
        live = self.active
        for timer in live:
            timer.fired = True
            timer.callback()
        return len(live)


class FakeBackend:
    """In-memory review backend with switches for failures and slow calls."""

    page_size: int | None = None

    def __init__(
        self,
        keys: Sequence[str] = (),
        *,
        labels: dict[str, LabelState] | None = None,
        last_page: int = 0,
        description: str = "s3://review-bucket/videos/",
    ) -> None:
        self.description = description
        self.keys = list(keys)
        self.document = ReviewSnapshot(last_page=last_page, labels=dict(labels or {}))
        self.saved: list[ReviewSnapshot] = []
        self.fetch_calls: list[int] = []
        self.init_calls = 0
        self.init_errors: list[StorageError] = []
        self.save_errors: list[Exception] = []
        self.page_errors: dict[int, StorageError] = {}
        self.page_gates: dict[int, asyncio.Event] = {}
        self.save_gate: asyncio.Event | None = None
        self.closed = False

    async def init(self) -> InitPayload:
        self.init_calls += 1
        if self.init_errors:
            raise self.init_errors.pop(0)
        return InitPayload(
            video_keys=list(self.keys),
            labels=dict(self.document.labels),
            last_page=self.document.last_page,
        )

    async def fetch_page(self, page: int, page_size: int) -> list[VideoDescriptor]:
        self.fetch_calls.append(page)
        gate = self.page_gates.get(page)
        if gate is not None:
            await gate.wait()
        if page in self.page_errors:
            raise self.page_errors[page]
        start = page * page_size
        return [
            VideoDescriptor(key=key, url=f"https://cdn.example.test/{key}?X-Amz-Signature=abc")
            for key in self.keys[start : start + page_size]
        ]

    async def save(self, snapshot: ReviewSnapshot) -> None:
        if self.save_gate is not None:
            await self.save_gate.wait()
        if self.save_errors:
            raise self.save_errors.pop(0)
        self.saved.append(snapshot)
        self.document = snapshot

    async def health(self) -> bool:
        return not self.closed

    async def aclose(self) -> None:
        self.closed = True


# ── Factories ────────────────────────────────────────────────────────────────


@pytest.fixture
def make_label():
    """Factory fixture for LabelState values."""

    def _make(disposition: str = ACCEPT, tag: str = "") -> LabelState:
        return LabelState(disposition=disposition, tag=tag)

    return _make


@pytest.fixture
def make_config():
    """Factory fixture for ReviewConfig with test-friendly defaults."""

    def _make(**overrides) -> ReviewConfig:
        values = {"autosave_delay": 0.05}
        values.update(overrides)
        return ReviewConfig(**values)

    return _make


@pytest.fixture
def make_backend():
    """Factory fixture for FakeBackend; keys default to ``clip-NN.mp4``."""

    def _make(count: int = 0, keys: Sequence[str] | None = None, **kwargs) -> FakeBackend:
        if keys is None:
            keys = [f"videos/clip-{i:02d}.mp4" for i in range(count)]
        return FakeBackend(keys, **kwargs)

    return _make


@pytest.fixture
def fake_scheduler() -> FakeScheduler:
    return FakeScheduler()


@pytest.fixture
def settle():
    """Let pending tasks on the running loop run to completion."""

    async def _settle(rounds: int = 5) -> None:
        for _ in range(rounds):
            await asyncio.sleep(0)

    return _settle
