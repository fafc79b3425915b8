"""Tests for modal dialogs, each mounted in a minimal host app."""

from __future__ import annotations

import pytest
from textual.app import App
from textual.widgets import Input

from video_review.modals import ConfirmModal, GoToPageModal, JumpToVideoModal, TagModal
from video_review.modals.search import rank_video_keys
from video_review.themes import TEXTUAL_THEMES


class ModalHost(App):
    """Pushes one modal on mount and records its dismiss value."""

    def __init__(self, modal) -> None:
        super().__init__()
        for theme in TEXTUAL_THEMES.values():
            self.register_theme(theme)
        self._modal = modal
        self.results: list[object] = []

    def on_mount(self) -> None:
        self.theme = "monokai"
        self.push_screen(self._modal, self.results.append)


def test_rank_video_keys_substring_first() -> None:
    keys = ["a/harbour.mp4", "b/zzz.mp4", "c/harbour_night.mp4", "d/harbr.mp4"]

    ranked = rank_video_keys("harbour", keys)

    assert ranked[:2] == ["a/harbour.mp4", "c/harbour_night.mp4"]
    assert "b/zzz.mp4" not in ranked


def test_rank_video_keys_limit() -> None:
    keys = [f"clip-{i}.mp4" for i in range(30)]

    assert len(rank_video_keys("clip", keys, limit=5)) == 5


@pytest.mark.asyncio
async def test_tag_modal_prefills_and_saves() -> None:
    app = ModalHost(TagModal("a.mp4", "old", ["dusk", "old"]))

    async with app.run_test() as pilot:
        await pilot.pause()
        tag_input = app.screen.query_one("#tag-input", Input)
        assert tag_input.value == "old"

        tag_input.value = "  new tag "
        await pilot.press("enter")
        await pilot.pause()

    assert app.results == ["new tag"]


@pytest.mark.asyncio
async def test_tag_modal_escape_cancels() -> None:
    app = ModalHost(TagModal("a.mp4"))

    async with app.run_test() as pilot:
        await pilot.pause()
        await pilot.press("escape")
        await pilot.pause()

    assert app.results == [None]


@pytest.mark.asyncio
async def test_go_to_page_validates_range() -> None:
    app = ModalHost(GoToPageModal(current_page=0, total_pages=3))

    async with app.run_test() as pilot:
        await pilot.pause()
        page_input = app.screen.query_one("#goto-input", Input)

        page_input.value = "9"
        await pilot.press("enter")
        await pilot.pause()
        assert app.results == []
        assert isinstance(app.screen, GoToPageModal)

        page_input.value = "3"
        await pilot.press("enter")
        await pilot.pause()

    assert app.results == [2]


@pytest.mark.asyncio
async def test_jump_modal_submits_query() -> None:
    app = ModalHost(JumpToVideoModal(["a/clip-1.mp4", "a/clip-2.mp4"]))

    async with app.run_test() as pilot:
        await pilot.pause()
        await pilot.press("c", "l", "i", "p", "enter")
        await pilot.pause()

    assert app.results == ["clip"]


@pytest.mark.asyncio
async def test_confirm_modal_keys() -> None:
    yes = ModalHost(ConfirmModal("Quit?"))
    async with yes.run_test() as pilot:
        await pilot.pause()
        await pilot.press("y")
        await pilot.pause()

    no = ModalHost(ConfirmModal("Quit?"))
    async with no.run_test() as pilot:
        await pilot.pause()
        await pilot.press("escape")
        await pilot.pause()

    assert yes.results == [True]
    assert no.results == [False]
