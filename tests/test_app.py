"""End-to-end tests driving VideoReviewApp through Textual's pilot."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from textual.widgets import OptionList

from video_review.app import VideoReviewApp
from video_review.modals import ConfirmModal, HelpScreen, TagModal
from video_review.models import ACCEPT, REJECT, LabelState, ReviewConfig
from video_review.services.interfaces import StorageError
from video_review.widgets import StartupPanel

pytestmark = pytest.mark.integration


def _new_app(backend, config, *, player=None):
    saved_configs: list[ReviewConfig] = []
    app = VideoReviewApp(
        backend,
        config,
        load_config_fn=ReviewConfig,
        save_config_fn=lambda cfg: saved_configs.append(cfg) or True,
        launch_player_fn=player or MagicMock(return_value=True),
    )
    return app, saved_configs


async def _settle(pilot, delay: float = 0.05) -> None:
    await pilot.pause()
    await pilot.pause(delay)


@pytest.mark.asyncio
async def test_startup_loads_first_page(make_backend, make_config) -> None:
    backend = make_backend(17)
    app, saved_configs = _new_app(backend, make_config(page_size=8))

    async with app.run_test() as pilot:
        await _settle(pilot)

        video_list = app.query_one("#video-list", OptionList)
        assert app.session.loaded
        assert video_list.display is True
        assert video_list.option_count == 8
        assert app.query_one("#startup-panel", StartupPanel).display is False
        assert backend.fetch_calls == [0]
        assert saved_configs[-1].last_source == backend.description


@pytest.mark.asyncio
async def test_restores_last_page(make_backend, make_config) -> None:
    backend = make_backend(17, last_page=2)
    app, _ = _new_app(backend, make_config(page_size=8))

    async with app.run_test() as pilot:
        await _settle(pilot)

        assert app.session.cursor.current_page == 2
        assert app.query_one("#video-list", OptionList).option_count == 1


@pytest.mark.asyncio
async def test_slot_keys_label_and_autosave(make_backend, make_config) -> None:
    backend = make_backend(17)
    app, _ = _new_app(backend, make_config(page_size=8, autosave_delay=0.05))

    async with app.run_test() as pilot:
        await _settle(pilot)

        await pilot.press("2", "f")
        await pilot.press("3", "f", "space")
        await _settle(pilot, 0.3)

        assert app.session.labels.get("videos/clip-01.mp4") == LabelState(REJECT, "")
        assert app.session.labels.get("videos/clip-02.mp4") == LabelState(ACCEPT, "")
        assert backend.saved[-1].labels["videos/clip-01.mp4"] == LabelState(REJECT, "")
        # Labeling never refetches the page
        assert backend.fetch_calls == [0]


@pytest.mark.asyncio
async def test_slot_beyond_short_page_is_ignored(make_backend, make_config) -> None:
    backend = make_backend(3)
    app, _ = _new_app(backend, make_config(page_size=8))

    async with app.run_test() as pilot:
        await _settle(pilot)

        await pilot.press("7", "f")

        assert app.session.cursor.focused_index == 0
        assert app.session.labels.get("videos/clip-00.mp4").disposition == REJECT


@pytest.mark.asyncio
async def test_paging_fetches_and_persists_page(make_backend, make_config) -> None:
    backend = make_backend(17)
    app, _ = _new_app(backend, make_config(page_size=8, autosave_delay=0.05))

    async with app.run_test() as pilot:
        await _settle(pilot)

        await pilot.press("right_square_bracket")
        await _settle(pilot, 0.3)

        assert app.session.cursor.current_page == 1
        assert backend.fetch_calls == [0, 1]
        assert backend.saved[-1].last_page == 1

        await pilot.press("left_square_bracket", "left_square_bracket")
        await _settle(pilot)

        assert app.session.cursor.current_page == 0


@pytest.mark.asyncio
async def test_failed_page_fetch_shows_placeholder(make_backend, make_config) -> None:
    backend = make_backend(4)
    backend.page_errors[0] = StorageError("presign failed", retryable=True)
    app, _ = _new_app(backend, make_config())

    async with app.run_test() as pilot:
        await _settle(pilot)

        video_list = app.query_one("#video-list", OptionList)
        assert app.session.page_error == "presign failed"
        assert video_list.option_count == 1
        assert video_list.get_option_at_index(0).disabled is True


@pytest.mark.asyncio
async def test_start_failure_then_retry(make_backend, make_config) -> None:
    backend = make_backend(3)
    backend.init_errors.append(StorageError("AccessDenied"))
    app, _ = _new_app(backend, make_config())

    async with app.run_test() as pilot:
        await _settle(pilot)

        panel = app.query_one("#startup-panel", StartupPanel)
        assert app.session.loaded is False
        assert app._start_error == "AccessDenied"
        assert panel.has_class("error")

        await pilot.press("r")
        await _settle(pilot)

        assert app.session.loaded is True
        assert app._start_error is None
        assert backend.init_calls == 2


@pytest.mark.asyncio
async def test_edit_tag_modal_sets_tag(make_backend, make_config) -> None:
    backend = make_backend(3)
    app, _ = _new_app(backend, make_config())

    async with app.run_test() as pilot:
        await _settle(pilot)

        await pilot.press("g")
        await pilot.pause()
        assert isinstance(app.screen, TagModal)

        await pilot.press("r", "a", "i", "n", "enter")
        await _settle(pilot)

        assert app.session.labels.get("videos/clip-00.mp4") == LabelState(ACCEPT, "rain")


@pytest.mark.asyncio
async def test_tags_disabled_blocks_tag_modal(make_backend, make_config) -> None:
    backend = make_backend(3)
    app, _ = _new_app(backend, make_config(tags_enabled=False))

    async with app.run_test() as pilot:
        await _settle(pilot)

        await pilot.press("g")
        await pilot.pause()

        assert not isinstance(app.screen, TagModal)


@pytest.mark.asyncio
async def test_jump_to_video_moves_to_its_page(make_backend, make_config) -> None:
    backend = make_backend(17)
    app, _ = _new_app(backend, make_config(page_size=8))

    async with app.run_test() as pilot:
        await _settle(pilot)

        await pilot.press("slash")
        await pilot.pause()
        await pilot.press("1", "2", "enter")
        await _settle(pilot)

        assert app.session.cursor.current_page == 1
        assert app.session.cursor.focused_index == 4
        assert app.session.focused_item().key == "videos/clip-12.mp4"


@pytest.mark.asyncio
async def test_play_launches_player_with_url(make_backend, make_config) -> None:
    backend = make_backend(3)
    player = MagicMock(return_value=True)
    app, _ = _new_app(backend, make_config(player_command="mpv --fs {url}"), player=player)

    async with app.run_test() as pilot:
        await _settle(pilot)

        await pilot.press("o")

        command, url = player.call_args.args
        assert command == "mpv --fs {url}"
        assert "videos/clip-00.mp4" in url


@pytest.mark.asyncio
async def test_cycle_theme_persists_only_theme(make_backend, make_config) -> None:
    backend = make_backend(3)
    app, saved_configs = _new_app(backend, make_config(page_size=4))

    async with app.run_test() as pilot:
        await _settle(pilot)

        await pilot.press("ctrl+t")
        await pilot.pause()

        assert app.theme == "catppuccin-mocha"
        assert saved_configs[-1].theme_name == "catppuccin-mocha"
        assert saved_configs[-1].page_size == ReviewConfig().page_size


@pytest.mark.asyncio
async def test_help_overlay(make_backend, make_config) -> None:
    app, _ = _new_app(make_backend(3), make_config())

    async with app.run_test() as pilot:
        await _settle(pilot)

        await pilot.press("question_mark")
        await pilot.pause()

        assert isinstance(app.screen, HelpScreen)


@pytest.mark.asyncio
async def test_quit_writes_final_snapshot(make_backend, make_config) -> None:
    backend = make_backend(3)
    app, _ = _new_app(backend, make_config(autosave_delay=5.0))

    async with app.run_test() as pilot:
        await _settle(pilot)
        await pilot.press("f")
        await app.action_quit()

    assert app.session.persistence.pending is False
    assert backend.saved[-1].labels == {"videos/clip-00.mp4": LabelState(REJECT, "")}
    assert backend.saved[-1] == app.session.persistence.current_snapshot()
    assert backend.closed is True


@pytest.mark.asyncio
async def test_quit_after_failed_save_asks_and_can_cancel(make_backend, make_config) -> None:
    backend = make_backend(3)
    backend.save_errors.append(StorageError("AccessDenied"))
    app, _ = _new_app(backend, make_config(autosave_delay=5.0))

    async with app.run_test() as pilot:
        await _settle(pilot)
        await pilot.press("f")

        await app.action_quit()
        await pilot.pause()
        assert isinstance(app.screen, ConfirmModal)

        await pilot.press("n")
        await pilot.pause()
        assert not isinstance(app.screen, ConfirmModal)
        assert app._quitting is False

        # Still usable after cancelling
        await pilot.press("space")
        assert app.session.labels.get("videos/clip-00.mp4").disposition == ACCEPT

    # Teardown retries the final save, which now succeeds
    assert backend.saved[-1].labels == {"videos/clip-00.mp4": LabelState(ACCEPT, "")}


@pytest.mark.asyncio
async def test_save_failure_notifies(make_backend, make_config) -> None:
    backend = make_backend(3)
    backend.save_errors.append(StorageError("bucket is read-only"))
    app, _ = _new_app(backend, make_config())

    async with app.run_test() as pilot:
        await _settle(pilot)
        app.notify = MagicMock()

        await pilot.press("ctrl+s")
        await _settle(pilot)

        message = app.notify.call_args.args[0]
        assert "bucket is read-only" in message
        assert app.notify.call_args.kwargs["severity"] == "error"
