"""Focused tests for row rendering and status chrome."""

from __future__ import annotations

from video_review.models import ACCEPT, REJECT, LabelState, PageItem, ReviewStats
from video_review.persistence import SAVE_FAILED, SAVE_IDLE, SAVE_PENDING, SAVE_SAVED
from video_review.themes import THEME_COLORS
from video_review.widgets import build_status_bar_text, render_empty_page, render_video_option
from video_review.widgets.chrome import render_save_indicator
from video_review.widgets.listing import render_disposition_badge, render_loading_page, split_key


def _item(key: str = "cam1/day2/clip.mp4", disposition: str = ACCEPT, tag: str = "") -> PageItem:
    return PageItem(slot=2, key=key, url="https://signed", label=LabelState(disposition, tag))


def test_split_key() -> None:
    assert split_key("cam1/day2/clip.mp4") == ("clip.mp4", "cam1/day2")
    assert split_key("clip.mp4") == ("clip.mp4", "")


def test_render_video_option_shows_slot_badge_and_directory() -> None:
    text = render_video_option(_item())

    assert "]3[/]" in text
    assert "ACCEPT" in text
    assert "clip.mp4" in text
    assert "cam1/day2/" in text


def test_render_video_option_label_style_is_display_only() -> None:
    text = render_video_option(_item(disposition=REJECT), label_style="tp-fp")

    assert "FP" in text
    assert "REJECT" not in text


def test_render_video_option_tag_hidden_when_disabled() -> None:
    item = _item(tag="night")

    assert "#night" in render_video_option(item)
    assert "#night" not in render_video_option(item, tags_enabled=False)


def test_render_video_option_escapes_markup_in_keys() -> None:
    text = render_video_option(_item(key="[red]evil[/red].mp4", tag="[b]"))

    assert "\\[red]evil" in text
    assert "#\\[b]" in text


def test_badges_pad_to_same_width() -> None:
    accept = render_disposition_badge(ACCEPT, "tp-fp")
    reject = render_disposition_badge(REJECT, "tp-fp")

    assert THEME_COLORS["green"] in accept
    assert THEME_COLORS["pink"] in reject
    assert len(accept.split("]")[1]) == len(reject.split("]")[1])


def test_empty_and_loading_placeholders() -> None:
    assert "No videos on page 3" in render_empty_page(3)
    failed = render_empty_page(3, "presign failed")
    assert "could not be loaded" in failed
    assert "presign failed" in failed
    assert "Loading page 2" in render_loading_page(2)


class TestStatusBar:
    def test_counts_and_page(self) -> None:
        text = build_status_bar_text(
            page=1,
            total_pages=3,
            stats=ReviewStats(total=17, reviewed=4, accepted=15, rejected=2, tagged=1),
            save_status=SAVE_SAVED,
        )

        assert "Page 2/3" in text
        assert "17 videos" in text
        assert "ACCEPT 15" in text
        assert "REJECT 2" in text
        assert "tagged 1" in text
        assert "Saved" in text

    def test_empty_catalog_and_idle(self) -> None:
        text = build_status_bar_text(
            page=0,
            total_pages=0,
            stats=ReviewStats(),
            save_status=SAVE_IDLE,
            label_style="tp-fp",
            tags_enabled=False,
            source="s3://media/",
        )

        assert "No videos" in text
        assert "TP 0" in text
        assert "tagged" not in text
        assert "s3://media/" in text

    def test_save_indicator_states(self) -> None:
        assert render_save_indicator(SAVE_IDLE) == ""
        assert "Pending" in render_save_indicator(SAVE_PENDING)
        assert "Save failed" in render_save_indicator(SAVE_FAILED)
        assert render_save_indicator("bogus") == ""
