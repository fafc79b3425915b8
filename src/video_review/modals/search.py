"""Navigation modals: jump to a video by name, go to a page number."""

from __future__ import annotations

import logging
import posixpath
from collections.abc import Sequence

from rapidfuzz import fuzz
from textual import on
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Vertical
from textual.screen import ModalScreen
from textual.widgets import Input, Label, OptionList, Static
from textual.widgets.option_list import Option

from video_review.themes import THEME_COLORS
from video_review.widgets.listing import escape_rich_text

logger = logging.getLogger(__name__)

MAX_JUMP_RESULTS = 10
JUMP_SCORE_CUTOFF = 50


def rank_video_keys(query: str, keys: Sequence[str], limit: int = MAX_JUMP_RESULTS) -> list[str]:
    """Substring hits first (catalog order), then fuzzy file-name matches."""
    needle = query.strip().lower()
    if not needle:
        return list(keys[:limit])
    exact = [key for key in keys if needle in key.lower()]
    if len(exact) >= limit:
        return exact[:limit]
    seen = set(exact)
    scored: list[tuple[float, str]] = []
    for key in keys:
        if key in seen:
            continue
        score = fuzz.partial_ratio(needle, posixpath.basename(key).lower())
        if score >= JUMP_SCORE_CUTOFF:
            scored.append((score, key))
    scored.sort(key=lambda x: x[0], reverse=True)
    return exact + [key for _, key in scored[: limit - len(exact)]]


class JumpToVideoModal(ModalScreen[str | None]):
    """Find a video by (part of) its name.

    Enter submits the typed text; picking a result submits that key.
    """

    BINDINGS = [
        Binding("escape", "cancel", "Cancel"),
        Binding("down", "focus_results", "Results", show=False),
    ]

    CSS = """
    JumpToVideoModal {
        align: center middle;
    }

    #jump-dialog {
        width: 70%;
        height: auto;
        max-height: 80%;
        min-width: 50;
        background: $th-background;
        border: tall $th-accent;
        padding: 0 2;
    }

    #jump-title {
        text-style: bold;
        color: $th-accent;
        margin-bottom: 1;
    }

    #jump-input {
        width: 100%;
        background: $th-panel;
        border: none;
    }

    #jump-input:focus {
        border-left: tall $th-accent;
    }

    #jump-results {
        height: auto;
        max-height: 12;
        margin-top: 1;
        background: $th-panel;
    }

    #jump-footer {
        color: $th-muted;
        margin-top: 1;
    }
    """

    def __init__(self, video_keys: Sequence[str], initial_query: str = "") -> None:
        super().__init__()
        self._video_keys = video_keys
        self._initial_query = initial_query
        self._results: list[str] = []

    def compose(self) -> ComposeResult:
        with Vertical(id="jump-dialog"):
            yield Label("Jump to video", id="jump-title")
            yield Input(value=self._initial_query, placeholder="Part of a file name...", id="jump-input")
            yield OptionList(id="jump-results")
            yield Static("Enter: jump  ↓: pick a result  Esc: cancel", id="jump-footer")

    def on_mount(self) -> None:
        self._populate_results(self._initial_query)
        self.query_one("#jump-input", Input).focus()

    @on(Input.Changed, "#jump-input")
    def _on_query_changed(self, event: Input.Changed) -> None:
        self._populate_results(event.value)

    def _populate_results(self, query: str) -> None:
        option_list = self.query_one("#jump-results", OptionList)
        option_list.clear_options()
        self._results = rank_video_keys(query, self._video_keys) if query.strip() else []
        muted = THEME_COLORS["muted"]
        for key in self._results:
            directory, name = posixpath.split(key)
            suffix = f"  [{muted}]{escape_rich_text(directory)}/[/]" if directory else ""
            option_list.add_option(Option(f"{escape_rich_text(name)}{suffix}"))

    def action_focus_results(self) -> None:
        if self._results:
            self.query_one("#jump-results", OptionList).focus()

    @on(Input.Submitted, "#jump-input")
    def _on_submitted(self, event: Input.Submitted) -> None:
        query = event.value.strip()
        self.dismiss(query or None)

    @on(OptionList.OptionSelected, "#jump-results")
    def _on_result_selected(self, event: OptionList.OptionSelected) -> None:
        index = event.option_index
        if 0 <= index < len(self._results):
            self.dismiss(self._results[index])

    def action_cancel(self) -> None:
        self.dismiss(None)


class GoToPageModal(ModalScreen[int | None]):
    """Ask for a one-based page number; dismisses with a zero-based index."""

    BINDINGS = [
        Binding("escape", "cancel", "Cancel"),
    ]

    CSS = """
    GoToPageModal {
        align: center middle;
    }

    #goto-dialog {
        width: 40;
        height: auto;
        background: $th-background;
        border: tall $th-accent-alt;
        padding: 0 2;
    }

    #goto-title {
        text-style: bold;
        color: $th-accent-alt;
        margin-bottom: 1;
    }

    #goto-input {
        width: 100%;
        background: $th-panel;
        border: none;
    }

    #goto-error {
        color: $th-orange;
        margin-top: 1;
    }
    """

    def __init__(self, current_page: int, total_pages: int) -> None:
        super().__init__()
        self._current_page = current_page
        self._total_pages = total_pages

    def compose(self) -> ComposeResult:
        with Vertical(id="goto-dialog"):
            yield Label(f"Go to page (1-{self._total_pages})", id="goto-title")
            yield Input(value=str(self._current_page + 1), type="integer", id="goto-input")
            yield Label("", id="goto-error")

    def on_mount(self) -> None:
        self.query_one("#goto-input", Input).focus()

    @on(Input.Submitted, "#goto-input")
    def _on_submitted(self, event: Input.Submitted) -> None:
        try:
            number = int(event.value.strip())
        except ValueError:
            self.query_one("#goto-error", Label).update("Enter a page number.")
            return
        if not 1 <= number <= self._total_pages:
            self.query_one("#goto-error", Label).update(
                f"Pages run from 1 to {self._total_pages}."
            )
            return
        self.dismiss(number - 1)

    def action_cancel(self) -> None:
        self.dismiss(None)


__all__ = ["GoToPageModal", "JumpToVideoModal", "rank_video_keys"]
