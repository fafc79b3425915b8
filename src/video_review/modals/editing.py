"""Label editing modal: free-text tag for one video."""

from __future__ import annotations

import logging

from textual import on
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Input, Label

from video_review.themes import THEME_COLORS
from video_review.widgets.listing import escape_rich_text

logger = logging.getLogger(__name__)

MAX_TAG_SUGGESTIONS = 8


class TagModal(ModalScreen[str | None]):
    """Modal dialog for editing a video's tag.

    Dismisses with the new tag (possibly empty to clear it) or None on cancel.
    """

    BINDINGS = [
        Binding("ctrl+s", "save", "Save"),
        Binding("escape", "cancel", "Cancel"),
    ]

    CSS = """
    TagModal {
        align: center middle;
    }

    #tag-dialog {
        width: 50%;
        height: auto;
        min-width: 40;
        background: $th-background;
        border: tall $th-green;
        padding: 0 2;
    }

    #tag-title {
        text-style: bold;
        color: $th-green;
        margin-bottom: 1;
    }

    #tag-help,
    #tag-suggestions {
        color: $th-muted;
        margin-bottom: 1;
    }

    #tag-input {
        width: 100%;
        background: $th-panel;
        border: none;
    }

    #tag-input:focus {
        border-left: tall $th-green;
    }

    #tag-buttons {
        height: auto;
        margin-top: 1;
        align: right middle;
    }

    #tag-buttons Button {
        margin-left: 1;
    }
    """

    def __init__(self, video_key: str, current_tag: str = "", known_tags: list[str] | None = None) -> None:
        super().__init__()
        self._video_key = video_key
        self._current_tag = current_tag
        self._known_tags = known_tags or []

    def _build_suggestions_markup(self) -> str:
        tags = sorted({tag for tag in self._known_tags if tag})[:MAX_TAG_SUGGESTIONS]
        if not tags:
            return ""
        purple = THEME_COLORS["purple"]
        return "Used so far: " + ", ".join(f"[{purple}]{escape_rich_text(tag)}[/]" for tag in tags)

    def compose(self) -> ComposeResult:
        with Vertical(id="tag-dialog"):
            yield Label(f"Tag for {escape_rich_text(self._video_key)}", id="tag-title")
            yield Label("Enter saves, an empty tag clears it.", id="tag-help")
            suggestions = self._build_suggestions_markup()
            if suggestions:
                yield Label(suggestions, id="tag-suggestions")
            yield Input(value=self._current_tag, placeholder="e.g. occluded, blurry", id="tag-input")
            with Horizontal(id="tag-buttons"):
                yield Button("Cancel", variant="default", id="cancel-btn")
                yield Button("Save (Ctrl+S)", variant="primary", id="save-btn")

    def on_mount(self) -> None:
        self.query_one("#tag-input", Input).focus()

    def action_save(self) -> None:
        self.dismiss(self.query_one("#tag-input", Input).value.strip())

    def action_cancel(self) -> None:
        self.dismiss(None)

    @on(Input.Submitted, "#tag-input")
    def on_input_submitted(self) -> None:
        self.action_save()

    @on(Button.Pressed, "#save-btn")
    def on_save_pressed(self) -> None:
        self.action_save()

    @on(Button.Pressed, "#cancel-btn")
    def on_cancel_pressed(self) -> None:
        self.action_cancel()


__all__ = ["TagModal"]
