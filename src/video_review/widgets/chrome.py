"""Widget chrome: status bar text, footer hints and the start-up panel."""

from __future__ import annotations

from textual.widgets import Static

from video_review.models import ACCEPT, REJECT, ReviewStats, disposition_label
from video_review.persistence import (
    SAVE_FAILED,
    SAVE_IDLE,
    SAVE_PENDING,
    SAVE_SAVED,
    SAVE_SAVING,
)
from video_review.themes import THEME_COLORS
from video_review.widgets.listing import escape_rich_text

SAVE_STATUS_TEXT: dict[str, str] = {
    SAVE_IDLE: "",
    SAVE_PENDING: "Pending",
    SAVE_SAVING: "Saving...",
    SAVE_SAVED: "Saved",
    SAVE_FAILED: "Save failed",
}


def render_save_indicator(status: str) -> str:
    text = SAVE_STATUS_TEXT.get(status, "")
    if not text:
        return ""
    color = {
        SAVE_PENDING: THEME_COLORS["yellow"],
        SAVE_SAVING: THEME_COLORS["accent"],
        SAVE_SAVED: THEME_COLORS["green"],
        SAVE_FAILED: THEME_COLORS["pink"],
    }[status]
    return f"[{color}]{text}[/]"


def build_status_bar_text(
    *,
    page: int,
    total_pages: int,
    stats: ReviewStats,
    save_status: str,
    label_style: str = "accept-reject",
    tags_enabled: bool = True,
    source: str = "",
) -> str:
    """Build the one-line status bar.

    ``page`` is zero-based; the bar shows it one-based.
    """
    accept_text = disposition_label(ACCEPT, label_style)
    reject_text = disposition_label(REJECT, label_style)
    page_text = f"Page {page + 1}/{total_pages}" if total_pages else "No videos"
    parts = [
        f"[bold {THEME_COLORS['accent']}]{page_text}[/]",
        f"{stats.total} videos",
        f"[{THEME_COLORS['green']}]{accept_text} {stats.accepted}[/]",
        f"[{THEME_COLORS['pink']}]{reject_text} {stats.rejected}[/]",
    ]
    if tags_enabled:
        parts.append(f"[{THEME_COLORS['purple']}]tagged {stats.tagged}[/]")
    indicator = render_save_indicator(save_status)
    if indicator:
        parts.append(indicator)
    if source:
        parts.append(f"[dim]{escape_rich_text(source)}[/]")
    return " · ".join(parts)


class ContextFooter(Static):
    """Context-sensitive footer showing relevant keybindings."""

    DEFAULT_CSS = """
    ContextFooter {
        dock: bottom;
        height: 1;
        background: $th-background;
        color: $th-muted;
        padding: 0 1;
        border-top: solid $th-panel-alt;
    }
    """

    def render_bindings(self, bindings: list[tuple[str, str]]) -> None:
        """Update the footer with a list of (key, label) binding hints."""
        accent = THEME_COLORS["accent"]
        muted = THEME_COLORS["muted"]
        parts = []
        for key, label in bindings:
            safe_key = escape_rich_text(key)
            if key and label:
                parts.append(f"[bold {accent}]{safe_key}[/] [{muted}]{label}[/]")
            elif label:
                parts.append(f"[italic {muted}]{label}[/]")
        self.update("  ".join(parts))


class StartupPanel(Static):
    """Splash while the catalog loads; error with retry hint if it fails."""

    DEFAULT_CSS = """
    StartupPanel {
        width: 100%;
        height: 1fr;
        content-align: center middle;
        padding: 1 2;
        color: $th-text;
        background: $th-panel;
    }

    StartupPanel.error {
        color: $th-orange;
    }
    """

    def show_loading(self, source: str) -> None:
        self.remove_class("error")
        self.update(
            f"[bold {THEME_COLORS['accent']}]Loading review session...[/]\n\n"
            f"[dim]{escape_rich_text(source)}[/]"
        )

    def show_error(self, message: str) -> None:
        self.add_class("error")
        self.update(f"{escape_rich_text(message)}\n\n[dim]Press r to retry or q to quit.[/]")


__all__ = [
    "SAVE_STATUS_TEXT",
    "ContextFooter",
    "StartupPanel",
    "build_status_bar_text",
    "render_save_indicator",
]
