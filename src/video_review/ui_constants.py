"""Internal UI constants for the VideoReviewApp."""

from __future__ import annotations

from textual.binding import Binding, BindingType

APP_CSS = """
Screen {
    background: $th-background;
}

Header {
    background: $th-panel-alt;
    color: $th-text;
}

#main-container {
    height: 1fr;
    border: tall $th-highlight;
    background: $th-panel;
}

#main-container:focus-within {
    border: tall $th-accent;
}

#page-header {
    padding: 0 1;
    background: $th-panel;
    color: $th-accent;
    text-style: bold;
}

#video-list {
    height: 1fr;
    scrollbar-gutter: stable;
    background: $th-panel;
    scrollbar-background: $th-scrollbar-bg;
    scrollbar-color: $th-scrollbar-thumb;
    scrollbar-color-hover: $th-scrollbar-hover;
    scrollbar-color-active: $th-scrollbar-active;
}

#video-list > .option-list--option-highlighted {
    background: $th-highlight;
}

#video-list:focus > .option-list--option-highlighted {
    background: $th-highlight-focus;
}

#video-list > .option-list--option-hover {
    background: $th-panel-alt;
}

#status-bar {
    padding: 0 1;
    color: $th-muted;
}
"""

APP_BINDINGS: list[BindingType] = [
    Binding("q", "quit", "Quit", show=False),
    # Slot focus
    *(Binding(str(n), f"focus_slot({n})", f"Slot {n}", show=False) for n in range(1, 10)),
    Binding("j", "focus_down", "Down", show=False),
    Binding("k", "focus_up", "Up", show=False),
    # Labeling
    Binding("t", "label_accept", "Accept (TP)", show=False),
    Binding("f", "label_reject", "Reject (FP)", show=False),
    Binding("space", "toggle_label", "Toggle accept/reject", show=False),
    Binding("g", "edit_tag", "Edit tag", show=False),
    # Paging
    Binding("right_square_bracket,l", "next_page", "Next page", show=False),
    Binding("left_square_bracket,h", "prev_page", "Previous page", show=False),
    Binding("colon", "go_to_page", "Go to page", show=False),
    Binding("slash", "jump_to_video", "Find video", show=False),
    # Playback & persistence
    Binding("o", "play", "Play video", show=False),
    Binding("ctrl+s", "save_now", "Save now", show=False),
    Binding("r", "retry", "Retry start", show=False),
    # View
    Binding("ctrl+t", "cycle_theme", "Theme", show=False),
    Binding("question_mark", "show_help", "Help (?)", show=False),
]

__all__ = [
    "APP_BINDINGS",
    "APP_CSS",
]
