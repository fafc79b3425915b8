"""Widget classes and render helpers for the review UI."""

from video_review.widgets.chrome import (
    SAVE_STATUS_TEXT,
    ContextFooter,
    StartupPanel,
    build_status_bar_text,
)
from video_review.widgets.listing import (
    render_empty_page,
    render_loading_page,
    render_video_option,
)

__all__ = [
    "SAVE_STATUS_TEXT",
    "ContextFooter",
    "StartupPanel",
    "build_status_bar_text",
    "render_empty_page",
    "render_loading_page",
    "render_video_option",
]
