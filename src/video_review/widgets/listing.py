"""Row rendering for the page grid."""

from __future__ import annotations

import posixpath

from rich.markup import escape as escape_markup

from video_review.models import ACCEPT, REJECT, PageItem, disposition_label
from video_review.themes import THEME_COLORS


def escape_rich_text(text: str) -> str:
    """Escape text for safe Rich markup rendering."""
    return escape_markup(text) if text else ""


def split_key(key: str) -> tuple[str, str]:
    """Return (file name, directory) for a catalog key."""
    directory, name = posixpath.split(key)
    return name, directory


def render_disposition_badge(disposition: str, label_style: str) -> str:
    """Color-coded badge; text differs too, so it reads without color."""
    text = disposition_label(disposition, label_style)
    color = THEME_COLORS["green"] if disposition == ACCEPT else THEME_COLORS["pink"]
    width = max(len(disposition_label(value, label_style)) for value in (ACCEPT, REJECT))
    return f"[bold {color}]{text:<{width}}[/]"


def render_video_option(
    item: PageItem,
    *,
    label_style: str = "accept-reject",
    tags_enabled: bool = True,
) -> str:
    """Render one page slot as Rich markup for OptionList display."""
    name, directory = split_key(item.key)
    slot = f"[{THEME_COLORS['accent_alt']}]{item.slot + 1}[/]"
    badge = render_disposition_badge(item.label.disposition, label_style)
    first_line = f"{slot}  {badge}  [bold]{escape_rich_text(name)}[/]"
    if tags_enabled and item.label.tag:
        first_line += f"  [{THEME_COLORS['purple']}]#{escape_rich_text(item.label.tag)}[/]"
    if directory:
        return f"{first_line}\n   [{THEME_COLORS['muted']}]{escape_rich_text(directory)}/[/]"
    return first_line


def render_loading_page(page_number: int) -> str:
    return f"[italic {THEME_COLORS['muted']}]Loading page {page_number}...[/]"


def render_empty_page(page_number: int, error: str | None = None) -> str:
    if error:
        return (
            f"[{THEME_COLORS['orange']}]Page {page_number} could not be loaded.[/]\n"
            f"[dim]{escape_rich_text(error)}[/]"
        )
    return f"[dim]No videos on page {page_number}.[/]"


__all__ = [
    "escape_rich_text",
    "render_disposition_badge",
    "render_empty_page",
    "render_loading_page",
    "render_video_option",
    "split_key",
]
