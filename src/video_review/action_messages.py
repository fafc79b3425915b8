"""UI-facing copy builders for notifications and error panels."""

from __future__ import annotations

from video_review.models import ReviewStats


def _ensure_sentence(text: str) -> str:
    """Return text with terminal sentence punctuation."""
    cleaned = text.strip()
    if not cleaned:
        return ""
    if cleaned.endswith((".", "!", "?")):
        return cleaned
    return f"{cleaned}."


def build_actionable_error(
    action: str,
    *,
    next_step: str,
    why: str | None = None,
) -> str:
    """Build a 2-3 line actionable error message."""
    lines = [f"Could not {action.strip()}."]
    if why:
        lines.append(f"Why: {_ensure_sentence(why)}")
    lines.append(build_next_step_hint(next_step))
    return "\n".join(lines)


def build_next_step_hint(next_step: str) -> str:
    """Build a canonical next-step guidance line."""
    return f"Next step: {_ensure_sentence(next_step)}"


def build_actionable_warning(
    message: str,
    *,
    next_step: str,
    why: str | None = None,
) -> str:
    """Build a 2-3 line actionable warning message."""
    lines = [_ensure_sentence(message)]
    if why:
        lines.append(f"Why: {_ensure_sentence(why)}")
    lines.append(build_next_step_hint(next_step))
    return "\n".join(lines)


def build_save_failed_message(error: str | None) -> str:
    return build_actionable_error(
        "save review labels",
        why=error or "the storage backend rejected the write",
        next_step="press Ctrl+S to retry; labels are still held in memory",
    )


def build_start_failed_message(source: str, error: str) -> str:
    return build_actionable_error(
        f"open {source}",
        why=error,
        next_step="check credentials and the source path, then press r to retry",
    )


def build_page_failed_message(page_number: int, error: str | None) -> str:
    return build_actionable_warning(
        f"Page {page_number} could not be loaded",
        why=error,
        next_step="press ] or [ to move, or : to reload this page",
    )


def build_no_match_message(query: str, suggestion: str | None) -> str:
    """Notice for a jump-to-video query that matched nothing."""
    if suggestion:
        return build_actionable_warning(
            f'No video matches "{query}"',
            next_step=f"did you mean {suggestion}? Press / to search again",
        )
    return build_actionable_warning(
        f'No video matches "{query}"',
        next_step="try a shorter part of the file name",
    )


def build_stats_report(source: str, stats: ReviewStats, pages: int) -> str:
    """Plain-text summary printed by ``--stats``."""
    return "\n".join(
        [
            f"Source:   {source}",
            f"Videos:   {stats.total} ({pages} page{'s' if pages != 1 else ''})",
            f"Reviewed: {stats.reviewed}",
            f"Accepted: {stats.accepted}",
            f"Rejected: {stats.rejected}",
            f"Tagged:   {stats.tagged}",
        ]
    )


__all__ = [
    "build_actionable_error",
    "build_actionable_warning",
    "build_next_step_hint",
    "build_no_match_message",
    "build_page_failed_message",
    "build_save_failed_message",
    "build_start_failed_message",
    "build_stats_report",
]
