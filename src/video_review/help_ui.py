"""Help screen section builders derived from runtime key bindings."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from textual.binding import Binding

HELP_SECTION_ACTIONS: list[tuple[str, list[str]]] = [
    (
        "Navigation",
        [
            "focus_slot",
            "focus_down",
            "focus_up",
            "next_page",
            "prev_page",
            "go_to_page",
            "jump_to_video",
        ],
    ),
    (
        "Labeling",
        [
            "label_accept",
            "label_reject",
            "toggle_label",
            "edit_tag",
        ],
    ),
    (
        "Playback & Saving",
        [
            "play",
            "save_now",
            "retry",
        ],
    ),
    (
        "View & Utilities",
        [
            "cycle_theme",
            "show_help",
            "quit",
        ],
    ),
]

HELP_GETTING_STARTED: list[tuple[str, str]] = [
    ("1-9", "Focus a video on the page"),
    ("Enter / o", "Play it"),
    ("t / f", "Accept / reject"),
    ("] / [", "Next / previous page"),
    ("?", "Show full shortcuts"),
]

HELP_DESCRIPTION_OVERRIDES: dict[str, str] = {
    "play": "Play focused video (also Enter)",
    "save_now": "Save now (autosave runs after each change)",
    "show_help": "Help overlay",
}


def _format_help_key(key: str) -> str:
    """Normalize Textual key names for user-facing help text."""
    replacements = {
        "slash": "/",
        "space": "Space",
        "colon": ":",
        "question_mark": "?",
        "left_square_bracket": "[",
        "right_square_bracket": "]",
    }
    formatted: list[str] = []
    for part in key.split(","):
        part = replacements.get(part.strip(), part.strip())
        if part.startswith("ctrl+"):
            part = "Ctrl+" + part.removeprefix("ctrl+")
        formatted.append(part)
    return " / ".join(formatted)


def _iter_binding_definitions(
    bindings: Sequence[Binding | tuple[Any, ...]],
) -> list[Binding]:
    """Normalize App.BINDINGS entries into Binding objects."""
    normalized: list[Binding] = []
    for binding_item in bindings:
        if isinstance(binding_item, Binding):
            normalized.append(binding_item)
            continue
        key = str(binding_item[0]) if len(binding_item) > 0 else ""
        action = str(binding_item[1]) if len(binding_item) > 1 else ""
        description = str(binding_item[2]) if len(binding_item) > 2 else ""
        normalized.append(Binding(key, action, description, show=False))
    return normalized


def _binding_for_help_action(
    bindings: Sequence[Binding | tuple[Any, ...]],
    action_name: str,
) -> Binding | None:
    """Resolve a Binding by action name, supporting parameterized actions."""
    for binding in _iter_binding_definitions(bindings):
        if binding.action == action_name:
            return binding
        if binding.action.startswith(f"{action_name}("):
            return binding
    return None


def build_help_sections(
    bindings: Sequence[Binding | tuple[Any, ...]],
    *,
    tags_enabled: bool = True,
) -> list[tuple[str, list[tuple[str, str]]]]:
    """Build help sections from runtime key bindings."""
    sections: list[tuple[str, list[tuple[str, str]]]] = [
        ("Getting Started", list(HELP_GETTING_STARTED))
    ]
    for section_name, actions in HELP_SECTION_ACTIONS:
        entries: list[tuple[str, str]] = []
        for action_name in actions:
            if action_name == "focus_slot":
                entries.append(("1-9", "Focus slot on the page"))
                continue
            if action_name == "edit_tag" and not tags_enabled:
                continue
            binding = _binding_for_help_action(bindings, action_name)
            if binding is None:
                continue
            key = _format_help_key(binding.key)
            description = HELP_DESCRIPTION_OVERRIDES.get(action_name, binding.description)
            entries.append((key, description))
        sections.append((section_name, entries))
    return sections


__all__ = ["build_help_sections"]
