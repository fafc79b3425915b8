"""Review document codec: the persisted ``{lastPage, labels}`` JSON."""

from __future__ import annotations

import json
import logging
from typing import Any

from video_review.models import LEGACY_DISPOSITION_ALIASES, LabelState, ReviewSnapshot

logger = logging.getLogger(__name__)

DB_FILENAME = "review_db.json"
DB_CONTENT_TYPE = "application/json"


class SnapshotFormatError(ValueError):
    """The stored review document is not valid JSON or not an object."""


def _normalize_disposition(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    return LEGACY_DISPOSITION_ALIASES.get(value.strip().lower())


def parse_label_state(raw: Any) -> LabelState | None:
    """Parse one ``labels[id]`` entry.

    Accepts the current ``{"disposition", "tag"}`` object, the older
    ``{"status": "TP"|"FP", "tag"}`` object, and the bare legacy string
    (``"FP"`` becomes reject with an empty tag). Returns None when invalid.
    """
    if isinstance(raw, str):
        disposition = _normalize_disposition(raw)
        return LabelState(disposition=disposition) if disposition else None
    if not isinstance(raw, dict):
        return None
    disposition = _normalize_disposition(raw.get("disposition", raw.get("status")))
    if disposition is None:
        return None
    tag = raw.get("tag", "")
    return LabelState(disposition=disposition, tag=tag if isinstance(tag, str) else "")


def parse_labels(raw: Any) -> dict[str, LabelState]:
    """Parse the ``labels`` mapping, skipping entries that cannot be read."""
    result: dict[str, LabelState] = {}
    if not isinstance(raw, dict):
        return result
    for key, value in raw.items():
        state = parse_label_state(value)
        if state is None:
            logger.warning("Skipping unreadable label for %r: %r", key, value)
            continue
        result[str(key)] = state
    return result


def _parse_last_page(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        return 0
    return value


def dict_to_snapshot(data: dict[str, Any]) -> ReviewSnapshot:
    """Deserialize a review document with type validation."""
    return ReviewSnapshot(
        last_page=_parse_last_page(data.get("lastPage", 0)),
        labels=parse_labels(data.get("labels", {})),
    )


def label_to_dict(state: LabelState) -> dict[str, str]:
    return {"disposition": state.disposition, "tag": state.tag}


def snapshot_to_dict(snapshot: ReviewSnapshot) -> dict[str, Any]:
    """Serialize a snapshot to the persisted JSON shape."""
    return {
        "lastPage": max(0, snapshot.last_page),
        "labels": {key: label_to_dict(state) for key, state in snapshot.labels.items()},
    }


def encode_snapshot(snapshot: ReviewSnapshot) -> bytes:
    return json.dumps(snapshot_to_dict(snapshot), ensure_ascii=False).encode("utf-8")


def decode_snapshot(text: str | bytes) -> ReviewSnapshot:
    """Parse a stored document; empty content yields an empty snapshot."""
    if isinstance(text, bytes):
        text = text.decode("utf-8")
    if not text.strip():
        return ReviewSnapshot()
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise SnapshotFormatError(f"Review document is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise SnapshotFormatError("Review document root must be a JSON object")
    return dict_to_snapshot(data)


__all__ = [
    "DB_CONTENT_TYPE",
    "DB_FILENAME",
    "SnapshotFormatError",
    "decode_snapshot",
    "dict_to_snapshot",
    "encode_snapshot",
    "label_to_dict",
    "parse_label_state",
    "parse_labels",
    "snapshot_to_dict",
]
