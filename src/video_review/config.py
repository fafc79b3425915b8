"""Configuration persistence: load and save user preferences."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from platformdirs import user_config_dir

from video_review.models import (
    CONFIG_APP_NAME,
    DEFAULT_AUTOSAVE_DELAY,
    DEFAULT_PAGE_SIZE,
    DEFAULT_PRESIGN_EXPIRY,
    DEFAULT_VIDEO_EXTENSIONS,
    LABEL_STYLES,
    ReviewConfig,
)

logger = logging.getLogger(__name__)

# ============================================================================
# Configuration Persistence
# ============================================================================
#
# _dict_to_config() returns a valid ReviewConfig for any input:
#
#   Field                   Rule                        Handler
#   ──────────────────────  ──────────────────────────  ─────────────────────
#   page_size               1 ≤ x ≤ 9                   ReviewConfig.__post_init__
#   autosave_delay          0.05 ≤ x ≤ 10 (seconds)     ReviewConfig.__post_init__
#   presign_expiry_seconds  60 ≤ x ≤ 86400              ReviewConfig.__post_init__
#   label_style             in LABEL_STYLES             _parse_label_style
#   video_extensions[]      ".ext" strings, lowercased  _parse_extensions
#   scalar fields           type-checked via _safe_get  _dict_to_config
#
CONFIG_FILENAME = "config.json"


def get_config_dir() -> Path:
    """Directory holding ``config.json`` and ``debug.log``.

    - Linux: ~/.config/video-review/
    - macOS: ~/Library/Application Support/video-review/
    - Windows: %APPDATA%/video-review/
    """
    return Path(user_config_dir(CONFIG_APP_NAME))


def get_config_path() -> Path:
    return get_config_dir() / CONFIG_FILENAME


def _config_to_dict(config: ReviewConfig) -> dict[str, Any]:
    """Serialize ReviewConfig to a JSON-compatible dictionary."""
    return {
        "version": config.version,
        "page_size": config.page_size,
        "autosave_delay": config.autosave_delay,
        "player_command": config.player_command,
        "tags_enabled": config.tags_enabled,
        "label_style": config.label_style,
        "theme_name": config.theme_name,
        "presign_expiry_seconds": config.presign_expiry_seconds,
        "video_extensions": config.video_extensions,
        "last_source": config.last_source,
        "aws_region": config.aws_region,
    }


def _safe_get(data: dict, key: str, default: Any, expected_type: type | tuple[type, ...]) -> Any:
    """Safely get a value from dict with type validation.

    Returns the default if key is missing or value has wrong type.
    Booleans never pass as numbers.
    """
    value = data.get(key, default)
    if isinstance(value, bool) and expected_type is not bool:
        return default
    if not isinstance(value, expected_type):
        return default
    return value


def _parse_label_style(raw: Any) -> str:
    if isinstance(raw, str) and raw in LABEL_STYLES:
        return raw
    return "accept-reject"


def _parse_extensions(raw: Any) -> list[str]:
    """Normalize extension list entries to lowercase ``.ext`` form."""
    if not isinstance(raw, list):
        return list(DEFAULT_VIDEO_EXTENSIONS)
    extensions: list[str] = []
    for item in raw:
        if not isinstance(item, str) or not item.strip():
            continue
        ext = item.strip().lower()
        if not ext.startswith("."):
            ext = f".{ext}"
        if ext not in extensions:
            extensions.append(ext)
    return extensions or list(DEFAULT_VIDEO_EXTENSIONS)


def _dict_to_config(data: dict[str, Any]) -> ReviewConfig:
    """Deserialize a dictionary to ReviewConfig with type validation."""
    return ReviewConfig(
        page_size=_safe_get(data, "page_size", DEFAULT_PAGE_SIZE, int),
        autosave_delay=float(
            _safe_get(data, "autosave_delay", DEFAULT_AUTOSAVE_DELAY, (int, float))
        ),
        player_command=_safe_get(data, "player_command", "", str),
        tags_enabled=_safe_get(data, "tags_enabled", True, bool),
        label_style=_parse_label_style(data.get("label_style")),
        theme_name=_safe_get(data, "theme_name", "monokai", str),
        presign_expiry_seconds=_safe_get(
            data, "presign_expiry_seconds", DEFAULT_PRESIGN_EXPIRY, int
        ),
        video_extensions=_parse_extensions(data.get("video_extensions")),
        last_source=_safe_get(data, "last_source", "", str),
        aws_region=_safe_get(data, "aws_region", "", str),
        version=_safe_get(data, "version", 1, int),
    )


def load_config() -> ReviewConfig:
    """Load configuration from disk.

    Returns default config if file doesn't exist or is corrupted.
    """
    config_path = get_config_path()

    if not config_path.exists():
        return ReviewConfig()

    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        logger.warning("Config file has invalid JSON, using defaults: %s", e)
        return ReviewConfig()
    except OSError as e:
        logger.warning("Could not read config file, using defaults: %s", e)
        return ReviewConfig()
    if not isinstance(data, dict):
        logger.warning("Config file has invalid structure, using defaults")
        return ReviewConfig()
    return _dict_to_config(data)


def save_config(config: ReviewConfig) -> bool:
    """Save configuration to disk atomically.

    Uses write-to-tempfile + os.replace() so an interrupted write never
    leaves a truncated config behind. Returns True on success.
    """
    config_path = get_config_path()

    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)

        json_str = json.dumps(_config_to_dict(config), indent=2, ensure_ascii=False)
        fd, tmp_path = tempfile.mkstemp(dir=config_path.parent, suffix=".tmp", prefix=".config-")
        closed = False
        try:
            os.write(fd, json_str.encode("utf-8"))
            os.close(fd)
            closed = True
            os.replace(tmp_path, config_path)
        except BaseException:
            if not closed:
                os.close(fd)
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise
        return True
    except OSError as e:
        logger.error("Failed to save config: %s", e)
        return False


__all__ = [
    "CONFIG_FILENAME",
    "get_config_dir",
    "get_config_path",
    "load_config",
    "save_config",
]
