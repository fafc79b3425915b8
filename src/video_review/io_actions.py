"""Helpers for launching the external video player."""

from __future__ import annotations

import logging
import os
import shlex
import subprocess  # nosec B404
import webbrowser
from collections.abc import Callable
from urllib.parse import unquote, urlparse

logger = logging.getLogger(__name__)


def build_viewer_args(viewer_cmd: str, url_or_path: str) -> list[str]:
    """Build subprocess argument list for a configured player command.

    The command may use ``{url}`` or ``{path}`` placeholders; without one the
    URL is appended as the last argument.
    """
    args = shlex.split(viewer_cmd, posix=os.name != "nt")
    if os.name == "nt":
        # Windows split keeps wrapping quotes when posix=False.
        args = [
            arg[1:-1] if len(arg) >= 2 and arg.startswith('"') and arg.endswith('"') else arg
            for arg in args
        ]
    if not args:
        raise ValueError("Player command is empty")
    if "{url}" in viewer_cmd or "{path}" in viewer_cmd:
        return [arg.replace("{url}", url_or_path).replace("{path}", url_or_path) for arg in args]
    return [*args, url_or_path]


def file_uri_to_path(url: str) -> str:
    """Local players take filesystem paths; presigned URLs pass through."""
    if url.startswith("file://"):
        return unquote(urlparse(url).path)
    return url


def launch_player(
    player_cmd: str,
    url: str,
    *,
    popen: Callable[..., object] = subprocess.Popen,
    browser_open: Callable[[str], bool] = webbrowser.open,
) -> bool:
    """Play ``url`` with the configured player, or the system browser."""
    try:
        if not player_cmd.strip():
            return bool(browser_open(url))
        target = url if "{url}" in player_cmd else file_uri_to_path(url)
        # User-configured local player command execution is an explicit feature.
        popen(  # nosec B603
            build_viewer_args(player_cmd, target),
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
        )
        return True
    except (ValueError, OSError, webbrowser.Error) as e:
        logger.warning("Failed to launch player %r: %s", player_cmd, e)
        return False


__all__ = ["build_viewer_args", "file_uri_to_path", "launch_player"]
