"""CLI/bootstrap helpers for the video review application."""

from __future__ import annotations

import argparse
import asyncio
import logging
import logging.handlers
import sys
from collections.abc import Callable, Mapping
from typing import Any

from video_review.action_messages import build_actionable_error, build_stats_report
from video_review.config import get_config_dir, load_config
from video_review.models import (
    DEFAULT_AUTOSAVE_DELAY,
    DEFAULT_PAGE_SIZE,
    LABEL_STYLES,
    MAX_AUTOSAVE_DELAY,
    MAX_PAGE_SIZE,
    MIN_AUTOSAVE_DELAY,
    ReviewConfig,
)
from video_review.services.interfaces import ReviewBackend, build_backend, source_from_env
from video_review.session import ReviewSession, SessionStartError

logger = logging.getLogger(__name__)


def _configure_logging(debug: bool) -> None:
    """Configure logging. When debug=True, logs to file at DEBUG level."""
    if not debug:
        # Default: suppress all logging (TUI captures stderr)
        logging.disable(logging.CRITICAL)
        return

    log_dir = get_config_dir()
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "debug.log"

    handler = logging.handlers.RotatingFileHandler(
        log_file,
        maxBytes=5 * 1024 * 1024,
        backupCount=3,
        encoding="utf-8",
    )
    handler.setFormatter(
        logging.Formatter(
            "%(asctime)s %(name)s %(levelname)s %(message)s",
            datefmt="%H:%M:%S",
        )
    )
    logging.root.addHandler(handler)
    logging.root.setLevel(logging.DEBUG)
    # boto's wire-level debug output drowns everything else
    for noisy in ("botocore", "boto3", "urllib3", "s3transfer"):
        logging.getLogger(noisy).setLevel(logging.INFO)


def _validate_interactive_tty() -> bool:
    """Return True when stdin/stdout are interactive terminals."""
    return bool(sys.stdin.isatty() and sys.stdout.isatty())


def _prompt_for_source(input_fn: Callable[[str], str] = input) -> str:
    try:
        return input_fn("S3 path to review (s3://bucket/prefix): ").strip()
    except EOFError:
        return ""


def _resolve_source(
    args: argparse.Namespace,
    config: ReviewConfig,
    *,
    environ: Mapping[str, str] | None = None,
    interactive: bool,
    prompt_fn: Callable[[], str] = _prompt_for_source,
) -> str:
    """Pick the review source: argument, then environment, then last run, then prompt."""
    if args.source:
        return str(args.source).strip()
    from_env = source_from_env(environ)
    if from_env:
        return from_env
    if config.last_source:
        return config.last_source
    if interactive:
        return prompt_fn()
    return ""


def _apply_overrides(args: argparse.Namespace, config: ReviewConfig) -> ReviewConfig:
    """Apply command-line flags on top of the loaded config (not persisted)."""
    if args.page_size is not None:
        config.page_size = max(1, min(args.page_size, MAX_PAGE_SIZE))
    if args.autosave_delay is not None:
        config.autosave_delay = max(MIN_AUTOSAVE_DELAY, min(args.autosave_delay, MAX_AUTOSAVE_DELAY))
    if args.player is not None:
        config.player_command = args.player
    if args.region:
        config.aws_region = args.region
    if args.no_tags:
        config.tags_enabled = False
    if args.label_style:
        config.label_style = args.label_style
    return config


async def _collect_stats(backend: ReviewBackend, config: ReviewConfig) -> str:
    session = ReviewSession(backend, config)
    try:
        await session.load()
        return build_stats_report(backend.description, session.stats(), session.cursor.total_pages)
    finally:
        await backend.aclose()


def _print_stats(backend: ReviewBackend, config: ReviewConfig) -> int:
    try:
        report = asyncio.run(_collect_stats(backend, config))
    except SessionStartError as e:
        print(
            build_actionable_error(
                f"read {backend.description}",
                why=str(e),
                next_step="check credentials and the source path",
            ),
            file=sys.stderr,
        )
        return 1
    print(report)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Review videos stored in S3 page by page, labeling each accept or reject"
    )
    parser.add_argument(
        "source",
        nargs="?",
        default=None,
        metavar="SOURCE",
        help=(
            "s3://bucket/prefix, an http(s):// review server, or a local directory "
            "(default: $AWS_S3_BUCKET/$AWS_S3_PREFIX, then the last source)"
        ),
    )
    parser.add_argument(
        "--page-size",
        type=int,
        default=None,
        help=f"Videos per page (1-{MAX_PAGE_SIZE}; default: config value, {DEFAULT_PAGE_SIZE})",
    )
    parser.add_argument(
        "--autosave-delay",
        type=float,
        default=None,
        help=f"Seconds of quiet before autosave (default: config value, {DEFAULT_AUTOSAVE_DELAY})",
    )
    parser.add_argument(
        "--player",
        type=str,
        default=None,
        help='Player command, e.g. "mpv --fs {url}" (empty string: system browser)',
    )
    parser.add_argument(
        "--region",
        type=str,
        default=None,
        help="AWS region for the bucket (default: $AWS_REGION, then us-east-1)",
    )
    parser.add_argument(
        "--no-tags",
        action="store_true",
        help="Hide tags and disable tag editing for this session",
    )
    parser.add_argument(
        "--label-style",
        choices=sorted(LABEL_STYLES),
        default=None,
        help="Display labels as ACCEPT/REJECT or TP/FP (stored values are unchanged)",
    )
    parser.add_argument(
        "--no-restore",
        action="store_true",
        help="Start on the first page instead of the last visited one",
    )
    parser.add_argument(
        "--stats",
        action="store_true",
        help="Print label counts for the source and exit",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging to file (~/.config/video-review/debug.log)",
    )
    return parser


def main(
    argv: list[str] | None = None,
    *,
    load_config_fn: Callable[[], ReviewConfig] = load_config,
    build_backend_fn: Callable[[str, ReviewConfig], ReviewBackend] = build_backend,
    configure_logging_fn: Callable[[bool], None] = _configure_logging,
    validate_interactive_tty_fn: Callable[[], bool] = _validate_interactive_tty,
    prompt_fn: Callable[[], str] = _prompt_for_source,
    environ: Mapping[str, str] | None = None,
    app_factory: Callable[..., Any] | None = None,
) -> int:
    """Main entry point. Returns exit code."""
    args = build_parser().parse_args(argv)
    configure_logging_fn(args.debug)
    logger.debug("video-review starting, argv=%s", argv)

    config = _apply_overrides(args, load_config_fn())
    interactive = validate_interactive_tty_fn()

    source = _resolve_source(
        args,
        config,
        environ=environ,
        interactive=interactive and not args.stats,
        prompt_fn=prompt_fn,
    )
    if not source:
        print(
            build_actionable_error(
                "start video-review",
                why="no source was given",
                next_step="pass s3://bucket/prefix or set AWS_S3_BUCKET",
            ),
            file=sys.stderr,
        )
        return 1

    try:
        backend = build_backend_fn(source, config)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.stats:
        return _print_stats(backend, config)

    if not interactive:
        print(
            "Error: video-review requires an interactive TTY for the full UI.",
            file=sys.stderr,
        )
        print("Next steps:", file=sys.stderr)
        print("  - Run video-review directly in a terminal session", file=sys.stderr)
        print("  - Use --stats for non-interactive output", file=sys.stderr)
        print("  - Use --help for command documentation", file=sys.stderr)
        return 2

    if app_factory is None:
        from video_review.app import VideoReviewApp as _VideoReviewApp

        app_factory = _VideoReviewApp

    app = app_factory(backend, config, restore_page=not args.no_restore)
    app.run()
    return 0


__all__ = [
    "_apply_overrides",
    "_configure_logging",
    "_resolve_source",
    "_validate_interactive_tty",
    "build_parser",
    "main",
]
