"""Storage backends behind a review session."""

from video_review.services.interfaces import (
    ReviewBackend,
    StorageError,
    build_backend,
    parse_s3_path,
    source_from_env,
)

__all__ = [
    "ReviewBackend",
    "StorageError",
    "build_backend",
    "parse_s3_path",
    "source_from_env",
]
