"""Backend interface + source resolution for app-level dependency injection."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from video_review.models import InitPayload, ReviewConfig, ReviewSnapshot, VideoDescriptor

if TYPE_CHECKING:
    from collections.abc import Mapping

DEFAULT_AWS_REGION = "us-east-1"


class StorageError(RuntimeError):
    """A backend operation failed; ``retryable`` marks transient conditions."""

    def __init__(self, message: str, *, retryable: bool = False) -> None:
        super().__init__(message)
        self.retryable = retryable


@runtime_checkable
class ReviewBackend(Protocol):
    """Interface for the durable store behind a review session."""

    description: str
    # Fixed page width imposed by the store, or None to use the configured size
    page_size: int | None

    async def init(self) -> InitPayload:
        """Return the catalog plus the persisted review document."""
        ...

    async def fetch_page(self, page: int, page_size: int) -> list[VideoDescriptor]:
        """Return playable descriptors for one page of the catalog."""
        ...

    async def save(self, snapshot: ReviewSnapshot) -> None:
        """Overwrite the whole review document. Raises ``StorageError``."""
        ...

    async def health(self) -> bool:
        """Report whether the store is reachable."""
        ...

    async def aclose(self) -> None:
        """Release network clients."""
        ...


def parse_s3_path(s3_path: str) -> tuple[str, str]:
    """Split ``s3://bucket/a/b`` into ``("bucket", "a/b/")``.

    Empty path segments are dropped; a bucket-only path has prefix ``""``.
    """
    stripped = s3_path.strip()
    if stripped.startswith("s3://"):
        stripped = stripped[len("s3://") :]
    bucket, _, rest = stripped.partition("/")
    parts = [part for part in rest.split("/") if part]
    prefix = "/".join(parts) + "/" if parts else ""
    return bucket, prefix


def source_from_env(environ: Mapping[str, str] | None = None) -> str | None:
    """Build an ``s3://`` source from ``AWS_S3_BUCKET``/``AWS_S3_PREFIX``."""
    env = os.environ if environ is None else environ
    bucket = env.get("AWS_S3_BUCKET", "").strip()
    if not bucket:
        return None
    prefix = env.get("AWS_S3_PREFIX", "").strip().strip("/")
    return f"s3://{bucket}/{prefix}" if prefix else f"s3://{bucket}"


def resolve_region(config: ReviewConfig, environ: Mapping[str, str] | None = None) -> str:
    """Pick the initial AWS region: config, then ``AWS_REGION``, then us-east-1."""
    env = os.environ if environ is None else environ
    return config.aws_region or env.get("AWS_REGION", "") or DEFAULT_AWS_REGION


def build_backend(source: str, config: ReviewConfig) -> ReviewBackend:
    """Build the backend matching ``source``.

    ``s3://`` selects the S3 store, ``http(s)://`` a review server, and
    anything else is treated as a local directory.
    """
    source = source.strip()
    if not source:
        raise ValueError("A review source is required")
    if source.startswith("s3://"):
        from video_review.services.s3_service import S3ReviewBackend

        bucket, prefix = parse_s3_path(source)
        if not bucket:
            raise ValueError(f"Could not parse bucket name from {source!r}")
        return S3ReviewBackend(
            bucket,
            prefix,
            region=resolve_region(config),
            video_extensions=config.video_extensions,
            presign_expiry=config.presign_expiry_seconds,
        )
    if source.startswith(("http://", "https://")):
        from video_review.services.http_service import HttpReviewBackend

        return HttpReviewBackend(source)

    from video_review.services.local_service import LocalReviewBackend

    return LocalReviewBackend(source, video_extensions=config.video_extensions)


__all__ = [
    "DEFAULT_AWS_REGION",
    "ReviewBackend",
    "StorageError",
    "build_backend",
    "parse_s3_path",
    "resolve_region",
    "source_from_env",
]
