"""S3 review backend: catalog listing, presigned playback URLs, document I/O."""

from __future__ import annotations

import asyncio
import logging
import os
import posixpath
from collections.abc import Callable, Mapping, Sequence
from typing import Any

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from video_review.models import (
    DEFAULT_PRESIGN_EXPIRY,
    DEFAULT_VIDEO_EXTENSIONS,
    MAX_PRESIGN_EXPIRY,
    MIN_PRESIGN_EXPIRY,
    InitPayload,
    ReviewSnapshot,
    VideoDescriptor,
)
from video_review.services.interfaces import DEFAULT_AWS_REGION, StorageError
from video_review.snapshot import (
    DB_CONTENT_TYPE,
    DB_FILENAME,
    SnapshotFormatError,
    decode_snapshot,
    encode_snapshot,
)

logger = logging.getLogger(__name__)

S3_MAX_RETRY_ATTEMPTS = 3
S3_LIST_PAGE_SIZE = 1000

# Error codes S3 returns when the client talks to the wrong regional endpoint
_REGION_ERROR_CODES = frozenset(
    {
        "AuthorizationHeaderMalformed",
        "IllegalLocationConstraintException",
        "PermanentRedirect",
        "301",
    }
)
_MISSING_KEY_CODES = frozenset({"NoSuchKey", "404"})

S3ClientFactory = Callable[[str], Any]


def create_s3_client(region: str, environ: Mapping[str, str] | None = None) -> Any:
    """Build an S3 client for ``region``.

    Explicit ``AWS_ACCESS_KEY_ID``/``AWS_SECRET_ACCESS_KEY`` win; otherwise
    boto3's default credential chain (profiles, SSO, instance roles) applies.
    """
    env = os.environ if environ is None else environ
    kwargs: dict[str, Any] = {
        "region_name": region,
        "config": BotoConfig(
            signature_version="s3v4",
            retries={"max_attempts": S3_MAX_RETRY_ATTEMPTS, "mode": "standard"},
        ),
    }
    access_key = env.get("AWS_ACCESS_KEY_ID", "")
    secret_key = env.get("AWS_SECRET_ACCESS_KEY", "")
    if access_key and secret_key:
        kwargs["aws_access_key_id"] = access_key
        kwargs["aws_secret_access_key"] = secret_key
        session_token = env.get("AWS_SESSION_TOKEN", "")
        if session_token:
            kwargs["aws_session_token"] = session_token
    return boto3.client("s3", **kwargs)


def normalize_bucket_region(location: str | None) -> str:
    """Map a ``GetBucketLocation`` constraint to a region name."""
    if not location:
        return DEFAULT_AWS_REGION
    if location == "EU":
        return "eu-west-1"
    return location


def clamp_presign_expiry(seconds: int) -> int:
    return max(MIN_PRESIGN_EXPIRY, min(int(seconds), MAX_PRESIGN_EXPIRY))


def _error_code(exc: ClientError) -> str:
    return str(exc.response.get("Error", {}).get("Code", ""))


def is_region_error(exc: Exception) -> bool:
    """True when ``exc`` indicates a bucket/region endpoint mismatch."""
    if isinstance(exc, ClientError):
        if _error_code(exc) in _REGION_ERROR_CODES:
            return True
    return "endpoint" in str(exc).lower()


def is_video_key(key: str, extensions: Sequence[str]) -> bool:
    if key.endswith("/") or posixpath.basename(key) == DB_FILENAME:
        return False
    return key.lower().endswith(tuple(ext.lower() for ext in extensions))


class S3ReviewBackend:
    """Review store backed by an S3 bucket prefix.

    boto3 is synchronous, so every call runs in a worker thread.
    """

    page_size: int | None = None

    def __init__(
        self,
        bucket: str,
        prefix: str = "",
        *,
        region: str = DEFAULT_AWS_REGION,
        video_extensions: Sequence[str] | None = None,
        presign_expiry: int = DEFAULT_PRESIGN_EXPIRY,
        client_factory: S3ClientFactory | None = None,
    ) -> None:
        self.bucket = bucket
        self.prefix = prefix
        self.region = region
        self.video_extensions = list(video_extensions or DEFAULT_VIDEO_EXTENSIONS)
        self.presign_expiry = clamp_presign_expiry(presign_expiry)
        self._client_factory: S3ClientFactory = client_factory or create_s3_client
        self._client = self._client_factory(region)
        self._video_keys: list[str] = []

    @property
    def description(self) -> str:
        return f"s3://{self.bucket}/{self.prefix}"

    @property
    def db_key(self) -> str:
        return posixpath.join(self.prefix, DB_FILENAME)

    # -- init --------------------------------------------------------------

    async def init(self) -> InitPayload:
        return await asyncio.to_thread(self._init_sync)

    def _init_sync(self) -> InitPayload:
        logger.info("Scanning %s (region %s)", self.description, self.region)
        try:
            return self._load_sync()
        except (BotoCoreError, ClientError) as e:
            if not is_region_error(e):
                raise StorageError(f"Could not read {self.description}: {e}") from e
            logger.info("Region mismatch for bucket %s, detecting region", self.bucket)
            first_error = e
        region = self._detect_region()
        if region is None:
            raise StorageError(
                f"Bucket region could not be detected. Set AWS_REGION to the region of "
                f"bucket {self.bucket}. Error: {first_error}"
            ) from first_error
        logger.info("Detected bucket region %s, recreating S3 client", region)
        self.region = region
        self._client = self._client_factory(region)
        try:
            return self._load_sync()
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"Could not read {self.description}: {e}") from e

    def _load_sync(self) -> InitPayload:
        keys = self._list_video_keys()
        snapshot = self._load_document()
        self._video_keys = keys
        logger.info(
            "Found %d videos; restored page %d with %d labels",
            len(keys),
            snapshot.last_page,
            len(snapshot.labels),
        )
        return InitPayload(video_keys=keys, labels=snapshot.labels, last_page=snapshot.last_page)

    def _list_video_keys(self) -> list[str]:
        keys: list[str] = []
        token: str | None = None
        while True:
            kwargs: dict[str, Any] = {
                "Bucket": self.bucket,
                "Prefix": self.prefix,
                "MaxKeys": S3_LIST_PAGE_SIZE,
            }
            if token:
                kwargs["ContinuationToken"] = token
            resp = self._client.list_objects_v2(**kwargs)
            for obj in resp.get("Contents") or []:
                key = obj.get("Key")
                if key and is_video_key(key, self.video_extensions):
                    keys.append(key)
            if not resp.get("IsTruncated"):
                break
            token = resp.get("NextContinuationToken")
            if not token:
                break
        return keys

    def _load_document(self) -> ReviewSnapshot:
        try:
            resp = self._client.get_object(Bucket=self.bucket, Key=self.db_key)
        except ClientError as e:
            if _error_code(e) in _MISSING_KEY_CODES:
                logger.info("No review document at %s, using defaults", self.db_key)
                return ReviewSnapshot()
            raise
        body = resp["Body"].read()
        try:
            return decode_snapshot(body)
        except (SnapshotFormatError, UnicodeDecodeError) as e:
            # Never autosave over a document we could not read
            raise StorageError(f"Review document {self.db_key} is unreadable: {e}") from e

    def _detect_region(self) -> str | None:
        try:
            probe = self._client_factory(DEFAULT_AWS_REGION)
            response = probe.get_bucket_location(Bucket=self.bucket)
        except (BotoCoreError, ClientError) as e:
            logger.warning("Could not auto-detect region for bucket %s: %s", self.bucket, e)
            return None
        return normalize_bucket_region(response.get("LocationConstraint"))

    # -- pages -------------------------------------------------------------

    async def fetch_page(self, page: int, page_size: int) -> list[VideoDescriptor]:
        start = max(0, page) * page_size
        keys = self._video_keys[start : start + page_size]
        try:
            return await asyncio.to_thread(self._presign_all, keys)
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"Failed to sign URLs for page {page + 1}: {e}", retryable=True) from e

    def _presign_all(self, keys: list[str]) -> list[VideoDescriptor]:
        return [
            VideoDescriptor(
                key=key,
                url=self._client.generate_presigned_url(
                    "get_object",
                    Params={"Bucket": self.bucket, "Key": key},
                    ExpiresIn=self.presign_expiry,
                ),
            )
            for key in keys
        ]

    # -- save --------------------------------------------------------------

    async def save(self, snapshot: ReviewSnapshot) -> None:
        body = encode_snapshot(snapshot)
        try:
            await asyncio.to_thread(
                self._client.put_object,
                Bucket=self.bucket,
                Key=self.db_key,
                Body=body,
                ContentType=DB_CONTENT_TYPE,
            )
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"S3 upload of {self.db_key} failed: {e}", retryable=True) from e

    async def health(self) -> bool:
        try:
            await asyncio.to_thread(self._client.head_bucket, Bucket=self.bucket)
        except (BotoCoreError, ClientError) as e:
            logger.debug("Health check for %s failed: %s", self.bucket, e)
            return False
        return True

    async def aclose(self) -> None:
        close = getattr(self._client, "close", None)
        if callable(close):
            close()


__all__ = [
    "S3ReviewBackend",
    "clamp_presign_expiry",
    "create_s3_client",
    "is_region_error",
    "is_video_key",
    "normalize_bucket_region",
]
