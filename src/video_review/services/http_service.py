"""HTTP review backend for a deployed review server (``/api/*`` routes)."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from video_review.models import InitPayload, ReviewSnapshot, VideoDescriptor
from video_review.services.interfaces import StorageError
from video_review.snapshot import dict_to_snapshot, snapshot_to_dict

logger = logging.getLogger(__name__)

HTTP_TIMEOUT_SECONDS = 30.0
# The server slices pages itself with a fixed size
SERVER_PAGE_SIZE = 8


class HttpReviewBackend:
    """Review store reached through a review server's JSON API."""

    page_size: int | None = SERVER_PAGE_SIZE

    def __init__(
        self,
        base_url: str,
        *,
        client: httpx.AsyncClient | None = None,
        timeout_seconds: float = HTTP_TIMEOUT_SECONDS,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout_seconds)

    @property
    def description(self) -> str:
        return self.base_url

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    async def _get_json(self, path: str, **params: Any) -> Any:
        response = await self._client.get(self._url(path), params=params or None)
        if response.status_code == 503:
            raise StorageError("Review server is still initializing", retryable=True)
        response.raise_for_status()
        return response.json()

    async def init(self) -> InitPayload:
        try:
            data = await self._get_json("/api/init")
        except httpx.HTTPStatusError as e:
            raise StorageError(f"Review server rejected init: {_server_error(e.response)}") from e
        except (httpx.HTTPError, ValueError) as e:
            raise StorageError(f"Could not reach review server: {e}", retryable=True) from e
        if not isinstance(data, dict):
            raise StorageError("Review server returned a malformed init payload")
        keys = data.get("videoKeys", [])
        if not isinstance(keys, list):
            raise StorageError("Review server returned a malformed video list")
        snapshot = dict_to_snapshot(data)
        return InitPayload(
            video_keys=[str(key) for key in keys],
            labels=snapshot.labels,
            last_page=snapshot.last_page,
        )

    async def fetch_page(self, page: int, page_size: int) -> list[VideoDescriptor]:
        if page_size != SERVER_PAGE_SIZE:
            logger.warning("Server pages are %d wide; requested %d", SERVER_PAGE_SIZE, page_size)
        try:
            data = await self._get_json("/api/page", page=page)
        except (httpx.HTTPError, ValueError) as e:
            raise StorageError(f"Failed to load page {page + 1}: {e}", retryable=True) from e
        videos = data.get("videos", []) if isinstance(data, dict) else []
        return [
            VideoDescriptor(key=str(item["key"]), url=str(item["url"]))
            for item in videos
            if isinstance(item, dict) and "key" in item and "url" in item
        ]

    async def save(self, snapshot: ReviewSnapshot) -> None:
        try:
            response = await self._client.post(self._url("/api/save"), json=snapshot_to_dict(snapshot))
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise StorageError(f"Save rejected: {_server_error(e.response)}", retryable=True) from e
        except httpx.HTTPError as e:
            raise StorageError(f"Save request failed: {e}", retryable=True) from e

    async def health(self) -> bool:
        try:
            data = await self._get_json("/api/health")
        except (httpx.HTTPError, StorageError, ValueError) as e:
            logger.debug("Health check failed: %s", e)
            return False
        return isinstance(data, dict) and data.get("status") == "ok"

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


def _server_error(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return f"HTTP {response.status_code}"
    if isinstance(payload, dict) and payload.get("error"):
        return str(payload["error"])
    return f"HTTP {response.status_code}"


__all__ = ["SERVER_PAGE_SIZE", "HttpReviewBackend"]
