"""Tests for the review-server HTTP backend using httpx.MockTransport."""

from __future__ import annotations

import json

import httpx
import pytest

from video_review.models import ACCEPT, REJECT, LabelState, ReviewSnapshot
from video_review.services.http_service import HttpReviewBackend
from video_review.services.interfaces import StorageError


def _backend(handler) -> HttpReviewBackend:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return HttpReviewBackend("http://review.local/", client=client)


@pytest.mark.asyncio
async def test_init_parses_keys_and_document() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/init"
        return httpx.Response(
            200,
            json={
                "videoKeys": ["a.mp4", "b.mp4"],
                "lastPage": 1,
                "labels": {"a.mp4": {"disposition": "reject", "tag": "x"}, "b.mp4": "TP"},
            },
        )

    backend = _backend(handler)
    payload = await backend.init()

    assert backend.description == "http://review.local"
    assert payload.video_keys == ["a.mp4", "b.mp4"]
    assert payload.last_page == 1
    assert payload.labels == {"a.mp4": LabelState(REJECT, "x"), "b.mp4": LabelState(ACCEPT, "")}


@pytest.mark.asyncio
async def test_init_503_is_retryable() -> None:
    backend = _backend(lambda request: httpx.Response(503, json={"error": "Server initializing"}))

    with pytest.raises(StorageError, match="initializing") as excinfo:
        await backend.init()

    assert excinfo.value.retryable is True


@pytest.mark.asyncio
async def test_init_server_error_uses_error_field() -> None:
    backend = _backend(lambda request: httpx.Response(500, json={"error": "Bucket not configured"}))

    with pytest.raises(StorageError, match="Bucket not configured"):
        await backend.init()


@pytest.mark.asyncio
async def test_init_malformed_payload() -> None:
    backend = _backend(lambda request: httpx.Response(200, json={"videoKeys": "nope"}))

    with pytest.raises(StorageError, match="malformed"):
        await backend.init()


@pytest.mark.asyncio
async def test_fetch_page_sends_page_and_filters_entries() -> None:
    seen: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.url.params["page"])
        return httpx.Response(
            200,
            json={"videos": [{"key": "a.mp4", "url": "https://signed/a"}, {"key": "broken"}]},
        )

    backend = _backend(handler)
    descriptors = await backend.fetch_page(2, 8)

    assert seen == ["2"]
    assert [(d.key, d.url) for d in descriptors] == [("a.mp4", "https://signed/a")]


@pytest.mark.asyncio
async def test_fetch_page_network_error_is_retryable() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    backend = _backend(handler)

    with pytest.raises(StorageError) as excinfo:
        await backend.fetch_page(0, 8)

    assert excinfo.value.retryable is True


@pytest.mark.asyncio
async def test_save_posts_full_document() -> None:
    bodies: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "POST"
        assert request.url.path == "/api/save"
        bodies.append(json.loads(request.content))
        return httpx.Response(200, json={"success": True})

    backend = _backend(handler)
    await backend.save(ReviewSnapshot(last_page=3, labels={"a.mp4": LabelState(REJECT, "")}))

    assert bodies == [{"lastPage": 3, "labels": {"a.mp4": {"disposition": "reject", "tag": ""}}}]


@pytest.mark.asyncio
async def test_save_rejected() -> None:
    backend = _backend(lambda request: httpx.Response(500, json={"error": "Failed to save"}))

    with pytest.raises(StorageError, match="Failed to save"):
        await backend.save(ReviewSnapshot())


@pytest.mark.asyncio
async def test_health() -> None:
    ok = _backend(lambda request: httpx.Response(200, json={"status": "ok"}))
    down = _backend(lambda request: httpx.Response(503, json={"error": "init"}))

    assert await ok.health() is True
    assert await down.health() is False


@pytest.mark.asyncio
async def test_aclose_leaves_injected_client_open() -> None:
    client = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200)))
    backend = HttpReviewBackend("http://review.local", client=client)

    await backend.aclose()

    assert client.is_closed is False
    await client.aclose()


@pytest.mark.asyncio
async def test_aclose_closes_owned_client() -> None:
    backend = HttpReviewBackend("http://review.local")

    await backend.aclose()

    assert backend._client.is_closed is True
