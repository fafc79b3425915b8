"""Tests for the local-directory backend and backend selection."""

from __future__ import annotations

import json

import pytest

from video_review.models import REJECT, LabelState, ReviewConfig, ReviewSnapshot
from video_review.services import ReviewBackend, StorageError, build_backend, parse_s3_path, source_from_env
from video_review.services.interfaces import resolve_region
from video_review.services.local_service import LocalReviewBackend, scan_video_files, write_atomic


def _touch(path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"\x00")


class TestLocalBackend:
    def test_scan_video_files_sorted_relative(self, tmp_path) -> None:
        _touch(tmp_path / "b" / "two.MP4")
        _touch(tmp_path / "a.mp4")
        _touch(tmp_path / "notes.txt")
        (tmp_path / "review_db.json").write_text("{}", encoding="utf-8")

        assert scan_video_files(tmp_path, [".mp4"]) == ["a.mp4", "b/two.MP4"]

    @pytest.mark.asyncio
    async def test_init_save_and_reload(self, tmp_path) -> None:
        _touch(tmp_path / "a.mp4")
        backend = LocalReviewBackend(tmp_path)

        payload = await backend.init()
        assert payload.video_keys == ["a.mp4"]
        assert payload.labels == {}

        await backend.save(ReviewSnapshot(last_page=0, labels={"a.mp4": LabelState(REJECT, "dim")}))
        stored = json.loads((tmp_path / "review_db.json").read_text(encoding="utf-8"))
        assert stored["labels"]["a.mp4"] == {"disposition": "reject", "tag": "dim"}

        reloaded = await LocalReviewBackend(tmp_path).init()
        assert reloaded.labels == {"a.mp4": LabelState(REJECT, "dim")}

    @pytest.mark.asyncio
    async def test_fetch_page_returns_file_uris(self, tmp_path) -> None:
        _touch(tmp_path / "clip one.mp4")
        backend = LocalReviewBackend(tmp_path)
        await backend.init()

        descriptors = await backend.fetch_page(0, 8)

        assert descriptors[0].key == "clip one.mp4"
        assert descriptors[0].url.startswith("file://")
        assert descriptors[0].url.endswith("clip%20one.mp4")

    @pytest.mark.asyncio
    async def test_missing_directory(self, tmp_path) -> None:
        backend = LocalReviewBackend(tmp_path / "nope")

        with pytest.raises(StorageError, match="not a directory"):
            await backend.init()
        assert await backend.health() is False

    @pytest.mark.asyncio
    async def test_corrupt_document_is_fatal(self, tmp_path) -> None:
        (tmp_path / "review_db.json").write_text("[1, 2]", encoding="utf-8")

        with pytest.raises(StorageError, match="unreadable"):
            await LocalReviewBackend(tmp_path).init()

    def test_write_atomic_leaves_no_temp_files(self, tmp_path) -> None:
        target = tmp_path / "out" / "review_db.json"

        write_atomic(target, b"{}")
        write_atomic(target, b'{"lastPage": 1}')

        assert target.read_bytes() == b'{"lastPage": 1}'
        assert list(target.parent.glob("*.tmp")) == []


class TestSourceResolution:
    @pytest.mark.parametrize(
        ("path", "expected"),
        [
            ("s3://media", ("media", "")),
            ("s3://media/", ("media", "")),
            ("s3://media/a//b", ("media", "a/b/")),
            ("media/batch/", ("media", "batch/")),
        ],
    )
    def test_parse_s3_path(self, path, expected) -> None:
        assert parse_s3_path(path) == expected

    def test_source_from_env(self) -> None:
        assert source_from_env({}) is None
        assert source_from_env({"AWS_S3_BUCKET": "media"}) == "s3://media"
        assert (
            source_from_env({"AWS_S3_BUCKET": "media", "AWS_S3_PREFIX": "/batch/"})
            == "s3://media/batch"
        )

    def test_resolve_region_order(self) -> None:
        assert resolve_region(ReviewConfig(aws_region="eu-north-1"), {"AWS_REGION": "x"}) == "eu-north-1"
        assert resolve_region(ReviewConfig(), {"AWS_REGION": "ap-east-1"}) == "ap-east-1"
        assert resolve_region(ReviewConfig(), {}) == "us-east-1"

    def test_build_backend_local_and_http(self, tmp_path) -> None:
        local = build_backend(str(tmp_path), ReviewConfig())
        remote = build_backend("https://review.example/", ReviewConfig())

        assert isinstance(local, LocalReviewBackend)
        assert isinstance(local, ReviewBackend)
        assert remote.description == "https://review.example"

    def test_build_backend_s3(self, monkeypatch) -> None:
        created: list[str] = []
        monkeypatch.setattr(
            "video_review.services.s3_service.create_s3_client",
            lambda region, environ=None: created.append(region) or object(),
        )
        monkeypatch.setenv("AWS_REGION", "sa-east-1")

        backend = build_backend("s3://media/batch", ReviewConfig())

        assert backend.description == "s3://media/batch/"
        assert created == ["sa-east-1"]

    @pytest.mark.parametrize("source", ["", "   ", "s3://"])
    def test_build_backend_rejects_bad_source(self, source) -> None:
        with pytest.raises(ValueError):
            build_backend(source, ReviewConfig())
