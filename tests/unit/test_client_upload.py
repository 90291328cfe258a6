"""Tests for the resumable upload protocol against a local storage server."""

from __future__ import annotations

import asyncio
import json

import pytest

from firebase_storage.client import StorageClient
from firebase_storage.exceptions import RequestFailedError
from firebase_storage.models import (
    Blob,
    ChunkContinue,
    ChunkFinish,
    UploadMetadata,
    UploadSession,
)
from tests.unit.fake_storage import (
    TEST_BUCKET,
    FakeStorageServer,
    RequestInfo,
    ResponseAction,
)


@pytest.mark.asyncio
async def test_upload_start_sends_resumable_handshake(
    storage: StorageClient, fake_storage: FakeStorageServer
) -> None:
    blob = Blob(b"0123456789", content_type="application/octet-stream")
    metadata = UploadMetadata(
        content_type="text/plain",
        cache_control="no-cache",
        custom_metadata={"owner": "alice"},
    )

    session = await storage.upload_start("p1", blob, metadata)

    assert session == UploadSession(
        upload_url=session.upload_url, granularity=5, offset=0
    )
    assert session.upload_url.endswith("/upload/sess-1")
    [start] = fake_storage.request_log
    assert start.method == "POST"
    assert start.raw_path == f"/v0/b/{TEST_BUCKET}/o/p1"
    assert start.headers["Content-Type"] == "application/json; charset=utf-8"
    assert start.headers["X-Goog-Upload-Protocol"] == "resumable"
    assert start.headers["X-Goog-Upload-Command"] == "start"
    assert start.headers["X-Goog-Upload-Header-Content-Length"] == "10"
    assert start.headers["X-Goog-Upload-Header-Content-Type"] == "text/plain"
    assert json.loads(start.body) == {
        "name": "p1",
        "contentType": "application/octet-stream",
        "cacheControl": "no-cache",
        "metadata": {"owner": "alice"},
    }


@pytest.mark.asyncio
async def test_upload_start_defaults_content_type_header_to_blob_type(
    storage: StorageClient, fake_storage: FakeStorageServer
) -> None:
    await storage.upload_start("p1", Blob(b"{}", content_type="application/json"))

    [start] = fake_storage.request_log
    assert start.headers["X-Goog-Upload-Header-Content-Type"] == "application/json"
    assert json.loads(start.body)["contentType"] == "application/json"


@pytest.mark.asyncio
async def test_upload_chunk_continues_with_new_session(
    storage: StorageClient, fake_storage: FakeStorageServer
) -> None:
    blob = Blob(b"0123456789ab")
    session = await storage.upload_start("p1", blob)

    result = await storage.upload_chunk(session, blob)

    assert isinstance(result, ChunkContinue)
    assert result.session.offset == 5
    assert result.session.upload_url == session.upload_url
    assert result.session.granularity == 5
    assert session.offset == 0
    [chunk] = fake_storage.chunk_requests
    assert chunk.offset == 0
    assert chunk.command == "upload"
    assert chunk.body == b"01234"


@pytest.mark.asyncio
async def test_upload_chunk_short_slice_finishes(
    storage: StorageClient, fake_storage: FakeStorageServer
) -> None:
    blob = Blob(b"012", content_type="text/plain")
    session = await storage.upload_start("p1", blob)

    result = await storage.upload_chunk(session, blob)

    assert isinstance(result, ChunkFinish)
    assert result.metadata.name == "p1"
    assert result.metadata.bucket == TEST_BUCKET
    assert result.metadata.size == 3
    [chunk] = fake_storage.chunk_requests
    assert chunk.command == "upload, finalize"
    assert chunk.body == b"012"


@pytest.mark.asyncio
async def test_exact_multiple_sends_extra_empty_finalizing_chunk(
    storage: StorageClient, fake_storage: FakeStorageServer
) -> None:
    blob = Blob(b"0123456789")

    stored = await storage.upload(
        "p1", blob, UploadMetadata(content_type="text/plain")
    )

    chunks = fake_storage.chunk_requests
    assert [c.offset for c in chunks] == [0, 5, 10]
    assert [c.body for c in chunks] == [b"01234", b"56789", b""]
    assert [c.command for c in chunks] == ["upload", "upload", "upload, finalize"]
    assert stored.name == "p1"
    assert stored.size == 10
    assert fake_storage.contents[(TEST_BUCKET, "p1")] == b"0123456789"


@pytest.mark.parametrize(
    "granularity, size, expected_lengths",
    [
        (5, 0, [0]),
        (5, 5, [5, 0]),
        (8, 21, [8, 8, 5]),
        (5, 12, [5, 5, 2]),
        (1024, 100, [100]),
    ],
)
@pytest.mark.asyncio
async def test_chunk_sequence(
    storage: StorageClient,
    fake_storage: FakeStorageServer,
    granularity: int,
    size: int,
    expected_lengths: list[int],
) -> None:
    fake_storage.granularity = granularity
    payload = bytes(i % 251 for i in range(size))

    stored = await storage.upload("seq", Blob(payload))

    chunks = fake_storage.chunk_requests
    assert [len(c.body) for c in chunks] == expected_lengths
    expected_offsets = [sum(expected_lengths[:i]) for i in range(len(chunks))]
    assert [c.offset for c in chunks] == expected_offsets
    for chunk in chunks[:-1]:
        assert chunk.offset % granularity == 0
        assert chunk.command == "upload"
    assert chunks[-1].command == "upload, finalize"
    assert stored.size == size
    assert fake_storage.contents[(TEST_BUCKET, "seq")] == payload


@pytest.mark.asyncio
async def test_upload_accepts_mutable_buffers(
    storage: StorageClient, fake_storage: FakeStorageServer
) -> None:
    payload = bytearray(b"abcdefghijkl")

    await storage.upload("buffer", Blob(memoryview(payload)))

    assert fake_storage.contents[(TEST_BUCKET, "buffer")] == bytes(payload)


@pytest.mark.asyncio
async def test_progress_callback_reports_each_chunk(storage: StorageClient) -> None:
    progress: list[int] = []

    await storage.upload("p1", Blob(b"x" * 12), progress_callback=progress.append)

    assert progress == [5, 5, 2]
    assert sum(progress) == 12


@pytest.mark.asyncio
async def test_failed_chunk_can_be_resumed_with_same_session(
    storage: StorageClient, fake_storage: FakeStorageServer
) -> None:
    blob = Blob(b"0123456789abc")
    failed = {"done": False}

    def pre_request(info: RequestInfo) -> ResponseAction | None:
        if info.offset == 5 and not failed["done"]:
            failed["done"] = True
            return ResponseAction(status=503)
        return None

    fake_storage.pre_request = pre_request

    session = await storage.upload_start("p1", blob)
    result = await storage.upload_chunk(session, blob)
    assert isinstance(result, ChunkContinue)
    with pytest.raises(RequestFailedError) as exc_info:
        await storage.upload_chunk(result.session, blob)
    assert exc_info.value.status == 503

    stored = await storage.upload_remaining(result.session, blob)

    assert stored.size == 13
    assert fake_storage.session_count == 1
    assert [c.offset for c in fake_storage.chunk_requests] == [0, 5, 5, 10]
    assert fake_storage.contents[(TEST_BUCKET, "p1")] == b"0123456789abc"


@pytest.mark.asyncio
async def test_concurrent_uploads_are_independent(
    storage: StorageClient, fake_storage: FakeStorageServer
) -> None:
    payloads = {f"obj-{i}": bytes([i]) * (i * 7) for i in range(5)}

    results = await asyncio.gather(
        *(storage.upload(path, Blob(data)) for path, data in payloads.items())
    )

    assert [r.name for r in results] == list(payloads)
    assert fake_storage.session_count == len(payloads)
    for path, data in payloads.items():
        assert fake_storage.contents[(TEST_BUCKET, path)] == data


@pytest.mark.asyncio
async def test_non_contiguous_payload_fails_before_any_request(
    storage: StorageClient, fake_storage: FakeStorageServer
) -> None:
    with pytest.raises(ValueError):
        await storage.upload("strided", Blob(memoryview(b"0123456789ab")[::2]))

    assert fake_storage.request_log == []
    assert fake_storage.session_count == 0
