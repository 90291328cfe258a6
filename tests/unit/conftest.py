"""Shared fixtures for storage client tests."""

from __future__ import annotations

import pytest_asyncio

from firebase_storage.client import StorageClient
from tests.unit.fake_storage import (
    FakeStorageServer,
    RecordingTokenSource,
    make_settings,
)


@pytest_asyncio.fixture
async def fake_storage():
    """Start a local storage server with a granularity of 5 bytes."""
    server = FakeStorageServer(granularity=5)
    await server.start()
    yield server
    await server.close()


@pytest_asyncio.fixture
async def token_source() -> RecordingTokenSource:
    return RecordingTokenSource()


@pytest_asyncio.fixture
async def storage(fake_storage: FakeStorageServer, token_source: RecordingTokenSource):
    """Create and cleanup a StorageClient pointed at the local server."""
    client = StorageClient(make_settings(fake_storage), token_source)
    yield client
    await client.close()
