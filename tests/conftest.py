"""
Shared fixtures: an in-memory blob store and an API client wired to it.
"""

import json
from typing import Optional

import pytest
from fastapi.testclient import TestClient

from review_router.infrastructure.persistence import BlobStore, BlobStoreError, ConfigRepository, CONFIG_KEY
from review_router.web.app import app, get_blob_store


class MemoryBlobStore(BlobStore):
    """Dict-backed store that can be told to fail reads or writes."""

    def __init__(self):
        self.values = {}
        self.metadata = {}
        self.fail_reads = False
        self.fail_writes = False
        self.writes = 0

    def get(self, key: str) -> Optional[str]:
        if self.fail_reads:
            raise BlobStoreError("read unavailable")
        return self.values.get(key)

    def set(self, key: str, value: str, metadata: Optional[dict] = None) -> None:
        if self.fail_writes:
            raise BlobStoreError("write unavailable")
        self.values[key] = value
        self.metadata[key] = metadata or {}
        self.writes += 1

    # test helpers

    def put_config(self, document) -> None:
        self.values[CONFIG_KEY] = json.dumps(document)

    def stored_config(self) -> dict:
        return json.loads(self.values[CONFIG_KEY])


@pytest.fixture
def store() -> MemoryBlobStore:
    return MemoryBlobStore()


@pytest.fixture
def repository(store) -> ConfigRepository:
    return ConfigRepository(store)


@pytest.fixture
def fixed_clock():
    return lambda: "2024-05-01T09:30:00.000Z"


@pytest.fixture
def client(store):
    app.dependency_overrides[get_blob_store] = lambda: store
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
