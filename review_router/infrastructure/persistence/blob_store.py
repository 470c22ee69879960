"""
Blob Store - Key-Value Persistence Backends
===========================================

Provides a unified interface for storing whole JSON documents by key.

USAGE:
    # Local SQLite file (development, single host)
    store = SQLiteBlobStore("review_router.db", store_name="router")
    store.set("router-config", '{"labels": {}}', metadata={"updatedAt": "..."})
    store.get("router-config")

    # Remote blob service over HTTP
    store = HttpBlobStore("https://blobs.example.com", "router", token="...")

Every ``set`` replaces the whole value; there is no partial update and no
compare-and-swap. Failures are raised as BlobStoreError so callers decide
whether to swallow (reads) or propagate (writes).
"""

import base64
import json
import logging
import sqlite3
from abc import ABC, abstractmethod
from contextlib import contextmanager
from pathlib import Path
from typing import Optional, Union
from urllib.parse import quote

import requests

from ..config import StoreSettings

logger = logging.getLogger(__name__)

METADATA_HEADER = "x-blob-metadata"


class BlobStoreError(Exception):
    """Raised when a blob store read or write fails."""
    pass


class BlobStore(ABC):
    """
    Abstract base class for key-value blob stores.
    Implement this interface to add new persistence backends.
    """

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return the stored value, or None if the key does not exist."""
        ...

    @abstractmethod
    def set(self, key: str, value: str, metadata: Optional[dict] = None) -> None:
        """Store value under key, replacing any previous value."""
        ...


class SQLiteBlobStore(BlobStore):
    """
    SQLite-backed blob store.

    All stores share one ``blobs`` table, namespaced by store name.
    """

    def __init__(self, db_path: Union[str, Path], store_name: str, timeout: float = 10.0):
        self.db_path = str(db_path)
        self.store_name = store_name
        self._timeout = timeout
        self._initialized = False

    @contextmanager
    def _get_connection(self):
        """Get database connection with context manager."""
        conn = sqlite3.connect(self.db_path, timeout=self._timeout)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        finally:
            conn.close()

    def init(self):
        """Initialize the blobs table."""
        with self._get_connection() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS blobs (
                    store TEXT NOT NULL,
                    key TEXT NOT NULL,
                    value TEXT NOT NULL,
                    metadata TEXT NOT NULL DEFAULT '{}',
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    PRIMARY KEY (store, key)
                )
            """)
        self._initialized = True
        logger.info(f"Blob store initialized: {self.db_path} ({self.store_name})")

    def _ensure_init(self):
        if not self._initialized:
            self.init()

    def get(self, key: str) -> Optional[str]:
        try:
            self._ensure_init()
            with self._get_connection() as conn:
                row = conn.execute(
                    "SELECT value FROM blobs WHERE store = ? AND key = ?",
                    (self.store_name, key)
                ).fetchone()
        except sqlite3.Error as e:
            raise BlobStoreError(f"SQLite read failed for {key}: {e}") from e
        return row["value"] if row else None

    def set(self, key: str, value: str, metadata: Optional[dict] = None) -> None:
        try:
            self._ensure_init()
            with self._get_connection() as conn:
                conn.execute(
                    """INSERT INTO blobs (store, key, value, metadata, updated_at)
                       VALUES (?, ?, ?, ?, CURRENT_TIMESTAMP)
                       ON CONFLICT(store, key) DO UPDATE SET
                           value = excluded.value,
                           metadata = excluded.metadata,
                           updated_at = excluded.updated_at""",
                    (self.store_name, key, value, json.dumps(metadata or {}))
                )
        except sqlite3.Error as e:
            raise BlobStoreError(f"SQLite write failed for {key}: {e}") from e


class HttpBlobStore(BlobStore):
    """
    Remote blob store reached over HTTP.

    Values live at ``{base_url}/{store}/{key}``: GET reads, PUT overwrites.
    Metadata travels in the ``x-blob-metadata`` header as ``b64;<base64 JSON>``.
    """

    def __init__(self, base_url: str, store_name: str, token: Optional[str] = None, timeout: float = 10.0):
        self._base_url = base_url.rstrip("/")
        self.store_name = store_name
        self._timeout = timeout
        self._session = requests.Session()
        if token:
            self._session.headers["Authorization"] = f"Bearer {token}"

    def _url(self, key: str) -> str:
        return f"{self._base_url}/{quote(self.store_name, safe='')}/{quote(key, safe='')}"

    @staticmethod
    def encode_metadata(metadata: dict) -> str:
        encoded = base64.b64encode(json.dumps(metadata).encode("utf-8")).decode("ascii")
        return f"b64;{encoded}"

    def get(self, key: str) -> Optional[str]:
        try:
            response = self._session.get(self._url(key), timeout=self._timeout)
        except requests.RequestException as e:
            raise BlobStoreError(f"Blob store read failed for {key}: {e}") from e

        if response.status_code == 404:
            return None
        if not response.ok:
            raise BlobStoreError(f"Blob store read failed for {key}: HTTP {response.status_code}")

        response.encoding = response.encoding or "utf-8"
        return response.text

    def set(self, key: str, value: str, metadata: Optional[dict] = None) -> None:
        headers = {"Content-Type": "application/json"}
        if metadata:
            headers[METADATA_HEADER] = self.encode_metadata(metadata)

        try:
            response = self._session.put(
                self._url(key),
                data=value.encode("utf-8"),
                headers=headers,
                timeout=self._timeout
            )
            response.raise_for_status()
        except requests.RequestException as e:
            raise BlobStoreError(f"Blob store write failed for {key}: {e}") from e


def create_blob_store(settings: StoreSettings) -> BlobStore:
    """Remote store when BLOB_STORE_URL is configured, local SQLite otherwise."""
    if settings.is_remote:
        logger.info(f"Using remote blob store {settings.url} ({settings.name})")
        return HttpBlobStore(
            settings.url,
            settings.name,
            token=settings.token,
            timeout=settings.timeout_seconds
        )

    logger.info(f"Using local blob store {settings.db_file} ({settings.name})")
    return SQLiteBlobStore(settings.db_file, settings.name, timeout=settings.timeout_seconds)
