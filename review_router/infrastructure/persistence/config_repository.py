"""
Config Repository - Router Document Accessor
============================================

Reads and writes the single router configuration document under a fixed
key. Reads are best-effort: anything that goes wrong yields None and the
caller falls back to defaults. Writes are not: a failed save raises
StorageError so the request fails instead of silently losing the update.
"""

import json
import logging
from typing import Optional

from ...domain import RouterConfig, StorageError, default_config, merge_config, utc_timestamp
from .blob_store import BlobStore, BlobStoreError

logger = logging.getLogger(__name__)

CONFIG_KEY = "router-config"


class ConfigRepository:
    """
    Store accessor for the router configuration.

    USAGE:
        repository = ConfigRepository(store)
        config = repository.load_or_default()
        config.tiers["beginner"].links.append("https://forms.example.com/a")
        repository.save(config)
    """

    def __init__(self, store: BlobStore, key: str = CONFIG_KEY):
        self._store = store
        self._key = key

    def load(self) -> Optional[dict]:
        """
        Fetch the raw stored document.

        Returns:
            Decoded JSON object, or None when missing, unreadable or malformed.
        """
        try:
            raw = self._store.get(self._key)
        except BlobStoreError as e:
            logger.warning(f"Config read failed, using defaults: {e}")
            return None

        if raw is None:
            logger.debug("No stored config yet, using defaults")
            return None

        try:
            data = json.loads(raw)
        except ValueError as e:
            logger.warning(f"Stored config is not valid JSON, using defaults: {e}")
            return None

        if not isinstance(data, dict):
            logger.warning("Stored config is not a JSON object, using defaults")
            return None

        return data

    def load_or_default(self) -> RouterConfig:
        """Stored document merged over defaults; defaults alone when nothing usable is stored."""
        return merge_config(self.load() or {}, default_config())

    def save(self, config: RouterConfig) -> None:
        """
        Overwrite the stored document.

        Raises:
            StorageError: If the blob store write fails.
        """
        payload = json.dumps(config.to_dict(), ensure_ascii=False)
        metadata = {"updatedAt": config.updated_at or utc_timestamp()}

        try:
            self._store.set(self._key, payload, metadata=metadata)
        except BlobStoreError as e:
            logger.error(f"Config write failed: {e}")
            raise StorageError() from e

        logger.info(f"Config saved (updatedAt={metadata['updatedAt']})")
