"""
Config Service - Admin Read and Save
====================================

The admin page reads the merged configuration and submits a replacement.
Submissions are merged over defaults (whatever they leave out is reset),
pointers are clamped, and the whole document is written back.
"""

import logging
import threading
from typing import Any, Callable, Optional

from ..domain import RouterConfig, ValidationError, merge_for_save, utc_timestamp
from ..infrastructure.persistence import ConfigRepository

logger = logging.getLogger(__name__)


class ConfigService:

    def __init__(
        self,
        repository: ConfigRepository,
        clock: Callable[[], str] = utc_timestamp,
        lock: Optional[threading.Lock] = None,
    ):
        self._repository = repository
        self._clock = clock
        # the distributor's lock, so a rotation in flight cannot overwrite a save
        self._lock = lock or threading.Lock()

    def get_config(self) -> RouterConfig:
        return self._repository.load_or_default()

    def save_config(self, payload: Any) -> RouterConfig:
        """
        Replace the stored configuration with an admin submission.

        Args:
            payload: Decoded JSON body; must be an object.

        Returns:
            The configuration exactly as saved.
        """
        if not isinstance(payload, dict):
            raise ValidationError("設定が見つかりません。")

        config = merge_for_save(payload)
        config.updated_at = self._clock()

        with self._lock:
            self._repository.save(config)

        link_counts = {key: len(state.links) for key, state in config.tiers.items()}
        logger.info(f"Config updated: links per tier {link_counts}")
        return config
