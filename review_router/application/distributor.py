"""
Tier Distributor - Round-Robin Link Selection
=============================================

Picks the next review form link for a tier and advances that tier's
pointer, so every link in the list is served once per cycle, in order.

    distributor = TierDistributor(repository)
    distributor.distribute("beginner")   # -> Distribution(url="https://...", ...)

The pointer lives in the stored document. Within this process the
load/advance/save cycle runs under a lock that admin saves also take
(pass the same lock to ConfigService). Separate processes sharing one
store are not coordinated: they can interleave, and the last write wins.
"""

import logging
import threading
from dataclasses import asdict, dataclass
from typing import Any, Callable, Optional

from ..domain import NotFoundError, TIER_KEYS, ValidationError, utc_timestamp
from ..infrastructure.persistence import ConfigRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Distribution:
    """Result of one distribution: where to send the user."""
    url: str
    tier: str
    label: str

    def to_dict(self) -> dict:
        return asdict(self)


def normalize_tier(tier: Any) -> str:
    return str(tier if tier is not None else "").strip().lower()


class TierDistributor:
    """Serves links for each tier in strict rotation."""

    def __init__(
        self,
        repository: ConfigRepository,
        clock: Callable[[], str] = utc_timestamp,
        lock: Optional[threading.Lock] = None,
    ):
        self._repository = repository
        self._clock = clock
        # share one lock across instances that serve the same store
        self._lock = lock or threading.Lock()

    def distribute(self, tier: Any) -> Distribution:
        """
        Serve the next link for a tier.

        Raises:
            ValidationError: tier is empty.
            NotFoundError: tier is unknown or has no links.
            StorageError: the advanced pointer could not be saved.
        """
        tier_key = normalize_tier(tier)
        if not tier_key:
            raise ValidationError("tierパラメータを指定してください。")

        with self._lock:
            config = self._repository.load_or_default()

            if tier_key not in TIER_KEYS:
                raise NotFoundError(f"{tier_key}はサポートされていません。")

            state = config.tiers[tier_key]
            label = config.label_for(tier_key)
            if not state.links:
                raise NotFoundError(f"{label}のリンクが設定されていません。")

            count = len(state.links)
            safe_index = state.next_index % count
            url = state.links[safe_index]

            timestamp = self._clock()
            state.next_index = (safe_index + 1) % count
            state.last_served_at = timestamp
            config.updated_at = timestamp

            self._repository.save(config)

        logger.info(f"Distributed {tier_key} link {safe_index + 1}/{count}")
        return Distribution(url=url, tier=tier_key, label=label)
