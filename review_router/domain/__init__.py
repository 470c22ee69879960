# Domain Layer
# ============
# Pure configuration logic: the document model, defaults, merge rules and
# error taxonomy. Nothing in here touches the network or the store.

from .errors import (
    RouterError,
    ValidationError,
    MalformedPayloadError,
    NotFoundError,
    UpstreamError,
    StorageError,
)
from .models import (
    TIER_KEYS,
    PROMPT_KEYS,
    AI_SETTING_KEYS,
    DEFAULT_LABELS,
    TierState,
    AISettings,
    PromptSettings,
    RouterConfig,
    default_config,
    utc_timestamp,
)
from .merge import merge_config, merge_for_save, clamp_for_save

__all__ = [
    "RouterError",
    "ValidationError",
    "MalformedPayloadError",
    "NotFoundError",
    "UpstreamError",
    "StorageError",
    "TIER_KEYS",
    "PROMPT_KEYS",
    "AI_SETTING_KEYS",
    "DEFAULT_LABELS",
    "TierState",
    "AISettings",
    "PromptSettings",
    "RouterConfig",
    "default_config",
    "utc_timestamp",
    "merge_config",
    "merge_for_save",
    "clamp_for_save",
]
