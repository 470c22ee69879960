"""
Config Merge - Sanitizing Deep Merge
====================================

Builds a complete, invariant-satisfying RouterConfig from an untrusted
payload (stored JSON or an admin submission) layered over a fallback
configuration.

The merge is total: missing, extra and wrongly typed fields are coerced or
ignored, never rejected. It is also pure, so calling it twice with the same
fallback gives the same document:

    merged = merge_config(payload, default_config())
    assert merge_config(merged.to_dict(), default_config()) == merged
"""

import logging
from typing import Any, List, Optional

from .models import (
    AI_SETTING_KEYS,
    DEFAULT_LABELS,
    PROMPT_FIELD_KEYS,
    PROMPT_KEYS,
    TIER_KEYS,
    AISettings,
    PromptSettings,
    RouterConfig,
    TierState,
    default_config,
)

logger = logging.getLogger(__name__)

# payload key -> AISettings attribute
_AI_ATTRS = {
    "gasUrl": "gas_url",
    "geminiApiKey": "gemini_api_key",
    "prompt": "prompt",
    "mapsLink": "maps_link",
    "model": "model",
}
_PROMPT_ATTRS = {"gasUrl": "gas_url", "prompt": "prompt"}


def _mapping(value: Any) -> dict:
    return value if isinstance(value, dict) else {}


def _as_string(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _as_int(value: Any) -> Optional[int]:
    """Integer value of a JSON number, or None for anything non-integral."""
    # bool is an int subclass but never a valid pointer
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def _as_links(value: Any) -> Optional[List[str]]:
    if not isinstance(value, list):
        return None
    return [item for item in value if isinstance(item, str)]


def _remainder(value: int, count: int, keep_sign: bool) -> int:
    if not keep_sign:
        return value % count
    # truncated remainder: the sign follows the dividend, so -1 stays -1
    remainder = abs(value) % count
    return -remainder if value < 0 else remainder


def _merge_tier(incoming: dict, fallback: TierState, keep_sign: bool = False) -> TierState:
    links = _as_links(incoming.get("links"))
    if links is None:
        links = list(fallback.links)

    next_index = _as_int(incoming.get("nextIndex"))
    if next_index is None:
        next_index = fallback.next_index
    next_index = _remainder(next_index, len(links), keep_sign) if links else 0

    last_served_at = incoming.get("lastServedAt")
    if not isinstance(last_served_at, str):
        last_served_at = fallback.last_served_at

    return TierState(links=links, next_index=next_index, last_served_at=last_served_at)


def _merge_ai_settings(incoming: dict, fallback: AISettings) -> AISettings:
    merged = {}
    for key in AI_SETTING_KEYS:
        attr = _AI_ATTRS[key]
        value = incoming.get(key)
        # null/absent falls through; any other value wins, strings only
        if value is None:
            merged[attr] = _as_string(getattr(fallback, attr))
        else:
            merged[attr] = _as_string(value)
    return AISettings(**merged)


def _merge_prompt(incoming: dict, fallback: PromptSettings) -> PromptSettings:
    merged = {}
    for key in PROMPT_FIELD_KEYS:
        attr = _PROMPT_ATTRS[key]
        # an explicitly present key wins, even when it trims to ""
        if key in incoming:
            merged[attr] = _as_string(incoming[key]).strip()
        else:
            merged[attr] = _as_string(getattr(fallback, attr))
    return PromptSettings(**merged)


def merge_config(
    incoming: Any,
    fallback: Optional[RouterConfig] = None,
    keep_sign: bool = False,
) -> RouterConfig:
    """
    Merge an untrusted payload over a fallback configuration.

    Args:
        incoming: Decoded JSON payload. Non-dict input is treated as empty.
        fallback: Previously stored configuration; defaults when None.
        keep_sign: Reduce pointers with a truncated remainder, so negative
            pointers stay negative. Only for callers that clamp afterwards.

    Returns:
        A new RouterConfig; neither argument is modified.
    """
    fallback = fallback or default_config()
    payload = _mapping(incoming)

    labels = dict(DEFAULT_LABELS)
    for layer in (fallback.labels, _mapping(payload.get("labels"))):
        for key in TIER_KEYS:
            value = layer.get(key)
            if isinstance(value, str):
                labels[key] = value

    incoming_tiers = _mapping(payload.get("tiers"))
    ignored = set(incoming_tiers) - set(TIER_KEYS)
    if ignored:
        logger.debug(f"Ignoring unknown tiers: {sorted(ignored)}")
    tiers = {
        key: _merge_tier(_mapping(incoming_tiers.get(key)), fallback.tiers.get(key) or TierState(), keep_sign)
        for key in TIER_KEYS
    }

    ai_settings = _merge_ai_settings(_mapping(payload.get("aiSettings")), fallback.ai_settings)

    incoming_prompts = _mapping(payload.get("prompts"))
    prompts = {
        key: _merge_prompt(_mapping(incoming_prompts.get(key)), fallback.prompts.get(key) or PromptSettings())
        for key in PROMPT_KEYS
    }

    updated_at = payload.get("updatedAt")
    if not isinstance(updated_at, str):
        updated_at = fallback.updated_at

    return RouterConfig(
        labels=labels,
        tiers=tiers,
        ai_settings=ai_settings,
        prompts=prompts,
        updated_at=updated_at,
    )


def clamp_for_save(config: RouterConfig) -> RouterConfig:
    """
    Normalize rotation pointers before an admin save.

    Empty tiers are reset to 0; otherwise the pointer is clamped into
    [0, len(links) - 1]. This clamps rather than wraps, unlike merge_config.
    """
    for tier in config.tiers.values():
        if not tier.links:
            tier.links = []
            tier.next_index = 0
        else:
            tier.next_index = max(0, min(tier.next_index, len(tier.links) - 1))
    return config


def merge_for_save(incoming: Any) -> RouterConfig:
    """
    Build the document an admin save persists.

    The submission is merged over defaults, not over the stored document, so
    anything it leaves out is reset. Pointers keep their sign through the
    merge and are then clamped: -1 saves as 0, not as the last link.
    """
    return clamp_for_save(merge_config(incoming, default_config(), keep_sign=True))
