"""
Router Configuration Model
==========================

One document holds everything the router needs: tier labels, each tier's
link rotation, the AI generation settings and per-page prompt overrides.

The document is serialized with camelCase keys so stored JSON stays
compatible with the admin UI:

    {
      "labels": {"beginner": "初級", ...},
      "tiers": {"beginner": {"links": [...], "nextIndex": 0}, ...},
      "aiSettings": {"gasUrl": "", "geminiApiKey": "", ...},
      "prompts": {"page1": {"gasUrl": "", "prompt": ""}, ...},
      "updatedAt": null
    }
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional

TIER_KEYS = ("beginner", "intermediate", "advanced")
PROMPT_KEYS = ("page1", "page2", "page3")
AI_SETTING_KEYS = ("gasUrl", "geminiApiKey", "prompt", "mapsLink", "model")
PROMPT_FIELD_KEYS = ("gasUrl", "prompt")

DEFAULT_LABELS = {
    "beginner": "初級",
    "intermediate": "中級",
    "advanced": "上級",
}


def utc_timestamp(moment: Optional[datetime] = None) -> str:
    """ISO-8601 UTC timestamp with millisecond precision, e.g. 2024-05-01T09:30:00.000Z."""
    moment = moment or datetime.now(timezone.utc)
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass
class TierState:
    """Link rotation for one tier."""
    links: List[str] = field(default_factory=list)
    next_index: int = 0
    last_served_at: Optional[str] = None

    def to_dict(self) -> dict:
        data = {"links": list(self.links), "nextIndex": self.next_index}
        if self.last_served_at is not None:
            data["lastServedAt"] = self.last_served_at
        return data


@dataclass
class AISettings:
    gas_url: str = ""
    gemini_api_key: str = ""
    prompt: str = ""
    maps_link: str = ""
    model: str = ""

    def to_dict(self) -> dict:
        return {
            "gasUrl": self.gas_url,
            "geminiApiKey": self.gemini_api_key,
            "prompt": self.prompt,
            "mapsLink": self.maps_link,
            "model": self.model,
        }


@dataclass
class PromptSettings:
    """Per-page override of the GAS data source and base prompt."""
    gas_url: str = ""
    prompt: str = ""

    def to_dict(self) -> dict:
        return {"gasUrl": self.gas_url, "prompt": self.prompt}


@dataclass
class RouterConfig:
    """
    The whole router configuration document.

    Instances handed out by the repository are private copies; mutating one
    has no effect until it is saved back.
    """
    labels: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_LABELS))
    tiers: Dict[str, TierState] = field(
        default_factory=lambda: {key: TierState() for key in TIER_KEYS}
    )
    ai_settings: AISettings = field(default_factory=AISettings)
    prompts: Dict[str, PromptSettings] = field(
        default_factory=lambda: {key: PromptSettings() for key in PROMPT_KEYS}
    )
    updated_at: Optional[str] = None

    def label_for(self, tier_key: str) -> str:
        return self.labels.get(tier_key) or tier_key

    def to_dict(self) -> dict:
        return {
            "labels": {key: self.labels[key] for key in TIER_KEYS},
            "tiers": {key: self.tiers[key].to_dict() for key in TIER_KEYS},
            "aiSettings": self.ai_settings.to_dict(),
            "prompts": {key: self.prompts[key].to_dict() for key in PROMPT_KEYS},
            "updatedAt": self.updated_at,
        }


def default_config() -> RouterConfig:
    """Fresh default document: default labels, empty link lists, empty AI settings."""
    return RouterConfig()
