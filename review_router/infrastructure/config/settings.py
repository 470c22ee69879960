"""
Settings Module - Centralized Configuration Management
=======================================================

ARCHITECTURAL DECISION:
- All configuration is loaded from environment variables (no hardcoded secrets)
- Settings are immutable dataclasses for safety and clarity
- Single source of truth for all configurable values

The editable router document (labels, links, AI settings) is NOT configured
here; it lives in the blob store and is managed through /config. These
settings only describe how to reach the store and the upstream APIs.
"""

import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# .env is a development convenience; real deployments set the environment
load_dotenv()


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if not value:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _blob_token() -> Optional[str]:
    return (
        os.getenv("BLOB_STORE_TOKEN")
        or os.getenv("NETLIFY_BLOBS_TOKEN")
        or os.getenv("BLOBS_TOKEN")
        or None
    )


@dataclass(frozen=True)
class StoreSettings:
    """Where the router configuration document is persisted."""

    # Remote blob store; when unset the local SQLite store is used
    url: str = field(default_factory=lambda: os.getenv("BLOB_STORE_URL", "").rstrip("/"))
    token: Optional[str] = field(default_factory=_blob_token)
    name: str = field(
        default_factory=lambda: os.getenv("BLOB_STORE_NAME", "oiso-review-router-config")
    )

    db_file: Path = field(
        default_factory=lambda: Path(os.getenv("BLOB_DB_FILE", "review_router.db"))
    )

    timeout_seconds: float = field(default_factory=lambda: _env_float("STORE_TIMEOUT_SECONDS", 10.0))

    @property
    def is_remote(self) -> bool:
        return bool(self.url)


@dataclass(frozen=True)
class GenerationSettings:
    """Gemini and Google Apps Script settings for review generation."""

    api_base: str = field(
        default_factory=lambda: os.getenv(
            "GEMINI_API_BASE", "https://generativelanguage.googleapis.com/v1"
        ).rstrip("/")
    )
    default_model: str = field(
        default_factory=lambda: os.getenv("GEMINI_DEFAULT_MODEL", "gemini-1.5-flash-latest")
    )
    timeout_seconds: float = field(default_factory=lambda: _env_float("GEMINI_TIMEOUT_SECONDS", 30.0))

    gas_timeout_seconds: float = field(default_factory=lambda: _env_float("GAS_TIMEOUT_SECONDS", 15.0))

    # Samples interleaved into the prompt
    sample_limit: int = field(default_factory=lambda: _env_int("GENERATION_SAMPLE_LIMIT", 5))


@dataclass(frozen=True)
class ServerSettings:
    """HTTP server settings."""

    host: str = field(default_factory=lambda: os.getenv("HOST", "127.0.0.1"))
    port: int = field(default_factory=lambda: _env_int("PORT", 8000))
    cors_allow_origin: str = field(default_factory=lambda: os.getenv("CORS_ALLOW_ORIGIN", "*"))
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").upper())


@dataclass(frozen=True)
class Settings:
    """
    Root settings container - Single source of truth for all configuration.

    Usage:
        from review_router.infrastructure.config import get_settings
        settings = get_settings()
        print(settings.store.name)
    """

    store: StoreSettings = field(default_factory=StoreSettings)
    generation: GenerationSettings = field(default_factory=GenerationSettings)
    server: ServerSettings = field(default_factory=ServerSettings)

    def validate(self) -> list[str]:
        """
        Validate settings and return list of warnings.
        Returns empty list if all settings are valid.
        """
        issues = []

        if not self.store.is_remote:
            issues.append(
                "WARNING: BLOB_STORE_URL not set. "
                f"Configuration is stored locally in {self.store.db_file}."
            )
        elif not self.store.token:
            issues.append(
                "WARNING: BLOB_STORE_URL is set without BLOB_STORE_TOKEN. "
                "Requests to the blob store will be unauthenticated."
            )

        if self.generation.sample_limit < 1:
            issues.append(
                "WARNING: GENERATION_SAMPLE_LIMIT is below 1. "
                "Prompts will be sent without reference data."
            )

        return issues


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get singleton Settings instance.
    Cached to ensure consistent settings throughout application lifecycle.
    """
    return Settings()
