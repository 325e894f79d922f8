"""Application settings loaded from environment variables.

Uses Pydantic Settings v2 for validated, type-safe configuration.
The backend base URL, polling policy and compliance AI overrides are read
exclusively through this module; never call ``os.getenv`` directly
elsewhere in the codebase.

Usage::

    from rednote_sync.config.settings import get_settings

    settings = get_settings()
    api_base = settings.backend_api_base
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Plugin-wide configuration backed by environment variables and an optional .env file.

    Every field has a default so the plugin starts without any environment
    at all; production deployments override ``backend_api_base``.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Backend
    # ------------------------------------------------------------------

    backend_api_base: str = "http://127.0.0.1:8080/api"
    """Base URL of the crawler backend, including the ``/api`` prefix.

    Trailing slashes are stripped so endpoint paths can be joined directly.
    An ``http://`` base may be blocked (mixed content) when the host table
    runs on HTTPS.
    """

    # ------------------------------------------------------------------
    # Logging
    # ------------------------------------------------------------------

    log_level: str = "INFO"
    """Logging verbosity.  One of: DEBUG, INFO, WARNING, ERROR, CRITICAL."""

    # ------------------------------------------------------------------
    # Credential persistence
    # ------------------------------------------------------------------

    cookie_store_path: str = "~/.rednote_sync/credentials.json"
    """JSON file holding the persisted session cookie.  ``~`` is expanded."""

    # ------------------------------------------------------------------
    # Crawl polling
    # ------------------------------------------------------------------

    crawl_max_poll_attempts: int = Field(default=60, ge=1)
    """Maximum number of status checks before a crawl is reported as timed out."""

    crawl_poll_interval_seconds: float = Field(default=2.0, ge=0.0)
    """Fixed delay before each status check.  No adaptive backoff."""

    crawl_heartbeat_every: int = Field(default=5, ge=1)
    """Emit a progress heartbeat on every N-th tick (zero-based index)."""

    artifact_preview_limit: int = Field(default=2000, ge=1)
    """Maximum number of records requested from an artifact preview."""

    # ------------------------------------------------------------------
    # Compliance AI overrides
    # ------------------------------------------------------------------

    compliance_ai_base_url: Optional[str] = None
    """Optional OpenAI-compatible base URL forwarded to ``/compliance/check``.
    When ``None`` the backend falls back to its own ``.env`` configuration."""

    compliance_ai_api_key: Optional[str] = None
    """Optional API key forwarded with ``compliance_ai_base_url``."""

    compliance_ai_model: Optional[str] = None
    """Optional model name forwarded with ``compliance_ai_base_url``."""

    @field_validator("backend_api_base")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.strip().rstrip("/")

    @field_validator("compliance_ai_base_url")
    @classmethod
    def _normalize_ai_base_url(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = value.strip().rstrip("/")
        return value or None


@lru_cache
def get_settings() -> Settings:
    """Return the cached settings singleton.

    Uses ``functools.lru_cache`` so that Pydantic Settings reads the environment
    and .env file exactly once per process lifetime.  In tests, call
    ``get_settings.cache_clear()`` after patching environment variables.

    Returns:
        Settings: The validated settings object.
    """
    return Settings()
