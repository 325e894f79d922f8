"""Tests for Settings normalization and environment loading."""

from __future__ import annotations

from rednote_sync.config.settings import Settings, get_settings


class TestSettings:
    def test_defaults(self) -> None:
        settings = Settings(_env_file=None, backend_api_base="http://127.0.0.1:8080/api")

        assert settings.crawl_max_poll_attempts == 60
        assert settings.crawl_heartbeat_every == 5
        assert settings.artifact_preview_limit == 2000
        assert settings.compliance_ai_base_url is None

    def test_trailing_slash_is_stripped(self) -> None:
        settings = Settings(_env_file=None, backend_api_base="https://crawler.example.com/api/")

        assert settings.backend_api_base == "https://crawler.example.com/api"

    def test_blank_ai_base_url_becomes_none(self) -> None:
        settings = Settings(_env_file=None, compliance_ai_base_url="   ")

        assert settings.compliance_ai_base_url is None

    def test_environment_override(self, monkeypatch) -> None:
        monkeypatch.setenv("CRAWL_MAX_POLL_ATTEMPTS", "10")
        get_settings.cache_clear()

        assert get_settings().crawl_max_poll_attempts == 10
