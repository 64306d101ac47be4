"""Unit tests for Settings and get_settings."""

from pathlib import Path

import pytest

from parley.agents import AgentRegistry
from parley.config import get_settings, load_settings, reload_settings
from parley.config.settings import Settings

REPO_CONFIG_DIR = Path(__file__).resolve().parents[3] / "config"


class TestSettingsDefaults:
    """Code defaults match the documented policies."""

    def test_policy_defaults(self) -> None:
        settings = Settings.from_document({})

        assert settings.app_name == "parley"
        assert settings.admission.request_limit == 100
        assert settings.admission.request_window_seconds == 60
        assert settings.admission.max_connections == 3
        assert settings.admission.failure_threshold == 5
        assert settings.admission.failure_window_seconds == 300
        assert settings.admission.block_seconds == 900
        assert settings.routing.keep_threshold == 0.7
        assert settings.routing.fallback_threshold == 0.5
        assert settings.routing.retry.max_retries == 3
        assert settings.storage.context.max_turns == 20
        assert settings.storage.context.cache_ttl_seconds == 1800
        assert settings.storage.objects.backend == "local"


class TestGetSettings:
    """Tests for get_settings function."""

    def test_env_overrides_toml(
        self,
        test_config_dir: Path,
        mock_toml_files,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        mock_toml_files({"default.toml": "[storage.redis]\nurl = 'redis://toml:6379/0'"})
        monkeypatch.setenv("PARLEY_CONFIG_DIR", str(test_config_dir))
        monkeypatch.setenv("PARLEY_ENV", "nonexistent")
        monkeypatch.setenv("PARLEY_STORAGE__REDIS__URL", "redis://env:6379/1")

        settings = get_settings()

        assert settings.storage.redis.url == "redis://env:6379/1"

    def test_settings_cached(
        self,
        test_config_dir: Path,
        mock_toml_files,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        mock_toml_files({"default.toml": "app_name = 'first'"})
        monkeypatch.setenv("PARLEY_CONFIG_DIR", str(test_config_dir))
        monkeypatch.setenv("PARLEY_ENV", "nonexistent")

        first = get_settings()
        mock_toml_files({"default.toml": "app_name = 'second'"})

        assert get_settings() is first
        assert reload_settings().app_name == "second"

    def test_shipped_development_config(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """The repository config builds a valid registry without services."""
        monkeypatch.setenv("PARLEY_CONFIG_DIR", str(REPO_CONFIG_DIR))
        monkeypatch.setenv("PARLEY_ENV", "development")

        settings = get_settings()
        registry = AgentRegistry.from_config(settings.agents)

        assert len(registry) == 5
        assert registry.fallback().name == "fallback"
        assert settings.storage.redis.backend == "inmemory"
        assert settings.storage.postgres.backend == "inmemory"
        assert settings.providers.model.provider == "mock"
        assert settings.providers.speech.provider == "mock"


class TestFileDocument:
    """The TOML document layer sits between env vars and defaults."""

    def test_document_values_applied(self) -> None:
        settings = Settings.from_document(
            {"admission": {"request_limit": 10}, "voice": {"turn_threshold_ms": 500}}
        )

        assert settings.admission.request_limit == 10
        assert settings.admission.max_connections == 3
        assert settings.voice.turn_threshold_ms == 500

    def test_env_beats_document(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PARLEY_ADMISSION__REQUEST_LIMIT", "7")

        settings = Settings.from_document({"admission": {"request_limit": 10}})

        assert settings.admission.request_limit == 7

    def test_document_not_visible_afterwards(self) -> None:
        Settings.from_document({"app_name": "scoped"})

        assert Settings().app_name == "parley"

    def test_load_settings_explicit_directory(self, test_config_dir: Path) -> None:
        (test_config_dir / "default.toml").write_text("[routing]\nkeep_threshold = 0.8")

        settings = load_settings(test_config_dir, "production")

        assert settings.routing.keep_threshold == 0.8
