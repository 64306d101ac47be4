"""Unit tests for TOML configuration loader."""

import tomllib
from pathlib import Path

import pytest

from parley.config.loader import (
    deep_merge,
    get_config_dir,
    get_environment,
    load_config,
    load_toml,
)


class TestDeepMerge:
    """Tests for deep_merge function."""

    def test_merge_nested_dicts(self) -> None:
        """Nested dictionaries are merged recursively."""
        base = {"a": {"x": 1, "y": 2}, "b": 3}
        override = {"a": {"y": 20, "z": 30}}
        result = deep_merge(base, override)
        assert result == {"a": {"x": 1, "y": 20, "z": 30}, "b": 3}

    def test_override_replaces_non_dict(self) -> None:
        base = {"a": {"x": 1}}
        result = deep_merge(base, {"a": "replaced"})
        assert result == {"a": "replaced"}

    def test_lists_are_replaced_not_merged(self) -> None:
        """Agent lists from an environment file replace the base list."""
        base = {"agents": [{"name": "a"}, {"name": "b"}]}
        result = deep_merge(base, {"agents": [{"name": "c"}]})
        assert result == {"agents": [{"name": "c"}]}

    def test_base_unmodified(self) -> None:
        base = {"a": 1}
        deep_merge(base, {"b": 2})
        assert base == {"a": 1}


class TestLoadToml:
    def test_load_valid_toml(self, tmp_path: Path) -> None:
        toml_file = tmp_path / "test.toml"
        toml_file.write_text('[section]\nkey = "value"\nnumber = 42')

        assert load_toml(toml_file) == {"section": {"key": "value", "number": 42}}

    def test_load_missing_file_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_toml(tmp_path / "nonexistent.toml")

    def test_load_invalid_toml_raises(self, tmp_path: Path) -> None:
        invalid_file = tmp_path / "invalid.toml"
        invalid_file.write_text("[unclosed")

        with pytest.raises(tomllib.TOMLDecodeError):
            load_toml(invalid_file)


class TestEnvironment:
    """Tests for PARLEY_CONFIG_DIR and PARLEY_ENV handling."""

    def test_config_dir_from_env(
        self, test_config_dir: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("PARLEY_CONFIG_DIR", str(test_config_dir))
        assert get_config_dir() == test_config_dir

    def test_missing_config_dir_raises(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("PARLEY_CONFIG_DIR", str(tmp_path / "missing"))
        with pytest.raises(FileNotFoundError):
            get_config_dir()

    def test_environment_default(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("PARLEY_ENV", raising=False)
        assert get_environment() == "development"


class TestLoadConfig:
    def test_environment_file_overrides_default(
        self,
        test_config_dir: Path,
        mock_toml_files,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        mock_toml_files(
            {
                "default.toml": "[admission]\nrequest_limit = 100\nmax_connections = 3",
                "staging.toml": "[admission]\nrequest_limit = 10",
            }
        )
        monkeypatch.setenv("PARLEY_CONFIG_DIR", str(test_config_dir))
        monkeypatch.setenv("PARLEY_ENV", "staging")

        config = load_config()

        assert config["admission"] == {"request_limit": 10, "max_connections": 3}

    def test_missing_default_raises(
        self, test_config_dir: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("PARLEY_CONFIG_DIR", str(test_config_dir))

        with pytest.raises(FileNotFoundError, match="default.toml"):
            load_config()

    def test_explicit_arguments_skip_environment(self, test_config_dir: Path) -> None:
        """Bootstrap code can pass the directory and overlay directly."""
        (test_config_dir / "default.toml").write_text("[voice]\nsample_rate = 8000")
        (test_config_dir / "test.toml").write_text("[voice]\nsample_rate = 16000")

        config = load_config(test_config_dir, "test")

        assert config["voice"]["sample_rate"] == 16000


class TestConfigDirSearch:
    """Upward search for config/default.toml."""

    def test_found_from_nested_directory(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.delenv("PARLEY_CONFIG_DIR", raising=False)
        (tmp_path / "config").mkdir()
        (tmp_path / "config" / "default.toml").write_text("")
        nested = tmp_path / "parley" / "voice"
        nested.mkdir(parents=True)

        assert get_config_dir(nested) == (tmp_path / "config").resolve()

    def test_directory_without_base_file_is_skipped(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.delenv("PARLEY_CONFIG_DIR", raising=False)
        (tmp_path / "config").mkdir()
        (tmp_path / "app" / "config").mkdir(parents=True)
        (tmp_path / "config" / "default.toml").write_text("")

        assert get_config_dir(tmp_path / "app") == (tmp_path / "config").resolve()
