"""Tests for configuration loading."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from gitbridge.config import (
    CacheConfig,
    ExecutionConfig,
    GitBridgeConfig,
    SigningConfig,
    get_user_config_path,
    load_config,
)
from gitbridge.constants import DEFAULT_TIMEOUT, MAX_OUTPUT_BYTES, NETWORK_TIMEOUT
from gitbridge.exceptions import ConfigError


@pytest.fixture
def isolated_home(temp_dir: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point HOME and the working directory at an empty temp directory."""
    home = temp_dir / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setattr(Path, "home", classmethod(lambda cls: home))
    os.chdir(temp_dir)
    return temp_dir


class TestSectionDefaults:
    """Tests for the section models."""

    def test_execution_defaults(self) -> None:
        config = ExecutionConfig()
        assert config.git_binary == "git"
        assert config.timeout_seconds == DEFAULT_TIMEOUT
        assert config.network_timeout_seconds == NETWORK_TIMEOUT
        assert config.max_output_bytes == MAX_OUTPUT_BYTES
        assert config.spawn_strategy == "auto"
        assert config.extra_env == {}

    def test_cache_defaults(self) -> None:
        config = CacheConfig()
        assert config.enabled is True
        assert config.ttl_seconds == 30.0
        assert config.max_entries == 500

    def test_signing_defaults(self) -> None:
        config = SigningConfig()
        assert config.sign_commits is False
        assert config.sign_tags is False

    def test_blank_git_binary_rejected(self) -> None:
        with pytest.raises(ValueError):
            ExecutionConfig(git_binary="  ")

    def test_unknown_spawn_strategy_rejected(self) -> None:
        with pytest.raises(ValueError):
            ExecutionConfig(spawn_strategy="fork")  # type: ignore[arg-type]


class TestLoadConfig:
    """Tests for load_config()."""

    def test_defaults_without_files(
        self, clean_env: None, isolated_home: Path
    ) -> None:
        config = load_config()
        assert isinstance(config, GitBridgeConfig)
        assert config.cache.enabled is True
        assert config.execution.spawn_strategy == "auto"

    def test_project_yaml_is_read(
        self, clean_env: None, isolated_home: Path, sample_config_yaml: str
    ) -> None:
        (isolated_home / "gitbridge.yaml").write_text(sample_config_yaml)

        config = load_config()

        assert config.execution.timeout_seconds == 45
        assert config.execution.network_timeout_seconds == 300
        assert config.execution.spawn_strategy == "thread"
        assert config.cache.ttl_seconds == 10
        assert config.cache.max_entries == 50
        assert config.signing.sign_commits is True

    def test_user_yaml_is_read(self, clean_env: None, isolated_home: Path) -> None:
        user_config = get_user_config_path()
        user_config.parent.mkdir(parents=True)
        user_config.write_text("cache:\n  enabled: false\n")

        assert load_config().cache.enabled is False

    def test_project_yaml_beats_user_yaml(
        self, clean_env: None, isolated_home: Path
    ) -> None:
        user_config = get_user_config_path()
        user_config.parent.mkdir(parents=True)
        user_config.write_text("cache:\n  ttl_seconds: 99\n")
        (isolated_home / "gitbridge.yaml").write_text("cache:\n  ttl_seconds: 5\n")

        assert load_config().cache.ttl_seconds == 5

    def test_env_beats_yaml(
        self,
        clean_env: None,
        isolated_home: Path,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        (isolated_home / "gitbridge.yaml").write_text("cache:\n  ttl_seconds: 5\n")
        monkeypatch.setenv("GITBRIDGE_CACHE__TTL_SECONDS", "12")

        assert load_config().cache.ttl_seconds == 12

    def test_overrides_beat_everything(
        self,
        clean_env: None,
        isolated_home: Path,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.setenv("GITBRIDGE_CACHE__ENABLED", "true")

        config = load_config(cache={"enabled": False})

        assert config.cache.enabled is False

    def test_invalid_value_raises_config_error(
        self, clean_env: None, isolated_home: Path
    ) -> None:
        (isolated_home / "gitbridge.yaml").write_text("cache:\n  ttl_seconds: -1\n")

        with pytest.raises(ConfigError) as exc_info:
            load_config()

        assert exc_info.value.field == "cache.ttl_seconds"

    def test_invalid_yaml_raises_config_error(
        self, clean_env: None, isolated_home: Path
    ) -> None:
        (isolated_home / "gitbridge.yaml").write_text("cache: [unclosed\n")

        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_config()

    def test_non_mapping_yaml_raises_config_error(
        self, clean_env: None, isolated_home: Path
    ) -> None:
        (isolated_home / "gitbridge.yaml").write_text("- just\n- a list\n")

        with pytest.raises(ConfigError, match="must be a mapping"):
            load_config()

    def test_empty_yaml_is_ignored(
        self, clean_env: None, isolated_home: Path
    ) -> None:
        (isolated_home / "gitbridge.yaml").write_text("")

        assert load_config().cache.ttl_seconds == 30.0
