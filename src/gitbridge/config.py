from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic.fields import FieldInfo
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from gitbridge.constants import (
    DEFAULT_TIMEOUT,
    GIT_BINARY,
    MAX_OUTPUT_BYTES,
    NETWORK_TIMEOUT,
)
from gitbridge.exceptions import ConfigError
from gitbridge.logging import get_logger

__all__ = [
    "GitBridgeConfig",
    "ExecutionConfig",
    "CacheConfig",
    "SigningConfig",
    "load_config",
    "get_user_config_path",
]

logger = get_logger(__name__)

#: Project-level config file looked up in the current directory.
PROJECT_CONFIG_NAME = "gitbridge.yaml"


class ExecutionConfig(BaseModel):
    """Settings for spawning git.

    Attributes:
        git_binary: Executable name or absolute path of git.
        timeout_seconds: Default per-invocation timeout for local commands.
        network_timeout_seconds: Timeout for clone, fetch, pull and push.
        max_output_bytes: Cap on captured stdout + stderr per invocation.
        spawn_strategy: Force a spawning strategy instead of detecting one.
        extra_env: Environment variables added to every invocation.
    """

    git_binary: str = GIT_BINARY
    timeout_seconds: float = Field(default=DEFAULT_TIMEOUT, gt=0)
    network_timeout_seconds: float = Field(default=NETWORK_TIMEOUT, gt=0)
    max_output_bytes: int = Field(default=MAX_OUTPUT_BYTES, ge=1024)
    spawn_strategy: Literal["auto", "asyncio", "thread"] = "auto"
    extra_env: dict[str, str] = Field(default_factory=dict)

    @field_validator("git_binary")
    @classmethod
    def check_git_binary(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("git_binary must not be empty")
        return v


class CacheConfig(BaseModel):
    """Settings for the repository state cache."""

    enabled: bool = True
    ttl_seconds: float = Field(default=30.0, gt=0)
    max_entries: int = Field(default=500, ge=1, le=100_000)


class SigningConfig(BaseModel):
    """Defaults used when an operation leaves ``sign`` unset."""

    sign_commits: bool = False
    sign_tags: bool = False


class YamlConfigSource(PydanticBaseSettingsSource):
    """Settings source that reads a single YAML file, if present."""

    def __init__(
        self,
        settings_cls: type[BaseSettings],
        yaml_file: Path | None = None,
    ):
        super().__init__(settings_cls)
        self.yaml_file = yaml_file
        self._config_data: dict[str, Any] = {}
        if yaml_file and yaml_file.exists():
            try:
                with open(yaml_file) as f:
                    loaded = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ConfigError(
                    message=f"Invalid YAML in {yaml_file}: {e}",
                    field=None,
                    value=None,
                ) from e
            if loaded is None:
                logger.warning("config_file_empty", path=str(yaml_file))
            elif not isinstance(loaded, dict):
                raise ConfigError(
                    message=f"Top level of {yaml_file} must be a mapping",
                    value=type(loaded).__name__,
                )
            else:
                self._config_data = loaded

    def get_field_value(
        self, field: FieldInfo, field_name: str
    ) -> tuple[Any, str, bool]:
        if field_name in self._config_data:
            return self._config_data[field_name], field_name, False
        return None, field_name, False

    def __call__(self) -> dict[str, Any]:
        return self._config_data


class GitBridgeConfig(BaseSettings):
    """Root configuration object."""

    model_config = SettingsConfigDict(
        env_prefix="GITBRIDGE_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    execution: ExecutionConfig = Field(default_factory=ExecutionConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    signing: SigningConfig = Field(default_factory=SigningConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Order settings sources.

        Priority (highest to lowest):
        1. Init arguments (explicit construction, used by tests and hosts)
        2. Environment variables (GITBRIDGE_*)
        3. Project YAML config (./gitbridge.yaml)
        4. User YAML config (~/.config/gitbridge/config.yaml)
        """
        return (
            init_settings,
            env_settings,
            YamlConfigSource(settings_cls, Path.cwd() / PROJECT_CONFIG_NAME),
            YamlConfigSource(settings_cls, get_user_config_path()),
        )


def get_user_config_path() -> Path:
    """Return ``~/.config/gitbridge/config.yaml``."""
    return Path.home() / ".config" / "gitbridge" / "config.yaml"


def load_config(**overrides: Any) -> GitBridgeConfig:
    """Load configuration with hierarchy: defaults -> user -> project -> env.

    Args:
        **overrides: Section values taking precedence over every file and
            environment source (e.g. ``cache={"enabled": False}``).

    Returns:
        Merged :class:`GitBridgeConfig`.

    Raises:
        ConfigError: If any source holds an invalid value.
    """
    if not (Path.cwd() / PROJECT_CONFIG_NAME).exists():
        logger.debug("project_config_not_found", name=PROJECT_CONFIG_NAME)

    try:
        return GitBridgeConfig(**overrides)
    except ValidationError as e:
        first_error = e.errors()[0]
        field = ".".join(str(loc) for loc in first_error["loc"])
        raise ConfigError(
            message=f"Invalid configuration: {first_error['msg']}",
            field=field,
            value=first_error.get("input"),
        ) from e
