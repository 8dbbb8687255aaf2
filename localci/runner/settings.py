"""Tool configuration loaded from a YAML file and LOCALCI_* environment variables."""

from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from localci.runner.errors import ConfigError
from localci.runner.models.enums import PullPolicy


class DockerSettings(BaseModel):
    """Container engine options (the ``docker:`` section of the config file)."""

    mirrors: list[str] = Field(default_factory=list)
    """Registry mirror prefixes stripped from job images, first match wins.

    With ``mirrors: [registry.example.com]`` the image
    ``registry.example.com/library/alpine:3`` is pulled as ``library/alpine:3``.
    """

    pull_policy: PullPolicy = PullPolicy.ALWAYS
    remove_container: bool = True
    """Remove the job container once it has exited."""

    shell: str = "sh"
    """Shell used inside the container to execute the generated script."""


class LocalCISettings(BaseSettings):
    """localci settings.

    Values come from (highest priority first) the YAML config file passed to
    ``load_settings``, ``LOCALCI_*`` environment variables, and ``.env``.
    Nested fields use ``__``, e.g.
    ``LOCALCI_DOCKER__MIRRORS='["registry.example.com"]'``.
    """

    model_config = SettingsConfigDict(
        env_prefix="LOCALCI_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    # -- Logging ---------------------------------------------------------------
    log_level: str = "INFO"

    # -- Script ----------------------------------------------------------------
    script_dir: str | None = None
    """Directory for generated job scripts (default: the system temp dir).

    Must be visible to the Docker daemon for bind mounting.
    """

    # -- Docker ----------------------------------------------------------------
    docker: DockerSettings = Field(default_factory=DockerSettings)


def load_settings(config_path: str | Path | None = None) -> LocalCISettings:
    """Build settings, merging an optional YAML config file over the environment.

    Raises ``ConfigError`` if the file cannot be read, parsed, or validated.
    """
    if config_path is None:
        return _build({}, "<environment>")

    path = Path(config_path)
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigError(f"Cannot read configuration {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Cannot parse configuration {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration {path} must be a mapping")
    return _build(data, str(path))


def _build(values: dict, source: str) -> LocalCISettings:
    try:
        return LocalCISettings(**values)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration {source}: {e}") from e
