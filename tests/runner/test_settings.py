"""Unit tests for settings loading."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from localci.runner.errors import ConfigError
from localci.runner.models.enums import PullPolicy
from localci.runner.settings import load_settings


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Keep host LOCALCI_* variables and any ``.env`` file out of the tests."""
    for key in list(os.environ):
        if key.upper().startswith("LOCALCI_"):
            monkeypatch.delenv(key)
    monkeypatch.chdir(tmp_path)


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "localci.yaml"
    path.write_text(text, encoding="utf-8")
    return path


def test_defaults() -> None:
    settings = load_settings()

    assert settings.log_level == "INFO"
    assert settings.script_dir is None
    assert settings.docker.mirrors == []
    assert settings.docker.pull_policy == PullPolicy.ALWAYS
    assert settings.docker.remove_container is True
    assert settings.docker.shell == "sh"


def test_yaml_file(tmp_path: Path) -> None:
    path = _write(
        tmp_path,
        """\
log_level: DEBUG
script_dir: /var/tmp/localci
docker:
  mirrors:
    - registry.example.com
    - mirror.local
  pull_policy: if-not-present
  remove_container: false
""",
    )

    settings = load_settings(path)

    assert settings.log_level == "DEBUG"
    assert settings.script_dir == "/var/tmp/localci"
    assert settings.docker.mirrors == ["registry.example.com", "mirror.local"]
    assert settings.docker.pull_policy == PullPolicy.IF_NOT_PRESENT
    assert settings.docker.remove_container is False


def test_empty_yaml_file(tmp_path: Path) -> None:
    assert load_settings(_write(tmp_path, "")).docker.mirrors == []


def test_environment_variables(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LOCALCI_LOG_LEVEL", "WARNING")
    monkeypatch.setenv("LOCALCI_DOCKER__PULL_POLICY", "never")
    monkeypatch.setenv("LOCALCI_DOCKER__MIRRORS", '["registry.example.com"]')

    settings = load_settings()

    assert settings.log_level == "WARNING"
    assert settings.docker.pull_policy == PullPolicy.NEVER
    assert settings.docker.mirrors == ["registry.example.com"]


def test_file_overrides_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LOCALCI_LOG_LEVEL", "WARNING")

    settings = load_settings(_write(tmp_path, "log_level: ERROR\n"))

    assert settings.log_level == "ERROR"


def test_missing_file(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="Cannot read configuration"):
        load_settings(tmp_path / "missing.yaml")


def test_invalid_yaml(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="Cannot parse configuration"):
        load_settings(_write(tmp_path, "docker: [unclosed"))


def test_not_a_mapping(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="must be a mapping"):
        load_settings(_write(tmp_path, "- a\n- b\n"))


def test_invalid_pull_policy(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="Invalid configuration"):
        load_settings(_write(tmp_path, "docker:\n  pull_policy: sometimes\n"))
