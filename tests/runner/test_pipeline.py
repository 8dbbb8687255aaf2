"""Unit tests for pipeline loading and JobSpec validation."""

from __future__ import annotations

from pathlib import Path

import pytest

from localci.runner.errors import ConfigError, InvalidJobError, JobNotFoundError
from localci.runner.models.job import JobSpec
from localci.runner.pipeline import Pipeline

PIPELINE_YAML = """\
stages: [build, test]

variables:
  GLOBAL: "1"

.template:
  image: alpine:3.20
  before_script:
    - apk add --no-cache make

build:
  extends: .template
  script:
    - make build

test:
  image:
    name: python:3.12
    entrypoint: [""]
  variables:
    PORT: 8080
    DEBUG: true
    TOKEN:
      value: secret
      description: API token
  script: pytest
"""


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


def test_from_yaml_preserves_order() -> None:
    pipeline = Pipeline.from_yaml(PIPELINE_YAML)

    assert list(pipeline) == ["stages", "variables", ".template", "build", "test"]
    assert len(pipeline) == 5


def test_load_file(tmp_path: Path) -> None:
    path = tmp_path / ".gitlab-ci.yml"
    path.write_text(PIPELINE_YAML, encoding="utf-8")

    pipeline = Pipeline.load(path)

    assert pipeline.source == path
    assert "build" in pipeline


def test_load_missing_file(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="Cannot read pipeline file"):
        Pipeline.load(tmp_path / "missing.yml")


def test_from_yaml_invalid_syntax() -> None:
    with pytest.raises(ConfigError, match="Cannot parse pipeline"):
        Pipeline.from_yaml("build: [unclosed")


def test_from_yaml_not_a_mapping() -> None:
    with pytest.raises(ConfigError, match="must be a mapping"):
        Pipeline.from_yaml("- a\n- b\n")


def test_from_yaml_empty_document() -> None:
    assert len(Pipeline.from_yaml("")) == 0


def test_runnable_jobs_skip_hidden_and_keywords() -> None:
    pipeline = Pipeline.from_yaml(PIPELINE_YAML)

    assert pipeline.runnable_jobs() == ["build", "test"]


# ---------------------------------------------------------------------------
# Job lookup
# ---------------------------------------------------------------------------


def test_job_lookup_is_cached() -> None:
    pipeline = Pipeline.from_yaml(PIPELINE_YAML)

    assert pipeline.job("build") is pipeline.job("build")


def test_job_not_found() -> None:
    with pytest.raises(JobNotFoundError, match="Reference not found: 'deploy'"):
        Pipeline.from_yaml(PIPELINE_YAML).job("deploy")


def test_job_invalid_field_type() -> None:
    pipeline = Pipeline({"build": {"script": {"not": "a list"}}})

    with pytest.raises(InvalidJobError, match="Invalid job 'build'"):
        pipeline.job("build")


# ---------------------------------------------------------------------------
# JobSpec normalization
# ---------------------------------------------------------------------------


def test_image_mapping_form() -> None:
    spec = Pipeline.from_yaml(PIPELINE_YAML).job("test")

    assert spec.image == "python:3.12"


def test_variable_values_stringified() -> None:
    spec = Pipeline.from_yaml(PIPELINE_YAML).job("test")

    assert spec.variables == {"PORT": "8080", "DEBUG": "true", "TOKEN": "secret"}


def test_variables_unsupported_shape_ignored() -> None:
    assert JobSpec.model_validate({"variables": "A=1"}).variables is None


def test_list_variables_stringified() -> None:
    assert JobSpec.model_validate({"variables": ["A=1", 2]}).variables == ["A=1", "2"]


def test_nested_script_lists_flattened() -> None:
    spec = JobSpec.model_validate({"script": [["echo setup", "echo more"], "echo main"]})

    assert spec.script == ["echo setup", "echo more", "echo main"]


def test_unknown_keys_tolerated() -> None:
    spec = JobSpec.model_validate({"stage": "test", "tags": ["docker"], "script": "true"})

    assert spec.script == "true"
