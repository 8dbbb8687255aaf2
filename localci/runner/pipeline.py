"""Pipeline definition loading.

A pipeline file is a YAML mapping of job name -> job body.  Bodies are
validated into ``JobSpec`` lazily, the first time a job is looked up, so
top-level keywords (``stages``, ``include``, ...) never need to look like
jobs unless something actually references them.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from localci.runner.errors import ConfigError, InvalidJobError, JobNotFoundError
from localci.runner.models.job import JobSpec

# Top-level GitLab keywords that are not jobs.
RESERVED_KEYWORDS = frozenset(
    {
        "after_script",
        "before_script",
        "cache",
        "default",
        "image",
        "include",
        "services",
        "stages",
        "types",
        "variables",
        "workflow",
    }
)


class Pipeline(Mapping[str, Any]):
    """Read-only, insertion-ordered view over the raw pipeline mapping."""

    def __init__(self, data: Mapping[str, Any], *, source: Path | None = None) -> None:
        self._data = dict(data)
        self._specs: dict[str, JobSpec] = {}
        self.source = source

    # -- Construction ----------------------------------------------------------

    @classmethod
    def from_yaml(cls, text: str, *, source: Path | None = None) -> Pipeline:
        """Parse a pipeline document.  Raises ``ConfigError`` on bad YAML."""
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ConfigError(f"Cannot parse pipeline {source or '<string>'}: {e}") from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigError(f"Pipeline {source or '<string>'} must be a mapping of job name to job")
        return cls({str(k): v for k, v in data.items()}, source=source)

    @classmethod
    def load(cls, path: str | Path) -> Pipeline:
        """Read and parse a pipeline file."""
        path = Path(path)
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigError(f"Cannot read pipeline file {path}: {e}") from e
        return cls.from_yaml(text, source=path)

    # -- Mapping ---------------------------------------------------------------

    def __getitem__(self, name: str) -> Any:
        return self._data[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    # -- Jobs ------------------------------------------------------------------

    def job(self, name: str, *, referenced_by: str | None = None) -> JobSpec:
        """Return the validated ``JobSpec`` for *name*.

        Raises ``JobNotFoundError`` if the name is absent and
        ``InvalidJobError`` if the body is not a valid job mapping.
        """
        cached = self._specs.get(name)
        if cached is not None:
            return cached

        if name not in self._data:
            raise JobNotFoundError(name, referenced_by=referenced_by)

        body = self._data[name]
        if not isinstance(body, dict):
            raise InvalidJobError(name, f"expected a mapping, got {type(body).__name__}")

        try:
            spec = JobSpec.model_validate(body)
        except ValidationError as e:
            raise InvalidJobError(name, _format_validation_error(e)) from e

        self._specs[name] = spec
        return spec

    def runnable_jobs(self) -> list[str]:
        """Names of entries that look like runnable jobs.

        Hidden jobs (``.template``) and top-level keywords are skipped.
        """
        return [
            name
            for name, body in self._data.items()
            if isinstance(body, dict) and not name.startswith(".") and name not in RESERVED_KEYWORDS
        ]


def _format_validation_error(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        loc = ".".join(str(p) for p in item["loc"])
        parts.append(f"{loc}: {item['msg']}" if loc else item["msg"])
    return "; ".join(parts)
