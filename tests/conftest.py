"""Shared test fixtures: an in-memory container runtime and pipeline helpers.

Unit tests never talk to a Docker daemon.  ``FakeRuntime`` implements the
``ContainerRuntime`` protocol, records every call, and replays canned pull
events and container output.

Tests needing a real daemon are marked with ``@pytest.mark.integration``
and skip themselves when Docker is unavailable.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from pathlib import Path

import pytest
import yaml

from localci.runner.models.events import ProgressEvent
from localci.runner.pipeline import Pipeline
from localci.runner.runtime.base import ContainerSpec
from localci.runner.settings import DockerSettings, LocalCISettings


class FakeRuntime:
    """Scriptable ``ContainerRuntime`` double."""

    def __init__(self) -> None:
        self.events: list[ProgressEvent] = []
        self.local_images: set[str] = set()
        self.stdout_chunks: list[bytes] = []
        self.stderr_chunks: list[bytes] = []
        self.exit_code = 0
        self.create_error: Exception | None = None

        self.calls: list[tuple[str, str]] = []
        self.specs: list[ContainerSpec] = []
        self.scripts: list[str] = []
        self.removed: list[str] = []

    # -- Images ----------------------------------------------------------------

    def pull_image(self, ref: str) -> Iterator[ProgressEvent]:
        self.calls.append(("pull", ref))
        yield from self.events

    def has_image(self, ref: str) -> bool:
        self.calls.append(("has_image", ref))
        return ref in self.local_images

    # -- Containers ------------------------------------------------------------

    def create_container(self, spec: ContainerSpec) -> str:
        self.calls.append(("create", spec.image))
        if self.create_error is not None:
            raise self.create_error
        self.specs.append(spec)
        # The script only exists while the job runs; capture it now.
        script_mount = next(m for m in spec.mounts if m.read_only)
        self.scripts.append(Path(script_mount.source).read_text(encoding="utf-8"))
        return "c0ffee00c0ffee00"

    def start(self, container_id: str) -> None:
        self.calls.append(("start", container_id))

    def stdout_stream(self, container_id: str) -> Iterator[bytes]:
        return iter(self.stdout_chunks)

    def stderr_stream(self, container_id: str) -> Iterator[bytes]:
        return iter(self.stderr_chunks)

    def wait(self, container_id: str) -> int:
        self.calls.append(("wait", container_id))
        return self.exit_code

    def remove(self, container_id: str) -> None:
        self.removed.append(container_id)


@pytest.fixture
def runtime() -> FakeRuntime:
    return FakeRuntime()


@pytest.fixture
def settings(tmp_path: Path) -> LocalCISettings:
    """Settings isolated from the host environment, scripts under tmp_path."""
    script_dir = tmp_path / "scripts"
    script_dir.mkdir()
    return LocalCISettings(script_dir=str(script_dir), docker=DockerSettings())


@pytest.fixture
def make_pipeline() -> Callable[[dict], Pipeline]:
    """Build a ``Pipeline`` from a plain dict."""

    def _make(data: dict) -> Pipeline:
        return Pipeline(data)

    return _make


@pytest.fixture
def write_pipeline(tmp_path: Path) -> Callable[[dict], Path]:
    """Write a pipeline dict as ``.gitlab-ci.yml`` inside a fresh repo directory."""

    def _write(data: dict) -> Path:
        repo = tmp_path / "repo"
        repo.mkdir(exist_ok=True)
        path = repo / ".gitlab-ci.yml"
        path.write_text(yaml.safe_dump(data, sort_keys=False), encoding="utf-8")
        return path

    return _write
