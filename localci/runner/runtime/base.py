"""Container runtime interface.

The runner talks to the container engine through this small synchronous
protocol.  Calls block (they wrap HTTP requests to the engine); the execution
layer moves them off the event loop with ``anyio.to_thread.run_sync``.

Implementations translate engine failures into runner errors:
``PullError`` for ``pull_image``, ``ProvisionError`` for
``create_container`` and ``RunError`` for ``start`` / ``wait``.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

from localci.runner.models.events import ProgressEvent


@dataclass(frozen=True)
class BindMount:
    """A host path bound into the container."""

    source: str
    target: str
    read_only: bool = False


@dataclass
class ContainerSpec:
    """Everything needed to create a job container."""

    image: str
    command: list[str]
    environment: list[str] = field(default_factory=list)
    working_dir: str | None = None
    mounts: list[BindMount] = field(default_factory=list)
    labels: dict[str, str] = field(default_factory=dict)


@runtime_checkable
class ContainerRuntime(Protocol):
    """Capability interface over the container engine."""

    def pull_image(self, ref: str) -> Iterator[ProgressEvent]:
        """Pull *ref*, yielding decoded progress records as they arrive."""
        ...

    def has_image(self, ref: str) -> bool:
        """Whether *ref* is already present locally."""
        ...

    def create_container(self, spec: ContainerSpec) -> str:
        """Create (but do not start) a container.  Returns its ID."""
        ...

    def start(self, container_id: str) -> None: ...

    def stdout_stream(self, container_id: str) -> Iterator[bytes]:
        """Follow the container's standard output until it exits."""
        ...

    def stderr_stream(self, container_id: str) -> Iterator[bytes]:
        """Follow the container's standard error until it exits."""
        ...

    def wait(self, container_id: str) -> int:
        """Block until the container exits.  Returns its exit status."""
        ...

    def remove(self, container_id: str) -> None:
        """Force-remove the container.  No-op if it is already gone."""
        ...
