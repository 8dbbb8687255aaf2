"""Docker Engine implementation of the ContainerRuntime protocol.

Uses the ``docker`` SDK.  The client is configured from the environment
(``DOCKER_HOST``, ``DOCKER_TLS_VERIFY``, ``DOCKER_CERT_PATH``), the same way
the ``docker`` CLI is.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator

import docker
import docker.errors
import requests
from docker.types import Mount
from docker.utils import parse_repository_tag

from localci.runner.errors import ProvisionError, PullError, RunError
from localci.runner.models.events import ProgressEvent
from localci.runner.runtime.base import ContainerSpec

logger = logging.getLogger(__name__)

_TRANSPORT_ERRORS = (docker.errors.DockerException, requests.exceptions.RequestException)


class DockerRuntime:
    """ContainerRuntime backed by a ``docker.DockerClient``."""

    def __init__(self, client: docker.DockerClient) -> None:
        self.client = client

    @classmethod
    def from_env(cls) -> DockerRuntime:
        """Connect using the environment.  Raises ``ProvisionError`` if the daemon is unreachable."""
        try:
            client = docker.from_env()
        except docker.errors.DockerException as e:
            raise ProvisionError(f"Cannot connect to the Docker daemon: {e}") from e
        return cls(client)

    # -- Images ----------------------------------------------------------------

    def pull_image(self, ref: str) -> Iterator[ProgressEvent]:
        repository, tag = parse_repository_tag(ref)
        try:
            stream = self.client.api.pull(repository, tag=tag or "latest", stream=True, decode=True)
            for record in stream:
                yield ProgressEvent.model_validate(record)
        except _TRANSPORT_ERRORS as e:
            raise PullError(f"Cannot pull image {ref}: {e}") from e

    def has_image(self, ref: str) -> bool:
        try:
            self.client.images.get(ref)
        except docker.errors.ImageNotFound:
            return False
        except _TRANSPORT_ERRORS as e:
            raise PullError(f"Cannot inspect image {ref}: {e}") from e
        return True

    # -- Containers ------------------------------------------------------------

    def create_container(self, spec: ContainerSpec) -> str:
        mounts = [
            Mount(target=m.target, source=m.source, type="bind", read_only=m.read_only) for m in spec.mounts
        ]
        try:
            container = self.client.containers.create(
                spec.image,
                command=spec.command,
                environment=spec.environment,
                working_dir=spec.working_dir,
                mounts=mounts,
                labels=spec.labels,
            )
        except _TRANSPORT_ERRORS as e:
            raise ProvisionError(f"Cannot create container from {spec.image}: {e}") from e

        logger.debug("Created container %s from %s", container.short_id, spec.image)
        return container.id

    def start(self, container_id: str) -> None:
        try:
            self.client.api.start(container_id)
        except _TRANSPORT_ERRORS as e:
            raise RunError(f"Cannot start container {container_id[:12]}: {e}") from e

    def stdout_stream(self, container_id: str) -> Iterator[bytes]:
        return self._follow(container_id, stdout=True, stderr=False)

    def stderr_stream(self, container_id: str) -> Iterator[bytes]:
        return self._follow(container_id, stdout=False, stderr=True)

    def wait(self, container_id: str) -> int:
        try:
            result = self.client.api.wait(container_id)
        except _TRANSPORT_ERRORS as e:
            raise RunError(f"Cannot wait for container {container_id[:12]}: {e}") from e

        error = result.get("Error")
        if error and error.get("Message"):
            raise RunError(f"Container {container_id[:12]} failed: {error['Message']}")
        return int(result.get("StatusCode", -1))

    def remove(self, container_id: str) -> None:
        try:
            self.client.api.remove_container(container_id, force=True)
        except docker.errors.NotFound:
            return
        logger.debug("Removed container %s", container_id[:12])

    # -- Internal --------------------------------------------------------------

    def _follow(self, container_id: str, *, stdout: bool, stderr: bool) -> Iterator[bytes]:
        try:
            yield from self.client.api.logs(container_id, stdout=stdout, stderr=stderr, stream=True, follow=True)
        except _TRANSPORT_ERRORS as e:
            raise RunError(f"Cannot read output of container {container_id[:12]}: {e}") from e
