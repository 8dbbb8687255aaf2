"""Container runtime implementations."""

from localci.runner.runtime.base import BindMount, ContainerRuntime, ContainerSpec
from localci.runner.runtime.docker_engine import DockerRuntime

__all__ = ["BindMount", "ContainerRuntime", "ContainerSpec", "DockerRuntime"]
