"""Container execution -- provision, start, relay output, wait.

Container layout::

    /tmp/repo            <- repository directory (read-write, working dir)
    /script-XXXX.sh      <- generated job script (read-only)

    command: sh -c /script-XXXX.sh

While the container runs, two relay tasks copy its stdout and stderr to the
host's streams line by line.  Each relay owns one stream pair; the main
flow waits for the container to exit and for both relays to drain.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator
from functools import partial
from pathlib import Path, PurePosixPath
from typing import TextIO

import anyio
from anyio import to_thread

from localci.runner.errors import LocalCIError, RunError
from localci.runner.models.job import ResolvedJob
from localci.runner.runtime.base import BindMount, ContainerRuntime, ContainerSpec

logger = logging.getLogger(__name__)

CONTAINER_WORKDIR = PurePosixPath("/tmp/repo")  # noqa: S108
"""Repository mount point and working directory inside the container."""

JOB_LABEL = "io.localci.job"


# ---------------------------------------------------------------------------
# Provisioning
# ---------------------------------------------------------------------------


def build_container_spec(
    job: ResolvedJob,
    *,
    image: str,
    script_path: Path,
    repo_path: Path,
    shell: str = "sh",
) -> ContainerSpec:
    """Describe the job container: image, env, mounts and command."""
    container_script = f"/{script_path.name}"
    return ContainerSpec(
        image=image,
        command=[shell, "-c", container_script],
        environment=list(job.variables),
        working_dir=str(CONTAINER_WORKDIR),
        mounts=[
            BindMount(source=str(repo_path.resolve()), target=str(CONTAINER_WORKDIR), read_only=False),
            BindMount(source=str(script_path.resolve()), target=container_script, read_only=True),
        ],
        labels={JOB_LABEL: job.name},
    )


# ---------------------------------------------------------------------------
# Output relay
# ---------------------------------------------------------------------------


def iter_lines(chunks: Iterable[bytes]) -> Iterator[str]:
    """Re-split arbitrary byte chunks into decoded lines (without terminators).

    A trailing ``\\r`` is dropped.  An unterminated final line is still
    yielded.
    """
    buffer = b""
    for chunk in chunks:
        buffer += chunk
        *lines, buffer = buffer.split(b"\n")
        for line in lines:
            yield _decode(line)
    if buffer:
        yield _decode(buffer)


def _decode(line: bytes) -> str:
    return line.removesuffix(b"\r").decode("utf-8", errors="replace")


def _pump(open_stream: Callable[[], Iterable[bytes]], sink: TextIO) -> None:
    for line in iter_lines(open_stream()):
        sink.write(line + "\n")
        sink.flush()


async def _relay(open_stream: Callable[[], Iterable[bytes]], sink: TextIO) -> None:
    # A blocked log read cannot be interrupted; on cancellation the thread is
    # abandoned and ends once the container is removed.
    await to_thread.run_sync(partial(_pump, open_stream, sink), abandon_on_cancel=True)


# ---------------------------------------------------------------------------
# Run
# ---------------------------------------------------------------------------


async def run_container(
    runtime: ContainerRuntime,
    spec: ContainerSpec,
    *,
    stdout: TextIO,
    stderr: TextIO,
    remove: bool = True,
) -> int:
    """Create and run the job container to completion.

    Returns the exit status (always 0).  A non-zero exit raises ``RunError``
    carrying the status; provisioning failures raise ``ProvisionError``.
    Start, wait and output relay failures raise ``RunError``.
    When *remove* is set the container is force-removed on every exit path.
    """
    container_id = await to_thread.run_sync(runtime.create_container, spec)
    logger.debug("Container %s created", container_id[:12])

    try:
        await to_thread.run_sync(runtime.start, container_id)

        try:
            async with anyio.create_task_group() as tg:
                tg.start_soon(_relay, partial(runtime.stdout_stream, container_id), stdout)
                tg.start_soon(_relay, partial(runtime.stderr_stream, container_id), stderr)
                exit_code = await to_thread.run_sync(runtime.wait, container_id, abandon_on_cancel=True)
        except ExceptionGroup as group:
            raise _run_failure(group, container_id)
    finally:
        if remove:
            await _remove(runtime, container_id)

    if exit_code != 0:
        raise RunError(f"Job script exited with status {exit_code}", exit_code=exit_code)
    return exit_code


def _run_failure(group: ExceptionGroup, container_id: str) -> LocalCIError:
    """Pick the error to report from a failed wait/relay group.

    The first runner error wins; anything else becomes a ``RunError``.
    """
    errors = _leaves(group)
    for error in errors:
        if isinstance(error, LocalCIError):
            return error

    failure = RunError(f"Output relay for container {container_id[:12]} failed: {errors[0]}")
    failure.__cause__ = errors[0]
    return failure


def _leaves(group: BaseExceptionGroup) -> list[BaseException]:
    leaves: list[BaseException] = []
    for error in group.exceptions:
        if isinstance(error, BaseExceptionGroup):
            leaves.extend(_leaves(error))
        else:
            leaves.append(error)
    return leaves


async def _remove(runtime: ContainerRuntime, container_id: str) -> None:
    try:
        await to_thread.run_sync(runtime.remove, container_id)
    except Exception:
        logger.warning("Could not remove container %s", container_id[:12], exc_info=True)
