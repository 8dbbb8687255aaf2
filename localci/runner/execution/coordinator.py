"""Job coordinator -- runs one job from pipeline to exit status.

1. **Resolve**: walk the extends chain into a ``ResolvedJob``
2. **Pull**: strip the registry mirror and make sure the image is local
3. **Script**: assemble the phases into a temporary script file
4. **Run**: provision the container, relay its output, wait for exit

Every failure propagates as a ``LocalCIError``; there is no partial or
best-effort continuation.  The script file (and, by default, the container)
is cleaned up on every exit path.
"""

from __future__ import annotations

import sys
import time
from dataclasses import dataclass
from functools import partial
from pathlib import Path
from typing import TYPE_CHECKING, TextIO

from anyio import to_thread
from loguru import logger

from localci.runner.errors import MissingImageError
from localci.runner.execution.container import build_container_spec, run_container
from localci.runner.execution.environment import duplicate_keys
from localci.runner.execution.mirror import strip_mirror
from localci.runner.execution.pull import pull_image
from localci.runner.execution.resolver import resolve_job
from localci.runner.execution.script import assemble_script, script_file

if TYPE_CHECKING:
    from localci.runner.pipeline import Pipeline
    from localci.runner.runtime.base import ContainerRuntime
    from localci.runner.settings import LocalCISettings


@dataclass
class JobResult:
    """Outcome of a successful job run."""

    job_name: str
    image: str
    exit_code: int
    duration_ms: int


async def execute_job(
    pipeline: Pipeline,
    job_name: str,
    *,
    settings: LocalCISettings,
    runtime: ContainerRuntime,
    repo_path: Path,
    stdout: TextIO | None = None,
    stderr: TextIO | None = None,
) -> JobResult:
    """Execute *job_name* from *pipeline* inside a container.

    Parameters
    ----------
    pipeline:
        Loaded pipeline definition.
    job_name:
        Job to run.  Must exist in the pipeline.
    settings:
        Tool settings (mirrors, pull policy, script directory).
    runtime:
        Container engine capability.
    repo_path:
        Host directory bind-mounted read-write as the job's working directory.
    stdout, stderr:
        Where pull progress and the job's output streams are relayed
        (default: the process's own streams).

    Raises
    ------
    ConfigError:
        Resolution failed or the resolved job has no image.
    PullError / ScriptIOError / ProvisionError / RunError:
        The corresponding stage failed; ``RunError`` also covers a non-zero
        script exit.
    """
    stdout = stdout or sys.stdout
    stderr = stderr or sys.stderr
    start_time = time.monotonic()

    # -- Resolve ---------------------------------------------------------------
    job = resolve_job(pipeline, job_name)
    if not job.image:
        raise MissingImageError(job_name)

    # -- Pull ------------------------------------------------------------------
    image = strip_mirror(job.image, settings.docker.mirrors)
    logger.info("Making sure image {} is available ...", image)
    await to_thread.run_sync(
        partial(pull_image, runtime, image, out=stdout, policy=settings.docker.pull_policy),
    )

    # -- Script ----------------------------------------------------------------
    logger.info("Executing script from job {} ...", job_name)
    body = assemble_script(job)

    logger.info("Preparing environment variables ...")
    for entry in job.variables:
        logger.info("set {}", entry)
    for key in duplicate_keys(job.variables):
        logger.warning("Variable {} is declared more than once in the extends chain", key)

    # -- Run -------------------------------------------------------------------
    with script_file(body, settings.script_dir) as script_path:
        spec = build_container_spec(
            job,
            image=image,
            script_path=script_path,
            repo_path=repo_path,
            shell=settings.docker.shell,
        )
        exit_code = await run_container(
            runtime,
            spec,
            stdout=stdout,
            stderr=stderr,
            remove=settings.docker.remove_container,
        )

    duration_ms = int((time.monotonic() - start_time) * 1000)
    logger.info("Job {} completed: image={}, duration={}ms", job_name, image, duration_ms)
    return JobResult(job_name=job_name, image=image, exit_code=exit_code, duration_ms=duration_ms)
