"""Job resolver -- walks a job's ``extends`` chain into a single ResolvedJob.

Resolution order for ``resolve_job(pipeline, name)``:

1. Look up the job (``JobNotFoundError`` if absent) and compute its own
   environment.
2. No ``extends`` -> done.
3. Otherwise resolve the parent first (recursively, same procedure), then
   merge it into the child:
   - ``image``: the parent's image replaces the child's whenever the parent
     has a non-empty one.  Parent wins, even over an explicit child image.
   - ``variables``: the parent's resolved entries are appended after the
     child's own entries.
   - script phases: copied from the parent only when the child does not
     declare that phase.  Phases are never merged line by line.
4. The result carries no ``extends`` pointer.

The walk keeps a visited chain and raises ``CyclicExtendsError`` when a job
name repeats.  The loaded pipeline itself is never mutated.
"""

from __future__ import annotations

import logging

from localci.runner.errors import CyclicExtendsError
from localci.runner.execution.environment import assemble_env
from localci.runner.models.enums import ScriptPhaseName
from localci.runner.models.job import ResolvedJob
from localci.runner.pipeline import Pipeline

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def resolve_job(pipeline: Pipeline, job_name: str) -> ResolvedJob:
    """Resolve *job_name* into a fully merged ``ResolvedJob``.

    Raises
    ------
    JobNotFoundError:
        The job, or any job in its extends chain, does not exist.
    InvalidJobError:
        A job body in the chain is not a valid job mapping.
    CyclicExtendsError:
        The extends chain refers back to a job already in the chain.
    """
    resolved = _resolve(pipeline, job_name, chain=[], referenced_by=None)
    logger.debug("Resolved job %s: image=%s, variables=%d", job_name, resolved.image, len(resolved.variables))
    return resolved


def extends_chain(pipeline: Pipeline, job_name: str) -> list[str]:
    """Return ``[job_name, parent, grandparent, ...]``.

    Raises the same errors as ``resolve_job``.
    """
    chain: list[str] = []
    name: str | None = job_name
    referenced_by: str | None = None
    while name is not None:
        if name in chain:
            raise CyclicExtendsError([*chain, name])
        spec = pipeline.job(name, referenced_by=referenced_by)
        chain.append(name)
        referenced_by, name = name, spec.extends
    return chain


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _resolve(
    pipeline: Pipeline,
    job_name: str,
    *,
    chain: list[str],
    referenced_by: str | None,
) -> ResolvedJob:
    if job_name in chain:
        raise CyclicExtendsError([*chain, job_name])

    spec = pipeline.job(job_name, referenced_by=referenced_by)
    env = assemble_env(spec)

    resolved = ResolvedJob(
        name=job_name,
        image=spec.image,
        variables=env,
        before_script=spec.before_script,
        script=spec.script,
        after_script=spec.after_script,
    )

    if spec.extends is None:
        return resolved

    parent = _resolve(pipeline, spec.extends, chain=[*chain, job_name], referenced_by=job_name)
    return _merge(resolved, parent)


def _merge(child: ResolvedJob, parent: ResolvedJob) -> ResolvedJob:
    """Merge a resolved parent into a child that has its own environment computed."""
    image = parent.image if parent.image else child.image
    if parent.image and child.image and child.image != parent.image:
        logger.warning(
            "Job %s: image %s replaced by %s inherited from %s",
            child.name,
            child.image,
            parent.image,
            parent.name,
        )

    update: dict[str, object] = {
        "image": image,
        "variables": [*child.variables, *assemble_env(parent)],
    }
    for phase in ScriptPhaseName:
        if child.phase(phase) is None:
            update[phase.value] = parent.phase(phase)

    return child.model_copy(update=update)
