"""Error hierarchy for a job run.

Every error carries the stage it was raised from so the CLI can tell the
user whether resolution, the image pull, or the container run failed.
Nothing is recovered locally -- each error aborts the whole invocation.
"""

from __future__ import annotations

from localci.runner.models.enums import Stage


class LocalCIError(Exception):
    """Base class for all job-run failures."""

    stage: Stage = Stage.CONFIG


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class ConfigError(LocalCIError, ValueError):
    """The pipeline or tool configuration cannot produce a runnable job."""

    stage = Stage.CONFIG


class JobNotFoundError(ConfigError, LookupError):
    """Referenced job does not exist in the pipeline."""

    def __init__(self, job_name: str, *, referenced_by: str | None = None) -> None:
        self.job_name = job_name
        self.referenced_by = referenced_by
        if referenced_by is not None:
            super().__init__(f"Reference not found: '{job_name}' (extended by '{referenced_by}')")
        else:
            super().__init__(f"Reference not found: '{job_name}'")


class InvalidJobError(ConfigError):
    """Job body has the wrong shape (not a mapping, bad field types)."""

    def __init__(self, job_name: str, reason: str) -> None:
        self.job_name = job_name
        super().__init__(f"Invalid job '{job_name}': {reason}")


class CyclicExtendsError(ConfigError):
    """The extends chain loops back on itself."""

    def __init__(self, chain: list[str]) -> None:
        self.chain = chain
        super().__init__(f"Cyclic extends: {' -> '.join(chain)}")


class MissingImageError(ConfigError):
    """Resolved job has no image to run."""

    def __init__(self, job_name: str) -> None:
        self.job_name = job_name
        super().__init__(f"Missing Docker image for job '{job_name}'")


# ---------------------------------------------------------------------------
# Execution
# ---------------------------------------------------------------------------


class PullError(LocalCIError):
    """Registry or transport failure while pulling the image."""

    stage = Stage.PULL


class ProvisionError(LocalCIError):
    """Container could not be created (bad image, mount failure, ...)."""

    stage = Stage.PROVISION


class RunError(LocalCIError):
    """Container failed to start, wait failed, or the script exited non-zero."""

    stage = Stage.RUN

    def __init__(self, message: str, *, exit_code: int | None = None) -> None:
        self.exit_code = exit_code
        super().__init__(message)


class ScriptIOError(LocalCIError):
    """Generated script could not be written or made executable."""

    stage = Stage.SCRIPT
