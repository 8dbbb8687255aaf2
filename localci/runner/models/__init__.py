"""Data models for the runner."""

from localci.runner.models.enums import PullPolicy, ScriptPhaseName, Stage
from localci.runner.models.events import ProgressEvent
from localci.runner.models.job import JobSpec, ResolvedJob, ScriptPhase, VariableSource

__all__ = [
    "JobSpec",
    "ProgressEvent",
    "PullPolicy",
    "ResolvedJob",
    "ScriptPhase",
    "ScriptPhaseName",
    "Stage",
    "VariableSource",
]
