"""Shared enumerations used across the runner."""

from __future__ import annotations

from enum import StrEnum

# -- Errors ------------------------------------------------------------------


class Stage(StrEnum):
    """Stage of a job run an error was raised from."""

    CONFIG = "config"
    PULL = "pull"
    SCRIPT = "script"
    PROVISION = "provision"
    RUN = "run"


# -- Images ------------------------------------------------------------------


class PullPolicy(StrEnum):
    """When to pull the job image before running it."""

    ALWAYS = "always"
    IF_NOT_PRESENT = "if-not-present"
    NEVER = "never"


# -- Script ------------------------------------------------------------------


class ScriptPhaseName(StrEnum):
    """Script phases in execution order."""

    BEFORE_SCRIPT = "before_script"
    SCRIPT = "script"
    AFTER_SCRIPT = "after_script"
