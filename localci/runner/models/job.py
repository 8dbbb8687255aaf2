"""Job data models.

A pipeline YAML file maps job names to loosely-typed job bodies.  ``JobSpec``
validates one body once, at load time, into explicit optional fields:

- ``image``:      image reference (GitLab's ``{name: ...}`` form is accepted)
- ``variables``:  mapping, ordered ``KEY=VALUE`` list, or absent
- ``extends``:    name of the parent job
- script phases:  a single string or a list of lines

``ResolvedJob`` is the result of walking the extends chain.  It never
carries an inheritance pointer and its variables are always a flat list.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from localci.runner.models.enums import ScriptPhaseName

logger = logging.getLogger(__name__)

ScriptPhase = str | list[str]
"""A script phase: one shell string or an ordered list of shell lines."""

VariableSource = dict[str, str] | list[str] | None
"""Declared job variables: mapping, ``KEY=VALUE`` list, or absent."""


# ---------------------------------------------------------------------------
# Field normalizers
# ---------------------------------------------------------------------------


def _scalar_to_str(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        # YAML ``true`` / ``false`` are exported the way shells expect them.
        return "true" if value else "false"
    return str(value)


def _variable_value(value: Any) -> str:
    # GitLab's expanded form: ``VAR: {value: "x", description: "..."}``
    if isinstance(value, dict):
        return _scalar_to_str(value.get("value"))
    return _scalar_to_str(value)


def _normalize_phase(value: Any) -> Any:
    if not isinstance(value, list):
        return value
    lines: list[Any] = []
    for item in value:
        # Nested lists come from YAML anchors (``- *setup``); flatten one level.
        if isinstance(item, list):
            lines.extend(_scalar_to_str(i) for i in item)
        elif item is None or isinstance(item, (str, int, float, bool)):
            lines.append(_scalar_to_str(item))
        else:
            lines.append(item)
    return lines


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------


class JobSpec(BaseModel):
    """A single job body as declared in the pipeline file.

    Keys other than the ones below (``stage``, ``tags``, ``rules``, ...) are
    kept but ignored by the runner.
    """

    model_config = ConfigDict(extra="allow")

    image: str | None = None
    variables: VariableSource = None
    extends: str | None = None
    before_script: ScriptPhase | None = None
    script: ScriptPhase | None = None
    after_script: ScriptPhase | None = None

    @field_validator("image", mode="before")
    @classmethod
    def _image_name(cls, value: Any) -> Any:
        if isinstance(value, dict):
            return value.get("name")
        return value

    @field_validator("variables", mode="before")
    @classmethod
    def _normalize_variables(cls, value: Any) -> Any:
        if value is None:
            return None
        if isinstance(value, dict):
            return {str(k): _variable_value(v) for k, v in value.items()}
        if isinstance(value, list):
            return [_scalar_to_str(entry) for entry in value]
        logger.warning("Ignoring variables of unsupported type %s", type(value).__name__)
        return None

    @field_validator("before_script", "script", "after_script", mode="before")
    @classmethod
    def _normalize_phases(cls, value: Any) -> Any:
        return _normalize_phase(value)

    def phase(self, name: ScriptPhaseName) -> ScriptPhase | None:
        return getattr(self, name.value)


class ResolvedJob(BaseModel):
    """A job after inheritance merging, ready for script assembly and provisioning."""

    name: str
    image: str | None = None
    variables: list[str] = Field(default_factory=list)
    before_script: ScriptPhase | None = None
    script: ScriptPhase | None = None
    after_script: ScriptPhase | None = None

    def phase(self, name: ScriptPhaseName) -> ScriptPhase | None:
        return getattr(self, name.value)
