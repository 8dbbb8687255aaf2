"""Environment assembly for job containers.

A job declares its variables either as a mapping or as a list of
``KEY=VALUE`` strings.  The container receives a single ordered list of
``KEY=VALUE`` entries.

Ordering matters: after inheritance the list holds the child's own entries
first, followed by the parent's.  Duplicate keys may coexist in the list and
are passed to the container unchanged; ``duplicate_keys`` lets callers warn
about them.
"""

from __future__ import annotations

from typing import Protocol


class _HasVariables(Protocol):
    variables: dict[str, str] | list[str] | None


def assemble_env(job: _HasVariables) -> list[str]:
    """Normalize a job's declared variables into an ordered ``KEY=VALUE`` list.

    - no ``variables``         -> ``[]``
    - mapping                  -> one entry per key, in insertion order
    - list of ``KEY=VALUE``    -> returned as-is (copied)
    - anything else            -> ``[]``
    """
    variables = job.variables
    if variables is None:
        return []
    if isinstance(variables, dict):
        return [f"{key}={value}" for key, value in variables.items()]
    if isinstance(variables, list):
        return list(variables)
    return []


def parse_env(entries: list[str]) -> list[tuple[str, str]]:
    """Split ``KEY=VALUE`` entries into pairs.  Entries without ``=`` get an empty value."""
    pairs = []
    for entry in entries:
        key, _, value = entry.partition("=")
        pairs.append((key, value))
    return pairs


def duplicate_keys(entries: list[str]) -> list[str]:
    """Keys that appear more than once, in order of their first repeat."""
    seen: set[str] = set()
    repeated: list[str] = []
    for key, _ in parse_env(entries):
        if key in seen and key not in repeated:
            repeated.append(key)
        seen.add(key)
    return repeated
