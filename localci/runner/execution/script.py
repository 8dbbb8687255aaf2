"""Script assembly and the generated script file.

The three script phases are concatenated, in fixed order, into one shell
body.  The body is written to a temporary ``script-*.sh`` file that is
bind-mounted read-only into the job container and removed afterwards.
"""

from __future__ import annotations

import contextlib
import logging
import os
import stat
import tempfile
from collections.abc import Iterator
from pathlib import Path
from typing import Protocol

from localci.runner.errors import ScriptIOError
from localci.runner.models.enums import ScriptPhaseName
from localci.runner.models.job import ScriptPhase

logger = logging.getLogger(__name__)

SCRIPT_PREFIX = "script-"
SCRIPT_SUFFIX = ".sh"

# rwxr-xr-x: the container user may not match the host user.
SCRIPT_MODE = stat.S_IRWXU | stat.S_IRGRP | stat.S_IXGRP | stat.S_IROTH | stat.S_IXOTH


class _HasPhases(Protocol):
    def phase(self, name: ScriptPhaseName) -> ScriptPhase | None: ...


def assemble_script(job: _HasPhases) -> str:
    """Concatenate ``before_script``, ``script`` and ``after_script``.

    String phases are used verbatim; list entries are stripped of
    surrounding whitespace.  Absent or empty phases are skipped.
    """
    lines: list[str] = []
    for name in ScriptPhaseName:
        phase = job.phase(name)
        if not phase:
            logger.info("No job '%s'", name.value)
            continue

        if isinstance(phase, str):
            lines.append(phase)
        else:
            lines.extend(line.strip() for line in phase)

    return "\n".join(lines)


@contextlib.contextmanager
def script_file(body: str, directory: str | Path | None = None) -> Iterator[Path]:
    """Write *body* to an executable temporary script and yield its path.

    The file is deleted when the block exits, whether it exits normally or
    with an exception.  Creation, write, or chmod failures raise
    ``ScriptIOError``.
    """
    try:
        fd, name = tempfile.mkstemp(prefix=SCRIPT_PREFIX, suffix=SCRIPT_SUFFIX, dir=directory)
    except OSError as e:
        raise ScriptIOError(f"Cannot create script file: {e}") from e

    path = Path(name)
    try:
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(body)
            os.chmod(path, SCRIPT_MODE)
        except OSError as e:
            raise ScriptIOError(f"Cannot write script file {path}: {e}") from e

        logger.debug("Wrote script %s (%d bytes)", path, len(body))
        yield path
    finally:
        with contextlib.suppress(FileNotFoundError):
            path.unlink()
