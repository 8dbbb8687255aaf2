"""Image pull with terminal progress rendering.

The engine reports a pull as a stream of records like::

    {"status": "Pulling fs layer", "id": "a1b2c3"}
    {"status": "Downloading", "progress": "[=>      ] 1.2MB/9.8MB", "id": "a1b2c3"}
    {"status": "Downloading", "progress": "[===>    ] 3.4MB/9.8MB", "id": "a1b2c3"}

``PullProgressRenderer`` turns that into a compact display: each new status
starts a new line, and repeated statuses overwrite the previous progress
text in place using backspaces.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TextIO

from localci.runner.errors import PullError
from localci.runner.models.enums import PullPolicy
from localci.runner.models.events import ProgressEvent
from localci.runner.runtime.base import ContainerRuntime

logger = logging.getLogger(__name__)

STATUS_WIDTH = 18
"""Short statuses are right-aligned in a field of this width."""

LONG_STATUS = 20
"""Statuses longer than this get a line of their own."""


class PullProgressRenderer:
    """Render ``ProgressEvent`` records to a text stream.

    State machine keyed on the ``status`` of consecutive records:

    - **new status**: a newline if a previous status exists, then either the
      long status on its own line (progress on the next line), or the short
      status right-aligned followed by `` <progress>``.
    - **repeated status**: one backspace per character of the previously
      printed progress, then the new progress text.
    """

    def __init__(self, out: TextIO) -> None:
        self._out = out
        self._last_status = ""
        self._last_progress = ""

    def feed(self, event: ProgressEvent) -> None:
        status, progress = event.status, event.progress

        if status != self._last_status:
            if self._last_status:
                self._out.write("\n")

            if len(status) > LONG_STATUS:
                self._out.write(f"\n{status}")
                if progress:
                    self._out.write(f"\n{progress}")
            else:
                self._out.write(f"{status:>{STATUS_WIDTH}}")
                if progress:
                    self._out.write(f" {progress}")

            self._last_status = status
        else:
            self._out.write("\b" * len(self._last_progress))
            self._out.write(progress)

        self._last_progress = progress
        self._out.flush()

    def finish(self) -> None:
        """Terminate the progress display."""
        self._out.write("\n\n")
        self._out.flush()


def render_pull(events: Iterable[ProgressEvent], out: TextIO) -> None:
    """Render a complete sequence of events, raising ``PullError`` on an error record."""
    renderer = PullProgressRenderer(out)
    try:
        for event in events:
            if event.error:
                raise PullError(event.error)
            renderer.feed(event)
    finally:
        # Close the display on failure too, so the error starts on its own line.
        renderer.finish()


def pull_image(
    runtime: ContainerRuntime,
    ref: str,
    *,
    out: TextIO,
    policy: PullPolicy = PullPolicy.ALWAYS,
) -> None:
    """Make sure *ref* is available locally, rendering pull progress to *out*.

    No retries: an error record or a transport failure raises ``PullError``.
    """
    if policy != PullPolicy.ALWAYS and runtime.has_image(ref):
        logger.info("Image %s already present, not pulling (policy=%s)", ref, policy)
        return
    if policy == PullPolicy.NEVER:
        raise PullError(f"Image {ref} is not present locally and pull policy is '{policy}'")

    render_pull(runtime.pull_image(ref), out)
