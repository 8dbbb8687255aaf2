"""Image pull progress event model."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class ProgressEvent(BaseModel):
    """One decoded record of the image pull stream.

    Docker emits records such as::

        {"status": "Downloading", "progressDetail": {...}, "progress": "[==>  ] 1MB/5MB", "id": "a1b2"}

    Only ``status`` and ``progress`` drive rendering; ``error`` marks a
    failed pull.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    status: str = ""
    progress: str = ""
    id: str | None = None
    error: str | None = None
    error_detail: dict | None = Field(default=None, alias="errorDetail")
