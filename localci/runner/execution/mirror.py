"""Registry mirror stripping.

Pipelines written for a CI server often reference images through a
registry mirror (``registry.example.com/library/alpine``).  Locally those
images should be pulled from their canonical location, so the configured
mirror prefix is removed before pulling.
"""

from __future__ import annotations

from collections.abc import Sequence


def strip_mirror(image: str, mirrors: Sequence[str]) -> str:
    """Remove the first configured mirror prefix that *image* starts with.

    A prefix only matches when followed by ``/``, so ``mirror.local`` does
    not match ``mirror.localhost/foo``.  No match returns *image* unchanged.
    """
    for mirror in mirrors:
        prefix = mirror.rstrip("/") + "/"
        if prefix != "/" and image.startswith(prefix):
            return image[len(prefix) :]
    return image
