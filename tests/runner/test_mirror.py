"""Unit tests for registry mirror stripping."""

from __future__ import annotations

from localci.runner.execution.mirror import strip_mirror

MIRRORS = ["registry.example.com", "mirror.local"]


def test_first_prefix_stripped() -> None:
    assert strip_mirror("registry.example.com/foo:bar", MIRRORS) == "foo:bar"


def test_second_prefix_stripped() -> None:
    assert strip_mirror("mirror.local/library/alpine:3", MIRRORS) == "library/alpine:3"


def test_no_match_unchanged() -> None:
    assert strip_mirror("docker.io/library/alpine", MIRRORS) == "docker.io/library/alpine"


def test_no_mirrors() -> None:
    assert strip_mirror("alpine", []) == "alpine"


def test_prefix_requires_separator() -> None:
    assert strip_mirror("mirror.localhost/foo", MIRRORS) == "mirror.localhost/foo"


def test_first_match_wins() -> None:
    mirrors = ["reg.io", "reg.io/proxy"]

    assert strip_mirror("reg.io/proxy/alpine", mirrors) == "proxy/alpine"


def test_trailing_slash_in_config() -> None:
    assert strip_mirror("mirror.local/alpine", ["mirror.local/"]) == "alpine"


def test_empty_prefix_ignored() -> None:
    assert strip_mirror("/abs", [""]) == "/abs"
