"""Shared test fixtures for assethash."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from assethash.core.hasher import compute_checksum
from assethash.core.path_resolver import canonical_path
from assethash.models.options import HashOptions


@pytest.fixture
def make_site(tmp_path: Path) -> Callable[..., Path]:
    """Factory fixture: write ``{relative path: content}`` into a build dir."""

    def _factory(files: dict[str, str], root: str = "_site") -> Path:
        base = tmp_path / root
        base.mkdir(parents=True, exist_ok=True)
        for relative, content in files.items():
            target = base / relative
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding="utf-8")
        return base

    return _factory


@pytest.fixture
def make_options() -> Callable[..., HashOptions]:
    """Factory fixture: build HashOptions with test defaults."""

    def _factory(directory: Path, **overrides: Any) -> HashOptions:
        defaults: dict[str, Any] = {"directory": directory}
        defaults.update(overrides)
        return HashOptions(**defaults)

    return _factory


@pytest.fixture
def checksum() -> Callable[[str], str]:
    """Default SHA-256 identifier of a UTF-8 string."""

    def _checksum(text: str) -> str:
        return compute_checksum(text.encode("utf-8"))

    return _checksum


@pytest.fixture
def read() -> Callable[[Path, str], str]:
    """Read a file from a build dir as text, without newline translation."""

    def _read(base: Path, relative: str) -> str:
        return (base / relative).read_text(encoding="utf-8")

    return _read


@pytest.fixture
def key() -> Callable[[Path, str], Path]:
    """Canonical path of a file in a build dir, as used in reports."""

    def _key(base: Path, relative: str) -> Path:
        return canonical_path(base / relative)

    return _key
