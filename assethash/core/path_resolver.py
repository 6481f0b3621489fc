"""Maps raw asset references to canonical paths of indexed files.

Rooted references (``/css/site.css``) are looked up under the processing
directory after stripping the configured path prefix. Relative references
(``./site.css``, ``../site.css``) are looked up next to the referencing
file. Anything else is not a reference we handle.

Canonical paths are absolute, normalized, and never touch the file
system after indexing: resolution only checks index membership.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable
from pathlib import Path
from urllib.parse import unquote

from assethash.models.artifacts import Resolution, ResolveStatus

logger = logging.getLogger(__name__)


def canonical_path(path: Path | str) -> Path:
    """Absolute, normalized form used as the key for every artifact."""
    return Path(os.path.normpath(os.path.abspath(path)))


class PathResolver:
    """Resolves references against a fixed set of indexed files.

    Parameters
    ----------
    directory:
        The processing root; rooted references resolve beneath it.
    files:
        Every file a reference may point at.
    path_prefix:
        Public URL prefix of ``directory``. A rooted reference must start
        with it, e.g. ``/blog/`` when the output is served from ``/blog/``.
    """

    def __init__(
        self,
        directory: Path,
        files: Iterable[Path],
        path_prefix: str = "/",
    ) -> None:
        self._directory = canonical_path(directory)
        self._path_prefix = self.normalize(path_prefix)
        self._files: frozenset[Path] = frozenset(canonical_path(f) for f in files)

    # ------------------------------------------------------------------
    # Pattern helpers
    # ------------------------------------------------------------------

    @staticmethod
    def normalize(directory: str) -> str:
        """Ensure a trailing slash."""
        return directory if directory.endswith("/") else f"{directory}/"

    @staticmethod
    def relativize(pattern: str) -> str:
        """Strip a leading ``/`` or ``./`` so the pattern is root-relative."""
        if pattern.startswith("./"):
            return pattern[2:]
        return pattern.lstrip("/")

    @staticmethod
    def expand_braces(pattern: str) -> list[str]:
        """Expand ``{a,b}`` alternatives, e.g. ``*.{css,js}`` -> two patterns."""
        start = pattern.find("{")
        if start == -1:
            return [pattern]
        depth = 0
        for end in range(start, len(pattern)):
            if pattern[end] == "{":
                depth += 1
            elif pattern[end] == "}":
                depth -= 1
                if depth == 0:
                    break
        else:
            return [pattern]  # unbalanced, treat literally

        options: list[str] = []
        depth = 0
        current = ""
        for char in pattern[start + 1 : end]:
            if char == "," and depth == 0:
                options.append(current)
                current = ""
                continue
            if char == "{":
                depth += 1
            elif char == "}":
                depth -= 1
            current += char
        options.append(current)

        head, tail = pattern[:start], pattern[end + 1 :]
        expanded: list[str] = []
        for option in options:
            expanded.extend(PathResolver.expand_braces(f"{head}{option}{tail}"))
        return expanded

    @classmethod
    def find(
        cls,
        directory: Path,
        include: Iterable[str] = ("**/*",),
        exclude: Iterable[str] | None = None,
    ) -> list[Path]:
        """Return sorted canonical paths of files matching the patterns."""
        root = canonical_path(directory)

        def _glob(patterns: Iterable[str]) -> set[Path]:
            found: set[Path] = set()
            for pattern in patterns:
                for expanded in cls.expand_braces(cls.relativize(pattern)):
                    found.update(
                        canonical_path(p) for p in root.glob(expanded) if p.is_file()
                    )
            return found

        matched = _glob(include) - _glob(exclude or [])
        logger.debug("Found %d files in %s", len(matched), root)
        return sorted(matched)

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def resolve(self, path: str, relative_to: Path) -> Path | None:
        """Return the indexed file ``path`` points at, or ``None``."""
        resolution = self.locate(path, relative_to)
        if resolution.status is not ResolveStatus.RESOLVED:
            return None
        return resolution.path

    def locate(self, path: str, relative_to: Path) -> Resolution:
        """Classify ``path`` as resolved, missing, or unrecognized."""
        result = self.resolve_any(path, relative_to)
        if result is None:
            return Resolution(status=ResolveStatus.UNRECOGNIZED)
        if result not in self._files:
            return Resolution(status=ResolveStatus.MISSING, path=result)
        return Resolution(status=ResolveStatus.RESOLVED, path=result)

    def resolve_any(self, path: str, relative_to: Path) -> Path | None:
        """Map a reference to a canonical path without checking the index."""
        path = unquote(path)
        if path.startswith("/"):
            return self._resolve_absolute(path)
        if not path.startswith("."):
            return None
        return self._resolve_relative(path, relative_to)

    def _resolve_absolute(self, path: str) -> Path | None:
        if not path.startswith(self._path_prefix):
            return None
        return canonical_path(self._directory / path[len(self._path_prefix) :])

    def _resolve_relative(self, path: str, relative_to: Path) -> Path:
        return canonical_path(canonical_path(relative_to).parent / path)
