"""Reference and processing-unit models (all frozen)."""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict


class AssetMatch(BaseModel):
    """A path-like substring found by the scanner.

    ``start`` and ``end`` are string offsets into the scanned content;
    ``end`` is exclusive, so ``content[start:end] == text``.
    """

    model_config = ConfigDict(frozen=True)

    start: int
    end: int
    text: str


class ResolveStatus(str, Enum):
    """Outcome of resolving a raw reference against the indexed artifacts."""

    RESOLVED = "resolved"
    MISSING = "missing"  # looked like a reference, but nothing is indexed there
    UNRECOGNIZED = "unrecognized"  # not a reference shape we handle at all


class Resolution(BaseModel):
    """Classification of a single raw reference."""

    model_config = ConfigDict(frozen=True)

    status: ResolveStatus
    path: Path | None = None


class Reference(BaseModel):
    """A resolved reference inside a document.

    ``path`` is the canonical path of the referenced artifact and
    ``has_query`` records whether a ``?`` directly follows the match.
    """

    model_config = ConfigDict(frozen=True)

    text: str
    path: Path
    start: int
    end: int
    has_query: bool = False


class Insertion(BaseModel):
    """A request to embed a checksum after the reference ending at ``end``."""

    model_config = ConfigDict(frozen=True)

    end: int
    checksum: str
    has_query: bool = False


class MissingReference(BaseModel):
    """A reference that could not be given an identifier."""

    model_config = ConfigDict(frozen=True)

    source: Path  # the document the reference occurs in
    text: str
    path: Path | None = None
    reason: str = "missing"  # "missing" or "unreadable"

    def describe(self) -> str:
        """Human-readable one-liner for warnings and error messages."""
        return f"{self.text!r} in {self.source} ({self.reason})"


class ProcessingUnit(BaseModel):
    """A minimal, closed set of documents that are finalized together.

    Members are kept in sorted order so the combined checksum input is
    reproducible.
    """

    model_config = ConfigDict(frozen=True)

    members: tuple[Path, ...]
    self_referencing: bool = False

    @property
    def size(self) -> int:
        return len(self.members)

    @property
    def is_cycle(self) -> bool:
        """True when the members reference each other (or one references itself)."""
        return self.size > 1 or self.self_referencing

    def __contains__(self, path: object) -> bool:
        return path in self.members
