"""Run result models."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict

from assethash.models.artifacts import MissingReference


class UnitResult(BaseModel):
    """One finalized processing unit and the identifier its members share."""

    model_config = ConfigDict(frozen=True)

    members: tuple[Path, ...]
    checksum: str
    self_referencing: bool = False

    @property
    def is_cycle(self) -> bool:
        return len(self.members) > 1 or self.self_referencing


class HashReport(BaseModel):
    """Everything a hashing pass decided, in finalization order."""

    model_config = ConfigDict(frozen=True)

    directory: Path
    checksums: dict[Path, str] = {}
    units: list[UnitResult] = []
    written: list[Path] = []
    missing: list[MissingReference] = []
    dry_run: bool = False

    @property
    def document_count(self) -> int:
        return len(self.checksums)

    @property
    def cycle_count(self) -> int:
        return sum(1 for unit in self.units if unit.is_cycle)
