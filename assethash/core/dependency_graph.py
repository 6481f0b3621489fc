"""Dependency relation between documents, with processing-unit discovery.

The graph starts with every indexed document and shrinks to empty as units
are finalized. A unit is only handed out once everything its members
depend on has already been removed, so:

- No document is hashed before the documents it references.
- Documents that reference each other, directly or through others, form a
  single unit and share one checksum.
- A unit never absorbs a document that is merely reachable from it without
  referencing back into it.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from pathlib import Path

from assethash.models.artifacts import ProcessingUnit


class DependencyGraph:
    """Owned, shrinking dependency relation over document paths.

    Parameters
    ----------
    edges:
        document -> documents it references. Targets that are not keys
        (plain assets, unindexed files) are dropped: they never block.
    """

    def __init__(self, edges: Mapping[Path, Iterable[Path]]) -> None:
        nodes = set(edges)
        # Forward edges: document -> documents it references
        self._dependencies: dict[Path, set[Path]] = {
            node: {target for target in targets if target in nodes}
            for node, targets in edges.items()
        }
        # Dependency sets start as self + direct dependencies and are
        # expanded to their closure on demand.
        self._dependency_sets: dict[Path, set[Path]] = {
            node: {node} | targets for node, targets in self._dependencies.items()
        }

    def __len__(self) -> int:
        return len(self._dependencies)

    def __contains__(self, node: object) -> bool:
        return node in self._dependencies

    def __bool__(self) -> bool:
        return bool(self._dependencies)

    # ------------------------------------------------------------------
    # Query methods
    # ------------------------------------------------------------------

    @property
    def nodes(self) -> list[Path]:
        """Remaining documents in canonical path order."""
        return sorted(self._dependencies)

    def is_self_referencing(self, node: Path) -> bool:
        return node in self._dependencies.get(node, ())

    def dependency_set(self, node: Path) -> frozenset[Path]:
        """Return ``node`` plus everything it depends on, transitively.

        Closure expansion: union in the dependency sets of the current
        members until the set stops growing. The expanded set is kept, so
        later calls only pay for the fixed-point check.
        """
        members = self._dependency_sets[node]
        while True:
            expanded = set(members)
            for member in members:
                expanded |= self._dependency_sets[member]
            if len(expanded) == len(members):
                break
            members = expanded
        self._dependency_sets[node] = members
        return frozenset(members)

    # ------------------------------------------------------------------
    # Unit discovery
    # ------------------------------------------------------------------

    def next_unit(self) -> ProcessingUnit:
        """Return the smallest closed unit, ties broken by path order.

        A document whose closed dependency set is minimal belongs to a
        set every member of which has the same closure, i.e. a closed
        cycle (or a single document) with nothing left to wait for.
        """
        if not self._dependencies:
            raise LookupError("No documents left in the dependency graph")
        nodes = self.nodes
        best = self.dependency_set(nodes[0])
        for node in nodes[1:]:
            if len(best) == 1:
                break  # a leaf; nothing can be smaller
            members = self.dependency_set(node)
            if len(members) < len(best):
                best = members
        return self._make_unit(best)

    def ready_units(self) -> list[ProcessingUnit]:
        """Return every unit that can be finalized now.

        These are the closed sets no other remaining document is part of
        the closure of, save their own members. They share no documents
        and no dependencies, so they may be finalized in any order.
        """
        closures = {node: self.dependency_set(node) for node in self.nodes}
        units: list[ProcessingUnit] = []
        seen: set[Path] = set()
        for node, members in closures.items():
            if node in seen:
                continue
            if all(closures[member] == members for member in members):
                seen |= members
                units.append(self._make_unit(members))
        return units

    def _make_unit(self, members: Iterable[Path]) -> ProcessingUnit:
        ordered = tuple(sorted(members))
        return ProcessingUnit(
            members=ordered,
            self_referencing=len(ordered) == 1 and self.is_self_referencing(ordered[0]),
        )

    # ------------------------------------------------------------------
    # Removal
    # ------------------------------------------------------------------

    def remove(self, unit: ProcessingUnit) -> None:
        """Drop a finalized unit from the relation and every dependency set."""
        members = set(unit.members)
        for member in members:
            self._dependencies.pop(member, None)
            self._dependency_sets.pop(member, None)
        for node in self._dependencies:
            self._dependencies[node] -= members
            self._dependency_sets[node] -= members
