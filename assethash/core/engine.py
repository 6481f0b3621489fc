"""Hashing engine: indexes documents, orders them, and embeds checksums.

A run goes through these steps:

1. Index every document and asset matching the configured patterns.
2. Scan each document for asset references and resolve them. Missing
   references are reported according to ``on_missing`` before anything
   is hashed, so the ``error`` policy aborts with no file touched.
3. Build the dependency relation between documents and repeatedly take
   every unit that is ready (a single document, or a set of documents
   that reference each other) and finalize it:

   - Phase A: embed the checksums of everything outside the unit.
   - Hash the concatenated Phase-A content of all members, in path
     order, into one checksum shared by every member.
   - Phase B: embed that shared checksum in intra-unit references.

4. Write every document whose content changed.

Writes only start after the last unit is finalized, so no failure during
hashing can leave a partially rewritten directory behind.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any

import aiofiles

from assethash.core.dependency_graph import DependencyGraph
from assethash.core.hasher import ChecksumCache, ChecksumService
from assethash.core.path_resolver import PathResolver
from assethash.core.rewriter import rewrite
from assethash.core.scanner import build_asset_pattern, detect_assets
from assethash.models.artifacts import (
    Insertion,
    MissingReference,
    ProcessingUnit,
    Reference,
    ResolveStatus,
)
from assethash.models.options import HashOptions, MissingPolicy, load_options
from assethash.models.reports import HashReport, UnitResult

logger = logging.getLogger(__name__)


class MissingReferenceError(RuntimeError):
    """Raised under the ``error`` policy when a reference cannot be resolved.

    Always raised before any document is written.
    """

    def __init__(self, missing: list[MissingReference]) -> None:
        self.missing = list(missing)
        details = "; ".join(reference.describe() for reference in self.missing)
        super().__init__(
            f"Cannot resolve {len(self.missing)} reference(s): {details}"
        )


class HashEngine:
    """Runs one stateless hashing pass over a directory.

    Parameters
    ----------
    options:
        Validated run options.
    """

    def __init__(self, options: HashOptions) -> None:
        self.options = options
        self.checksums = ChecksumService(
            algorithm=options.algorithm,
            max_length=options.max_length,
            compute=options.compute_checksum,
        )
        self._pattern = build_asset_pattern(options.extensions)
        self._reset()

    def _reset(self) -> None:
        self.cache = ChecksumCache(self.checksums.digest_file)
        self._contents: dict[Path, str] = {}
        self._references: dict[Path, list[Reference]] = {}
        self._final: dict[Path, str] = {}
        self._missing: list[MissingReference] = []

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    async def run(self, *, dry_run: bool = False) -> HashReport:
        """Hash and rewrite every document. Returns what was decided."""
        self._reset()
        opts = self.options
        documents = PathResolver.find(opts.directory, opts.include, opts.exclude)
        assets = PathResolver.find(
            opts.directory, opts.include_assets, opts.exclude_assets
        )
        logger.info(
            "Hashing %s: %d documents, %d assets",
            opts.directory,
            len(documents),
            len(assets),
        )

        await self._index(documents)
        resolver = PathResolver(
            opts.directory,
            set(self._contents) | set(assets),
            path_prefix=opts.path_prefix,
        )
        for path in sorted(self._contents):
            self._references[path] = self._scan(path, resolver)
        self._report_missing(self._missing)

        graph = DependencyGraph(
            {
                path: {reference.path for reference in references}
                for path, references in self._references.items()
            }
        )
        units: list[UnitResult] = []
        while graph:
            ready = graph.ready_units()
            results = await asyncio.gather(*(self._finalize(unit) for unit in ready))
            for unit, result in zip(ready, results):
                graph.remove(unit)
                units.append(result)

        written = [] if dry_run else await self._persist()
        logger.info(
            "Finalized %d documents in %d units, wrote %d",
            len(self._final),
            len(units),
            len(written),
        )
        return HashReport(
            directory=opts.directory,
            checksums={m: result.checksum for result in units for m in result.members},
            units=units,
            written=written,
            missing=list(self._missing),
            dry_run=dry_run,
        )

    # ------------------------------------------------------------------
    # Indexing and scanning
    # ------------------------------------------------------------------

    async def _index(self, documents: list[Path]) -> None:
        contents = await asyncio.gather(*(self._read_document(p) for p in documents))
        for path, content in zip(documents, contents):
            if content is not None:
                self._contents[path] = content
        logger.debug("Indexed %d readable documents", len(self._contents))

    @staticmethod
    async def _read_document(path: Path) -> str | None:
        try:
            async with aiofiles.open(path, "r", encoding="utf-8", newline="") as f:
                return await f.read()
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Skipping unreadable document %s: %s", path, exc)
            return None

    def _scan(self, path: Path, resolver: PathResolver) -> list[Reference]:
        content = self._contents[path]
        references: list[Reference] = []
        for match in detect_assets(content, self._pattern):
            resolution = resolver.locate(match.text, path)
            if resolution.status is ResolveStatus.MISSING:
                self._missing.append(
                    MissingReference(source=path, text=match.text, path=resolution.path)
                )
                continue
            if resolution.status is not ResolveStatus.RESOLVED or resolution.path is None:
                continue
            references.append(
                Reference(
                    text=match.text,
                    path=resolution.path,
                    start=match.start,
                    end=match.end,
                    has_query=content[match.end : match.end + 1] == "?",
                )
            )
        return references

    def _report_missing(self, missing: list[MissingReference]) -> None:
        if not missing:
            return
        policy = self.options.on_missing
        if policy is MissingPolicy.ERROR:
            raise MissingReferenceError(missing)
        for reference in missing:
            if policy is MissingPolicy.WARN:
                logger.warning("Unresolved reference %s", reference.describe())
            else:
                logger.debug("Ignoring unresolved reference %s", reference.describe())

    # ------------------------------------------------------------------
    # Finalizing units
    # ------------------------------------------------------------------

    async def _finalize(self, unit: ProcessingUnit) -> UnitResult:
        """Compute the shared checksum and final content of every member."""
        members = set(unit.members)
        external = sorted(
            {
                reference.path
                for member in unit.members
                for reference in self._references[member]
                if reference.path not in members
            }
        )
        fetched = await asyncio.gather(*(self.cache.get(path) for path in external))
        external_checksums = dict(zip(external, fetched))

        unreadable = [
            MissingReference(
                source=member, text=reference.text, path=reference.path, reason="unreadable"
            )
            for member in unit.members
            for reference in self._references[member]
            if reference.path in external_checksums
            and external_checksums[reference.path] is None
        ]
        if unreadable:
            self._missing.extend(unreadable)
            self._report_missing(unreadable)

        # Phase A: external references only.
        phase_a: dict[Path, list[Insertion]] = {}
        for member in unit.members:
            phase_a[member] = [
                Insertion(
                    end=reference.end,
                    checksum=external_checksums[reference.path],
                    has_query=reference.has_query,
                )
                for reference in self._references[member]
                if external_checksums.get(reference.path) is not None
            ]
        param = self.options.param
        combined = "".join(
            rewrite(self._contents[member], phase_a[member], param)
            for member in unit.members
        )
        checksum = await self.checksums.digest(combined.encode("utf-8"))

        # Phase B: intra-unit references get the shared checksum.
        for member in unit.members:
            phase_b = [
                Insertion(end=reference.end, checksum=checksum, has_query=reference.has_query)
                for reference in self._references[member]
                if reference.path in members
            ]
            self._final[member] = rewrite(
                self._contents[member], phase_a[member] + phase_b, param
            )
            self.cache.forget(member)
            self.cache.put(member, checksum)

        if unit.is_cycle:
            logger.debug(
                "Finalized cycle of %d (%s): %s",
                unit.size,
                ", ".join(str(m) for m in unit.members),
                checksum,
            )
        else:
            logger.debug("Finalized %s: %s", unit.members[0], checksum)
        return UnitResult(
            members=unit.members,
            checksum=checksum,
            self_referencing=unit.self_referencing,
        )

    # ------------------------------------------------------------------
    # Persisting
    # ------------------------------------------------------------------

    async def _persist(self) -> list[Path]:
        changed = sorted(
            path for path, content in self._final.items()
            if content != self._contents[path]
        )
        await asyncio.gather(*(self._write_document(path) for path in changed))
        for path in sorted(set(self._final) - set(changed)):
            logger.debug("Unchanged, not writing %s", path)
        return changed

    async def _write_document(self, path: Path) -> None:
        async with aiofiles.open(path, "w", encoding="utf-8", newline="") as f:
            await f.write(self._final[path])
        logger.info("Rewrote %s", path)


async def asset_hash(
    options: HashOptions | None = None, *, dry_run: bool = False, **values: Any
) -> HashReport:
    """Run a hashing pass. Pass ``options`` or the option fields as keywords."""
    if options is None:
        options = load_options(**values)
    return await HashEngine(options).run(dry_run=dry_run)


def asset_hash_sync(
    options: HashOptions | None = None, *, dry_run: bool = False, **values: Any
) -> HashReport:
    """Blocking wrapper around ``asset_hash`` for synchronous callers."""
    return asyncio.run(asset_hash(options, dry_run=dry_run, **values))
