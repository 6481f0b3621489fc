"""Checksum helpers for cache-busting identifiers.

Identifiers are the base64 encoding of a SHA-family digest, optionally
truncated. Truncation gives shorter query strings at the cost of collision
resistance, so ``max_length`` should not be set too low.
"""

from __future__ import annotations

import asyncio
import base64
import hashlib
import inspect
import logging
from collections.abc import Awaitable, Callable
from pathlib import Path

import aiofiles

from assethash.models.options import Algorithm, ChecksumFunction

logger = logging.getLogger(__name__)

# Names accepted by the options model, mapped to hashlib constructors.
HASHLIB_NAMES: dict[str, str] = {
    "SHA-1": "sha1",
    "SHA-256": "sha256",
    "SHA-384": "sha384",
    "SHA-512": "sha512",
}


def compute_checksum(data: bytes, algorithm: Algorithm = "SHA-256") -> str:
    """Return the base64-encoded digest of raw bytes."""
    digest = hashlib.new(HASHLIB_NAMES[algorithm], data).digest()
    return base64.b64encode(digest).decode("ascii")


def truncate_checksum(checksum: str, max_length: int | None) -> str:
    """Cut a checksum down to ``max_length`` characters (no-op when unset)."""
    if max_length is None or max_length <= 0:
        return checksum
    return checksum[:max_length]


class ChecksumService:
    """Deterministic ``bytes -> identifier`` with optional truncation.

    Parameters
    ----------
    algorithm:
        SHA variant to use. Ignored when ``compute`` is given.
    max_length:
        Truncate identifiers to this many characters. Applies to
        custom ``compute`` functions as well.
    compute:
        Optional caller-supplied digest function, sync or async.
    """

    def __init__(
        self,
        algorithm: Algorithm = "SHA-256",
        max_length: int | None = None,
        compute: ChecksumFunction | None = None,
    ) -> None:
        self.algorithm = algorithm
        self.max_length = max_length
        self._compute = compute

    async def digest(self, data: bytes) -> str:
        """Return the identifier for ``data``."""
        if self._compute is None:
            checksum = compute_checksum(data, self.algorithm)
        else:
            result = self._compute(data)
            if inspect.isawaitable(result):
                result = await result
            checksum = str(result)
        return truncate_checksum(checksum, self.max_length)

    async def digest_file(self, path: Path) -> str | None:
        """Read and digest a file; ``None`` if it cannot be read."""
        try:
            async with aiofiles.open(path, "rb") as f:
                data = await f.read()
        except OSError as exc:
            logger.debug("Cannot read %s for hashing: %s", path, exc)
            return None
        return await self.digest(data)


class ChecksumCache:
    """Path-keyed checksum cache with single-flight loading.

    At most one load per path is in flight; concurrent callers await the
    same task. Settled values are kept until ``forget`` is called.

    Parameters
    ----------
    load:
        Coroutine function computing the checksum for a path, or ``None``
        when the path cannot be hashed.
    """

    def __init__(self, load: Callable[[Path], Awaitable[str | None]]) -> None:
        self._load = load
        self._values: dict[Path, str | None] = {}
        self._pending: dict[Path, asyncio.Task[str | None]] = {}

    async def get(self, path: Path) -> str | None:
        """Return the checksum for ``path``, loading it at most once."""
        if path in self._values:
            logger.debug("Checksum cache hit: %s", path)
            return self._values[path]
        task = self._pending.get(path)
        if task is None:
            task = asyncio.ensure_future(self._load(path))
            self._pending[path] = task
            task.add_done_callback(lambda done, key=path: self._settle(key, done))
        # Shield so one cancelled caller does not cancel the shared load.
        return await asyncio.shield(task)

    def put(self, path: Path, checksum: str | None) -> None:
        """Record a checksum computed elsewhere, replacing any cached value."""
        self._pending.pop(path, None)
        self._values[path] = checksum

    def forget(self, path: Path) -> None:
        """Drop the cached (or in-flight) checksum for ``path``."""
        self._values.pop(path, None)
        self._pending.pop(path, None)

    def __contains__(self, path: object) -> bool:
        return path in self._values

    def _settle(self, path: Path, task: asyncio.Task[str | None]) -> None:
        # A load that was forgotten or replaced while in flight is stale.
        if self._pending.get(path) is not task:
            return
        del self._pending[path]
        if task.cancelled() or task.exception() is not None:
            return
        self._values[path] = task.result()
