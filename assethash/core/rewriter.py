"""Embeds checksums after references as query parameters.

``/site.css`` becomes ``/site.css?v=ID`` and ``/site.css?x=1`` becomes
``/site.css?v=ID&x=1``.
"""

from __future__ import annotations

from collections.abc import Iterable

from assethash.models.artifacts import Insertion


def string_splice(
    target: str, index: int, delete_count: int = 0, insertion: str = ""
) -> str:
    """Insert ``insertion`` at ``index``, replacing ``delete_count`` characters."""
    return target[:index] + insertion + target[index + delete_count :]


def format_insertion(param: str, checksum: str, has_query: bool) -> tuple[int, str]:
    """Return ``(skip, text)``: how far past the reference end to insert, and what."""
    if has_query:
        return 1, f"{param}={checksum}&"
    return 0, f"?{param}={checksum}"


def rewrite(content: str, insertions: Iterable[Insertion], param: str = "v") -> str:
    """Apply every insertion to ``content``.

    Insertions are sorted by position and applied left to right; ``offset``
    accumulates the characters inserted so far, so every later ``end``
    (taken from the unmodified content) is shifted before splicing. The
    result does not depend on the order of ``insertions``.
    """
    result = content
    offset = 0
    for insertion in sorted(insertions, key=lambda i: i.end):
        skip, text = format_insertion(param, insertion.checksum, insertion.has_query)
        result = string_splice(result, insertion.end + offset + skip, 0, text)
        offset += len(text)
    return result
