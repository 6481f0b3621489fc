"""Detects asset paths in document content.

Valid URL path characters are ``[!$%(-;@-[\\]_a-z~]``. A candidate starts
with ``/``, ``./`` or ``../``, runs over URL characters, ends in a file
extension and is not touching another URL character on either side.
URLs that include a domain never match: the slashes after ``https:`` are
preceded by a URL character.
"""

from __future__ import annotations

import re

from assethash.models.artifacts import AssetMatch

URL_CHARS = r"[!$%(-;@-\[\]_a-z~]"


def build_asset_pattern(extensions: list[str] | None = None) -> re.Pattern[str]:
    """Compile the asset path pattern, optionally limited to ``extensions``."""
    extension = r"\w+" if not extensions else "(?:" + "|".join(extensions) + ")"
    return re.compile(
        rf"(?<!{URL_CHARS})"  # not preceded by a URL character
        r"\.{0,2}/"  # zero to two periods and a slash
        rf"{URL_CHARS}*"  # any number of URL characters
        rf"\.{extension}"  # the file extension
        rf"(?!{URL_CHARS})",  # not followed by a URL character
        re.ASCII,
    )


ASSET_PATH_PATTERN = build_asset_pattern()


def detect_assets(
    content: str, pattern: re.Pattern[str] = ASSET_PATH_PATTERN
) -> list[AssetMatch]:
    """Return every asset path in ``content``, left to right."""
    return [
        AssetMatch(start=match.start(), end=match.end(), text=match.group(0))
        for match in pattern.finditer(content)
    ]
