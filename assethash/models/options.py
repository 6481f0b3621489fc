"""Run configuration for a hashing pass."""

from __future__ import annotations

import re
from collections.abc import Awaitable, Callable
from enum import Enum
from pathlib import Path
from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

# A caller-supplied digest function; may be sync or async.
ChecksumFunction = Callable[[bytes], Union[str, Awaitable[str]]]

Algorithm = Literal["SHA-1", "SHA-256", "SHA-384", "SHA-512"]

_PARAM_PATTERN = re.compile(r"^[\w.~-]+$", re.ASCII)
_EXTENSION_PATTERN = re.compile(r"^\w+$", re.ASCII)


class ConfigurationError(ValueError):
    """Raised when run options are invalid.

    Always raised before any file is scanned.
    """


class MissingPolicy(str, Enum):
    """What to do with a reference whose target is not indexed."""

    IGNORE = "ignore"
    WARN = "warn"
    ERROR = "error"


class HashOptions(BaseModel):
    """Options for a single hashing pass over a directory.

    Documents (``include``/``exclude``) are rewritten in place. Assets
    (``include_assets``/``exclude_assets``) are only hashed. A reference
    may point at either.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    directory: Path
    path_prefix: str = "/"
    include: list[str] = ["**/*.html"]
    exclude: list[str] = []
    include_assets: list[str] = ["**/*.{css,js}"]
    exclude_assets: list[str] = []
    algorithm: Algorithm = "SHA-256"
    # Truncated identifiers are shorter but less collision-resistant.
    max_length: int | None = None
    param: str = "v"
    compute_checksum: ChecksumFunction | None = None
    on_missing: MissingPolicy = MissingPolicy.IGNORE
    extensions: list[str] | None = None

    @field_validator("directory")
    @classmethod
    def _directory_exists(cls, value: Path) -> Path:
        if not value.exists():
            raise ValueError(f"directory {value} does not exist")
        if not value.is_dir():
            raise ValueError(f"directory {value} is not a directory")
        return value

    @field_validator("path_prefix")
    @classmethod
    def _normalize_prefix(cls, value: str) -> str:
        if not value.startswith("/"):
            value = f"/{value}"
        if not value.endswith("/"):
            value = f"{value}/"
        return value

    @field_validator("include", "include_assets")
    @classmethod
    def _patterns_present(cls, value: list[str]) -> list[str]:
        if not value or any(not pattern.strip() for pattern in value):
            raise ValueError("include patterns must be non-empty strings")
        return value

    @field_validator("max_length")
    @classmethod
    def _positive_length(cls, value: int | None) -> int | None:
        if value is not None and value <= 0:
            raise ValueError("max_length must be positive")
        return value

    @field_validator("param")
    @classmethod
    def _url_safe_param(cls, value: str) -> str:
        if not _PARAM_PATTERN.match(value):
            raise ValueError(f"param {value!r} is not a valid query parameter name")
        return value

    @field_validator("extensions")
    @classmethod
    def _word_extensions(cls, value: list[str] | None) -> list[str] | None:
        if value is None:
            return value
        for extension in value:
            if not _EXTENSION_PATTERN.match(extension):
                raise ValueError(f"cannot match extension {extension!r}")
        return value


def load_options(**values: Any) -> HashOptions:
    """Build ``HashOptions``, reporting every problem as ``ConfigurationError``."""
    try:
        return HashOptions(**values)
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in exc.errors()
        )
        raise ConfigurationError(f"Invalid options: {problems}") from exc
