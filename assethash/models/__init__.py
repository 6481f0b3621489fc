"""assethash data models: Pydantic v2, frozen (immutable)."""

from assethash.models.artifacts import (
    AssetMatch,
    Insertion,
    MissingReference,
    ProcessingUnit,
    Reference,
    Resolution,
    ResolveStatus,
)
from assethash.models.options import (
    ConfigurationError,
    HashOptions,
    MissingPolicy,
    load_options,
)
from assethash.models.reports import HashReport, UnitResult

__all__ = [
    # artifacts
    "AssetMatch",
    "Insertion",
    "MissingReference",
    "ProcessingUnit",
    "Reference",
    "Resolution",
    "ResolveStatus",
    # options
    "ConfigurationError",
    "HashOptions",
    "MissingPolicy",
    "load_options",
    # reports
    "HashReport",
    "UnitResult",
]
