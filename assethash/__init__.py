"""assethash: content-derived cache-busting identifiers for build output.

Embeds a checksum into every reference to a CSS, JS or HTML file, such that
a file's identifier changes exactly when its own content, or the identifier
of anything it references, changes:
  - Documents are hashed after rewriting their own references
  - Documents that reference each other share one identifier
  - References with an existing query string are merged, not replaced
  - Every run is a full, stateless pass; nothing is written on abort
"""

__version__ = "0.1.0"
__description__ = "Content-derived cache-busting identifiers for build output"

from assethash.core.engine import (
    HashEngine,
    MissingReferenceError,
    asset_hash,
    asset_hash_sync,
)
from assethash.models.options import (
    ConfigurationError,
    HashOptions,
    MissingPolicy,
    load_options,
)
from assethash.models.reports import HashReport

__all__ = [
    "ConfigurationError",
    "HashEngine",
    "HashOptions",
    "HashReport",
    "MissingPolicy",
    "MissingReferenceError",
    "asset_hash",
    "asset_hash_sync",
    "load_options",
    "__version__",
]
