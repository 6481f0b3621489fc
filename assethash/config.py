"""Process-wide defaults, env-driven.

Centralized settings using pydantic-settings. Reads from a .env file and
ASSETHASH_* environment variables. Command-line flags that are not given
fall back to these values.
"""

from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict

from assethash.models.options import Algorithm, MissingPolicy


class AssetHashSettings(BaseSettings):
    """Defaults for hashing runs, with environment variable overrides.

    Examples
    --------
    Override via environment::

        export ASSETHASH_PARAM=rev
        export ASSETHASH_MAX_LENGTH=10
        export ASSETHASH_ON_MISSING=warn

    Or via .env file::

        ASSETHASH_PATH_PREFIX=/blog/
        ASSETHASH_LOG_LEVEL=DEBUG
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="ASSETHASH_",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = "WARNING"

    # Run defaults
    path_prefix: str = "/"
    algorithm: Algorithm = "SHA-256"
    max_length: int | None = None
    param: str = "v"
    on_missing: MissingPolicy = MissingPolicy.IGNORE


# Module-level singleton: import as `from assethash.config import settings`
settings = AssetHashSettings()
