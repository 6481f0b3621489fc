"""Tests for env-driven settings."""

from __future__ import annotations

import pytest

from assethash.config import AssetHashSettings
from assethash.models.options import MissingPolicy


class TestAssetHashSettings:
    def test_defaults(self):
        settings = AssetHashSettings()
        assert settings.log_level == "WARNING"
        assert settings.path_prefix == "/"
        assert settings.algorithm == "SHA-256"
        assert settings.max_length is None
        assert settings.param == "v"
        assert settings.on_missing is MissingPolicy.IGNORE

    def test_env_override(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("ASSETHASH_PARAM", "rev")
        monkeypatch.setenv("ASSETHASH_MAX_LENGTH", "10")
        monkeypatch.setenv("ASSETHASH_ON_MISSING", "error")
        settings = AssetHashSettings()
        assert settings.param == "rev"
        assert settings.max_length == 10
        assert settings.on_missing is MissingPolicy.ERROR

    def test_explicit_values(self):
        settings = AssetHashSettings(algorithm="SHA-512", log_level="DEBUG")
        assert settings.algorithm == "SHA-512"
        assert settings.log_level == "DEBUG"
