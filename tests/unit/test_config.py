"""
Unit tests for configuration management.
"""

import os
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from fibscope.config import AnalysisConfig, CacheConfig, Config


class TestConfig:
    """Test configuration loading and validation."""

    def test_config_loads_defaults(self) -> None:
        """Test that configuration loads with default values."""
        config = Config()

        assert config.analysis.tolerance == 0.03
        assert config.analysis.window_size == 3
        assert config.analysis.use_cache is True
        assert config.analysis.prefer_parallel is True
        assert config.analysis.golden_ratio == pytest.approx(1.618034, abs=1e-6)
        assert config.cache.max_entries == 256
        assert config.cache.ttl_seconds == 5.0
        assert config.cache.fingerprint_window == 100
        assert config.backend.max_workers == 4
        assert config.logging.level == "WARNING"

    def test_config_loads_from_env(self, mock_env_vars: dict) -> None:
        """Test that configuration loads from environment variables."""
        config = Config.load_from_env()

        assert config.analysis.tolerance == 0.05
        assert config.analysis.window_size == 5
        assert config.analysis.use_cache is False
        assert config.cache.max_entries == 16
        assert config.cache.ttl_seconds == 2.5
        assert config.backend.max_workers == 2
        assert config.backend.chunk_size == 32
        assert config.logging.level == "DEBUG"

    def test_config_loads_env_file(self, temp_dir) -> None:
        """Test that an explicit .env file is read."""
        env_file = temp_dir / "test.env"
        env_file.write_text("FIBSCOPE_WINDOW_SIZE=7\n")

        with patch.dict(os.environ, {}, clear=False):
            os.environ.pop("FIBSCOPE_WINDOW_SIZE", None)
            config = Config.load_from_env(str(env_file))

        assert config.analysis.window_size == 7

    @pytest.mark.parametrize("value,expected", [
        ("true", True), ("1", True), ("yes", True), ("false", False), ("0", False)
    ])
    def test_boolean_flags(self, value, expected) -> None:
        with patch.dict(os.environ, {"FIBSCOPE_PREFER_PARALLEL": value}, clear=False):
            config = Config.load_from_env()

        assert config.analysis.prefer_parallel is expected

    def test_config_validation(self) -> None:
        """Test configuration validation."""
        with pytest.raises(ValidationError):
            AnalysisConfig(tolerance=0.0)

        with pytest.raises(ValidationError):
            AnalysisConfig(window_size=2)

        with pytest.raises(ValidationError):
            CacheConfig(max_entries=0)

    def test_invalid_env_value(self) -> None:
        with patch.dict(os.environ, {"FIBSCOPE_TOLERANCE": "2.0"}, clear=False):
            with pytest.raises(ValidationError):
                Config.load_from_env()

    def test_analysis_config_is_frozen(self) -> None:
        with pytest.raises(ValidationError):
            AnalysisConfig().tolerance = 0.1
