"""
Tests for the core configuration module.
"""
import pytest
import os
from unittest.mock import patch
from pydantic import ValidationError

from core.config import Settings, settings


class TestSettings:
    """Test the Settings class."""

    def test_default_values(self):
        """Test that default values are set correctly."""
        with patch.dict(os.environ, {}, clear=True):
            test_settings = Settings()

            assert test_settings.debug is False
            assert test_settings.log_level == "INFO"
            assert test_settings.log_format == "detailed"
            assert test_settings.block_id_strategy == "sequential"
            assert test_settings.block_id_prefix == "b"
            assert test_settings.min_fork_paths == 2
            assert test_settings.strict_canonicalization is False

    def test_environment_variable_override(self):
        """Test that environment variables override defaults."""
        test_env = {
            "DEBUG": "true",
            "LOG_LEVEL": "DEBUG",
            "BLOCK_ID_STRATEGY": "uuid",
            "MIN_FORK_PATHS": "3",
            "STRICT_CANONICALIZATION": "1",
        }

        with patch.dict(os.environ, test_env, clear=True):
            test_settings = Settings()

            assert test_settings.debug is True
            assert test_settings.log_level == "DEBUG"
            assert test_settings.block_id_strategy == "uuid"
            assert test_settings.min_fork_paths == 3
            assert test_settings.strict_canonicalization is True

    def test_settings_instance(self):
        """Test that the global settings instance exists."""
        assert isinstance(settings, Settings)
        assert hasattr(settings, 'block_id_strategy')
        assert hasattr(settings, 'min_fork_paths')

    def test_field_descriptions(self):
        """Test that field descriptions are set."""
        assert Settings.model_fields['block_id_strategy'].description == (
            "Identifier strategy used by the graph linker (sequential, uuid)"
        )
        assert Settings.model_fields['strict_canonicalization'].description == (
            "Raise on unknown operations instead of emitting a warning"
        )

    def test_case_insensitive_config(self):
        """Test that lowercase environment variables are read."""
        with patch.dict(os.environ, {"block_id_prefix": "node-"}, clear=True):
            test_settings = Settings()
            assert test_settings.block_id_prefix == "node-"

    def test_invalid_boolean_environment_variable(self):
        """Test handling of invalid boolean environment variables."""
        with patch.dict(os.environ, {"DEBUG": "invalid_boolean"}, clear=True):
            with pytest.raises(ValidationError):
                Settings()

    def test_invalid_integer_environment_variable(self):
        """Test handling of invalid integer environment variables."""
        with patch.dict(os.environ, {"MIN_FORK_PATHS": "two"}, clear=True):
            with pytest.raises(ValidationError):
                Settings()

    def test_constructor_arguments(self):
        """Test that keyword arguments override the environment."""
        with patch.dict(os.environ, {"BLOCK_ID_PREFIX": "env"}, clear=True):
            test_settings = Settings(block_id_prefix="kw")
            assert test_settings.block_id_prefix == "kw"
