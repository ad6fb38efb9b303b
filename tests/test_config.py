"""
Tests for the configuration module.
"""

from datetime import timedelta
from pathlib import Path

import pytest

from actionlens.config import Config, get_config, get_default_data_dir, set_config


class TestConfig:
    """Tests for the Config class."""

    def test_default_config(self):
        """Test default configuration values."""
        config = Config()

        assert config.log_level == "INFO"
        assert config.next_action_window_hours == 24
        assert config.next_action_window == timedelta(hours=24)
        assert config.referral_action_type == "REFER_USER"

    def test_config_with_custom_values(self, temp_data_dir):
        """Test configuration with custom values."""
        config = Config(
            data_dir=temp_data_dir,
            log_level="DEBUG",
            next_action_window_hours=1.5,
        )

        assert config.data_dir == temp_data_dir
        assert config.next_action_window == timedelta(minutes=90)

    def test_derived_paths(self, temp_data_dir):
        """Test file paths are derived from data_dir."""
        config = Config(data_dir=temp_data_dir)

        assert config.database_path == temp_data_dir / "actions.duckdb"
        assert config.log_path == temp_data_dir / "actionlens.log"
        assert config.actions_file == temp_data_dir / "actions.json"
        assert config.users_file == temp_data_dir / "users.json"

    def test_ensure_data_dir(self, temp_data_dir):
        """Test data directory creation."""
        subdir = temp_data_dir / "nested" / "subdir"
        config = Config(data_dir=subdir)

        assert not subdir.exists()
        config.ensure_data_dir()
        assert subdir.exists()

    def test_config_from_env(self, temp_data_dir, monkeypatch):
        """Test configuration from environment variables."""
        monkeypatch.setenv("ACTIONLENS_DATA_DIR", str(temp_data_dir))
        monkeypatch.setenv("ACTIONLENS_LOG_LEVEL", "WARNING")
        monkeypatch.setenv("ACTIONLENS_NEXT_ACTION_WINDOW_HOURS", "12")
        monkeypatch.setenv("ACTIONLENS_REFERRAL_ACTION_TYPE", "INVITE")

        config = Config.from_env()

        assert config.data_dir == temp_data_dir
        assert config.log_level == "WARNING"
        assert config.next_action_window == timedelta(hours=12)
        assert config.referral_action_type == "INVITE"

    def test_negative_window_rejected(self):
        """Test the window must not be negative."""
        with pytest.raises(ValueError):
            Config(next_action_window_hours=-1)


class TestGlobalConfig:
    """Tests for global configuration management."""

    def test_get_set_config(self, temp_data_dir):
        """Test getting and setting global config."""
        config = Config(data_dir=temp_data_dir)
        set_config(config)

        assert get_config() is config

    def test_default_data_dir(self):
        """Test default data directory is under the home directory."""
        data_dir = get_default_data_dir()

        assert isinstance(data_dir, Path)
        assert data_dir == Path.home() / ".actionlens"
