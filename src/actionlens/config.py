"""
Configuration management for ActionLens.

Provides centralized configuration with sensible defaults and
environment variable overrides.
"""

import os
from datetime import timedelta
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field

from actionlens.models import REFER_USER


def get_default_data_dir() -> Path:
    """Get the default data directory.

    Returns:
        Path: ``~/.actionlens``.
    """
    return Path.home() / ".actionlens"


class Config(BaseModel):
    """Application configuration with sensible defaults."""

    # Data storage
    data_dir: Path = Field(default_factory=get_default_data_dir)

    # Logging
    log_level: str = Field(default="INFO")

    # Next-action correlation window (hours)
    next_action_window_hours: float = Field(default=24.0, ge=0)

    # Action type treated as a referral
    referral_action_type: str = Field(default=REFER_USER)

    @property
    def next_action_window(self) -> timedelta:
        """The default correlation window as a timedelta."""
        return timedelta(hours=self.next_action_window_hours)

    @property
    def database_path(self) -> Path:
        """Path to the DuckDB database file."""
        return self.data_dir / "actions.duckdb"

    @property
    def log_path(self) -> Path:
        """Path to the log file."""
        return self.data_dir / "actionlens.log"

    @property
    def actions_file(self) -> Path:
        """Default location of the actions JSON export."""
        return self.data_dir / "actions.json"

    @property
    def users_file(self) -> Path:
        """Default location of the users JSON export."""
        return self.data_dir / "users.json"

    def ensure_data_dir(self) -> None:
        """Create the data directory if it doesn't exist."""
        self.data_dir.mkdir(parents=True, exist_ok=True)

    @classmethod
    def from_env(cls) -> "Config":
        """Create configuration from environment variables.

        Reads configuration from environment variables with the
        ACTIONLENS_ prefix:
        - ACTIONLENS_DATA_DIR: Data directory path
        - ACTIONLENS_LOG_LEVEL: Logging level
        - ACTIONLENS_NEXT_ACTION_WINDOW_HOURS: Correlation window in hours
        - ACTIONLENS_REFERRAL_ACTION_TYPE: Action type used for referrals

        Returns:
            Config: Configuration instance with environment overrides applied.
        """
        kwargs = {}

        if data_dir := os.environ.get("ACTIONLENS_DATA_DIR"):
            kwargs["data_dir"] = Path(data_dir).expanduser()

        if log_level := os.environ.get("ACTIONLENS_LOG_LEVEL"):
            kwargs["log_level"] = log_level

        if window := os.environ.get("ACTIONLENS_NEXT_ACTION_WINDOW_HOURS"):
            kwargs["next_action_window_hours"] = float(window)

        if action_type := os.environ.get("ACTIONLENS_REFERRAL_ACTION_TYPE"):
            kwargs["referral_action_type"] = action_type

        return cls(**kwargs)


# Global configuration instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get the global configuration instance.

    Creates a new configuration from environment variables if one
    hasn't been set yet.
    """
    global _config
    if _config is None:
        _config = Config.from_env()
    return _config


def set_config(config: Config) -> None:
    """Set the global configuration instance."""
    global _config
    _config = config
