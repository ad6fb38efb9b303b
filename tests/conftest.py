"""
Test configuration for ActionLens.
"""

import json
import shutil
import tempfile
from datetime import datetime, timedelta
from pathlib import Path

import pytest

from actionlens.config import Config, set_config
from actionlens.models import Action, EventLog

BASE_TIME = datetime(2023, 1, 1, 12, 0, 0)


@pytest.fixture
def temp_data_dir():
    """Create a temporary data directory for tests.

    Yields:
        Path: The path to the temporary directory.
    """
    tmpdir = tempfile.mkdtemp()
    yield Path(tmpdir)
    shutil.rmtree(tmpdir, ignore_errors=True)


@pytest.fixture
def test_config(temp_data_dir):
    """Create and install a test configuration."""
    config = Config(
        data_dir=temp_data_dir,
        log_level="DEBUG",
        next_action_window_hours=24,
    )
    set_config(config)
    return config


@pytest.fixture
def make_action():
    """Factory for actions timestamped in hours after a fixed base time."""
    counter = {"id": 0}

    def _make(action_type, user_id, hours=0.0, target_user_id=None):
        counter["id"] += 1
        return Action(
            id=counter["id"],
            type=action_type,
            user_id=user_id,
            target_user_id=target_user_id,
            created_at=BASE_TIME + timedelta(hours=hours),
        )

    return _make


@pytest.fixture
def sample_actions(make_action):
    """A small mixed log of logins, purchases and referrals.

    Returns:
        list[Action]: Actions deliberately supplied out of time order.
    """
    return [
        make_action("PURCHASE", 1, hours=1),
        make_action("LOGIN", 1, hours=0),
        make_action("LOGIN", 2, hours=2),
        make_action("VIEW_PRODUCT", 2, hours=3),
        make_action("REFER_USER", 1, hours=4, target_user_id=2),
        make_action("REFER_USER", 2, hours=5, target_user_id=3),
        make_action("LOGIN", 3, hours=6),
        make_action("LOGOUT", 3, hours=40),
    ]


@pytest.fixture
def sample_log(sample_actions):
    """EventLog over the sample actions."""
    return EventLog(sample_actions)


@pytest.fixture
def actions_json(temp_data_dir, sample_actions):
    """Write the sample actions in export format and return the path."""
    path = temp_data_dir / "actions.json"
    path.write_text(json.dumps([action.to_dict() for action in sample_actions]))
    return path
