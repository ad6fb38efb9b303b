"""
JSON loading for ActionLens.

Reads the ``actions.json`` and ``users.json`` exports into models and
can derive a user roster from the actions when no users file exists.
"""

import json
import logging
from pathlib import Path
from typing import Dict, List

from pydantic import TypeAdapter, ValidationError

from actionlens.exceptions import DataLoadError
from actionlens.models import Action, EventLog, User

logger = logging.getLogger("actionlens.storage.loader")

_actions_adapter = TypeAdapter(List[Action])
_users_adapter = TypeAdapter(List[User])


def _read_json(path: Path):
    try:
        return json.loads(Path(path).read_text())
    except OSError as e:
        raise DataLoadError(f"Cannot read {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise DataLoadError(f"Invalid JSON in {path}: {e}") from e


def load_actions(path: Path) -> EventLog:
    """
    Load an actions export.

    Args:
        path: Path to a JSON array of actions

    Returns:
        EventLog holding the actions in file order

    Raises:
        DataLoadError: If the file is missing, not JSON, or holds
            records that don't match the action schema
    """
    data = _read_json(path)
    try:
        actions = _actions_adapter.validate_python(data)
    except ValidationError as e:
        raise DataLoadError(f"Invalid actions in {path}: {e}") from e

    logger.info(f"Loaded {len(actions)} actions from {path}")
    return EventLog(actions)


def load_users(path: Path) -> List[User]:
    """
    Load a users export.

    Args:
        path: Path to a JSON array of users

    Returns:
        List of users in file order

    Raises:
        DataLoadError: If the file is missing or malformed
    """
    data = _read_json(path)
    try:
        users = _users_adapter.validate_python(data)
    except ValidationError as e:
        raise DataLoadError(f"Invalid users in {path}: {e}") from e

    logger.info(f"Loaded {len(users)} users from {path}")
    return users


def save_users(users: List[User], path: Path) -> None:
    """Write users to a JSON file."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps([user.to_dict() for user in users], indent=2))
    logger.info(f"Saved {len(users)} users to {path}")


def extract_users_from_actions(log: EventLog) -> List[User]:
    """
    Derive a user roster from the acting users of a log.

    Each user is named ``User<id>``. Their ``created_at`` is taken from
    the last of their actions in log order.

    Args:
        log: Event log to scan

    Returns:
        Users sorted by id
    """
    users: Dict[int, User] = {}
    for action in log:
        users[action.user_id] = User(
            id=action.user_id,
            name=f"User{action.user_id}",
            created_at=action.created_at,
        )
    return [users[uid] for uid in sorted(users)]
