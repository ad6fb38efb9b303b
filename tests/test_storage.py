"""
Tests for the storage modules.
"""

import json
from datetime import datetime, timedelta, timezone

import pytest

from actionlens.exceptions import DataLoadError
from actionlens.models import EventLog, User
from actionlens.storage.database import ActionDatabase
from actionlens.storage.loader import (
    extract_users_from_actions,
    load_actions,
    load_users,
    save_users,
)


class TestLoader:
    """Tests for the JSON loader."""

    def test_load_actions(self, actions_json, sample_actions):
        """Test loading an actions export."""
        log = load_actions(actions_json)

        assert isinstance(log, EventLog)
        assert list(log) == sample_actions

    def test_load_actions_missing_file(self, temp_data_dir):
        """Test a missing file is reported as a load error."""
        with pytest.raises(DataLoadError):
            load_actions(temp_data_dir / "missing.json")

    def test_load_actions_invalid_json(self, temp_data_dir):
        """Test malformed JSON is reported as a load error."""
        path = temp_data_dir / "actions.json"
        path.write_text("[{not json")

        with pytest.raises(DataLoadError):
            load_actions(path)

    def test_load_actions_invalid_record(self, temp_data_dir):
        """Test records with bad fields are reported as a load error."""
        path = temp_data_dir / "actions.json"
        path.write_text(json.dumps([{"id": 1, "type": "LOGIN", "userId": "x", "createdAt": "later"}]))

        with pytest.raises(DataLoadError):
            load_actions(path)

    def test_users_round_trip(self, temp_data_dir):
        """Test saving and loading users."""
        users = [
            User(id=1, name="Ana", created_at=datetime(2022, 1, 1)),
            User(id=2, name="Bo", created_at=datetime(2022, 2, 1)),
        ]
        path = temp_data_dir / "out" / "users.json"

        save_users(users, path)

        assert load_users(path) == users

    def test_extract_users_from_actions(self, sample_log):
        """Test deriving users from acting user ids."""
        users = extract_users_from_actions(sample_log)

        assert [u.id for u in users] == [1, 2, 3]
        assert [u.name for u in users] == ["User1", "User2", "User3"]

    def test_extract_users_takes_last_action_time(self, make_action):
        """Test each user's timestamp comes from their last action in log order."""
        first = make_action("LOGIN", 1, hours=5)
        last = make_action("LOGOUT", 1, hours=1)

        users = extract_users_from_actions(EventLog([first, last]))

        assert users[0].created_at == last.created_at

    def test_extract_users_ignores_targets(self, make_action):
        """Test referred users who never acted are not extracted."""
        log = EventLog([make_action("REFER_USER", 1, target_user_id=9)])

        assert [u.id for u in extract_users_from_actions(log)] == [1]


class TestActionDatabase:
    """Tests for the ActionDatabase class."""

    @pytest.fixture
    def database(self, test_config):
        """Create a test database."""
        db = ActionDatabase(test_config.database_path)
        db.connect()
        yield db
        db.close()

    def test_database_connection(self, database):
        """Test database connection."""
        assert database._conn is not None

    def test_insert_and_load_log(self, database, sample_actions):
        """Test stored actions come back in time order."""
        assert database.insert_actions(sample_actions) == len(sample_actions)

        log = database.load_log()

        assert len(log) == len(sample_actions)
        assert list(log) == EventLog(sample_actions).chronological()

    def test_insert_replaces_same_id(self, database, make_action):
        """Test re-importing an action id replaces it."""
        action = make_action("LOGIN", 1)
        database.insert_actions([action])
        database.insert_actions([action.model_copy(update={"type": "LOGOUT"})])

        assert database.get_action_count() == 1
        assert database.load_log()[0].type == "LOGOUT"

    def test_aware_timestamps_stored_as_utc(self, database, make_action):
        """Test timezone-aware timestamps are normalized to UTC."""
        local = timezone(timedelta(hours=2))
        action = make_action("LOGIN", 1).model_copy(
            update={"created_at": datetime(2022, 1, 1, 12, 0, tzinfo=local)}
        )
        database.insert_actions([action])

        assert database.load_log()[0].created_at == datetime(2022, 1, 1, 10, 0)

    def test_get_user(self, database):
        """Test looking up a user by id."""
        database.insert_users([User(id=4, name="Dee", created_at=datetime(2022, 3, 1))])

        user = database.get_user(4)

        assert user is not None
        assert user.name == "Dee"
        assert database.get_user(5) is None

    def test_count_actions_for_user(self, database, sample_actions):
        """Test counting actions by user."""
        database.insert_actions(sample_actions)

        assert database.count_actions_for_user(1) == 3
        assert database.count_actions_for_user(42) == 0

    def test_counts(self, database, sample_actions, sample_log):
        """Test aggregate counts."""
        database.insert_actions(sample_actions)
        database.insert_users(extract_users_from_actions(sample_log))

        assert database.get_action_count() == len(sample_actions)
        assert database.get_user_count() == 3
        type_counts = database.get_action_type_counts()
        assert next(iter(type_counts)) == "LOGIN"
        assert type_counts["LOGIN"] == 3
        assert type_counts["REFER_USER"] == 2

    def test_clear(self, database, sample_actions):
        """Test clearing the database."""
        database.insert_actions(sample_actions)
        database.clear()

        assert database.get_action_count() == 0
        assert database.get_user_count() == 0

    def test_context_manager(self, test_config, sample_actions):
        """Test the database as a context manager."""
        with ActionDatabase(test_config.database_path) as db:
            db.insert_actions(sample_actions)

        with ActionDatabase(test_config.database_path) as db:
            assert db.get_action_count() == len(sample_actions)
