"""
DuckDB action storage for ActionLens.

Keeps imported actions and users in a DuckDB file so that the log can
be reloaded without re-parsing JSON, and serves the simple lookups
(user by id, action count by user) directly in SQL.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

import duckdb

from actionlens.config import get_config
from actionlens.models import Action, EventLog, User, to_naive_utc


class ActionDatabase:
    """
    DuckDB-based action and user storage.
    """

    def __init__(self, database_path: Optional[Path] = None):
        """
        Initialize the action database.

        Args:
            database_path: Path to the DuckDB database file.
                          Uses config default if not provided.
        """
        config = get_config()
        self.database_path = database_path or config.database_path
        self.logger = logging.getLogger("actionlens.storage.database")
        self._conn: Optional[duckdb.DuckDBPyConnection] = None

        # Ensure data directory exists
        self.database_path.parent.mkdir(parents=True, exist_ok=True)

    def connect(self) -> None:
        """Connect to the database and initialize schema."""
        self._conn = duckdb.connect(str(self.database_path))
        self._initialize_schema()
        self.logger.info(f"Connected to database: {self.database_path}")

    def close(self) -> None:
        """Close the database connection."""
        if self._conn:
            self._conn.close()
            self._conn = None
            self.logger.info("Database connection closed")

    def __enter__(self) -> "ActionDatabase":
        self.connect()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _initialize_schema(self) -> None:
        """Create the tables if they don't exist."""
        self._conn.execute("""
            CREATE TABLE IF NOT EXISTS actions (
                id BIGINT PRIMARY KEY,
                type VARCHAR NOT NULL,
                user_id BIGINT NOT NULL,
                target_user_id BIGINT,
                created_at TIMESTAMP NOT NULL
            )
        """)
        self._conn.execute("""
            CREATE TABLE IF NOT EXISTS users (
                id BIGINT PRIMARY KEY,
                name VARCHAR NOT NULL,
                created_at TIMESTAMP NOT NULL
            )
        """)

    def insert_actions(self, actions: List[Action]) -> int:
        """
        Insert or replace actions.

        Args:
            actions: Actions to insert

        Returns:
            Number of actions written
        """
        rows = [
            [a.id, a.type, a.user_id, a.target_user_id, to_naive_utc(a.created_at)]
            for a in actions
        ]
        if rows:
            self._conn.executemany(
                "INSERT OR REPLACE INTO actions VALUES (?, ?, ?, ?, ?)",
                rows,
            )
        self.logger.info(f"Stored {len(rows)} actions")
        return len(rows)

    def insert_users(self, users: List[User]) -> int:
        """
        Insert or replace users.

        Args:
            users: Users to insert

        Returns:
            Number of users written
        """
        rows = [[u.id, u.name, to_naive_utc(u.created_at)] for u in users]
        if rows:
            self._conn.executemany(
                "INSERT OR REPLACE INTO users VALUES (?, ?, ?)",
                rows,
            )
        self.logger.info(f"Stored {len(rows)} users")
        return len(rows)

    def _row_to_action(self, row: tuple) -> Action:
        return Action(
            id=row[0],
            type=row[1],
            user_id=row[2],
            target_user_id=row[3],
            created_at=row[4],
        )

    def load_log(self) -> EventLog:
        """
        Load every stored action.

        Returns:
            EventLog ordered by creation time, then id
        """
        result = self._conn.execute(
            "SELECT id, type, user_id, target_user_id, created_at "
            "FROM actions ORDER BY created_at, id"
        )
        return EventLog(self._row_to_action(row) for row in result.fetchall())

    def get_user(self, user_id: int) -> Optional[User]:
        """
        Look up a user by id.

        Args:
            user_id: User id

        Returns:
            The user, or None if unknown
        """
        row = self._conn.execute(
            "SELECT id, name, created_at FROM users WHERE id = ?",
            [user_id],
        ).fetchone()
        if row is None:
            return None
        return User(id=row[0], name=row[1], created_at=row[2])

    def count_actions_for_user(self, user_id: int) -> int:
        """Count the actions performed by a user."""
        result = self._conn.execute(
            "SELECT COUNT(*) FROM actions WHERE user_id = ?",
            [user_id],
        )
        return result.fetchone()[0]

    def get_action_count(self) -> int:
        """Get the total number of stored actions."""
        return self._conn.execute("SELECT COUNT(*) FROM actions").fetchone()[0]

    def get_user_count(self) -> int:
        """Get the total number of stored users."""
        return self._conn.execute("SELECT COUNT(*) FROM users").fetchone()[0]

    def get_action_type_counts(self) -> Dict[str, int]:
        """
        Get counts of actions by type.

        Returns:
            Dictionary mapping action types to counts, most frequent first
        """
        result = self._conn.execute("""
            SELECT type, COUNT(*) as count
            FROM actions
            GROUP BY type
            ORDER BY count DESC, type
        """)

        return {row[0]: row[1] for row in result.fetchall()}

    def clear(self) -> None:
        """Delete all stored actions and users."""
        self._conn.execute("DELETE FROM actions")
        self._conn.execute("DELETE FROM users")
        self.logger.info("Database cleared")
