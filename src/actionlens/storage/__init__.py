"""
Storage package for ActionLens.

This package loads action and user exports from JSON and keeps them in
a DuckDB database for lookups and repeated analysis.
"""

from actionlens.storage.database import ActionDatabase
from actionlens.storage.loader import (
    extract_users_from_actions,
    load_actions,
    load_users,
    save_users,
)

__all__ = [
    "ActionDatabase",
    "extract_users_from_actions",
    "load_actions",
    "load_users",
    "save_users",
]
