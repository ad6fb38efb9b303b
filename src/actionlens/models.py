"""
Action and user models for ActionLens.

Defines the immutable records the analytics engines consume and the
EventLog container that holds them. Records are parsed from the
camelCase JSON produced by the action export and are never mutated
once loaded.
"""

from datetime import datetime, timezone
from operator import attrgetter
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

# Action type that links a referrer (user_id) to a referred user (target_user_id)
REFER_USER = "REFER_USER"


def to_naive_utc(value: datetime) -> datetime:
    """Convert an aware timestamp to naive UTC; naive ones are taken as UTC."""
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class Action(BaseModel):
    """
    A single user action.

    Actions are immutable. ``target_user_id`` is only meaningful for
    referral actions and is ignored for every other type.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    # Unique identifier (unused by the engines)
    id: int

    # Open-ended action type tag, e.g. "LOGIN" or "REFER_USER"
    type: str

    # Acting user
    user_id: int = Field(alias="userId")

    # Referred user for referral actions
    target_user_id: Optional[int] = Field(
        default=None,
        validation_alias=AliasChoices("targetUserId", "targetUser", "target_user_id"),
        serialization_alias="targetUserId",
    )

    # When the action happened
    created_at: datetime = Field(alias="createdAt")

    @field_validator("created_at")
    @classmethod
    def normalize_created_at(cls, value: datetime) -> datetime:
        return to_naive_utc(value)

    def is_referral(self, referral_type: str = REFER_USER) -> bool:
        """Whether this action creates a referral edge.

        Self-referrals and referrals without a target never do.
        """
        return (
            self.type == referral_type
            and self.target_user_id is not None
            and self.target_user_id != self.user_id
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert the action to its JSON form."""
        return self.model_dump(by_alias=True, mode="json")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Action":
        """Create an action from its JSON form."""
        return cls.model_validate(data)


class User(BaseModel):
    """A user known to the system."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: int
    name: str
    created_at: datetime = Field(alias="createdAt")

    @field_validator("created_at")
    @classmethod
    def normalize_created_at(cls, value: datetime) -> datetime:
        return to_naive_utc(value)

    def to_dict(self) -> Dict[str, Any]:
        """Convert the user to its JSON form."""
        return self.model_dump(by_alias=True, mode="json")


class EventLog:
    """
    Immutable collection of actions.

    The log keeps actions in the order they were supplied. Engines that
    depend on time order call ``chronological()`` explicitly rather
    than relying on the order the loader produced.
    """

    def __init__(self, actions: Iterable[Action] = ()):
        self._actions: Tuple[Action, ...] = tuple(actions)

    def __iter__(self) -> Iterator[Action]:
        return iter(self._actions)

    def __len__(self) -> int:
        return len(self._actions)

    def __getitem__(self, index: int) -> Action:
        return self._actions[index]

    def __repr__(self) -> str:
        return f"EventLog({len(self._actions)} actions)"

    @property
    def actions(self) -> Tuple[Action, ...]:
        """The actions in supplied order."""
        return self._actions

    def chronological(self) -> List[Action]:
        """Return the actions sorted by ``created_at``.

        The sort is stable, so actions sharing a timestamp keep their
        original relative order.
        """
        return sorted(self._actions, key=attrgetter("created_at"))

    def count_for_user(self, user_id: int) -> int:
        """Count the actions performed by a user."""
        return sum(1 for action in self._actions if action.user_id == user_id)

    def user_ids(self) -> List[int]:
        """Get the distinct acting user ids, sorted."""
        return sorted({action.user_id for action in self._actions})

    def action_types(self) -> List[str]:
        """Get the distinct action types, sorted."""
        return sorted({action.type for action in self._actions})
