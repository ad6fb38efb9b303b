"""
Next-action correlation engine for ActionLens.

Estimates, for a trigger action type, the probability distribution of
the action type a user performs immediately after it within a time
window.
"""

import logging
from collections import defaultdict
from datetime import datetime, timedelta
from typing import Dict, Optional, Tuple

from actionlens.config import get_config
from actionlens.models import EventLog


class CorrelationEngine:
    """
    Correlates each trigger action with the next action of the same user.

    Every trigger occurrence is consumed by exactly one following action
    of that user. The pair only counts when the follow-up happens within
    the window; a follow-up outside the window still consumes the
    trigger. A window of ``None`` counts every follow-up regardless of
    elapsed time. Self-referrals are skipped entirely: they neither
    consume nor seed a trigger.
    """

    def __init__(
        self,
        window: Optional[timedelta] = None,
        unbounded: bool = False,
        referral_type: Optional[str] = None,
    ):
        """
        Initialize the correlation engine.

        Args:
            window: Maximum elapsed time between a trigger and its next
                action. Uses the configured default if not provided.
            unbounded: Ignore the window and count every next action.
            referral_type: Action type treated as a referral.
                Uses the configured type if not provided.

        Raises:
            ValueError: If the window is negative.
        """
        if unbounded:
            self.window: Optional[timedelta] = None
        elif window is not None:
            self.window = window
        else:
            self.window = get_config().next_action_window

        if self.window is not None and self.window < timedelta(0):
            raise ValueError(f"Correlation window must not be negative: {self.window}")

        if referral_type is None:
            referral_type = get_config().referral_action_type
        self.referral_type = referral_type

        self.logger = logging.getLogger("actionlens.analysis.correlation")

    def _within_window(self, trigger_time: datetime, action_time: datetime) -> bool:
        if self.window is None:
            return True
        return action_time - trigger_time <= self.window

    def count_next_actions(
        self,
        log: EventLog,
        trigger_type: str,
    ) -> Tuple[Dict[str, int], int]:
        """
        Count the action types that follow a trigger type.

        Args:
            log: Event log to scan
            trigger_type: Action type the query is anchored on

        Returns:
            Tuple of (occurrences per next action type, total occurrences)
        """
        # user_id -> timestamp of the latest unconsumed trigger
        pending: Dict[int, datetime] = {}
        counts: Dict[str, int] = defaultdict(int)
        total = 0

        for action in log.chronological():
            if action.type == self.referral_type and action.target_user_id == action.user_id:
                continue

            trigger_time = pending.pop(action.user_id, None)
            if trigger_time is not None and self._within_window(trigger_time, action.created_at):
                counts[action.type] += 1
                total += 1

            if action.type == trigger_type:
                pending[action.user_id] = action.created_at

        return dict(counts), total

    def next_action_distribution(
        self,
        log: EventLog,
        trigger_type: str,
    ) -> Dict[str, float]:
        """
        Compute the next-action probability distribution for a trigger type.

        Only action types observed at least once as a next action are
        present. The result is empty when no trigger was followed within
        the window.

        Args:
            log: Event log to scan
            trigger_type: Action type the query is anchored on

        Returns:
            Dictionary mapping next action types to probabilities
        """
        counts, total = self.count_next_actions(log, trigger_type)

        self.logger.debug(
            f"Next actions for {trigger_type!r}: {total} occurrence(s) "
            f"across {len(counts)} type(s), window={self.window}"
        )

        return self.normalize(counts, total)

    @staticmethod
    def normalize(counts: Dict[str, int], total: int) -> Dict[str, float]:
        """Turn occurrence counts into probabilities; empty when total is 0."""
        if total == 0:
            return {}
        return {action_type: count / total for action_type, count in counts.items()}


def compute_next_action_distribution(
    log: EventLog,
    trigger_type: str,
    window: Optional[timedelta],
) -> Dict[str, float]:
    """
    Compute the next-action distribution for ``trigger_type``.

    Args:
        log: Event log to scan
        trigger_type: Action type the query is anchored on
        window: Maximum elapsed time between trigger and next action,
            or None for no limit

    Returns:
        Dictionary mapping next action types to probabilities
    """
    engine = CorrelationEngine(window=window, unbounded=window is None)
    return engine.next_action_distribution(log, trigger_type)
