"""
Exceptions raised by ActionLens.
"""

from typing import Dict, List, Optional


class ActionLensError(Exception):
    """Base class for all ActionLens errors."""


class DataLoadError(ActionLensError):
    """Raised when an actions or users file cannot be read or parsed."""


class ReferralCycleError(ActionLensError):
    """
    Raised when referral propagation cannot finalize every user.

    This only happens when the referral data contains a cycle
    (e.g. A refers B and later B refers A). The users that could be
    finalized are still available through ``partial``.
    """

    def __init__(self, unresolved: List[int], partial: Optional[Dict[int, int]] = None):
        self.unresolved = sorted(unresolved)
        self.partial = dict(partial or {})
        super().__init__(
            f"Referral cycle detected; {len(self.unresolved)} user(s) could not "
            f"be resolved: {self.unresolved}"
        )
