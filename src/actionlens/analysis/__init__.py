"""
Analysis package for ActionLens.

This package provides the next-action correlation engine and the
referral aggregation engine.
"""

from actionlens.analysis.correlation import CorrelationEngine, compute_next_action_distribution
from actionlens.analysis.referral import ReferralEngine, ReferralForest, compute_referral_index

__all__ = [
    "CorrelationEngine",
    "ReferralEngine",
    "ReferralForest",
    "compute_next_action_distribution",
    "compute_referral_index",
]
