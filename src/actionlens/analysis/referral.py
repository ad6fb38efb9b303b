"""
Referral aggregation engine for ActionLens.

Builds the forest of "who referred whom" from referral actions and
folds referral counts from leaves up to roots, producing the referral
index (direct plus indirect referrals) of every user in the forest.
"""

import logging
from collections import deque
from typing import Deque, Dict, List, Optional

import networkx as nx
from pydantic import BaseModel

from actionlens.config import get_config
from actionlens.exceptions import ReferralCycleError
from actionlens.models import REFER_USER, EventLog


class ReferralNode(BaseModel):
    """A user taking part in at least one referral edge."""

    user_id: int

    # Number of users whose referrer of record is this user
    direct_referral_count: int = 0

    # Referrer of record, if any
    referrer: Optional[int] = None

    @property
    def is_leaf(self) -> bool:
        """Whether nobody currently lists this user as their referrer."""
        return self.direct_referral_count == 0


class ReferralForest:
    """
    Arena of referral nodes addressed by user id.

    Each user has at most one referrer of record; a later referral of
    the same user moves the edge to the new referrer. Nodes left with
    no edges at all after such a move are dropped.
    """

    def __init__(self):
        self._nodes: Dict[int, ReferralNode] = {}

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, user_id: int) -> bool:
        return user_id in self._nodes

    @property
    def nodes(self) -> Dict[int, ReferralNode]:
        """Nodes keyed by user id."""
        return self._nodes

    @classmethod
    def build(cls, log: EventLog, referral_type: str = REFER_USER) -> "ReferralForest":
        """
        Build the forest from a log.

        Referrals are applied in chronological order so that the latest
        referral of a user determines their referrer of record.

        Args:
            log: Event log to scan
            referral_type: Action type treated as a referral

        Returns:
            The populated forest
        """
        forest = cls()
        for action in log.chronological():
            if action.is_referral(referral_type):
                forest.add_referral(action.user_id, action.target_user_id)
        return forest

    def _node(self, user_id: int) -> ReferralNode:
        node = self._nodes.get(user_id)
        if node is None:
            node = ReferralNode(user_id=user_id)
            self._nodes[user_id] = node
        return node

    def add_referral(self, referrer: int, referred: int) -> None:
        """
        Record that ``referrer`` referred ``referred``.

        Self-referrals are ignored. If ``referred`` already had a
        different referrer, that edge is replaced.
        """
        if referrer == referred:
            return

        target = self._node(referred)
        previous = target.referrer
        if previous == referrer:
            return

        if previous is not None:
            old = self._nodes[previous]
            old.direct_referral_count -= 1
            if old.direct_referral_count == 0 and old.referrer is None:
                del self._nodes[previous]

        target.referrer = referrer
        self._node(referrer).direct_referral_count += 1

    def referrer_of(self, user_id: int) -> Optional[int]:
        """Get the referrer of record for a user."""
        node = self._nodes.get(user_id)
        return node.referrer if node else None

    def direct_counts(self) -> Dict[int, int]:
        """Get the direct referral count of every node."""
        return {uid: node.direct_referral_count for uid, node in self._nodes.items()}

    def roots(self) -> List[int]:
        """Get users nobody referred, sorted."""
        return sorted(uid for uid, node in self._nodes.items() if node.referrer is None)

    def leaves(self) -> List[int]:
        """Get users who currently refer nobody, sorted."""
        return sorted(uid for uid, node in self._nodes.items() if node.is_leaf)

    def to_graph(self) -> nx.DiGraph:
        """Export the forest as a directed referrer -> referred graph."""
        graph = nx.DiGraph()
        for uid, node in self._nodes.items():
            graph.add_node(uid, direct_referral_count=node.direct_referral_count)
        for uid, node in self._nodes.items():
            if node.referrer is not None:
                graph.add_edge(node.referrer, uid)
        return graph


class ReferralEngine:
    """
    Computes referral indices from an event log.

    Propagation is iterative: a worklist seeded with the leaves
    finalizes each user once every user they referred has been
    finalized, then folds that user's total into their referrer.
    """

    def __init__(self, referral_type: Optional[str] = None):
        """
        Initialize the referral engine.

        Args:
            referral_type: Action type treated as a referral.
                Uses the configured type if not provided.
        """
        if referral_type is None:
            referral_type = get_config().referral_action_type
        self.referral_type = referral_type
        self.logger = logging.getLogger("actionlens.analysis.referral")

    def build_forest(self, log: EventLog) -> ReferralForest:
        """Build the referral forest for a log."""
        return ReferralForest.build(log, self.referral_type)

    def propagate(self, forest: ReferralForest) -> Dict[int, int]:
        """
        Fold referral counts from leaves to roots.

        Args:
            forest: Forest to aggregate

        Returns:
            Dictionary mapping user ids to referral indices, sorted by id

        Raises:
            ReferralCycleError: If some users sit on a referral cycle and
                can never be finalized
        """
        nodes = forest.nodes
        totals = forest.direct_counts()
        waiting = dict(totals)
        worklist: Deque[int] = deque(uid for uid, count in waiting.items() if count == 0)
        index: Dict[int, int] = {}

        while worklist:
            uid = worklist.popleft()
            index[uid] = totals[uid]

            referrer = nodes[uid].referrer
            if referrer is None:
                continue

            totals[referrer] += totals[uid]
            waiting[referrer] -= 1
            if waiting[referrer] == 0:
                worklist.append(referrer)

        if len(index) < len(nodes):
            unresolved = [uid for uid in nodes if uid not in index]
            self.logger.error(
                f"Referral cycle: {len(unresolved)} of {len(nodes)} users unresolved"
            )
            raise ReferralCycleError(unresolved, partial=index)

        return {uid: index[uid] for uid in sorted(index)}

    def referral_index(self, log: EventLog) -> Dict[int, int]:
        """
        Compute the referral index of every user in the referral forest.

        Users who never take part in a current referral edge are absent
        from the result.

        Args:
            log: Event log to scan

        Returns:
            Dictionary mapping user ids to referral indices
        """
        forest = self.build_forest(log)
        result = self.propagate(forest)
        self.logger.debug(
            f"Referral index computed for {len(result)} users "
            f"({len(forest.roots())} roots)"
        )
        return result

    def statistics(self, log: EventLog) -> Dict:
        """
        Get referral forest statistics.

        Returns:
            A dictionary with 'users', 'edges', 'roots', 'leaves',
            'acyclic' and 'longest_chain' (None when the data has a cycle).
        """
        forest = self.build_forest(log)
        graph = forest.to_graph()

        if graph.number_of_nodes() == 0:
            return {"users": 0, "edges": 0}

        acyclic = nx.is_directed_acyclic_graph(graph)
        return {
            "users": graph.number_of_nodes(),
            "edges": graph.number_of_edges(),
            "roots": len(forest.roots()),
            "leaves": len(forest.leaves()),
            "acyclic": acyclic,
            "longest_chain": nx.dag_longest_path_length(graph) if acyclic else None,
        }


def compute_referral_index(log: EventLog, referral_type: str = REFER_USER) -> Dict[int, int]:
    """
    Compute the referral index of every user in the referral forest.

    Args:
        log: Event log to scan
        referral_type: Action type treated as a referral

    Returns:
        Dictionary mapping user ids to referral indices

    Raises:
        ReferralCycleError: If the referral data contains a cycle
    """
    return ReferralEngine(referral_type).referral_index(log)
