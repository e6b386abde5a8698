"""
Score Aggregation for IdP / organization matching.

Responsibilities:
- Accumulate MatchEdges into one ScoreMatrix per strategy and one
  combined matrix summing the weights of every strategy.
- Keep both indexes (by IdP, by organization) symmetric.

Non-Responsibilities:
- No matching.
- No classification.

Invariant:
Weights are positive. An edge contributes its weight once per strategy, so
final weights do not depend on edge insertion order.
"""

from typing import Dict, Iterable, List, Optional

from .records import MatchEdge

COMBINED = "combined"


class ScoreMatrix:
    """Weighted bipartite graph between IdPs and organizations, indexed from both sides."""

    def __init__(self, name: str):
        self.name = name
        self._by_idp: Dict[str, Dict[str, int]] = {}
        self._by_org: Dict[str, Dict[str, int]] = {}
        self._frozen = False

    def add_edge(self, idp_entity_id: str, org_id: str, weight: int) -> int:
        """Add weight to the (idp, org) cell in both indexes; returns the new weight."""
        if self._frozen:
            raise RuntimeError(f"Score matrix '{self.name}' is frozen")
        if weight <= 0:
            raise ValueError(f"Edge weight must be positive, got {weight}")

        total = self._by_idp.get(idp_entity_id, {}).get(org_id, 0) + weight
        self._by_idp.setdefault(idp_entity_id, {})[org_id] = total
        self._by_org.setdefault(org_id, {})[idp_entity_id] = total
        return total

    def freeze(self) -> None:
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def weight(self, idp_entity_id: str, org_id: str) -> int:
        return self._by_idp.get(idp_entity_id, {}).get(org_id, 0)

    def orgs_for(self, idp_entity_id: str) -> Dict[str, int]:
        """Organizations linked to an IdP with their weights (copy)."""
        return dict(self._by_idp.get(idp_entity_id, {}))

    def idps_for(self, org_id: str) -> Dict[str, int]:
        """IdPs linked to an organization with their weights (copy)."""
        return dict(self._by_org.get(org_id, {}))

    def idp_ids(self) -> List[str]:
        return sorted(self._by_idp)

    def org_ids(self) -> List[str]:
        return sorted(self._by_org)

    def edge_count(self) -> int:
        return sum(len(orgs) for orgs in self._by_idp.values())

    def __contains__(self, idp_entity_id: str) -> bool:
        return idp_entity_id in self._by_idp

    def __len__(self) -> int:
        return len(self._by_idp)

    def to_dict(self) -> Dict[str, Dict[str, int]]:
        """IdP -> {org -> weight} with sorted keys, suitable for stable serialization."""
        return {
            idp: {org: self._by_idp[idp][org] for org in sorted(self._by_idp[idp])}
            for idp in sorted(self._by_idp)
        }


class ScoreAggregator:
    """
    Route edges from every strategy into its own matrix and the combined one.

    Identical (strategy, idp, org) edges are deduplicated before summing, so
    repeated crosswalk assertions count once.
    """

    def __init__(self, strategy_names: Iterable[str]):
        self.matrices: Dict[str, ScoreMatrix] = {
            name: ScoreMatrix(name) for name in strategy_names
        }
        if COMBINED in self.matrices:
            raise ValueError(f"'{COMBINED}' is reserved for the combined matrix")
        self.combined = ScoreMatrix(COMBINED)
        self._seen = set()
        self.duplicates = 0

    def add(self, edge: MatchEdge) -> bool:
        """Add one edge; returns False if it was a duplicate and ignored."""
        matrix = self.matrices.get(edge.strategy)
        if matrix is None:
            raise KeyError(f"Unknown strategy '{edge.strategy}'")

        key = (edge.strategy, edge.idp_entity_id, edge.org_id)
        if key in self._seen:
            self.duplicates += 1
            return False
        self._seen.add(key)

        matrix.add_edge(edge.idp_entity_id, edge.org_id, edge.weight)
        self.combined.add_edge(edge.idp_entity_id, edge.org_id, edge.weight)
        return True

    def add_all(self, edges: Iterable[MatchEdge]) -> int:
        return sum(1 for edge in edges if self.add(edge))

    def finish(self) -> Dict[str, ScoreMatrix]:
        """Freeze all matrices and return them keyed by name, combined last."""
        result = dict(self.matrices)
        result[COMBINED] = self.combined
        for matrix in result.values():
            matrix.freeze()
        return result

    def get(self, name: str) -> Optional[ScoreMatrix]:
        if name == COMBINED:
            return self.combined
        return self.matrices.get(name)
