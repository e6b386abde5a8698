"""
Classification of IdP records against a finished score matrix.

Two modes are kept apart on purpose:

- EDGE_COUNT: unweighted. An IdP is unique when it has exactly one
  organization and that organization has exactly this one IdP.
- MAX_SCORE: only the top scoring organizations count. An IdP is unique
  when a single organization holds its maximum score and no other IdP
  reaches that score on the organization's side.

Classification is a pure read; it never touches the matrix.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, Iterable

from .scoring import ScoreMatrix


class MatchStatus(str, Enum):
    UNIQUE = "unique"
    AMBIGUOUS = "ambiguous"
    NO_MATCH = "nomatch"


class ClassificationMode(str, Enum):
    EDGE_COUNT = "edge_count"
    MAX_SCORE = "max_score"


@dataclass(frozen=True)
class Classification:
    status: MatchStatus
    org_ids: FrozenSet[str] = frozenset()

    @property
    def org_id(self):
        """The matched organization for UNIQUE results, else None."""
        if self.status is MatchStatus.UNIQUE:
            return next(iter(self.org_ids))
        return None

    def to_dict(self) -> dict:
        return {"status": self.status.value, "orgs": sorted(self.org_ids)}


NO_MATCH = Classification(MatchStatus.NO_MATCH)


def classify_by_edge_count(matrix: ScoreMatrix, entity_id: str) -> Classification:
    orgs = matrix.orgs_for(entity_id)
    if not orgs:
        return NO_MATCH

    if len(orgs) == 1:
        (org_id,) = orgs
        if set(matrix.idps_for(org_id)) == {entity_id}:
            return Classification(MatchStatus.UNIQUE, frozenset(orgs))
    return Classification(MatchStatus.AMBIGUOUS, frozenset(orgs))


def classify_by_max_score(matrix: ScoreMatrix, entity_id: str) -> Classification:
    orgs = matrix.orgs_for(entity_id)
    if not orgs:
        return NO_MATCH

    max_score = max(orgs.values())
    top_orgs = frozenset(org for org, score in orgs.items() if score == max_score)

    if len(top_orgs) == 1:
        (org_id,) = top_orgs
        contenders = [
            idp for idp, score in matrix.idps_for(org_id).items() if score >= max_score
        ]
        if contenders == [entity_id]:
            return Classification(MatchStatus.UNIQUE, top_orgs)
    return Classification(MatchStatus.AMBIGUOUS, top_orgs)


_CLASSIFIERS = {
    ClassificationMode.EDGE_COUNT: classify_by_edge_count,
    ClassificationMode.MAX_SCORE: classify_by_max_score,
}


def classify(matrix: ScoreMatrix, entity_id: str, mode: ClassificationMode) -> Classification:
    return _CLASSIFIERS[ClassificationMode(mode)](matrix, entity_id)


@dataclass
class Tally:
    unique: int = 0
    ambiguous: int = 0
    nomatch: int = 0

    def add(self, status: MatchStatus) -> None:
        if status is MatchStatus.UNIQUE:
            self.unique += 1
        elif status is MatchStatus.AMBIGUOUS:
            self.ambiguous += 1
        else:
            self.nomatch += 1

    @property
    def total(self) -> int:
        return self.unique + self.ambiguous + self.nomatch

    def to_dict(self) -> Dict[str, int]:
        return {"unique": self.unique, "nomatch": self.nomatch, "ambiguous": self.ambiguous}


def classify_all(
    matrix: ScoreMatrix,
    entity_ids: Iterable[str],
    mode: ClassificationMode,
) -> Dict[str, Classification]:
    return {entity_id: classify(matrix, entity_id, mode) for entity_id in entity_ids}


def tally(classifications: Iterable[Classification]) -> Tally:
    counts = Tally()
    for result in classifications:
        counts.add(result.status)
    return counts
