"""Result of a matching run: score matrices, per-IdP classifications and tallies."""

from dataclasses import dataclass, field
from typing import Dict, List

from .classifier import Classification, ClassificationMode, MatchStatus, Tally
from .scoring import COMBINED, ScoreMatrix


@dataclass(frozen=True)
class View:
    """A classified view: which matrix to read and how to classify it."""
    name: str
    matrix: str
    mode: ClassificationMode


VIEWS = (
    View("name", "name", ClassificationMode.EDGE_COUNT),
    View("hostname", "hostname", ClassificationMode.EDGE_COUNT),
    View("crosswalk", "crosswalk", ClassificationMode.EDGE_COUNT),
    View("combined", COMBINED, ClassificationMode.EDGE_COUNT),
    View("scores", COMBINED, ClassificationMode.MAX_SCORE),
)


@dataclass
class MatchReport:
    entity_ids: List[str]
    matrices: Dict[str, ScoreMatrix]
    classifications: Dict[str, Dict[str, Classification]] = field(default_factory=dict)
    tallies: Dict[str, Tally] = field(default_factory=dict)

    def matrix_dicts(self) -> Dict[str, Dict[str, Dict[str, int]]]:
        return {name: matrix.to_dict() for name, matrix in self.matrices.items()}

    def tally_dicts(self) -> Dict[str, Dict[str, int]]:
        return {view: counts.to_dict() for view, counts in self.tallies.items()}

    def status_of(self, view: str, entity_id: str) -> MatchStatus:
        return self.classifications[view][entity_id].status

    def unique_matches(self, view: str = "scores") -> Dict[str, str]:
        """entityID -> org id for every IdP classified UNIQUE in a view."""
        return {
            entity_id: result.org_id
            for entity_id, result in sorted(self.classifications[view].items())
            if result.status is MatchStatus.UNIQUE
        }

    def to_dict(self) -> dict:
        return {
            "matrices": self.matrix_dicts(),
            "tallies": self.tally_dicts(),
            "classifications": {
                view: {entity_id: result.to_dict() for entity_id, result in sorted(results.items())}
                for view, results in self.classifications.items()
            },
        }

    def summary_lines(self) -> List[str]:
        """Tab separated table: step, unique, nomatch, ambiguous."""
        lines = ["step\tunique\tnomatch\tambiguous"]
        for view, counts in self.tallies.items():
            lines.append(f"{view}\t{counts.unique}\t{counts.nomatch}\t{counts.ambiguous}")
        return lines
