from .classifier import Classification, ClassificationMode, MatchStatus, Tally, classify
from .records import CrosswalkPair, IdpRecord, LocalizedText, MatchEdge, OrgRecord
from .report import VIEWS, MatchReport
from .resolver import resolve
from .scoring import COMBINED, ScoreAggregator, ScoreMatrix
from .strategies import (
    CROSSWALK_WEIGHT,
    HOSTNAME_WEIGHT,
    NAME_WEIGHT,
    CrosswalkStrategy,
    HostnameStrategy,
    NameStrategy,
)
