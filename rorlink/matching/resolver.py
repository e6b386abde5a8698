"""
Entity Resolution Orchestrator.

Responsibilities:
- Deduplicate input records by key.
- Run every evidence strategy over the full IdP x organization product.
- Aggregate edges into per-strategy and combined score matrices.
- Classify each IdP in every view and tally the outcomes.

Non-Responsibilities:
- No file or network access.
- No serialization.

Invariant:
This module must be deterministic given the same inputs, regardless of the
order in which records are supplied.
"""

from typing import Iterable, List, Optional, Sequence, TypeVar

from ..logger import get_logger
from .classifier import classify_all, tally
from .records import CrosswalkPair, IdpRecord, OrgRecord
from .report import VIEWS, MatchReport
from .scoring import ScoreAggregator
from .strategies import Strategy, default_strategies

logger = get_logger()

T = TypeVar("T")


def _texts(values) -> tuple:
    return tuple((v.lang or "", v.text) for v in values)


def _idp_rank(idp: IdpRecord) -> tuple:
    return (
        _texts(idp.organization_display_names),
        _texts(idp.organization_urls),
        tuple(sorted(idp.display_name.items())),
    )


def _org_rank(org: OrgRecord) -> tuple:
    return (org.name, tuple(sorted(org.aliases)), tuple(link.geturl() for link in org.links))


def _dedupe(records: Iterable[T], key, rank, kind: str) -> List[T]:
    """One record per key; among duplicates the one with the lowest rank is kept."""
    result: List[T] = []
    last_key = None
    for record in sorted(records, key=lambda r: (key(r), rank(r))):
        k = key(record)
        if result and k == last_key:
            logger.warning(f"Duplicate {kind} record ignored", key=k)
            continue
        last_key = k
        result.append(record)
    return result


def resolve(
    idps: Iterable[IdpRecord],
    orgs: Iterable[OrgRecord],
    crosswalk: Iterable[CrosswalkPair] = (),
    strategies: Optional[Sequence[Strategy]] = None,
) -> MatchReport:
    """
    Match IdP records to organizations and classify every IdP.

    Args:
        idps: IdP records from federation metadata
        orgs: Organization records from the registry
        crosswalk: Registry id / entityID assertions
        strategies: Override the default name, hostname, crosswalk strategies

    Returns:
        MatchReport with frozen matrices, classifications and tallies
    """
    idps = _dedupe(idps, lambda r: r.entity_id, _idp_rank, "IdP")
    orgs = _dedupe(orgs, lambda r: r.id, _org_rank, "organization")
    if strategies is None:
        strategies = default_strategies(crosswalk)

    aggregator = ScoreAggregator(s.name for s in strategies)

    for step, strategy in enumerate(strategies, start=1):
        logger.info(f'Step {step} "{strategy.name}": matching {len(idps)} IdPs against {len(orgs)} organizations')
        with logger.timed(strategy.name):
            aggregator.add_all(strategy.edges(idps, orgs))

        matrix = aggregator.get(strategy.name)
        nomatch = sum(1 for idp in idps if idp.entity_id not in matrix)
        logger.info(f'Could not find a match for {nomatch} IdPs based on "{strategy.name}"')
        elapsed_ms = logger.metrics["step_durations_ms"][strategy.name]
        logger.debug(f"Took {elapsed_ms:.0f}ms to calculate", step=strategy.name, edges=matrix.edge_count())

    if aggregator.duplicates:
        logger.debug("Ignored duplicate edges", count=aggregator.duplicates)

    matrices = aggregator.finish()
    entity_ids = sorted(idp.entity_id for idp in idps)
    report = MatchReport(entity_ids=entity_ids, matrices=matrices)

    for view in VIEWS:
        matrix = matrices.get(view.matrix)
        if matrix is None:
            continue
        results = classify_all(matrix, entity_ids, view.mode)
        report.classifications[view.name] = results
        report.tallies[view.name] = tally(results.values())

    return report
