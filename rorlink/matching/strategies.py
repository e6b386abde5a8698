"""
Evidence Strategies for IdP / organization matching.

Responsibilities:
- Decide, for a single (IdP, organization) pair, whether a strategy has
  evidence that they belong together.
- Emit one weighted MatchEdge per positive verdict over the full
  IdP x organization cross product.

Non-Responsibilities:
- No accumulation of scores.
- No classification.
- No fuzzy matching: names compare by exact string equality, URLs by
  exact host equality.

Invariant:
A strategy emits at most one edge per (IdP, organization) pair. Index based
edge generation must yield exactly the edges of the naive cross product.
"""

from collections import defaultdict
from typing import Dict, Iterable, Iterator, List, Sequence

from .records import CrosswalkPair, IdpRecord, MatchEdge, OrgRecord

NAME_WEIGHT = 2
HOSTNAME_WEIGHT = 1
CROSSWALK_WEIGHT = 10


class Strategy:
    """Base class; subclasses set `name`, `weight` and implement `matches`."""

    name: str = ""
    weight: int = 0

    def matches(self, idp: IdpRecord, org: OrgRecord) -> bool:
        raise NotImplementedError

    def edges(self, idps: Sequence[IdpRecord], orgs: Sequence[OrgRecord]) -> Iterator[MatchEdge]:
        """Walk the full cross product and yield an edge for each positive verdict."""
        for idp in idps:
            for org in orgs:
                if self.matches(idp, org):
                    yield self._edge(idp, org)

    def _edge(self, idp: IdpRecord, org: OrgRecord) -> MatchEdge:
        return MatchEdge(
            idp_entity_id=idp.entity_id,
            org_id=org.id,
            strategy=self.name,
            weight=self.weight,
        )


def _index_orgs(orgs: Sequence[OrgRecord], keys_of) -> Dict[str, List[OrgRecord]]:
    index: Dict[str, List[OrgRecord]] = defaultdict(list)
    for org in orgs:
        for key in keys_of(org):
            index[key].append(org)
    return index


class NameStrategy(Strategy):
    """IdP organization display name equals the org name or one of its aliases."""

    name = "name"
    weight = NAME_WEIGHT

    def matches(self, idp: IdpRecord, org: OrgRecord) -> bool:
        name = idp.organization_name
        if not name:
            return False
        return org.name == name or name in org.aliases

    def edges(self, idps, orgs):
        index = _index_orgs(orgs, lambda org: {org.name} | set(org.aliases))
        for idp in idps:
            name = idp.organization_name
            if not name:
                continue
            for org in index.get(name, ()):
                yield self._edge(idp, org)


class HostnameStrategy(Strategy):
    """Host of the IdP organization URL equals the host of any org link."""

    name = "hostname"
    weight = HOSTNAME_WEIGHT

    def matches(self, idp: IdpRecord, org: OrgRecord) -> bool:
        host = idp.organization_host
        if host is None:
            return False
        return host in org.hosts

    def edges(self, idps, orgs):
        index = _index_orgs(orgs, lambda org: org.hosts)
        for idp in idps:
            host = idp.organization_host
            if host is None:
                continue
            for org in index.get(host, ()):
                yield self._edge(idp, org)


class CrosswalkStrategy(Strategy):
    """A crosswalk pair asserts exactly this (org, IdP) identity."""

    name = "crosswalk"
    weight = CROSSWALK_WEIGHT

    def __init__(self, pairs: Iterable[CrosswalkPair]):
        self.pairs = frozenset(pairs)

    def matches(self, idp: IdpRecord, org: OrgRecord) -> bool:
        return CrosswalkPair(org_id=org.id, idp_entity_id=idp.entity_id) in self.pairs

    def edges(self, idps, orgs):
        org_ids_by_entity: Dict[str, set] = defaultdict(set)
        for pair in self.pairs:
            org_ids_by_entity[pair.idp_entity_id].add(pair.org_id)
        index = _index_orgs(orgs, lambda org: (org.id,))
        for idp in idps:
            for org_id in sorted(org_ids_by_entity.get(idp.entity_id, ())):
                for org in index.get(org_id, ()):
                    yield self._edge(idp, org)


def default_strategies(crosswalk: Iterable[CrosswalkPair]) -> List[Strategy]:
    return [NameStrategy(), HostnameStrategy(), CrosswalkStrategy(crosswalk)]
