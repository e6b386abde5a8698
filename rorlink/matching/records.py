"""
Record Model for IdP / organization matching.

Responsibilities:
- Hold normalized IdP records, registry organizations and crosswalk pairs.
- Resolve the best-effort organization name and URL of an IdP.

Non-Responsibilities:
- No XML or JSON parsing.
- No matching.

Invariant:
Records are immutable once constructed. Localized values are always an
ordered sequence, never a scalar-or-list.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterable, Mapping, Optional, Sequence, Tuple
from urllib.parse import SplitResult

from ..normalize import host_of, parse_url, url_host

PREFERRED_LANG = "en"


@dataclass(frozen=True)
class LocalizedText:
    text: str
    lang: Optional[str] = None


def best_text(values: Sequence[LocalizedText]) -> Optional[LocalizedText]:
    """Prefer the value tagged `en`, else the first in source order."""
    for value in values:
        if value.lang == PREFERRED_LANG:
            return value
    return values[0] if values else None


@dataclass(frozen=True)
class IdpRecord:
    entity_id: str
    display_name: Mapping[str, str] = field(default_factory=dict, hash=False)
    organization_display_names: Tuple[LocalizedText, ...] = ()
    organization_urls: Tuple[LocalizedText, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "display_name", MappingProxyType(dict(self.display_name)))

    @property
    def organization_name(self) -> Optional[str]:
        best = best_text(self.organization_display_names)
        return best.text if best is not None and best.text else None

    @property
    def organization_url(self) -> Optional[str]:
        best = best_text(self.organization_urls)
        return best.text if best is not None and best.text else None

    @property
    def organization_host(self) -> Optional[str]:
        """Host of the best-effort organization URL, None if absent or malformed."""
        return host_of(self.organization_url)


@dataclass(frozen=True)
class OrgRecord:
    id: str
    name: str
    aliases: frozenset = frozenset()
    links: Tuple[SplitResult, ...] = ()

    @classmethod
    def from_raw(
        cls,
        id: str,
        name: str,
        aliases: Iterable[str] = (),
        links: Iterable[str] = (),
    ) -> Tuple["OrgRecord", int]:
        """Build a record from raw strings.

        Returns the record and the number of links dropped as malformed;
        a bad link never discards the others.
        """
        parsed = []
        dropped = 0
        for raw in links:
            url = parse_url(raw)
            if url is None:
                dropped += 1
                continue
            parsed.append(url)
        record = cls(
            id=id,
            name=name,
            aliases=frozenset(a for a in aliases if isinstance(a, str)),
            links=tuple(parsed),
        )
        return record, dropped

    @property
    def hosts(self) -> Tuple[str, ...]:
        hosts = []
        for link in self.links:
            host = url_host(link)
            if host is not None and host not in hosts:
                hosts.append(host)
        return tuple(hosts)


@dataclass(frozen=True)
class CrosswalkPair:
    """An exact-identity assertion linking one organization to one IdP."""
    org_id: str
    idp_entity_id: str


@dataclass(frozen=True)
class MatchEdge:
    idp_entity_id: str
    org_id: str
    strategy: str
    weight: int
