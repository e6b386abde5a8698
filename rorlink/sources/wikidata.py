"""Wikidata crosswalk: ROR id <-> IdP entityID pairs from a SPARQL export."""

import json
import os
from pathlib import Path
from typing import Any, List

from ..logger import get_logger
from ..matching.records import CrosswalkPair
from ..schema import validate_crosswalk_binding
from .common import SourceError, download_to, read_text

logger = get_logger()

ROR_ID_PREFIX = "https://ror.org/"
WIKIDATA_SPARQL_URL = os.getenv(
    "WIKIDATA_SPARQL_URL",
    "https://query.wikidata.org/sparql?query=SELECT+DISTINCT+?rorid+?api+WHERE"
    "{?i+wdt:P6782+?rorid.?i+wdt:P6269+?api}&format=json",
)
CROSSWALK_FILENAME = "wikidata-ror-api.json"


def ror_id(value: str) -> str:
    """Full registry id for a bare ROR identifier (already prefixed ids pass through)."""
    value = value.strip()
    return value if value.startswith(ROR_ID_PREFIX) else f"{ROR_ID_PREFIX}{value}"


def parse_crosswalk(payload: Any) -> List[CrosswalkPair]:
    """
    Read `results.bindings` of a SPARQL JSON result into CrosswalkPairs.

    Duplicates are kept; the aggregator ignores repeated edges.
    """
    try:
        bindings = payload["results"]["bindings"]
    except (KeyError, TypeError):
        raise SourceError("Crosswalk export has no results.bindings")

    pairs = []
    rejected = 0
    for binding in bindings:
        if validate_crosswalk_binding(binding):
            rejected += 1
            continue
        pairs.append(CrosswalkPair(
            org_id=ror_id(binding["rorid"]["value"]),
            idp_entity_id=binding["api"]["value"].strip(),
        ))

    logger.record_loaded("wikidata", len(pairs))
    if rejected:
        logger.record_rejected("wikidata", rejected)
        logger.warning(f"Skipped {rejected} incomplete crosswalk bindings")
    logger.info(f"Got {len(pairs)} results from Wikidata.")
    return pairs


def load_crosswalk(path: Path) -> List[CrosswalkPair]:
    try:
        payload = json.loads(read_text(path, "Wikidata crosswalk"))
    except json.JSONDecodeError as e:
        raise SourceError(f"Wikidata crosswalk is not valid JSON: {path} ({e})")
    return parse_crosswalk(payload)


def download_crosswalk(out_dir: Path, url: str = WIKIDATA_SPARQL_URL) -> Path:
    return download_to(url, out_dir / CROSSWALK_FILENAME, "wikidata")
