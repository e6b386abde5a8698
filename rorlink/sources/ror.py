"""ROR registry: download the latest data dump and parse organization records."""

import io
import json
import os
import zipfile
from pathlib import Path
from typing import Any, Iterable, List, Tuple

from ..logger import get_logger
from ..matching.records import OrgRecord
from ..normalize import as_list
from ..schema import validate_ror_record
from .common import SourceError, fetch, read_text

logger = get_logger()

GITHUB_API_URL = "https://api.github.com/repos"
ROR_DATA_REPO_PATH = os.getenv("ROR_DATA_REPO_PATH", "ror-community/ror-api/contents/rorapi/data")
REGISTRY_FILENAME = "ror.json"


def _names(item: dict) -> Tuple[str, List[str]]:
    """Display name and aliases from a v1 (`name`, `aliases`) or v2 (`names`) record."""
    if isinstance(item.get("name"), str) and item["name"].strip():
        return item["name"], [a for a in as_list(item.get("aliases")) if isinstance(a, str)]

    display, aliases = None, []
    for entry in as_list(item.get("names")):
        if not isinstance(entry, dict) or not isinstance(entry.get("value"), str):
            continue
        types = as_list(entry.get("types"))
        if "ror_display" in types and display is None:
            display = entry["value"]
        elif "alias" in types:
            aliases.append(entry["value"])
    if display is None:
        first = next(e for e in as_list(item.get("names")) if isinstance(e, dict) and e.get("value"))
        display = first["value"]
    return display, aliases


def _links(item: dict) -> List[str]:
    links = []
    for link in as_list(item.get("links")):
        if isinstance(link, dict):
            link = link.get("value")
        links.append(link)
    return links


def parse_registry(items: Iterable[Any]) -> List[OrgRecord]:
    """
    Build OrgRecords from raw registry records.

    Invalid records are skipped and counted; malformed links are dropped one
    at a time without discarding the record.
    """
    records = []
    rejected = 0
    malformed = 0
    for item in items:
        errors = validate_ror_record(item)
        if errors:
            rejected += 1
            logger.debug("Skipping registry record", id=item.get("id") if isinstance(item, dict) else None, errors=errors)
            continue
        name, aliases = _names(item)
        record, dropped = OrgRecord.from_raw(
            id=item["id"].strip(),
            name=name,
            aliases=aliases,
            links=_links(item),
        )
        if dropped:
            malformed += dropped
            logger.debug("Dropped malformed links", id=record.id, count=dropped)
        records.append(record)

    logger.record_loaded("ror", len(records))
    if rejected:
        logger.record_rejected("ror", rejected)
        logger.warning(f"Skipped {rejected} invalid registry records")
    if malformed:
        logger.record_malformed_links(malformed)
    logger.info(f"Got {len(records)} Orgs from ROR.")
    return records


def load_registry(path: Path) -> List[OrgRecord]:
    try:
        data = json.loads(read_text(path, "ROR registry"))
    except json.JSONDecodeError as e:
        raise SourceError(f"ROR registry is not valid JSON: {path} ({e})")
    if not isinstance(data, list):
        raise SourceError(f"ROR registry must be a JSON array: {path}")
    return parse_registry(data)


def _github_folder(path: str) -> List[dict]:
    resp = fetch(f"{GITHUB_API_URL}/{path}", "github", timeout=30)
    return [{"name": d.get("name"), "download_url": d.get("download_url")} for d in resp.json()]


def download_registry(out_dir: Path) -> Path:
    """
    Download the latest ROR data dump release and extract it into out_dir.

    The newest release is the last entry of the data folder listing; the
    first JSON file of its zip is also written as ror.json.
    """
    logger.info("Getting data from ROR github repository")
    datasets = _github_folder(ROR_DATA_REPO_PATH)
    if not datasets:
        raise ValueError("No ROR datasets found")
    version = datasets[-1]["name"]
    logger.info(f"Latest version {version}")

    release = _github_folder(f"{ROR_DATA_REPO_PATH}/{version}")
    download_url = next((f["download_url"] for f in release if f["download_url"]), None)
    if not download_url:
        raise ValueError(f"No download URL for ROR release {version}")
    logger.info(f"Release URL {download_url}")

    resp = fetch(download_url, "ror")
    out_dir.mkdir(parents=True, exist_ok=True)
    logger.info(f"Decompressing to {out_dir}")
    try:
        with zipfile.ZipFile(io.BytesIO(resp.content)) as archive:
            archive.extractall(out_dir)
            json_members = sorted(n for n in archive.namelist() if n.endswith(".json"))
    except zipfile.BadZipFile as e:
        raise SourceError(f"ROR release is not a zip archive: {download_url} ({e})")

    if not json_members:
        raise SourceError(f"ROR release contains no JSON file: {download_url}")
    target = out_dir / REGISTRY_FILENAME
    target.write_bytes((out_dir / json_members[0]).read_bytes())
    return target
