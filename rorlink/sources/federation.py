"""Federation (SAML) metadata: download, parse IdPs, export WAYF JSON."""

import base64
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

from bs4 import BeautifulSoup

from ..logger import get_logger
from ..matching.records import IdpRecord, LocalizedText
from ..schema import validate_entity
from .common import SourceError, download_to, fetch, read_text

logger = get_logger()

EDUGAIN_METADATA_URL = os.getenv("EDUGAIN_METADATA_URL", "https://mds.edugain.org/edugain-v1.xml")
METADATA_FILENAME = "edugain-v1.xml"


def _localized(elements) -> tuple:
    values = []
    for el in elements:
        text = el.get_text().strip()
        if not text:
            continue
        lang = el.get("xml:lang") or el.get("lang")
        values.append(LocalizedText(text=text, lang=lang))
    return tuple(values)


def _idp_entities(soup: BeautifulSoup) -> List[Any]:
    return [e for e in soup.find_all("EntityDescriptor") if e.find("IDPSSODescriptor", recursive=False)]


def _soup(xml_text: str) -> BeautifulSoup:
    soup = BeautifulSoup(xml_text, "xml")
    if soup.find("EntityDescriptor") is None:
        raise SourceError("No EntityDescriptor found in federation metadata")
    return soup


def _entity_to_record(entity) -> Optional[IdpRecord]:
    idp = entity.find("IDPSSODescriptor", recursive=False)
    ui_info = idp.find("UIInfo")
    org = entity.find("Organization", recursive=False)

    display_name: Dict[str, str] = {}
    if ui_info is not None:
        for value in _localized(ui_info.find_all("DisplayName")):
            display_name.setdefault(value.lang or "", value.text)

    raw = {
        "entity_id": (entity.get("entityID") or "").strip(),
        "display_name": display_name,
        "organization_display_names": _localized(org.find_all("OrganizationDisplayName")) if org is not None else (),
        "organization_urls": _localized(org.find_all("OrganizationURL")) if org is not None else (),
    }
    errors = validate_entity(raw)
    if errors:
        logger.warning("Skipping federation entity", errors=errors)
        return None
    return IdpRecord(**raw)


def parse_metadata(xml_text: str) -> List[IdpRecord]:
    """
    Parse federation metadata and return one IdpRecord per IdP entity.

    Entities without an IDPSSODescriptor (service providers) are ignored.
    Namespace prefixes do not matter.
    """
    soup = _soup(xml_text)
    records = []
    rejected = 0
    for entity in _idp_entities(soup):
        record = _entity_to_record(entity)
        if record is None:
            rejected += 1
            continue
        records.append(record)

    logger.record_loaded("federation", len(records))
    if rejected:
        logger.record_rejected("federation", rejected)
    logger.info(f"Got {len(records)} IdPs from federation.")
    return records


def load_federation(path: Path) -> List[IdpRecord]:
    return parse_metadata(read_text(path, "Federation metadata"))


def download_metadata(out_dir: Path, url: str = EDUGAIN_METADATA_URL) -> Path:
    return download_to(url, out_dir / METADATA_FILENAME, "edugain")


def _largest_logo(ui_info) -> Optional[str]:
    best, best_size = None, -1
    for logo in ui_info.find_all("Logo"):
        text = logo.get_text().strip()
        if not text:
            continue
        try:
            size = int(logo.get("height", 0)) * int(logo.get("width", 0))
        except ValueError:
            size = 0
        if size > best_size:
            best, best_size = text, size
    return best


def federation_to_json(xml_text: str) -> Dict[str, Dict[str, Any]]:
    """
    Convert federation metadata to the WAYF selector JSON shape:
    {entityID: {"DisplayName": {lang: text}, "Logo": url}}.
    Logo is the largest UIInfo logo and is omitted when there is none.
    """
    result: Dict[str, Dict[str, Any]] = {}
    for entity in _idp_entities(_soup(xml_text)):
        entity_id = (entity.get("entityID") or "").strip()
        if not entity_id:
            continue
        ui_info = entity.find("IDPSSODescriptor", recursive=False).find("UIInfo")
        info: Dict[str, Any] = {"DisplayName": {}}
        if ui_info is not None:
            for value in _localized(ui_info.find_all("DisplayName")):
                info["DisplayName"][value.lang or ""] = value.text
            logo = _largest_logo(ui_info)
            if logo:
                info["Logo"] = logo
        result[entity_id] = info
    logger.info(f"Got {len(result)} IdPs.")
    return result


def embed_logos(entries: Dict[str, Dict[str, Any]]) -> Dict[str, Dict[str, Any]]:
    """Replace logo URLs with base64 data URIs; failed downloads drop the logo."""
    result = {}
    for entity_id, info in entries.items():
        info = dict(info)
        logo = info.pop("Logo", None)
        if logo and logo.startswith("data:"):
            info["Logo"] = logo
        elif logo:
            try:
                resp = fetch(logo, "logo", timeout=15)
            except ValueError as e:
                logger.warning(f"HTTP error for {logo}", error=str(e))
            else:
                mime = (resp.headers.get("content-type") or "image/jpeg").split(";")[0].strip()
                encoded = base64.b64encode(resp.content).decode("ascii")
                info["Logo"] = f"data:{mime};base64,{encoded}"
        result[entity_id] = info
    return result
