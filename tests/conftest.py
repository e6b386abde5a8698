"""
Pytest configuration and shared fixtures.
"""

import os
import tempfile

# Keep log files out of the working tree; read when rorlink creates its logger.
os.environ.setdefault("RORLINK_LOG_DIR", tempfile.mkdtemp(prefix="rorlink-logs-"))

import json
from pathlib import Path
from typing import Any, Dict, List

import pytest

from rorlink.matching.records import CrosswalkPair, IdpRecord, LocalizedText, OrgRecord


def make_idp(entity_id: str, org_name=None, org_url=None, lang="en") -> IdpRecord:
    """IdP with a single organization display name / URL in one language."""
    return IdpRecord(
        entity_id=entity_id,
        organization_display_names=(LocalizedText(org_name, lang),) if org_name else (),
        organization_urls=(LocalizedText(org_url, lang),) if org_url else (),
    )


def make_org(org_id: str, name: str = "", aliases=(), links=()) -> OrgRecord:
    record, _ = OrgRecord.from_raw(id=org_id, name=name, aliases=aliases, links=links)
    return record


@pytest.fixture
def sample_metadata_xml() -> str:
    """Federation metadata with two IdPs and one SP."""
    return """<?xml version="1.0" encoding="UTF-8"?>
<md:EntitiesDescriptor xmlns:md="urn:oasis:names:tc:SAML:2.0:metadata"
    xmlns:mdui="urn:oasis:names:tc:SAML:metadata:ui"
    xmlns:shibmd="urn:mace:shibboleth:metadata:1.0">
  <md:EntityDescriptor entityID="https://idp.example.edu/idp/shibboleth">
    <md:IDPSSODescriptor protocolSupportEnumeration="urn:oasis:names:tc:SAML:2.0:protocol">
      <md:Extensions>
        <shibmd:Scope regexp="false">example.edu</shibmd:Scope>
        <mdui:UIInfo>
          <mdui:DisplayName xml:lang="de">Beispiel Universität</mdui:DisplayName>
          <mdui:DisplayName xml:lang="en">Example University</mdui:DisplayName>
          <mdui:Logo height="16" width="16">https://idp.example.edu/small.png</mdui:Logo>
          <mdui:Logo height="80" width="120">https://idp.example.edu/large.png</mdui:Logo>
        </mdui:UIInfo>
      </md:Extensions>
    </md:IDPSSODescriptor>
    <md:Organization>
      <md:OrganizationName xml:lang="en">example-university</md:OrganizationName>
      <md:OrganizationDisplayName xml:lang="de">Beispiel Universität</md:OrganizationDisplayName>
      <md:OrganizationDisplayName xml:lang="en">Example University</md:OrganizationDisplayName>
      <md:OrganizationURL xml:lang="en">https://www.example.edu/</md:OrganizationURL>
    </md:Organization>
  </md:EntityDescriptor>
  <md:EntityDescriptor entityID="https://login.other.org/saml">
    <md:IDPSSODescriptor protocolSupportEnumeration="urn:oasis:names:tc:SAML:2.0:protocol">
      <md:Extensions>
        <mdui:UIInfo>
          <mdui:DisplayName xml:lang="fr">Autre Institut</mdui:DisplayName>
        </mdui:UIInfo>
      </md:Extensions>
    </md:IDPSSODescriptor>
    <md:Organization>
      <md:OrganizationDisplayName xml:lang="fr">Autre Institut</md:OrganizationDisplayName>
      <md:OrganizationURL xml:lang="fr">not a url</md:OrganizationURL>
    </md:Organization>
  </md:EntityDescriptor>
  <md:EntityDescriptor entityID="https://sp.example.edu/shibboleth">
    <md:SPSSODescriptor protocolSupportEnumeration="urn:oasis:names:tc:SAML:2.0:protocol"/>
    <md:Organization>
      <md:OrganizationDisplayName xml:lang="en">Example University</md:OrganizationDisplayName>
    </md:Organization>
  </md:EntityDescriptor>
</md:EntitiesDescriptor>
"""


@pytest.fixture
def sample_ror_items() -> List[Dict[str, Any]]:
    """ROR v1 records."""
    return [
        {
            "id": "https://ror.org/01example",
            "name": "Example University",
            "aliases": ["EU"],
            "links": ["https://www.example.edu"],
            "status": "active",
        },
        {
            "id": "https://ror.org/02other",
            "name": "Other Institute",
            "aliases": [],
            "links": ["http://[broken", "https://other.org"],
        },
        {
            "id": "https://ror.org/03nolinks",
            "name": "No Links Lab",
            "aliases": [],
            "links": [],
        },
    ]


@pytest.fixture
def sample_wikidata_payload() -> Dict[str, Any]:
    """SPARQL JSON result of the ROR id / API endpoint query."""
    return {
        "head": {"vars": ["rorid", "api"]},
        "results": {
            "bindings": [
                {
                    "rorid": {"type": "literal", "value": "02other"},
                    "api": {"type": "literal", "value": "https://login.other.org/saml"},
                },
                {
                    "rorid": {"type": "literal", "value": "02other"},
                    "api": {"type": "literal", "value": "https://login.other.org/saml"},
                },
                {
                    "rorid": {"type": "literal", "value": "04missingapi"},
                },
            ]
        },
    }


@pytest.fixture
def data_dir(tmp_path, sample_metadata_xml, sample_ror_items, sample_wikidata_payload) -> Path:
    """Directory with the three input files under their default names."""
    d = tmp_path / "data"
    d.mkdir()
    (d / "edugain-v1.xml").write_text(sample_metadata_xml, encoding="utf-8")
    (d / "ror.json").write_text(json.dumps(sample_ror_items), encoding="utf-8")
    (d / "wikidata-ror-api.json").write_text(json.dumps(sample_wikidata_payload), encoding="utf-8")
    return d


@pytest.fixture
def crosswalk_pair() -> CrosswalkPair:
    return CrosswalkPair(org_id="r1", idp_entity_id="B")
