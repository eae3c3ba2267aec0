"""Shared fixtures: a small, fully valid catalog and components built on it."""
from __future__ import annotations

import pytest

from clinical_data_governance.catalog.loader import CatalogLoader
from clinical_data_governance.catalog.model import PolicyCatalog


def _category(level: int, access: str, restrictions: list[str]) -> dict[str, object]:
    return {
        "level": level,
        "encryption_required": level > 0,
        "access_control": access,
        "audit_required": level > 0,
        "restrictions": restrictions,
    }


@pytest.fixture()
def catalog_dict() -> dict[str, object]:
    """A fresh, valid catalog document; tests may mutate it freely."""
    return {
        "version": "test-1",
        "categories": {
            "public": _category(0, "public", []),
            "internal": _category(1, "authenticated", ["external_sharing"]),
            "confidential": _category(2, "role-based", ["external_sharing", "printing"]),
            "restricted": _category(3, "need-to-know", ["external_sharing", "printing", "copying"]),
            "topSecret": _category(4, "compartmentalized", ["external_sharing", "printing", "copying", "screenshots"]),
        },
        "retention": {"pii": 100, "phi": 200},
        "field_groups": [
            {"name": "open", "kind": "none", "category": "public", "fields": ["clinicName"]},
            {"name": "staff", "kind": "pii", "category": "internal", "fields": ["staffRole"]},
            {"name": "contacts", "kind": "pii", "category": "confidential", "fields": ["nextOfKin"]},
            {
                "name": "phones",
                "kind": "pii",
                "category": "confidential",
                "anonymization": "mask-last-4",
                "fields": ["phone"],
            },
            {
                "name": "emails",
                "kind": "pii",
                "category": "confidential",
                "anonymization": "mask-local-part",
                "fields": ["email"],
            },
            {
                "name": "codes",
                "kind": "pii",
                "category": "confidential",
                "anonymization": "preserve-format",
                "fields": ["serviceCode"],
            },
            {
                "name": "identifiers",
                "kind": "pii",
                "category": "restricted",
                "anonymization": "mask-middle-3",
                "encryption_level": "enhanced",
                "fields": ["memberId", "nationalId"],
            },
            {
                "name": "references",
                "kind": "pii",
                "category": "restricted",
                "anonymization": "hash-with-timestamp",
                "fields": ["authorizationReference"],
            },
            {
                "name": "genetics",
                "kind": "phi",
                "category": "topSecret",
                "anonymization": "hash-with-salt",
                "retention_days": 365,
                "fields": ["genome"],
            },
        ],
        "anonymization_rules": {"nationalId": "mask-middle-7"},
        "scoring": {
            "weights": {"uptime": 0.5, "documentation": 0.3, "security": 0.2},
            "thresholds": {"excellent": 95, "good": 85, "acceptable": 75},
        },
        "rule_sets": {
            "demo": {
                "description": "Demo rule set",
                "required_fields": ["memberId", "phone"],
                "rules": [
                    {"id": "DEMO-1", "metric": "uptime", "threshold": 99},
                    {"id": "DEMO-2", "metric": "latencyMs", "comparison": "<=", "threshold": 200},
                ],
            },
            "other": {
                "rules": [{"id": "OTHER-1", "metric": "coverage", "threshold": 100, "severity": "high"}],
            },
        },
    }


@pytest.fixture()
def small_catalog(catalog_dict: dict[str, object]) -> PolicyCatalog:
    return CatalogLoader().load_dict(catalog_dict, source="<test>")
