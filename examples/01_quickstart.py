#!/usr/bin/env python3
"""Example: Quickstart for clinical-data-governance

Classify the fields of a claim record, redact it for display, and keep
an audit trail of which sensitive fields were released.

Usage:
    CDG_REDACTION_SALT=demo python examples/01_quickstart.py

Requirements:
    pip install clinical-data-governance
"""
from __future__ import annotations

import tempfile
from pathlib import Path

import clinical_data_governance as cdg


def main() -> None:
    print(f"clinical-data-governance version: {cdg.__version__}")

    audit = cdg.AuditLogger(Path(tempfile.mkdtemp()) / "data_protection.jsonl")
    governor = cdg.DataProtectionGovernor(audit_logger=audit)
    print(f"Catalog {governor.catalog.version}: {len(governor.catalog.fields)} fields")

    claim = {
        "emiratesId": "784-1990-1234567-1",
        "fullName": "Aisha Al Mansoori",
        "mobileNumber": "0501234567",
        "email": "aisha@example.ae",
        "serviceCode": "17-25-3",
        "diagnosis": "J45.909",
        "priorAuthorizationNumber": "PA-2025-000123",
    }

    # Step 1: Classification
    print("\nClassification:")
    for name in claim:
        definition = governor.classify(name)
        print(f"  {name:<26} {definition.category.value:<13} {definition.pii_or_phi.value}")

    # Step 2: Redaction
    print("\nRedacted record:")
    for name, value in governor.redact_record(claim).items():
        print(f"  {name:<26} {value}")

    # Step 3: Fields with no rule are refused, not released
    try:
        governor.redact("nextOfKin", "Omar Hassan")
    except cdg.MissingRedactionRuleError as exc:
        print(f"\nRefused: {exc}")

    # Step 4: Audit trail
    for event in audit.read_all():
        print(f"\nAudit: {event['event']} fields={event['fields']}")


if __name__ == "__main__":
    main()
