"""Audit trail package: append-only JSONL logging of redaction events."""
from __future__ import annotations

from clinical_data_governance.audit.logger import AuditLogger

__all__ = ["AuditLogger"]
