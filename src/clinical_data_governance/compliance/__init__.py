"""Compliance package: rule-set evaluation and score aggregation."""
from __future__ import annotations

from clinical_data_governance.compliance.checker import ComplianceChecker
from clinical_data_governance.compliance.scorer import (
    ComplianceCheckResult,
    ComplianceScore,
    ComplianceScorer,
    ComplianceStatus,
    round_half_up,
)

__all__ = [
    "ComplianceCheckResult",
    "ComplianceChecker",
    "ComplianceScore",
    "ComplianceScorer",
    "ComplianceStatus",
    "round_half_up",
]
