#!/usr/bin/env python3
"""Example: Compliance scoring

Evaluate operational metrics against the DAMAN rule set, score the
checks, and compute a weighted score from component scores.

Usage:
    python examples/02_compliance_scoring.py

Requirements:
    pip install clinical-data-governance
"""
from __future__ import annotations

import clinical_data_governance as cdg


def main() -> None:
    checker = cdg.ComplianceChecker()
    scorer = cdg.ComplianceScorer()

    # Step 1: Rule-set evaluation
    metrics = {
        "authorizationSuccessRate": 96.4,
        "documentationCompleteness": 97.1,
        "responseTimeHours": 30,
        "complianceScore": 92,
        "submissionDelayHours": 2,
        "submissionAgeDays": 12,
    }
    results = checker.evaluate(metrics, rule_set="daman")
    print("DAMAN checks:")
    for check in results:
        verdict = "PASS" if check.passed else "FAIL"
        print(f"  [{verdict}] {check.rule_id}: {check.actual_value:g} vs {check.threshold:g}")

    score = scorer.score(results)
    print(f"\nScore: {score.overall}/100 ({score.status.value}), {score.passed} of {score.total} passed")

    # Step 2: Required fields for a DOH submission
    record = {"patientId": "P-1", "emiratesId": "784-1990-1234567-1", "serviceType": "OP"}
    completeness = checker.check_required_fields("doh", record)
    print(f"\nDOH required fields: {completeness.actual_value:.0f}% present")

    # Step 3: Weighted component scoring
    components = {
        "authorizationSuccess": 96.0,
        "processingTime": 88.0,
        "documentation": 97.0,
        "integrationHealth": 99.0,
        "securityCompliance": 100.0,
    }
    weighted = scorer.score_components(components)
    print(f"\nWeighted score: {weighted.overall}/100 ({weighted.status.value})")


if __name__ == "__main__":
    main()
