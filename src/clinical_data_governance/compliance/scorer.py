"""Compliance score aggregation.

Turns pass/fail check results, or weighted component scores, into a 0-100
score and a status band.  Bands use inclusive lower bounds taken from the
catalog (95 / 85 / 75 by default):

==================  ==========
status              overall
==================  ==========
excellent           >= 95
good                >= 85
acceptable          >= 75
needsImprovement    < 75
==================  ==========

Scores are rounded half up, so 94.5 becomes 95.

Example
-------
>>> scorer = ComplianceScorer()
>>> checks = [ComplianceCheckResult(f"R{i}", True, 1.0, 1.0) for i in range(19)]
>>> checks.append(ComplianceCheckResult("R19", False, 0.0, 1.0))
>>> result = scorer.score(checks)
>>> result.overall, result.status.value
(95, 'excellent')
"""
from __future__ import annotations

import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum

from clinical_data_governance.catalog.loader import load_default_catalog
from clinical_data_governance.catalog.model import PolicyCatalog, ScoreThresholds


class ComplianceStatus(str, Enum):
    """Status band of an overall compliance score."""

    EXCELLENT = "excellent"
    GOOD = "good"
    ACCEPTABLE = "acceptable"
    NEEDS_IMPROVEMENT = "needsImprovement"


@dataclass(frozen=True)
class ComplianceCheckResult:
    """Outcome of one compliance check.

    Attributes
    ----------
    rule_id:
        Identifier of the rule that produced the check.
    passed:
        Whether the check passed.
    actual_value:
        Observed value (``nan`` when the metric was not supplied).
    threshold:
        Value the observation was compared against.
    """

    rule_id: str
    passed: bool
    actual_value: float
    threshold: float

    def to_dict(self) -> dict[str, object]:
        return {
            "rule_id": self.rule_id,
            "passed": self.passed,
            "actual_value": self.actual_value,
            "threshold": self.threshold,
        }


@dataclass(frozen=True)
class ComplianceScore:
    """Aggregate score.

    ``passed`` and ``total`` count checks for :meth:`ComplianceScorer.score`
    and are both zero for component scoring.
    """

    overall: int
    status: ComplianceStatus
    passed: int = 0
    total: int = 0


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero."""
    return int(Decimal(repr(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class ComplianceScorer:
    """Aggregates compliance checks into a score and status.

    Parameters
    ----------
    catalog:
        Source of the status thresholds and default component weights.
        Defaults to the bundled catalog.
    """

    def __init__(self, catalog: PolicyCatalog | None = None) -> None:
        catalog = catalog or load_default_catalog()
        self._thresholds: ScoreThresholds = catalog.thresholds
        self._weights: Mapping[str, float] = catalog.component_weights

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def score(self, checks: Iterable[ComplianceCheckResult]) -> ComplianceScore:
        """Score equally weighted checks.

        ``overall`` is ``round(100 * passed / total)``.  An empty input scores
        0 with status ``needsImprovement``.
        """
        results = list(checks)
        total = len(results)
        if total == 0:
            return ComplianceScore(overall=0, status=ComplianceStatus.NEEDS_IMPROVEMENT)
        passed = sum(1 for check in results if check.passed)
        # Integer form of round-half-up(100 * passed / total).
        overall = (200 * passed + total) // (2 * total)
        return ComplianceScore(
            overall=overall,
            status=self.status_for(overall),
            passed=passed,
            total=total,
        )

    def score_components(
        self,
        component_scores: Mapping[str, float],
        weights: Mapping[str, float] | None = None,
    ) -> ComplianceScore:
        """Score weighted components.

        ``overall`` is ``round(sum(weight_i * score_i))`` over the weight
        table; components without a score count as 0.  The result is clamped
        to 0..100.

        Parameters
        ----------
        component_scores:
            Per-component scores on a 0-100 scale.
        weights:
            Explicit weights.  The catalog's ``complianceScoring`` weights are
            used when omitted.
        """
        table = self._weights if weights is None else weights
        total = sum(weight * component_scores.get(name, 0.0) for name, weight in table.items())
        if math.isnan(total):
            total = 0.0
        overall = round_half_up(min(100.0, max(0.0, total)))
        return ComplianceScore(overall=overall, status=self.status_for(overall))

    def status_for(self, overall: float) -> ComplianceStatus:
        """Map a 0-100 score to its status band."""
        if overall >= self._thresholds.excellent:
            return ComplianceStatus.EXCELLENT
        if overall >= self._thresholds.good:
            return ComplianceStatus.GOOD
        if overall >= self._thresholds.acceptable:
            return ComplianceStatus.ACCEPTABLE
        return ComplianceStatus.NEEDS_IMPROVEMENT

    @property
    def thresholds(self) -> ScoreThresholds:
        return self._thresholds

    @property
    def weights(self) -> Mapping[str, float]:
        return self._weights
