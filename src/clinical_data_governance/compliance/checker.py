"""Regulatory rule-set checker.

Evaluates observed metrics against the catalog's named rule sets (DOH,
DAMAN, JAWDA, HIPAA) and produces :class:`ComplianceCheckResult` records
ready for :class:`~clinical_data_governance.compliance.scorer.ComplianceScorer`.
Also checks record completeness against a rule set's required fields and
record age against a field's retention period.

Example
-------
>>> checker = ComplianceChecker()
>>> results = checker.evaluate({"authorizationSuccessRate": 97.0}, rule_set="daman")
>>> results[0].rule_id, results[0].passed
('DAMAN-001', True)
"""
from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from datetime import datetime, timezone

from clinical_data_governance.catalog.loader import load_default_catalog
from clinical_data_governance.catalog.model import ComplianceRule, PolicyCatalog
from clinical_data_governance.compliance.scorer import ComplianceCheckResult

logger = logging.getLogger(__name__)


class ComplianceChecker:
    """Runs catalog rule sets, plus any custom rules, against metrics.

    Parameters
    ----------
    catalog:
        Snapshot providing rule sets and field retention periods.
        Defaults to the bundled catalog.
    """

    def __init__(self, catalog: PolicyCatalog | None = None) -> None:
        self._catalog = catalog or load_default_catalog()
        self._custom_rules: list[ComplianceRule] = []

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def add_rule(self, rule: ComplianceRule) -> None:
        """Register an extra rule evaluated alongside its ``rule_set``."""
        self._custom_rules.append(rule)
        logger.debug("Registered compliance rule %r in rule set %r", rule.rule_id, rule.rule_set)

    def rule_sets(self) -> list[str]:
        """Return the identifiers of every known rule set, sorted."""
        names = set(self._catalog.rule_sets)
        names.update(rule.rule_set for rule in self._custom_rules)
        return sorted(names)

    def rules(self, rule_set: str | None = None) -> list[ComplianceRule]:
        """Return the rules of ``rule_set``, or of every rule set.

        Raises
        ------
        KeyError
            When ``rule_set`` is not known.
        """
        if rule_set is not None and rule_set not in self.rule_sets():
            raise KeyError(f"Unknown rule set {rule_set!r}; known: {self.rule_sets()}")

        selected: list[ComplianceRule] = []
        for name, definition in sorted(self._catalog.rule_sets.items()):
            if rule_set is None or name == rule_set:
                selected.extend(definition.rules)
        selected.extend(
            rule for rule in self._custom_rules if rule_set is None or rule.rule_set == rule_set
        )
        return selected

    # ------------------------------------------------------------------
    # Checks
    # ------------------------------------------------------------------

    def evaluate(
        self,
        metrics: Mapping[str, float],
        rule_set: str | None = None,
    ) -> list[ComplianceCheckResult]:
        """Evaluate ``metrics`` against one rule set, or all of them.

        A rule whose metric is absent from ``metrics`` fails with an
        ``actual_value`` of ``nan``.

        Parameters
        ----------
        metrics:
            Observed values keyed by metric name.
        rule_set:
            Rule set identifier, e.g. ``"daman"``.  All rule sets when omitted.

        Returns
        -------
        list[ComplianceCheckResult]
            One result per rule, in rule-set then declaration order.
        """
        results: list[ComplianceCheckResult] = []
        for rule in self.rules(rule_set):
            actual = metrics.get(rule.metric)
            if actual is None:
                logger.warning(
                    "Metric %r for rule %r was not supplied; recording a failed check.",
                    rule.metric,
                    rule.rule_id,
                )
                results.append(
                    ComplianceCheckResult(
                        rule_id=rule.rule_id,
                        passed=False,
                        actual_value=math.nan,
                        threshold=rule.threshold,
                    )
                )
                continue

            try:
                actual = float(actual)
            except (TypeError, ValueError):
                logger.warning(
                    "Metric %r for rule %r is not numeric (%r); recording a failed check.",
                    rule.metric,
                    rule.rule_id,
                    actual,
                )
                actual = math.nan
            results.append(
                ComplianceCheckResult(
                    rule_id=rule.rule_id,
                    passed=not math.isnan(actual) and rule.passes(actual),
                    actual_value=actual,
                    threshold=rule.threshold,
                )
            )
        return results

    def check_required_fields(
        self,
        rule_set: str,
        record: Mapping[str, object],
    ) -> ComplianceCheckResult:
        """Check that ``record`` carries every field ``rule_set`` requires.

        ``actual_value`` is the percentage of required fields that are present
        and non-empty; the check passes only at 100.

        Raises
        ------
        KeyError
            When ``rule_set`` is not in the catalog.
        """
        definition = self._catalog.rule_sets.get(rule_set)
        if definition is None:
            raise KeyError(f"Unknown rule set {rule_set!r}; known: {sorted(self._catalog.rule_sets)}")

        required = definition.required_fields
        rule_id = f"{rule_set.upper()}-REQUIRED-FIELDS"
        if not required:
            return ComplianceCheckResult(rule_id=rule_id, passed=True, actual_value=100.0, threshold=100.0)

        present = [name for name in required if record.get(name) not in (None, "", [], {})]
        missing = sorted(set(required) - set(present))
        if missing:
            logger.debug("Rule set %r: record is missing %s", rule_set, missing)

        completeness = 100.0 * len(present) / len(required)
        return ComplianceCheckResult(
            rule_id=rule_id,
            passed=not missing,
            actual_value=completeness,
            threshold=100.0,
        )

    def check_retention(
        self,
        field_name: str,
        created_at: datetime,
        now: datetime | None = None,
    ) -> ComplianceCheckResult:
        """Verify that a value of ``field_name`` is within its retention period.

        Parameters
        ----------
        field_name:
            Catalog field whose retention period applies.
        created_at:
            When the value was recorded.  Naive datetimes are taken as UTC.
        now:
            Reference time; the current UTC time when omitted.

        Raises
        ------
        KeyError
            When the field has no retention period in the catalog.
        """
        definition = self._catalog.fields.get(field_name)
        if definition is None or definition.retention_days is None:
            raise KeyError(f"No retention period for field {field_name!r}")

        now = now or datetime.now(tz=timezone.utc)
        now_utc = now.astimezone(timezone.utc) if now.tzinfo else now.replace(tzinfo=timezone.utc)
        created_utc = (
            created_at.astimezone(timezone.utc)
            if created_at.tzinfo
            else created_at.replace(tzinfo=timezone.utc)
        )
        age_days = (now_utc - created_utc).days

        return ComplianceCheckResult(
            rule_id=f"RET-{field_name}",
            passed=age_days <= definition.retention_days,
            actual_value=float(age_days),
            threshold=float(definition.retention_days),
        )
