"""Convenience API for clinical-data-governance: the 3-line quickstart.

Example
-------
::

    from clinical_data_governance import DataProtectionGovernor
    governor = DataProtectionGovernor()
    print(governor.redact("emiratesId", "784-1990-1234567-1"))

"""
from __future__ import annotations

import logging
import threading
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import NamedTuple

from clinical_data_governance.audit.logger import AuditLogger
from clinical_data_governance.catalog.loader import CatalogLoader, load_default_catalog
from clinical_data_governance.catalog.model import FieldDefinition, PolicyCatalog
from clinical_data_governance.catalog.store import CatalogStore
from clinical_data_governance.classification.field_classifier import FieldClassifier
from clinical_data_governance.compliance.checker import ComplianceChecker
from clinical_data_governance.compliance.scorer import (
    ComplianceCheckResult,
    ComplianceScore,
    ComplianceScorer,
)
from clinical_data_governance.config.loader import ConfigLoader, GovernanceConfig
from clinical_data_governance.redaction.engine import RedactionEngine, resolve_salt

logger = logging.getLogger(__name__)


class _Components(NamedTuple):
    catalog: PolicyCatalog
    classifier: FieldClassifier
    engine: RedactionEngine
    scorer: ComplianceScorer
    checker: ComplianceChecker


class DataProtectionGovernor:
    """Zero-config classification, redaction and compliance scoring.

    Wires a :class:`FieldClassifier`, :class:`RedactionEngine`,
    :class:`ComplianceScorer` and :class:`ComplianceChecker` over one catalog
    snapshot.  :meth:`reload` publishes a new snapshot and swaps the whole
    component bundle at once, so concurrent callers see either the old or
    the new tables, never a mix.

    Parameters
    ----------
    config:
        Runtime configuration.  Defaults apply when omitted.
    catalog:
        Catalog snapshot to start from.  Otherwise ``config.catalog_path``
        is loaded, or the bundled catalog is used.
    salt:
        Hashing salt.  Resolved from ``config.redaction.salt_env_var`` when
        omitted.
    audit_logger:
        Audit trail for :meth:`redact_record`.  Built from ``config.audit``
        when omitted and auditing is enabled.

    Example
    -------
    ::

        governor = DataProtectionGovernor()
        governor.classify("diagnosis").category   # Category.RESTRICTED
        governor.redact("phone", "0501234567")    # '050*******'
    """

    def __init__(
        self,
        config: GovernanceConfig | None = None,
        catalog: PolicyCatalog | None = None,
        salt: bytes | None = None,
        audit_logger: AuditLogger | None = None,
    ) -> None:
        self._config = config or GovernanceConfig()
        if catalog is None:
            if self._config.catalog_path is not None:
                catalog = CatalogLoader().load(self._config.catalog_path)
            else:
                catalog = load_default_catalog()
        self._store = CatalogStore(catalog)
        self._reload_lock = threading.Lock()
        self._salt = salt if salt is not None else resolve_salt(self._config.redaction.salt_env_var)
        if audit_logger is None and self._config.audit.enabled:
            audit_logger = AuditLogger(self._config.audit.log_path)
        self._audit = audit_logger
        self._components = self._build(catalog)

    @classmethod
    def from_config_file(cls, config_path: Path) -> "DataProtectionGovernor":
        """Build a governor from a ``governance.yaml`` (defaults if missing)."""
        return cls(config=ConfigLoader().load_or_defaults(config_path))

    # ------------------------------------------------------------------
    # Classification and redaction
    # ------------------------------------------------------------------

    def classify(self, field_name: str) -> FieldDefinition:
        """Classify ``field_name``.  See :meth:`FieldClassifier.classify`."""
        return self._components.classifier.classify(field_name)

    def redact(self, field_name: str, value: str) -> str:
        """Redact one value.  See :meth:`RedactionEngine.redact`."""
        return self._components.engine.redact(field_name, value)

    def redact_record(self, record: Mapping[str, object]) -> dict[str, object]:
        """Redact a whole record and audit the sensitive fields released.

        One audit event is written per call (when an audit logger is
        configured) naming the fields whose category requires auditing.
        Values are never written to the audit trail.
        """
        components = self._components
        redacted = components.engine.redact_record(record)

        if self._audit is not None:
            audited: dict[str, str] = {}
            for name in record:
                definition = components.catalog.fields.get(name)
                if definition is None:
                    continue
                if components.catalog.policy(definition.category).audit_required:
                    audited[name] = definition.category.value
            if audited:
                self._audit.log(
                    {
                        "event": "record_redacted",
                        "catalog_version": components.catalog.version,
                        "fields": sorted(audited),
                        "categories": audited,
                    }
                )
        return redacted

    # ------------------------------------------------------------------
    # Compliance
    # ------------------------------------------------------------------

    def score(self, checks: Iterable[ComplianceCheckResult]) -> ComplianceScore:
        """Score equally weighted checks.  See :meth:`ComplianceScorer.score`."""
        return self._components.scorer.score(checks)

    def score_components(
        self,
        component_scores: Mapping[str, float],
        weights: Mapping[str, float] | None = None,
    ) -> ComplianceScore:
        """Score weighted components.  See :meth:`ComplianceScorer.score_components`."""
        return self._components.scorer.score_components(component_scores, weights)

    def evaluate(
        self,
        metrics: Mapping[str, float],
        rule_set: str | None = None,
    ) -> list[ComplianceCheckResult]:
        """Run rule sets against ``metrics``.  See :meth:`ComplianceChecker.evaluate`."""
        return self._components.checker.evaluate(metrics, rule_set)

    def assess(self, metrics: Mapping[str, float], rule_set: str | None = None) -> ComplianceScore:
        """Evaluate ``metrics`` and score the resulting checks in one step."""
        components = self._components
        return components.scorer.score(components.checker.evaluate(metrics, rule_set))

    # ------------------------------------------------------------------
    # Catalog lifecycle
    # ------------------------------------------------------------------

    def reload(self, catalog_path: Path | None = None) -> PolicyCatalog:
        """Load a new catalog snapshot and swap every component to it.

        Parameters
        ----------
        catalog_path:
            Catalog file to load.  Falls back to ``config.catalog_path``,
            then to the bundled catalog.

        Raises
        ------
        CatalogValidationError
            When the new catalog is invalid; the current one stays active.
        """
        with self._reload_lock:
            fresh = self._store.reload(catalog_path or self._config.catalog_path)
            self._components = self._build(fresh)
        logger.info("Governor now serving catalog %s", fresh.version)
        return fresh

    def _build(self, catalog: PolicyCatalog) -> _Components:
        classifier = FieldClassifier(
            catalog,
            unknown_fields=self._config.classification.unknown_fields,
        )
        return _Components(
            catalog=catalog,
            classifier=classifier,
            engine=RedactionEngine(catalog, classifier=classifier, salt=self._salt),
            scorer=ComplianceScorer(catalog),
            checker=ComplianceChecker(catalog),
        )

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def catalog(self) -> PolicyCatalog:
        """The catalog snapshot currently in use."""
        return self._components.catalog

    @property
    def classifier(self) -> FieldClassifier:
        return self._components.classifier

    @property
    def engine(self) -> RedactionEngine:
        return self._components.engine

    @property
    def scorer(self) -> ComplianceScorer:
        return self._components.scorer

    @property
    def checker(self) -> ComplianceChecker:
        return self._components.checker

    @property
    def config(self) -> GovernanceConfig:
        return self._config

    def __repr__(self) -> str:
        return f"DataProtectionGovernor(catalog={self._components.catalog!r})"
