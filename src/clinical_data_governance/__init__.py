"""clinical-data-governance: field classification, redaction and compliance scoring
for healthcare records.

Public API
----------
The stable public surface is everything exported from this module.
Anything inside submodules not re-exported here is considered private
and may change without notice.

Example
-------
>>> import clinical_data_governance as cdg
>>> cdg.__version__
'0.1.0'
>>> governor = cdg.DataProtectionGovernor(salt=b"example")
>>> governor.classify("emiratesId").category
<Category.RESTRICTED: 'restricted'>
>>> governor.redact("emiratesId", "784-1990-1234567-1")
'784-1*******4567-1'
"""
from __future__ import annotations

__version__: str = "0.1.0"

from clinical_data_governance.convenience import DataProtectionGovernor

# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------
from clinical_data_governance.catalog.loader import (
    CatalogLoader,
    CatalogValidationError,
    load_default_catalog,
)
from clinical_data_governance.catalog.model import (
    AnonymizationRule,
    Category,
    CategoryPolicy,
    ComplianceRule,
    DataKind,
    FieldDefinition,
    PolicyCatalog,
    RuleSet,
    ScoreThresholds,
    Strategy,
)
from clinical_data_governance.catalog.store import CatalogStore

# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------
from clinical_data_governance.classification.field_classifier import (
    FieldClassifier,
    UnknownFieldError,
    UnknownFieldPolicy,
    UnknownFieldWarning,
)

# ---------------------------------------------------------------------------
# Redaction
# ---------------------------------------------------------------------------
from clinical_data_governance.redaction.engine import (
    MissingRedactionRuleError,
    RedactionEngine,
)

# ---------------------------------------------------------------------------
# Compliance
# ---------------------------------------------------------------------------
from clinical_data_governance.compliance.checker import ComplianceChecker
from clinical_data_governance.compliance.scorer import (
    ComplianceCheckResult,
    ComplianceScore,
    ComplianceScorer,
    ComplianceStatus,
)

# ---------------------------------------------------------------------------
# Configuration and audit
# ---------------------------------------------------------------------------
from clinical_data_governance.config.loader import ConfigLoader, GovernanceConfig
from clinical_data_governance.audit.logger import AuditLogger

__all__ = [
    "__version__",
    "DataProtectionGovernor",
    # Catalog
    "AnonymizationRule",
    "CatalogLoader",
    "CatalogStore",
    "CatalogValidationError",
    "Category",
    "CategoryPolicy",
    "ComplianceRule",
    "DataKind",
    "FieldDefinition",
    "PolicyCatalog",
    "RuleSet",
    "ScoreThresholds",
    "Strategy",
    "load_default_catalog",
    # Classification
    "FieldClassifier",
    "UnknownFieldError",
    "UnknownFieldPolicy",
    "UnknownFieldWarning",
    # Redaction
    "MissingRedactionRuleError",
    "RedactionEngine",
    # Compliance
    "ComplianceCheckResult",
    "ComplianceChecker",
    "ComplianceScore",
    "ComplianceScorer",
    "ComplianceStatus",
    # Configuration and audit
    "AuditLogger",
    "ConfigLoader",
    "GovernanceConfig",
]
