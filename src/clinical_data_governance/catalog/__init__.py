"""Policy catalog package.

Declarative tables (categories, field definitions, anonymization rules,
scoring weights and regulatory rule sets) loaded once from YAML into an
immutable :class:`PolicyCatalog` snapshot.
"""
from __future__ import annotations

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

__all__ = [
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
]
