"""Field classification package.

Resolves data field names to sensitivity categories, PII/PHI kind and
handling policy.
"""
from __future__ import annotations

from clinical_data_governance.catalog.model import (
    Category,
    CategoryPolicy,
    DataKind,
    FieldDefinition,
)
from clinical_data_governance.classification.field_classifier import (
    FieldClassifier,
    UnknownFieldError,
    UnknownFieldPolicy,
    UnknownFieldWarning,
)

__all__ = [
    "Category",
    "CategoryPolicy",
    "DataKind",
    "FieldClassifier",
    "FieldDefinition",
    "UnknownFieldError",
    "UnknownFieldPolicy",
    "UnknownFieldWarning",
]
