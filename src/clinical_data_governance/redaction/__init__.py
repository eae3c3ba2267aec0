"""Redaction package: masking strategies and the fail-closed redaction engine."""
from __future__ import annotations

from clinical_data_governance.catalog.model import AnonymizationRule, Strategy
from clinical_data_governance.redaction.engine import (
    DEFAULT_SALT_ENV_VAR,
    MissingRedactionRuleError,
    RedactionEngine,
    resolve_salt,
)

__all__ = [
    "AnonymizationRule",
    "DEFAULT_SALT_ENV_VAR",
    "MissingRedactionRuleError",
    "RedactionEngine",
    "Strategy",
    "resolve_salt",
]
