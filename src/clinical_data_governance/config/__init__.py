"""Runtime configuration package."""
from __future__ import annotations

from clinical_data_governance.config.loader import (
    AuditConfig,
    ClassificationConfig,
    ConfigLoader,
    GovernanceConfig,
    LoggingConfig,
    RedactionConfig,
)

__all__ = [
    "AuditConfig",
    "ClassificationConfig",
    "ConfigLoader",
    "GovernanceConfig",
    "LoggingConfig",
    "RedactionConfig",
]
