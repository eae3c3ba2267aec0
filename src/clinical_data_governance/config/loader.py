"""Runtime configuration loader with Pydantic v2 validation.

Loads and validates a ``governance.yaml`` file into a typed
:class:`GovernanceConfig`.  The policy tables themselves live in the
catalog (see :mod:`clinical_data_governance.catalog`); this file only says
which catalog to use and how the library should behave around it.

Example
-------
::

    # governance.yaml
    catalog_path: ./policy/catalog.yaml
    classification:
      unknown_fields: error
    redaction:
      salt_env_var: CLINIC_REDACTION_SALT
    audit:
      enabled: true
      log_path: /var/log/clinic/data_protection.jsonl

>>> loader = ConfigLoader()
>>> config = loader.load(Path("governance.yaml"))
>>> config.classification.unknown_fields
'error'
"""
from __future__ import annotations

from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from clinical_data_governance.redaction.engine import DEFAULT_SALT_ENV_VAR


class ClassificationConfig(BaseModel):
    """Configuration for the field classifier."""

    model_config = {"extra": "allow"}

    unknown_fields: Literal["allow", "warn", "error"] = Field(default="warn")


class RedactionConfig(BaseModel):
    """Configuration for the redaction engine."""

    model_config = {"extra": "allow"}

    salt_env_var: str = Field(default=DEFAULT_SALT_ENV_VAR, min_length=1)


class AuditConfig(BaseModel):
    """Configuration for the redaction audit trail."""

    model_config = {"extra": "allow"}

    enabled: bool = Field(default=False)
    log_path: Path = Field(default=Path("./data_protection_audit.jsonl"))


class LoggingConfig(BaseModel):
    """Configuration for standard library logging."""

    model_config = {"extra": "allow"}

    level: str = Field(default="WARNING")

    @field_validator("level")
    @classmethod
    def validate_level(cls, value: str) -> str:
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = value.upper()
        if upper not in valid:
            raise ValueError(f"Unknown log level '{value}'. Valid: {sorted(valid)}")
        return upper


class GovernanceConfig(BaseModel):
    """Top-level runtime configuration schema.

    Loaded from ``governance.yaml``.  All sections are optional and fall
    back to defaults; ``catalog_path`` unset means the bundled catalog.
    """

    model_config = {"extra": "allow"}

    version: str = Field(default="1")
    catalog_path: Path | None = Field(default=None)
    classification: ClassificationConfig = Field(default_factory=ClassificationConfig)
    redaction: RedactionConfig = Field(default_factory=RedactionConfig)
    audit: AuditConfig = Field(default_factory=AuditConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


class ConfigLoader:
    """Loads and validates governance YAML configuration.

    Example
    -------
    >>> loader = ConfigLoader()
    >>> config = loader.load(Path("governance.yaml"))
    """

    def load(self, config_path: Path) -> GovernanceConfig:
        """Load and validate a governance YAML file.

        Relative ``catalog_path`` and ``audit.log_path`` values are resolved
        against the directory holding the config file.

        Raises
        ------
        FileNotFoundError:
            When the config file does not exist.
        ValueError:
            When the YAML content fails Pydantic validation.
        """
        if not config_path.exists():
            raise FileNotFoundError(f"Governance config not found: {config_path}")

        with config_path.open("r", encoding="utf-8") as fh:
            raw: dict[str, object] = yaml.safe_load(fh) or {}

        config = self._validate(raw)
        base = config_path.parent
        if config.catalog_path is not None and not config.catalog_path.is_absolute():
            config.catalog_path = base / config.catalog_path
        if not config.audit.log_path.is_absolute():
            config.audit.log_path = base / config.audit.log_path
        return config

    def load_string(self, yaml_content: str) -> GovernanceConfig:
        """Load and validate a YAML string directly."""
        raw: dict[str, object] = yaml.safe_load(yaml_content) or {}
        return self._validate(raw)

    def load_or_defaults(self, config_path: Path) -> GovernanceConfig:
        """Load ``config_path`` when it exists, otherwise return defaults."""
        return self.load(config_path) if config_path.exists() else self.defaults()

    def defaults(self) -> GovernanceConfig:
        """Return a default configuration with all defaults applied."""
        return GovernanceConfig()

    @staticmethod
    def _validate(raw: dict[str, object]) -> GovernanceConfig:
        try:
            return GovernanceConfig.model_validate(raw)
        except ValidationError as exc:
            raise ValueError(f"Invalid governance config: {exc}") from exc
