"""Pydantic v2 schema for the policy catalog YAML document.

The document is validated structurally here; cross-table invariants
(one category per field, a rule for every restricted field, parseable
rules) are enforced by :class:`~clinical_data_governance.catalog.loader.CatalogLoader`.

Schema
------
::

    version: "2025.1"
    categories:
      public: {level: 0, encryption_required: false, access_control: public, audit_required: false}
      ...
    retention:
      pii: 2555
      phi: 3650
    field_groups:
      - name: national-identifiers
        kind: pii
        category: restricted
        anonymization: mask-middle-4
        encryption_level: enhanced
        fields: [emiratesId, passportNumber]
    anonymization_rules:
      emiratesId: mask-middle-7
    scoring:
      weights: {authorizationSuccess: 0.25, ...}
      thresholds: {excellent: 95, good: 85, acceptable: 75}
    rule_sets:
      daman:
        required_fields: [priorAuthorizationNumber]
        rules:
          - id: DAMAN-001
            metric: authorizationSuccessRate
            threshold: 95
"""
from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator

CategoryName = Literal["public", "internal", "confidential", "restricted", "topSecret"]


class CategoryModel(BaseModel):
    """Attributes of one sensitivity category."""

    model_config = {"extra": "forbid"}

    level: int = Field(ge=0, le=4)
    encryption_required: bool
    access_control: str
    audit_required: bool
    restrictions: list[str] = Field(default_factory=list)


class FieldGroupModel(BaseModel):
    """A group of fields sharing kind, category and default handling."""

    model_config = {"extra": "forbid"}

    name: str
    kind: Literal["pii", "phi", "none"]
    category: CategoryName
    anonymization: str | None = Field(default=None)
    retention_days: int | None = Field(default=None, ge=1)
    encryption_level: Literal["standard", "enhanced", "maximum", "ultraSecure"] | None = Field(default=None)
    fields: list[str] = Field(min_length=1)


class ComplianceRuleModel(BaseModel):
    """A numeric compliance rule."""

    model_config = {"extra": "forbid"}

    id: str
    metric: str
    threshold: float
    comparison: Literal[">=", "<="] = Field(default=">=")
    description: str = Field(default="")
    severity: Literal["low", "medium", "high", "critical"] = Field(default="medium")


class RuleSetModel(BaseModel):
    """A named regulatory rule set."""

    model_config = {"extra": "forbid"}

    description: str = Field(default="")
    required_fields: list[str] = Field(default_factory=list)
    rules: list[ComplianceRuleModel] = Field(default_factory=list)

    @field_validator("rules")
    @classmethod
    def unique_rule_ids(cls, rules: list[ComplianceRuleModel]) -> list[ComplianceRuleModel]:
        seen: set[str] = set()
        for rule in rules:
            if rule.id in seen:
                raise ValueError(f"Duplicate rule id '{rule.id}'")
            seen.add(rule.id)
        return rules


class ThresholdsModel(BaseModel):
    """Inclusive lower bounds of the status bands."""

    model_config = {"extra": "forbid"}

    excellent: float = Field(default=95.0, ge=0, le=100)
    good: float = Field(default=85.0, ge=0, le=100)
    acceptable: float = Field(default=75.0, ge=0, le=100)

    @model_validator(mode="after")
    def strictly_descending(self) -> "ThresholdsModel":
        if not self.excellent > self.good > self.acceptable:
            raise ValueError(
                "Score thresholds must be strictly descending: "
                f"excellent={self.excellent}, good={self.good}, acceptable={self.acceptable}"
            )
        return self


class ScoringModel(BaseModel):
    """Component weights and status thresholds."""

    model_config = {"extra": "forbid"}

    weights: dict[str, float] = Field(default_factory=dict)
    thresholds: ThresholdsModel = Field(default_factory=ThresholdsModel)

    @field_validator("weights")
    @classmethod
    def weights_form_distribution(cls, weights: dict[str, float]) -> dict[str, float]:
        if not weights:
            return weights
        for name, weight in weights.items():
            if weight < 0:
                raise ValueError(f"Weight for component '{name}' must not be negative")
        total = sum(weights.values())
        if abs(total - 1.0) > 1e-6:
            raise ValueError(f"Component weights must sum to 1.0, got {total:.4f}")
        return weights


class CatalogDocument(BaseModel):
    """Top-level catalog document."""

    model_config = {"extra": "forbid"}

    version: str = Field(default="1")
    categories: dict[CategoryName, CategoryModel]
    retention: dict[str, int] = Field(default_factory=dict)
    field_groups: list[FieldGroupModel] = Field(default_factory=list)
    anonymization_rules: dict[str, str] = Field(default_factory=dict)
    scoring: ScoringModel = Field(default_factory=ScoringModel)
    rule_sets: dict[str, RuleSetModel] = Field(default_factory=dict)

    @field_validator("categories")
    @classmethod
    def all_categories_present(
        cls, categories: dict[str, CategoryModel]
    ) -> dict[str, CategoryModel]:
        expected = {"public", "internal", "confidential", "restricted", "topSecret"}
        missing = expected - set(categories)
        if missing:
            raise ValueError(f"Missing category definitions: {sorted(missing)}")
        return categories

    @field_validator("retention")
    @classmethod
    def positive_retention(cls, retention: dict[str, int]) -> dict[str, int]:
        for name, days in retention.items():
            if days < 1:
                raise ValueError(f"Retention period '{name}' must be at least 1 day")
        return retention
