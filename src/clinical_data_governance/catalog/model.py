"""Immutable record types for the data-protection policy catalog.

Every table the library works from (category policies, field definitions,
anonymization rules, scoring thresholds and compliance rule sets) is
represented here as a frozen dataclass.  Instances are built once by
:class:`~clinical_data_governance.catalog.loader.CatalogLoader` and never
mutated afterwards.

Example
-------
>>> rule = AnonymizationRule.parse("emiratesId", "mask-middle-7")
>>> rule.strategy, rule.n
(<Strategy.MASK_MIDDLE: 'mask-middle'>, 7)
>>> rule.spec
'mask-middle-7'
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Mapping


class Category(str, Enum):
    """Ordered sensitivity categories, lowest to highest."""

    PUBLIC = "public"
    INTERNAL = "internal"
    CONFIDENTIAL = "confidential"
    RESTRICTED = "restricted"
    TOP_SECRET = "topSecret"

    @property
    def level(self) -> int:
        return list(Category).index(self)

    def __ge__(self, other: "Category") -> bool:
        return self.level >= other.level

    def __gt__(self, other: "Category") -> bool:
        return self.level > other.level

    def __le__(self, other: "Category") -> bool:
        return self.level <= other.level

    def __lt__(self, other: "Category") -> bool:
        return self.level < other.level


class DataKind(str, Enum):
    """Whether a field carries personal (PII) or health (PHI) data."""

    PII = "pii"
    PHI = "phi"
    NONE = "none"


class Strategy(str, Enum):
    """Anonymization strategies understood by the redaction engine."""

    MASK_MIDDLE = "mask-middle"
    MASK_LAST = "mask-last"
    HASH_WITH_SALT = "hash-with-salt"
    HASH_WITH_TIMESTAMP = "hash-with-timestamp"
    PRESERVE_FORMAT = "preserve-format"
    MASK_LOCAL_PART = "mask-local-part"

    @property
    def takes_count(self) -> bool:
        return self in (Strategy.MASK_MIDDLE, Strategy.MASK_LAST)


_COUNTED_RULE = re.compile(r"^(mask-middle|mask-last)-(-?\d+)$")


@dataclass(frozen=True)
class CategoryPolicy:
    """Handling attributes attached to a :class:`Category`.

    Attributes
    ----------
    category:
        The category these attributes belong to.
    level:
        Numeric level, 0 (public) to 4 (topSecret).
    encryption_required:
        Whether values must be encrypted at rest.
    access_control:
        Access model label, e.g. ``"role-based"`` or ``"need-to-know"``.
    audit_required:
        Whether access to values must be written to the audit trail.
    restrictions:
        Data-loss-prevention restrictions, e.g. ``"printing"``.
    """

    category: Category
    level: int
    encryption_required: bool
    access_control: str
    audit_required: bool
    restrictions: tuple[str, ...] = ()


@dataclass(frozen=True)
class FieldDefinition:
    """Classification of a single named data field."""

    name: str
    category: Category
    pii_or_phi: DataKind = DataKind.NONE
    retention_days: int | None = None
    encryption_level: str | None = None

    @property
    def is_sensitive(self) -> bool:
        """True for confidential fields and above."""
        return self.category >= Category.CONFIDENTIAL


@dataclass(frozen=True)
class AnonymizationRule:
    """A masking rule bound to one field name.

    ``n`` is only set for the counted strategies (``mask-middle-N`` and
    ``mask-last-N``) and is always a positive integer.
    """

    field_name: str
    strategy: Strategy
    n: int | None = None

    @property
    def spec(self) -> str:
        """The rule in its table notation, e.g. ``"mask-last-7"``."""
        if self.n is not None:
            return f"{self.strategy.value}-{self.n}"
        return self.strategy.value

    @classmethod
    def parse(cls, field_name: str, spec: str) -> "AnonymizationRule":
        """Parse a rule string such as ``"mask-middle-7"``.

        Raises
        ------
        ValueError
            When the strategy is unknown or the count is not a positive
            integer.
        """
        spec = spec.strip()
        counted = _COUNTED_RULE.match(spec)
        if counted:
            count = int(counted.group(2))
            if count < 1:
                raise ValueError(
                    f"Rule {spec!r} for field {field_name!r}: N must be a positive integer."
                )
            return cls(field_name=field_name, strategy=Strategy(counted.group(1)), n=count)

        try:
            strategy = Strategy(spec)
        except ValueError:
            raise ValueError(
                f"Unknown anonymization strategy {spec!r} for field {field_name!r}."
            ) from None
        if strategy.takes_count:
            raise ValueError(f"Rule {spec!r} for field {field_name!r} is missing its N.")
        return cls(field_name=field_name, strategy=strategy)


@dataclass(frozen=True)
class ComplianceRule:
    """A single numeric check inside a regulatory rule set."""

    rule_id: str
    rule_set: str
    metric: str
    threshold: float
    comparison: str = ">="
    description: str = ""
    severity: str = "medium"

    def passes(self, actual: float) -> bool:
        if self.comparison == "<=":
            return actual <= self.threshold
        return actual >= self.threshold


@dataclass(frozen=True)
class RuleSet:
    """A named collection of compliance rules, e.g. ``"daman"``."""

    name: str
    description: str = ""
    rules: tuple[ComplianceRule, ...] = ()
    required_fields: tuple[str, ...] = ()


@dataclass(frozen=True)
class ScoreThresholds:
    """Inclusive lower bounds of the compliance status bands."""

    excellent: float = 95.0
    good: float = 85.0
    acceptable: float = 75.0


@dataclass(frozen=True, eq=False)
class PolicyCatalog:
    """One immutable snapshot of every policy table.

    The mapping attributes are read-only views; replacing the policy
    means building a new catalog, never editing this one.
    """

    version: str
    categories: Mapping[Category, CategoryPolicy]
    fields: Mapping[str, FieldDefinition]
    rules: Mapping[str, AnonymizationRule]
    thresholds: ScoreThresholds = field(default_factory=ScoreThresholds)
    component_weights: Mapping[str, float] = field(default_factory=dict)
    rule_sets: Mapping[str, RuleSet] = field(default_factory=dict)
    retention: Mapping[str, int] = field(default_factory=dict)
    source: str | None = None

    def __post_init__(self) -> None:
        for name in ("categories", "fields", "rules", "component_weights", "rule_sets", "retention"):
            value = getattr(self, name)
            if not isinstance(value, MappingProxyType):
                object.__setattr__(self, name, MappingProxyType(dict(value)))

    def policy(self, category: Category) -> CategoryPolicy:
        return self.categories[category]

    def __repr__(self) -> str:
        return (
            f"PolicyCatalog(version={self.version!r}, fields={len(self.fields)}, "
            f"rules={len(self.rules)}, rule_sets={sorted(self.rule_sets)!r})"
        )
