"""Policy catalog loader.

Reads the catalog YAML (bundled or user-supplied), validates it against
:mod:`~clinical_data_governance.catalog.schema`, checks the cross-table
invariants and returns an immutable :class:`PolicyCatalog`.

Invariants checked at load time
-------------------------------
- every field belongs to exactly one field group;
- every anonymization rule parses, uses a positive N and names a known field;
- every restricted or topSecret field has exactly one anonymization rule.

Example
-------
>>> catalog = load_default_catalog()
>>> catalog.fields["emiratesId"].category
<Category.RESTRICTED: 'restricted'>
"""
from __future__ import annotations

import functools
import importlib.resources
import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

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
from clinical_data_governance.catalog.schema import CatalogDocument

logger = logging.getLogger(__name__)

_DEFAULT_RETENTION_DAYS = 2555
_BUNDLED_PACKAGE = "clinical_data_governance.data"
_BUNDLED_FILE = "catalog.yaml"

# Strategies that can hand back the input unchanged are not allowed on
# restricted and topSecret fields.
_MAY_RETURN_INPUT = frozenset({Strategy.PRESERVE_FORMAT, Strategy.MASK_LOCAL_PART})


class CatalogValidationError(ValueError):
    """Raised when a catalog document is malformed or violates an invariant.

    Attributes
    ----------
    source:
        The file the catalog was read from, if known.
    problems:
        Individual problems found; the message lists them all.
    """

    def __init__(self, problems: list[str], source: str | None = None) -> None:
        self.source = source
        self.problems = list(problems)
        prefix = f"[{source}] " if source else ""
        super().__init__(prefix + "; ".join(self.problems))


class CatalogLoader:
    """Builds :class:`PolicyCatalog` snapshots from YAML or dicts."""

    def load(self, catalog_path: str | Path) -> PolicyCatalog:
        """Load and validate a catalog YAML file.

        Raises
        ------
        FileNotFoundError
            When the file does not exist.
        CatalogValidationError
            When the content is malformed or violates an invariant.
        """
        catalog_path = Path(catalog_path)
        if not catalog_path.exists():
            raise FileNotFoundError(f"Policy catalog not found: {catalog_path}")
        text = catalog_path.read_text(encoding="utf-8")
        return self.load_string(text, source=str(catalog_path))

    def load_string(self, yaml_content: str, source: str | None = None) -> PolicyCatalog:
        """Load and validate a catalog from raw YAML text."""
        try:
            raw = yaml.safe_load(yaml_content) or {}
        except yaml.YAMLError as exc:
            raise CatalogValidationError([f"Invalid YAML: {exc}"], source=source) from exc
        if not isinstance(raw, dict):
            raise CatalogValidationError(["Catalog root must be a mapping"], source=source)
        return self.load_dict(raw, source=source)

    def load_dict(self, raw: dict[str, object], source: str | None = None) -> PolicyCatalog:
        """Validate a catalog already parsed into a dict."""
        try:
            document = CatalogDocument.model_validate(raw)
        except ValidationError as exc:
            problems = [
                f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
                for err in exc.errors()
            ]
            raise CatalogValidationError(problems, source=source) from exc

        catalog = self._build(document, source)
        logger.info(
            "Loaded policy catalog %s (%d fields, %d rules) from %s",
            catalog.version,
            len(catalog.fields),
            len(catalog.rules),
            source or "<dict>",
        )
        return catalog

    def load_bundled(self) -> PolicyCatalog:
        """Load the catalog shipped inside the package."""
        ref = importlib.resources.files(_BUNDLED_PACKAGE).joinpath(_BUNDLED_FILE)
        return self.load_string(ref.read_text(encoding="utf-8"), source=f"<bundled:{_BUNDLED_FILE}>")

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _build(self, document: CatalogDocument, source: str | None) -> PolicyCatalog:
        problems: list[str] = []

        categories = {
            Category(name): CategoryPolicy(
                category=Category(name),
                level=model.level,
                encryption_required=model.encryption_required,
                access_control=model.access_control,
                audit_required=model.audit_required,
                restrictions=tuple(model.restrictions),
            )
            for name, model in document.categories.items()
        }
        for category, policy in categories.items():
            if policy.level != category.level:
                problems.append(
                    f"categories.{category.value}: level {policy.level} does not match "
                    f"its rank {category.level}"
                )

        fields: dict[str, FieldDefinition] = {}
        owner: dict[str, str] = {}
        rule_specs: dict[str, str] = {}
        for group in document.field_groups:
            kind = DataKind(group.kind)
            retention = (
                group.retention_days
                or document.retention.get(kind.value)
                or document.retention.get("default")
                or _DEFAULT_RETENTION_DAYS
            )
            for name in group.fields:
                if name in fields:
                    problems.append(
                        f"Field '{name}' is listed in both '{owner[name]}' and '{group.name}'"
                    )
                    continue
                owner[name] = group.name
                fields[name] = FieldDefinition(
                    name=name,
                    category=Category(group.category),
                    pii_or_phi=kind,
                    retention_days=retention,
                    encryption_level=group.encryption_level,
                )
                if group.anonymization:
                    rule_specs[name] = group.anonymization

        # Explicit per-field rules override group defaults.
        for name, spec in document.anonymization_rules.items():
            if name not in fields:
                problems.append(f"anonymization_rules.{name}: no such field in any field group")
                continue
            rule_specs[name] = spec

        rules: dict[str, AnonymizationRule] = {}
        for name, spec in rule_specs.items():
            try:
                rules[name] = AnonymizationRule.parse(name, spec)
            except ValueError as exc:
                problems.append(str(exc))

        for name, definition in fields.items():
            if definition.category < Category.RESTRICTED:
                continue
            if name not in rule_specs:
                problems.append(
                    f"Field '{name}' is {definition.category.value} but has no anonymization rule"
                )
            elif name in rules and rules[name].strategy in _MAY_RETURN_INPUT:
                problems.append(
                    f"Field '{name}' is {definition.category.value}; "
                    f"'{rules[name].spec}' may release the raw value"
                )

        rule_sets = {
            set_name: RuleSet(
                name=set_name,
                description=model.description,
                required_fields=tuple(model.required_fields),
                rules=tuple(
                    ComplianceRule(
                        rule_id=rule.id,
                        rule_set=set_name,
                        metric=rule.metric,
                        threshold=rule.threshold,
                        comparison=rule.comparison,
                        description=rule.description,
                        severity=rule.severity,
                    )
                    for rule in model.rules
                ),
            )
            for set_name, model in document.rule_sets.items()
        }

        if problems:
            raise CatalogValidationError(problems, source=source)

        thresholds = document.scoring.thresholds
        return PolicyCatalog(
            version=document.version,
            categories=categories,
            fields=fields,
            rules=rules,
            thresholds=ScoreThresholds(
                excellent=thresholds.excellent,
                good=thresholds.good,
                acceptable=thresholds.acceptable,
            ),
            component_weights=dict(document.scoring.weights),
            rule_sets=rule_sets,
            retention=dict(document.retention),
            source=source,
        )


@functools.lru_cache(maxsize=1)
def load_default_catalog() -> PolicyCatalog:
    """Return the bundled catalog, loading it on first use only."""
    return CatalogLoader().load_bundled()
