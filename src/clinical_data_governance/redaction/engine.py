"""Field-aware redaction engine.

Applies the catalog's anonymization rule for a field before a value is
displayed or exported.  The engine fails closed: a confidential,
restricted or topSecret field with no rule raises
:class:`MissingRedactionRuleError` instead of returning the raw value.

Example
-------
>>> engine = RedactionEngine(salt=b"demo-salt")
>>> engine.redact("emiratesId", "784-1990-1234567-1")
'784-1*******4567-1'
>>> engine.redact("serviceCode", "17-25-3")
'17-25-3'
"""
from __future__ import annotations

import logging
import os
import secrets
import threading
from collections.abc import Callable, Mapping
from datetime import datetime, timezone

from clinical_data_governance.catalog.model import (
    AnonymizationRule,
    Category,
    PolicyCatalog,
    Strategy,
)
from clinical_data_governance.classification.field_classifier import FieldClassifier
from clinical_data_governance.redaction import strategies

logger = logging.getLogger(__name__)

DEFAULT_SALT_ENV_VAR = "CDG_REDACTION_SALT"

_process_salt: bytes | None = None
_process_salt_lock = threading.Lock()


class MissingRedactionRuleError(LookupError):
    """Raised when a confidential-or-higher field has no anonymization rule.

    Attributes
    ----------
    field_name:
        The field that could not be redacted.
    category:
        Its sensitivity category.
    """

    def __init__(self, field_name: str, category: Category) -> None:
        self.field_name = field_name
        self.category = category
        super().__init__(
            f"No anonymization rule for {category.value} field {field_name!r}; "
            "refusing to release the raw value."
        )


def resolve_salt(env_var: str = DEFAULT_SALT_ENV_VAR) -> bytes:
    """Return the process-wide hashing salt.

    The salt comes from the environment variable ``env_var`` when it is set.
    Otherwise a random salt is generated once per process, which keeps hashes
    consistent only for the lifetime of the process.
    """
    configured = os.environ.get(env_var)
    if configured:
        return configured.encode("utf-8")

    global _process_salt
    with _process_salt_lock:
        if _process_salt is None:
            logger.warning(
                "%s is not set; using a random per-process salt. "
                "Salted hashes will not match across processes.",
                env_var,
            )
            _process_salt = secrets.token_bytes(32)
        return _process_salt


class RedactionEngine:
    """Redacts field values according to their anonymization rules.

    Parameters
    ----------
    catalog:
        Snapshot providing rules and categories.  Defaults to the bundled
        catalog, or the classifier's catalog when a classifier is given.
    classifier:
        Classifier used for fields without a rule.  Built from ``catalog``
        when omitted.
    salt:
        Secret key for the hashing strategies.  Resolved with
        :func:`resolve_salt` when omitted.
    clock:
        Callable returning the current UTC time, used by
        ``hash-with-timestamp``.
    """

    def __init__(
        self,
        catalog: PolicyCatalog | None = None,
        classifier: FieldClassifier | None = None,
        salt: bytes | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        if classifier is None:
            classifier = FieldClassifier(catalog)
        self._classifier = classifier
        self._catalog = catalog or classifier.catalog
        self._salt = salt if salt is not None else resolve_salt()
        self._clock = clock or (lambda: datetime.now(tz=timezone.utc))

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def redact(self, field_name: str, value: str) -> str:
        """Return ``value`` masked according to the rule for ``field_name``.

        Parameters
        ----------
        field_name:
            Exact field name used for rule lookup and classification.
        value:
            Raw value.  An empty string is returned as-is.

        Returns
        -------
        str
            The redacted value.  Public and internal fields without a rule
            are returned unchanged.

        Raises
        ------
        MissingRedactionRuleError
            When the field is confidential or above and has no rule.
        UnknownFieldError
            When the field is unknown and the classifier is configured to
            reject unknown names.
        """
        if not value:
            return ""

        rule = self._catalog.rules.get(field_name)
        if rule is not None:
            return self.apply(rule, value)

        category = self._classifier.classify(field_name).category
        if category <= Category.INTERNAL:
            return value
        raise MissingRedactionRuleError(field_name, category)

    def redact_record(self, record: Mapping[str, object]) -> dict[str, object]:
        """Redact every field of ``record`` and return a new dict.

        ``None`` values pass through.  Non-string values of sensitive fields
        are converted with ``str()`` before masking; non-string values of
        public and internal fields are left as they are.

        Raises
        ------
        MissingRedactionRuleError
            For the first sensitive field without a rule.
        """
        redacted: dict[str, object] = {}
        for field_name, value in record.items():
            if value is None:
                redacted[field_name] = None
            elif isinstance(value, str):
                redacted[field_name] = self.redact(field_name, value)
            elif field_name in self._catalog.rules or self._classifier.classify(field_name).is_sensitive:
                redacted[field_name] = self.redact(field_name, str(value))
            else:
                redacted[field_name] = value
        return redacted

    def apply(self, rule: AnonymizationRule, value: str) -> str:
        """Apply ``rule`` to a non-empty ``value``."""
        strategy = rule.strategy
        if strategy is Strategy.MASK_MIDDLE:
            return strategies.mask_middle(value, rule.n or 0)
        if strategy is Strategy.MASK_LAST:
            return strategies.mask_last(value, rule.n or 0)
        if strategy is Strategy.MASK_LOCAL_PART:
            return strategies.mask_local_part(value)
        if strategy is Strategy.HASH_WITH_SALT:
            return strategies.hash_with_salt(value, self._salt)
        if strategy is Strategy.HASH_WITH_TIMESTAMP:
            return strategies.hash_with_timestamp(value, self._salt, self._clock())
        return value

    def rule_for(self, field_name: str) -> AnonymizationRule | None:
        """Return the rule bound to ``field_name``, if any."""
        return self._catalog.rules.get(field_name)

    @property
    def classifier(self) -> FieldClassifier:
        return self._classifier
