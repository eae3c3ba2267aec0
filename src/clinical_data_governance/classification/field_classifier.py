"""Field sensitivity classifier.

Maps a data field name to its :class:`FieldDefinition` (category, PII/PHI
kind, retention and encryption tier) by exact-name lookup in the policy
catalog.

Unknown field names never escalate or fail silently.  What happens is an
explicit policy choice:

``allow``
    Return a public definition quietly.
``warn``
    Emit :class:`UnknownFieldWarning` and return a public definition.
``error``
    Raise :class:`UnknownFieldError`.

Example
-------
>>> classifier = FieldClassifier()
>>> definition = classifier.classify("emiratesId")
>>> definition.category, definition.pii_or_phi
(<Category.RESTRICTED: 'restricted'>, <DataKind.PII: 'pii'>)
"""
from __future__ import annotations

import logging
import warnings
from enum import Enum

from clinical_data_governance.catalog.loader import load_default_catalog
from clinical_data_governance.catalog.model import (
    Category,
    CategoryPolicy,
    DataKind,
    FieldDefinition,
    PolicyCatalog,
)

logger = logging.getLogger(__name__)


class UnknownFieldPolicy(str, Enum):
    """How :meth:`FieldClassifier.classify` treats unrecognised names."""

    ALLOW = "allow"
    WARN = "warn"
    ERROR = "error"


class UnknownFieldWarning(UserWarning):
    """Issued when a field name is not in the catalog and is treated as public."""


class UnknownFieldError(KeyError):
    """Raised for unrecognised field names under the ``error`` policy."""

    def __init__(self, field_name: str) -> None:
        self.field_name = field_name
        super().__init__(field_name)

    def __str__(self) -> str:
        return f"Field {self.field_name!r} is not in the policy catalog"


class FieldClassifier:
    """Classifies named data fields against a :class:`PolicyCatalog`.

    Parameters
    ----------
    catalog:
        Snapshot to classify against.  Defaults to the bundled catalog.
    unknown_fields:
        Policy for names missing from the catalog.  Default ``"warn"``.
    """

    def __init__(
        self,
        catalog: PolicyCatalog | None = None,
        unknown_fields: UnknownFieldPolicy | str = UnknownFieldPolicy.WARN,
    ) -> None:
        self._catalog = catalog or load_default_catalog()
        self._unknown_fields = UnknownFieldPolicy(unknown_fields)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def classify(self, field_name: str) -> FieldDefinition:
        """Return the definition for ``field_name``.

        Parameters
        ----------
        field_name:
            Exact field name, e.g. ``"emiratesId"``.

        Returns
        -------
        FieldDefinition
            The catalog entry, or a ``public`` / ``none`` definition when the
            name is unknown and the policy allows it.

        Raises
        ------
        UnknownFieldError
            When the name is unknown and the policy is ``error``.
        """
        definition = self._catalog.fields.get(field_name)
        if definition is not None:
            return definition

        if self._unknown_fields is UnknownFieldPolicy.ERROR:
            raise UnknownFieldError(field_name)
        if self._unknown_fields is UnknownFieldPolicy.WARN:
            warnings.warn(
                f"Field {field_name!r} is not in the policy catalog; treating it as public.",
                UnknownFieldWarning,
                stacklevel=2,
            )
        logger.debug("Unclassified field %r treated as public", field_name)
        return FieldDefinition(name=field_name, category=Category.PUBLIC, pii_or_phi=DataKind.NONE)

    def policy_for(self, field_name: str) -> CategoryPolicy:
        """Return the handling policy of the category ``field_name`` falls in."""
        return self._catalog.policy(self.classify(field_name).category)

    def is_sensitive(self, field_name: str) -> bool:
        """True when the field is classified confidential or above."""
        return self.classify(field_name).is_sensitive

    def fields_in(self, category: Category | str) -> list[str]:
        """Return the sorted names of all fields in ``category``."""
        category = Category(category)
        return sorted(name for name, d in self._catalog.fields.items() if d.category is category)

    def known_fields(self) -> list[str]:
        """Return every classified field name, sorted."""
        return sorted(self._catalog.fields)

    @property
    def catalog(self) -> PolicyCatalog:
        """The catalog snapshot this classifier reads."""
        return self._catalog

    @property
    def unknown_fields(self) -> UnknownFieldPolicy:
        return self._unknown_fields
