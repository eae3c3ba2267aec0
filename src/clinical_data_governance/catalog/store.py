"""Holder for the active policy catalog with snapshot-swap reloads.

Readers take :attr:`CatalogStore.current` and keep using that snapshot for
the whole operation.  A reload builds and validates a complete new
:class:`PolicyCatalog` first and only then replaces the reference, so a
reader never observes a half-built table.  A failed reload leaves the
previous snapshot in place.

Example
-------
>>> store = CatalogStore()
>>> before = store.current
>>> after = store.reload()
>>> before is not after
True
"""
from __future__ import annotations

import logging
import threading
from pathlib import Path

from clinical_data_governance.catalog.loader import CatalogLoader, load_default_catalog
from clinical_data_governance.catalog.model import PolicyCatalog

logger = logging.getLogger(__name__)


class CatalogStore:
    """Publishes one immutable catalog snapshot at a time.

    Parameters
    ----------
    catalog:
        Initial snapshot.  Defaults to the bundled catalog.
    loader:
        Loader used by :meth:`reload`.
    """

    def __init__(
        self,
        catalog: PolicyCatalog | None = None,
        loader: CatalogLoader | None = None,
    ) -> None:
        self._loader = loader or CatalogLoader()
        self._current: PolicyCatalog = catalog or load_default_catalog()
        self._write_lock = threading.Lock()

    @property
    def current(self) -> PolicyCatalog:
        """The active snapshot.  Lock-free."""
        return self._current

    def replace(self, catalog: PolicyCatalog) -> PolicyCatalog:
        """Publish an already validated snapshot and return the previous one."""
        with self._write_lock:
            previous = self._current
            self._current = catalog
        logger.info("Policy catalog replaced: %r -> %r", previous, catalog)
        return previous

    def reload(self, catalog_path: str | Path | None = None) -> PolicyCatalog:
        """Build a fresh snapshot and publish it.

        Parameters
        ----------
        catalog_path:
            YAML file to load.  The bundled catalog is re-read when omitted.

        Returns
        -------
        PolicyCatalog
            The newly published snapshot.

        Raises
        ------
        CatalogValidationError
            When the new catalog is invalid; the current snapshot is kept.
        """
        if catalog_path is None:
            fresh = self._loader.load_bundled()
        else:
            fresh = self._loader.load(catalog_path)
        self.replace(fresh)
        return fresh
