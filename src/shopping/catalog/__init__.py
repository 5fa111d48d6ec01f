"""Catalog adapter factory.

Provides get_catalog() / set_catalog() to swap implementations. The
in-memory catalog is the default; select another adapter with the
CATALOG_ADAPTER environment variable.
"""

import os

from shopping.catalog.port import CatalogLookup

_current_catalog: CatalogLookup | None = None


def get_catalog() -> CatalogLookup:
    """Return the configured catalog adapter (singleton)."""
    global _current_catalog
    if _current_catalog is None:
        adapter = os.environ.get("CATALOG_ADAPTER", "memory")
        if adapter == "memory":
            from shopping.catalog.fake_adapter import InMemoryCatalog

            _current_catalog = InMemoryCatalog()
        else:
            raise ValueError(f"Unknown catalog adapter: {adapter}")
    return _current_catalog


def set_catalog(catalog: CatalogLookup) -> None:
    """Override the active catalog adapter (useful for tests)."""
    global _current_catalog
    _current_catalog = catalog


def reset_catalog() -> None:
    """Reset to the default catalog adapter."""
    global _current_catalog
    _current_catalog = None
