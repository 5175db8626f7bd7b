"""Catalog module.

Provides the catalog store (remote fetch with local cache fallback) and
the pure projection used to derive the displayed list.
"""

from storefront.catalog.store import (
    CatalogState,
    CatalogStatus,
    CatalogStore,
    validate_catalog_transition,
)
from storefront.catalog.view import SortKey, matches, project

__all__ = [
    "CatalogState",
    "CatalogStatus",
    "CatalogStore",
    "SortKey",
    "matches",
    "project",
    "validate_catalog_transition",
]
