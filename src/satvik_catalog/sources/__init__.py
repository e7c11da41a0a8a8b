"""Source adapters for each catalog backend."""

from satvik_catalog.sources.base import SourceAdapter
from satvik_catalog.sources.commerce import CommerceApiAdapter
from satvik_catalog.sources.local import LocalCatalogAdapter, bundled_catalog_path
from satvik_catalog.sources.sanity import SanityAdapter

__all__ = [
    "CommerceApiAdapter",
    "LocalCatalogAdapter",
    "SanityAdapter",
    "SourceAdapter",
    "bundled_catalog_path",
]
