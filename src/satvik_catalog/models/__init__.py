"""Data models for the catalog layer."""

from satvik_catalog.models.catalog import (
    CatalogMetadata,
    DataSource,
    ImageSource,
    UnifiedBrand,
    UnifiedCategory,
    UnifiedData,
    UnifiedImage,
    UnifiedProduct,
    UnifiedProductVariant,
)
from satvik_catalog.models.query import (
    CatalogSearchResult,
    Page,
    ProductQuery,
    SortDirection,
    SortField,
)

__all__ = [
    "CatalogMetadata",
    "CatalogSearchResult",
    "DataSource",
    "ImageSource",
    "Page",
    "ProductQuery",
    "SortDirection",
    "SortField",
    "UnifiedBrand",
    "UnifiedCategory",
    "UnifiedData",
    "UnifiedImage",
    "UnifiedProduct",
    "UnifiedProductVariant",
]
