"""Satvik Foods unified catalog data layer."""

from satvik_catalog.exceptions import (
    CatalogError,
    DataSourceUnavailableError,
    InvalidQueryError,
    MalformedRecordError,
    ResourceNotFoundError,
)
from satvik_catalog.models import (
    DataSource,
    UnifiedBrand,
    UnifiedCategory,
    UnifiedData,
    UnifiedProduct,
)
from satvik_catalog.service import CacheState, UnifiedDataService

__version__ = "0.1.0"

__all__ = [
    "CacheState",
    "CatalogError",
    "DataSource",
    "DataSourceUnavailableError",
    "InvalidQueryError",
    "MalformedRecordError",
    "ResourceNotFoundError",
    "UnifiedBrand",
    "UnifiedCategory",
    "UnifiedData",
    "UnifiedDataService",
    "UnifiedProduct",
]
