"""Pure mappings from source-specific records to unified entities."""

from satvik_catalog.transformers.commerce import (
    transform_commerce_catalog,
    transform_commerce_product,
)
from satvik_catalog.transformers.context import TransformationContext
from satvik_catalog.transformers.images import resolve_image
from satvik_catalog.transformers.local import (
    transform_local_catalog,
    transform_local_product,
    unified_to_local,
)
from satvik_catalog.transformers.pricing import resolve_in_stock, resolve_price
from satvik_catalog.transformers.sanity import (
    transform_sanity_catalog,
    transform_sanity_product,
)
from satvik_catalog.transformers.unified import merge_unified_data, validate_unified_data

__all__ = [
    "TransformationContext",
    "merge_unified_data",
    "resolve_image",
    "resolve_in_stock",
    "resolve_price",
    "transform_commerce_catalog",
    "transform_commerce_product",
    "transform_local_catalog",
    "transform_local_product",
    "transform_sanity_catalog",
    "transform_sanity_product",
    "unified_to_local",
    "validate_unified_data",
]
