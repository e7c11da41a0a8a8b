"""Checks and merges over already-unified snapshots."""

from collections import Counter

from satvik_catalog.models.catalog import UnifiedData
from satvik_catalog.transformers.common import dedupe_by_id


def validate_unified_data(data: UnifiedData) -> list[str]:
    """Return a list of consistency problems; an empty list means the snapshot is sound."""
    problems: list[str] = []
    brand_ids = {b.id for b in data.brands}
    category_ids = {c.id for c in data.categories}

    for product in data.products:
        if product.brand.id not in brand_ids:
            problems.append(f"Product {product.id} references unknown brand {product.brand.id}")
        if product.category.id not in category_ids:
            problems.append(
                f"Product {product.id} references unknown category {product.category.id}"
            )

    for product_id, count in Counter(p.id for p in data.products).items():
        if count > 1:
            problems.append(f"Product id {product_id} appears {count} times")

    meta = data.metadata
    if (meta.total_products, meta.total_brands, meta.total_categories) != (
        len(data.products),
        len(data.brands),
        len(data.categories),
    ):
        problems.append("Metadata counts do not match collection sizes")
    return problems


def merge_unified_data(primary: UnifiedData, secondary: UnifiedData) -> UnifiedData:
    """Merge two snapshots; entities already in ``primary`` win and its source tag is kept."""
    products = list(primary.products)
    known = {p.id for p in products}
    products.extend(p for p in secondary.products if p.id not in known)

    return UnifiedData.build(
        products=products,
        brands=dedupe_by_id([*primary.brands, *secondary.brands]),
        categories=dedupe_by_id([*primary.categories, *secondary.categories]),
        source=primary.metadata.data_source,
    )
