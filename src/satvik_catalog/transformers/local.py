"""Mapping between the bundled catalog JSON and unified entities.

The bundled document nests ``brands[].categories[].products[]``. The same
category id may appear under several brands; the unified category list keeps
the first occurrence.
"""

from typing import Any

from satvik_catalog.models.catalog import (
    DataSource,
    UnifiedBrand,
    UnifiedCategory,
    UnifiedData,
    UnifiedProduct,
    UnifiedProductVariant,
)
from satvik_catalog.transformers.common import (
    dedupe_by_id,
    flag,
    optional_bool,
    optional_int,
    optional_text,
    require_id,
    string_list,
    text,
)
from satvik_catalog.transformers.context import TransformationContext
from satvik_catalog.transformers.images import resolve_image
from satvik_catalog.transformers.pricing import (
    default_variant_label,
    parse_price,
    resolve_in_stock,
    resolve_price,
)

SOURCE = DataSource.LOCAL.value


def transform_local_brand(raw: dict[str, Any]) -> UnifiedBrand:
    return UnifiedBrand(
        id=require_id(raw, SOURCE, "id", kind="brand"),
        name=text(raw.get("name")),
        is_active=flag(raw.get("isActive"), True),
        sort_order=optional_int(raw.get("sortOrder")) or 0,
        description=optional_text(raw.get("description")),
        website=optional_text(raw.get("website")),
    )


def transform_local_category(raw: dict[str, Any]) -> UnifiedCategory:
    return UnifiedCategory(
        id=require_id(raw, SOURCE, "id", kind="category"),
        name=text(raw.get("name")),
        is_active=flag(raw.get("isActive"), True),
        sort_order=optional_int(raw.get("sortOrder")) or 0,
        description=optional_text(raw.get("description")),
    )


def transform_local_variant(raw: dict[str, Any]) -> UnifiedProductVariant:
    price = text(raw.get("price"))
    return UnifiedProductVariant(
        id=require_id(raw, SOURCE, "id", kind="variant"),
        name=text(raw.get("name")),
        price=price,
        unit_price=parse_price(price),
        in_stock=flag(raw.get("inStock"), True),
        weight=optional_text(raw.get("weight")),
        unit=optional_text(raw.get("unit")),
    )


def transform_local_product(
    raw: dict[str, Any],
    brand: UnifiedBrand,
    category: UnifiedCategory,
    context: TransformationContext,
) -> UnifiedProduct:
    """Map one bundled product record to a UnifiedProduct."""
    product_id = require_id(raw, SOURCE, "id", kind="product")
    name = text(raw.get("name"))
    variants = [transform_local_variant(v) for v in raw.get("variants") or []]

    return UnifiedProduct(
        id=product_id,
        name=name,
        description=text(raw.get("description")),
        price=resolve_price(raw.get("price"), variants),
        variant=default_variant_label(optional_text(raw.get("variant")), variants),
        variants=variants,
        in_stock=resolve_in_stock(optional_bool(raw.get("inStock")), variants),
        featured=flag(raw.get("featured"), False),
        image=resolve_image(
            context=context,
            alt=name,
            explicit_url=raw.get("imageUrl"),
            filename=raw.get("image"),
            product_id=product_id,
            name=name,
        ),
        brand=brand,
        category=category,
        tags=string_list(raw.get("tags")),
    )


def transform_local_catalog(
    payload: dict[str, Any],
    context: TransformationContext | None = None,
) -> UnifiedData:
    """Flatten the nested bundled document into a unified snapshot."""
    context = (context or TransformationContext()).for_source(DataSource.LOCAL)
    brands: list[UnifiedBrand] = []
    categories: list[UnifiedCategory] = []
    products: list[UnifiedProduct] = []

    for raw_brand in payload.get("brands") or []:
        brand = transform_local_brand(raw_brand)
        brands.append(brand)
        for raw_category in raw_brand.get("categories") or []:
            category = transform_local_category(raw_category)
            categories.append(category)
            for raw_product in raw_category.get("products") or []:
                products.append(transform_local_product(raw_product, brand, category, context))

    return UnifiedData.build(
        products=products,
        brands=dedupe_by_id(brands),
        categories=dedupe_by_id(categories),
        source=DataSource.LOCAL,
    )


def unified_to_local(data: UnifiedData) -> dict[str, Any]:
    """
    Export a unified snapshot back to the bundled nested shape.

    Only fields present in both shapes survive. Products are grouped by
    brand and then category in first-seen order.
    """
    brands: dict[str, dict[str, Any]] = {}
    for product in data.products:
        brand = brands.setdefault(
            product.brand.id,
            {"id": product.brand.id, "name": product.brand.name, "categories": []},
        )
        category = next((c for c in brand["categories"] if c["id"] == product.category.id), None)
        if category is None:
            category = {"id": product.category.id, "name": product.category.name, "products": []}
            brand["categories"].append(category)
        category["products"].append(_product_to_local(product))
    return {"brands": list(brands.values())}


def _product_to_local(product: UnifiedProduct) -> dict[str, Any]:
    image = product.image.original_name if product.image.original_name != "placeholder" else None
    record: dict[str, Any] = {
        "id": product.id,
        "name": product.name,
        "description": product.description,
        "featured": product.featured,
        "inStock": product.in_stock,
    }
    if image:
        record["image"] = image
    if product.price:
        record["price"] = product.price
    if product.variant:
        record["variant"] = product.variant
    if product.variants:
        record["variants"] = [
            {
                key: value
                for key, value in {
                    "id": v.id,
                    "name": v.name,
                    "price": v.price,
                    "inStock": v.in_stock,
                    "weight": v.weight,
                    "unit": v.unit,
                }.items()
                if value is not None
            }
            for v in product.variants
        ]
    if product.tags:
        record["tags"] = list(product.tags)
    return record
