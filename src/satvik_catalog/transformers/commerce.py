"""Mapping from commerce service product responses to unified entities."""

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
    UNCATEGORIZED,
    UNKNOWN_BRAND,
    dedupe_by_id,
    flag,
    optional_bool,
    optional_text,
    require_id,
    string_list,
    text,
)
from satvik_catalog.transformers.context import TransformationContext
from satvik_catalog.transformers.images import external_image, resolve_image
from satvik_catalog.transformers.pricing import (
    default_variant_label,
    format_price,
    parse_price,
    resolve_in_stock,
    resolve_price,
)

SOURCE = DataSource.BACKEND.value


def transform_commerce_reference(raw: dict[str, Any] | None, default):
    """Map a ``{id, name}`` reference to a brand or category of the default's type."""
    if not raw or not raw.get("id"):
        return default
    return type(default)(id=str(raw["id"]), name=text(raw.get("name")) or default.name)


def transform_commerce_variant(raw: dict[str, Any]) -> UnifiedProductVariant:
    amount = parse_price(raw.get("price"))
    return UnifiedProductVariant(
        id=require_id(raw, SOURCE, "id", kind="variant"),
        name=text(raw.get("name")),
        price=format_price(amount),
        unit_price=amount,
        in_stock=flag(raw.get("inStock"), True),
        sku=optional_text(raw.get("sku")),
    )


def transform_commerce_product(
    raw: dict[str, Any],
    context: TransformationContext | None = None,
) -> UnifiedProduct:
    """Map one commerce service product to a UnifiedProduct."""
    context = (context or TransformationContext()).for_source(DataSource.BACKEND)
    product_id = require_id(raw, SOURCE, "id", kind="product")
    name = text(raw.get("name"))
    variants = [transform_commerce_variant(v) for v in raw.get("variants") or []]

    image = resolve_image(
        context=context,
        alt=name,
        explicit_url=raw.get("imageUrl"),
        product_id=product_id,
        name=name,
    )
    gallery_urls = [u for u in string_list(raw.get("galleryImageUrls")) if u.strip()]
    gallery = [external_image(u, name, context) for u in gallery_urls] or [image]

    return UnifiedProduct(
        id=product_id,
        name=name,
        description=text(raw.get("description")),
        price=resolve_price(format_price(raw.get("defaultPrice")), variants),
        variant=default_variant_label(None, variants),
        variants=variants,
        in_stock=resolve_in_stock(optional_bool(raw.get("inStock")), variants),
        featured=flag(raw.get("featured"), False),
        image=image,
        gallery=gallery,
        brand=transform_commerce_reference(raw.get("brand"), UNKNOWN_BRAND),
        category=transform_commerce_reference(raw.get("category"), UNCATEGORIZED),
        tags=string_list(raw.get("tags")),
    )


def transform_commerce_catalog(
    payload: dict[str, Any],
    context: TransformationContext | None = None,
) -> UnifiedData:
    """
    Build a unified snapshot from aggregated commerce pages.

    Brands and categories are synthesized from the product references and
    deduplicated on id; they are not validated against any other list.
    """
    context = (context or TransformationContext()).for_source(DataSource.BACKEND)
    products = [transform_commerce_product(p, context) for p in payload.get("products") or []]

    brands: list[UnifiedBrand] = [
        transform_commerce_reference(b, UNKNOWN_BRAND) for b in payload.get("brands") or []
    ]
    categories: list[UnifiedCategory] = [
        transform_commerce_reference(c, UNCATEGORIZED) for c in payload.get("categories") or []
    ]
    brands.extend(p.brand for p in products)
    categories.extend(p.category for p in products)

    return UnifiedData.build(
        products=products,
        brands=dedupe_by_id(brands),
        categories=dedupe_by_id(categories),
        source=DataSource.BACKEND,
    )
