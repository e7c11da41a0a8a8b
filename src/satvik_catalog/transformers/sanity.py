"""Mapping from Sanity CMS query results to unified entities."""

import logging
from collections.abc import Callable
from typing import Any

from satvik_catalog.models.catalog import (
    DataSource,
    ImageSource,
    UnifiedBrand,
    UnifiedCategory,
    UnifiedData,
    UnifiedImage,
    UnifiedProduct,
    UnifiedProductVariant,
)
from satvik_catalog.transformers.common import (
    UNCATEGORIZED,
    UNKNOWN_BRAND,
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
from satvik_catalog.transformers.images import resolve_image, sanity_image_url
from satvik_catalog.transformers.pricing import (
    default_variant_label,
    parse_price,
    resolve_in_stock,
    resolve_price,
)

logger = logging.getLogger(__name__)

SOURCE = DataSource.SANITY.value


def _sanity_image(
    raw_image: dict[str, Any] | None,
    alt: str,
    context: TransformationContext,
) -> UnifiedImage | None:
    url = sanity_image_url(raw_image, context)
    if not url:
        return None
    return UnifiedImage(
        url=url,
        alt=text(raw_image.get("alt")) or alt,
        source=ImageSource.SANITY,
        fallback_url=context.placeholder_image,
        original_name=(raw_image.get("asset") or {}).get("_ref"),
        caption=optional_text(raw_image.get("caption")),
    )


def transform_sanity_brand(raw: dict[str, Any], context: TransformationContext) -> UnifiedBrand:
    name = text(raw.get("name"))
    return UnifiedBrand(
        id=require_id(raw, SOURCE, "id", "_id", kind="brand"),
        name=name,
        is_active=flag(raw.get("isActive"), True),
        sort_order=optional_int(raw.get("sortOrder")) or 0,
        description=optional_text(raw.get("description")),
        logo=_sanity_image(raw.get("logo"), name, context),
        website=optional_text(raw.get("website")),
    )


def transform_sanity_category(raw: dict[str, Any], context: TransformationContext) -> UnifiedCategory:
    name = text(raw.get("name"))
    return UnifiedCategory(
        id=require_id(raw, SOURCE, "id", "_id", kind="category"),
        name=name,
        is_active=flag(raw.get("isActive"), True),
        sort_order=optional_int(raw.get("sortOrder")) or 0,
        description=optional_text(raw.get("description")),
        image=_sanity_image(raw.get("image"), name, context),
    )


def transform_sanity_variant(raw: dict[str, Any]) -> UnifiedProductVariant:
    price = text(raw.get("price"))
    return UnifiedProductVariant(
        id=require_id(raw, SOURCE, "id", "_key", kind="variant"),
        name=text(raw.get("name")),
        price=price,
        unit_price=parse_price(price),
        in_stock=flag(raw.get("inStock"), True),
        weight=optional_text(raw.get("weight")),
        unit=optional_text(raw.get("unit")),
        sku=optional_text(raw.get("sku")),
        description=optional_text(raw.get("description")),
    )


def transform_sanity_product(
    raw: dict[str, Any],
    brand: UnifiedBrand,
    category: UnifiedCategory,
    context: TransformationContext,
) -> UnifiedProduct:
    """Map one CMS product document (with inline brand/category) to a UnifiedProduct."""
    product_id = require_id(raw, SOURCE, "id", "_id", kind="product")
    name = text(raw.get("name"))
    variants = [transform_sanity_variant(v) for v in raw.get("variants") or []]
    raw_image = raw.get("image")
    image_alt = text((raw_image or {}).get("alt")) or name

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
            alt=image_alt,
            explicit_url=sanity_image_url(raw_image, context),
            explicit_source=ImageSource.SANITY,
            product_id=product_id,
            name=name,
            original_name=((raw_image or {}).get("asset") or {}).get("_ref"),
        ),
        gallery=[
            image
            for image in (_sanity_image(g, name, context) for g in raw.get("gallery") or [])
            if image is not None
        ],
        brand=brand,
        category=category,
        tags=string_list(raw.get("tags")),
        ingredients=string_list(raw.get("ingredients")),
        allergens=string_list(raw.get("allergens")),
        nutritional_info=raw.get("nutritionalInfo") or None,
        shelf_life=optional_text(raw.get("shelfLife")),
        storage_instructions=optional_text(raw.get("storageInstructions")),
        created_at=optional_text(raw.get("_createdAt")),
        updated_at=optional_text(raw.get("_updatedAt")),
    )


def transform_sanity_catalog(
    payload: dict[str, Any],
    context: TransformationContext | None = None,
) -> UnifiedData:
    """
    Build a unified snapshot from the three CMS query results.

    Products reference brands and categories inline. A product whose
    reference is missing from the standalone lists keeps its inline copy,
    which is then added to the lists so every reference resolves.
    """
    context = (context or TransformationContext()).for_source(DataSource.SANITY)
    brands = dedupe_by_id(transform_sanity_brand(b, context) for b in payload.get("brands") or [])
    categories = dedupe_by_id(
        transform_sanity_category(c, context) for c in payload.get("categories") or []
    )
    brand_map = {b.id: b for b in brands}
    category_map = {c.id: c for c in categories}

    products: list[UnifiedProduct] = []
    for raw_product in payload.get("products") or []:
        brand = _resolve_reference(
            raw_product.get("brand"), brand_map, brands, UNKNOWN_BRAND, transform_sanity_brand, context
        )
        category = _resolve_reference(
            raw_product.get("category"),
            category_map,
            categories,
            UNCATEGORIZED,
            transform_sanity_category,
            context,
        )
        products.append(transform_sanity_product(raw_product, brand, category, context))

    return UnifiedData.build(
        products=products,
        brands=brands,
        categories=categories,
        source=DataSource.SANITY,
    )


def _resolve_reference(
    ref: Any,
    lookup: dict[str, Any],
    collection: list[Any],
    default: UnifiedBrand | UnifiedCategory,
    transform: Callable[[dict[str, Any], TransformationContext], Any],
    context: TransformationContext,
) -> Any:
    if not ref or not isinstance(ref, dict) or not (ref.get("id") or ref.get("_id")):
        entity = default
    else:
        ref_id = str(ref.get("id") or ref.get("_id"))
        if ref_id in lookup:
            return lookup[ref_id]
        logger.warning("CMS product references %s not present in standalone list", ref_id)
        entity = transform(ref, context)
    if entity.id not in lookup:
        lookup[entity.id] = entity
        collection.append(entity)
    return lookup[entity.id]
