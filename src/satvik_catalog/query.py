"""Filtering, search, sorting and paging over catalog snapshots.

The list functions are pure and synchronous. The ``async`` helpers at the
bottom take a data service, read the snapshot once and then delegate to
the pure functions, so a single call never triggers more than one fetch.

Search results keep snapshot order; matches are not ranked. Name sorting is
case-insensitive and locale-aware, and every sort is stable so ties keep
their snapshot order in both directions.
"""

import locale
from collections import Counter
from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING, Any, TypeVar

from satvik_catalog.exceptions import InvalidQueryError
from satvik_catalog.models.catalog import UnifiedBrand, UnifiedCategory, UnifiedProduct
from satvik_catalog.models.query import (
    CatalogSearchResult,
    Page,
    ProductQuery,
    SortDirection,
    SortField,
)

if TYPE_CHECKING:
    from satvik_catalog.service import UnifiedDataService

T = TypeVar("T")
E = TypeVar("E", UnifiedProduct, UnifiedBrand, UnifiedCategory)

DEFAULT_MIN_QUERY_LENGTH = 2
DEFAULT_MAX_RESULTS = 50


def _check_id(name: str, value: Any) -> None:
    if value is None:
        return
    if not isinstance(value, str) or not value.strip():
        raise InvalidQueryError(f"{name} must be a non-empty string, got {value!r}")


def _check_flag(name: str, value: Any) -> None:
    if value is not None and not isinstance(value, bool):
        raise InvalidQueryError(f"{name} must be a boolean, got {value!r}")


def find_product(products: Iterable[UnifiedProduct], product_id: str) -> UnifiedProduct | None:
    return next((p for p in products if p.id == product_id), None)


def filter_products(
    products: Iterable[UnifiedProduct],
    *,
    brand_id: str | None = None,
    category_id: str | None = None,
    featured: bool | None = None,
    in_stock: bool | None = None,
) -> list[UnifiedProduct]:
    """
    Keep the products matching every supplied filter.

    Filters left as None are ignored. No matches gives an empty list.

    Raises:
        InvalidQueryError: A filter has the wrong type or an empty id.
    """
    _check_id("brand_id", brand_id)
    _check_id("category_id", category_id)
    _check_flag("featured", featured)
    _check_flag("in_stock", in_stock)

    return [
        p
        for p in products
        if (brand_id is None or p.brand.id == brand_id)
        and (category_id is None or p.category.id == category_id)
        and (featured is None or p.featured == featured)
        and (in_stock is None or p.in_stock == in_stock)
    ]


def product_matches(product: UnifiedProduct, term: str) -> bool:
    """Case-insensitive substring match on name, description, tags, brand and category names."""
    term = term.casefold()
    return (
        term in product.name.casefold()
        or term in product.description.casefold()
        or any(term in tag.casefold() for tag in product.tags)
        or term in product.brand.name.casefold()
        or term in product.category.name.casefold()
    )


def search_products(products: Iterable[UnifiedProduct], text: str) -> list[UnifiedProduct]:
    """Products matching ``text`` in snapshot order. Blank text matches everything."""
    if not isinstance(text, str):
        raise InvalidQueryError(f"search text must be a string, got {text!r}")
    term = text.strip()
    if not term:
        return list(products)
    return [p for p in products if product_matches(p, term)]


def _entity_matches(entity: UnifiedBrand | UnifiedCategory, term: str) -> bool:
    return term in entity.name.casefold() or term in (entity.description or "").casefold()


def _name_key(entity: Any) -> str:
    return locale.strxfrm(entity.name.casefold())


def _sort_order_key(entity: Any) -> int:
    return getattr(entity, "sort_order", None) or 0


def sort_entities(
    items: Iterable[E],
    by: SortField | str = SortField.NAME,
    direction: SortDirection | str = SortDirection.ASC,
) -> list[E]:
    """
    Stable sort by name or sort order.

    Products have no sort order of their own and count as 0, so sorting
    them by sort order keeps snapshot order.
    """
    try:
        by = SortField(by)
        direction = SortDirection(direction)
    except ValueError as e:
        raise InvalidQueryError(str(e)) from e

    key = _name_key if by is SortField.NAME else _sort_order_key
    return sorted(items, key=key, reverse=direction is SortDirection.DESC)


def paginate(items: Sequence[T], offset: int = 0, limit: int | None = None) -> Page[T]:
    """Slice ``items`` into a page; ``has_more`` is true while items remain past the page."""
    if not isinstance(offset, int) or isinstance(offset, bool) or offset < 0:
        raise InvalidQueryError(f"offset must be a non-negative integer, got {offset!r}")
    if limit is not None and (not isinstance(limit, int) or isinstance(limit, bool) or limit < 0):
        raise InvalidQueryError(f"limit must be a non-negative integer, got {limit!r}")

    end = None if limit is None else offset + limit
    page = list(items[offset:end])
    return Page(
        items=page,
        total=len(items),
        offset=offset,
        limit=limit,
        has_more=offset + len(page) < len(items),
    )


def apply_product_query(products: Sequence[UnifiedProduct], query: ProductQuery) -> Page[UnifiedProduct]:
    """Filter, search, sort and then page a product list."""
    matched = filter_products(
        products,
        brand_id=query.brand_id,
        category_id=query.category_id,
        featured=query.featured,
        in_stock=query.in_stock,
    )
    if query.search:
        matched = search_products(matched, query.search)
    if query.sort_by is not None:
        matched = sort_entities(matched, query.sort_by, query.direction)
    return paginate(matched, query.offset, query.limit)


def search_entities(
    products: Sequence[UnifiedProduct],
    brands: Sequence[UnifiedBrand],
    categories: Sequence[UnifiedCategory],
    text: str,
    *,
    min_query_length: int = DEFAULT_MIN_QUERY_LENGTH,
    max_results: int = DEFAULT_MAX_RESULTS,
    include_inactive: bool = False,
) -> CatalogSearchResult:
    """
    Search products, brands and categories at once.

    Queries shorter than ``min_query_length`` return nothing. Out-of-stock
    products and inactive brands or categories are skipped unless
    ``include_inactive`` is set. Each collection is capped at ``max_results``.
    """
    if not isinstance(text, str):
        raise InvalidQueryError(f"search text must be a string, got {text!r}")
    if max_results < 0:
        raise InvalidQueryError("max_results must be non-negative")

    query = text.strip()
    if len(query) < min_query_length:
        return CatalogSearchResult(query=query)
    term = query.casefold()

    return CatalogSearchResult(
        query=query,
        products=[
            p for p in products if (include_inactive or p.in_stock) and product_matches(p, term)
        ][:max_results],
        brands=[
            b for b in brands if (include_inactive or b.is_active) and _entity_matches(b, term)
        ][:max_results],
        categories=[
            c
            for c in categories
            if (include_inactive or c.is_active) and _entity_matches(c, term)
        ][:max_results],
    )


def count_products_by_category(products: Iterable[UnifiedProduct]) -> dict[str, int]:
    return dict(Counter(p.category.id for p in products))


def count_products_by_brand(products: Iterable[UnifiedProduct]) -> dict[str, int]:
    return dict(Counter(p.brand.id for p in products))


def select_categories(
    categories: Sequence[UnifiedCategory],
    products: Sequence[UnifiedProduct],
    *,
    brand_id: str | None = None,
    active_only: bool = True,
    sort_by: SortField | str = SortField.NAME,
    direction: SortDirection | str = SortDirection.ASC,
) -> list[UnifiedCategory]:
    """Categories, optionally only those holding products of ``brand_id``."""
    _check_id("brand_id", brand_id)
    selected = [c for c in categories if c.is_active or not active_only]
    if brand_id is not None:
        used = {p.category.id for p in products if p.brand.id == brand_id}
        selected = [c for c in selected if c.id in used]
    return sort_entities(selected, sort_by, direction)


def select_brands(
    brands: Sequence[UnifiedBrand],
    *,
    active_only: bool = True,
    sort_by: SortField | str = SortField.NAME,
    direction: SortDirection | str = SortDirection.ASC,
) -> list[UnifiedBrand]:
    selected = [b for b in brands if b.is_active or not active_only]
    return sort_entities(selected, sort_by, direction)


async def query_products(service: "UnifiedDataService", query: ProductQuery) -> Page[UnifiedProduct]:
    """Run a product query against the service's current snapshot."""
    return apply_product_query(await service.get_products(), query)


async def search_catalog(
    service: "UnifiedDataService",
    text: str,
    *,
    min_query_length: int = DEFAULT_MIN_QUERY_LENGTH,
    max_results: int = DEFAULT_MAX_RESULTS,
    include_inactive: bool = False,
) -> CatalogSearchResult:
    if not isinstance(text, str) or len(text.strip()) < min_query_length:
        return search_entities([], [], [], text, min_query_length=min_query_length)
    data = await service.get_unified_data()
    return search_entities(
        data.products,
        data.brands,
        data.categories,
        text,
        min_query_length=min_query_length,
        max_results=max_results,
        include_inactive=include_inactive,
    )


async def list_categories(
    service: "UnifiedDataService",
    *,
    brand_id: str | None = None,
    active_only: bool = True,
    sort_by: SortField | str = SortField.NAME,
    direction: SortDirection | str = SortDirection.ASC,
) -> list[UnifiedCategory]:
    data = await service.get_unified_data()
    return select_categories(
        data.categories,
        data.products,
        brand_id=brand_id,
        active_only=active_only,
        sort_by=sort_by,
        direction=direction,
    )


async def list_brands(
    service: "UnifiedDataService",
    *,
    active_only: bool = True,
    sort_by: SortField | str = SortField.NAME,
    direction: SortDirection | str = SortDirection.ASC,
) -> list[UnifiedBrand]:
    return select_brands(
        await service.get_brands(),
        active_only=active_only,
        sort_by=sort_by,
        direction=direction,
    )
