"""Read-only catalog routes."""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response
from pydantic import BaseModel

from satvik_catalog import query
from satvik_catalog.config import get_settings
from satvik_catalog.exceptions import ResourceNotFoundError
from satvik_catalog.feed import FEED_CACHE_CONTROL, FEED_FILENAME, generate_catalog_feed
from satvik_catalog.models.catalog import UnifiedBrand, UnifiedCategory, UnifiedProduct
from satvik_catalog.models.query import (
    CatalogSearchResult,
    Page,
    ProductQuery,
    SortDirection,
    SortField,
)
from satvik_catalog.service import UnifiedDataService

router = APIRouter()

# Global service instance (initialized in server.py)
_service: UnifiedDataService | None = None


def get_service() -> UnifiedDataService:
    """Get the catalog data service."""
    if _service is None:
        raise HTTPException(
            status_code=503,
            detail="Catalog service not initialized",
        )
    return _service


def set_service(service: UnifiedDataService | None) -> None:
    """Set the catalog data service."""
    global _service
    _service = service


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    data_source: str
    cache_state: str


class BrandListResponse(BaseModel):
    brands: list[UnifiedBrand]
    product_counts: dict[str, int] | None = None


class CategoryListResponse(BaseModel):
    categories: list[UnifiedCategory]
    product_counts: dict[str, int] | None = None


class SearchResponse(BaseModel):
    query: str
    products: list[UnifiedProduct]
    brands: list[UnifiedBrand]
    categories: list[UnifiedCategory]
    total_results: int

    @classmethod
    def from_result(cls, result: CatalogSearchResult) -> "SearchResponse":
        return cls(
            query=result.query,
            products=result.products,
            brands=result.brands,
            categories=result.categories,
            total_results=result.total_results,
        )


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
)
async def health_check(
    service: UnifiedDataService = Depends(get_service),
) -> HealthResponse:
    """Report the active source and cache state without touching the source."""
    settings = get_settings()
    return HealthResponse(
        status="healthy",
        version=settings.api_version,
        data_source=service.active_source.value,
        cache_state=service.state.value,
    )


@router.get(
    "/v1/catalog/products",
    response_model=Page[UnifiedProduct],
    summary="List products",
    description="Filter, search, sort and page the product catalog.",
)
async def list_products(
    brand_id: str | None = None,
    category_id: str | None = None,
    featured: bool | None = None,
    in_stock: bool | None = None,
    search: str | None = None,
    sort_by: SortField | None = None,
    direction: SortDirection = SortDirection.ASC,
    offset: int = Query(default=0, ge=0),
    limit: int | None = Query(default=None, ge=0, le=500),
    service: UnifiedDataService = Depends(get_service),
) -> Page[UnifiedProduct]:
    product_query = ProductQuery(
        brand_id=brand_id,
        category_id=category_id,
        featured=featured,
        in_stock=in_stock,
        search=search,
        sort_by=sort_by,
        direction=direction,
        offset=offset,
        limit=limit,
    )
    return await query.query_products(service, product_query)


@router.get(
    "/v1/catalog/products/{product_id}",
    response_model=UnifiedProduct,
    summary="Get a product",
)
async def get_product(
    product_id: str,
    service: UnifiedDataService = Depends(get_service),
) -> UnifiedProduct:
    product = await service.get_product_by_id(product_id)
    if product is None:
        raise ResourceNotFoundError(f"Product {product_id} not found")
    return product


@router.get(
    "/v1/catalog/brands",
    response_model=BrandListResponse,
    summary="List brands",
)
async def list_brands(
    active_only: bool = True,
    sort_by: SortField = SortField.NAME,
    direction: SortDirection = SortDirection.ASC,
    with_product_count: bool = False,
    service: UnifiedDataService = Depends(get_service),
) -> BrandListResponse:
    brands = await query.list_brands(
        service, active_only=active_only, sort_by=sort_by, direction=direction
    )
    counts = None
    if with_product_count:
        counts = query.count_products_by_brand(await service.get_products())
    return BrandListResponse(brands=brands, product_counts=counts)


@router.get(
    "/v1/catalog/categories",
    response_model=CategoryListResponse,
    summary="List categories",
    description="Optionally restricted to categories holding products of one brand.",
)
async def list_categories(
    brand_id: str | None = None,
    active_only: bool = True,
    sort_by: SortField = SortField.NAME,
    direction: SortDirection = SortDirection.ASC,
    with_product_count: bool = False,
    service: UnifiedDataService = Depends(get_service),
) -> CategoryListResponse:
    categories = await query.list_categories(
        service,
        brand_id=brand_id,
        active_only=active_only,
        sort_by=sort_by,
        direction=direction,
    )
    counts = None
    if with_product_count:
        counts = query.count_products_by_category(await service.get_products())
    return CategoryListResponse(categories=categories, product_counts=counts)


@router.get(
    "/v1/catalog/search",
    response_model=SearchResponse,
    summary="Search the catalog",
)
async def search(
    q: str = Query(default="", description="Search text"),
    min_query_length: int = Query(default=query.DEFAULT_MIN_QUERY_LENGTH, ge=0),
    max_results: int = Query(default=query.DEFAULT_MAX_RESULTS, ge=0, le=500),
    include_inactive: bool = False,
    service: UnifiedDataService = Depends(get_service),
) -> SearchResponse:
    result = await query.search_catalog(
        service,
        q,
        min_query_length=min_query_length,
        max_results=max_results,
        include_inactive=include_inactive,
    )
    return SearchResponse.from_result(result)


@router.get(
    "/v1/catalog/data-source",
    summary="Active data source",
)
async def data_source_info(
    service: UnifiedDataService = Depends(get_service),
) -> dict[str, Any]:
    return service.get_data_source_info()


@router.get(
    "/catalog-feed.csv",
    summary="Product feed CSV",
    description="Catalog feed in the Meta Commerce Manager CSV layout.",
    response_class=Response,
)
async def catalog_feed(
    service: UnifiedDataService = Depends(get_service),
) -> Response:
    settings = get_settings()
    csv_text = generate_catalog_feed(
        await service.get_products(),
        storefront_url=settings.storefront_url,
        currency=settings.feed_currency,
    )
    return Response(
        content=csv_text,
        media_type="text/csv",
        headers={
            "Content-Disposition": f'attachment; filename="{FEED_FILENAME}"',
            "Cache-Control": FEED_CACHE_CONTROL,
        },
    )
