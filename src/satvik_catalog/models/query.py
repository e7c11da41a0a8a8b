"""Query, paging and search result models."""

from enum import Enum
from typing import Generic, TypeVar

from pydantic import BaseModel, Field

from satvik_catalog.models.catalog import UnifiedBrand, UnifiedCategory, UnifiedProduct

T = TypeVar("T")


class SortField(str, Enum):
    """Fields the catalog can be sorted by."""

    NAME = "name"
    SORT_ORDER = "sort_order"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


class ProductQuery(BaseModel):
    """Filter, search, sort and paging options for a product listing."""

    brand_id: str | None = None
    category_id: str | None = None
    featured: bool | None = None
    in_stock: bool | None = None
    search: str | None = None
    sort_by: SortField | None = None
    direction: SortDirection = SortDirection.ASC
    offset: int = Field(default=0, ge=0)
    limit: int | None = Field(default=None, ge=0)


class Page(BaseModel, Generic[T]):
    """One page of a filtered listing."""

    items: list[T] = Field(default_factory=list)
    total: int = Field(ge=0, description="Number of items matching before paging")
    offset: int = Field(ge=0)
    limit: int | None = None
    has_more: bool = False


class CatalogSearchResult(BaseModel):
    """Matches across products, brands and categories."""

    query: str
    products: list[UnifiedProduct] = Field(default_factory=list)
    brands: list[UnifiedBrand] = Field(default_factory=list)
    categories: list[UnifiedCategory] = Field(default_factory=list)

    @property
    def total_results(self) -> int:
        return len(self.products) + len(self.brands) + len(self.categories)
