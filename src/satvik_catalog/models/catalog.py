"""Unified catalog models shared by every data source."""

from collections.abc import Sequence
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class DataSource(str, Enum):
    """Catalog backends a snapshot can come from."""

    LOCAL = "local"
    SANITY = "sanity"
    BACKEND = "backend"


class ImageSource(str, Enum):
    """Where a resolved image URL points."""

    LOCAL = "local"
    SANITY = "sanity"
    EXTERNAL = "external"


class UnifiedImage(BaseModel):
    """Resolved image with the URL to try if the primary one fails to load."""

    url: str = Field(description="Primary image URL, never empty")
    alt: str = Field(default="", description="Alt text")
    source: ImageSource = Field(default=ImageSource.LOCAL)
    fallback_url: str | None = Field(default=None, description="URL to use when the primary fails")
    original_name: str | None = Field(default=None, description="Filename or asset reference it came from")
    caption: str | None = None
    width: int | None = None
    height: int | None = None

    model_config = {"frozen": True}


class UnifiedProductVariant(BaseModel):
    """Size, weight or pack option of a product."""

    id: str
    name: str
    price: str = Field(default="", description="Formatted price, empty when unknown")
    unit_price: float | None = Field(default=None, description="Numeric price")
    in_stock: bool = True
    weight: str | None = None
    unit: str | None = None
    sku: str | None = None
    description: str | None = None

    model_config = {"frozen": True}


class UnifiedBrand(BaseModel):
    """Brand or producer."""

    id: str
    name: str
    is_active: bool = True
    sort_order: int | None = None
    description: str | None = None
    logo: UnifiedImage | None = None
    website: str | None = None

    model_config = {"frozen": True}


class UnifiedCategory(BaseModel):
    """Product category."""

    id: str
    name: str
    is_active: bool = True
    sort_order: int | None = None
    description: str | None = None
    image: UnifiedImage | None = None
    parent_category_id: str | None = None

    model_config = {"frozen": True}


class UnifiedProduct(BaseModel):
    """
    Product in the single shape every source is normalized to.

    An empty ``price`` means the product has no resolvable price and should
    be shown as "contact for pricing".
    """

    id: str
    name: str
    description: str = ""
    price: str = ""
    variant: str | None = Field(default=None, description="Label of the default variant")
    variants: tuple[UnifiedProductVariant, ...] = ()
    in_stock: bool = True
    featured: bool = False
    image: UnifiedImage
    gallery: tuple[UnifiedImage, ...] = ()
    brand: UnifiedBrand
    category: UnifiedCategory
    tags: tuple[str, ...] = ()

    # Food details carried through from the CMS
    ingredients: tuple[str, ...] = ()
    allergens: tuple[str, ...] = ()
    nutritional_info: dict[str, Any] | None = None
    shelf_life: str | None = None
    storage_instructions: str | None = None

    created_at: str | None = None
    updated_at: str | None = None

    model_config = {"frozen": True}

    @property
    def has_variants(self) -> bool:
        return bool(self.variants)

    @property
    def contact_for_pricing(self) -> bool:
        return not self.price


class CatalogMetadata(BaseModel):
    """Counts and provenance of a snapshot."""

    total_products: int = Field(ge=0)
    total_brands: int = Field(ge=0)
    total_categories: int = Field(ge=0)
    last_updated: datetime
    data_source: DataSource

    model_config = {"frozen": True}


class UnifiedData(BaseModel):
    """
    Complete normalized catalog snapshot.

    Collections are tuples so a cached snapshot cannot be changed in place.
    """

    products: tuple[UnifiedProduct, ...] = ()
    brands: tuple[UnifiedBrand, ...] = ()
    categories: tuple[UnifiedCategory, ...] = ()
    metadata: CatalogMetadata

    model_config = {"frozen": True}

    @classmethod
    def build(
        cls,
        *,
        products: Sequence[UnifiedProduct],
        brands: Sequence[UnifiedBrand],
        categories: Sequence[UnifiedCategory],
        source: DataSource,
        last_updated: datetime | None = None,
    ) -> "UnifiedData":
        """Assemble a snapshot, deriving the metadata counts."""
        return cls(
            products=products,
            brands=brands,
            categories=categories,
            metadata=CatalogMetadata(
                total_products=len(products),
                total_brands=len(brands),
                total_categories=len(categories),
                last_updated=last_updated or datetime.now(timezone.utc),
                data_source=source,
            ),
        )

    @classmethod
    def empty(cls, source: DataSource) -> "UnifiedData":
        return cls.build(products=[], brands=[], categories=[], source=source)
