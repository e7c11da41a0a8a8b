"""Sanity CMS query adapter (read-only)."""

import asyncio
import json
from typing import Any

import httpx

from satvik_catalog.models.catalog import DataSource
from satvik_catalog.sources.base import SourceAdapter

# GROQ: brand and category references are resolved inline with ->
PRODUCTS_QUERY = """*[_type == "product"] | order(name asc) {
  _id,
  id,
  name,
  description,
  price,
  variant,
  variants,
  inStock,
  featured,
  image,
  gallery,
  tags,
  ingredients,
  allergens,
  nutritionalInfo,
  shelfLife,
  storageInstructions,
  _createdAt,
  _updatedAt,
  "brand": brand->{_id, id, name, description, isActive},
  "category": category->{_id, id, name, description, sortOrder, isActive}
}"""

BRANDS_QUERY = """*[_type == "brand"] | order(name asc) {
  _id,
  id,
  name,
  description,
  logo,
  website,
  isActive
}"""

CATEGORIES_QUERY = """*[_type == "category"] | order(name asc) {
  _id,
  id,
  name,
  description,
  image,
  sortOrder,
  isActive
}"""

HEALTH_QUERY = '*[_type == "product"][0]{_id}'


class SanityAdapter(SourceAdapter):
    """
    Sanity HTTP query API client.

    Issues parameterized GROQ queries; never mutates the dataset.
    """

    def __init__(
        self,
        project_id: str,
        dataset: str,
        api_version: str = "2024-09-19",
        token: str = "",
        use_cdn: bool = False,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize the Sanity adapter.

        Args:
            project_id: Sanity project ID.
            dataset: Dataset name.
            api_version: API version date (e.g., "2024-09-19").
            token: Read token; empty for public datasets.
            use_cdn: Query the edge-cached API instead of the live one.
            timeout: Request timeout in seconds.
            transport: Optional httpx transport (used by tests).
        """
        self.project_id = project_id
        self.dataset = dataset
        self.api_version = api_version
        self.token = token
        self.use_cdn = use_cdn
        self.timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def source(self) -> DataSource:
        return DataSource.SANITY

    @property
    def base_url(self) -> str:
        host = "apicdn" if self.use_cdn else "api"
        return f"https://{self.project_id}.{host}.sanity.io/v{self.api_version}"

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            headers = {"Accept": "application/json"}
            if self.token:
                headers["Authorization"] = f"Bearer {self.token}"
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers=headers,
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def query(self, groq: str, params: dict[str, Any] | None = None) -> Any:
        """Run a GROQ query and return its ``result`` member."""
        query_params = {"query": groq}
        for name, value in (params or {}).items():
            query_params[f"${name}"] = json.dumps(value)
        response = await self.client.get(f"/data/query/{self.dataset}", params=query_params)
        response.raise_for_status()
        return response.json().get("result")

    async def fetch_raw(self) -> dict[str, Any]:
        products, brands, categories = await asyncio.gather(
            self.query(PRODUCTS_QUERY),
            self.query(BRANDS_QUERY),
            self.query(CATEGORIES_QUERY),
        )
        return {
            "products": products or [],
            "brands": brands or [],
            "categories": categories or [],
        }

    async def health_check(self) -> bool:
        """Check if the Sanity project answers a trivial query."""
        try:
            await self.query(HEALTH_QUERY)
            return True
        except httpx.HTTPError:
            return False
