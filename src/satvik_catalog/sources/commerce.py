"""Commerce service REST adapter (read-only)."""

import logging
from typing import Any

import httpx

from satvik_catalog.exceptions import MalformedRecordError
from satvik_catalog.models.catalog import DataSource
from satvik_catalog.sources.base import SourceAdapter

logger = logging.getLogger(__name__)


class CommerceApiAdapter(SourceAdapter):
    """
    Commerce service product listing client.

    The service exposes only a paginated product listing; brands and
    categories are derived by scanning the aggregated products. Any page
    failure fails the whole fetch.
    """

    def __init__(
        self,
        base_url: str,
        page_size: int = 200,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize the commerce adapter.

        Args:
            base_url: Service root (e.g., "http://localhost:8080").
            page_size: Products requested per page.
            timeout: Request timeout in seconds.
            transport: Optional httpx transport (used by tests).
        """
        self.base_url = base_url.rstrip("/")
        self.page_size = page_size
        self.timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def source(self) -> DataSource:
        return DataSource.BACKEND

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers={
                    "Content-Type": "application/json",
                    "Accept": "application/json",
                },
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def _get(self, path: str, **kwargs: Any) -> Any:
        response = await self.client.get(path, **kwargs)
        response.raise_for_status()
        return response.json()

    async def fetch_products_page(self, page: int = 0, size: int | None = None) -> dict[str, Any]:
        """Fetch one page: ``{data, page, size, totalItems, totalPages}``."""
        body = await self._get(
            "/api/products",
            params={"page": page, "size": size or self.page_size},
        )
        if not isinstance(body, dict) or not isinstance(body.get("data"), list):
            raise MalformedRecordError(
                f"Commerce product page {page} has no data list",
                source=self.source.value,
                field="data",
            )
        return body

    async def fetch_products(self) -> list[dict[str, Any]]:
        """Walk every page and return all products in listing order."""
        products: list[dict[str, Any]] = []
        page = 0
        while True:
            body = await self.fetch_products_page(page)
            products.extend(body["data"])
            page += 1
            total_pages = int(body.get("totalPages") or 0)
            if page >= total_pages or not body["data"]:
                break
        logger.debug("Fetched %d products across %d pages", len(products), page)
        return products

    async def fetch_raw(self) -> dict[str, Any]:
        products = await self.fetch_products()

        brands: dict[str, dict[str, Any]] = {}
        categories: dict[str, dict[str, Any]] = {}
        for product in products:
            brand = product.get("brand")
            if brand and brand.get("id"):
                brands[brand["id"]] = brand
            category = product.get("category")
            if category and category.get("id"):
                categories[category["id"]] = category

        return {
            "products": products,
            "brands": list(brands.values()),
            "categories": list(categories.values()),
        }

    async def health_check(self) -> bool:
        """Check the service's actuator health endpoint."""
        try:
            body = await self._get("/actuator/health")
        except httpx.HTTPError:
            return False
        return isinstance(body, dict) and body.get("status") == "UP"
