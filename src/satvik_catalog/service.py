"""Unified data service: source selection, transformation and snapshot caching."""

import logging
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from satvik_catalog import query
from satvik_catalog.config import Settings
from satvik_catalog.exceptions import DataSourceUnavailableError, MalformedRecordError
from satvik_catalog.models.catalog import (
    DataSource,
    UnifiedBrand,
    UnifiedCategory,
    UnifiedData,
    UnifiedProduct,
)
from satvik_catalog.observability.logging import LogContext
from satvik_catalog.observability.metrics import MetricsRegistry, get_metrics_registry
from satvik_catalog.source_selection import SourceSelector
from satvik_catalog.sources.base import SourceAdapter
from satvik_catalog.sources.commerce import CommerceApiAdapter
from satvik_catalog.sources.local import LocalCatalogAdapter
from satvik_catalog.sources.sanity import SanityAdapter
from satvik_catalog.transformers.commerce import transform_commerce_catalog
from satvik_catalog.transformers.context import TransformationContext
from satvik_catalog.transformers.local import transform_local_catalog, unified_to_local
from satvik_catalog.transformers.sanity import transform_sanity_catalog
from satvik_catalog.transformers.unified import validate_unified_data

logger = logging.getLogger(__name__)

Transformer = Callable[[dict[str, Any], TransformationContext], UnifiedData]

TRANSFORMERS: dict[DataSource, Transformer] = {
    DataSource.LOCAL: transform_local_catalog,
    DataSource.SANITY: transform_sanity_catalog,
    DataSource.BACKEND: transform_commerce_catalog,
}

DEFAULT_TTL_SECONDS = 300.0


class CacheState(str, Enum):
    """Lifecycle of the snapshot cache."""

    EMPTY = "empty"
    LOADING = "loading"
    READY = "ready"
    STALE = "stale"
    FAILED = "failed"


@dataclass(frozen=True)
class CacheEntry:
    """A snapshot and the moment it was stored."""

    data: UnifiedData
    stored_at: float
    requested_source: DataSource


class SnapshotCache:
    """
    Single-snapshot cache with time-based expiry.

    An entry only answers for the source that was active when it was stored,
    so switching sources at runtime is an automatic miss. Writes are
    last-writer-wins; snapshots are immutable so no locking is needed.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entry: CacheEntry | None = None

    @property
    def entry(self) -> CacheEntry | None:
        return self._entry

    def age(self) -> float | None:
        if self._entry is None:
            return None
        return self._clock() - self._entry.stored_at

    def is_fresh(self) -> bool:
        age = self.age()
        return age is not None and age < self.ttl_seconds

    def get(self, requested_source: DataSource) -> UnifiedData | None:
        """Return the snapshot if it is fresh and was built for ``requested_source``."""
        if self._entry is None or self._entry.requested_source != requested_source:
            return None
        if not self.is_fresh():
            return None
        return self._entry.data

    def set(self, data: UnifiedData, requested_source: DataSource) -> CacheEntry:
        self._entry = CacheEntry(
            data=data,
            stored_at=self._clock(),
            requested_source=requested_source,
        )
        return self._entry

    def clear(self) -> None:
        self._entry = None


class UnifiedDataService:
    """
    Single entry point for catalog data.

    Picks the active source adapter, runs its transformer and caches the
    normalized snapshot. Callers get unified entities only.

    Concurrent cache misses are not coalesced; each caller may trigger its
    own fetch and the last completed one wins the cache.
    """

    def __init__(
        self,
        adapters: Mapping[DataSource, SourceAdapter],
        selector: SourceSelector | None = None,
        *,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        fallback_to_local: bool = True,
        context: TransformationContext | None = None,
        clock: Callable[[], float] = time.monotonic,
        metrics: MetricsRegistry | None = None,
    ) -> None:
        """
        Initialize the service.

        Args:
            adapters: One adapter per data source that may be selected.
            selector: Resolves the active source; defaults to local.
            ttl_seconds: Snapshot freshness window.
            fallback_to_local: Retry once against the local adapter when another source fails.
            context: Transformation defaults (placeholder image, asset URLs).
            clock: Monotonic clock, injectable for tests.
            metrics: Metrics registry; the process-wide one by default.
        """
        self._adapters = dict(adapters)
        self.selector = selector or SourceSelector()
        self.fallback_to_local = fallback_to_local
        self._context = context or TransformationContext()
        self._cache = SnapshotCache(ttl_seconds=ttl_seconds, clock=clock)
        self._metrics = metrics or get_metrics_registry()
        self._loading = 0
        self._last_error: DataSourceUnavailableError | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "UnifiedDataService":
        """Build a service with all three adapters configured from settings."""
        adapters: dict[DataSource, SourceAdapter] = {
            DataSource.LOCAL: LocalCatalogAdapter(settings.local_catalog_path),
            DataSource.SANITY: SanityAdapter(
                project_id=settings.sanity_project_id,
                dataset=settings.sanity_dataset,
                api_version=settings.sanity_api_version,
                token=settings.sanity_token,
                use_cdn=settings.sanity_use_cdn,
                timeout=settings.http_timeout_seconds,
            ),
            DataSource.BACKEND: CommerceApiAdapter(
                base_url=settings.commerce_api_url,
                page_size=settings.commerce_page_size,
                timeout=settings.http_timeout_seconds,
            ),
        }
        return cls(
            adapters,
            SourceSelector.from_settings(settings),
            ttl_seconds=settings.cache_ttl_seconds,
            fallback_to_local=settings.fallback_to_local,
            context=TransformationContext.from_settings(settings, DataSource.LOCAL),
            metrics=get_metrics_registry() if settings.enable_metrics else MetricsRegistry(enabled=False),
        )

    @property
    def cache(self) -> SnapshotCache:
        return self._cache

    @property
    def last_error(self) -> DataSourceUnavailableError | None:
        return self._last_error

    @property
    def state(self) -> CacheState:
        if self._loading:
            return CacheState.LOADING
        if self._last_error is not None:
            return CacheState.FAILED
        if self._cache.entry is None:
            return CacheState.EMPTY
        return CacheState.READY if self._cache.is_fresh() else CacheState.STALE

    @property
    def active_source(self) -> DataSource:
        return self.selector.resolve()

    async def get_unified_data(self, force_refresh: bool = False) -> UnifiedData:
        """
        Return the current catalog snapshot.

        Serves the cached snapshot while it is fresh and was built for the
        active source. Otherwise fetches, transforms and caches a new one.

        Args:
            force_refresh: Skip the cache and fetch from the source.

        Raises:
            DataSourceUnavailableError: The source failed and no fallback succeeded.
                A previously cached snapshot is left untouched.
        """
        source = self.active_source

        if not force_refresh:
            cached = self._cache.get(source)
            if cached is not None:
                self._metrics.record_cache_event("hit")
                logger.debug("Serving cached catalog for %s", source.value)
                return cached
            self._metrics.record_cache_event("miss")

        self._loading += 1
        try:
            with LogContext(data_source=source.value):
                logger.info("Loading catalog from %s source", source.value)
                data = await self._load_with_fallback(source)
        except DataSourceUnavailableError as e:
            self._last_error = e
            raise
        finally:
            self._loading -= 1

        self._cache.set(data, source)
        self._last_error = None
        logger.info(
            "Catalog loaded from %s: %d products, %d brands, %d categories",
            data.metadata.data_source.value,
            data.metadata.total_products,
            data.metadata.total_brands,
            data.metadata.total_categories,
        )
        return data

    async def _load_with_fallback(self, source: DataSource) -> UnifiedData:
        try:
            return await self._fetch(source)
        except MalformedRecordError as e:
            # Bad data is not a transient failure; the bundled catalog would only mask it.
            logger.error("Malformed record from %s: %s", source.value, e.message)
            raise DataSourceUnavailableError(
                f"{source.value} returned a malformed record: {e.message}",
                source=source.value,
                cause=e,
            ) from e
        except Exception as e:
            logger.error("Failed to load catalog from %s: %s", source.value, e, exc_info=True)
            if source is DataSource.LOCAL or not self.fallback_to_local:
                raise DataSourceUnavailableError(
                    f"Catalog source {source.value} is unavailable",
                    source=source.value,
                    cause=e,
                ) from e
            primary_error = e

        logger.warning("Falling back to local catalog after %s failure", source.value)
        self._metrics.record_fallback(source.value)
        try:
            return await self._fetch(DataSource.LOCAL)
        except Exception as fallback_error:
            logger.error("Local fallback failed: %s", fallback_error, exc_info=True)
            raise DataSourceUnavailableError(
                f"Catalog source {source.value} is unavailable and local fallback failed",
                source=source.value,
                cause=primary_error,
            ) from primary_error

    async def _fetch(self, source: DataSource) -> UnifiedData:
        adapter = self._adapters.get(source)
        if adapter is None:
            raise LookupError(f"No adapter configured for {source.value}")

        start = time.perf_counter()
        try:
            raw = await adapter.fetch_raw()
            data = TRANSFORMERS[source](raw, self._context.for_source(source))
        except Exception:
            self._metrics.record_fetch(source.value, time.perf_counter() - start, status="error")
            raise
        self._metrics.record_fetch(source.value, time.perf_counter() - start)

        problems = validate_unified_data(data)
        if problems:
            logger.warning(
                "Catalog from %s has %d consistency problems: %s",
                source.value,
                len(problems),
                "; ".join(problems[:5]),
            )
        return data

    async def get_products(self) -> list[UnifiedProduct]:
        """Products of the current snapshot, as a list the caller may change."""
        return list((await self.get_unified_data()).products)

    async def get_brands(self) -> list[UnifiedBrand]:
        return list((await self.get_unified_data()).brands)

    async def get_categories(self) -> list[UnifiedCategory]:
        return list((await self.get_unified_data()).categories)

    async def get_product_by_id(self, product_id: str) -> UnifiedProduct | None:
        return query.find_product(await self.get_products(), product_id)

    async def get_products_by_brand(self, brand_id: str) -> list[UnifiedProduct]:
        return query.filter_products(await self.get_products(), brand_id=brand_id)

    async def get_products_by_category(self, category_id: str) -> list[UnifiedProduct]:
        return query.filter_products(await self.get_products(), category_id=category_id)

    async def get_products_by_brand_and_category(
        self, brand_id: str, category_id: str
    ) -> list[UnifiedProduct]:
        return query.filter_products(
            await self.get_products(), brand_id=brand_id, category_id=category_id
        )

    async def get_featured_products(self) -> list[UnifiedProduct]:
        return query.filter_products(await self.get_products(), featured=True)

    async def get_in_stock_products(self) -> list[UnifiedProduct]:
        return query.filter_products(await self.get_products(), in_stock=True)

    async def get_products_with_variants(self) -> list[UnifiedProduct]:
        return [p for p in await self.get_products() if p.has_variants]

    async def get_single_variant_products(self) -> list[UnifiedProduct]:
        return [p for p in await self.get_products() if not p.has_variants]

    async def search_products(self, text: str) -> list[UnifiedProduct]:
        return query.search_products(await self.get_products(), text)

    def clear_cache(self) -> None:
        """Drop the snapshot so the next access refetches."""
        self._cache.clear()
        self._last_error = None
        self._metrics.record_cache_event("clear")
        logger.info("Catalog cache cleared")

    async def refresh(self) -> UnifiedData:
        """
        Fetch a fresh snapshot from the active source now.

        The current snapshot is replaced only on success; a failed refresh
        leaves it cached and raises.
        """
        logger.info("Refreshing catalog")
        return await self.get_unified_data(force_refresh=True)

    async def export_to_local_format(self) -> dict[str, Any]:
        """Export the current snapshot in the bundled nested JSON shape."""
        return unified_to_local(await self.get_unified_data())

    async def test_connection(self, source: DataSource | None = None) -> bool:
        """Check that the active (or given) source answers."""
        adapter = self._adapters.get(source or self.active_source)
        if adapter is None:
            return False
        return await adapter.health_check()

    def get_data_source_info(self) -> dict[str, Any]:
        """Describe the active source, its origin and the cache."""
        source, origin = self.selector.resolution()
        entry = self._cache.entry
        return {
            "current": source.value,
            "origin": origin.value,
            "fallback_enabled": self.fallback_to_local,
            "configured_sources": sorted(s.value for s in self._adapters),
            "cache": {
                "state": self.state.value,
                "ttl_seconds": self._cache.ttl_seconds,
                "age_seconds": self._cache.age(),
                "requested_source": entry.requested_source.value if entry else None,
                "metadata": entry.data.metadata.model_dump(mode="json") if entry else None,
            },
            "last_error": self._last_error.message if self._last_error else None,
        }

    async def close(self) -> None:
        """Close every adapter's network resources."""
        for adapter in self._adapters.values():
            await adapter.close()
