"""Unit tests for the unified data service."""

import json
from unittest.mock import patch

import httpx
import pytest

from satvik_catalog.config import Settings
from satvik_catalog.exceptions import DataSourceUnavailableError, MalformedRecordError
from satvik_catalog.models.catalog import DataSource
from satvik_catalog.service import CacheState, SnapshotCache, UnifiedDataService
from satvik_catalog.source_selection import SourceSelector
from satvik_catalog.sources.commerce import CommerceApiAdapter
from satvik_catalog.sources.local import LocalCatalogAdapter
from satvik_catalog.sources.sanity import SanityAdapter


@pytest.fixture
def adapters(make_adapter, local_payload, sanity_payload, commerce_payload):
    return {
        DataSource.LOCAL: make_adapter(DataSource.LOCAL, local_payload),
        DataSource.SANITY: make_adapter(DataSource.SANITY, sanity_payload),
        DataSource.BACKEND: make_adapter(DataSource.BACKEND, commerce_payload),
    }


@pytest.fixture
def build_service(adapters, fake_clock, disabled_metrics):
    def build(default: str = "local", **kwargs) -> UnifiedDataService:
        return UnifiedDataService(
            kwargs.pop("adapters", adapters),
            SourceSelector(default=default),
            clock=fake_clock,
            metrics=disabled_metrics,
            **kwargs,
        )

    return build


class TestSnapshotCache:
    def test_fresh_until_ttl(self, fake_clock, local_payload):
        from satvik_catalog.transformers.local import transform_local_catalog

        cache = SnapshotCache(ttl_seconds=10, clock=fake_clock)
        data = transform_local_catalog(local_payload)
        cache.set(data, DataSource.LOCAL)

        fake_clock.advance(9.9)
        assert cache.get(DataSource.LOCAL) is data
        assert cache.get(DataSource.SANITY) is None

        fake_clock.advance(0.1)
        assert cache.get(DataSource.LOCAL) is None
        assert cache.entry is not None

    def test_clear(self, fake_clock):
        cache = SnapshotCache(clock=fake_clock)
        cache.clear()
        assert cache.entry is None
        assert cache.age() is None


class TestCaching:
    @pytest.mark.asyncio
    async def test_second_call_within_ttl_is_served_from_cache(self, build_service, adapters, fake_clock):
        service = build_service()

        first = await service.get_unified_data()
        fake_clock.advance(299)
        second = await service.get_unified_data()

        assert second is first
        assert adapters[DataSource.LOCAL].calls == 1

    @pytest.mark.asyncio
    async def test_call_after_ttl_refetches(self, build_service, adapters, fake_clock):
        service = build_service()

        first = await service.get_unified_data()
        fake_clock.advance(300)
        second = await service.get_unified_data()

        assert second is not first
        assert adapters[DataSource.LOCAL].calls == 2

    @pytest.mark.asyncio
    async def test_custom_ttl(self, build_service, adapters, fake_clock):
        service = build_service(ttl_seconds=5)

        await service.get_unified_data()
        fake_clock.advance(6)
        await service.get_unified_data()

        assert adapters[DataSource.LOCAL].calls == 2

    @pytest.mark.asyncio
    async def test_clear_cache_forces_refetch(self, build_service, adapters):
        service = build_service()

        await service.get_unified_data()
        service.clear_cache()

        assert service.state == CacheState.EMPTY
        await service.get_unified_data()
        assert adapters[DataSource.LOCAL].calls == 2

    @pytest.mark.asyncio
    async def test_refresh_and_force_refresh(self, build_service, adapters):
        service = build_service()

        await service.get_unified_data()
        await service.refresh()
        await service.get_unified_data(force_refresh=True)

        assert adapters[DataSource.LOCAL].calls == 3

    @pytest.mark.asyncio
    async def test_switching_source_misses_cache(self, build_service, adapters):
        service = build_service()

        local = await service.get_unified_data()
        service.selector.set_override("sanity")
        cms = await service.get_unified_data()

        assert local.metadata.data_source == DataSource.LOCAL
        assert cms.metadata.data_source == DataSource.SANITY
        assert adapters[DataSource.SANITY].calls == 1

    @pytest.mark.asyncio
    async def test_projections_share_one_snapshot(self, build_service, adapters):
        service = build_service()

        products = await service.get_products()
        brands = await service.get_brands()
        categories = await service.get_categories()

        assert [p.id for p in products] == ["millet-dosa", "millet-upma", "ponni"]
        assert [b.id for b in brands] == ["satvik", "nilgiris"]
        assert [c.id for c in categories] == ["mixes", "rice"]
        assert adapters[DataSource.LOCAL].calls == 1

    @pytest.mark.asyncio
    async def test_returned_lists_do_not_alias_the_snapshot(self, build_service):
        service = build_service()

        products = await service.get_products()
        products.clear()
        (await service.get_brands()).clear()

        data = await service.get_unified_data()
        assert isinstance(data.products, tuple)
        assert isinstance(data.products[0].tags, tuple)
        assert len(await service.get_products()) == data.metadata.total_products
        assert len(await service.get_brands()) == data.metadata.total_brands

    @pytest.mark.asyncio
    async def test_cache_hits_do_not_read_preference_file(self, adapters, fake_clock, disabled_metrics, tmp_path):
        path = tmp_path / "prefs.json"
        path.write_text(json.dumps({"dataSource": "sanity"}))
        service = UnifiedDataService(
            adapters, SourceSelector(preference_file=path), clock=fake_clock, metrics=disabled_metrics
        )

        with patch.object(SourceSelector, "_read_preference") as read_preference:
            for _ in range(3):
                data = await service.get_unified_data()

        read_preference.assert_not_called()
        assert data.metadata.data_source == DataSource.SANITY
        assert adapters[DataSource.SANITY].calls == 1


class TestStateMachine:
    @pytest.mark.asyncio
    async def test_lifecycle(self, build_service, fake_clock):
        service = build_service()
        assert service.state == CacheState.EMPTY

        await service.get_unified_data()
        assert service.state == CacheState.READY

        fake_clock.advance(301)
        assert service.state == CacheState.STALE

        await service.get_unified_data()
        assert service.state == CacheState.READY

    @pytest.mark.asyncio
    async def test_loading_while_fetching(self, make_adapter, local_payload, fake_clock, disabled_metrics):
        seen = []

        class Recording(make_adapter):
            async def fetch_raw(self):
                seen.append(service.state)
                return await super().fetch_raw()

        service = UnifiedDataService(
            {DataSource.LOCAL: Recording(DataSource.LOCAL, local_payload)},
            clock=fake_clock,
            metrics=disabled_metrics,
        )
        await service.get_unified_data()

        assert seen == [CacheState.LOADING]
        assert service.state == CacheState.READY

    @pytest.mark.asyncio
    async def test_failed_refresh_keeps_last_good_snapshot(self, build_service, adapters, fake_clock):
        service = build_service()
        good = await service.get_unified_data()

        fake_clock.advance(301)
        adapters[DataSource.LOCAL].error = OSError("disk gone")

        with pytest.raises(DataSourceUnavailableError):
            await service.get_unified_data()

        assert service.state == CacheState.FAILED
        assert service.cache.entry.data is good
        info = service.get_data_source_info()
        assert info["cache"]["state"] == "failed"
        assert info["cache"]["metadata"]["total_products"] == good.metadata.total_products
        assert info["last_error"] == "Catalog source local is unavailable"

    @pytest.mark.asyncio
    async def test_failed_explicit_refresh_keeps_cached_snapshot(self, build_service, adapters):
        service = build_service()
        good = await service.get_unified_data()
        adapters[DataSource.LOCAL].error = OSError("disk gone")

        with pytest.raises(DataSourceUnavailableError):
            await service.refresh()

        assert service.cache.entry.data is good
        assert service.state == CacheState.FAILED
        assert await service.get_unified_data() is good
        assert adapters[DataSource.LOCAL].calls == 2

    @pytest.mark.asyncio
    async def test_stale_snapshot_is_not_served_after_failure(self, build_service, adapters, fake_clock):
        service = build_service()
        await service.get_unified_data()
        fake_clock.advance(301)
        adapters[DataSource.LOCAL].error = OSError("disk gone")

        for _ in range(2):
            with pytest.raises(DataSourceUnavailableError):
                await service.get_unified_data()

        assert adapters[DataSource.LOCAL].calls == 3

    @pytest.mark.asyncio
    async def test_recovers_after_failure(self, build_service, adapters):
        service = build_service()
        adapters[DataSource.LOCAL].error = OSError("disk gone")

        with pytest.raises(DataSourceUnavailableError):
            await service.get_unified_data()
        assert service.state == CacheState.FAILED
        assert service.last_error is not None

        adapters[DataSource.LOCAL].error = None
        await service.get_unified_data()

        assert service.state == CacheState.READY
        assert service.last_error is None


class TestFallback:
    @pytest.mark.asyncio
    async def test_backend_failure_falls_back_to_local(self, build_service, adapters):
        adapters[DataSource.BACKEND].error = httpx.ConnectError("connection refused")
        service = build_service(default="backend")

        data = await service.get_unified_data()

        assert data.metadata.data_source == DataSource.LOCAL
        assert [p.id for p in data.products] == ["millet-dosa", "millet-upma", "ponni"]
        assert adapters[DataSource.BACKEND].calls == 1
        assert adapters[DataSource.LOCAL].calls == 1
        assert service.state == CacheState.READY

    @pytest.mark.asyncio
    async def test_fallback_snapshot_is_cached_for_requested_source(self, build_service, adapters):
        adapters[DataSource.SANITY].error = httpx.ReadTimeout("timed out")
        service = build_service(default="sanity")

        await service.get_unified_data()
        await service.get_unified_data()

        assert adapters[DataSource.SANITY].calls == 1
        assert service.get_data_source_info()["cache"]["requested_source"] == "sanity"

    @pytest.mark.asyncio
    async def test_fallback_disabled(self, build_service, adapters):
        cause = httpx.ConnectError("connection refused")
        adapters[DataSource.BACKEND].error = cause
        service = build_service(default="backend", fallback_to_local=False)

        with pytest.raises(DataSourceUnavailableError) as exc_info:
            await service.get_unified_data()

        assert exc_info.value.source == "backend"
        assert exc_info.value.cause is cause
        assert exc_info.value.__cause__ is cause
        assert exc_info.value.status_code == 503
        assert adapters[DataSource.LOCAL].calls == 0

    @pytest.mark.asyncio
    async def test_local_failure_is_not_retried(self, build_service, adapters):
        adapters[DataSource.LOCAL].error = OSError("disk gone")
        service = build_service()

        with pytest.raises(DataSourceUnavailableError):
            await service.get_unified_data()

        assert adapters[DataSource.LOCAL].calls == 1

    @pytest.mark.asyncio
    async def test_both_sources_fail(self, build_service, adapters):
        primary = httpx.ConnectError("connection refused")
        adapters[DataSource.BACKEND].error = primary
        adapters[DataSource.LOCAL].error = OSError("disk gone")
        service = build_service(default="backend")

        with pytest.raises(DataSourceUnavailableError) as exc_info:
            await service.get_unified_data()

        assert exc_info.value.cause is primary
        assert service.cache.entry is None
        assert service.state == CacheState.FAILED

    @pytest.mark.asyncio
    async def test_malformed_record_surfaces_without_fallback(self, build_service, adapters):
        adapters[DataSource.BACKEND].payload = {"products": [{"name": "no id"}]}
        service = build_service(default="backend")

        with pytest.raises(DataSourceUnavailableError) as exc_info:
            await service.get_unified_data()

        assert isinstance(exc_info.value.cause, MalformedRecordError)
        assert adapters[DataSource.LOCAL].calls == 0

    @pytest.mark.asyncio
    async def test_missing_adapter_falls_back(self, make_adapter, local_payload, fake_clock, disabled_metrics):
        service = UnifiedDataService(
            {DataSource.LOCAL: make_adapter(DataSource.LOCAL, local_payload)},
            SourceSelector(default="sanity"),
            clock=fake_clock,
            metrics=disabled_metrics,
        )

        data = await service.get_unified_data()

        assert data.metadata.data_source == DataSource.LOCAL


class TestLookups:
    @pytest.mark.asyncio
    async def test_product_lookups(self, build_service):
        service = build_service()

        assert (await service.get_product_by_id("ponni")).name == "Ponni Rice"
        assert await service.get_product_by_id("missing") is None
        assert [p.id for p in await service.get_products_by_brand("satvik")] == ["millet-dosa", "millet-upma"]
        assert [p.id for p in await service.get_products_by_category("rice")] == ["ponni"]
        assert await service.get_products_by_brand_and_category("nilgiris", "mixes") == []
        assert [p.id for p in await service.get_featured_products()] == ["millet-dosa"]
        assert [p.id for p in await service.get_in_stock_products()] == ["millet-dosa", "millet-upma"]
        assert [p.id for p in await service.get_products_with_variants()] == ["millet-upma"]
        assert [p.id for p in await service.get_single_variant_products()] == ["millet-dosa", "ponni"]
        assert [p.id for p in await service.search_products("RICE")] == ["ponni"]


class TestServiceInfo:
    @pytest.mark.asyncio
    async def test_data_source_info(self, build_service):
        service = build_service(default="local")
        info = service.get_data_source_info()

        assert info["current"] == "local"
        assert info["origin"] == "default"
        assert info["fallback_enabled"] is True
        assert info["configured_sources"] == ["backend", "local", "sanity"]
        assert info["cache"]["state"] == "empty"
        assert info["cache"]["metadata"] is None

        await service.get_unified_data()
        info = service.get_data_source_info()
        assert info["cache"]["state"] == "ready"
        assert info["cache"]["age_seconds"] == 0
        assert info["cache"]["metadata"]["total_products"] == 3

    @pytest.mark.asyncio
    async def test_test_connection(self, build_service, adapters):
        service = build_service(default="sanity")
        assert await service.test_connection() is True

        adapters[DataSource.SANITY].healthy = False
        assert await service.test_connection() is False
        assert await service.test_connection(DataSource.LOCAL) is True

    @pytest.mark.asyncio
    async def test_export_to_local_format(self, build_service):
        service = build_service(default="sanity")
        document = await service.export_to_local_format()

        assert [b["id"] for b in document["brands"]] == ["satvik", "belgaum"]
        assert document["brands"][0]["categories"][0]["products"][0]["id"] == "makhana-peri-peri"

    @pytest.mark.asyncio
    async def test_close_closes_adapters(self, build_service, adapters):
        service = build_service()
        await service.close()
        assert all(adapter.closed for adapter in adapters.values())

    def test_from_settings(self, tmp_path):
        settings = Settings(
            data_source="backend",
            data_source_preference_file=tmp_path / "prefs.json",
            cache_ttl_seconds=60,
            fallback_to_local=False,
            commerce_api_url="http://commerce.test/",
            enable_metrics=False,
        )

        service = UnifiedDataService.from_settings(settings)

        assert service.active_source == DataSource.BACKEND
        assert service.fallback_to_local is False
        assert service.cache.ttl_seconds == 60
        assert isinstance(service._adapters[DataSource.LOCAL], LocalCatalogAdapter)
        assert isinstance(service._adapters[DataSource.SANITY], SanityAdapter)
        commerce = service._adapters[DataSource.BACKEND]
        assert isinstance(commerce, CommerceApiAdapter)
        assert commerce.base_url == "http://commerce.test"
