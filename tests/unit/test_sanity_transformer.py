"""Unit tests for the CMS transformer."""

import pytest

from satvik_catalog.exceptions import MalformedRecordError
from satvik_catalog.models.catalog import DataSource, ImageSource
from satvik_catalog.transformers.sanity import transform_sanity_catalog


class TestTransformSanityCatalog:
    def test_products_and_metadata(self, sanity_payload):
        data = transform_sanity_catalog(sanity_payload)

        assert [p.id for p in data.products] == ["makhana-peri-peri", "kunda"]
        assert data.metadata.data_source == DataSource.SANITY

    def test_cms_image_reference(self, sanity_payload):
        makhana = transform_sanity_catalog(sanity_payload).products[0]

        assert makhana.image.url == "https://cdn.sanity.io/images/eaaly2y1/products/abc123-800x600.jpg"
        assert makhana.image.source == ImageSource.SANITY
        assert makhana.image.alt == "Peri peri makhana"
        assert makhana.image.fallback_url == "/assets/products/makhana_peri_peri.jpg"

    def test_no_cms_image_uses_bundled_asset(self, sanity_payload):
        kunda = transform_sanity_catalog(sanity_payload).products[1]

        assert kunda.image.url == "/assets/products/kunda.jpg"
        assert kunda.image.source == ImageSource.LOCAL

    def test_variant_price_fallback(self, sanity_payload):
        kunda = transform_sanity_catalog(sanity_payload).products[1]

        assert kunda.price == "$7.50"
        assert kunda.variants[0].id == "k1"

    def test_food_details_carried_through(self, sanity_payload):
        makhana = transform_sanity_catalog(sanity_payload).products[0]

        assert makhana.ingredients == ("makhana", "spices")
        assert makhana.shelf_life == "6 months"
        assert makhana.created_at == "2024-10-01T00:00:00Z"

    def test_reference_resolved_from_standalone_list(self, sanity_payload):
        data = transform_sanity_catalog(sanity_payload)
        makhana = data.products[0]

        assert makhana.brand == data.brands[0]
        assert makhana.category.sort_order == 2

    def test_inline_reference_missing_from_lists_is_added(self, sanity_payload):
        data = transform_sanity_catalog(sanity_payload)

        assert [b.id for b in data.brands] == ["satvik", "belgaum"]
        assert [c.id for c in data.categories] == ["snacks", "sweets"]
        assert data.metadata.total_brands == 2

    def test_missing_reference_defaults(self, sanity_payload):
        sanity_payload["products"][1]["brand"] = None
        sanity_payload["products"][1]["category"] = {}
        data = transform_sanity_catalog(sanity_payload)
        kunda = data.products[1]

        assert kunda.brand.id == "unknown"
        assert kunda.category.id == "uncategorized"
        assert "unknown" in {b.id for b in data.brands}

    def test_falls_back_to_document_id(self, sanity_payload):
        del sanity_payload["products"][1]["id"]
        assert transform_sanity_catalog(sanity_payload).products[1].id == "prod-2"

    def test_missing_ids_raise(self, sanity_payload):
        del sanity_payload["products"][1]["id"]
        del sanity_payload["products"][1]["_id"]

        with pytest.raises(MalformedRecordError):
            transform_sanity_catalog(sanity_payload)

    def test_idempotent(self, sanity_payload):
        first = transform_sanity_catalog(sanity_payload)
        second = transform_sanity_catalog(sanity_payload)
        assert first.products == second.products
