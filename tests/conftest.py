"""Pytest configuration and fixtures."""

import os
import sys
import tempfile
from pathlib import Path
from typing import Any

import pytest

# Add src to path for imports
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

# Set test environment variables
os.environ.setdefault("ADMIN_API_KEY", "test-admin-key")
os.environ.setdefault("LOG_JSON", "false")
os.environ.setdefault(
    "DATA_SOURCE_PREFERENCE_FILE",
    str(Path(tempfile.gettempdir()) / "satvik-catalog-test" / "preferences.json"),
)

from satvik_catalog.models.catalog import DataSource  # noqa: E402
from satvik_catalog.observability.metrics import MetricsRegistry  # noqa: E402
from satvik_catalog.sources.base import SourceAdapter  # noqa: E402


class FakeClock:
    """Monotonic clock the test advances by hand."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeAdapter(SourceAdapter):
    """In-memory adapter that counts fetches and can be told to fail."""

    def __init__(
        self,
        source: DataSource,
        payload: dict[str, Any] | None = None,
        error: Exception | None = None,
    ) -> None:
        self._source = source
        self.payload = payload or {}
        self.error = error
        self.calls = 0
        self.healthy = True
        self.closed = False

    @property
    def source(self) -> DataSource:
        return self._source

    async def fetch_raw(self) -> dict[str, Any]:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.payload

    async def health_check(self) -> bool:
        return self.healthy

    async def close(self) -> None:
        self.closed = True


@pytest.fixture(scope="session")
def project_root() -> Path:
    """Get the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_adapter():
    """Factory for FakeAdapter instances."""
    return FakeAdapter


@pytest.fixture
def disabled_metrics() -> MetricsRegistry:
    return MetricsRegistry(enabled=False)


@pytest.fixture
def local_payload() -> dict:
    """Nested bundled-catalog document with two brands."""
    return {
        "brands": [
            {
                "id": "satvik",
                "name": "Satvik Millets",
                "sortOrder": 2,
                "categories": [
                    {
                        "id": "mixes",
                        "name": "Ready Mixes",
                        "sortOrder": 1,
                        "products": [
                            {
                                "id": "millet-dosa",
                                "name": "Millet Dosa",
                                "description": "Dosa batter mix",
                                "image": "millet_dosa.jpg",
                                "price": "$6.99",
                                "variant": "500g",
                                "featured": True,
                                "tags": ["breakfast"],
                            },
                            {
                                "id": "millet-upma",
                                "name": "Millet Upma",
                                "description": "Upma mix",
                                "variants": [
                                    {"id": "upma-250", "name": "250g", "price": "$3.00", "inStock": False},
                                    {"id": "upma-500", "name": "500g", "price": "$5.00"},
                                ],
                            },
                        ],
                    }
                ],
            },
            {
                "id": "nilgiris",
                "name": "Nilgiris",
                "sortOrder": 1,
                "categories": [
                    {
                        "id": "rice",
                        "name": "Rice",
                        "products": [
                            {
                                "id": "ponni",
                                "name": "Ponni Rice",
                                "description": "Boiled rice",
                                "price": "$19.99",
                                "inStock": False,
                            }
                        ],
                    }
                ],
            },
        ]
    }


@pytest.fixture
def sanity_payload() -> dict:
    """Results of the three CMS queries."""
    return {
        "products": [
            {
                "_id": "prod-1",
                "id": "makhana-peri-peri",
                "name": "Makhana Peri Peri",
                "description": "Roasted fox nuts",
                "price": "$3.99",
                "image": {"asset": {"_ref": "image-abc123-800x600-jpg"}, "alt": "Peri peri makhana"},
                "brand": {"_id": "b1", "id": "satvik", "name": "Satvik Millets"},
                "category": {"_id": "c1", "id": "snacks", "name": "Snacks"},
                "tags": ["snack"],
                "ingredients": ["makhana", "spices"],
                "shelfLife": "6 months",
                "_createdAt": "2024-10-01T00:00:00Z",
            },
            {
                "_id": "prod-2",
                "id": "kunda",
                "name": "Kunda",
                "description": "Belgaum milk sweet",
                "variants": [{"_key": "k1", "name": "250g", "price": "$7.50", "inStock": True}],
                "brand": {"_id": "b2", "id": "belgaum", "name": "Belgaum Sweets"},
                "category": {"_id": "c2", "id": "sweets", "name": "Sweets"},
            },
        ],
        "brands": [{"_id": "b1", "id": "satvik", "name": "Satvik Millets", "isActive": True}],
        "categories": [{"_id": "c1", "id": "snacks", "name": "Snacks", "sortOrder": 2}],
    }


@pytest.fixture
def commerce_products() -> list[dict]:
    """Products as returned by the commerce listing."""
    return [
        {
            "id": "p-100",
            "name": "Jawar Rotti",
            "description": "Sorghum flatbread",
            "defaultPrice": 4.5,
            "imageUrl": None,
            "brand": {"id": "satvik", "name": "Satvik Millets"},
            "category": {"id": "breads", "name": "Breads"},
            "variants": [{"id": "v1", "name": "10 pack", "price": 4.5, "inStock": True}],
            "tags": ["bread"],
        },
        {
            "id": "p-101",
            "name": "Sajje Rotti",
            "description": "Pearl millet flatbread",
            "defaultPrice": None,
            "imageUrl": "https://images.example.com/sajje.jpg",
            "galleryImageUrls": ["https://images.example.com/sajje-1.jpg"],
            "brand": {"id": "satvik", "name": "Satvik Millets"},
            "category": {"id": "breads", "name": "Breads"},
            "variants": [
                {"id": "v2", "name": "10 pack", "price": 5, "inStock": False},
                {"id": "v3", "name": "20 pack", "price": 9.5, "inStock": True},
            ],
        },
        {
            "id": "p-102",
            "name": "Mystery Item",
            "description": "",
            "brand": None,
            "category": None,
        },
    ]


@pytest.fixture
def commerce_payload(commerce_products) -> dict:
    return {"products": commerce_products, "brands": [], "categories": []}
