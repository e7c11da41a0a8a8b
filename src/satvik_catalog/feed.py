"""Product feed export in the CSV layout accepted by Meta Commerce Manager."""

import csv
import io
import logging
from collections.abc import Iterable
from typing import Any

from satvik_catalog.models.catalog import UnifiedProduct
from satvik_catalog.transformers.images import is_absolute_url
from satvik_catalog.transformers.pricing import parse_price

logger = logging.getLogger(__name__)

FEED_FIELDS = ["id", "title", "description", "availability", "price", "link", "image_link"]
FEED_FILENAME = "satvik-catalog.csv"
FEED_CACHE_CONTROL = "public, max-age=3600"


def _absolute(url: str, storefront_url: str) -> str:
    if not url or is_absolute_url(url):
        return url
    return f"{storefront_url.rstrip('/')}/{url.lstrip('/')}"


def feed_row(
    product: UnifiedProduct,
    storefront_url: str,
    currency: str = "CAD",
) -> dict[str, Any] | None:
    """
    Build one feed row, or None when the product has no price.

    The product id doubles as its storefront slug.
    """
    amount = parse_price(product.price)
    if amount is None:
        return None
    return {
        "id": product.id,
        "title": product.name,
        "description": product.description,
        "availability": "in stock" if product.in_stock else "out of stock",
        "price": f"{amount:.2f} {currency}",
        "link": f"{storefront_url.rstrip('/')}/product/{product.id}",
        "image_link": _absolute(product.image.url, storefront_url),
    }


def build_feed_rows(
    products: Iterable[UnifiedProduct],
    storefront_url: str,
    currency: str = "CAD",
) -> list[dict[str, Any]]:
    rows = []
    skipped = 0
    for product in products:
        row = feed_row(product, storefront_url, currency)
        if row is None:
            skipped += 1
            continue
        rows.append(row)
    if skipped:
        logger.info("Skipped %d products without a price from the catalog feed", skipped)
    return rows


def render_feed_csv(rows: Iterable[dict[str, Any]]) -> str:
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=FEED_FIELDS, lineterminator="\n")
    writer.writeheader()
    writer.writerows(rows)
    return buffer.getvalue()


def generate_catalog_feed(
    products: Iterable[UnifiedProduct],
    storefront_url: str,
    currency: str = "CAD",
) -> str:
    """Render the full feed for ``products`` as CSV text."""
    return render_feed_csv(build_feed_rows(products, storefront_url, currency))
