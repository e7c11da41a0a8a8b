#!/usr/bin/env python
"""Generate the product feed CSV for Meta Commerce Manager."""

import argparse
import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from satvik_catalog.config import get_settings
from satvik_catalog.exceptions import CatalogError
from satvik_catalog.feed import FEED_FILENAME, build_feed_rows, render_feed_csv
from satvik_catalog.service import UnifiedDataService


async def main() -> None:
    """Write the catalog feed CSV."""
    parser = argparse.ArgumentParser(description="Generate the catalog feed CSV")
    parser.add_argument(
        "--source",
        choices=["local", "sanity", "backend"],
        default=None,
        help="Source to read products from (defaults to the configured source)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default=FEED_FILENAME,
        help="Output CSV path",
    )
    args = parser.parse_args()

    settings = get_settings()
    service = UnifiedDataService.from_settings(settings)
    if args.source:
        service.selector.set_override(args.source)

    print(f"Reading products from: {service.active_source.value}")

    try:
        products = await service.get_products()
    except CatalogError as e:
        print(f"Feed generation failed: {e.message}")
        sys.exit(1)
    finally:
        await service.close()

    rows = build_feed_rows(
        products,
        storefront_url=settings.storefront_url,
        currency=settings.feed_currency,
    )
    output_path = Path(args.output)
    output_path.write_text(render_feed_csv(rows), encoding="utf-8")

    print(f"Wrote {len(rows)} of {len(products)} products to {output_path}")


if __name__ == "__main__":
    asyncio.run(main())
