#!/usr/bin/env python
"""Export the active catalog source to the bundled local JSON format."""

import argparse
import asyncio
import json
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from satvik_catalog.config import get_settings
from satvik_catalog.exceptions import CatalogError
from satvik_catalog.service import UnifiedDataService


async def main() -> None:
    """Fetch the catalog and write it as brands[].categories[].products[] JSON."""
    parser = argparse.ArgumentParser(description="Export the catalog to the local JSON format")
    parser.add_argument(
        "--source",
        choices=["local", "sanity", "backend"],
        default=None,
        help="Source to export from (defaults to the configured source)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default="catalog.json",
        help="Output file path",
    )
    parser.add_argument(
        "--no-fallback",
        action="store_true",
        help="Fail instead of exporting the bundled catalog when the source is down",
    )
    args = parser.parse_args()

    settings = get_settings()
    service = UnifiedDataService.from_settings(settings)
    service.fallback_to_local = not args.no_fallback
    if args.source:
        service.selector.set_override(args.source)

    print(f"Exporting from data source: {service.active_source.value}")

    try:
        data = await service.get_unified_data()
        document = await service.export_to_local_format()
    except CatalogError as e:
        print(f"Export failed: {e.message}")
        sys.exit(1)
    finally:
        await service.close()

    if data.metadata.data_source != service.active_source:
        print(f"Warning: source unavailable, exported the {data.metadata.data_source.value} catalog")

    output_path = Path(args.output)
    output_path.write_text(json.dumps(document, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")

    print(
        f"Wrote {data.metadata.total_products} products, "
        f"{data.metadata.total_brands} brands to {output_path}"
    )


if __name__ == "__main__":
    asyncio.run(main())
