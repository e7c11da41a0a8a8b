"""Bundled static catalog adapter."""

import json
import logging
from importlib import resources
from pathlib import Path
from typing import Any

from satvik_catalog.models.catalog import DataSource
from satvik_catalog.sources.base import SourceAdapter

logger = logging.getLogger(__name__)


def bundled_catalog_path() -> Path:
    """Path of the catalog JSON shipped inside the package."""
    return Path(str(resources.files("satvik_catalog") / "data" / "catalog.json"))


class LocalCatalogAdapter(SourceAdapter):
    """
    Reads the static ``brands[].categories[].products[]`` document.

    The document is part of the build, so a decoding error is a packaging
    bug and is allowed to propagate.
    """

    def __init__(self, path: Path | str | None = None) -> None:
        self.path = Path(path) if path else bundled_catalog_path()
        self._document: dict[str, Any] | None = None

    @property
    def source(self) -> DataSource:
        return DataSource.LOCAL

    def load(self) -> dict[str, Any]:
        """Read and memoize the document synchronously."""
        if self._document is None:
            with self.path.open(encoding="utf-8") as fh:
                self._document = json.load(fh)
            logger.debug("Loaded bundled catalog from %s", self.path)
        return self._document

    async def fetch_raw(self) -> dict[str, Any]:
        return self.load()

    async def health_check(self) -> bool:
        return self.path.is_file()
