"""Base source adapter interface."""

from abc import ABC, abstractmethod
from typing import Any

from satvik_catalog.models.catalog import DataSource


class SourceAdapter(ABC):
    """
    Abstract base class for catalog sources.

    Implementations fetch raw, source-specific records from exactly one
    backing store and return them without any normalization. Mapping to
    unified entities is the job of the matching transformer.
    """

    @property
    @abstractmethod
    def source(self) -> DataSource:
        """Return the data source this adapter reads from."""
        ...

    @abstractmethod
    async def fetch_raw(self) -> dict[str, Any]:
        """
        Fetch the complete raw catalog.

        Returns:
            The source's native payload.

        Raises:
            Any transport or decoding error; nothing is swallowed.
        """
        ...

    async def health_check(self) -> bool:
        """
        Check if the source is reachable.

        Returns:
            True if the source answered.
        """
        return True

    async def close(self) -> None:
        """Release any network resources."""
        return None
