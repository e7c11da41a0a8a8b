"""Runtime selection of the active catalog source.

Resolution order, highest priority first:

1. an explicit in-memory override (e.g. set by an admin action),
2. the persisted preference file,
3. the configured default.
"""

import json
import logging
from enum import Enum
from pathlib import Path

from satvik_catalog.config import Settings
from satvik_catalog.exceptions import InvalidQueryError
from satvik_catalog.models.catalog import DataSource

logger = logging.getLogger(__name__)

PREFERENCE_KEY = "dataSource"


class SelectionOrigin(str, Enum):
    """Which layer supplied the active source."""

    OVERRIDE = "override"
    PREFERENCE = "preference"
    DEFAULT = "default"


def parse_data_source(value: str | DataSource) -> DataSource:
    """Parse a source name, raising InvalidQueryError for unknown values."""
    if isinstance(value, DataSource):
        return value
    try:
        return DataSource(str(value).strip().lower())
    except ValueError:
        allowed = ", ".join(s.value for s in DataSource)
        raise InvalidQueryError(f"Unknown data source '{value}'. Expected one of: {allowed}")


class SourceSelector:
    """Resolves which source adapter the data service should use."""

    def __init__(
        self,
        default: str | DataSource = DataSource.LOCAL,
        preference_file: Path | None = None,
    ) -> None:
        self.default = parse_data_source(default)
        self.preference_file = preference_file
        self._override: DataSource | None = None
        self._preference: DataSource | None = None
        self.load_preference()

    @classmethod
    def from_settings(cls, settings: Settings) -> "SourceSelector":
        return cls(
            default=settings.data_source,
            preference_file=settings.data_source_preference_file,
        )

    @property
    def override(self) -> DataSource | None:
        return self._override

    def set_override(self, value: str | DataSource) -> DataSource:
        self._override = parse_data_source(value)
        logger.info("Data source override set to %s", self._override.value)
        return self._override

    def clear_override(self) -> None:
        self._override = None

    @property
    def preference(self) -> DataSource | None:
        """The persisted preference as last read or written by this selector."""
        return self._preference

    def load_preference(self) -> DataSource | None:
        """
        Re-read the preference file and cache the result.

        Called once on construction. Resolution uses the cached value, so a
        file edited by another process is only seen after an explicit reload.
        Unreadable or unknown values are ignored.
        """
        self._preference = self._read_preference()
        return self._preference

    def _read_preference(self) -> DataSource | None:
        if self.preference_file is None or not self.preference_file.is_file():
            return None
        try:
            raw = json.loads(self.preference_file.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable source preference %s: %s", self.preference_file, e)
            return None
        value = raw.get(PREFERENCE_KEY) if isinstance(raw, dict) else None
        if value is None:
            return None
        try:
            return parse_data_source(value)
        except InvalidQueryError:
            logger.warning("Ignoring unknown persisted data source %r", value)
            return None

    def save_preference(self, value: str | DataSource) -> DataSource:
        source = parse_data_source(value)
        if self.preference_file is None:
            raise InvalidQueryError("No preference file configured")
        self.preference_file.parent.mkdir(parents=True, exist_ok=True)
        self.preference_file.write_text(
            json.dumps({PREFERENCE_KEY: source.value}), encoding="utf-8"
        )
        self._preference = source
        logger.info("Persisted data source preference %s", source.value)
        return source

    def clear_preference(self) -> None:
        if self.preference_file is not None:
            self.preference_file.unlink(missing_ok=True)
        self._preference = None

    def resolution(self) -> tuple[DataSource, SelectionOrigin]:
        """Return the active source and the layer it came from."""
        if self._override is not None:
            return self._override, SelectionOrigin.OVERRIDE
        if self._preference is not None:
            return self._preference, SelectionOrigin.PREFERENCE
        return self.default, SelectionOrigin.DEFAULT

    def resolve(self) -> DataSource:
        return self.resolution()[0]
