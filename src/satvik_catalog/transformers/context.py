"""Settings a transformer needs that do not come from the record itself."""

from dataclasses import dataclass, replace

from satvik_catalog.config import Settings
from satvik_catalog.models.catalog import DataSource


@dataclass(frozen=True)
class TransformationContext:
    """Per-source context passed to every transformer."""

    source: DataSource = DataSource.LOCAL
    placeholder_image: str = "/placeholder.svg"
    asset_base_url: str = "/assets/products/"
    sanity_project_id: str = "eaaly2y1"
    sanity_dataset: str = "products"

    @classmethod
    def from_settings(cls, settings: Settings, source: DataSource) -> "TransformationContext":
        return cls(
            source=source,
            placeholder_image=settings.placeholder_image,
            asset_base_url=settings.asset_base_url,
            sanity_project_id=settings.sanity_project_id,
            sanity_dataset=settings.sanity_dataset,
        )

    def for_source(self, source: DataSource) -> "TransformationContext":
        return replace(self, source=source)
