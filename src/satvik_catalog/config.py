"""Configuration management using pydantic-settings."""

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Data source selection
    data_source: str = Field(
        default="local",
        description="Default catalog source (local, sanity, backend)",
    )
    data_source_preference_file: Path = Field(
        default=Path.home() / ".satvik_catalog" / "preferences.json",
        description="File holding the persisted data source preference",
    )
    fallback_to_local: bool = Field(
        default=True,
        description="Retry once against the bundled catalog when a remote source fails",
    )
    cache_ttl_seconds: float = Field(
        default=300.0,
        ge=0,
        description="Seconds a catalog snapshot stays fresh",
    )

    # Local bundled catalog
    local_catalog_path: Path | None = Field(
        default=None,
        description="Override path to the static catalog JSON (defaults to the bundled file)",
    )

    # Sanity CMS
    sanity_project_id: str = Field(
        default="eaaly2y1",
        description="Sanity project ID",
    )
    sanity_dataset: str = Field(
        default="products",
        description="Sanity dataset name",
    )
    sanity_api_version: str = Field(
        default="2024-09-19",
        description="Sanity API version date",
    )
    sanity_token: str = Field(
        default="",
        description="Sanity read token",
    )
    sanity_use_cdn: bool = Field(
        default=False,
        description="Query the Sanity API CDN instead of the live API",
    )

    # Commerce service
    commerce_api_url: str = Field(
        default="http://localhost:8080",
        description="Base URL of the commerce REST service",
    )
    commerce_page_size: int = Field(
        default=200,
        gt=0,
        description="Page size used when walking the product listing",
    )
    http_timeout_seconds: float = Field(
        default=30.0,
        description="Timeout for outbound HTTP calls",
    )

    # Images
    placeholder_image: str = Field(
        default="/placeholder.svg",
        description="Generic image used when nothing else resolves",
    )
    asset_base_url: str = Field(
        default="/assets/products/",
        description="URL prefix for bundled product images",
    )

    # Catalog feed
    storefront_url: str = Field(
        default="https://satvikfoods.ca",
        description="Public storefront URL used for product links",
    )
    feed_currency: str = Field(
        default="CAD",
        description="Currency code appended to feed prices",
    )

    # API Settings
    api_title: str = Field(
        default="Satvik Foods Catalog",
        description="API title",
    )
    api_version: str = Field(
        default="0.1.0",
        description="API version",
    )
    admin_api_key: str = Field(
        default="",
        description="Bearer key for catalog admin endpoints (empty disables them)",
    )
    cors_origins: list[str] = Field(
        default=["*"],
        description="Allowed CORS origins",
    )

    # Observability
    log_level: str = Field(
        default="INFO",
        description="Log level (DEBUG, INFO, WARNING, ERROR)",
    )
    log_json: bool = Field(
        default=True,
        description="Enable JSON structured logging",
    )
    enable_metrics: bool = Field(
        default=True,
        description="Record OpenTelemetry metrics",
    )
    service_name: str = Field(
        default="satvik-catalog",
        description="Service name for telemetry",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
