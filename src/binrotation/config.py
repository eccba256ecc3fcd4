"""Configuration system for binrotation.

Uses pydantic-settings to load configuration from environment variables
and .env files with defaults for the Brisbane City Council open data portal.
"""

from pathlib import Path

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class HighQualityThresholds(BaseModel):
    """Minimums a suburb must meet for a ``high`` data-quality rating."""

    day_uniformity: float = Field(default=99, ge=0, le=100)
    zone_count: int = Field(default=1, ge=0)
    min_properties: int = Field(default=100, ge=0)


class MediumQualityThresholds(BaseModel):
    """Minimums for a ``medium`` rating, also used to raise warnings."""

    day_uniformity: float = Field(default=95, ge=0, le=100)
    zone_uniformity: float = Field(default=80, ge=0, le=100)
    min_properties: int = Field(default=50, ge=0)


class QualityThresholds(BaseModel):
    """Data-quality thresholds used by the suburb aggregator."""

    high: HighQualityThresholds = Field(default_factory=HighQualityThresholds)
    medium: MediumQualityThresholds = Field(default_factory=MediumQualityThresholds)


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All settings can be overridden via environment variables or .env file.
    Environment variables are prefixed with BINROTATION_ (e.g.,
    BINROTATION_BATCH_SIZE). Nested threshold values use a double
    underscore (e.g., BINROTATION_QUALITY__MEDIUM__MIN_PROPERTIES).
    """

    model_config = SettingsConfigDict(
        env_prefix="BINROTATION_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    # Upstream catalog
    api_base_url: str = Field(
        default="https://www.data.brisbane.qld.gov.au/api/explore/v2.1",
        description="Base URL of the Opendatasoft Explore API",
    )
    collection_days_dataset: str = Field(
        default="waste-collection-days-collection-days",
        description="Dataset holding one collection-day record per property",
    )
    timezone: str = Field(
        default="Australia/Brisbane",
        description="Timezone passed to the records endpoint",
    )

    # Request behaviour
    batch_size: int = Field(
        default=100,
        ge=1,
        le=100,
        description="Records requested per page",
    )
    max_retries: int = Field(
        default=3,
        ge=0,
        description="Retries for transient request failures",
    )
    retry_base_delay: float = Field(
        default=1.0,
        ge=0,
        description="Initial retry backoff in seconds",
    )
    request_timeout: float = Field(
        default=30.0,
        gt=0,
        description="HTTP request timeout in seconds",
    )
    rate_limit_delay: float = Field(
        default=0.1,
        ge=0,
        description="Pause in seconds between consecutive requests",
    )
    pagination_ceiling: int = Field(
        default=10000,
        ge=1,
        description="Largest offset the records endpoint accepts",
    )
    facet_limit: int = Field(
        default=1000,
        ge=1,
        description="Maximum facet values returned per listing request",
    )

    # Analysis
    quality: QualityThresholds = Field(
        default_factory=QualityThresholds,
        description="Data-quality thresholds",
    )
    overrides_file: Path | None = Field(
        default=None,
        description="JSON file of verified pattern overrides replacing the built-in table",
    )

    # Output
    output_dir: Path = Field(
        default=Path("data"),
        description="Directory for published JSON files",
    )
    output_version: str = Field(
        default="2.0",
        description="Version stamped into published metadata",
    )
    data_source_label: str = Field(
        default="Brisbane City Council Open Data",
        description="Data source name stamped into published metadata",
    )
    history_size: int = Field(
        default=7,
        ge=1,
        description="Number of dated snapshots advertised in index.json",
    )

    # Validation
    min_data_completeness: float = Field(
        default=90.0,
        ge=0,
        le=100,
        description="Completeness percentage below which --validate reports a suburb",
    )


# Singleton instance for easy import
config = Settings()
