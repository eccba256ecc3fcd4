"""Waste collection data models.

Field names are snake_case in Python and camelCase in published JSON
(``model_dump(by_alias=True)``), which is the shape the front end reads.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model that serializes to camelCase keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class QualityLevel(str, Enum):
    """Overall data-quality rating of a suburb."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class QualityFlag(str, Enum):
    """Machine-readable data-quality warnings."""

    MULTIPLE_DAYS = "MULTIPLE_DAYS"
    MIXED_ZONES = "MIXED_ZONES"
    MIXED_ZONES_LOW_UNIFORMITY = "MIXED_ZONES_LOW_UNIFORMITY"
    SMALL_SAMPLE = "SMALL_SAMPLE"


class PatternSource(str, Enum):
    """Where a suburb's bin pattern came from."""

    OVERRIDE = "override"
    ESTIMATED = "estimated"


class PropertyRecord(CamelModel):
    """One property's collection record as returned by the catalog.

    Every field is a string; fields missing upstream are empty strings.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    property_id: str = ""
    suburb: str = ""
    street_name: str = ""
    day_of_week: str = ""
    zone: str = ""


class SuburbCount(BaseModel):
    """A suburb facet value with its property count."""

    name: str
    count: int = Field(ge=0)


class DayDistributionEntry(CamelModel):
    day: str
    count: int = Field(ge=0)
    percentage: float = Field(ge=0, le=100)


class ZoneDistributionEntry(CamelModel):
    zone: str
    count: int = Field(ge=0)
    percentage: float = Field(ge=0, le=100)


class SuburbStats(CamelModel):
    total_properties: int = Field(..., ge=1, description="Properties in the suburb")
    last_updated: str = Field(..., description="ISO-8601 timestamp of aggregation")
    data_completeness: float = Field(
        ..., ge=0, le=100, description="Percent of records with every required field"
    )


class CollectionInfo(CamelModel):
    primary_day: str
    day_uniformity: float = Field(ge=0, le=100)
    schedule: list[DayDistributionEntry] = Field(default_factory=list)


class ZoneInfo(CamelModel):
    distribution: list[ZoneDistributionEntry] = Field(default_factory=list)
    primary_zone: str
    zone_uniformity: float = Field(ge=0, le=100)


class DataQuality(CamelModel):
    level: QualityLevel
    confidence: float = Field(ge=0, le=1)
    warnings: list[str] = Field(default_factory=list)
    flags: list[QualityFlag] = Field(default_factory=list)


class BinPattern(CamelModel):
    source: PatternSource
    confidence: float = Field(ge=0, le=1)
    pattern: str
    notes: str = ""


class SuburbSummary(CamelModel):
    """Aggregated collection data for a single suburb.

    Built by the SuburbAggregator; ``bin_pattern`` stays None until the
    PatternAnalyzer has run.
    """

    suburb: str = Field(..., min_length=1)
    stats: SuburbStats
    collection: CollectionInfo
    zones: ZoneInfo
    data_quality: DataQuality
    bin_pattern: BinPattern | None = None


class PatternOverride(CamelModel):
    """A verified bin pattern for a suburb/zone/day combination.

    ``zone`` may be ``ANY`` to match every zone.
    """

    suburb: str
    zone: str
    day: str
    pattern: str
    notes: str | None = None


class PatternDefinition(CamelModel):
    """Which bin goes out on even and odd weeks for a pattern code."""

    description: str
    even_week: str
    odd_week: str


class ProcessingMetadata(CamelModel):
    version: str
    generated: str
    data_source: str
    processing_time: float = Field(ge=0, description="Seconds spent on the run")
    suburb_count: int = Field(ge=0)
    total_properties: int = Field(ge=0)


class ProcessedData(CamelModel):
    """The document written to suburbs-latest.json."""

    metadata: ProcessingMetadata
    suburbs: list[SuburbSummary]
