"""Data models for binrotation."""

from binrotation.models.collection import (
    BinPattern,
    CollectionInfo,
    DataQuality,
    DayDistributionEntry,
    PatternDefinition,
    PatternOverride,
    PatternSource,
    ProcessedData,
    ProcessingMetadata,
    PropertyRecord,
    QualityFlag,
    QualityLevel,
    SuburbCount,
    SuburbStats,
    SuburbSummary,
    ZoneDistributionEntry,
    ZoneInfo,
)

__all__ = [
    "BinPattern",
    "CollectionInfo",
    "DataQuality",
    "DayDistributionEntry",
    "PatternDefinition",
    "PatternOverride",
    "PatternSource",
    "ProcessedData",
    "ProcessingMetadata",
    "PropertyRecord",
    "QualityFlag",
    "QualityLevel",
    "SuburbCount",
    "SuburbStats",
    "SuburbSummary",
    "ZoneDistributionEntry",
    "ZoneInfo",
]
