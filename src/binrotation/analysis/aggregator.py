"""Suburb aggregation and data-quality scoring.

Groups raw property records by suburb and summarises each suburb's
collection day and zone distributions. Every summary carries a data-quality
rating so the front end can tell a clean single-day, single-zone suburb from
one whose records disagree.
"""

import locale
import logging
import math
from collections.abc import Iterable
from datetime import datetime, timezone
from typing import Optional

from ..config import QualityThresholds, config
from ..models.collection import (
    CollectionInfo,
    DataQuality,
    DayDistributionEntry,
    PropertyRecord,
    QualityFlag,
    QualityLevel,
    SuburbStats,
    SuburbSummary,
    ZoneDistributionEntry,
    ZoneInfo,
)

logger = logging.getLogger(__name__)

UNKNOWN = "UNKNOWN"

LEVEL_CONFIDENCE = {
    QualityLevel.HIGH: 0.95,
    QualityLevel.MEDIUM: 0.75,
    QualityLevel.LOW: 0.5,
}

REQUIRED_FIELDS = ("property_id", "suburb", "day_of_week", "zone")


def round_half_up(value: float, digits: int = 0) -> float:
    """Round halves away from zero for positive values (not banker's rounding)."""
    scale = 10 ** digits
    return math.floor(value * scale + 0.5) / scale


def percentage(count: int, total: int) -> float:
    """``count`` as a percentage of ``total``, to one decimal place."""
    if total <= 0:
        return 0.0
    return math.floor(count / total * 1000 + 0.5) / 10


def normalize_suburb(suburb: str) -> str:
    return suburb.strip().upper()


def _tally(values: Iterable[str]) -> list[tuple[str, int]]:
    """Count normalized non-empty values, most common first.

    Ties keep first-seen order.
    """
    counts: dict[str, int] = {}
    for value in values:
        key = value.strip().upper()
        if key:
            counts[key] = counts.get(key, 0) + 1
    return sorted(counts.items(), key=lambda item: item[1], reverse=True)


def _fmt(value: float) -> str:
    return f"{value:g}"


class SuburbAggregator:
    """Build per-suburb summaries from property records.

    Example:
        aggregator = SuburbAggregator()
        summaries = aggregator.aggregate(records)
        for s in summaries:
            print(s.suburb, s.collection.primary_day, s.data_quality.level)
    """

    def __init__(self, thresholds: Optional[QualityThresholds] = None):
        """Initialize aggregator.

        Args:
            thresholds: Data-quality thresholds (defaults to the configured ones)
        """
        self.thresholds = thresholds or config.quality

    def aggregate(self, records: Iterable[PropertyRecord]) -> list[SuburbSummary]:
        """Group records by suburb and summarise each group.

        Records without a suburb are skipped. A suburb whose summary cannot
        be computed is logged and left out of the result.

        Returns:
            Summaries sorted by suburb name
        """
        groups: dict[str, list[PropertyRecord]] = {}
        for record in records:
            suburb = normalize_suburb(record.suburb)
            if not suburb:
                logger.warning(f"Skipping property with empty suburb name: {record.property_id!r}")
                continue
            groups.setdefault(suburb, []).append(record)

        logger.info(f"Processing {len(groups)} suburbs")

        summaries: list[SuburbSummary] = []
        for suburb, properties in groups.items():
            try:
                summaries.append(self.process_suburb(suburb, properties))
            except Exception as e:
                logger.error(
                    f"Failed to process suburb {suburb} ({len(properties)} properties): {e}",
                    exc_info=True,
                )
                continue

            if len(summaries) % 50 == 0:
                logger.info(f"Processed {len(summaries)}/{len(groups)} suburbs")

        logger.info(f"Successfully processed {len(summaries)} suburbs")
        return sorted(summaries, key=lambda s: locale.strxfrm(s.suburb))

    def process_suburb(self, suburb: str, properties: list[PropertyRecord]) -> SuburbSummary:
        """Summarise one suburb's records."""
        total = len(properties)
        collection = self.collection_info(properties)
        zones = self.zone_info(properties)
        data_quality = self.assess_data_quality(collection, zones, total)

        logger.debug(
            f"Processed {suburb}: {total} properties, "
            f"{collection.primary_day} ({collection.day_uniformity}%), "
            f"{len(zones.distribution)} zones"
        )

        return SuburbSummary(
            suburb=suburb,
            stats=SuburbStats(
                total_properties=total,
                last_updated=datetime.now(timezone.utc).isoformat(),
                data_completeness=self.completeness(properties),
            ),
            collection=collection,
            zones=zones,
            data_quality=data_quality,
        )

    def completeness(self, properties: list[PropertyRecord]) -> float:
        """Percentage of records with every required field filled in."""
        complete = sum(
            1 for p in properties
            if all(getattr(p, name).strip() for name in REQUIRED_FIELDS)
        )
        return percentage(complete, len(properties))

    def collection_info(self, properties: list[PropertyRecord]) -> CollectionInfo:
        total = len(properties)
        schedule = [
            DayDistributionEntry(day=day, count=count, percentage=percentage(count, total))
            for day, count in _tally(p.day_of_week for p in properties)
        ]
        if not schedule:
            return CollectionInfo(primary_day=UNKNOWN, day_uniformity=0, schedule=[])
        return CollectionInfo(
            primary_day=schedule[0].day,
            day_uniformity=schedule[0].percentage,
            schedule=schedule,
        )

    def zone_info(self, properties: list[PropertyRecord]) -> ZoneInfo:
        total = len(properties)
        distribution = [
            ZoneDistributionEntry(zone=zone, count=count, percentage=percentage(count, total))
            for zone, count in _tally(p.zone for p in properties)
        ]
        if not distribution:
            return ZoneInfo(distribution=[], primary_zone=UNKNOWN, zone_uniformity=0)
        return ZoneInfo(
            distribution=distribution,
            primary_zone=distribution[0].zone,
            zone_uniformity=distribution[0].percentage,
        )

    def assess_data_quality(
        self,
        collection: CollectionInfo,
        zones: ZoneInfo,
        total: int,
    ) -> DataQuality:
        """Rate how far a suburb's records can be trusted.

        Warnings and flags are raised in a fixed order: multiple days, mixed
        zones, small sample. The level then follows from the high and medium
        thresholds, and confidence is scaled down by the primary zone's share
        when more than one zone is present.
        """
        high = self.thresholds.high
        medium = self.thresholds.medium
        zone_count = len(zones.distribution)
        warnings: list[str] = []
        flags: list[QualityFlag] = []

        if collection.day_uniformity < medium.day_uniformity:
            warnings.append(
                f"Multiple collection days detected "
                f"({_fmt(collection.day_uniformity)}% on {collection.primary_day})"
            )
            flags.append(QualityFlag.MULTIPLE_DAYS)

        if zone_count > 1:
            if zones.zone_uniformity < medium.zone_uniformity:
                warnings.append(
                    f"Mixed zones with low uniformity "
                    f"({zone_count} zones, {_fmt(zones.zone_uniformity)}% in primary)"
                )
                flags.append(QualityFlag.MIXED_ZONES_LOW_UNIFORMITY)
            else:
                warnings.append(f"Multiple zones detected ({zone_count} zones)")
                flags.append(QualityFlag.MIXED_ZONES)

        if total < medium.min_properties:
            warnings.append(f"Small sample size ({total} properties)")
            flags.append(QualityFlag.SMALL_SAMPLE)

        if (
            collection.day_uniformity >= high.day_uniformity
            and zone_count <= high.zone_count
            and total >= high.min_properties
        ):
            level = QualityLevel.HIGH
        elif collection.day_uniformity >= medium.day_uniformity and total >= medium.min_properties:
            level = QualityLevel.MEDIUM
        else:
            level = QualityLevel.LOW

        confidence = LEVEL_CONFIDENCE[level]
        if zone_count > 1:
            confidence *= zones.zone_uniformity / 100

        return DataQuality(
            level=level,
            confidence=round_half_up(confidence, 2),
            warnings=warnings,
            flags=flags,
        )
