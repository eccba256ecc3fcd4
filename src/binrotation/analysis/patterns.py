"""Bin rotation pattern inference.

Each suburb gets one pattern code saying which bin goes out on even and odd
weeks. Verified overrides win outright; otherwise the pattern is estimated
from the suburb's zones, with lower confidence the less clear-cut the zone
split is.
"""

import logging
from collections.abc import Mapping, Sequence
from typing import Optional

from ..models.collection import (
    BinPattern,
    PatternDefinition,
    PatternOverride,
    PatternSource,
    SuburbSummary,
)
from ..patterns import (
    ANY_ZONE,
    BIN_PATTERNS,
    MIXED_PATTERN,
    PATTERN_OVERRIDES,
    ZONE_DEFAULT_PATTERNS,
)

logger = logging.getLogger(__name__)

UNKNOWN_DESCRIPTION = "Unknown pattern"
UNKNOWN_BIN = "UNKNOWN"

OVERRIDE_CONFIDENCE = 1.0
SINGLE_ZONE_CONFIDENCE = 0.6
DOMINANT_ZONE_CONFIDENCE = 0.5
UNCERTAIN_CONFIDENCE = 0.3

# A zone must hold strictly more than this share to count as dominant
DOMINANT_ZONE_SHARE = 80


class PatternAnalyzer:
    """Assign a bin rotation pattern to each suburb summary.

    Example:
        analyzer = PatternAnalyzer()
        analyzed = analyzer.analyze(summaries)

        # Or with a custom override table
        analyzer = PatternAnalyzer(overrides=load_overrides(path))
    """

    def __init__(
        self,
        overrides: Optional[Sequence[PatternOverride]] = None,
        patterns: Optional[Mapping[str, PatternDefinition]] = None,
    ):
        """Initialize analyzer.

        Args:
            overrides: Verified patterns, earliest entry wins on overlap
                       (defaults to the built-in table)
            patterns: Pattern code -> definition table
        """
        self.overrides = tuple(PATTERN_OVERRIDES if overrides is None else overrides)
        self.patterns = BIN_PATTERNS if patterns is None else patterns

    def analyze(self, summaries: Sequence[SuburbSummary]) -> list[SuburbSummary]:
        """Return copies of the summaries with ``bin_pattern`` filled in."""
        logger.info("Starting pattern analysis")
        override_count = 0

        analyzed = []
        for summary in summaries:
            pattern = self.detect_pattern(summary)
            if pattern.source is PatternSource.OVERRIDE:
                override_count += 1
            analyzed.append(summary.model_copy(update={"bin_pattern": pattern}))

        logger.info(
            f"Pattern analysis complete: {len(analyzed)} suburbs, "
            f"{override_count} overrides, {len(analyzed) - override_count} estimated"
        )
        return analyzed

    def find_override(self, summary: SuburbSummary) -> Optional[PatternOverride]:
        for override in self.overrides:
            if (
                override.suburb == summary.suburb
                and override.day == summary.collection.primary_day
                and override.zone in (summary.zones.primary_zone, ANY_ZONE)
            ):
                return override
        return None

    def detect_pattern(self, summary: SuburbSummary) -> BinPattern:
        """Work out the pattern for one suburb.

        Order: verified override, single zone estimate, mixed zone estimate,
        then an uncertain MIXED fallback for suburbs with no zone data.
        """
        override = self.find_override(summary)
        if override is not None:
            logger.debug(f"Found pattern override for {summary.suburb}: {override.pattern}")
            return BinPattern(
                source=PatternSource.OVERRIDE,
                confidence=OVERRIDE_CONFIDENCE,
                pattern=override.pattern,
                notes=override.notes or "Manually verified pattern",
            )

        distribution = summary.zones.distribution
        if len(distribution) == 1:
            zone = summary.zones.primary_zone
            return BinPattern(
                source=PatternSource.ESTIMATED,
                confidence=SINGLE_ZONE_CONFIDENCE,
                pattern=self.zone_pattern(zone),
                notes=f"Estimated based on {zone} pattern",
            )

        if len(distribution) > 1:
            return self._mixed_zone_pattern(summary)

        return BinPattern(
            source=PatternSource.ESTIMATED,
            confidence=UNCERTAIN_CONFIDENCE,
            pattern=MIXED_PATTERN,
            notes="Unable to determine pattern with confidence",
        )

    def _mixed_zone_pattern(self, summary: SuburbSummary) -> BinPattern:
        distribution = summary.zones.distribution
        dominant = distribution[0]

        if dominant.percentage > DOMINANT_ZONE_SHARE:
            return BinPattern(
                source=PatternSource.ESTIMATED,
                confidence=DOMINANT_ZONE_CONFIDENCE,
                pattern=self.zone_pattern(dominant.zone),
                notes=(
                    f"Mixed zones - using dominant {dominant.zone} pattern "
                    f"({dominant.percentage:g}%)"
                ),
            )

        shares = ", ".join(f"{z.zone}: {z.percentage:g}%" for z in distribution)
        return BinPattern(
            source=PatternSource.ESTIMATED,
            confidence=UNCERTAIN_CONFIDENCE,
            pattern=MIXED_PATTERN,
            notes=f"Multiple zones with no clear majority ({shares})",
        )

    @staticmethod
    def zone_pattern(zone: str) -> str:
        return ZONE_DEFAULT_PATTERNS.get(zone, MIXED_PATTERN)

    def describe_pattern(self, pattern: str) -> str:
        """Human-readable description of a pattern code."""
        definition = self.patterns.get(pattern)
        return definition.description if definition else UNKNOWN_DESCRIPTION

    def bin_type_for_week(self, pattern: str, is_even_week: bool) -> str:
        """Bin collected in an even or odd week under a pattern."""
        definition = self.patterns.get(pattern)
        if definition is None:
            return UNKNOWN_BIN
        return definition.even_week if is_even_week else definition.odd_week
