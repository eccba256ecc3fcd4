"""Bin rotation pattern tables.

PATTERN_OVERRIDES holds patterns verified against the council website.
BIN_PATTERNS maps each pattern code to the bin collected on even and odd
weeks. Both are passed to PatternAnalyzer at construction.
"""

import json
import logging
from pathlib import Path
from types import MappingProxyType

from pydantic import TypeAdapter

from .models.collection import PatternDefinition, PatternOverride

logger = logging.getLogger(__name__)

ANY_ZONE = "ANY"

# Zone name -> default pattern code for unverified suburbs
ZONE_DEFAULT_PATTERNS = MappingProxyType({
    "ZONE 1": "ZONE_1_DEFAULT",
    "ZONE 2": "ZONE_2_DEFAULT",
})
MIXED_PATTERN = "MIXED"

PATTERN_OVERRIDES: tuple[PatternOverride, ...] = (
    PatternOverride(
        suburb="WEST END",
        zone="ZONE 1",
        day="THURSDAY",
        pattern="A",
        notes="Verified against council website - Green waste on even weeks",
    ),
    PatternOverride(
        suburb="MORNINGSIDE",
        zone="ZONE 1",
        day="TUESDAY",
        pattern="B",
        notes="Verified against council website - Recycling on even weeks",
    ),
)

BIN_PATTERNS = MappingProxyType({
    "A": PatternDefinition(
        description="Zone 1 Pattern A - Green on even weeks",
        even_week="GREEN",
        odd_week="RECYCLING",
    ),
    "B": PatternDefinition(
        description="Zone 1 Pattern B - Recycling on even weeks",
        even_week="RECYCLING",
        odd_week="GREEN",
    ),
    "ZONE_1_DEFAULT": PatternDefinition(
        description="Default Zone 1 pattern",
        even_week="RECYCLING",
        odd_week="GREEN",
    ),
    "ZONE_2_DEFAULT": PatternDefinition(
        description="Default Zone 2 pattern",
        even_week="GREEN",
        odd_week="RECYCLING",
    ),
    MIXED_PATTERN: PatternDefinition(
        description="Mixed zones - pattern uncertain",
        even_week="UNKNOWN",
        odd_week="UNKNOWN",
    ),
})

_overrides_adapter = TypeAdapter(list[PatternOverride])


def load_overrides(path: Path) -> tuple[PatternOverride, ...]:
    """Load a JSON list of pattern overrides.

    Each entry needs ``suburb``, ``zone``, ``day`` and ``pattern``; ``notes``
    is optional. Suburb, zone and day are upper-cased and trimmed so they
    compare equal to aggregated values.

    Raises:
        OSError: If the file cannot be read
        pydantic.ValidationError: If an entry is malformed
    """
    raw = json.loads(Path(path).read_text(encoding="utf-8"))
    overrides = _overrides_adapter.validate_python(raw)
    normalized = tuple(
        o.model_copy(update={
            "suburb": o.suburb.strip().upper(),
            "zone": o.zone.strip().upper(),
            "day": o.day.strip().upper(),
        })
        for o in overrides
    )
    logger.info(f"Loaded {len(normalized)} pattern overrides from {path}")
    return normalized
