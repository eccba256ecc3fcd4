"""JSON publishing of analysed suburb data.

Writes the files the static front end reads:

- suburbs-YYYY-MM-DD.json: dated snapshot (metadata + every suburb)
- suburbs-latest.json: same content as the newest snapshot
- suburb-lookup.json: one compact entry per suburb
- statistics.json: run-wide counts and the first warnings
- index.json: metadata and the list of available files
"""

import json
import logging
import re
from collections.abc import Sequence
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from ..config import Settings, config
from ..models.collection import ProcessedData, ProcessingMetadata, SuburbSummary

logger = logging.getLogger(__name__)

LATEST_FILE = "suburbs-latest.json"
LOOKUP_FILE = "suburb-lookup.json"
STATISTICS_FILE = "statistics.json"
INDEX_FILE = "index.json"

VERSIONED_FILE_RE = re.compile(r"^suburbs-\d{4}-\d{2}-\d{2}\.json$")

MAX_STATISTICS_WARNINGS = 10


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def load_processed(path: Path) -> ProcessedData:
    """Read and validate a published suburbs file.

    Raises:
        OSError: If the file cannot be read
        pydantic.ValidationError: If the content does not match the schema
    """
    return ProcessedData.model_validate_json(Path(path).read_text(encoding="utf-8"))


class DataPublisher:
    """Write analysed suburb summaries to an output directory.

    Example:
        publisher = DataPublisher()
        metadata = publisher.publish(analyzed, Path("data"), processing_time=42.0)
        print(metadata.suburb_count)
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or config

    def build_metadata(
        self,
        summaries: Sequence[SuburbSummary],
        processing_time: float,
        generated: Optional[str] = None,
    ) -> ProcessingMetadata:
        return ProcessingMetadata(
            version=self.settings.output_version,
            generated=generated or _now_iso(),
            data_source=self.settings.data_source_label,
            processing_time=round(processing_time, 3),
            suburb_count=len(summaries),
            total_properties=sum(s.stats.total_properties for s in summaries),
        )

    def publish(
        self,
        summaries: Sequence[SuburbSummary],
        output_dir: Path,
        processing_time: float = 0.0,
    ) -> ProcessingMetadata:
        """Write every output file and return the run metadata."""
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)

        generated = _now_iso()
        metadata = self.build_metadata(summaries, processing_time, generated)
        logger.info(
            f"Publishing {metadata.suburb_count} suburbs "
            f"({metadata.total_properties} properties) to {output_dir}"
        )

        document = ProcessedData(metadata=metadata, suburbs=list(summaries))
        payload = document.model_dump(mode="json", by_alias=True)

        versioned_file = f"suburbs-{generated[:10]}.json"
        self._write_json(output_dir / versioned_file, payload)
        self._write_json(output_dir / LATEST_FILE, payload)
        self._write_json(output_dir / LOOKUP_FILE, self.create_lookup(summaries))
        self._write_json(output_dir / STATISTICS_FILE, self.create_statistics(summaries))
        self._write_json(
            output_dir / INDEX_FILE,
            self.create_index(output_dir, metadata, versioned_file),
        )

        logger.info(f"Published {len(summaries)} suburbs")
        return metadata

    def _write_json(self, path: Path, data: Any) -> None:
        content = json.dumps(data, indent=2, ensure_ascii=False)
        path.write_text(content, encoding="utf-8")
        logger.debug(f"Wrote {path} ({len(content) / 1024:.1f} KB)")

    def create_lookup(self, summaries: Sequence[SuburbSummary]) -> dict[str, Any]:
        """Compact per-suburb entries keyed by suburb name."""
        lookup = {
            s.suburb: {
                "day": s.collection.primary_day,
                "dayUniformity": s.collection.day_uniformity,
                "zone": s.zones.primary_zone,
                "zoneUniformity": s.zones.zone_uniformity,
                "confidence": s.data_quality.confidence,
                "pattern": s.bin_pattern.pattern if s.bin_pattern else None,
            }
            for s in summaries
        }
        return {"generated": _now_iso(), "suburbs": lookup}

    def create_statistics(self, summaries: Sequence[SuburbSummary]) -> dict[str, Any]:
        total_properties = sum(s.stats.total_properties for s in summaries)
        quality_counts = {"high": 0, "medium": 0, "low": 0}
        pattern_counts = {"override": 0, "estimated": 0, "none": 0}
        collection_days: dict[str, int] = {}
        zones: dict[str, int] = {}
        warnings: list[str] = []

        for s in summaries:
            quality_counts[s.data_quality.level.value] += 1

            if s.bin_pattern is None:
                pattern_counts["none"] += 1
            else:
                pattern_counts[s.bin_pattern.source.value] += 1

            day = s.collection.primary_day
            collection_days[day] = collection_days.get(day, 0) + 1

            for entry in s.zones.distribution:
                zones[entry.zone] = zones.get(entry.zone, 0) + entry.count

            if s.data_quality.warnings:
                warnings.append(f"{s.suburb}: {', '.join(s.data_quality.warnings)}")

        return {
            "generated": _now_iso(),
            "summary": {
                "totalSuburbs": len(summaries),
                "totalProperties": total_properties,
                "averagePropertiesPerSuburb": (
                    round(total_properties / len(summaries)) if summaries else 0
                ),
                "dataQuality": quality_counts,
                "patterns": pattern_counts,
            },
            "collectionDays": collection_days,
            "zones": zones,
            "warnings": warnings[:MAX_STATISTICS_WARNINGS],
        }

    def create_index(
        self,
        output_dir: Path,
        metadata: ProcessingMetadata,
        current_file: str,
    ) -> dict[str, Any]:
        """Describe the files available in ``output_dir``.

        Only the newest ``history_size`` dated snapshots are advertised.
        """
        versioned = sorted(
            (p.name for p in output_dir.iterdir() if VERSIONED_FILE_RE.match(p.name)),
            reverse=True,
        )[: self.settings.history_size]

        return {
            "metadata": metadata.model_dump(mode="json", by_alias=True),
            "current": current_file,
            "available": [LATEST_FILE, LOOKUP_FILE, STATISTICS_FILE, *versioned],
            "endpoints": {
                "latest": LATEST_FILE,
                "lookup": LOOKUP_FILE,
                "statistics": STATISTICS_FILE,
                "versioned": versioned,
            },
        }
