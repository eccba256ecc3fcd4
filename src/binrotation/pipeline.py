"""End-to-end processing run: fetch, aggregate, analyse, publish."""

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .analysis import PatternAnalyzer, SuburbAggregator
from .collectors import FetchReport, OpenDataClient
from .config import Settings, config
from .models.collection import ProcessingMetadata, SuburbSummary
from .patterns import load_overrides
from .storage import DataPublisher

logger = logging.getLogger(__name__)


class PipelineError(Exception):
    """Raised when a run cannot produce publishable output."""


@dataclass
class PipelineResult:
    summaries: list[SuburbSummary]
    report: FetchReport
    metadata: ProcessingMetadata
    published: bool


def build_analyzer(settings: Settings) -> PatternAnalyzer:
    if settings.overrides_file is not None:
        return PatternAnalyzer(overrides=load_overrides(settings.overrides_file))
    return PatternAnalyzer()


async def run_pipeline(
    settings: Optional[Settings] = None,
    output_dir: Optional[Path] = None,
    dry_run: bool = False,
    client: Optional[OpenDataClient] = None,
) -> PipelineResult:
    """Run one full snapshot.

    Args:
        settings: Settings to use (defaults to the global config)
        output_dir: Where to publish (defaults to ``settings.output_dir``)
        dry_run: Skip writing files
        client: Client to fetch with; one is created and closed if omitted

    Raises:
        PipelineError: If the API is unreachable or nothing was fetched
        SourceUnavailable: If the suburb listing fails
    """
    settings = settings or config
    output_dir = Path(output_dir or settings.output_dir)
    start = time.monotonic()

    owns_client = client is None
    if client is None:
        client = OpenDataClient(settings)

    try:
        logger.info("Testing API connection...")
        if not await client.test_connectivity():
            raise PipelineError(f"Failed to connect to {settings.api_base_url}")

        logger.info("Fetching collection days data...")
        report = await client.fetch_collection_report()
    finally:
        if owns_client:
            await client.close()

    records = report.records
    if not records:
        raise PipelineError(f"No property records fetched ({report.summary()})")
    logger.info(f"Fetched {len(records)} property records")

    logger.info("Aggregating data by suburb...")
    summaries = SuburbAggregator(settings.quality).aggregate(records)
    if not summaries:
        raise PipelineError(f"No suburbs could be aggregated from {len(records)} records")
    logger.info(f"Aggregated into {len(summaries)} suburbs")

    logger.info("Analyzing bin collection patterns...")
    analyzed = build_analyzer(settings).analyze(summaries)

    publisher = DataPublisher(settings)
    elapsed = time.monotonic() - start
    if dry_run:
        logger.info("Dry run - skipping file output")
        metadata = publisher.build_metadata(analyzed, elapsed)
    else:
        logger.info("Publishing processed data...")
        metadata = publisher.publish(analyzed, output_dir, processing_time=elapsed)

    logger.info(
        f"Processing completed in {time.monotonic() - start:.1f}s: "
        f"{len(analyzed)} suburbs, {len(records)} properties"
    )
    return PipelineResult(
        summaries=analyzed,
        report=report,
        metadata=metadata,
        published=not dry_run,
    )
