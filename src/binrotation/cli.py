"""CLI for a processing run.

Run via: python -m binrotation.cli
Or the installed ``binrotation`` command. Schedule with cron or a CI job.
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler

from .collectors import DataSourceError
from .config import config
from .models.collection import ProcessedData, QualityLevel
from .pipeline import PipelineError, run_pipeline
from .storage import load_processed

console = Console()


def setup_logging(debug: bool = False) -> None:
    """Configure logging with Rich handler."""
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def find_issues(data: ProcessedData, min_completeness: float) -> list[str]:
    """Check a schema-valid file for suburbs the front end cannot rely on."""
    logger = logging.getLogger(__name__)
    issues = []

    if data.metadata.suburb_count != len(data.suburbs):
        issues.append(
            f"Metadata lists {data.metadata.suburb_count} suburbs "
            f"but the file holds {len(data.suburbs)}"
        )

    low_quality = [s for s in data.suburbs if s.data_quality.level == QualityLevel.LOW]
    for summary in low_quality:
        logger.warning(f"Low quality: {summary.suburb} {summary.data_quality.warnings}")
    if low_quality:
        issues.append(f"{len(low_quality)} suburbs have low data quality")

    no_pattern = [s for s in data.suburbs if s.bin_pattern is None]
    if no_pattern:
        issues.append(f"{len(no_pattern)} suburbs have no bin pattern")

    incomplete = [
        s for s in data.suburbs if s.stats.data_completeness < min_completeness
    ]
    if incomplete:
        issues.append(
            f"{len(incomplete)} suburbs have < {min_completeness:g}% data completeness"
        )

    return issues


def validate_file(path: Path, min_completeness: Optional[float] = None) -> int:
    """Validate a published suburbs file. Returns the exit code.

    The file must match the published schema and pass every check in
    ``find_issues``; any issue makes the exit code 1.
    """
    logger = logging.getLogger(__name__)
    if min_completeness is None:
        min_completeness = config.min_data_completeness

    try:
        data = load_processed(path)
    except (OSError, ValidationError) as e:
        logger.error(f"Validation failed for {path}: {e}")
        return 1

    issues = find_issues(data, min_completeness)
    logger.info(
        f"Validation complete: {data.metadata.suburb_count} suburbs, "
        f"{data.metadata.total_properties} properties, {len(issues)} issues"
    )
    if issues:
        for issue in issues:
            logger.warning(f"Validation issue: {issue}")
        console.print(f"[red]{path} has {len(issues)} validation issues[/red]")
        return 1

    console.print(f"[green]{path} is valid[/green]")
    console.print(f"  Version: {data.metadata.version}")
    console.print(f"  Generated: {data.metadata.generated}")
    console.print(f"  Suburbs: {data.metadata.suburb_count}")
    console.print(f"  Properties: {data.metadata.total_properties}")
    return 0


async def run(output: Path, dry_run: bool, debug: bool) -> int:
    """Run the pipeline and report the outcome. Returns the exit code."""
    logger = logging.getLogger(__name__)
    logger.info(
        f"binrotation starting (debug={debug}, output={output}, dry_run={dry_run})"
    )

    try:
        result = await run_pipeline(output_dir=output, dry_run=dry_run)
    except (PipelineError, DataSourceError) as e:
        logger.error(f"Processing failed: {e}")
        if debug:
            raise
        return 1

    failed = result.report.failed
    if failed:
        console.print(
            f"[yellow]{len(failed)} suburbs failed out of {len(result.report.results)}: "
            f"{', '.join(r.name for r in failed)}[/yellow]"
        )
    console.print(
        f"[bold]Done. {result.metadata.suburb_count} suburbs, "
        f"{result.metadata.total_properties} properties"
        f"{' (dry run)' if dry_run else f' written to {output}'}[/bold]"
    )
    return 0


def main(argv: Optional[list[str]] = None) -> None:
    """Main entry point for CLI."""
    parser = argparse.ArgumentParser(
        description="Process Brisbane City Council waste collection data",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  binrotation
  binrotation --output ../data
  binrotation --dry-run --debug
  binrotation --validate ../data/suburbs-latest.json
        """,
    )
    parser.add_argument(
        "-d", "--debug",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "-o", "--output",
        type=Path,
        default=config.output_dir,
        help=f"Output directory (default: {config.output_dir})",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Run without saving files",
    )
    parser.add_argument(
        "--validate",
        type=Path,
        metavar="FILE",
        help="Validate a published suburbs file and exit",
    )

    args = parser.parse_args(argv)

    setup_logging(debug=args.debug)

    if args.validate:
        sys.exit(validate_file(args.validate))

    try:
        code = asyncio.run(run(args.output, args.dry_run, args.debug))
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted[/yellow]")
        sys.exit(130)
    except Exception:
        logging.getLogger(__name__).exception("Processing failed")
        sys.exit(1)
    sys.exit(code)


if __name__ == "__main__":
    main()
