"""Collection data retrieval.

This package fetches per-property waste collection records from the
council's open data catalog.

Main Components:
    - OpenDataClient: Paginated, rate-limited client for the catalog API
    - execute_with_retry: Exponential backoff for async operations
    - DataSourceError and subclasses: Failure taxonomy of the client

Example usage:
    from binrotation.collectors import OpenDataClient

    async with OpenDataClient() as client:
        report = await client.fetch_collection_report()
        print(report.summary())
"""

from .base import (
    DataSourceError,
    FetchStrategy,
    PageFetchError,
    RateLimitError,
    SourceUnavailable,
    select_fetch_strategy,
)
from .opendata import (
    FetchReport,
    OpenDataClient,
    SuburbFetchResult,
    to_property_record,
)
from .retry import execute_with_retry

__all__ = [
    "DataSourceError",
    "FetchReport",
    "FetchStrategy",
    "OpenDataClient",
    "PageFetchError",
    "RateLimitError",
    "SourceUnavailable",
    "SuburbFetchResult",
    "execute_with_retry",
    "select_fetch_strategy",
    "to_property_record",
]
