"""Errors and fetch strategy selection for collection data sources.

The records endpoint refuses offsets past a fixed ceiling no matter how
many records match, so a suburb larger than the ceiling cannot be paged
through directly. When a page fails with a client error at or past the
ceiling, the client switches from paging the suburb to paging each of its
streets. ``select_fetch_strategy`` is that decision, kept free of any
network types so it can be tested on its own.
"""

from enum import Enum
from typing import Optional


class DataSourceError(Exception):
    """Base exception for data source errors.

    Attributes:
        source: Name of the data source that raised the error
        message: Error description
        status_code: HTTP status of the failed response, if there was one
    """

    def __init__(self, source: str, message: str, status_code: Optional[int] = None):
        self.source = source
        self.message = message
        self.status_code = status_code
        super().__init__(f"[{source}] {message}")


class RateLimitError(DataSourceError):
    """Raised when a data source rate limit is still exceeded after retries."""

    def __init__(self, source: str, retry_after: Optional[int] = None):
        self.retry_after = retry_after
        message = "Rate limit exceeded"
        if retry_after:
            message += f" (retry after {retry_after}s)"
        super().__init__(source, message, status_code=429)


class SourceUnavailable(DataSourceError):
    """Raised when the suburb listing cannot be obtained.

    Without the listing there is nothing to fetch, so this aborts the run.
    """


class PageFetchError(DataSourceError):
    """Raised when one page of a paginated fetch fails."""

    def __init__(
        self,
        source: str,
        message: str,
        offset: int,
        status_code: Optional[int] = None,
    ):
        self.offset = offset
        super().__init__(source, message, status_code=status_code)


class FetchStrategy(str, Enum):
    """How a suburb's records are paged."""

    BY_SUBURB = "by_suburb"
    BY_STREET = "by_street"


def is_client_error(status_code: Optional[int]) -> bool:
    """4xx other than 429, which is a rate limit rather than a refusal."""
    return status_code is not None and 400 <= status_code < 500 and status_code != 429


def select_fetch_strategy(
    status_code: Optional[int],
    offset: int,
    ceiling: int,
) -> FetchStrategy:
    """Pick the strategy to continue with after a failed suburb page.

    Args:
        status_code: HTTP status of the failed page (None for network errors)
        offset: Offset the failed page was requested at
        ceiling: Largest offset the upstream API accepts

    Returns:
        BY_STREET when the failure is a client error at or beyond the
        pagination ceiling, BY_SUBURB otherwise (the failure is genuine
        and should propagate).
    """
    if is_client_error(status_code) and offset >= ceiling:
        return FetchStrategy.BY_STREET
    return FetchStrategy.BY_SUBURB
