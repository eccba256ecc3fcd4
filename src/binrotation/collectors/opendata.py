"""Brisbane City Council open data client for waste collection days.

Queries the Opendatasoft Explore API v2.1 at data.brisbane.qld.gov.au.
No authentication required.

Data sources:
- Collection days (one record per property):
  https://www.data.brisbane.qld.gov.au/explore/dataset/waste-collection-days-collection-days

The records endpoint rejects any offset past 10,000, so records are fetched
one suburb at a time. The few suburbs larger than that are fetched one
street at a time instead. Requests are strictly sequential with a short
pause between them.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

import httpx

from ..config import Settings, config
from ..models.collection import PropertyRecord, SuburbCount
from .base import (
    DataSourceError,
    FetchStrategy,
    PageFetchError,
    RateLimitError,
    SourceUnavailable,
    select_fetch_strategy,
)
from .retry import execute_with_retry

logger = logging.getLogger(__name__)

USER_AGENT = "binrotation/1.0"

# Upstream field -> PropertyRecord field. For day_of_week the first
# non-empty source field wins.
FIELD_SOURCES: dict[str, tuple[str, ...]] = {
    "property_id": ("property_id",),
    "suburb": ("suburb",),
    "street_name": ("street_name",),
    "day_of_week": ("collection_day", "day_of_week"),
    "zone": ("zone",),
}


def _first_value(raw: Mapping[str, Any], keys: tuple[str, ...]) -> str:
    for key in keys:
        value = raw.get(key)
        if value is None or value == "":
            continue
        return str(value)
    return ""


def to_property_record(raw: Mapping[str, Any]) -> PropertyRecord:
    """Map one upstream record to a PropertyRecord.

    Missing, null and empty fields become empty strings and non-string
    values are converted with ``str``. ``collection_day`` takes priority
    over ``day_of_week`` when both are present.
    """
    return PropertyRecord(
        **{name: _first_value(raw, keys) for name, keys in FIELD_SOURCES.items()}
    )


def quote_value(value: str) -> str:
    """Quote a string literal for an ODSQL ``where`` clause."""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def is_transient_error(error: Exception) -> bool:
    """Network failures, 429 and 5xx responses are worth retrying."""
    if isinstance(error, httpx.HTTPStatusError):
        status = error.response.status_code
        return status == 429 or status >= 500
    return isinstance(error, httpx.TransportError)


@dataclass
class SuburbFetchResult:
    """Outcome of fetching one suburb: its records, or why it failed."""

    name: str
    expected_count: int
    records: list[PropertyRecord] = field(default_factory=list)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class FetchReport:
    """Per-suburb outcomes of a full catalog fetch."""

    results: list[SuburbFetchResult] = field(default_factory=list)

    @property
    def records(self) -> list[PropertyRecord]:
        return [r for result in self.results if result.ok for r in result.records]

    @property
    def failed(self) -> list[SuburbFetchResult]:
        return [result for result in self.results if not result.ok]

    def summary(self) -> str:
        return (
            f"{len(self.records)} properties from "
            f"{len(self.results) - len(self.failed)} suburbs, "
            f"{len(self.failed)} suburbs failed out of {len(self.results)}"
        )


class OpenDataClient:
    """Client for the waste collection datasets on the Opendatasoft API."""

    name = "brisbane_opendata"

    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the client.

        Args:
            settings: Settings to use (defaults to the global config)
            transport: Optional httpx transport, e.g. a MockTransport in tests
        """
        self.settings = settings or config
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.settings.api_base_url,
                timeout=self.settings.request_timeout,
                headers={
                    "Accept": "application/json",
                    "User-Agent": USER_AGENT,
                },
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "OpenDataClient":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    @property
    def _records_path(self) -> str:
        return f"/catalog/datasets/{self.settings.collection_days_dataset}/records"

    @property
    def _facets_path(self) -> str:
        return f"/catalog/datasets/{self.settings.collection_days_dataset}/facets"

    async def _pause(self) -> None:
        if self.settings.rate_limit_delay > 0:
            await asyncio.sleep(self.settings.rate_limit_delay)

    def _log_retry(self, error: Exception, attempt: int) -> None:
        status = None
        if isinstance(error, httpx.HTTPStatusError):
            status = error.response.status_code
        logger.warning(f"API retry attempt {attempt} (status={status}): {error}")

    async def _request(self, path: str, params: dict[str, Any]) -> dict[str, Any]:
        """GET a JSON document, retrying transient failures.

        Raises:
            RateLimitError: If the API still answers 429 after retries
            DataSourceError: For any other failed request or non-JSON body
        """
        client = await self._get_client()

        async def send() -> httpx.Response:
            logger.debug(f"API request: GET {path} {params}")
            response = await client.get(path, params=params)
            response.raise_for_status()
            return response

        try:
            response = await execute_with_retry(
                send,
                max_retries=self.settings.max_retries,
                base_delay=self.settings.retry_base_delay,
                on_retry=self._log_retry,
                retry_if=is_transient_error,
            )
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            if status == 429:
                retry_after = e.response.headers.get("Retry-After", "")
                raise RateLimitError(
                    self.name, int(retry_after) if retry_after.isdigit() else None
                ) from e
            raise DataSourceError(
                self.name, f"HTTP error {status} for {path}", status_code=status
            ) from e
        except httpx.HTTPError as e:
            raise DataSourceError(self.name, f"Request to {path} failed: {e}") from e

        try:
            data = response.json()
        except ValueError as e:
            raise DataSourceError(self.name, f"Invalid JSON from {path}") from e
        if not isinstance(data, dict):
            raise DataSourceError(self.name, f"Unexpected response shape from {path}")

        logger.debug(
            f"API response: {response.status_code} {path} "
            f"total_count={data.get('total_count')}"
        )
        return data

    async def _fetch_paged(self, where: str, label: str) -> list[PropertyRecord]:
        """Page through every record matching ``where``.

        Raises:
            PageFetchError: If any page fails, with the offset it failed at
        """
        batch_size = self.settings.batch_size
        records: list[PropertyRecord] = []
        offset = 0

        while True:
            params = {
                "limit": batch_size,
                "offset": offset,
                "where": where,
                "timezone": self.settings.timezone,
            }
            try:
                data = await self._request(self._records_path, params)
            except DataSourceError as e:
                raise PageFetchError(
                    self.name,
                    f"Page at offset {offset} failed for {label}: {e.message}",
                    offset=offset,
                    status_code=e.status_code,
                ) from e

            total_count = int(data.get("total_count") or 0)
            results = data.get("results") or []
            records.extend(to_property_record(r) for r in results)
            offset += batch_size

            logger.debug(f"{label}: fetched {len(records)}/{total_count} records")

            if offset >= total_count:
                break
            if not results:
                logger.warning(
                    f"{label}: empty page at offset {offset - batch_size} "
                    f"before reaching {total_count} records"
                )
                break
            await self._pause()

        return records

    async def _list_facet(
        self, facet: str, where: Optional[str] = None
    ) -> list[SuburbCount] | None:
        """List the values of a facet, or None if the response lacks it."""
        params: dict[str, Any] = {"facet": facet, "limit": self.settings.facet_limit}
        if where:
            params["where"] = where
        data = await self._request(self._facets_path, params)

        for group in data.get("facets") or []:
            if group.get("name") != facet:
                continue
            # Values are kept verbatim since they are fed back into where clauses
            values = []
            for entry in group.get("facets") or []:
                value = str(entry.get("name") or "")
                if value.strip():
                    values.append(SuburbCount(name=value, count=int(entry.get("count") or 0)))
            return values
        return None

    async def test_connectivity(self) -> bool:
        """Check that the collection days dataset answers a minimal query."""
        try:
            data = await self._request(self._records_path, {"limit": 1})
        except DataSourceError as e:
            logger.error(f"API connection test failed: {e}")
            return False

        logger.info(f"API connection test successful ({data.get('total_count')} records)")
        return True

    async def list_suburbs(self) -> list[SuburbCount]:
        """List every suburb with its property count, largest first.

        Raises:
            SourceUnavailable: If the listing request fails or the response
                               has no suburb facet
        """
        try:
            suburbs = await self._list_facet("suburb")
        except DataSourceError as e:
            raise SourceUnavailable(
                self.name, f"Suburb listing failed: {e.message}", status_code=e.status_code
            ) from e
        if suburbs is None:
            raise SourceUnavailable(self.name, "Suburb facet missing from response")

        suburbs.sort(key=lambda s: s.count, reverse=True)
        logger.info(f"Found {len(suburbs)} suburbs")
        return suburbs

    async def fetch_suburb(self, name: str) -> list[PropertyRecord]:
        """Fetch all records for a suburb.

        Falls back to fetching street by street when paging hits the
        pagination ceiling.
        """
        where = f"suburb={quote_value(name)}"
        try:
            return await self._fetch_paged(where, label=name)
        except PageFetchError as e:
            strategy = select_fetch_strategy(
                e.status_code, e.offset, self.settings.pagination_ceiling
            )
            if strategy is FetchStrategy.BY_SUBURB:
                raise
            logger.warning(
                f"{name}: pagination ceiling reached at offset {e.offset} "
                f"(status {e.status_code}), fetching by street"
            )
            return await self.fetch_suburb_by_streets(name)

    async def fetch_suburb_by_streets(self, name: str) -> list[PropertyRecord]:
        """Fetch a suburb's records one street at a time.

        Raises:
            DataSourceError: If the street listing or any street fetch fails
        """
        streets = await self._list_facet("street_name", where=f"suburb={quote_value(name)}")
        if streets is None:
            raise DataSourceError(self.name, f"Street facet missing for {name}")

        logger.info(f"{name}: fetching {len(streets)} streets individually")
        records: list[PropertyRecord] = []
        for i, street in enumerate(streets):
            records.extend(await self.fetch_street_data(name, street.name))
            if i < len(streets) - 1:
                await self._pause()

        logger.info(f"{name}: fetched {len(records)} records across {len(streets)} streets")
        return records

    async def fetch_street_data(self, suburb: str, street: str) -> list[PropertyRecord]:
        """Fetch all records for one street within a suburb."""
        where = f"suburb={quote_value(suburb)} AND street_name={quote_value(street)}"
        return await self._fetch_paged(where, label=f"{suburb}/{street}")

    async def fetch_collection_report(self) -> FetchReport:
        """Fetch every suburb, recording failures instead of stopping.

        Raises:
            SourceUnavailable: If the suburb listing fails
        """
        suburbs = await self.list_suburbs()
        report = FetchReport()

        for i, suburb in enumerate(suburbs, start=1):
            result = SuburbFetchResult(name=suburb.name, expected_count=suburb.count)
            try:
                result.records = await self.fetch_suburb(suburb.name)
                logger.info(
                    f"[{i}/{len(suburbs)}] {suburb.name}: {len(result.records)} records"
                )
            except DataSourceError as e:
                logger.warning(f"[{i}/{len(suburbs)}] {suburb.name} failed: {e}")
                result.error = str(e)
            except Exception as e:
                logger.error(
                    f"[{i}/{len(suburbs)}] Unexpected error for {suburb.name}: {e}",
                    exc_info=True,
                )
                result.error = str(e)
            report.results.append(result)

            if i < len(suburbs):
                await self._pause()

        if report.failed:
            names = ", ".join(r.name for r in report.failed)
            logger.warning(f"Failed suburbs: {names}")
        logger.info(f"Fetch complete: {report.summary()}")
        return report

    async def fetch_all_collection_days(self) -> list[PropertyRecord]:
        """Fetch every property record the catalog serves."""
        report = await self.fetch_collection_report()
        return report.records
