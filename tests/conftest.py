"""Pytest fixtures and test utilities."""

import json
import re
from collections.abc import Iterable
from typing import Any, Optional

import httpx
import pytest

from binrotation.analysis import PatternAnalyzer, SuburbAggregator
from binrotation.collectors import OpenDataClient
from binrotation.config import Settings
from binrotation.models.collection import PropertyRecord

WHERE_TERM_RE = re.compile(r'(\w+)="((?:[^"\\]|\\.)*)"')


def parse_where(where: str) -> dict[str, str]:
    """Turn ``suburb="X" AND street_name="Y"`` into a dict."""
    return {
        key: value.replace('\\"', '"').replace("\\\\", "\\")
        for key, value in WHERE_TERM_RE.findall(where)
    }


def make_record(
    suburb: str = "ANNERLEY",
    day: str = "MONDAY",
    zone: str = "ZONE 1",
    property_id: str = "1",
    street: str = "IPSWICH RD",
) -> PropertyRecord:
    return PropertyRecord(
        property_id=property_id,
        suburb=suburb,
        street_name=street,
        day_of_week=day,
        zone=zone,
    )


def make_records(n: int, **kwargs: Any) -> list[PropertyRecord]:
    return [make_record(property_id=str(i), **kwargs) for i in range(n)]


class FakeCatalog:
    """In-memory stand-in for the Opendatasoft records and facets endpoints.

    Records are raw upstream dicts. Requests at ``offset >= ceiling`` get a
    400 like the real API; suburbs listed in ``failing_suburbs`` always get
    a 500.
    """

    def __init__(
        self,
        records: Iterable[dict[str, Any]],
        ceiling: int = 10000,
        failing_suburbs: Iterable[str] = (),
        suburb_facet: bool = True,
    ):
        self.records = list(records)
        self.ceiling = ceiling
        self.failing_suburbs = set(failing_suburbs)
        self.suburb_facet = suburb_facet
        self.requests: list[httpx.Request] = []

    def _matching(self, where: Optional[str]) -> list[dict[str, Any]]:
        filters = parse_where(where or "")
        return [
            r for r in self.records
            if all(r.get(key) == value for key, value in filters.items())
        ]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        params = request.url.params
        where = params.get("where")
        filters = parse_where(where or "")

        if filters.get("suburb") in self.failing_suburbs:
            return httpx.Response(500, json={"error": "internal"})

        if request.url.path.endswith("/facets"):
            facet = params["facet"]
            if facet == "suburb" and not self.suburb_facet:
                return httpx.Response(200, json={"facets": []})
            counts: dict[str, int] = {}
            for r in self._matching(where):
                counts[r[facet]] = counts.get(r[facet], 0) + 1
            # Ascending, so tests can check the client re-sorts
            values = sorted(counts.items(), key=lambda item: item[1])
            return httpx.Response(200, json={"facets": [{
                "name": facet,
                "facets": [{"name": k, "count": v} for k, v in values],
            }]})

        offset = int(params.get("offset", 0))
        limit = int(params.get("limit", 10))
        if offset >= self.ceiling:
            return httpx.Response(400, json={"error_code": "InvalidRESTParameterError"})
        matching = self._matching(where)
        return httpx.Response(200, content=json.dumps({
            "total_count": len(matching),
            "results": matching[offset:offset + limit],
        }))

    @property
    def record_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path.endswith("/records")]


def raw_record(suburb: str, street: str, n: int, day: str = "MONDAY", zone: str = "ZONE 1") -> dict[str, Any]:
    return {
        "property_id": n,
        "suburb": suburb,
        "street_name": street,
        "collection_day": day,
        "zone": zone,
    }


@pytest.fixture
def settings() -> Settings:
    """Settings with no pauses and a single quick retry."""
    return Settings(
        _env_file=None,
        rate_limit_delay=0,
        retry_base_delay=0,
        max_retries=1,
    )


@pytest.fixture
def make_client(settings: Settings):
    """Build an OpenDataClient backed by a handler function."""

    def _make(handler, **overrides: Any) -> OpenDataClient:
        client_settings = settings.model_copy(update=overrides) if overrides else settings
        return OpenDataClient(client_settings, transport=httpx.MockTransport(handler))

    return _make


@pytest.fixture
def aggregator() -> SuburbAggregator:
    """SuburbAggregator with default thresholds."""
    return SuburbAggregator(Settings(_env_file=None).quality)


@pytest.fixture
def analyzer() -> PatternAnalyzer:
    """PatternAnalyzer with the built-in tables."""
    return PatternAnalyzer()
