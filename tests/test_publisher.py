"""Tests for DataPublisher."""

import json

import pytest
from pydantic import ValidationError

from binrotation.analysis import PatternAnalyzer, SuburbAggregator
from binrotation.config import Settings
from binrotation.storage import DataPublisher, load_processed

from conftest import make_records


@pytest.fixture
def analyzed(aggregator: SuburbAggregator, analyzer: PatternAnalyzer):
    records = (
        make_records(3, suburb="ANNERLEY")
        + make_records(4, suburb="WEST END", day="THURSDAY")
        + make_records(2, suburb="ASCOT", day="FRIDAY", zone="ZONE 2")
        + make_records(2, suburb="ASCOT", day="FRIDAY", zone="ZONE 1")
    )
    return analyzer.analyze(aggregator.aggregate(records))


@pytest.fixture
def publisher() -> DataPublisher:
    return DataPublisher(Settings(_env_file=None, history_size=2))


class TestPublish:
    """Test the files written by publish()."""

    def test_writes_all_files(self, publisher: DataPublisher, analyzed, tmp_path):
        publisher.publish(analyzed, tmp_path / "out", processing_time=1.5)

        names = {p.name for p in (tmp_path / "out").iterdir()}
        assert {
            "suburbs-latest.json",
            "suburb-lookup.json",
            "statistics.json",
            "index.json",
        } <= names
        assert any(n.startswith("suburbs-20") for n in names)

    def test_metadata(self, publisher: DataPublisher, analyzed, tmp_path):
        metadata = publisher.publish(analyzed, tmp_path, processing_time=1.5)

        assert metadata.suburb_count == 3
        assert metadata.total_properties == 11
        assert metadata.version == "2.0"
        assert metadata.processing_time == 1.5

    def test_latest_uses_camel_case(self, publisher: DataPublisher, analyzed, tmp_path):
        publisher.publish(analyzed, tmp_path)

        data = json.loads((tmp_path / "suburbs-latest.json").read_text())
        first = data["suburbs"][0]

        assert data["metadata"]["suburbCount"] == 3
        assert first["suburb"] == "ANNERLEY"
        assert first["stats"]["totalProperties"] == 3
        assert first["collection"]["primaryDay"] == "MONDAY"
        assert first["dataQuality"]["level"] == "low"
        assert first["binPattern"]["pattern"] == "ZONE_1_DEFAULT"

    def test_round_trip_validation(self, publisher: DataPublisher, analyzed, tmp_path):
        publisher.publish(analyzed, tmp_path)

        data = load_processed(tmp_path / "suburbs-latest.json")

        assert [s.suburb for s in data.suburbs] == ["ANNERLEY", "ASCOT", "WEST END"]

    def test_invalid_file(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text(json.dumps({"metadata": {}, "suburbs": []}))

        with pytest.raises(ValidationError):
            load_processed(path)

    def test_lookup(self, publisher: DataPublisher, analyzed):
        lookup = publisher.create_lookup(analyzed)

        assert lookup["suburbs"]["WEST END"] == {
            "day": "THURSDAY",
            "dayUniformity": 100.0,
            "zone": "ZONE 1",
            "zoneUniformity": 100.0,
            "confidence": 0.5,
            "pattern": "A",
        }

    def test_statistics(self, publisher: DataPublisher, analyzed):
        stats = publisher.create_statistics(analyzed)

        assert stats["summary"]["totalSuburbs"] == 3
        assert stats["summary"]["totalProperties"] == 11
        assert stats["summary"]["averagePropertiesPerSuburb"] == 4
        assert stats["summary"]["dataQuality"] == {"high": 0, "medium": 0, "low": 3}
        assert stats["summary"]["patterns"] == {"override": 1, "estimated": 2, "none": 0}
        assert stats["collectionDays"] == {"MONDAY": 1, "FRIDAY": 1, "THURSDAY": 1}
        assert stats["zones"] == {"ZONE 1": 9, "ZONE 2": 2}
        assert len(stats["warnings"]) == 3

    def test_index_lists_recent_snapshots(self, publisher: DataPublisher, analyzed, tmp_path):
        for day in ("2026-01-01", "2026-01-02", "2026-01-03"):
            (tmp_path / f"suburbs-{day}.json").write_text("{}")
        (tmp_path / "notes.json").write_text("{}")

        metadata = publisher.build_metadata(analyzed, processing_time=0)
        index = publisher.create_index(tmp_path, metadata, "suburbs-2026-01-03.json")

        assert index["endpoints"]["versioned"] == ["suburbs-2026-01-03.json", "suburbs-2026-01-02.json"]
        assert index["available"][:3] == ["suburbs-latest.json", "suburb-lookup.json", "statistics.json"]
        assert index["metadata"]["suburbCount"] == 3
