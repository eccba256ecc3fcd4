"""Tests for Settings defaults."""

from binrotation.config import Settings


class TestSettings:
    """Test configuration defaults and environment overrides."""

    def test_validation_threshold_default(self):
        assert Settings(_env_file=None).min_data_completeness == 90.0

    def test_validation_threshold_from_env(self, monkeypatch):
        monkeypatch.setenv("BINROTATION_MIN_DATA_COMPLETENESS", "75")

        assert Settings(_env_file=None).min_data_completeness == 75.0

    def test_only_fetched_datasets_configured(self):
        fields = Settings.model_fields

        assert "collection_days_dataset" in fields
        assert not any("weeks" in name for name in fields)
