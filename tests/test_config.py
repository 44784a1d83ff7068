"""Tests for configuration module."""

import pytest

from regional_news.config import (
    RegionRegistry,
    Settings,
    SourceDescriptor,
    get_region_registry,
    get_settings,
)
from regional_news.exceptions import ConfigurationMissing


def test_settings_defaults():
    """Defaults match the documented limits."""
    settings = Settings()

    assert settings.feed_timeout_seconds == 15
    assert settings.article_timeout_seconds == 20
    assert settings.default_timeout_seconds == 30
    assert settings.enrichment_concurrency == 6
    assert settings.max_feed_items == 10
    assert settings.max_scan_blocks == 8
    assert settings.min_word_count == 50
    assert settings.relevance_floor_enabled is True


def test_settings_from_environment(monkeypatch):
    monkeypatch.setenv("MAX_FEED_ITEMS", "5")
    monkeypatch.setenv("RELEVANCE_FLOOR_ENABLED", "false")

    settings = Settings()

    assert settings.max_feed_items == 5
    assert settings.relevance_floor_enabled is False


def test_settings_concurrency_validation():
    with pytest.raises(ValueError, match="Enrichment concurrency must be between 1 and 16"):
        Settings(enrichment_concurrency=0)


@pytest.mark.parametrize("field", [
    "feed_timeout_seconds", "article_timeout_seconds",
    "default_timeout_seconds", "job_timeout_seconds",
])
def test_settings_timeout_validation(field):
    with pytest.raises(ValueError, match="Timeout must be positive"):
        Settings(**{field: 0})


def test_settings_limit_validation():
    with pytest.raises(ValueError, match="Limit must be at least 1"):
        Settings(min_word_count=0)


def test_global_getters():
    assert get_settings() is get_settings()
    assert get_region_registry() is get_region_registry()


class TestRegionRegistry:
    def test_packaged_regions(self, region_registry):
        assert set(region_registry.names()) >= {"Eastbourne", "Brighton", "Hastings"}

        eastbourne = region_registry.get("Eastbourne")
        assert "beachy head" in eastbourne.landmarks
        assert "bn21" in eastbourne.postcodes
        assert "sussex police" in eastbourne.organizations

    def test_lookup_is_case_insensitive(self, region_registry):
        assert region_registry.get("  brighton ").name == "Brighton"

    def test_unknown_and_empty_names(self, region_registry):
        assert region_registry.get("Atlantis") is None
        assert region_registry.get(None) is None
        assert region_registry.get("") is None

    def test_require_raises_for_unknown_region(self, region_registry):
        assert region_registry.require("hastings").name == "Hastings"

        with pytest.raises(ConfigurationMissing) as exc_info:
            region_registry.require("Atlantis")
        assert exc_info.value.region == "Atlantis"

    def test_custom_file(self, temp_dir):
        path = temp_dir / "regions.yaml"
        path.write_text(
            "regions:\n"
            "  Lewes:\n"
            "    keywords: [lewes]\n"
            "    postcodes: [bn7]\n"
        )

        registry = RegionRegistry(path)

        lewes = registry.get("lewes")
        assert lewes.keywords == ["lewes"]
        assert lewes.postcodes == ["bn7"]
        assert lewes.landmarks == []

    def test_missing_file(self, temp_dir):
        with pytest.raises(FileNotFoundError):
            RegionRegistry(temp_dir / "missing.yaml")


class TestSourceDescriptor:
    def test_source_type_normalized(self):
        source = SourceDescriptor(id="s1", feed_url="https://x.example.com/rss", source_type=" Hyperlocal ")

        assert source.source_type == "hyperlocal"

    def test_source_type_defaults_to_national(self):
        assert SourceDescriptor(id="s1", feed_url="https://x.example.com/rss").source_type == "national"

    def test_unknown_source_type_rejected(self):
        with pytest.raises(ValueError, match="Unknown source type"):
            SourceDescriptor(id="s1", feed_url="https://x.example.com/rss", source_type="blog")
