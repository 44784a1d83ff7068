"""Configuration management for the regional news ingest core."""

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigurationMissing

DEFAULT_REGIONS_FILE = Path(__file__).parent / "regions.yaml"

SOURCE_TYPES = ("hyperlocal", "regional", "national")


class RegionConfig(BaseModel):
    """Keyword, landmark, postcode and organization lists for one region."""
    name: str
    keywords: list[str] = Field(default_factory=list)
    landmarks: list[str] = Field(default_factory=list)
    postcodes: list[str] = Field(default_factory=list)
    organizations: list[str] = Field(default_factory=list)


class SourceDescriptor(BaseModel):
    """Per-source configuration supplied by the source store."""
    id: str
    feed_url: str
    source_type: str = "national"
    region: str = ""
    canonical_domain: str = ""
    name: str = ""

    @field_validator("source_type")
    @classmethod
    def validate_source_type(cls, v: str) -> str:
        """Normalize source type to one of the known values."""
        v = (v or "national").strip().lower()
        if v not in SOURCE_TYPES:
            raise ValueError(f"Unknown source type: {v}")
        return v


class Settings(BaseSettings):
    """Main application settings."""

    # ── HTTP ───────────────────────────────────────────────────────────────
    user_agent: str = Field(
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
        description="User agent for web requests"
    )
    feed_timeout_seconds: float = Field(15.0, description="Timeout for feed fetches")
    article_timeout_seconds: float = Field(20.0, description="Timeout for article page fetches")
    default_timeout_seconds: float = Field(30.0, description="Timeout for listing and discovery fetches")
    max_response_size_mb: int = Field(10, description="Maximum response size in MB")

    # ── Ingestion Limits ───────────────────────────────────────────────────
    enrichment_concurrency: int = Field(6, description="Concurrent article page fetches per feed")
    max_feed_items: int = Field(10, description="Maximum entries taken from one feed")
    max_scan_blocks: int = Field(8, description="Maximum article blocks taken from one listing page")
    min_word_count: int = Field(50, description="Minimum words for a candidate to be kept")
    job_timeout_seconds: float = Field(300.0, description="Overall timeout for one source scrape")

    # ── Storage & Regions ──────────────────────────────────────────────────
    regions_file: Path = Field(DEFAULT_REGIONS_FILE, description="Region configuration YAML")
    database_path: Path = Field(Path("./data/articles.db"), description="SQLite database path")
    relevance_floor_enabled: bool = Field(True, description="Reject low-relevance articles at storage")

    # ── Logging ────────────────────────────────────────────────────────────
    log_level: str = Field("INFO", description="Log level")
    json_logging: bool = Field(True, description="Enable JSON logging")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("enrichment_concurrency")
    @classmethod
    def validate_concurrency(cls, v: int) -> int:
        """Keep the enrichment pool small enough to respect third-party servers."""
        if not 1 <= v <= 16:
            raise ValueError("Enrichment concurrency must be between 1 and 16")
        return v

    @field_validator(
        "feed_timeout_seconds", "article_timeout_seconds",
        "default_timeout_seconds", "job_timeout_seconds"
    )
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        """Timeouts are mandatory and must be positive."""
        if v <= 0:
            raise ValueError("Timeout must be positive")
        return v

    @field_validator("max_feed_items", "max_scan_blocks", "min_word_count")
    @classmethod
    def validate_limit(cls, v: int) -> int:
        """Validate item limits."""
        if v < 1:
            raise ValueError("Limit must be at least 1")
        return v


class RegionRegistry:
    """Region configuration loader."""

    def __init__(self, config_path: str | Path = DEFAULT_REGIONS_FILE):
        self.config_path = Path(config_path)
        self._regions: dict[str, RegionConfig] = {}
        self.load_config()

    def load_config(self) -> None:
        """Load region configuration from YAML file."""
        if not self.config_path.exists():
            raise FileNotFoundError(f"Region config file not found: {self.config_path}")

        with open(self.config_path, encoding="utf-8") as f:
            data: dict[str, Any] = yaml.safe_load(f) or {}

        self._regions = {}
        for name, entry in (data.get("regions") or {}).items():
            self.add(RegionConfig(name=name, **(entry or {})))

    def add(self, region: RegionConfig) -> None:
        """Register or replace a region."""
        self._regions[region.name.strip().lower()] = region

    def get(self, region_name: str | None) -> RegionConfig | None:
        """Look up a region by name, case-insensitively."""
        if not region_name:
            return None
        return self._regions.get(region_name.strip().lower())

    def require(self, region_name: str | None) -> RegionConfig:
        """Look up a region, raising ConfigurationMissing if it is not configured."""
        region = self.get(region_name)
        if region is None:
            raise ConfigurationMissing(region_name)
        return region

    def names(self) -> list[str]:
        """Names of all configured regions."""
        return [region.name for region in self._regions.values()]


# Global instances
settings = Settings()
_region_registry: RegionRegistry | None = None


def get_settings() -> Settings:
    """Get application settings."""
    return settings


def get_region_registry() -> RegionRegistry:
    """Get the region registry, loading it on first use."""
    global _region_registry
    if _region_registry is None:
        _region_registry = RegionRegistry(get_settings().regions_file)
    return _region_registry
