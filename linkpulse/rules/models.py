from pydantic import BaseModel, Field

DEFAULT_COUNTRY_CODES: dict[str, str] = {
    "IN": "India",
    "US": "United States",
    "USA": "United States",
    "GB": "United Kingdom",
    "UK": "United Kingdom",
    "CA": "Canada",
    "AU": "Australia",
    "DE": "Germany",
    "FR": "France",
    "ES": "Spain",
    "IT": "Italy",
    "JP": "Japan",
    "BR": "Brazil",
    "RU": "Russia",
    "CN": "China",
    "NL": "Netherlands",
    "SG": "Singapore",
}


class GeolocationRules(BaseModel):
    enabled: bool = True
    provider_url: str = "https://ipwho.is"
    timeout_seconds: float = Field(default=5.0, gt=0)
    cache_ttl_seconds: int = Field(default=3600, ge=0)
    cache_max_entries: int = Field(default=10000, ge=1)


class IngestionRules(BaseModel):
    dedupe_on_ingest: bool = False
    enrichment_workers: int = Field(default=2, ge=1)


class AggregationRules(BaseModel):
    window_days: int = Field(default=30, ge=1)
    dashboard_batch_size: int = Field(default=5, ge=1)
    export_batch_size: int = Field(default=20, ge=1)
    max_parallel_batches: int = Field(default=4, ge=1)
    batch_timeout_seconds: float = Field(default=30.0, gt=0)
    top_locations: int = Field(default=5, ge=1)
    top_links: int = Field(default=5, ge=1)
    country_codes: dict[str, str] = Field(
        default_factory=lambda: dict(DEFAULT_COUNTRY_CODES)
    )


class VelocityRules(BaseModel):
    current_window_minutes: int = Field(default=60, ge=1)
    historical_window_days: int = Field(default=30, ge=1)
    epsilon: float = Field(default=0.001, gt=0)
    exploding_multiplier: float = 5.0
    rising_multiplier: float = 2.0
    cooling_multiplier: float = 0.5


class ExportRules(BaseModel):
    filename_prefix: str = "linkpulse-export"


class AnalyticsRules(BaseModel):
    geolocation: GeolocationRules = Field(default_factory=GeolocationRules)
    ingestion: IngestionRules = Field(default_factory=IngestionRules)
    aggregation: AggregationRules = Field(default_factory=AggregationRules)
    velocity: VelocityRules = Field(default_factory=VelocityRules)
    export: ExportRules = Field(default_factory=ExportRules)


class Rules(BaseModel):
    rules_version: str = "1"
    analytics: AnalyticsRules = Field(default_factory=AnalyticsRules)
