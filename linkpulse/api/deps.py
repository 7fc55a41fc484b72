import os
from functools import lru_cache
from pathlib import Path

from fastapi import Depends

from linkpulse.adapters.clock import SystemClock
from linkpulse.adapters.sqlite_store import SQLiteClickStore
from linkpulse.components.clicks import (
    ClickTrackingService,
    TimePort,
    build_tracking_config,
    create_click_tracking_service,
)
from linkpulse.components.enrichment import GeolocationPort, create_geolocation_resolver
from linkpulse.rules.loader import load_rules
from linkpulse.rules.models import AnalyticsRules, Rules

_FALSE_VALUES = frozenset({"0", "false", "no", "off"})


# --- Settings ---
class Settings:
    def __init__(self) -> None:
        self.base_dir = Path(os.getcwd())
        self.data_dir = Path(os.environ.get("LINKPULSE_DATA_DIR", "./data"))
        self.db_path = str(self.data_dir / "linkpulse.db")
        self.rules_path = Path(
            os.environ.get("LINKPULSE_RULES_PATH", str(self.base_dir / "rules.yaml"))
        )
        geo_flag = os.environ.get("LINKPULSE_GEO_ENABLED", "true").strip().lower()
        self.geo_enabled = geo_flag not in _FALSE_VALUES


@lru_cache
def get_settings() -> Settings:
    return Settings()


# --- Rules ---
@lru_cache
def get_rules() -> Rules:
    return load_rules(get_settings().rules_path)


def get_analytics_rules(rules: Rules = Depends(get_rules)) -> AnalyticsRules:
    return rules.analytics


# --- Adapters ---
def get_time_port() -> TimePort:
    return SystemClock()


@lru_cache
def get_click_store() -> SQLiteClickStore:
    settings = get_settings()
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    return SQLiteClickStore(settings.db_path)


@lru_cache
def get_geolocation() -> GeolocationPort:
    settings = get_settings()
    geo_rules = get_rules().analytics.geolocation
    if not settings.geo_enabled:
        geo_rules = geo_rules.model_copy(update={"enabled": False})
    return create_geolocation_resolver(geo_rules)


# --- Component Services ---
@lru_cache
def get_tracking_service() -> ClickTrackingService:
    """Long-lived click tracking service shared by the redirect route."""
    return create_click_tracking_service(
        store=get_click_store(),
        geolocation=get_geolocation(),
        config=build_tracking_config(get_rules().analytics),
    )


def shutdown_services() -> None:
    """Release pooled resources created by the cached providers."""
    if get_tracking_service.cache_info().currsize:
        get_tracking_service().close()
    if get_geolocation.cache_info().currsize:
        geolocation = get_geolocation()
        close = getattr(geolocation, "close", None)
        if close is not None:
            close()
