"""
Clicks component - click validation, deduplication and redirect tracking.

Invariants:
- Validation is pure and reports every failing field
- Dedupe identity is (link_id, timestamp); first occurrence wins
- Redirects complete whenever the link exists, whatever the analytics
  subsystem health
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from linkpulse.components.enrichment import GeolocationPort
from linkpulse.core.entities import ClickEventInput, ClickEventWithLinkId
from linkpulse.rules.models import AnalyticsRules

from ._impl import (
    ClickTrackingService,
    deduplicate_events,
    validate_click_event,
)
from .models import ClickRequest, RedirectResult, TrackingConfig, ValidationResult
from .ports import ClickStorePort, TimePort


def build_tracking_config(rules: AnalyticsRules | None) -> TrackingConfig:
    """Build tracking config from analytics rules."""
    if rules is None:
        return TrackingConfig()

    return TrackingConfig(
        dedupe_on_ingest=rules.ingestion.dedupe_on_ingest,
        enrichment_workers=rules.ingestion.enrichment_workers,
        enrichment_timeout_seconds=rules.geolocation.timeout_seconds + 1.0,
    )


# --- Component Entry Points ---


def run_validate(
    link_id: Any,
    event: Mapping[str, Any] | ClickEventInput | None,
) -> ValidationResult:
    """Validate a click submission. Never raises."""
    return validate_click_event(link_id, event)


def run_dedupe(events: list[ClickEventWithLinkId]) -> list[ClickEventWithLinkId]:
    """Deduplicate events by (link_id, timestamp), keeping input order."""
    return deduplicate_events(events)


def run_track_click(
    short_code: str,
    request: ClickRequest,
    *,
    store: ClickStorePort,
    geolocation: GeolocationPort | None = None,
    time_port: TimePort | None = None,
    rules: AnalyticsRules | None = None,
) -> RedirectResult:
    """
    Resolve a short code and record the click.

    A one-shot service is built for the call; long-lived callers should
    hold a ClickTrackingService instead.
    """
    service = ClickTrackingService(
        store=store,
        geolocation=geolocation,
        time_port=time_port,
        config=build_tracking_config(rules),
    )
    try:
        return service.track(short_code, request)
    finally:
        service.close()
