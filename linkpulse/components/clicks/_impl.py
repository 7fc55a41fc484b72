"""
ClickTrackingService - validation, enrichment, dedupe and recording.

Key behaviors:
- Structural validation reports errors as strings and never raises
- UA classification and geolocation run concurrently per click
- Duplicates are identified by (link_id, timestamp) only; first wins
- A failed click write is logged and never blocks the redirect
- Link-not-found is the only failure surfaced to the caller
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Mapping
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Any

from linkpulse.adapters.clock import SystemClock
from linkpulse.components.enrichment import (
    UNKNOWN_LOCATION,
    GeolocationPort,
    GeolocationResult,
    NullGeolocation,
    ParsedUserAgent,
    classify,
    parse_user_agent,
)
from linkpulse.core.cache import TTLCache
from linkpulse.core.entities import (
    DIRECT_REFERRER,
    UNKNOWN_COUNTRY,
    ClickEvent,
    ClickEventInput,
    ClickEventWithLinkId,
)

from .models import ClickRequest, RedirectResult, TrackingConfig, ValidationResult
from .ports import ClickStorePort, TimePort

logger = logging.getLogger(__name__)

_MISSING = object()


def _field(data: Mapping[str, Any], *names: str) -> Any:
    for name in names:
        if name in data:
            return data[name]
    return _MISSING


def _as_mapping(event: Mapping[str, Any] | ClickEventInput | None) -> Mapping[str, Any]:
    if event is None:
        return {}
    if isinstance(event, ClickEventInput):
        return event.model_dump(by_alias=True)
    return event


# --- Validation ---


def validate_click_event(
    link_id: Any,
    event: Mapping[str, Any] | ClickEventInput | None,
) -> ValidationResult:
    """
    Validate a click submission before it is recorded.

    Every failing check contributes its own error; nothing short-circuits.
    """
    errors: list[str] = []
    data = _as_mapping(event)

    if not isinstance(link_id, str) or not link_id.strip():
        errors.append("linkId is required and must be a non-empty string")

    timestamp = _field(data, "timestamp")
    if timestamp is _MISSING or timestamp is None:
        errors.append("timestamp is required")
    elif isinstance(timestamp, bool) or not isinstance(timestamp, (int, float)):
        errors.append("timestamp must be a number")
    elif timestamp < 0:
        errors.append("timestamp must be non-negative")
    elif not math.isfinite(timestamp):
        errors.append("timestamp must be a finite number")

    referrer = _field(data, "referrer")
    if referrer is _MISSING or referrer is None:
        errors.append("referrer is required")
    elif not isinstance(referrer, str):
        errors.append("referrer must be a string")

    user_agent = _field(data, "userAgent", "user_agent")
    if user_agent not in (_MISSING, None) and not isinstance(user_agent, str):
        errors.append("userAgent must be a string")

    ip_address = _field(data, "ipAddress", "ip_address")
    if ip_address not in (_MISSING, None) and not isinstance(ip_address, str):
        errors.append("ipAddress must be a string")

    return ValidationResult(valid=not errors, errors=errors)


# --- Deduplication ---


def deduplicate_events(
    events: Iterable[ClickEventWithLinkId],
) -> list[ClickEventWithLinkId]:
    """Drop later events sharing (link_id, timestamp). Input order is kept."""
    seen: set[tuple[str, int]] = set()
    result: list[ClickEventWithLinkId] = []

    for event in events:
        key = event.dedupe_key
        if key in seen:
            continue
        seen.add(key)
        result.append(event)

    return result


# --- Record construction ---


def create_click_event_input(request: ClickRequest, timestamp: int) -> ClickEventInput:
    """Raw click record for storage."""
    return ClickEventInput(
        timestamp=timestamp,
        referrer=request.referrer or "",
        user_agent=request.user_agent or "",
        ip_address=request.ip_address or "",
        utm_source=request.utm_source,
        utm_medium=request.utm_medium,
        utm_campaign=request.utm_campaign,
        utm_term=request.utm_term,
        utm_content=request.utm_content,
        trigger_source=request.trigger_source,
        visitor_id=request.visitor_id,
    )


def build_click_event(
    request: ClickRequest,
    timestamp: int,
    parsed: ParsedUserAgent,
    location: GeolocationResult,
) -> ClickEvent:
    """Combine a request with its enrichment into a ClickEvent."""
    optional: dict[str, Any] = {
        "country_code": location.country_code if location.resolved else None,
        "region": location.region_name,
        "city": location.city,
        "latitude": location.latitude,
        "longitude": location.longitude,
        "isp": location.isp,
        "timezone": location.timezone,
        "utm_source": request.utm_source,
        "utm_medium": request.utm_medium,
        "utm_campaign": request.utm_campaign,
        "utm_term": request.utm_term,
        "utm_content": request.utm_content,
        "trigger_source": request.trigger_source,
        "visitor_id": request.visitor_id,
    }
    return ClickEvent(
        timestamp=timestamp,
        referrer=request.referrer or DIRECT_REFERRER,
        device=parsed.device,
        os=parsed.os,
        country=location.country,
        browser=parsed.browser,
        browser_version=parsed.browser_version,
        os_version=parsed.os_version,
        **{k: v for k, v in optional.items() if v is not None},
    )


def normalize_record(
    link_id: str,
    record: ClickEventInput | Mapping[str, Any],
) -> ClickEventWithLinkId:
    """
    Turn a stored click record into a ClickEventWithLinkId.

    Records written before enrichment carry no device/os; those are
    classified from the stored user agent.
    """
    if not isinstance(record, ClickEventInput):
        record = ClickEventInput.model_validate(record)

    device, os = record.device, record.os
    if device is None or os is None:
        user_agent = record.user_agent if isinstance(record.user_agent, str) else ""
        parsed_device, parsed_os = classify(user_agent)
        device = device or parsed_device
        os = os or parsed_os

    timestamp = record.timestamp
    if isinstance(timestamp, float) and math.isfinite(timestamp):
        timestamp = int(timestamp)

    optional = {
        "utm_source": record.utm_source,
        "utm_medium": record.utm_medium,
        "utm_campaign": record.utm_campaign,
        "utm_term": record.utm_term,
        "utm_content": record.utm_content,
        "trigger_source": record.trigger_source,
        "visitor_id": record.visitor_id,
    }
    referrer = record.referrer if isinstance(record.referrer, str) else ""

    return ClickEventWithLinkId(
        link_id=link_id,
        timestamp=timestamp,
        referrer=referrer or DIRECT_REFERRER,
        device=device,
        os=os,
        country=(record.country or "").strip() or UNKNOWN_COUNTRY,
        **{k: v for k, v in optional.items() if v is not None},
    )


# --- Click Tracking Service ---


class ClickTrackingService:
    """
    Click tracking service.

    Resolves short codes, records clicks best-effort, and always lets the
    redirect through when the link exists.
    """

    def __init__(
        self,
        store: ClickStorePort,
        geolocation: GeolocationPort | None = None,
        time_port: TimePort | None = None,
        config: TrackingConfig | None = None,
    ) -> None:
        """Initialize service."""
        self._store = store
        self._geo = geolocation or NullGeolocation()
        self._time = time_port or SystemClock()
        self._config = config or TrackingConfig()
        self._executor = ThreadPoolExecutor(
            max_workers=self._config.enrichment_workers,
            thread_name_prefix="click-enrich",
        )
        self._recent: TTLCache[tuple[str, int], bool] | None = None
        if self._config.dedupe_on_ingest:
            self._recent = TTLCache(
                max_age_seconds=self._config.dedupe_window_seconds,
                time_port=self._time,
            )

    def close(self) -> None:
        self._executor.shutdown(wait=False, cancel_futures=True)

    def _now_ms(self) -> int:
        return int(self._time.now_utc().timestamp() * 1000)

    def enrich(self, request: ClickRequest, timestamp: int) -> ClickEvent:
        """Run UA classification and geolocation concurrently."""
        ua_future = self._executor.submit(parse_user_agent, request.user_agent)
        geo_future = self._executor.submit(self._geo.resolve, request.ip_address)

        parsed = ua_future.result()
        try:
            location = geo_future.result(timeout=self._config.enrichment_timeout_seconds)
        except FutureTimeoutError:
            # The lookup keeps running until its own httpx timeout; its result is dropped.
            logger.warning(
                "Geolocation for %s exceeded %ss; recording without location",
                request.ip_address,
                self._config.enrichment_timeout_seconds,
            )
            location = UNKNOWN_LOCATION

        return build_click_event(request, timestamp, parsed, location)

    def _is_recent_duplicate(self, link_id: str, timestamp: int) -> bool:
        if self._recent is None:
            return False
        key = (link_id, timestamp)
        if self._recent.get(key):
            return True
        self._recent.set(key, True)
        return False

    def track(self, short_code: str, request: ClickRequest) -> RedirectResult:
        """
        Track a click on a short link and decide the redirect.

        Returns success=False only when the link cannot be resolved.
        """
        try:
            link = self._store.get_link_by_code(short_code)
        except Exception as e:
            logger.exception("Link lookup failed for %s", short_code)
            return RedirectResult(success=False, redirect_url="", error=str(e) or "Unknown error")

        if link is None:
            return RedirectResult(success=False, redirect_url="", error="Link not found")

        timestamp = self._now_ms()
        record = create_click_event_input(request, timestamp)

        validation = validate_click_event(link.id, record)
        if not validation.valid:
            logger.warning("Click event validation failed: %s", validation.errors)

        if self._is_recent_duplicate(link.id, timestamp):
            logger.debug("Duplicate click ignored for link %s at %d", link.id, timestamp)
            return RedirectResult(success=True, redirect_url=link.original_url)

        try:
            event = self.enrich(request, timestamp)
            record = record.model_copy(
                update={"device": event.device, "os": event.os, "country": event.country}
            )
        except Exception:
            logger.exception("Click enrichment failed for link %s", link.id)

        try:
            self._store.record_click(link.id, record)
        except Exception:
            logger.exception("Failed to record click for link %s", link.id)

        return RedirectResult(success=True, redirect_url=link.original_url)


# --- Factory ---


def create_click_tracking_service(
    store: ClickStorePort,
    geolocation: GeolocationPort | None = None,
    time_port: TimePort | None = None,
    config: TrackingConfig | None = None,
) -> ClickTrackingService:
    """Create a ClickTrackingService."""
    return ClickTrackingService(
        store=store,
        geolocation=geolocation,
        time_port=time_port,
        config=config,
    )
