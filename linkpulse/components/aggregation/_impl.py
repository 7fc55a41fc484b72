"""
Click rollups - time series, breakdowns, locations, top links, periods,
traffic sources and weekdays.

Key behaviors:
- Time series are dense: every UTC day in the window appears, zero-filled
- Location names are normalised through the country code table
- Sorting is stable; ties keep first-seen order
- Per-period rollups bucket by UTC hour or day over a dense window
- Date ranges (7d, 30d, 90d, all) end at "now" and include both bounds
- Referrers fall into exactly one of Direct, Social or Referral
"""

from __future__ import annotations

import math
from collections import Counter
from collections.abc import Iterable, Mapping, Sequence
from datetime import UTC, datetime, timedelta
from typing import Literal, TypeVar, get_args

from linkpulse.core.entities import (
    DIRECT_REFERRER,
    UNKNOWN_COUNTRY,
    ClickEvent,
    ClickEventWithLinkId,
    DeviceType,
    LinkData,
    OSType,
)
from linkpulse.rules.models import DEFAULT_COUNTRY_CODES

from .models import (
    AggregateOptions,
    AggregatedClickData,
    DateRange,
    NamedCount,
    PeriodType,
    TimeSeriesPoint,
    TopLinkItem,
    TrafficSource,
    WeekdayPoint,
)

BreakdownField = Literal["device", "os"]

_FIELD_VALUES: dict[str, tuple[str, ...]] = {
    "device": get_args(DeviceType),
    "os": get_args(OSType),
}

_DEFAULT_WINDOWS: dict[str, int] = {"day": 30, "hour": 24}

_MS_PER_DAY = 24 * 60 * 60 * 1000
_DATE_RANGE_DAYS: dict[str, int] = {"7d": 7, "30d": 30, "90d": 90}

WEEKDAYS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")

SOCIAL_PATTERNS = (
    "twitter",
    "t.co",
    "facebook",
    "fb.com",
    "instagram",
    "linkedin",
    "tiktok",
    "youtube",
    "youtu.be",
    "pinterest",
    "reddit",
    "snapchat",
    "whatsapp",
    "telegram",
    "discord",
    "tumblr",
    "mastodon",
    "threads.net",
)

_TRAFFIC_SOURCE_LABELS: dict[TrafficSource, str] = {
    "direct": "Direct",
    "social": "Social",
    "referral": "Referral",
}

ClickEventT = TypeVar("ClickEventT", bound=ClickEvent)


# --- Time helpers ---


def event_datetime(event: ClickEvent) -> datetime:
    """Event timestamp (epoch ms) as an aware UTC datetime."""
    return datetime.fromtimestamp(event.timestamp / 1000, tz=UTC)


def _to_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=UTC)
    return moment.astimezone(UTC)


def period_start(moment: datetime, period: PeriodType) -> datetime:
    """Start of the hour or day bucket containing ``moment``."""
    ts = _to_utc(moment)
    if period == "hour":
        return ts.replace(minute=0, second=0, microsecond=0)
    elif period == "day":
        return ts.replace(hour=0, minute=0, second=0, microsecond=0)
    else:
        msg = f"Unknown period: {period}"
        raise ValueError(msg)


def period_label(start: datetime, period: PeriodType) -> str:
    if period == "hour":
        return start.strftime("%Y-%m-%dT%H:00")
    return start.strftime("%Y-%m-%d")


def _period_step(period: PeriodType) -> timedelta:
    return timedelta(hours=1) if period == "hour" else timedelta(days=1)


# --- Time series ---


def build_time_series(
    events: Iterable[ClickEvent],
    now: datetime,
    days: int = 30,
) -> list[TimeSeriesPoint]:
    """
    Daily click counts for the ``days`` UTC days ending today.

    Oldest first. Days without clicks are present with zero; events outside
    the window are ignored.
    """
    today = period_start(now, "day")
    labels = [
        period_label(today - timedelta(days=offset), "day")
        for offset in range(days - 1, -1, -1)
    ]
    counts: dict[str, int] = dict.fromkeys(labels, 0)

    for event in events:
        label = period_label(event_datetime(event), "day")
        if label in counts:
            counts[label] += 1

    return [TimeSeriesPoint(date=label, clicks=counts[label]) for label in labels]


# --- Categorical breakdowns ---


def build_breakdown(
    events: Iterable[ClickEvent],
    field: BreakdownField,
    chart_ready: bool = True,
) -> list[NamedCount]:
    """
    Group-count events on ``device`` or ``os``.

    The dense form lists every category in a fixed order, zeros included.
    The chart-ready form drops zero counts.
    """
    if field not in _FIELD_VALUES:
        msg = f"Unsupported breakdown field: {field}"
        raise ValueError(msg)

    counts = Counter(getattr(event, field) for event in events)
    items = [
        NamedCount(name=value, count=counts.get(value, 0))
        for value in _FIELD_VALUES[field]
    ]

    if chart_ready:
        return [item for item in items if item.count > 0]
    return items


def _title_case(value: str) -> str:
    return " ".join(word[:1].upper() + word[1:].lower() for word in value.split())


def normalize_country(
    raw: str | None,
    country_codes: Mapping[str, str] | None = None,
) -> str:
    """
    Normalise a stored country value to a display name.

    Known codes map to names, blanks become "Unknown", anything else is
    title-cased.
    """
    codes = DEFAULT_COUNTRY_CODES if country_codes is None else country_codes
    location = (raw or "").strip()
    if not location:
        return UNKNOWN_COUNTRY

    upper = location.upper()
    if upper in codes:
        return codes[upper]
    return _title_case(location)


def _top_counts(names: Iterable[str], top_n: int) -> list[NamedCount]:
    # Counter preserves first-seen order and sorted() is stable.
    counts = Counter(names)
    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    return [NamedCount(name=name, count=count) for name, count in ranked[:top_n]]


def build_location_breakdown(
    events: Iterable[ClickEvent],
    top_n: int = 5,
    country_codes: Mapping[str, str] | None = None,
) -> list[NamedCount]:
    """Top ``top_n`` normalised locations by click count."""
    return _top_counts(
        (normalize_country(event.country, country_codes) for event in events),
        top_n,
    )


def build_referrer_breakdown(
    events: Iterable[ClickEvent],
    top_n: int = 5,
) -> list[NamedCount]:
    return _top_counts((event.referrer for event in events), top_n)


# --- Top links ---


def build_top_links(
    links: Sequence[LinkData],
    events: Iterable[ClickEventWithLinkId],
    top_n: int = 5,
) -> list[TopLinkItem]:
    """
    Rank links by their click count in ``events``.

    Every link takes part, including those without clicks; ties keep the
    order of ``links``.
    """
    counts = Counter(event.link_id for event in events)
    items = [
        TopLinkItem(
            link_id=link.id,
            title=link.title,
            url=f"/r/{link.short_code}",
            clicks=counts.get(link.id, 0),
        )
        for link in links
    ]
    items.sort(key=lambda item: item.clicks, reverse=True)
    return items[:top_n]


# --- Visitors ---


def count_unique_visitors(events: Iterable[ClickEvent]) -> int:
    """
    Distinct visitors in a set of events.

    Events without a visitor identifier each count as their own visitor.
    """
    visitors: set[str] = set()
    anonymous = 0
    for event in events:
        if event.visitor_id:
            visitors.add(event.visitor_id)
        else:
            anonymous += 1
    return len(visitors) + anonymous


# --- Date ranges ---


def date_range_to_ms(date_range: DateRange) -> int | None:
    """Range length in milliseconds; None for "all"."""
    if date_range == "all":
        return None
    if date_range not in _DATE_RANGE_DAYS:
        msg = f"Unsupported date range: {date_range}"
        raise ValueError(msg)
    return _DATE_RANGE_DAYS[date_range] * _MS_PER_DAY


def filter_by_date_range(
    events: Iterable[ClickEventT],
    date_range: DateRange,
    now: datetime | int,
) -> list[ClickEventT]:
    """Events with ``now - range <= timestamp <= now``. "all" keeps everything."""
    span = date_range_to_ms(date_range)
    if span is None:
        return list(events)

    now_ms = now if isinstance(now, int) else int(_to_utc(now).timestamp() * 1000)
    start_ms = now_ms - span
    return [event for event in events if start_ms <= event.timestamp <= now_ms]


# --- Traffic sources ---


def categorize_referrer(referrer: str | None) -> TrafficSource:
    """Direct for blank or "direct", social for known networks, else referral."""
    normalized = (referrer or "").strip().lower()
    if not normalized or normalized == DIRECT_REFERRER:
        return "direct"
    if any(pattern in normalized for pattern in SOCIAL_PATTERNS):
        return "social"
    return "referral"


def build_traffic_sources(events: Iterable[ClickEvent]) -> list[NamedCount]:
    """Direct, Social and Referral counts. All three are always listed."""
    counts = Counter(categorize_referrer(event.referrer) for event in events)
    return [
        NamedCount(label, counts[source]) for source, label in _TRAFFIC_SOURCE_LABELS.items()
    ]


# --- Day of week ---


def aggregate_clicks_by_day_of_week(events: Iterable[ClickEvent]) -> dict[str, int]:
    """Click counts per UTC weekday, Mon through Sun, zero-filled."""
    counts = dict.fromkeys(WEEKDAYS, 0)
    for event in events:
        counts[WEEKDAYS[event_datetime(event).weekday()]] += 1
    return counts


def build_weekday_forecast(events: Iterable[ClickEvent]) -> list[WeekdayPoint]:
    """
    Actual clicks per weekday next to a flat forecast.

    The forecast is the weekly mean (total / 7) rounded half-up, the same
    for every day.
    """
    counts = aggregate_clicks_by_day_of_week(events)
    forecast = math.floor(sum(counts.values()) / len(WEEKDAYS) + 0.5)
    return [WeekdayPoint(day=day, actual=counts[day], forecast=forecast) for day in WEEKDAYS]


# --- Period rollups ---


def aggregate(
    events: Iterable[ClickEvent],
    options: AggregateOptions | None = None,
    country_codes: Mapping[str, str] | None = None,
) -> list[AggregatedClickData]:
    """
    Roll events up into one AggregatedClickData per hour or day.

    The window is dense and ends at the period containing ``options.now``;
    events outside it are ignored. Oldest period first.
    """
    options = options or AggregateOptions()
    period = options.period
    window = options.window or _DEFAULT_WINDOWS[period]
    now = options.now or datetime.now(UTC)

    step = _period_step(period)
    current = period_start(now, period)
    starts = [current - step * offset for offset in range(window - 1, -1, -1)]

    buckets: dict[datetime, list[ClickEvent]] = {start: [] for start in starts}
    for event in events:
        start = period_start(event_datetime(event), period)
        if start in buckets:
            buckets[start].append(event)

    results: list[AggregatedClickData] = []
    for start in starts:
        bucket = buckets[start]
        results.append(
            AggregatedClickData(
                period=period_label(start, period),
                clicks=len(bucket),
                unique_visitors=count_unique_visitors(bucket),
                top_referrers=tuple(build_referrer_breakdown(bucket, options.top_n)),
                device_breakdown=tuple(build_breakdown(bucket, "device", chart_ready=True)),
                country_breakdown=tuple(
                    build_location_breakdown(bucket, options.top_n, country_codes)
                ),
            )
        )
    return results
