"""
Aggregation component - time series, breakdowns, rollups and dashboards.
"""

from ._batch import (
    DASHBOARD_BATCH_SIZE,
    EXPORT_BATCH_SIZE,
    fetch_events_batched,
    split_batches,
)
from ._impl import (
    SOCIAL_PATTERNS,
    WEEKDAYS,
    aggregate,
    aggregate_clicks_by_day_of_week,
    build_breakdown,
    build_location_breakdown,
    build_referrer_breakdown,
    build_time_series,
    build_top_links,
    build_traffic_sources,
    build_weekday_forecast,
    categorize_referrer,
    count_unique_visitors,
    date_range_to_ms,
    event_datetime,
    filter_by_date_range,
    normalize_country,
    period_start,
)
from .component import run_aggregate, run_dashboard, run_fetch_events
from .models import (
    AggregatedClickData,
    AggregateOptions,
    BatchFetchResult,
    DashboardInput,
    DashboardOutput,
    DashboardOverview,
    DateRange,
    NamedCount,
    PeriodType,
    TimeSeriesPoint,
    TopLinkItem,
    TrafficSource,
    WeekdayPoint,
)
from .ports import ClickEventRepoPort, LinkRepoPort

__all__ = [
    # Entry points
    "run_aggregate",
    "run_dashboard",
    "run_fetch_events",
    # Batching
    "DASHBOARD_BATCH_SIZE",
    "EXPORT_BATCH_SIZE",
    "fetch_events_batched",
    "split_batches",
    # Pure functions
    "SOCIAL_PATTERNS",
    "WEEKDAYS",
    "aggregate",
    "aggregate_clicks_by_day_of_week",
    "build_breakdown",
    "build_location_breakdown",
    "build_referrer_breakdown",
    "build_time_series",
    "build_top_links",
    "build_traffic_sources",
    "build_weekday_forecast",
    "categorize_referrer",
    "count_unique_visitors",
    "date_range_to_ms",
    "event_datetime",
    "filter_by_date_range",
    "normalize_country",
    "period_start",
    # Models
    "AggregateOptions",
    "AggregatedClickData",
    "BatchFetchResult",
    "DashboardInput",
    "DashboardOutput",
    "DashboardOverview",
    "DateRange",
    "NamedCount",
    "PeriodType",
    "TimeSeriesPoint",
    "TopLinkItem",
    "TrafficSource",
    "WeekdayPoint",
    # Ports
    "ClickEventRepoPort",
    "LinkRepoPort",
]
