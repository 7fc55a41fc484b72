"""
Aggregation component - rollups and dashboards over stored click events.

Invariants:
- Reads only; concurrent aggregations never interfere
- A failed batch never fails the dashboard; it is reported as partial
- Merged events contain each (link_id, timestamp) once
- Aggregates are recomputed on demand and never stored
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from typing import Literal

from linkpulse.adapters.clock import SystemClock
from linkpulse.components.clicks import TimePort
from linkpulse.components.insights import (
    calculate_creator_rank,
    personas_from_events,
    velocity_from_events,
)
from linkpulse.core.entities import ClickEvent
from linkpulse.rules.models import AnalyticsRules

from ._batch import fetch_events_batched
from ._impl import (
    aggregate,
    build_breakdown,
    build_location_breakdown,
    build_time_series,
    build_top_links,
    build_traffic_sources,
    build_weekday_forecast,
    count_unique_visitors,
    filter_by_date_range,
)
from .models import (
    AggregateOptions,
    AggregatedClickData,
    BatchFetchResult,
    DashboardInput,
    DashboardOutput,
    DashboardOverview,
)
from .ports import ClickEventRepoPort, LinkRepoPort

logger = logging.getLogger(__name__)

FetchPurpose = Literal["dashboard", "export"]


# --- Component Entry Points ---


def run_fetch_events(
    link_ids: Sequence[str],
    *,
    repo: ClickEventRepoPort,
    rules: AnalyticsRules | None = None,
    purpose: FetchPurpose = "dashboard",
) -> BatchFetchResult:
    """Read events for many links using the batch size configured for ``purpose``."""
    agg = (rules or AnalyticsRules()).aggregation
    batch_size = agg.export_batch_size if purpose == "export" else agg.dashboard_batch_size
    return fetch_events_batched(
        repo,
        link_ids,
        batch_size=batch_size,
        max_workers=agg.max_parallel_batches,
        timeout_seconds=agg.batch_timeout_seconds,
    )


def run_aggregate(
    events: Iterable[ClickEvent],
    options: AggregateOptions | None = None,
    *,
    rules: AnalyticsRules | None = None,
) -> list[AggregatedClickData]:
    """Per-hour or per-day rollups of click events."""
    codes = (rules or AnalyticsRules()).aggregation.country_codes
    return aggregate(events, options, country_codes=codes)


def run_dashboard(
    inp: DashboardInput,
    *,
    links_repo: LinkRepoPort,
    events_repo: ClickEventRepoPort,
    time_port: TimePort | None = None,
    rules: AnalyticsRules | None = None,
) -> DashboardOutput:
    """
    Build the analytics dashboard for a user.

    Events are read in parallel batches; link counters drive the overview
    totals and creator rank, the fetched events drive everything else.
    ``date_range`` narrows the breakdowns, top links, traffic sources,
    weekday counts and unique visitors; the time series, velocity and
    personas always see every fetched event.
    """
    rules = rules or AnalyticsRules()
    agg = rules.aggregation
    time_port = time_port or SystemClock()
    now = time_port.now_utc()
    days = inp.days or agg.window_days

    links = links_repo.get_links_for_user(inp.user_id)
    fetched = run_fetch_events([link.id for link in links], repo=events_repo, rules=rules)
    events = fetched.events

    if fetched.partial:
        logger.warning(
            "Dashboard for %s is partial: %d of %d batches failed",
            inp.user_id,
            len(fetched.failed_batches),
            fetched.total_batches,
        )

    velocity = velocity_from_events(events, now, rules.velocity)
    in_range = filter_by_date_range(events, inp.date_range, now)

    return DashboardOutput(
        user_id=inp.user_id,
        days=days,
        overview=DashboardOverview(
            total_clicks=sum(link.clicks for link in links),
            total_links=len(links),
            unique_visitors=count_unique_visitors(in_range),
        ),
        clicks_over_time=build_time_series(events, now, days),
        by_device=build_breakdown(in_range, "device", chart_ready=True),
        by_os=build_breakdown(in_range, "os", chart_ready=True),
        by_location=build_location_breakdown(in_range, agg.top_locations, agg.country_codes),
        top_links=build_top_links(links, in_range, agg.top_links),
        velocity=velocity,
        rank=calculate_creator_rank(links, now=now, velocity=velocity),
        personas=personas_from_events(events),
        date_range=inp.date_range,
        traffic_sources=build_traffic_sources(in_range),
        clicks_by_weekday=build_weekday_forecast(in_range),
        partial=fetched.partial,
        failed_batches=fetched.failed_batches,
    )
