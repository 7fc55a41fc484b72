"""
Aggregation component input/output models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal

from linkpulse.components.insights import AudiencePersona, CreatorRank, EngagementVelocity
from linkpulse.core.entities import ClickEventWithLinkId

PeriodType = Literal["hour", "day"]
DateRange = Literal["7d", "30d", "90d", "all"]
TrafficSource = Literal["direct", "social", "referral"]


@dataclass(frozen=True)
class NamedCount:
    """A (name, count) pair in a categorical breakdown."""

    name: str
    count: int


@dataclass(frozen=True)
class TimeSeriesPoint:
    """Clicks on one UTC calendar day."""

    date: str
    clicks: int


@dataclass(frozen=True)
class WeekdayPoint:
    """Clicks on one UTC weekday, with the flat weekly average as forecast."""

    day: str
    actual: int
    forecast: int


@dataclass(frozen=True)
class TopLinkItem:
    """A link ranked by click count."""

    link_id: str
    title: str
    url: str
    clicks: int


@dataclass(frozen=True)
class AggregatedClickData:
    """Rollup of click events for one period."""

    period: str
    clicks: int
    unique_visitors: int
    top_referrers: tuple[NamedCount, ...] = ()
    device_breakdown: tuple[NamedCount, ...] = ()
    country_breakdown: tuple[NamedCount, ...] = ()


@dataclass(frozen=True)
class AggregateOptions:
    """
    Options for per-period rollups.

    ``window`` counts periods back from ``now`` (inclusive of the current
    one); it defaults to 30 days or 24 hours.
    """

    period: PeriodType = "day"
    window: int | None = None
    now: datetime | None = None
    top_n: int = 5


@dataclass(frozen=True)
class BatchFetchResult:
    """Events gathered from batched reads. Failed batches are listed, not raised."""

    events: list[ClickEventWithLinkId] = field(default_factory=list)
    total_batches: int = 0
    failed_batches: tuple[int, ...] = ()

    @property
    def partial(self) -> bool:
        return len(self.failed_batches) > 0


# --- Dashboard ---


@dataclass(frozen=True)
class DashboardInput:
    """
    Input for a user dashboard.

    ``days`` sizes the time series and defaults to the configured window.
    ``date_range`` limits the breakdowns, top links and visitor counts.
    """

    user_id: str
    days: int | None = None
    date_range: DateRange = "all"


@dataclass(frozen=True)
class DashboardOverview:
    total_clicks: int
    total_links: int
    unique_visitors: int


@dataclass(frozen=True)
class DashboardOutput:
    """
    Full analytics dashboard for one user.

    ``partial`` is set when some event batches could not be read; the
    figures then cover only the batches that succeeded.
    """

    user_id: str
    days: int
    overview: DashboardOverview
    clicks_over_time: list[TimeSeriesPoint]
    by_device: list[NamedCount]
    by_os: list[NamedCount]
    by_location: list[NamedCount]
    top_links: list[TopLinkItem]
    velocity: EngagementVelocity
    rank: CreatorRank
    personas: list[AudiencePersona]
    date_range: DateRange = "all"
    traffic_sources: list[NamedCount] = field(default_factory=list)
    clicks_by_weekday: list[WeekdayPoint] = field(default_factory=list)
    partial: bool = False
    failed_batches: tuple[int, ...] = ()
