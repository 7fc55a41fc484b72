"""
Tests for batched click-event reads and the dashboard entry point.
"""

from __future__ import annotations

import threading
from collections.abc import Sequence

import pytest

from linkpulse.adapters.clock import FixedClock
from linkpulse.adapters.memory_store import InMemoryClickStore
from linkpulse.components.aggregation import (
    DashboardInput,
    fetch_events_batched,
    run_dashboard,
    run_fetch_events,
    split_batches,
)
from linkpulse.core.entities import ClickEventWithLinkId
from linkpulse.rules.models import AnalyticsRules
from tests.factories import (
    DAY_MS,
    MINUTE_MS,
    NOW_MS,
    make_event,
    make_link,
    make_record,
)

# --- Fake Repositories ---


class RecordingRepo:
    """Returns one event per link and records batch calls."""

    def __init__(self, fail_batches_containing: Sequence[str] = ()) -> None:
        self.calls: list[list[str]] = []
        self._fail = set(fail_batches_containing)
        self._lock = threading.Lock()

    def get_click_events(self, link_ids: Sequence[str]) -> list[ClickEventWithLinkId]:
        with self._lock:
            self.calls.append(list(link_ids))
        if self._fail.intersection(link_ids):
            raise RuntimeError("storage unavailable")
        return [make_event(link_id, 1000) for link_id in link_ids]


class OverlappingRepo:
    """Every batch also returns a shared duplicate event."""

    def get_click_events(self, link_ids: Sequence[str]) -> list[ClickEventWithLinkId]:
        return [make_event("shared", 1), *(make_event(i, 2) for i in link_ids)]


class HangingRepo:
    """Second batch blocks until released."""

    def __init__(self) -> None:
        self.release = threading.Event()

    def get_click_events(self, link_ids: Sequence[str]) -> list[ClickEventWithLinkId]:
        if "l5" in link_ids:
            self.release.wait(timeout=5)
        return [make_event(i, 1) for i in link_ids]


LINK_IDS = [f"l{i}" for i in range(12)]


# --- Batching Tests ---


class TestSplitBatches:
    def test_fixed_size(self) -> None:
        batches = split_batches(LINK_IDS, 5)
        assert [len(b) for b in batches] == [5, 5, 2]
        assert [i for b in batches for i in b] == LINK_IDS

    def test_empty(self) -> None:
        assert split_batches([], 5) == []

    def test_invalid_size(self) -> None:
        with pytest.raises(ValueError):
            split_batches(LINK_IDS, 0)


class TestFetchEventsBatched:
    def test_all_batches_merged_in_order(self) -> None:
        repo = RecordingRepo()
        result = fetch_events_batched(repo, LINK_IDS, batch_size=5, max_workers=3)

        assert [e.link_id for e in result.events] == LINK_IDS
        assert result.total_batches == 3
        assert result.failed_batches == ()
        assert result.partial is False
        assert sorted(len(c) for c in repo.calls) == [2, 5, 5]

    def test_no_links(self) -> None:
        repo = RecordingRepo()
        result = fetch_events_batched(repo, [], batch_size=5)
        assert result.events == []
        assert result.total_batches == 0
        assert repo.calls == []

    def test_failed_batch_skipped(self, caplog: pytest.LogCaptureFixture) -> None:
        repo = RecordingRepo(fail_batches_containing=["l6"])
        result = fetch_events_batched(repo, LINK_IDS, batch_size=5)

        assert result.failed_batches == (1,)
        assert result.partial is True
        assert [e.link_id for e in result.events] == LINK_IDS[:5] + LINK_IDS[10:]
        assert "Click batch 2/3 failed" in caplog.text

    def test_merged_batches_deduplicated(self) -> None:
        result = fetch_events_batched(OverlappingRepo(), LINK_IDS, batch_size=5)
        assert [e.link_id for e in result.events].count("shared") == 1
        assert len(result.events) == 1 + len(LINK_IDS)

    def test_timeout_cancels_pending(self) -> None:
        repo = HangingRepo()
        try:
            result = fetch_events_batched(
                repo, LINK_IDS, batch_size=5, max_workers=3, timeout_seconds=0.2
            )
        finally:
            repo.release.set()

        assert result.failed_batches == (1,)
        assert [e.link_id for e in result.events] == LINK_IDS[:5] + LINK_IDS[10:]

    def test_run_fetch_events_uses_purpose_batch_size(self) -> None:
        repo = RecordingRepo()
        ids = [f"l{i}" for i in range(25)]

        run_fetch_events(ids, repo=repo, purpose="dashboard")
        assert max(len(c) for c in repo.calls) == 5

        repo.calls.clear()
        run_fetch_events(ids, repo=repo, purpose="export")
        assert sorted(len(c) for c in repo.calls) == [5, 20]


# --- Dashboard Tests ---


class FlakyStore(InMemoryClickStore):
    def get_click_events(self, link_ids: Sequence[str]) -> list[ClickEventWithLinkId]:
        if "link-1" in link_ids:
            raise RuntimeError("read replica down")
        return super().get_click_events(link_ids)


def _populate(store: InMemoryClickStore) -> None:
    store.add_link(make_link(1), user_id="user-1")
    store.add_link(make_link(2), user_id="user-1")
    store.add_link(make_link(3), user_id="someone-else")
    for minutes in (1, 2, 3):
        store.record_click("link-1", make_record(NOW_MS - minutes * MINUTE_MS))
    store.record_click("link-2", make_record(NOW_MS - 2 * DAY_MS, country="IN"))


class TestDashboard:
    def test_full_payload(self, store: InMemoryClickStore, clock: FixedClock) -> None:
        _populate(store)
        output = run_dashboard(
            DashboardInput(user_id="user-1", days=7),
            links_repo=store,
            events_repo=store,
            time_port=clock,
        )

        assert output.partial is False
        assert output.overview.total_clicks == 4
        assert output.overview.total_links == 2
        assert len(output.clicks_over_time) == 7
        assert output.clicks_over_time[-1].clicks == 3
        assert output.clicks_over_time[-3].clicks == 1
        assert output.by_device[0].name == "desktop"
        assert output.by_os[0].name == "windows"
        assert output.by_location[0].name == "Unknown"
        assert output.top_links[0].link_id == "link-1"
        assert output.top_links[0].clicks == 3
        assert output.velocity.trend == "exploding"
        assert output.rank.score == 24
        assert output.rank.level == "Bronze"
        assert "Viral Now" in output.rank.badges
        assert [p.id for p in output.personas] == ["lunch_breaker", "desktop_pro"]

    def test_days_default_from_rules(self, store: InMemoryClickStore, clock: FixedClock) -> None:
        output = run_dashboard(
            DashboardInput(user_id="nobody"),
            links_repo=store,
            events_repo=store,
            time_port=clock,
            rules=AnalyticsRules(),
        )
        assert output.days == 30
        assert len(output.clicks_over_time) == 30
        assert output.velocity.trend == "cold"
        assert output.personas == []

    def test_failed_batch_marks_partial(self, clock: FixedClock) -> None:
        store = FlakyStore()
        _populate(store)
        rules = AnalyticsRules()
        rules.aggregation.dashboard_batch_size = 1

        output = run_dashboard(
            DashboardInput(user_id="user-1"),
            links_repo=store,
            events_repo=store,
            time_port=clock,
            rules=rules,
        )

        assert output.partial is True
        assert output.failed_batches == (0,)
        assert [(t.link_id, t.clicks) for t in output.top_links] == [
            ("link-2", 1),
            ("link-1", 0),
        ]

    def test_date_range_narrows_breakdowns(
        self, store: InMemoryClickStore, clock: FixedClock
    ) -> None:
        _populate(store)
        store.record_click("link-2", make_record(NOW_MS - 40 * DAY_MS))

        def dashboard(date_range):
            return run_dashboard(
                DashboardInput(user_id="user-1", days=7, date_range=date_range),
                links_repo=store,
                events_repo=store,
                time_port=clock,
            )

        month = dashboard("30d")
        everything = dashboard("all")

        assert month.date_range == "30d"
        assert month.overview.total_clicks == everything.overview.total_clicks == 5
        assert [(t.link_id, t.clicks) for t in month.top_links] == [("link-1", 3), ("link-2", 1)]
        assert [(t.link_id, t.clicks) for t in everything.top_links] == [
            ("link-1", 3),
            ("link-2", 2),
        ]
        assert [(s.name, s.count) for s in month.traffic_sources] == [
            ("Direct", 0),
            ("Social", 4),
            ("Referral", 0),
        ]
        assert sum(p.actual for p in month.clicks_by_weekday) == 4
        assert sum(p.actual for p in everything.clicks_by_weekday) == 5
