"""
Insights component unit tests.

Tests for engagement velocity, creator rank and audience personas.
"""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from linkpulse.components.insights import (
    COLD_VELOCITY,
    EngagementVelocity,
    calculate_creator_rank,
    calculate_velocity,
    generate_personas,
    personas_from_events,
    round_half_up,
    run_creator_rank,
    run_personas,
    run_velocity,
    velocity_from_events,
)
from linkpulse.core.entities import ClickEvent, LinkData

NOW = datetime(2026, 10, 18, 12, 0, tzinfo=UTC)
NOW_MS = int(NOW.timestamp() * 1000)


def _minutes_ago(minutes: float, **kwargs: object) -> ClickEvent:
    return ClickEvent(timestamp=NOW_MS - int(minutes * 60_000), **kwargs)


def _at_hour(hour: int, **kwargs: object) -> ClickEvent:
    moment = datetime(2026, 10, 17, hour, 30, tzinfo=UTC)
    return ClickEvent(timestamp=int(moment.timestamp() * 1000), **kwargs)


def _link(clicks: int = 0, history: list[ClickEvent] | None = None, n: int = 1) -> LinkData:
    return LinkData(
        id=f"link-{n}",
        original_url="https://example.com",
        short_code=f"c{n}",
        title=f"Link {n}",
        clicks=clicks,
        click_history=history or [],
    )


def _history(count: int) -> list[ClickEvent]:
    # Spread across days 2..29 ago, well inside the baseline window.
    return [_minutes_ago(60 * 24 * 2 + i) for i in range(count)]


# --- Velocity Tests ---


class TestVelocity:
    def test_no_links_is_cold(self) -> None:
        assert calculate_velocity([], NOW) == COLD_VELOCITY

    def test_link_without_history_is_cold(self) -> None:
        result = calculate_velocity([_link(clicks=0)], NOW)
        assert result == EngagementVelocity(0, 0, 0, "cold")

    def test_burst_without_baseline_is_exploding(self) -> None:
        events = [_minutes_ago(i % 59 + 0.5) for i in range(60)]
        result = velocity_from_events(events, NOW)

        assert result.current_cpm == 1.0
        assert result.historical_avg_cpm == 0.0
        assert result.multiplier == 1000.0
        assert result.trend == "exploding"

    def test_steady_rate_is_stable(self) -> None:
        # 719 clicks over 29 23/24 days is one click per 60 minutes.
        events = [_minutes_ago(10), *_history(719)]
        result = velocity_from_events(events, NOW)

        assert result.current_cpm == 0.0167
        assert result.historical_avg_cpm == 0.0167
        assert result.multiplier == 1.0
        assert result.trend == "stable"

    def test_rising(self) -> None:
        events = [_minutes_ago(5), _minutes_ago(10), _minutes_ago(15), *_history(719)]
        result = velocity_from_events(events, NOW)
        assert result.trend == "rising"
        assert result.multiplier == 3.0

    def test_cooling(self) -> None:
        events = [_minutes_ago(10), *_history(719 * 3)]
        result = velocity_from_events(events, NOW)
        assert result.trend == "cooling"

    def test_no_recent_clicks_is_cold_with_history(self) -> None:
        result = velocity_from_events(_history(50), NOW)
        assert result.trend == "cold"
        assert result.current_cpm == 0.0
        assert result.multiplier == 0.0
        assert result.historical_avg_cpm > 0

    def test_window_boundary_counts_in_neither(self) -> None:
        result = velocity_from_events([_minutes_ago(60)], NOW)
        assert result.current_cpm == 0.0
        assert result.historical_avg_cpm == 0.0
        assert result.trend == "cold"

    def test_events_older_than_history_ignored(self) -> None:
        result = velocity_from_events([_minutes_ago(60 * 24 * 31)], NOW)
        assert result.historical_avg_cpm == 0.0

    def test_accepts_epoch_ms(self) -> None:
        events = [_minutes_ago(1)]
        assert velocity_from_events(events, NOW_MS) == velocity_from_events(events, NOW)


# --- Creator Rank Tests ---


class TestCreatorRank:
    def test_single_empty_link_is_bronze(self) -> None:
        rank = calculate_creator_rank([_link(clicks=0)], now=NOW)

        assert rank.score == 10
        assert rank.level == "Bronze"
        assert rank.percentile == 50
        assert rank.next_milestone == "Silver (200)"
        assert rank.progress_to_next == 5
        assert rank.badges == ["First Click"]

    def test_no_links_has_no_badges(self) -> None:
        rank = calculate_creator_rank([], now=NOW)
        assert rank.score == 0
        assert rank.progress_to_next == 0
        assert rank.badges == []

    def test_score_250_is_silver(self) -> None:
        rank = calculate_creator_rank([_link(clicks=240)], now=NOW)

        assert rank.score == 250
        assert rank.level == "Silver"
        assert rank.percentile == 20
        assert rank.next_milestone == "Gold (1k)"
        assert rank.progress_to_next == 6

    def test_band_floor_is_exclusive(self) -> None:
        rank = calculate_creator_rank([_link(clicks=190)], now=NOW)
        assert rank.score == 200
        assert rank.level == "Bronze"
        assert rank.progress_to_next == 100

    def test_gold_earns_club_badge(self) -> None:
        rank = calculate_creator_rank([_link(clicks=991)], now=NOW)
        assert rank.level == "Gold"
        assert rank.next_milestone == "Platinum (5k)"
        assert rank.badges == ["First Click", "Club 1K"]

    def test_platinum_progress_rounds_half_up(self) -> None:
        rank = calculate_creator_rank([_link(clicks=5015)], now=NOW)
        assert rank.level == "Platinum"
        assert rank.percentile == 1
        assert rank.progress_to_next == 1

    def test_diamond_is_complete(self) -> None:
        links = [_link(clicks=5000, n=1), _link(clicks=5000, n=2)]
        rank = calculate_creator_rank(links, now=NOW)
        assert rank.score == 10020
        assert rank.level == "Diamond"
        assert rank.percentile == 0.1
        assert rank.next_milestone == "Influencer"
        assert rank.progress_to_next == 100

    def test_viral_badge_from_velocity(self) -> None:
        exploding = EngagementVelocity(1.0, 0.0, 1000.0, "exploding")
        rank = calculate_creator_rank([_link(clicks=5)], velocity=exploding)
        assert "Viral Now" in rank.badges

    def test_viral_badge_from_history(self) -> None:
        history = [_minutes_ago(i + 1) for i in range(30)]
        rank = calculate_creator_rank([_link(clicks=30, history=history)], now=NOW)
        assert rank.badges[-1] == "Viral Now"

    @pytest.mark.parametrize("clicks", [0, 150, 600, 3000, 7000, 20000])
    def test_progress_within_bounds(self, clicks: int) -> None:
        rank = calculate_creator_rank([_link(clicks=clicks)], now=NOW)
        assert 0 <= rank.progress_to_next <= 100


# --- Persona Tests ---


class TestPersonas:
    def test_no_events_gives_no_personas(self) -> None:
        assert personas_from_events([]) == []
        assert generate_personas([_link()]) == []

    def test_keeps_top_two_in_archetype_order_on_ties(self) -> None:
        events = [
            _at_hour(12, device="desktop", referrer="https://t.co/abc") for _ in range(10)
        ]
        personas = personas_from_events(events)

        assert [p.id for p in personas] == ["lunch_breaker", "desktop_pro"]
        assert all(p.match_score == 100 for p in personas)

    def test_threshold_is_exclusive(self) -> None:
        events = [_at_hour(23, device="mobile")] + [
            _at_hour(8, device="mobile") for _ in range(4)
        ]
        assert personas_from_events(events) == []

    def test_match_score_rounds(self) -> None:
        events = [
            _at_hour(8, device="desktop"),
            _at_hour(8, device="desktop"),
            _at_hour(8, device="mobile"),
        ]
        personas = personas_from_events(events)

        assert len(personas) == 1
        persona = personas[0]
        assert persona.id == "desktop_pro"
        assert persona.name == "The Desktop Pro"
        assert persona.match_score == 67
        assert persona.traits == ["Big Screen", "Professional", "High Attention"]
        assert persona.color == "blue"

    def test_night_owl_uses_utc_hours(self) -> None:
        events = [_at_hour(h, device="mobile") for h in (23, 0, 1, 2, 3, 4)]
        personas = personas_from_events(events)
        assert personas[0].id == "night_owl"
        assert personas[0].emoji == "\U0001f989"

    def test_sorted_by_score(self) -> None:
        events = [
            _at_hour(2, device="mobile", referrer="instagram.com"),
            _at_hour(2, device="mobile", referrer="instagram.com"),
            _at_hour(9, device="mobile", referrer="facebook.com"),
            _at_hour(9, device="mobile", referrer="linkedin.com"),
        ]
        personas = personas_from_events(events)
        assert [p.id for p in personas] == ["social_glider", "night_owl"]
        assert [p.match_score for p in personas] == [100, 50]

    def test_generate_from_link_history(self) -> None:
        link = _link(history=[_at_hour(13, device="mobile") for _ in range(3)])
        personas = generate_personas([link])
        assert [p.id for p in personas] == ["lunch_breaker"]


# --- Entry Point Tests ---


class TestEntryPoints:
    def test_run_velocity_prefers_events(self) -> None:
        link = _link(history=[_minutes_ago(5)])
        assert run_velocity([link], now=NOW, events=[]) == COLD_VELOCITY
        assert run_velocity([link], now=NOW).trend == "exploding"

    def test_run_creator_rank(self) -> None:
        rank = run_creator_rank([_link(clicks=240)], now=NOW, velocity=COLD_VELOCITY)
        assert rank.level == "Silver"

    def test_run_personas_prefers_events(self) -> None:
        events = [_at_hour(1, device="desktop")]
        assert [p.id for p in run_personas([], events=events)] == [
            "night_owl",
            "desktop_pro",
        ]


def test_round_half_up() -> None:
    assert round_half_up(0.5) == 1
    assert round_half_up(2.5) == 3
    assert round_half_up(0.12346, 4) == 0.1235
