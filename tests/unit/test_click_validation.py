"""
Tests for click event validation and deduplication.
"""

from __future__ import annotations

import math

import pytest

from linkpulse.components.clicks import (
    deduplicate_events,
    run_dedupe,
    run_validate,
    validate_click_event,
)
from linkpulse.core.entities import ClickEventInput
from tests.factories import NOW_MS, make_event


def _valid_event(**overrides: object) -> dict[str, object]:
    event: dict[str, object] = {
        "timestamp": NOW_MS,
        "referrer": "https://google.com",
        "userAgent": "Mozilla/5.0",
        "ipAddress": "8.8.8.8",
    }
    event.update(overrides)
    return event


# --- Validation Tests ---


class TestValidateClickEvent:
    """Structural validation of click submissions."""

    def test_valid_event_has_no_errors(self) -> None:
        result = validate_click_event("link-1", _valid_event())
        assert result.valid is True
        assert result.errors == []

    def test_empty_referrer_is_allowed(self) -> None:
        assert validate_click_event("link-1", _valid_event(referrer="")).valid

    def test_optional_fields_may_be_absent(self) -> None:
        event = {"timestamp": 0, "referrer": "direct"}
        assert validate_click_event("link-1", event).valid

    @pytest.mark.parametrize("link_id", ["", "   ", None, 42])
    def test_bad_link_id(self, link_id: object) -> None:
        result = validate_click_event(link_id, _valid_event())
        assert result.valid is False
        assert any("linkid" in e.lower() for e in result.errors)

    def test_missing_timestamp(self) -> None:
        event = _valid_event()
        del event["timestamp"]
        result = validate_click_event("link-1", event)
        assert result.errors == ["timestamp is required"]

    def test_negative_timestamp(self) -> None:
        result = validate_click_event("link-1", _valid_event(timestamp=-1))
        assert result.errors == ["timestamp must be non-negative"]

    @pytest.mark.parametrize("value", [math.inf, math.nan])
    def test_non_finite_timestamp(self, value: float) -> None:
        result = validate_click_event("link-1", _valid_event(timestamp=value))
        assert result.valid is False
        assert any("timestamp" in e for e in result.errors)

    @pytest.mark.parametrize("value", ["1700000000000", True, [1]])
    def test_non_numeric_timestamp(self, value: object) -> None:
        result = validate_click_event("link-1", _valid_event(timestamp=value))
        assert result.errors == ["timestamp must be a number"]

    def test_float_timestamp_is_accepted(self) -> None:
        assert validate_click_event("link-1", _valid_event(timestamp=1.5)).valid

    def test_missing_referrer(self) -> None:
        event = _valid_event()
        del event["referrer"]
        result = validate_click_event("link-1", event)
        assert result.errors == ["referrer is required"]

    def test_non_string_referrer(self) -> None:
        result = validate_click_event("link-1", _valid_event(referrer=123))
        assert result.errors == ["referrer must be a string"]

    def test_non_string_user_agent_and_ip(self) -> None:
        result = validate_click_event("link-1", _valid_event(userAgent=1, ipAddress=["x"]))
        assert result.errors == ["userAgent must be a string", "ipAddress must be a string"]

    def test_snake_case_keys_are_checked(self) -> None:
        event = {"timestamp": 1, "referrer": "", "user_agent": 5}
        result = validate_click_event("link-1", event)
        assert result.errors == ["userAgent must be a string"]

    def test_every_failure_is_reported(self) -> None:
        result = validate_click_event("  ", {"timestamp": -5})
        assert len(result.errors) == 3
        joined = " ".join(result.errors).lower()
        assert "linkid" in joined
        assert "timestamp" in joined
        assert "referrer" in joined

    def test_none_event(self) -> None:
        result = validate_click_event("link-1", None)
        assert result.errors == ["timestamp is required", "referrer is required"]

    def test_accepts_click_event_input(self) -> None:
        record = ClickEventInput(timestamp=NOW_MS, referrer="", user_agent="ua", ip_address="")
        assert validate_click_event("link-1", record).valid

    def test_click_event_input_without_timestamp(self) -> None:
        record = ClickEventInput(referrer="")
        result = validate_click_event("link-1", record)
        assert result.errors == ["timestamp is required"]

    def test_run_validate_matches(self) -> None:
        assert run_validate("link-1", _valid_event()) == validate_click_event(
            "link-1", _valid_event()
        )


# --- Deduplication Tests ---


class TestDeduplicateEvents:
    """(link_id, timestamp) dedupe, first occurrence wins."""

    def test_empty(self) -> None:
        assert deduplicate_events([]) == []

    def test_first_occurrence_wins(self) -> None:
        first = make_event("a", 1, referrer="first")
        second = make_event("a", 1, referrer="second")
        result = deduplicate_events([first, second])
        assert result == [first]

    def test_same_timestamp_different_links_kept(self) -> None:
        events = [make_event("a", 1), make_event("b", 1)]
        assert deduplicate_events(events) == events

    def test_order_preserved(self) -> None:
        events = [
            make_event("a", 3),
            make_event("a", 1),
            make_event("a", 3),
            make_event("b", 2),
            make_event("a", 1),
        ]
        result = deduplicate_events(events)
        assert [(e.link_id, e.timestamp) for e in result] == [("a", 3), ("a", 1), ("b", 2)]

    def test_output_is_subset_without_duplicate_keys(self) -> None:
        events = [make_event(f"l{i % 3}", i % 4) for i in range(20)]
        result = deduplicate_events(events)

        keys = [e.dedupe_key for e in result]
        assert len(keys) == len(set(keys))
        assert all(e in events for e in result)
        assert len(result) <= len(events)

    def test_idempotent(self) -> None:
        events = [make_event("a", i % 5) for i in range(12)]
        once = deduplicate_events(events)
        assert deduplicate_events(once) == once

    def test_run_dedupe(self) -> None:
        events = [make_event("a", 1), make_event("a", 1)]
        assert len(run_dedupe(events)) == 1
