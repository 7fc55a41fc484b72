"""Shared test data builders."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from linkpulse.core.entities import ClickEventInput, ClickEventWithLinkId, LinkData

NOW = datetime(2026, 10, 18, 12, 0, tzinfo=UTC)
NOW_MS = int(NOW.timestamp() * 1000)
MINUTE_MS = 60 * 1000
HOUR_MS = 60 * MINUTE_MS
DAY_MS = 24 * HOUR_MS

WINDOWS_CHROME_UA = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
IPHONE_SAFARI_UA = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.0 Mobile/15E148 Safari/604.1"
)


def make_link(n: int = 1, **overrides: Any) -> LinkData:
    data: dict[str, Any] = {
        "id": f"link-{n}",
        "original_url": f"https://example.com/{n}",
        "short_code": f"code{n}",
        "title": f"Link {n}",
        "created_at": NOW_MS - 10 * DAY_MS,
    }
    data.update(overrides)
    return LinkData(**data)


def make_record(timestamp: int, **overrides: Any) -> ClickEventInput:
    data: dict[str, Any] = {
        "timestamp": timestamp,
        "referrer": "https://t.co/abc",
        "user_agent": WINDOWS_CHROME_UA,
        "ip_address": "8.8.8.8",
    }
    data.update(overrides)
    return ClickEventInput(**data)


def make_event(link_id: str, timestamp: int, **overrides: Any) -> ClickEventWithLinkId:
    data: dict[str, Any] = {
        "link_id": link_id,
        "timestamp": timestamp,
        "referrer": "direct",
        "device": "desktop",
        "os": "windows",
        "country": "US",
    }
    data.update(overrides)
    return ClickEventWithLinkId(**data)
