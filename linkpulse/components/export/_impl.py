"""
CSV export of links and click events.

Key behaviors:
- One document, two sections: "# Links" then "# Click Events"
- Sections are always present, even when empty
- Fields containing a comma, quote, CR or LF are quoted, quotes doubled
- Timestamps are ISO-8601 UTC with milliseconds and a trailing "Z"
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import UTC, datetime, timedelta

from linkpulse.core.entities import UNKNOWN_COUNTRY, ClickEvent, LinkData

LINK_HEADERS = ("title", "originalUrl", "shortCode", "createdAt", "clicks")
EVENT_HEADERS = ("timestamp", "referrer", "device", "os", "country")

LINKS_SECTION = "# Links"
EVENTS_SECTION = "# Click Events"

_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)
_NEEDS_QUOTING = (",", '"', "\n", "\r")


def escape_csv_value(value: object) -> str:
    """Render one CSV field. ``None`` becomes an empty field."""
    if value is None:
        return ""
    text = str(value)
    if any(ch in text for ch in _NEEDS_QUOTING):
        return '"' + text.replace('"', '""') + '"'
    return text


def format_timestamp(timestamp_ms: int) -> str:
    """Epoch milliseconds as e.g. ``2024-01-15T10:30:00.000Z``."""
    moment = _EPOCH + timedelta(milliseconds=timestamp_ms)
    return moment.strftime("%Y-%m-%dT%H:%M:%S") + f".{moment.microsecond // 1000:03d}Z"


def _row(values: Iterable[object]) -> str:
    return ",".join(escape_csv_value(v) for v in values)


def generate_links_csv(links: Sequence[LinkData]) -> str:
    rows = [",".join(LINK_HEADERS)]
    for link in links:
        rows.append(
            _row(
                (
                    link.title,
                    link.original_url,
                    link.short_code,
                    format_timestamp(link.created_at),
                    link.clicks,
                )
            )
        )
    return "\n".join(rows)


def generate_click_events_csv(events: Sequence[ClickEvent]) -> str:
    rows = [",".join(EVENT_HEADERS)]
    for event in events:
        rows.append(
            _row(
                (
                    format_timestamp(event.timestamp),
                    event.referrer,
                    event.device,
                    event.os,
                    event.country or UNKNOWN_COUNTRY,
                )
            )
        )
    return "\n".join(rows)


def generate_csv_export(
    links: Sequence[LinkData],
    click_events: Sequence[ClickEvent],
) -> str:
    """
    Combined CSV export of links and click events.

    The links section is separated from the events section by a blank line.
    There is no trailing newline.
    """
    return "\n".join(
        [
            LINKS_SECTION,
            generate_links_csv(links),
            "",
            EVENTS_SECTION,
            generate_click_events_csv(click_events),
        ]
    )


def default_export_filename(now: datetime, prefix: str = "linkpulse-export") -> str:
    """Download filename for an export generated at ``now`` (UTC date)."""
    if now.tzinfo is not None:
        now = now.astimezone(UTC)
    return f"{prefix}-{now.strftime('%Y-%m-%d')}.csv"
