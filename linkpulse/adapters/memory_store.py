"""
In-memory click store for tests and local development.

Implements the click store, link repo and click event repo ports.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Sequence

from pydantic import ValidationError

from linkpulse.components.clicks import normalize_record, validate_click_event
from linkpulse.core.entities import (
    ClickEventInput,
    ClickEventWithLinkId,
    LinkData,
    LinkRef,
)

logger = logging.getLogger(__name__)


class InMemoryClickStore:
    """Links and raw click records held in process memory."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._links: dict[str, LinkData] = {}
        self._owners: dict[str, str] = {}  # link_id -> user_id
        self._by_code: dict[str, str] = {}  # short_code -> link_id
        self._records: dict[str, list[ClickEventInput]] = {}

    # --- Links ---

    def add_link(self, link: LinkData, user_id: str) -> LinkData:
        with self._lock:
            if link.short_code in self._by_code and self._by_code[link.short_code] != link.id:
                msg = f"Short code already in use: {link.short_code}"
                raise ValueError(msg)
            self._links[link.id] = link
            self._owners[link.id] = user_id
            self._by_code[link.short_code] = link.id
            self._records.setdefault(link.id, [])
        return link

    def get_link(self, link_id: str) -> LinkData | None:
        with self._lock:
            return self._links.get(link_id)

    def get_link_by_code(self, code: str) -> LinkRef | None:
        with self._lock:
            link_id = self._by_code.get(code)
            link = self._links.get(link_id) if link_id else None
        return link.ref() if link else None

    def get_links_for_user(self, user_id: str) -> list[LinkData]:
        with self._lock:
            return [
                link for link_id, link in self._links.items() if self._owners[link_id] == user_id
            ]

    # --- Clicks ---

    def record_click(self, link_id: str, event: ClickEventInput) -> None:
        """Append a raw click record and bump the link's counters."""
        with self._lock:
            link = self._links.get(link_id)
            if link is None:
                raise KeyError(f"Unknown link: {link_id}")
            self._records[link_id].append(event)
            update: dict[str, object] = {"clicks": link.clicks + 1}
            if isinstance(event.timestamp, int):
                update["last_clicked_at"] = event.timestamp
            self._links[link_id] = link.model_copy(update=update)

    def add_raw_record(self, link_id: str, record: ClickEventInput) -> None:
        """Store a record as-is, without touching counters (imports, fixtures)."""
        with self._lock:
            self._records.setdefault(link_id, []).append(record)

    def get_click_events(self, link_ids: Sequence[str]) -> list[ClickEventWithLinkId]:
        with self._lock:
            pairs = [
                (link_id, record)
                for link_id in link_ids
                for record in self._records.get(link_id, [])
            ]

        events: list[ClickEventWithLinkId] = []
        for link_id, record in pairs:
            result = validate_click_event(link_id, record)
            if not result.valid:
                logger.warning("Skipping invalid click record for %s: %s", link_id, result.errors)
                continue
            try:
                events.append(normalize_record(link_id, record))
            except ValidationError as e:
                logger.warning("Skipping unreadable click record for %s: %s", link_id, e)
        return events
