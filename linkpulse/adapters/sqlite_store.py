"""
SQLite click store.

Links keep their full JSON document plus the columns the redirect and
dashboard paths query on. Click records are stored raw and normalised on
read.
"""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Sequence
from typing import Any

from pydantic import ValidationError

from linkpulse.components.clicks import normalize_record, validate_click_event
from linkpulse.core.entities import (
    ClickEventInput,
    ClickEventWithLinkId,
    LinkData,
    LinkRef,
)

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS links (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    short_code TEXT NOT NULL UNIQUE,
    original_url TEXT NOT NULL,
    clicks INTEGER NOT NULL DEFAULT 0,
    last_clicked_at INTEGER,
    data_json TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_links_user_id ON links (user_id);

CREATE TABLE IF NOT EXISTS click_events (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    link_id TEXT NOT NULL REFERENCES links (id) ON DELETE CASCADE,
    timestamp INTEGER,
    record_json TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_click_events_link ON click_events (link_id, timestamp);
"""


def dict_factory(cursor: sqlite3.Cursor, row: tuple[Any, ...]) -> dict[str, Any]:
    """Convert SQLite row to dictionary."""
    return {col[0]: row[idx] for idx, col in enumerate(cursor.description)}


class SQLiteClickStore:
    """SQLite implementation of the click store and read-side repo ports."""

    def __init__(self, db_path: str, connection: sqlite3.Connection | None = None):
        self.db_path = db_path
        self._external_conn = connection
        self.init_schema()

    def _get_conn(self) -> sqlite3.Connection:
        """Get database connection (uses external if provided)."""
        if self._external_conn is not None:
            return self._external_conn

        conn = sqlite3.connect(self.db_path)
        conn.row_factory = dict_factory
        conn.execute("PRAGMA foreign_keys = ON;")
        return conn

    def _should_close(self) -> bool:
        return self._external_conn is None

    def init_schema(self) -> None:
        conn = self._get_conn()
        try:
            conn.executescript(SCHEMA)
            conn.commit()
        finally:
            if self._should_close():
                conn.close()

    # --- Links ---

    def _map_link(self, row: dict[str, Any]) -> LinkData:
        link = LinkData.from_json(row["data_json"])
        update: dict[str, Any] = {"clicks": row["clicks"]}
        if row["last_clicked_at"] is not None:
            update["last_clicked_at"] = row["last_clicked_at"]
        return link.model_copy(update=update)

    def add_link(self, link: LinkData, user_id: str) -> LinkData:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO links (
                    id, user_id, short_code, original_url, clicks,
                    last_clicked_at, data_json
                ) VALUES (?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    user_id = excluded.user_id,
                    short_code = excluded.short_code,
                    original_url = excluded.original_url,
                    clicks = excluded.clicks,
                    last_clicked_at = excluded.last_clicked_at,
                    data_json = excluded.data_json
                """,
                (
                    link.id,
                    user_id,
                    link.short_code,
                    link.original_url,
                    link.clicks,
                    link.last_clicked_at,
                    link.to_json(),
                ),
            )
            conn.commit()
            return link
        finally:
            if self._should_close():
                conn.close()

    def get_link(self, link_id: str) -> LinkData | None:
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT * FROM links WHERE id = ?", (link_id,)).fetchone()
            return self._map_link(row) if row else None
        finally:
            if self._should_close():
                conn.close()

    def get_link_by_code(self, code: str) -> LinkRef | None:
        conn = self._get_conn()
        try:
            row = conn.execute(
                "SELECT id, original_url FROM links WHERE short_code = ?", (code,)
            ).fetchone()
            return LinkRef(id=row["id"], original_url=row["original_url"]) if row else None
        finally:
            if self._should_close():
                conn.close()

    def get_links_for_user(self, user_id: str) -> list[LinkData]:
        conn = self._get_conn()
        try:
            rows = conn.execute(
                "SELECT * FROM links WHERE user_id = ? ORDER BY rowid", (user_id,)
            ).fetchall()
            return [self._map_link(r) for r in rows]
        finally:
            if self._should_close():
                conn.close()

    # --- Clicks ---

    def record_click(self, link_id: str, event: ClickEventInput) -> None:
        """Insert a raw click record and bump the link counters in one transaction."""
        timestamp = event.timestamp if isinstance(event.timestamp, int) else None
        conn = self._get_conn()
        try:
            cursor = conn.execute(
                """
                UPDATE links
                SET clicks = clicks + 1,
                    last_clicked_at = COALESCE(?, last_clicked_at)
                WHERE id = ?
                """,
                (timestamp, link_id),
            )
            if cursor.rowcount == 0:
                conn.rollback()
                raise KeyError(f"Unknown link: {link_id}")
            conn.execute(
                "INSERT INTO click_events (link_id, timestamp, record_json) VALUES (?, ?, ?)",
                (link_id, timestamp, event.to_json()),
            )
            conn.commit()
        finally:
            if self._should_close():
                conn.close()

    def get_click_events(self, link_ids: Sequence[str]) -> list[ClickEventWithLinkId]:
        if not link_ids:
            return []

        placeholders = ", ".join("?" for _ in link_ids)
        conn = self._get_conn()
        try:
            rows = conn.execute(
                f"SELECT link_id, record_json FROM click_events "  # noqa: S608
                f"WHERE link_id IN ({placeholders}) ORDER BY id",
                tuple(link_ids),
            ).fetchall()
        finally:
            if self._should_close():
                conn.close()

        events: list[ClickEventWithLinkId] = []
        for row in rows:
            link_id = row["link_id"]
            try:
                record = ClickEventInput.from_json(row["record_json"])
                result = validate_click_event(link_id, record)
                if not result.valid:
                    logger.warning(
                        "Skipping invalid click record for %s: %s", link_id, result.errors
                    )
                    continue
                events.append(normalize_record(link_id, record))
            except ValidationError as e:
                logger.warning("Skipping unreadable click record for %s: %s", link_id, e)
        return events
