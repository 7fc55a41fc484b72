"""
Clicks component port definitions.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol

from linkpulse.core.entities import ClickEventInput, LinkRef


class ClickStorePort(Protocol):
    """Storage collaborator for the redirect path."""

    def get_link_by_code(self, code: str) -> LinkRef | None:
        """Resolve a short code. None when the link does not exist."""
        ...

    def record_click(self, link_id: str, event: ClickEventInput) -> None:
        """Append a click record. May raise; callers swallow and log."""
        ...


class TimePort(Protocol):
    """Time provider interface."""

    def now_utc(self) -> datetime:
        """Get current UTC time."""
        ...
