"""
Aggregation component port definitions.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from linkpulse.core.entities import ClickEventWithLinkId, LinkData


class ClickEventRepoPort(Protocol):
    """Read side of the click store."""

    def get_click_events(self, link_ids: Sequence[str]) -> list[ClickEventWithLinkId]:
        """Events for a bounded batch of link IDs. May raise."""
        ...


class LinkRepoPort(Protocol):
    """Read side of the link store."""

    def get_links_for_user(self, user_id: str) -> list[LinkData]:
        """All links owned by a user."""
        ...
