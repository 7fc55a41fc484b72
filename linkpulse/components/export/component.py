"""
Export component - CSV download of a user's links and click events.

Invariants:
- Both sections are always present
- Events are read in export-sized batches; failed batches are skipped
  and the export is flagged partial
"""

from __future__ import annotations

import logging

from linkpulse.adapters.clock import SystemClock
from linkpulse.components.aggregation import (
    ClickEventRepoPort,
    LinkRepoPort,
    run_fetch_events,
)
from linkpulse.components.clicks import TimePort
from linkpulse.rules.models import AnalyticsRules

from ._impl import default_export_filename, generate_csv_export
from .models import ExportInput, ExportOutput

logger = logging.getLogger(__name__)


# --- Component Entry Points ---


def run_export(
    inp: ExportInput,
    *,
    links_repo: LinkRepoPort,
    events_repo: ClickEventRepoPort,
    time_port: TimePort | None = None,
    rules: AnalyticsRules | None = None,
) -> ExportOutput:
    """Generate the CSV export for a user."""
    rules = rules or AnalyticsRules()
    time_port = time_port or SystemClock()

    links = links_repo.get_links_for_user(inp.user_id)
    fetched = run_fetch_events(
        [link.id for link in links],
        repo=events_repo,
        rules=rules,
        purpose="export",
    )
    if fetched.partial:
        logger.warning(
            "Export for %s is partial: batches %s failed",
            inp.user_id,
            list(fetched.failed_batches),
        )

    return ExportOutput(
        filename=default_export_filename(time_port.now_utc(), rules.export.filename_prefix),
        content=generate_csv_export(links, fetched.events),
        link_count=len(links),
        event_count=len(fetched.events),
        partial=fetched.partial,
    )
