"""
Analytics API routes - dashboard and CSV export.
"""

from __future__ import annotations

from dataclasses import asdict
from typing import Any

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse

from linkpulse.adapters.sqlite_store import SQLiteClickStore
from linkpulse.api.deps import get_analytics_rules, get_click_store, get_time_port
from linkpulse.components.aggregation import DashboardInput, DateRange, run_dashboard
from linkpulse.components.clicks import TimePort
from linkpulse.components.export import ExportInput, run_export
from linkpulse.rules.models import AnalyticsRules

router = APIRouter()


@router.get("/{user_id}/dashboard")
def get_dashboard(
    user_id: str,
    days: int | None = Query(None, ge=1, le=365, description="Days in the time series"),
    date_range: DateRange = Query(
        "all", alias="range", description="Window for breakdowns: 7d, 30d, 90d or all"
    ),
    store: SQLiteClickStore = Depends(get_click_store),
    time_port: TimePort = Depends(get_time_port),
    rules: AnalyticsRules = Depends(get_analytics_rules),
) -> dict[str, Any]:
    """Full analytics dashboard for a user's links."""
    output = run_dashboard(
        DashboardInput(user_id=user_id, days=days, date_range=date_range),
        links_repo=store,
        events_repo=store,
        time_port=time_port,
        rules=rules,
    )
    return asdict(output)


@router.get("/{user_id}/export.csv")
def export_csv(
    user_id: str,
    store: SQLiteClickStore = Depends(get_click_store),
    time_port: TimePort = Depends(get_time_port),
    rules: AnalyticsRules = Depends(get_analytics_rules),
) -> StreamingResponse:
    """Download a user's links and click events as CSV."""
    output = run_export(
        ExportInput(user_id=user_id),
        links_repo=store,
        events_repo=store,
        time_port=time_port,
        rules=rules,
    )
    return StreamingResponse(
        iter([output.content]),
        media_type="text/csv",
        headers={
            "Content-Disposition": f"attachment; filename={output.filename}",
            "X-Export-Partial": "true" if output.partial else "false",
        },
    )
