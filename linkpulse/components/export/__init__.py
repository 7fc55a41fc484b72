"""
Export component - CSV export of links and click events.
"""

from ._impl import (
    EVENT_HEADERS,
    LINK_HEADERS,
    default_export_filename,
    escape_csv_value,
    format_timestamp,
    generate_click_events_csv,
    generate_csv_export,
    generate_links_csv,
)
from .component import run_export
from .models import ExportInput, ExportOutput

__all__ = [
    # Entry points
    "run_export",
    # Pure functions
    "EVENT_HEADERS",
    "LINK_HEADERS",
    "default_export_filename",
    "escape_csv_value",
    "format_timestamp",
    "generate_click_events_csv",
    "generate_csv_export",
    "generate_links_csv",
    # Models
    "ExportInput",
    "ExportOutput",
]
